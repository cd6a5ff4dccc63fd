# tests/test_auth.py
from datetime import timedelta

import pytest
from jose import jwt

from app.config import settings
from app.dependencies import ensure_admin
from app.utils.exceptions import ForbiddenException
from app.utils.security import create_access_token, hash_password, verify_password

from helpers import auth_headers


def test_password_hashing():
    hashed = hash_password("Password123")
    assert hashed != "Password123"
    assert verify_password("Password123", hashed)
    assert not verify_password("password123", hashed)


def test_access_token_claims(admin):
    payload = jwt.decode(create_access_token(admin.id, "admin"), settings.SECRET_KEY,
                         algorithms=[settings.ALGORITHM])
    assert payload["sub"] == str(admin.id)
    assert payload["role"] == "admin"
    assert payload["type"] == "access"


def test_login(client, admin):
    response = client.post("/api/v1/auth/login", json={"username": "admin", "password": "Password123"})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["tokenType"] == "Bearer"
    assert data["expiresIn"] == settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
    assert data["user"]["role"] == "admin"
    assert "password" not in data["user"]

    me = client.get("/api/v1/auth/me", headers=auth_headers(data["accessToken"]))
    assert me.json()["data"]["username"] == "admin"


def test_login_wrong_password(client, admin):
    response = client.post("/api/v1/auth/login", json={"username": "admin", "password": "nope"})
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid username or password"


def test_login_unknown_user(client):
    response = client.post("/api/v1/auth/login", json={"username": "nobody", "password": "Password123"})
    assert response.status_code == 401


def test_login_inactive_account(client, inactive_user):
    response = client.post("/api/v1/auth/login", json={"username": "ghost", "password": "Password123"})
    assert response.status_code == 403
    assert response.json()["error"]["code"] == "ACCOUNT_INACTIVE"


def test_expired_token(client, student):
    token = create_access_token(student.id, "student", expires_delta=timedelta(seconds=-5))
    response = client.get("/api/v1/auth/me", headers=auth_headers(token))
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "TOKEN_EXPIRED"


def test_token_for_deleted_user(client, db, student, student_token):
    db.delete(student)
    db.commit()
    response = client.get("/api/v1/auth/me", headers=auth_headers(student_token))
    assert response.status_code == 401
    assert response.json()["message"] == "User not found"


def test_ensure_admin_follows_role(admin, student):
    assert ensure_admin(admin) is admin
    assert admin.is_admin and not student.is_admin
    with pytest.raises(ForbiddenException) as exc:
        ensure_admin(student)
    assert exc.value.message == "Unauthorized - Admin access required"
