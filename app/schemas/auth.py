from pydantic import BaseModel


# ─── Request Schemas ──────────────────────────────────────────────────────────
class LoginRequest(BaseModel):
    username: str
    password: str
