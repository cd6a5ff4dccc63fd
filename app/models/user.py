from sqlalchemy import Column, Integer, String, Boolean, Enum, TIMESTAMP
from sqlalchemy.sql import func
from app.database import Base
from app.models.role import RoleName


class User(Base):
    __tablename__ = "users"

    id        = Column(Integer, primary_key=True, index=True)
    username  = Column(String(50), unique=True, nullable=False, index=True)
    email     = Column(String(255), unique=True, nullable=False, index=True)
    password  = Column(String(255), nullable=False)
    firstName = Column(String(100), nullable=False)
    lastName  = Column(String(100), nullable=False)
    role      = Column(Enum(RoleName, values_callable=lambda e: [m.value for m in e]),
                       default=RoleName.STUDENT, nullable=False)
    isActive  = Column(Boolean, default=True, nullable=False)
    createdAt = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updatedAt = Column(TIMESTAMP(timezone=True), server_default=func.now(),
                       onupdate=func.now(), nullable=False)

    @property
    def full_name(self) -> str:
        return f"{self.firstName} {self.lastName}"

    @property
    def is_admin(self) -> bool:
        return self.role == RoleName.ADMIN

    def __repr__(self):
        return f"<User id={self.id} username={self.username} role={self.role}>"
