import enum


class RoleName(str, enum.Enum):
    STUDENT = "student"
    ADMIN   = "admin"
