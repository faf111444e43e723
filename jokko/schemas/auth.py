# jokko/schemas/auth.py
from pydantic import EmailStr, ConfigDict
from sqlmodel import SQLModel


class AdminLoginRequest(SQLModel):
    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    password: str


class AdminUserInfo(SQLModel):
    email: str
    role: str = "admin"


class AdminLoginResponse(SQLModel):
    success: bool = True
    token: str
    user: AdminUserInfo


class AdminTokenCheck(SQLModel):
    valid: bool = True
    user: AdminUserInfo
