from pydantic import BaseModel, EmailStr
from typing import Optional


class RegisterRequest(BaseModel):
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[EmailStr] = None
    password: Optional[str] = None
