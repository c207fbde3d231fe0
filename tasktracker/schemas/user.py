from pydantic import BaseModel, EmailStr, ConfigDict
from datetime import datetime
from typing import List, Optional

# Les rôles ne sont jamais choisis à l'inscription : ils sont gérés hors de l'API

class UserCreate(BaseModel):
    email: EmailStr
    username: str
    password: str
    department: Optional[str] = None

class UserResponse(BaseModel):
    id: int
    email: str
    username: str
    roles: List[str]
    department: Optional[str]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
