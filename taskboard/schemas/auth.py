from pydantic import BaseModel, EmailStr, Field


class UserProfile(BaseModel):
    """Public part of a user; never carries the password hash"""
    id: int
    name: str
    email: str
    avatar: str = ""

    class Config:
        from_attributes = True


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    name: str = Field(..., min_length=1, max_length=100)


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserProfile
