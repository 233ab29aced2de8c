from pydantic import EmailStr, Field, field_validator

from app.models.user import UserRole
from app.schemas.common import CamelModel


class UserBase(CamelModel):
    name: str = Field(min_length=1, max_length=200)
    email: EmailStr
    role: UserRole

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Name cannot be empty")
        return trimmed

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class UserCreate(UserBase):
    # bcrypt only hashes the first 72 bytes.
    password: str = Field(min_length=8, max_length=72)


class UserLogin(CamelModel):
    email: EmailStr
    password: str = Field(min_length=8, max_length=72)
    role: UserRole | None = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class UserOut(UserBase):
    id: int


class Token(CamelModel):
    access_token: str
    token_type: str
    user: UserOut
