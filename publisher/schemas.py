from datetime import date, datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

from publisher.config import settings

# Primary keys are 32-bit INTEGER columns.
MAX_ID = 2**31 - 1

RecordId = Annotated[int, Field(ge=1, le=MAX_ID)]

# bcrypt only hashes the first 72 bytes and rejects longer input.
BCRYPT_MAX_BYTES = 72


# --- Category ---

class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=30)
    model_config = ConfigDict(extra="forbid")


class CategoryResponse(BaseModel):
    id: int
    name: str
    count: int | None = None  # only populated when counts are requested


# --- User ---

class UserPayload(BaseModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: str = Field(max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    password: str = Field(min_length=6, max_length=72)
    repeated_password: str
    avatar: str | None = Field(None, max_length=255)
    model_config = ConfigDict(extra="forbid")

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, v: str) -> str:
        if len(v.encode("utf-8")) > BCRYPT_MAX_BYTES:
            raise ValueError(f"Password must be at most {BCRYPT_MAX_BYTES} bytes")
        return v


class UserResponse(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: str
    avatar: str | None
    role: str
    created_at: datetime | None


class LoginRequest(BaseModel):
    email: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserClaims(BaseModel):
    """Identity asserted by a verified access token."""

    id: int
    email: str
    role: str


# --- Comment ---

class CommentPayload(BaseModel):
    text: str = Field(min_length=settings.COMMENT_MIN_LENGTH, max_length=1000)
    model_config = ConfigDict(extra="forbid")


class CommentResponse(BaseModel):
    id: int
    text: str
    article_id: int
    user_id: int | None
    created_at: datetime | None


# --- Article ---

class ArticlePayload(BaseModel):
    title: str = Field(min_length=30, max_length=250)
    announce: str = Field(min_length=30, max_length=250)
    full_text: str = Field(min_length=1, max_length=1000)
    published_at: date
    categories: list[RecordId] = Field(min_length=1)
    image: str | None = Field(None, max_length=255, pattern=r"(?i)^(.+\.(jpe?g|png))?$")
    model_config = ConfigDict(extra="forbid")


class ArticleResponse(BaseModel):
    id: int
    title: str
    announce: str
    full_text: str
    published_at: date
    image: str | None
    user_id: int | None
    created_at: datetime | None
    categories: list[CategoryResponse] = []
    comments: list[CommentResponse] | None = None


# --- Pagination ---

class ArticlePage(BaseModel):
    count: int
    articles: list[ArticleResponse]
