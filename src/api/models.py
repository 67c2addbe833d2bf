"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
Response models are the serialization boundary for user records: they are
built from domain objects via from_attributes and never declare the
password field, so the stored credential cannot leak into a response.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from src.domain.ports import AccountStatus

PHONE_NUMBER_PATTERN = r"^\+?\d{1,15}$"


class UserCreateRequest(BaseModel):
    """Request model for user registration."""

    email: EmailStr
    phone_number: str = Field(
        ...,
        pattern=PHONE_NUMBER_PATTERN,
        description="Phone number, digits with optional leading +",
    )
    password: str = Field(..., min_length=8, description="User password (min 8 characters)")
    first_name: str | None = Field(None, max_length=100)
    last_name: str | None = Field(None, max_length=100)


class UserUpdateRequest(BaseModel):
    """
    Request model for updating a user.

    All fields are optional; only fields present in the request body are
    applied. A password sent here is accepted but ignored - use the
    password endpoint to change credentials.
    """

    email: EmailStr | None = None
    phone_number: str | None = Field(None, pattern=PHONE_NUMBER_PATTERN)
    first_name: str | None = Field(None, max_length=100)
    last_name: str | None = Field(None, max_length=100)
    password: str | None = Field(None, description="Ignored; see PUT /users/{email}/password")


class PasswordChangeRequest(BaseModel):
    """Request model for changing a user's password."""

    password: str = Field(..., min_length=8, description="New password (min 8 characters)")


class UserResponse(BaseModel):
    """Public representation of a user. Never includes the credential."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    phone_number: str
    first_name: str | None = None
    last_name: str | None = None
    is_email_confirmed: bool
    is_phone_number_confirmed: bool
    status: AccountStatus
    created_at: datetime | None = None
    updated_at: datetime | None = None


class PrivateFileResponse(BaseModel):
    """Reference to a user's private file."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    key: str
    owner_id: int


class MessageResponse(BaseModel):
    """Simple acknowledgement."""

    message: str


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str
