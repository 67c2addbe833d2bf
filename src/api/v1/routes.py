"""
API v1 routes.

Defines REST endpoints for the identity registry. Each endpoint calls one
registry operation and translates its outcome:

- Ok -> 200/201 with the serialized result
- NotFound -> 404
- Conflict -> 409
- Unauthorized -> 401
"""

from typing import Any, NoReturn

from fastapi import APIRouter, Depends, HTTPException, status

from src.adapters.security.bcrypt_hasher import BcryptPasswordHasher
from src.api.dependencies import (
    get_basic_auth_credentials,
    get_identity_registry,
    get_password_hasher,
)
from src.api.models import (
    ErrorResponse,
    MessageResponse,
    PasswordChangeRequest,
    PrivateFileResponse,
    UserCreateRequest,
    UserResponse,
    UserUpdateRequest,
)
from src.domain.outcomes import Conflict, NotFound, Ok, Unauthorized
from src.domain.ports import UserCandidate
from src.domain.registry import IdentityRegistry

router = APIRouter(tags=["v1"])

NOT_FOUND_RESPONSE = {404: {"model": ErrorResponse, "description": "User not found"}}
CONFLICT_RESPONSE = {
    409: {"model": ErrorResponse, "description": "Email or phone number already registered"}
}


def _reject(outcome: NotFound | Conflict | Unauthorized) -> NoReturn:
    if isinstance(outcome, NotFound):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=outcome.message)
    if isinstance(outcome, Conflict):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=outcome.message)
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=outcome.message,
        headers={"WWW-Authenticate": "Basic"},
    )


def _unwrap(outcome: Ok[Any] | NotFound | Conflict | Unauthorized) -> Any:
    """Return the value of an Ok outcome or raise the matching HTTP error."""
    if isinstance(outcome, Ok):
        return outcome.value
    _reject(outcome)


@router.post(
    "/users",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**CONFLICT_RESPONSE, 422: {"description": "Validation error"}},
    summary="Register a new user",
    description="Create a user. Email and phone number must not belong to an existing user.",
)
async def register_user(
    request_data: UserCreateRequest,
    registry: IdentityRegistry = Depends(get_identity_registry),
    hasher: BcryptPasswordHasher = Depends(get_password_hasher),
) -> UserResponse:
    """
    Register a new user.

    - **email**: Valid email address, unique across users
    - **phone_number**: Phone number, unique across users
    - **password**: Password (minimum 8 characters), stored as a bcrypt hash
    """
    candidate = UserCandidate(
        email=request_data.email,
        phone_number=request_data.phone_number,
        password=hasher.hash(request_data.password),
        first_name=request_data.first_name,
        last_name=request_data.last_name,
    )
    user = _unwrap(registry.register(candidate))
    return UserResponse.model_validate(user)


@router.get("/users", response_model=list[UserResponse], summary="List all users")
async def list_users(
    registry: IdentityRegistry = Depends(get_identity_registry),
) -> list[UserResponse]:
    return [UserResponse.model_validate(user) for user in registry.list_all()]


@router.get(
    "/users/{email}",
    response_model=UserResponse,
    responses=NOT_FOUND_RESPONSE,
    summary="Get a user by email",
)
async def get_user(
    email: str,
    registry: IdentityRegistry = Depends(get_identity_registry),
) -> UserResponse:
    return UserResponse.model_validate(_unwrap(registry.get(email)))


@router.patch(
    "/users/{email}",
    response_model=UserResponse,
    responses={**NOT_FOUND_RESPONSE, **CONFLICT_RESPONSE},
    summary="Update a user",
    description="Update profile fields. A password in the body is ignored.",
)
async def update_user(
    email: str,
    request_data: UserUpdateRequest,
    registry: IdentityRegistry = Depends(get_identity_registry),
) -> UserResponse:
    patch = request_data.model_dump(exclude_unset=True)
    user = _unwrap(registry.update(email, patch))
    return UserResponse.model_validate(user)


@router.put(
    "/users/{email}/password",
    response_model=UserResponse,
    responses=NOT_FOUND_RESPONSE,
    summary="Change a user's password",
)
async def change_password(
    email: str,
    request_data: PasswordChangeRequest,
    registry: IdentityRegistry = Depends(get_identity_registry),
    hasher: BcryptPasswordHasher = Depends(get_password_hasher),
) -> UserResponse:
    user = _unwrap(registry.change_password(email, hasher.hash(request_data.password)))
    return UserResponse.model_validate(user)


@router.post(
    "/users/{email}/confirm-email",
    response_model=UserResponse,
    responses=NOT_FOUND_RESPONSE,
    summary="Mark a user's email as confirmed",
)
async def confirm_email(
    email: str,
    registry: IdentityRegistry = Depends(get_identity_registry),
) -> UserResponse:
    return UserResponse.model_validate(_unwrap(registry.confirm_email(email)))


@router.post(
    "/users/{email}/confirm-phone",
    response_model=UserResponse,
    responses=NOT_FOUND_RESPONSE,
    summary="Mark a user's phone number as confirmed",
)
async def confirm_phone(
    email: str,
    registry: IdentityRegistry = Depends(get_identity_registry),
) -> UserResponse:
    return UserResponse.model_validate(_unwrap(registry.confirm_phone(email)))


@router.delete(
    "/users/{email}",
    response_model=MessageResponse,
    responses=NOT_FOUND_RESPONSE,
    summary="Delete a user",
)
async def delete_user(
    email: str,
    registry: IdentityRegistry = Depends(get_identity_registry),
) -> MessageResponse:
    _unwrap(registry.delete(email))
    return MessageResponse(message="User deleted")


@router.get(
    "/users/{user_id}/files",
    response_model=list[PrivateFileResponse],
    responses=NOT_FOUND_RESPONSE,
    summary="List a user's private files",
)
async def list_private_files(
    user_id: int,
    registry: IdentityRegistry = Depends(get_identity_registry),
) -> list[PrivateFileResponse]:
    files = _unwrap(registry.list_private_files(user_id))
    return [PrivateFileResponse.model_validate(private_file) for private_file in files]


@router.post(
    "/auth/login",
    response_model=UserResponse,
    responses={401: {"model": ErrorResponse, "description": "Invalid credentials"}},
    summary="Authenticate with email and password",
    description="Credentials are provided via HTTP BASIC AUTH (email:password).",
)
async def login(
    credentials: tuple[str, str] = Depends(get_basic_auth_credentials),
    registry: IdentityRegistry = Depends(get_identity_registry),
) -> UserResponse:
    """
    Verify credentials and return the authenticated user.

    Unknown email and wrong password return the same generic 401 to
    prevent account enumeration.
    """
    email, password = credentials
    return UserResponse.model_validate(_unwrap(registry.authenticate(email, password)))
