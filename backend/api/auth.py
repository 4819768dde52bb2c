"""Authentication API

Form-style endpoints. Every response body is an ActionResponse:
``{"success", "message", "field_errors"?, "data"?}``; failures carry the
HTTP status of their error code.
"""
from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Body, Depends, status
from fastapi.responses import JSONResponse
from pydantic import (
    AfterValidator,
    BaseModel,
    EmailStr,
    ValidationError,
    ValidationInfo,
    field_validator,
)
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from core.errors import (
    AppError,
    Ok,
    Err,
    Result,
    ValidationErrorMapper,
    action_ok,
    action_from_error,
    envelope_response,
)
from core.logging import auth_logger
from services import auth as auth_service
from services.mail import Mailer, get_mailer

router = APIRouter()
log = auth_logger()

_validation = ValidationErrorMapper("api.auth")

MAX_PASSWORD_BYTES = 72  # bcrypt ignores anything past this


def check_password_strength(value: str) -> str:
    if len(value) < 8:
        raise ValueError("Password must be at least 8 characters")
    if not any(c.isalpha() for c in value):
        raise ValueError("Password must contain at least one letter")
    if not any(c.isdigit() for c in value):
        raise ValueError("Password must contain at least one number")
    if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError("Password is too long")
    return value


def lower_email(value: str) -> str:
    return value.lower()


NewPassword = Annotated[str, AfterValidator(check_password_strength)]
Email = Annotated[EmailStr, AfterValidator(lower_email)]


def passwords_match(value: str, info: ValidationInfo) -> str:
    # password is missing from info.data when it failed its own checks
    password = info.data.get("password")
    if password is not None and value != password:
        raise ValueError("Passwords do not match")
    return value


class SignUpIn(BaseModel):
    name: str
    email: Email
    password: NewPassword
    confirm_password: str

    @field_validator("name")
    @classmethod
    def name_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator("confirm_password")
    @classmethod
    def confirm_matches(cls, v: str, info: ValidationInfo) -> str:
        return passwords_match(v, info)


class SignInIn(BaseModel):
    email: Email
    password: str

    @field_validator("password")
    @classmethod
    def password_required(cls, v: str) -> str:
        if not v:
            raise ValueError("Password is required")
        return v


class ForgotPasswordIn(BaseModel):
    email: Email


class ResetPasswordIn(BaseModel):
    token: str
    password: NewPassword
    confirm_password: str

    @field_validator("confirm_password")
    @classmethod
    def confirm_matches(cls, v: str, info: ValidationInfo) -> str:
        return passwords_match(v, info)


class UserOut(BaseModel):
    id: UUID
    name: str | None
    email: str
    role: str

    class Config:
        from_attributes = True


def parse_form(schema: type[BaseModel], payload: Any) -> Result[BaseModel, AppError]:
    """Validate a request body, collecting per-field messages on failure."""
    try:
        return Ok(schema.model_validate(payload if payload is not None else {}))
    except ValidationError as e:
        return Err(_validation.map_exception(e))


def render(
    result: Result[Any, AppError],
    message: str | None = None,
    success_status: int = status.HTTP_200_OK,
) -> JSONResponse:
    """Turn a service Result into an ActionResponse with a matching status.

    Without ``message`` the Ok value itself is the success message.
    """
    match result:
        case Ok(value) if message is None:
            return envelope_response(action_ok(value), success_status)
        case Ok(value):
            return envelope_response(action_ok(message, value), success_status)
        case Err(error):
            level = log.error if error.status_code >= 500 else log.info
            level("auth_action_failed", error_code=error.code.value, origin=error.context.origin)
            return envelope_response(action_from_error(error), error.status_code)


@router.post("/signup")
async def signup(
    payload: Any = Body(default=None),
    db: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    """Register an account and send a verification link."""
    form = parse_form(SignUpIn, payload)
    if form.is_err():
        return render(form)
    data = form.unwrap()
    result = await auth_service.signup_user(db, mailer, data.name, data.email, data.password)
    return render(result.map(lambda _: None), "Verification email sent", status.HTTP_201_CREATED)


@router.post("/signin")
async def signin(
    payload: Any = Body(default=None),
    db: AsyncSession = Depends(get_db),
):
    form = parse_form(SignInIn, payload)
    if form.is_err():
        return render(form)
    data = form.unwrap()
    result = await auth_service.signin_user(db, data.email, data.password)
    return render(
        result.map(lambda user: UserOut.model_validate(user).model_dump(mode="json")),
        "Signed in",
    )


@router.post("/forgot-password")
async def forgot_password(
    payload: Any = Body(default=None),
    db: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    form = parse_form(ForgotPasswordIn, payload)
    if form.is_err():
        return render(form)
    return render(await auth_service.forgot_password(db, mailer, form.unwrap().email))


@router.post("/reset-password")
async def reset_password(
    payload: Any = Body(default=None),
    db: AsyncSession = Depends(get_db),
):
    form = parse_form(ResetPasswordIn, payload)
    if form.is_err():
        return render(form)
    data = form.unwrap()
    return render(await auth_service.reset_password(db, data.token, data.password))


@router.get("/verify-email/{token}")
async def verify_email(token: str, db: AsyncSession = Depends(get_db)):
    return render(await auth_service.verify_email(db, token))
