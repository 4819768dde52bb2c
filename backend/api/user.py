"""User Profile API

Profile and password settings for an account, addressed by user id.
Reads return ApiResponse envelopes; edits are form actions and return
ActionResponse bodies like the auth endpoints.
"""
import re
from datetime import datetime
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Body, Depends
from pydantic import BaseModel, ValidationInfo, field_validator
from sqlalchemy.ext.asyncio import AsyncSession

from api.auth import NewPassword, parse_form, render
from core.database import get_db
from core.errors import AppError, Err, Ok, Result, envelope_response, from_result, not_found
from services import user as user_service

router = APIRouter()

PHONE_PATTERN = re.compile(r"^\+?[1-9]\d{1,14}$")


class ProfileOut(BaseModel):
    id: UUID
    name: str | None
    email: str
    phone: str | None
    image: str | None
    role: str
    email_verified: datetime | None
    created_at: datetime
    updated_at: datetime | None

    class Config:
        from_attributes = True


class UpdateProfileIn(BaseModel):
    """Only the fields present in the body are changed; "" clears phone or image."""
    name: str | None = None
    phone: str | None = None
    image: str | None = None

    @field_validator("name")
    @classmethod
    def name_valid(cls, v: str | None) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("Name is required")
        if len(v) > 100:
            raise ValueError("Name is too long")
        return v

    @field_validator("phone")
    @classmethod
    def phone_valid(cls, v: str | None) -> str | None:
        v = (v or "").strip()
        if not v:
            return None
        if not PHONE_PATTERN.match(v):
            raise ValueError("Invalid phone number")
        return v

    @field_validator("image")
    @classmethod
    def image_valid(cls, v: str | None) -> str | None:
        v = (v or "").strip()
        if not v:
            return None
        if not v.startswith(("http://", "https://")):
            raise ValueError("Invalid image URL")
        return v


class ChangePasswordIn(BaseModel):
    current_password: str
    new_password: NewPassword
    confirm_password: str

    @field_validator("current_password")
    @classmethod
    def current_required(cls, v: str) -> str:
        if not v:
            raise ValueError("Current password is required")
        return v

    @field_validator("new_password")
    @classmethod
    def differs_from_current(cls, v: str, info: ValidationInfo) -> str:
        if v == info.data.get("current_password"):
            raise ValueError("New password must be different from current password")
        return v

    @field_validator("confirm_password")
    @classmethod
    def confirm_matches(cls, v: str, info: ValidationInfo) -> str:
        new_password = info.data.get("new_password")
        if new_password is not None and v != new_password:
            raise ValueError("Passwords do not match")
        return v


def parse_user_id(raw: str) -> Result[UUID, AppError]:
    """Ids that are not UUIDs cannot name an account."""
    try:
        return Ok(UUID(raw))
    except ValueError:
        return not_found("User", raw, origin="api.user")


def _profile(user) -> dict[str, Any]:
    return ProfileOut.model_validate(user).model_dump(mode="json")


@router.get("/{user_id}/profile")
async def get_profile(user_id: str, db: AsyncSession = Depends(get_db)):
    match parse_user_id(user_id):
        case Err() as failure:
            return envelope_response(from_result(failure))
        case Ok(uid):
            result = await user_service.get_user_profile(db, uid)
            return envelope_response(from_result(result.map(_profile)))


@router.patch("/{user_id}/profile")
async def update_profile(
    user_id: str,
    payload: Any = Body(default=None),
    db: AsyncSession = Depends(get_db),
):
    uid = parse_user_id(user_id)
    if uid.is_err():
        return render(uid)
    form = parse_form(UpdateProfileIn, payload)
    if form.is_err():
        return render(form)
    changes = form.unwrap().model_dump(exclude_unset=True)
    result = await user_service.update_user_profile(db, uid.unwrap(), changes)
    return render(result.map(_profile), "Profile updated")


@router.post("/{user_id}/password")
async def change_password(
    user_id: str,
    payload: Any = Body(default=None),
    db: AsyncSession = Depends(get_db),
):
    uid = parse_user_id(user_id)
    if uid.is_err():
        return render(uid)
    form = parse_form(ChangePasswordIn, payload)
    if form.is_err():
        return render(form)
    data = form.unwrap()
    return render(
        await user_service.change_password(db, uid.unwrap(), data.current_password, data.new_password)
    )
