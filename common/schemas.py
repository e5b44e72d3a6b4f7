"""Pydantic schemas shared across the services."""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from .models import BookingStatus, RoleEnum


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class Actor(BaseModel):
    """Authenticated caller as seen by the booking workflow."""

    model_config = ConfigDict(frozen=True)

    actor_id: int
    actor_role: RoleEnum


class UserBase(BaseModel):
    name: str = Field(..., max_length=100)
    email: EmailStr
    role: RoleEnum = RoleEnum.STUDENT


class UserCreate(UserBase):
    password: str = Field(..., min_length=8)


class UserRead(UserBase):
    id: int
    created_at: datetime

    model_config = {"from_attributes": True}


class ResourceRead(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    is_active: bool

    model_config = {"from_attributes": True}


class BookingCreate(BaseModel):
    resource_id: int
    start_time: datetime
    end_time: datetime


class BookingTransition(BaseModel):
    status: BookingStatus

    @field_validator("status", mode="before")
    @classmethod
    def normalise_status(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value


class BookingRead(BaseModel):
    id: int
    resource_id: int
    requester_id: int
    approver_id: Optional[int] = None
    start_time: datetime
    end_time: datetime
    status: BookingStatus
    created_at: datetime

    model_config = {"from_attributes": True}


class Availability(BaseModel):
    resource_id: int
    available: bool
