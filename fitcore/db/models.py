from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class MembershipType(str, Enum):
    BASIC = "basic"
    PRO = "pro"
    ELITE = "elite"


class BookingStatus(str, Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class Profile(BaseModel):
    # In the intended Supabase schema this is auth.users.id
    id: str
    full_name: str = ""
    email: str
    phone: Optional[str] = None
    membership_type: MembershipType = MembershipType.BASIC
    created_at: datetime
    updated_at: datetime


class Trainer(BaseModel):
    id: str
    name: str
    specialty: str
    experience: str
    bio: Optional[str] = None
    image_url: Optional[str] = None
    rating: float = 0
    created_at: datetime


class Program(BaseModel):
    id: str
    title: str
    description: str
    category: str
    duration: str
    level: str
    image_url: Optional[str] = None
    trainer_id: Optional[str] = None
    max_participants: int = 20  # Stored, never enforced
    created_at: datetime
    trainer: Optional[Trainer] = None  # Embedded via trainer:trainers(*)


class Booking(BaseModel):
    id: str
    user_id: str
    program_id: str
    booking_date: datetime
    status: BookingStatus
    created_at: datetime
    program: Optional[Program] = None  # Embedded via program:programs(*)


class ContactSubmission(BaseModel):
    # id, status and created_at are filled in by the database
    id: Optional[str] = None
    name: str
    email: str
    message: str
    status: str = "new"
    created_at: Optional[datetime] = None

    def insert_payload(self) -> dict[str, Any]:
        return self.model_dump(include={"name", "email", "message"})


class AuthUser(BaseModel):
    id: str
    email: Optional[str] = None
    user_metadata: dict[str, Any] = Field(default_factory=dict)


class AuthSession(BaseModel):
    access_token: str
    refresh_token: str
    expires_at: datetime
    user: AuthUser

    def expires_within(self, seconds: float, now: datetime | None = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return (self.expires_at - now).total_seconds() <= seconds
