"""
API Request/Response Models.

Pydantic models for API request validation and response serialization.
Response models read straight from ORM objects (``from_attributes``) and
never include password hashes or token material.
"""

from typing import Optional, List, Union, Literal
from datetime import datetime, date
from pydantic import BaseModel, ConfigDict, EmailStr, Field, computed_field

from database.models.account import AccountRole
from database.models.appointment import AppointmentStatus, AppointmentType
from utils.scheduling import Weekday


# ============================================================================
# Auth
# ============================================================================

class RegisterRequest(BaseModel):
    """Account registration request."""
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=72)
    role: Literal["client", "mentor"]
    phone: Optional[str] = Field(default=None, max_length=32)

    # Mentor attributes
    specialization: Optional[str] = Field(default=None, max_length=255)
    experience_years: Optional[int] = Field(default=None, ge=0, le=80)
    bio: Optional[str] = Field(default=None, max_length=5000)
    hourly_rate: Optional[float] = Field(default=None, ge=0)

    # Client attributes
    issues: Optional[List[str]] = None

    def profile(self) -> dict:
        return self.model_dump(
            include={"specialization", "experience_years", "bio", "hourly_rate", "issues"},
            exclude_none=True,
        )


class LoginRequest(BaseModel):
    """Login request."""
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)
    remember_me: bool = Field(default=False)


class UpdateProfileRequest(BaseModel):
    """Profile update. Omitted fields are left unchanged; role cannot be changed."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, max_length=32)
    specialization: Optional[str] = Field(default=None, max_length=255)
    experience_years: Optional[int] = Field(default=None, ge=0, le=80)
    bio: Optional[str] = Field(default=None, max_length=5000)
    hourly_rate: Optional[float] = Field(default=None, ge=0)
    issues: Optional[List[str]] = None

    def profile(self) -> dict:
        return self.model_dump(
            include={"specialization", "experience_years", "bio", "hourly_rate", "issues"},
            exclude_none=True,
        )


class ChangePasswordRequest(BaseModel):
    """Change password request."""
    current_password: str = Field(..., min_length=1, max_length=128)
    new_password: str = Field(..., min_length=8, max_length=72)
    confirm_password: str = Field(..., min_length=1, max_length=128)


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    """Second half of the recovery flow: authorization from verify-reset-token plus the new password."""
    reset_token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8, max_length=72)


class AccountResponse(BaseModel):
    """Public view of an account."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    role: AccountRole
    phone: Optional[str] = None
    specialization: Optional[str] = None
    experience_years: Optional[int] = None
    bio: Optional[str] = None
    hourly_rate: Optional[float] = None
    rating: Optional[float] = None
    issues: Optional[List[str]] = None
    created_at: datetime


class AuthResponse(BaseModel):
    """Session token plus the signed-in account."""
    token: str
    token_type: str = "bearer"
    account: AccountResponse


class ResetAuthorizationResponse(BaseModel):
    valid: bool = True
    reset_token: str


class MessageResponse(BaseModel):
    """Plain acknowledgement."""
    message: str


# ============================================================================
# Availability
# ============================================================================

class SlotRequest(BaseModel):
    """Weekly availability slot. Day is 0-6 (Monday=0) or a weekday name."""
    day_of_week: Union[int, str]
    start_time: str = Field(..., description="HH:MM, 24-hour")
    end_time: str = Field(..., description="HH:MM, 24-hour")


class SlotResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    mentor_id: int
    day_of_week: int
    start_time: str
    end_time: str

    @computed_field
    @property
    def day_name(self) -> str:
        return Weekday(self.day_of_week).label


# ============================================================================
# Appointments
# ============================================================================

class AppointmentRequest(BaseModel):
    """Booking request."""
    mentor_id: int
    date: str = Field(..., description="YYYY-MM-DD")
    start_time: str = Field(..., description="HH:MM, 24-hour")
    end_time: str = Field(..., description="HH:MM, 24-hour")
    notes: Optional[str] = Field(default=None, max_length=5000)
    appointment_type: AppointmentType = AppointmentType.CHAT
    amount: float = Field(default=0, ge=0)


class StatusUpdateRequest(BaseModel):
    status: str = Field(..., description="pending, confirmed, completed or cancelled")


class RescheduleRequest(BaseModel):
    date: str = Field(..., description="YYYY-MM-DD")
    start_time: str
    end_time: str


class AppointmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    client_id: int
    mentor_id: int
    date: date
    start_time: str
    end_time: str
    status: AppointmentStatus
    appointment_type: AppointmentType
    is_paid: bool
    amount: float
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


# ============================================================================
# Conversations
# ============================================================================

class ConversationRequest(BaseModel):
    """Open a chat with ``counterpart_id``, or with the other side of ``appointment_id``."""
    counterpart_id: Optional[int] = None
    appointment_id: Optional[int] = None


class ConversationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    client_id: int
    mentor_id: int
    appointment_id: Optional[int] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class ChatMessageRequest(BaseModel):
    content: str = Field(..., max_length=10000)


class ChatMessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    conversation_id: int
    sender_id: int
    content: str
    created_at: datetime


# ============================================================================
# Health
# ============================================================================

class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str
    database: bool
    timestamp: datetime
