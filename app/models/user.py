from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class UserRole(str, Enum):
    PARTICIPANT = "participant"
    QUIZMASTER = "quizmaster"
    ADMIN = "admin"


class RegistrationStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class User(BaseModel):
    id: str = Field(..., alias="_id")
    email: str
    name: str

    role: UserRole = UserRole.PARTICIPANT
    registration_status: RegistrationStatus = RegistrationStatus.PENDING

    created_at: datetime
    is_active: bool = True

    class Config:
        populate_by_name = True


class UserCreate(BaseModel):
    """Gegevens om een gebruiker aan te maken (minimale registratie)"""

    id: str
    email: str
    name: str
    role: UserRole = UserRole.PARTICIPANT
    registration_status: RegistrationStatus = RegistrationStatus.PENDING


class UserResponse(BaseModel):
    id: str
    email: str
    name: str
    role: UserRole
    registration_status: RegistrationStatus
    created_at: datetime
