"""Device Registration Domain Entity

Devices an account is signed in from. Active rows occupy a device slot.
"""

from datetime import datetime
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import Boolean, String, UniqueConstraint
from src.domain.base import BaseModel, Identifier


class DeviceRegistration(BaseModel, table=True):
    """
    Device Registration - One device slot of an account

    Domain Rules:
    - (user_id, device_id) is unique; re-login reuses the row
    - Active rows per user never exceed the configured device limit
    - Deactivation frees the slot; rows are kept for history
    """

    __tablename__ = "device_registrations"
    __table_args__ = (
        UniqueConstraint('user_id', 'device_id', name='uq_device_registration_user_device'),
        Index('ix_device_registrations_user_active', 'user_id', 'active'),
    )

    id: int = Field(
        sa_column=Column(Identifier, primary_key=True, autoincrement=True),
        description="Unique registration identifier (auto-increment)"
    )

    user_id: str = Field(
        description="Account id"
    )

    device_id: str = Field(
        sa_column=Column(String(128), nullable=False),
        description="Client-generated device fingerprint"
    )

    device_name: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
        description="Display name (e.g. 'macOS - Firefox')"
    )

    device_type: Optional[str] = Field(
        default=None,
        sa_column=Column(String(32), nullable=True),
        description="desktop, mobile or tablet"
    )

    browser: Optional[str] = Field(
        default=None,
        sa_column=Column(String(64), nullable=True),
    )

    os: Optional[str] = Field(
        default=None,
        sa_column=Column(String(64), nullable=True),
    )

    active: bool = Field(
        default=True,
        sa_column=Column(Boolean, nullable=False, default=True),
        description="Whether the registration occupies a slot"
    )

    registered_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="First registration timestamp"
    )

    last_login_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Most recent login from this device"
    )
