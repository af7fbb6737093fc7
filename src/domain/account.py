"""Account Domain Entity

Mirror of the identity provider's account. The entitlement service only
reads it (role lookups, admin fan-out).
"""

from datetime import datetime
from enum import Enum
from sqlmodel import Field, Column
from sqlalchemy import String
from src.domain.base import BaseModel


class AccountRole(str, Enum):
    """Account roles issued by the identity provider"""
    ADMIN = "admin"
    SPECTATOR = "spectator"


class Account(BaseModel, table=True):
    """
    Account - Identity owned elsewhere, read here

    Domain Rules:
    - id is the identity provider's user id
    - role decides admin bypasses at the caller level
    """

    __tablename__ = "accounts"

    id: str = Field(
        sa_column=Column(String(64), primary_key=True),
        description="Identity provider user id"
    )

    email: str = Field(
        sa_column=Column(String(255), nullable=False, unique=True),
        description="Account email"
    )

    role: AccountRole = Field(
        default=AccountRole.SPECTATOR,
        description="Account role (admin, spectator)"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Account creation timestamp"
    )
