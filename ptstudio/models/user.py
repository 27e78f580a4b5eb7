"""
User model for authentication and role management.
"""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, String
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ptstudio.models.base import BaseModel

if TYPE_CHECKING:
    from ptstudio.models.audit import AuditLog


class UserRole(str, Enum):
    """User roles for access control."""
    ADMIN = "admin"
    MANAGER = "manager"
    TRAINER = "trainer"
    UNASSIGNED = "unassigned"


class User(BaseModel):
    """
    User account model.

    - admin: Full access to every branch
    - manager: Manages the branches in assigned_branch_ids
    - trainer: Linked to a trainer profile, sees own schedule and members
    - unassigned: Signed up, waiting for admin approval
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    role: Mapped[UserRole] = mapped_column(
        SQLAlchemyEnum(
            UserRole,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=UserRole.UNASSIGNED,
        nullable=False,
    )
    assigned_branch_ids: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    trainer_profile_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("trainers.id", ondelete="SET NULL"),
        nullable=True,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    last_active_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    audit_logs: Mapped[List["AuditLog"]] = relationship(
        "AuditLog",
        back_populates="user",
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role={self.role})>"
