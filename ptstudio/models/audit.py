"""
AuditLog model for tracking user actions.
"""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, ForeignKey, String, Text, func
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ptstudio.models.base import Base

if TYPE_CHECKING:
    from ptstudio.models.user import User


class AuditAction(str, Enum):
    """Types of auditable actions."""
    CREATE = "생성"
    UPDATE = "수정"
    DELETE = "삭제"


class AuditEntity(str, Enum):
    """Kinds of entity an action applies to."""
    PROGRAM = "프로그램"
    TRAINER = "강사"
    USER = "사용자"
    PRESET = "프리셋"
    BRANCH = "지점"
    MEMBER = "회원"


class AuditLog(Base):
    """
    Append-only record of a data change.

    branch_id scopes the entry for branch managers.
    """

    __tablename__ = "audit_logs"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    user_name: Mapped[str] = mapped_column(String(100), nullable=False)
    action: Mapped[AuditAction] = mapped_column(
        SQLAlchemyEnum(
            AuditAction,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
        index=True,
    )
    entity_type: Mapped[AuditEntity] = mapped_column(
        SQLAlchemyEnum(
            AuditEntity,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
    )
    entity_name: Mapped[str] = mapped_column(String(200), nullable=False)
    details: Mapped[str] = mapped_column(Text, nullable=False, default="")
    branch_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("branches.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True,
    )

    user: Mapped[Optional["User"]] = relationship(
        "User",
        back_populates="audit_logs",
    )

    def __repr__(self) -> str:
        return f"<AuditLog(id={self.id}, action={self.action}, entity={self.entity_type})>"
