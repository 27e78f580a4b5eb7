"""
Branch model.
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from ptstudio.models.base import BaseModel


class Branch(BaseModel):
    """A studio location. Members, trainers and programs belong to branches."""

    __tablename__ = "branches"

    name: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Branch(id={self.id}, name='{self.name}')>"
