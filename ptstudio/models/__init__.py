"""
Database models for PT Studio.

All models are exported here for convenient imports:
    from ptstudio.models import MemberProgram, TrainingSession, etc.
"""

from ptstudio.models.audit import AuditAction, AuditEntity, AuditLog
from ptstudio.models.base import Base, BaseModel, TimestampMixin
from ptstudio.models.branch import Branch
from ptstudio.models.member import Member
from ptstudio.models.preset import ProgramPreset
from ptstudio.models.program import MemberProgram, ProgramStatus, RegistrationType
from ptstudio.models.rate import FixedRate, PercentageRate, Rate, RateType, make_rate
from ptstudio.models.trainer import Trainer, TrainerBranch
from ptstudio.models.training_session import SessionStatus, TrainingSession
from ptstudio.models.user import User, UserRole

__all__ = [
    # Base
    "Base",
    "BaseModel",
    "TimestampMixin",
    # Studio
    "Branch",
    "Member",
    # Trainer
    "Trainer",
    "TrainerBranch",
    # Rate
    "Rate",
    "RateType",
    "PercentageRate",
    "FixedRate",
    "make_rate",
    # Program
    "MemberProgram",
    "ProgramStatus",
    "RegistrationType",
    "ProgramPreset",
    # Session
    "TrainingSession",
    "SessionStatus",
    # User
    "User",
    "UserRole",
    # Audit
    "AuditLog",
    "AuditAction",
    "AuditEntity",
]
