"""
Record-oriented store over async SQLAlchemy.

Every call is its own unit of work: it commits on success, or rolls back
and signals failure with None / False. Callers must treat those signals as
"the operation did not happen". After a failed call the session has been
rolled back and loaded objects are expired; use Repository.reload before
reading them again.
"""

import logging
from typing import Any, Generic, List, Optional, Type, TypeVar

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ptstudio.models import (
    AuditLog,
    Base,
    Branch,
    Member,
    MemberProgram,
    ProgramPreset,
    SessionStatus,
    Trainer,
    TrainingSession,
    User,
)
from ptstudio.schemas.patches import Patch

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)


class Repository(Generic[ModelT]):
    """list / get / create / update / delete for one model."""

    def __init__(self, db: AsyncSession, model: Type[ModelT]):
        self.db = db
        self.model = model

    @property
    def name(self) -> str:
        return self.model.__tablename__

    async def list(self, *criteria: Any) -> List[ModelT]:
        query = select(self.model).where(*criteria).order_by(self.model.id)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get(self, entity_id: Optional[int]) -> Optional[ModelT]:
        if entity_id is None:
            return None
        return await self.db.get(self.model, entity_id)

    async def create(self, **fields: Any) -> Optional[ModelT]:
        entity = self.model(**fields)
        self.db.add(entity)
        if not await self._commit(f"create {self.name}"):
            return None
        await self.db.refresh(entity)
        return entity

    async def update(self, entity_id: int, patch: Patch) -> Optional[ModelT]:
        entity = await self.get(entity_id)
        if entity is None:
            logger.warning(f"Update of missing {self.name} id={entity_id}")
            return None
        self._apply(entity, patch.changes())
        if not await self._commit(f"update {self.name} id={entity_id}"):
            return None
        await self.db.refresh(entity)
        return entity

    async def delete(self, entity_id: int) -> bool:
        entity = await self.get(entity_id)
        if entity is None:
            logger.warning(f"Delete of missing {self.name} id={entity_id}")
            return False
        await self.db.delete(entity)
        return await self._commit(f"delete {self.name} id={entity_id}")

    async def reload(self, entity: ModelT) -> ModelT:
        await self.db.refresh(entity)
        return entity

    def _apply(self, entity: ModelT, changes: dict) -> None:
        for field, value in changes.items():
            setattr(entity, field, value)

    async def _commit(self, description: str) -> bool:
        try:
            await self.db.commit()
        except SQLAlchemyError:
            logger.exception(f"Store failure: {description}")
            await self.db.rollback()
            return False
        logger.debug(f"Store: {description}")
        return True


class TrainerRepository(Repository[Trainer]):
    """Trainers, with branch assignments written through set_branch_rates."""

    async def create(self, **fields: Any) -> Optional[Trainer]:
        branch_rates = fields.pop("branch_rates", None) or {}
        trainer = Trainer(**fields)
        trainer.set_branch_rates(branch_rates)
        self.db.add(trainer)
        if not await self._commit(f"create {self.name}"):
            return None
        await self.db.refresh(trainer)
        return trainer

    def _apply(self, entity: Trainer, changes: dict) -> None:
        branch_rates = changes.pop("branch_rates", None)
        super()._apply(entity, changes)
        if branch_rates is not None:
            entity.set_branch_rates(branch_rates)


class ProgramRepository(Repository[MemberProgram]):
    """Programs. Deleting a program removes its sessions."""

    async def delete(self, entity_id: int) -> bool:
        program = await self.get(entity_id)
        if program is None:
            logger.warning(f"Delete of missing {self.name} id={entity_id}")
            return False
        await self.db.execute(
            delete(TrainingSession).where(TrainingSession.program_id == entity_id)
        )
        await self.db.delete(program)
        return await self._commit(f"delete {self.name} id={entity_id} with sessions")


class SessionRepository(Repository[TrainingSession]):
    """Training sessions."""

    async def for_program(self, program_id: int) -> List[TrainingSession]:
        return await self.list(TrainingSession.program_id == program_id)

    async def for_trainer(self, trainer_id: int) -> List[TrainingSession]:
        return await self.list(TrainingSession.trainer_id == trainer_id)

    async def count_completed(self, program_id: int) -> int:
        """Completed session rows of a program, one per attending member record."""
        count = await self.db.scalar(
            select(func.count(TrainingSession.id))
            .where(
                TrainingSession.program_id == program_id,
                TrainingSession.status == SessionStatus.COMPLETED,
            )
        )
        return count or 0

    async def used_numbers(self, program_id: int) -> List[int]:
        result = await self.db.execute(
            select(TrainingSession.session_number).distinct()
            .where(TrainingSession.program_id == program_id)
        )
        return sorted(row[0] for row in result.all())


class Store:
    """
    The persistence collaborator: one repository per entity, sharing
    a database session.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.branches = Repository(db, Branch)
        self.members = Repository(db, Member)
        self.trainers = TrainerRepository(db, Trainer)
        self.programs = ProgramRepository(db, MemberProgram)
        self.sessions = SessionRepository(db, TrainingSession)
        self.presets = Repository(db, ProgramPreset)
        self.users = Repository(db, User)
        self.audit_logs = Repository(db, AuditLog)
