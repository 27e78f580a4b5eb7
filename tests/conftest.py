"""
Pytest configuration and fixtures.
"""

import os
from datetime import date, datetime, time
from decimal import Decimal
from types import SimpleNamespace
from zoneinfo import ZoneInfo

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("TIMEZONE", "Asia/Seoul")

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from ptstudio.db.repository import Store
from ptstudio.models import (
    Base,
    FixedRate,
    PercentageRate,
    ProgramStatus,
    RegistrationType,
    SessionStatus,
    UserRole,
)
from ptstudio.services.scope import CallerContext

# Test database URL (use SQLite for tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

SEOUL = ZoneInfo("Asia/Seoul")


def seoul(year, month, day, hour=0, minute=0) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=SEOUL)


@pytest_asyncio.fixture
async def db_engine():
    """Create test database engine."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    """Create test database session."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session


@pytest_asyncio.fixture
async def store(db_session):
    return Store(db_session)


@pytest_asyncio.fixture
async def studio(store):
    """
    Two branches (강남, 홍대), two trainers and a 10-session program
    at 1,000,000 won for two 강남 members, taught by 김.

    김 is paid 40% at 강남. 이 is paid a fixed 30,000 at 강남 and 50% at 홍대.
    """
    gangnam = await store.branches.create(name="강남점")
    hongdae = await store.branches.create(name="홍대점")

    kim = await store.trainers.create(
        name="김코치",
        color="#ef4444",
        is_active=True,
        branch_rates={gangnam.id: PercentageRate(Decimal("0.4"))},
    )
    lee = await store.trainers.create(
        name="이코치",
        color="#3b82f6",
        is_active=True,
        branch_rates={
            gangnam.id: FixedRate(Decimal("30000")),
            hongdae.id: PercentageRate(Decimal("0.5")),
        },
    )

    minsu = await store.members.create(
        name="민수", contact="010-1111-2222", branch_id=gangnam.id, assigned_trainer_id=kim.id,
    )
    jiyoung = await store.members.create(
        name="지영", contact="010-3333-4444", branch_id=gangnam.id, assigned_trainer_id=lee.id,
    )
    hyejin = await store.members.create(
        name="혜진", contact="010-5555-6666", branch_id=hongdae.id, assigned_trainer_id=lee.id,
    )

    program = await store.programs.create(
        member_ids=[minsu.id, jiyoung.id],
        program_name="PT 10회",
        registration_type=RegistrationType.NEW,
        registration_date=date(2026, 3, 2),
        payment_date=date(2026, 3, 2),
        total_amount=Decimal("1000000"),
        total_sessions=10,
        unit_price=Decimal("100000"),
        completed_sessions=0,
        status=ProgramStatus.ACTIVE,
        trainer_ids=[kim.id],
        branch_id=gangnam.id,
        default_session_duration=50,
    )

    return SimpleNamespace(
        gangnam=gangnam,
        hongdae=hongdae,
        kim=kim,
        lee=lee,
        minsu=minsu,
        jiyoung=jiyoung,
        hyejin=hyejin,
        program=program,
        admin=CallerContext(role=UserRole.ADMIN, user_id=None, name="관리자"),
        manager=CallerContext(
            role=UserRole.MANAGER,
            name="강남 매니저",
            assigned_branch_ids=frozenset({gangnam.id}),
        ),
        hongdae_manager=CallerContext(
            role=UserRole.MANAGER,
            name="홍대 매니저",
            assigned_branch_ids=frozenset({hongdae.id}),
        ),
        kim_caller=CallerContext(
            role=UserRole.TRAINER,
            name="김코치",
            assigned_branch_ids=frozenset({gangnam.id}),
            trainer_profile_id=kim.id,
        ),
        lee_caller=CallerContext(
            role=UserRole.TRAINER,
            name="이코치",
            assigned_branch_ids=frozenset({gangnam.id, hongdae.id}),
            trainer_profile_id=lee.id,
        ),
    )


async def add_session(
    store,
    program,
    trainer,
    session_number=1,
    member_ids=None,
    day=date(2026, 3, 10),
    start=time(10, 0),
    status=SessionStatus.BOOKED,
    fee=Decimal("40000"),
    rate=None,
):
    """Insert a session row directly, bypassing booking rules."""
    rate = rate or PercentageRate(Decimal("0.4"))
    return await store.sessions.create(
        program_id=program.id,
        session_number=session_number,
        trainer_id=trainer.id,
        date=day,
        start_time=start,
        duration=50,
        status=status,
        attended_member_ids=member_ids or [program.member_ids[0]],
        trainer_fee=fee,
        rate_type=rate.type,
        rate_value=rate.value,
    )


@pytest.fixture
def frozen_now():
    """A 'now' well after the studio fixture's default session slot."""
    return seoul(2026, 3, 10, 12, 0)
