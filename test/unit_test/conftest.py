"""Shared fixtures for unit tests.

Every test gets a fresh in-memory SQLite database with all MatLinks tables,
plus small factories for the rows most tests need.
"""

from __future__ import annotations

import itertools
from typing import AsyncGenerator, Optional

import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.pool import StaticPool

import matlinks.core.database.entities  # noqa: F401
from matlinks.core.database.entities.gyms import Gym, Location
from matlinks.core.database.entities.membership_plans import MembershipPlan
from matlinks.core.database.entities.profiles import Profile, SubscriptionStatus, UserRole

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def test_engine():
    """Create a test database engine with every table."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(name="session")
async def session_fixture(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a new session for each test."""
    async_session_maker = sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)

    async with async_session_maker() as session:  # type: ignore[attr-defined]
        yield session


_ids = itertools.count(1)


@pytest_asyncio.fixture
async def make_profile(session: AsyncSession):
    """Factory for profiles. Defaults to an active student."""

    async def _make(
        role: str = UserRole.STUDENT.value,
        email: Optional[str] = None,
        **fields,
    ) -> Profile:
        number = next(_ids)
        profile = Profile(
            id=fields.pop("id", f"user-{number}"),
            email=email or f"member{number}@example.com",
            full_name=fields.pop("full_name", f"Member {number}"),
            role=role,
            **fields,
        )
        session.add(profile)
        await session.commit()
        await session.refresh(profile)
        return profile

    return _make


@pytest_asyncio.fixture
async def gym(session: AsyncSession) -> Gym:
    gym = Gym(name="Main Academy")
    session.add(gym)
    await session.commit()
    await session.refresh(gym)
    return gym


@pytest_asyncio.fixture
async def location(session: AsyncSession, gym: Gym) -> Location:
    location = Location(gym_id=gym.id, name="Downtown", city="Springfield")
    session.add(location)
    await session.commit()
    await session.refresh(location)
    return location


@pytest_asyncio.fixture
async def plan(session: AsyncSession) -> MembershipPlan:
    """An active monthly plan bound to a Stripe price."""
    plan = MembershipPlan(name="Unlimited", price=15000, interval="month", stripe_price_id="price_unlimited")
    session.add(plan)
    await session.commit()
    await session.refresh(plan)
    return plan


@pytest_asyncio.fixture
async def admin(make_profile) -> Profile:
    return await make_profile(role=UserRole.ADMIN.value, full_name="Ada Admin")


@pytest_asyncio.fixture
async def member(make_profile, plan: MembershipPlan, location: Location) -> Profile:
    """A student with an active subscription on ``plan``."""
    return await make_profile(
        full_name="Sam Student",
        current_plan_id=plan.id,
        primary_location_id=location.id,
        subscription_status=SubscriptionStatus.ACTIVE.value,
        stripe_customer_id="cus_member",
        stripe_subscription_id="sub_member",
    )
