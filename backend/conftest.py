from datetime import datetime
from typing import Optional

import pytest
from sqlmodel import SQLModel
from sqlmodel.pool import StaticPool

from database import build_engine, build_sessionmaker
from models import Gender, Name, SessionStatus, User, Vote, VoteType, VotingSession, utcnow

# Setup in-memory DB
# StaticPool keeps every checkout on the same connection, so the schema survives
TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest.fixture(name="engine")
async def engine_fixture():
    engine = build_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await engine.dispose()


@pytest.fixture(name="session")
async def session_fixture(engine):
    async with build_sessionmaker(engine)() as session:
        yield session


@pytest.fixture(name="users")
async def users_fixture(session):
    users = {
        "alice": User(id="alice", email="alice@example.com", display_name="Alice"),
        "bob": User(id="bob", email="bob@example.com"),
        "carol": User(id="carol", email="carol@example.com", display_name="Carol"),
    }
    session.add_all(users.values())
    await session.commit()
    return users


@pytest.fixture(name="catalog")
async def catalog_fixture(session):
    """Four names pass a female filter (Emma, Olivia, Sophia, Alex)."""
    names = {
        "Emma": Name(text="Emma", gender=Gender.female, popularity_score=90, origin="Germanic"),
        "Liam": Name(text="Liam", gender=Gender.male, popularity_score=95, origin="Irish"),
        "Alex": Name(text="Alex", gender=Gender.neutral, popularity_score=80),
        "Olivia": Name(text="Olivia", gender=Gender.female, popularity_score=85, origin="Latin"),
        "Sophia": Name(text="Sophia", gender=Gender.female, popularity_score=60, origin="Greek"),
        "Noah": Name(text="Noah", gender=Gender.male, popularity_score=70, origin="Hebrew"),
    }
    session.add_all(names.values())
    await session.commit()
    return names


async def make_session(
    session,
    initiator_id: str,
    partner_id: Optional[str] = None,
    target_gender: Gender = Gender.female,
    join_code: str = "ABC234",
    partner_link: str = "abcdef123456",
) -> VotingSession:
    voting_session = VotingSession(
        initiator_id=initiator_id,
        partner_id=partner_id,
        target_gender=target_gender,
        join_code=join_code,
        partner_link=partner_link,
        status=SessionStatus.active if partner_id else SessionStatus.waiting_for_partner,
        linked_at=utcnow() if partner_id else None,
    )
    session.add(voting_session)
    await session.commit()
    return voting_session


async def add_vote(
    session,
    voting_session: VotingSession,
    user_id: str,
    name: Name,
    vote_type: VoteType,
    voted_at: Optional[datetime] = None,
) -> Vote:
    vote = Vote(
        user_id=user_id,
        name_id=name.id,
        session_id=voting_session.id,
        vote_type=vote_type,
        voted_at=voted_at or utcnow(),
    )
    session.add(vote)
    await session.commit()
    return vote


@pytest.fixture(name="paired")
async def paired_fixture(session, users):
    """Alice and Bob, linked, looking at girls' names."""
    return await make_session(session, "alice", "bob", Gender.female)
