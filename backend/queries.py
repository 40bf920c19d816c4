"""Session lookups and the catalog gender filter, shared by the services."""

from typing import Optional

from sqlmodel import or_, select
from sqlmodel.ext.asyncio.session import AsyncSession

from models import Gender, Name, SessionStatus, VotingSession


def _participant(user_id: str):
    return or_(VotingSession.initiator_id == user_id, VotingSession.partner_id == user_id)


async def find_open_session(session: AsyncSession, user_id: str) -> Optional[VotingSession]:
    """The user's session that is not Completed, as initiator or partner."""
    statement = select(VotingSession).where(
        _participant(user_id),
        VotingSession.status != SessionStatus.completed,
    )
    return (await session.exec(statement)).first()


async def find_active_session(session: AsyncSession, user_id: str) -> Optional[VotingSession]:
    statement = select(VotingSession).where(
        _participant(user_id),
        VotingSession.status == SessionStatus.active,
    )
    return (await session.exec(statement)).first()


def filter_by_gender(statement, target_gender: Gender):
    # neutral names always qualify; a neutral target takes everything
    if target_gender == Gender.neutral:
        return statement
    return statement.where(or_(Name.gender == target_gender, Name.gender == Gender.neutral))
