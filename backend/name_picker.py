import logging
import random
from typing import Callable, Optional

from sqlmodel import func, select
from sqlmodel.ext.asyncio.session import AsyncSession

from models import Name, Vote, VotingSession
from queries import filter_by_gender, find_active_session
from schemas import NameRead

logger = logging.getLogger(__name__)


def weighted_offset(count: int, r: float) -> int:
    """
    Index into a popularity-descending list of `count` names.

    Squaring r skews draws toward the front: half of all picks land in the
    most popular quarter, but every position stays reachable.
    """
    return min(int(count * r * r), count - 1)


class NamePicker:
    def __init__(self, session: AsyncSession, rng: Callable[[], float] = random.random):
        self.session = session
        self.rng = rng

    async def get_next_unvoted_name(self, user_id: str) -> Optional[NameRead]:
        voting_session = await find_active_session(self.session, user_id)
        if voting_session is None:
            return None

        voted = select(Vote.name_id).where(
            Vote.user_id == user_id,
            Vote.session_id == voting_session.id,
        )
        candidates = filter_by_gender(select(Name), voting_session.target_gender).where(
            Name.id.not_in(voted)
        )

        count_statement = select(func.count()).select_from(candidates.subquery())
        count = (await self.session.exec(count_statement)).one()
        if count == 0:
            return None

        offset = weighted_offset(count, self.rng())
        statement = (
            candidates.order_by(Name.popularity_score.desc(), Name.id)
            .offset(offset)
            .limit(1)
        )
        name = (await self.session.exec(statement)).first()
        if name is None:
            return None

        logger.debug("Picked %s for %s (offset %d of %d)", name.text, user_id, offset, count)
        return NameRead.from_name(name)

    async def get_name_count_for_session(self, session_id: str) -> int:
        voting_session = await self.session.get(VotingSession, session_id)
        if voting_session is None:
            return 0
        return await count_candidate_names(self.session, voting_session)


async def count_candidate_names(session: AsyncSession, voting_session: VotingSession) -> int:
    """Names passing the session's gender filter, regardless of who voted."""
    statement = filter_by_gender(select(func.count(Name.id)), voting_session.target_gender)
    return (await session.exec(statement)).one()
