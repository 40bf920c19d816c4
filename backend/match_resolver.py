"""
Matches and conflicts, derived at read time from the two participants' votes.

Nothing here is stored: a match is a pair of Like votes on the same name in
the same session, a conflict is a Like paired with a Dislike. Both come out of
a self-join on the vote table scoped to one session.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import and_, case
from sqlalchemy.orm import aliased
from sqlmodel import func, select
from sqlmodel.ext.asyncio.session import AsyncSession

from errors import NoActiveSessionError, NotADislikeError, VoteNotFoundError
from models import Name, Vote, VoteType, VotingSession
from queries import find_active_session
from schemas import ConflictRead, MatchRead

logger = logging.getLogger(__name__)


def _paired_votes(voting_session: VotingSession, user_id: str, partner_id: str):
    """(mine, theirs) aliases and the join condition pairing them by name."""
    mine = aliased(Vote)
    theirs = aliased(Vote)
    on_same_name = and_(
        theirs.name_id == mine.name_id,
        theirs.session_id == mine.session_id,
        theirs.user_id == partner_id,
    )
    scope = and_(mine.user_id == user_id, mine.session_id == voting_session.id)
    return mine, theirs, on_same_name, scope


def _later(mine, theirs):
    return case((mine.voted_at > theirs.voted_at, mine.voted_at), else_=theirs.voted_at)


async def count_matches(
    session: AsyncSession, voting_session: VotingSession, user_id: str
) -> int:
    partner_id = voting_session.partner_of(user_id)
    if partner_id is None:
        return 0

    mine, theirs, on_same_name, scope = _paired_votes(voting_session, user_id, partner_id)
    statement = (
        select(func.count(mine.id))
        .select_from(mine)
        .join(theirs, on_same_name)
        .where(scope, mine.vote_type == VoteType.like, theirs.vote_type == VoteType.like)
    )
    return (await session.exec(statement)).one()


class MatchResolver:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def _session_and_partner(self, user_id: str) -> Tuple[Optional[VotingSession], Optional[str]]:
        voting_session = await find_active_session(self.session, user_id)
        if voting_session is None:
            return None, None
        return voting_session, voting_session.partner_of(user_id)

    async def get_matches(self, user_id: str) -> List[MatchRead]:
        voting_session, partner_id = await self._session_and_partner(user_id)
        if partner_id is None:
            return []

        mine, theirs, on_same_name, scope = _paired_votes(voting_session, user_id, partner_id)
        matched_at = _later(mine, theirs)
        statement = (
            select(Name, matched_at)
            .join(mine, mine.name_id == Name.id)
            .join(theirs, on_same_name)
            .where(scope, mine.vote_type == VoteType.like, theirs.vote_type == VoteType.like)
            .order_by(matched_at.desc(), Name.id)
        )
        rows = (await self.session.exec(statement)).all()
        return [MatchRead.from_name(name, when) for name, when in rows]

    async def get_match_count(self, user_id: str) -> int:
        voting_session = await find_active_session(self.session, user_id)
        if voting_session is None:
            return 0
        return await count_matches(self.session, voting_session, user_id)

    async def get_conflicts(self, user_id: str) -> List[ConflictRead]:
        voting_session, partner_id = await self._session_and_partner(user_id)
        if partner_id is None:
            return []

        mine, theirs, on_same_name, scope = _paired_votes(voting_session, user_id, partner_id)
        conflicted_at = _later(mine, theirs)
        statement = (
            select(Name, mine.vote_type, conflicted_at)
            .join(mine, mine.name_id == Name.id)
            .join(theirs, on_same_name)
            .where(scope, mine.vote_type != theirs.vote_type)
            .order_by(conflicted_at.desc(), Name.id)
        )
        rows = (await self.session.exec(statement)).all()
        return [
            ConflictRead(
                name_id=name.id,
                name_text=name.text,
                gender=name.gender,
                origin=name.origin,
                popularity_score=name.popularity_score,
                i_liked_it=my_vote == VoteType.like,
                conflicted_at=when,
            )
            for name, my_vote, when in rows
        ]

    async def clear_dislike(self, user_id: str, name_id: int) -> bool:
        """Delete the user's dislike so the name comes back into their pool."""
        voting_session = await find_active_session(self.session, user_id)
        if voting_session is None:
            raise NoActiveSessionError("You must have an active session.")

        statement = select(Vote).where(
            Vote.user_id == user_id,
            Vote.name_id == name_id,
            Vote.session_id == voting_session.id,
        )
        vote = (await self.session.exec(statement)).first()
        if vote is None:
            raise VoteNotFoundError()
        if vote.vote_type != VoteType.dislike:
            raise NotADislikeError("Can only clear a dislike vote.")

        await self.session.delete(vote)
        await self.session.commit()

        logger.info("User %s cleared dislike on name %s in session %s", user_id, name_id, voting_session.id)
        return True
