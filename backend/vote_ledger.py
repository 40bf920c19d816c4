"""
Per-user votes inside a session.

One row per (user, name, session): voting again on a name overwrites the
vote type and timestamp of the existing row, no history is kept.

Match detection reads the partner's committed vote after this one is
written. If both partners like the same name at nearly the same moment each
check can miss the other's write, and neither response reports the match;
get_matches picks it up on the next poll.
"""

import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from errors import NameNotFoundError, NoActiveSessionError
from match_resolver import count_matches
from models import Name, Vote, VoteType, utcnow
from name_picker import count_candidate_names
from queries import find_active_session
from schemas import MatchRead, NameRead, VoteRead, VoteResult, VoteStats

logger = logging.getLogger(__name__)


class VoteLedger:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def submit_vote(self, user_id: str, name_id: int, vote_type: VoteType) -> VoteResult:
        voting_session = await find_active_session(self.session, user_id)
        if voting_session is None:
            raise NoActiveSessionError()

        name = await self.session.get(Name, name_id)
        if name is None:
            raise NameNotFoundError()

        # plain values up front: a rollback in _upsert expires loaded rows
        session_id = voting_session.id
        partner_id = voting_session.partner_of(user_id)
        name_read = NameRead.from_name(name)

        vote = await self._upsert(session_id, user_id, name_id, vote_type)
        result = VoteResult(vote_id=vote.id, is_match=False)

        if vote_type == VoteType.like and await self._partner_has_liked(session_id, partner_id, name_id):
            result.is_match = True
            # this vote is the later of the pair, so its timestamp is the match time
            result.match = MatchRead.from_name(name_read, matched_at=vote.voted_at)
            logger.info("Match on %s in session %s", name_read.text, session_id)

        return result

    async def get_user_votes(self, user_id: str) -> List[VoteRead]:
        voting_session = await find_active_session(self.session, user_id)
        if voting_session is None:
            return []

        statement = (
            select(Vote, Name.text)
            .join(Name, Vote.name_id == Name.id)
            .where(Vote.user_id == user_id, Vote.session_id == voting_session.id)
            .order_by(Vote.voted_at.desc(), Vote.id.desc())
        )
        rows = (await self.session.exec(statement)).all()
        return [
            VoteRead(
                id=vote.id,
                name_id=vote.name_id,
                name_text=text,
                vote_type=vote.vote_type,
                voted_at=vote.voted_at,
            )
            for vote, text in rows
        ]

    async def get_vote_stats(self, user_id: str) -> VoteStats:
        voting_session = await find_active_session(self.session, user_id)
        if voting_session is None:
            return VoteStats()

        statement = select(Vote.vote_type).where(
            Vote.user_id == user_id,
            Vote.session_id == voting_session.id,
        )
        vote_types = (await self.session.exec(statement)).all()

        total = len(vote_types)
        likes = sum(1 for v in vote_types if v == VoteType.like)
        total_names = await count_candidate_names(self.session, voting_session)

        return VoteStats(
            total_votes=total,
            like_count=likes,
            dislike_count=total - likes,
            match_count=await count_matches(self.session, voting_session, user_id),
            names_remaining=max(0, total_names - total),
        )

    async def _find_vote(self, session_id: str, user_id: str, name_id: int) -> Optional[Vote]:
        statement = select(Vote).where(
            Vote.user_id == user_id,
            Vote.name_id == name_id,
            Vote.session_id == session_id,
        )
        return (await self.session.exec(statement)).first()

    async def _upsert(self, session_id: str, user_id: str, name_id: int, vote_type: VoteType) -> Vote:
        vote = await self._find_vote(session_id, user_id, name_id)
        if vote is None:
            vote = Vote(
                user_id=user_id,
                name_id=name_id,
                session_id=session_id,
                vote_type=vote_type,
                voted_at=utcnow(),
            )
        else:
            vote.vote_type = vote_type
            vote.voted_at = utcnow()

        self.session.add(vote)
        try:
            await self.session.commit()
        except IntegrityError:
            # a concurrent request from the same user inserted the row first
            await self.session.rollback()
            vote = await self._find_vote(session_id, user_id, name_id)
            if vote is None:
                raise
            vote.vote_type = vote_type
            vote.voted_at = utcnow()
            self.session.add(vote)
            await self.session.commit()

        return vote

    async def _partner_has_liked(self, session_id: str, partner_id: Optional[str], name_id: int) -> bool:
        if partner_id is None:
            return False

        statement = select(Vote.id).where(
            Vote.user_id == partner_id,
            Vote.name_id == name_id,
            Vote.session_id == session_id,
            Vote.vote_type == VoteType.like,
        )
        return (await self.session.exec(statement)).first() is not None
