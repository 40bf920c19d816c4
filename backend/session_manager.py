"""
Session pairing: creating a session, handing out its join code and partner
link, and linking the second participant in.

The "one open session per user" rule is a check-then-act sequence without
locking. Two concurrent requests from the same user can both pass the check;
the unique indexes on join_code and partner_link are the only hard guards,
and a collision on either is retried with freshly generated values.
"""

import logging
import secrets
from typing import Callable, Optional
from uuid import uuid4

from sqlalchemy.exc import IntegrityError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from config import (
    JOIN_CODE_ALPHABET,
    JOIN_CODE_LENGTH,
    JOIN_CODE_MAX_ATTEMPTS,
    PARTNER_LINK_LENGTH,
)
from errors import (
    AlreadyPartneredError,
    ConflictError,
    NotFoundError,
    SelfJoinError,
)
from models import Gender, SessionStatus, VotingSession, utcnow
from queries import find_open_session
from schemas import SessionRead
from users import DatabaseUserDirectory, UserDirectory, display_name_for

logger = logging.getLogger(__name__)


def generate_join_code() -> str:
    return "".join(secrets.choice(JOIN_CODE_ALPHABET) for _ in range(JOIN_CODE_LENGTH))


def generate_partner_link() -> str:
    return uuid4().hex[:PARTNER_LINK_LENGTH]


class SessionManager:
    def __init__(
        self,
        session: AsyncSession,
        directory: Optional[UserDirectory] = None,
        code_factory: Callable[[], str] = generate_join_code,
        link_factory: Callable[[], str] = generate_partner_link,
        max_attempts: int = JOIN_CODE_MAX_ATTEMPTS,
    ):
        self.session = session
        self.directory = directory or DatabaseUserDirectory(session)
        self.code_factory = code_factory
        self.link_factory = link_factory
        self.max_attempts = max_attempts

    async def create_session(self, user_id: str, target_gender: Gender) -> SessionRead:
        if await find_open_session(self.session, user_id) is not None:
            raise ConflictError(
                "You already have an active session. "
                "Complete or leave it before creating a new one."
            )

        for attempt in range(1, self.max_attempts + 1):
            join_code = await self._unused_join_code()
            voting_session = VotingSession(
                initiator_id=user_id,
                target_gender=target_gender,
                join_code=join_code,
                partner_link=self.link_factory(),
                status=SessionStatus.waiting_for_partner,
                created_at=utcnow(),
            )
            self.session.add(voting_session)
            try:
                await self.session.commit()
            except IntegrityError:
                # another request took the code (or link) between check and insert
                await self.session.rollback()
                logger.debug("Join code %s collided on insert (attempt %d)", join_code, attempt)
                continue

            logger.info(
                "Session %s created by %s (target=%s, code=%s)",
                voting_session.id, user_id, target_gender.value, join_code,
            )
            return await self._to_read(voting_session, user_id)

        raise RuntimeError(f"Could not allocate a unique join code after {self.max_attempts} attempts")

    async def join_by_code(self, user_id: str, join_code: str) -> SessionRead:
        statement = select(VotingSession).where(VotingSession.join_code == join_code.strip().upper())
        voting_session = (await self.session.exec(statement)).first()
        if voting_session is None:
            raise NotFoundError("Session not found. Please check the code and try again.")
        return await self._join(voting_session, user_id)

    async def join_by_link(self, user_id: str, partner_link: str) -> SessionRead:
        statement = select(VotingSession).where(VotingSession.partner_link == partner_link)
        voting_session = (await self.session.exec(statement)).first()
        if voting_session is None:
            raise NotFoundError("Session not found. The link may be invalid or expired.")
        return await self._join(voting_session, user_id)

    async def get_current_session(self, user_id: str) -> Optional[SessionRead]:
        voting_session = await find_open_session(self.session, user_id)
        if voting_session is None:
            return None
        return await self._to_read(voting_session, user_id)

    async def get_session_by_id(self, session_id: str, user_id: str) -> Optional[SessionRead]:
        # non-participants get None rather than an error, so ids don't leak
        voting_session = await self.session.get(VotingSession, session_id)
        if voting_session is None or not voting_session.has_participant(user_id):
            return None
        return await self._to_read(voting_session, user_id)

    async def complete_session(self, session_id: str) -> bool:
        """Lifecycle hook for whatever ends a session; nothing in here calls it."""
        voting_session = await self.session.get(VotingSession, session_id)
        if voting_session is None:
            return False
        if voting_session.status != SessionStatus.completed:
            voting_session.status = SessionStatus.completed
            self.session.add(voting_session)
            await self.session.commit()
            logger.info("Session %s completed", session_id)
        return True

    async def _join(self, voting_session: VotingSession, user_id: str) -> SessionRead:
        if voting_session.initiator_id == user_id:
            raise SelfJoinError()

        if voting_session.partner_id is not None:
            if voting_session.partner_id == user_id:
                return await self._to_read(voting_session, user_id)
            raise AlreadyPartneredError()

        if await find_open_session(self.session, user_id) is not None:
            raise ConflictError(
                "You already have an active session. "
                "Complete or leave it before joining a new one."
            )

        voting_session.partner_id = user_id
        voting_session.status = SessionStatus.active
        voting_session.linked_at = utcnow()
        self.session.add(voting_session)
        await self.session.commit()

        logger.info("User %s joined session %s", user_id, voting_session.id)
        return await self._to_read(voting_session, user_id)

    async def _unused_join_code(self) -> str:
        for _ in range(self.max_attempts):
            code = self.code_factory()
            statement = select(VotingSession.id).where(VotingSession.join_code == code)
            if (await self.session.exec(statement)).first() is None:
                return code
            logger.debug("Join code %s already taken, drawing another", code)
        raise RuntimeError(f"Could not allocate a unique join code after {self.max_attempts} attempts")

    async def _to_read(self, voting_session: VotingSession, current_user_id: str) -> SessionRead:
        initiator = await self.directory.find_user_by_id(voting_session.initiator_id)
        partner = None
        if voting_session.partner_id is not None:
            partner = await self.directory.find_user_by_id(voting_session.partner_id)

        return SessionRead(
            id=voting_session.id,
            initiator_id=voting_session.initiator_id,
            partner_id=voting_session.partner_id,
            target_gender=voting_session.target_gender,
            join_code=voting_session.join_code,
            partner_link=voting_session.partner_link,
            status=voting_session.status,
            created_at=voting_session.created_at,
            linked_at=voting_session.linked_at,
            is_initiator=voting_session.initiator_id == current_user_id,
            initiator_display_name=display_name_for(initiator),
            partner_display_name=display_name_for(partner),
        )
