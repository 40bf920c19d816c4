from datetime import datetime, timezone
from typing import Optional, List
from uuid import uuid4
from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field, Relationship
from enum import Enum


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Gender(str, Enum):
    male = "male"
    female = "female"
    neutral = "neutral"


class SessionStatus(str, Enum):
    waiting_for_partner = "waiting_for_partner"
    active = "active"
    completed = "completed"


class VoteType(str, Enum):
    like = "like"
    dislike = "dislike"


class User(SQLModel, table=True):
    id: str = Field(primary_key=True)
    email: str = Field(index=True)
    display_name: Optional[str] = None


class Name(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    text: str = Field(index=True, max_length=100)
    gender: Gender = Field(index=True)
    popularity_score: int = Field(default=0, index=True)
    origin: Optional[str] = Field(default=None, max_length=100)

    votes: List["Vote"] = Relationship(back_populates="name_obj", passive_deletes="all")


class VotingSession(SQLModel, table=True):
    """Two users voting together against one gender filter."""

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    initiator_id: str = Field(index=True)
    partner_id: Optional[str] = Field(default=None, index=True)
    target_gender: Gender
    join_code: str = Field(unique=True, index=True, max_length=6)
    partner_link: str = Field(unique=True, index=True, max_length=50)
    status: SessionStatus = Field(default=SessionStatus.waiting_for_partner, index=True)
    created_at: datetime = Field(default_factory=utcnow)
    linked_at: Optional[datetime] = None

    votes: List["Vote"] = Relationship(back_populates="session", passive_deletes="all")

    def has_participant(self, user_id: str) -> bool:
        return user_id in (self.initiator_id, self.partner_id)

    def partner_of(self, user_id: str) -> Optional[str]:
        if user_id == self.initiator_id:
            return self.partner_id
        if user_id == self.partner_id:
            return self.initiator_id
        return None


class Vote(SQLModel, table=True):
    # one live vote per user per name per session; re-votes update in place
    __table_args__ = (
        UniqueConstraint("user_id", "name_id", "session_id", name="uq_vote_user_name_session"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    name_id: int = Field(foreign_key="name.id", ondelete="CASCADE")
    session_id: str = Field(foreign_key="votingsession.id", ondelete="CASCADE", index=True)
    vote_type: VoteType
    voted_at: datetime = Field(default_factory=utcnow)

    name_obj: Name = Relationship(back_populates="votes")
    session: VotingSession = Relationship(back_populates="votes")
