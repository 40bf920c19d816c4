"""Read models handed back to the request layer."""

from datetime import datetime
from typing import Optional, Union

from sqlmodel import SQLModel

from models import Gender, Name, SessionStatus, VoteType


class NameRead(SQLModel):
    id: int
    text: str
    gender: Gender
    popularity_score: int
    origin: Optional[str] = None

    @classmethod
    def from_name(cls, name: Name) -> "NameRead":
        return cls(
            id=name.id,
            text=name.text,
            gender=name.gender,
            popularity_score=name.popularity_score,
            origin=name.origin,
        )


class SessionRead(SQLModel):
    id: str
    initiator_id: str
    partner_id: Optional[str] = None
    target_gender: Gender
    join_code: str
    partner_link: str
    status: SessionStatus
    created_at: datetime
    linked_at: Optional[datetime] = None
    is_initiator: bool
    initiator_display_name: Optional[str] = None
    partner_display_name: Optional[str] = None


class VoteRead(SQLModel):
    id: int
    name_id: int
    name_text: str
    vote_type: VoteType
    voted_at: datetime


class MatchRead(SQLModel):
    name_id: int
    name_text: str
    gender: Gender
    origin: Optional[str] = None
    popularity_score: int
    matched_at: datetime

    @classmethod
    def from_name(cls, name: Union[Name, NameRead], matched_at: datetime) -> "MatchRead":
        return cls(
            name_id=name.id,
            name_text=name.text,
            gender=name.gender,
            origin=name.origin,
            popularity_score=name.popularity_score,
            matched_at=matched_at,
        )


class ConflictRead(SQLModel):
    name_id: int
    name_text: str
    gender: Gender
    origin: Optional[str] = None
    popularity_score: int
    # True: I liked it, partner disliked. False: the other way round.
    i_liked_it: bool
    # when the second of the two votes came in
    conflicted_at: datetime


class VoteResult(SQLModel):
    vote_id: int
    is_match: bool = False
    match: Optional[MatchRead] = None


class VoteStats(SQLModel):
    total_votes: int = 0
    like_count: int = 0
    dislike_count: int = 0
    match_count: int = 0
    names_remaining: int = 0
