"""
Poll: ordered options with vote counts plus the ids of users who already voted.
voter_ids is the idempotency guard for voting; each id appears at most once.
"""
from datetime import datetime

from pydantic import field_validator

from classpoll.models.types import DomainModel, TargetScoped, UtcDateTime


class PollOption(DomainModel):
    id: str
    label: str
    votes: int = 0


class Poll(TargetScoped):
    id: str
    title: str
    description: str | None = None
    options: tuple[PollOption, ...] = ()
    is_anonymous: bool = False
    created_at: UtcDateTime
    expires_at: UtcDateTime
    created_by_id: str
    voter_ids: tuple[str, ...] = ()

    @field_validator("voter_ids", mode="before")
    @classmethod
    def _unique_voters(cls, v):
        if v is None:
            return ()
        seen: list[str] = []
        for voter_id in v:
            if voter_id not in seen:
                seen.append(voter_id)
        return tuple(seen)

    @field_validator("options", mode="before")
    @classmethod
    def _none_is_empty(cls, v):
        return () if v is None else v

    def has_voted(self, user_id: str | None) -> bool:
        return bool(user_id) and user_id in self.voter_ids

    def option(self, option_id: str) -> PollOption | None:
        return next((o for o in self.options if o.id == option_id), None)

    @property
    def total_votes(self) -> int:
        return sum(o.votes for o in self.options)

    def is_open(self, now: datetime) -> bool:
        return self.expires_at > now
