"""
Plateful Backend — Vote State Value Object
============================================

What:  Immutable snapshot of who voted which way on one restaurant.
Why:   Counts derived from the two sets can never disagree with them; the
       restaurant row's count columns are written from these accessors.
How:   apply_upvote / apply_downvote / apply_remove return a new VoteState.
       They hold all the voting rules and touch no storage.

Rules:
    upvote    already up → unchanged; down → moved to up; none → added to up
    downvote  symmetric
    remove    dropped from whichever set holds the user; absent → unchanged
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Optional, Tuple

from app.models.restaurant import VOTE_DOWN, VOTE_UP


@dataclass(frozen=True)
class VoteState:
    upvoters: FrozenSet[str] = field(default_factory=frozenset)
    downvoters: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self):
        overlap = self.upvoters & self.downvoters
        if overlap:
            raise ValueError(f"Users cannot both upvote and downvote: {sorted(overlap)}")

    @classmethod
    def from_votes(cls, votes: Iterable[Tuple[str, str]]) -> "VoteState":
        """Builds the state from (user_id, direction) pairs."""
        up, down = set(), set()
        for user_id, direction in votes:
            if direction == VOTE_UP:
                up.add(user_id)
            elif direction == VOTE_DOWN:
                down.add(user_id)
        return cls(upvoters=frozenset(up), downvoters=frozenset(down))

    @property
    def upvote_count(self) -> int:
        return len(self.upvoters)

    @property
    def downvote_count(self) -> int:
        return len(self.downvoters)

    @property
    def vote_count(self) -> int:
        """Net score used for popularity ranking."""
        return self.upvote_count - self.downvote_count

    def direction_of(self, user_id: str) -> Optional[str]:
        if user_id in self.upvoters:
            return VOTE_UP
        if user_id in self.downvoters:
            return VOTE_DOWN
        return None


def apply_upvote(state: VoteState, user_id: str) -> VoteState:
    if user_id in state.upvoters:
        return state
    return VoteState(
        upvoters=state.upvoters | {user_id},
        downvoters=state.downvoters - {user_id},
    )


def apply_downvote(state: VoteState, user_id: str) -> VoteState:
    if user_id in state.downvoters:
        return state
    return VoteState(
        upvoters=state.upvoters - {user_id},
        downvoters=state.downvoters | {user_id},
    )


def apply_remove(state: VoteState, user_id: str) -> VoteState:
    if state.direction_of(user_id) is None:
        return state
    return VoteState(
        upvoters=state.upvoters - {user_id},
        downvoters=state.downvoters - {user_id},
    )
