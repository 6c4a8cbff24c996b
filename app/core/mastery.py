"""Three-bucket mastery ladder used by the fill-in-the-blank quiz."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Bucket(str, Enum):
    """Mastery tiers, lowest first."""

    NEEDS_WORK = "needs_work"
    FAMILIAR = "familiar"
    MASTERED = "mastered"

    @property
    def level(self) -> int:
        return _LADDER.index(self)

    @property
    def quiz_priority(self) -> int:
        """Lower values are quizzed first."""
        return self.level


_LADDER: tuple[Bucket, ...] = (Bucket.NEEDS_WORK, Bucket.FAMILIAR, Bucket.MASTERED)

INITIAL_BUCKET = Bucket.NEEDS_WORK


def apply(bucket: Bucket | str, is_correct: bool) -> Bucket:
    """Return the bucket after one quiz answer.

    A correct answer climbs exactly one rung and stays on ``mastered`` once
    there. Any wrong answer drops the word back to ``needs_work``.
    """

    current = Bucket(bucket)
    if not is_correct:
        return Bucket.NEEDS_WORK
    next_level = min(current.level + 1, len(_LADDER) - 1)
    return _LADDER[next_level]


@dataclass(frozen=True, slots=True)
class MasteryTransition:
    """Bucket movement caused by a single answer."""

    before: Bucket
    after: Bucket
    is_correct: bool

    @classmethod
    def from_answer(cls, bucket: Bucket | str, is_correct: bool) -> "MasteryTransition":
        before = Bucket(bucket)
        return cls(before=before, after=apply(before, is_correct), is_correct=is_correct)

    @property
    def promoted(self) -> bool:
        return self.after.level > self.before.level

    @property
    def demoted(self) -> bool:
        return self.after.level < self.before.level


__all__ = ["Bucket", "INITIAL_BUCKET", "MasteryTransition", "apply"]
