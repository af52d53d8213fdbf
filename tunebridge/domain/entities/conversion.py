"""Conversion-related domain entities.

ConversionRecord is the only stateful entity in the conversion subsystem. It is
immutable; every status transition returns a new record and illegal
transitions raise InvalidTransitionError.
"""

from datetime import UTC, datetime
from enum import StrEnum, auto
import math
from uuid import uuid4

import attrs
from attrs import define, field, validators

from tunebridge.domain.errors import (
    ERRORS_BY_CODE,
    InvalidTransitionError,
    TunebridgeError,
)

UNMATCHED_CODE = "unmatched"


class ConversionStatus(StrEnum):
    """Lifecycle of a conversion: pending -> processing -> completed | failed."""

    PENDING = auto()
    PROCESSING = auto()
    COMPLETED = auto()
    FAILED = auto()

    @property
    def is_terminal(self) -> bool:
        return self in (ConversionStatus.COMPLETED, ConversionStatus.FAILED)


_ALLOWED_TRANSITIONS = {
    ConversionStatus.PENDING: {ConversionStatus.PROCESSING, ConversionStatus.FAILED},
    ConversionStatus.PROCESSING: {ConversionStatus.COMPLETED, ConversionStatus.FAILED},
    ConversionStatus.COMPLETED: set(),
    ConversionStatus.FAILED: set(),
}


@define(frozen=True, slots=True)
class ConversionError:
    """A single failure reported on a conversion record.

    Per-song misses use code "unmatched"; conversion-level failures use the
    code of the domain error that caused them and leave song fields empty.
    """

    song_id: str
    song_title: str
    reason: str
    code: str = UNMATCHED_CODE

    @classmethod
    def from_exception(cls, error: TunebridgeError) -> "ConversionError":
        return cls(song_id="", song_title="", reason=error.message, code=error.code)


@define(frozen=True, slots=True)
class CompatibilityReport:
    """Heuristic estimate of how well a playlist will convert."""

    score: float = field(validator=[validators.ge(0), validators.le(1)])
    estimated_match_count: int = field(validator=validators.ge(0))
    issues: list[str] = field(factory=list)


@define(frozen=True, slots=True)
class ConversionRecord:
    """Persistent record of one (source playlist, target catalog) conversion."""

    source_playlist_id: str
    target_catalog: str
    requested_by: str
    id: str = field(factory=lambda: uuid4().hex)
    status: ConversionStatus = ConversionStatus.PENDING
    matched_count: int = 0
    unmatched_count: int = 0
    conversion_rate: float = 0.0
    errors: list[ConversionError] = field(factory=list)
    warnings: list[str] = field(factory=list)
    target_playlist_id: str | None = None
    created_at: datetime = field(factory=lambda: datetime.now(UTC))
    completed_at: datetime | None = None

    @property
    def total_songs(self) -> int:
        return self.matched_count + self.unmatched_count

    @property
    def is_active(self) -> bool:
        """Whether this record blocks a new conversion of the same pair."""
        return self.status != ConversionStatus.FAILED

    def _transition(self, new_status: ConversionStatus, **changes) -> "ConversionRecord":
        if new_status not in _ALLOWED_TRANSITIONS[self.status]:
            raise InvalidTransitionError(
                f"Cannot move conversion {self.id} from {self.status} to {new_status}"
            )
        return attrs.evolve(self, status=new_status, **changes)

    def mark_processing(self, warnings: list[str] | None = None) -> "ConversionRecord":
        """Move a pending record into processing."""
        return self._transition(
            ConversionStatus.PROCESSING,
            warnings=list(warnings) if warnings is not None else self.warnings,
        )

    def mark_completed(
        self,
        matched_count: int,
        unmatched_count: int,
        errors: list[ConversionError],
        target_playlist_id: str | None = None,
    ) -> "ConversionRecord":
        """Finish a processing record with its match statistics."""
        total = matched_count + unmatched_count
        return self._transition(
            ConversionStatus.COMPLETED,
            matched_count=matched_count,
            unmatched_count=unmatched_count,
            conversion_rate=matched_count / total if total else 0.0,
            errors=list(errors),
            target_playlist_id=target_playlist_id,
            completed_at=datetime.now(UTC),
        )

    def mark_failed(self, error: TunebridgeError) -> "ConversionRecord":
        """Fail the record with a single top-level error.

        Per-song statistics are discarded: a failed conversion reports only
        why it failed.
        """
        return self._transition(
            ConversionStatus.FAILED,
            matched_count=0,
            unmatched_count=0,
            conversion_rate=0.0,
            errors=[ConversionError.from_exception(error)],
            completed_at=datetime.now(UTC),
        )

    def raise_for_status(self) -> None:
        """Raise the typed domain error if this record failed."""
        if self.status != ConversionStatus.FAILED:
            return
        top_level = next(
            (e for e in self.errors if e.code != UNMATCHED_CODE), None
        )
        if top_level is None:
            raise TunebridgeError("Conversion failed")
        error_cls = ERRORS_BY_CODE.get(top_level.code, TunebridgeError)
        raise error_cls(top_level.reason)


def estimated_matches(song_count: int, score: float) -> int:
    """floor(song_count * score), never negative."""
    return max(0, math.floor(song_count * score))
