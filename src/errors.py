"""Error taxonomy and run reporting for hackfeed.

Detector and scheduler operations raise these types at their seams and
aggregate per-item failures into a :class:`PipelineReport` instead of
letting them escape a batch run.
"""

from __future__ import annotations

from collections import Counter

from pydantic import BaseModel, Field


class HackfeedError(Exception):
    """Base error for all hackfeed failures."""


class NotFoundError(HackfeedError, KeyError):
    """A referenced content item, category, identity or archive record is missing."""

    def __str__(self) -> str:
        # KeyError quotes its message; keep it readable.
        return str(self.args[0]) if self.args else ""


class InvalidArgumentError(HackfeedError, ValueError):
    """Caller-supplied data violates a precondition."""


class GenerationError(HackfeedError):
    """The content generator failed or returned unusable content."""


class TransitionError(HackfeedError):
    """The content -> archive transition partially failed.

    Carries enough context to reconcile the two collections by hand.
    """

    def __init__(self, message: str, *, content_id: str, reason: str, phase: str) -> None:
        super().__init__(message)
        self.content_id = content_id
        self.reason = reason
        self.phase = phase

    def __str__(self) -> str:
        return (
            f"{self.args[0]} (content_id={self.content_id}, "
            f"reason={self.reason}, phase={self.phase})"
        )


class SchedulerAbort(HackfeedError):
    """A batch run cannot start: no active categories or no admin identity."""


class PipelineError(BaseModel):
    """A single recorded failure inside a batch run."""

    stage: str
    message: str
    source: str = ""
    error_type: str = "error"


class PipelineReport(BaseModel):
    """Accumulates non-fatal failures across a run."""

    errors: list[PipelineError] = Field(default_factory=list)

    def add_error(
        self,
        stage: str,
        message: str,
        *,
        source: str = "",
        error_type: str = "error",
    ) -> None:
        self.errors.append(
            PipelineError(stage=stage, message=message, source=source, error_type=error_type)
        )

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    def errors_by_stage(self) -> dict[str, int]:
        """Return failure counts keyed by stage name."""
        return dict(Counter(e.stage for e in self.errors))
