"""
audiosplitter.models - Chapter records and split plans.

A SplitPlan is either a ChapterPlan (split along embedded chapters) or a
FixedIntervalPlan (split into equal-length parts). Exactly one plan is
chosen per input file.
"""

from __future__ import annotations

from typing import Literal, Union

from pydantic import BaseModel, Field, model_validator


class ChapterRecord(BaseModel):
    """A named time range inside a media file."""

    start: float = Field(ge=0.0)
    end: float
    title: str

    @model_validator(mode="after")
    def validate_range(self) -> ChapterRecord:
        if self.end <= self.start:
            raise ValueError(f"Chapter end ({self.end}) must be after start ({self.start})")
        return self


class ChapterPlan(BaseModel):
    """Split along chapter boundaries, one output file per chapter."""

    kind: Literal["chapters"] = "chapters"
    chapters: list[ChapterRecord] = Field(min_length=1)


class FixedIntervalPlan(BaseModel):
    """Split into consecutive parts of a fixed duration."""

    kind: Literal["fixed"] = "fixed"
    interval_seconds: int = Field(gt=0)


SplitPlan = Union[ChapterPlan, FixedIntervalPlan]


def choose_plan(chapters: list[ChapterRecord], interval_seconds: int) -> SplitPlan:
    """Pick the split plan for a file.

    Args:
        chapters: Valid chapter records in source order (may be empty)
        interval_seconds: Fallback part length in seconds

    Returns:
        ChapterPlan if there is at least one chapter, else FixedIntervalPlan
    """
    if chapters:
        return ChapterPlan(chapters=chapters)
    return FixedIntervalPlan(interval_seconds=interval_seconds)
