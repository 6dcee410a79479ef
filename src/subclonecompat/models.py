from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

BOUNDARY_RESOLUTION = 20_000_000


@dataclass(frozen=True)
class SomaticEvent:
    """A somatic genomic alteration attached to a subclone.

    Python equality is exact (dataclass semantics). Comparisons between
    trees go through :meth:`matches`, which tolerates breakpoint imprecision
    up to ``resolution`` base pairs. That relation is not transitive: two
    events may each match a third one without matching each other.

    This base class only carries the shared fields; instantiate
    :class:`PointMutation` or :class:`SegmentalAlteration`.
    """

    kind: ClassVar[str] = "event"

    chrom: str

    def __post_init__(self) -> None:
        if type(self) is SomaticEvent:
            raise TypeError("SomaticEvent is abstract; use PointMutation or SegmentalAlteration.")

    def matches(self, other: SomaticEvent, resolution: int = BOUNDARY_RESOLUTION) -> bool:
        raise NotImplementedError

    def label(self) -> str:
        return self.chrom


@dataclass(frozen=True)
class PointMutation(SomaticEvent):
    """A single-nucleotide variant.

    Attributes
    ----------
    chrom:
        Contig name as present in the input.
    pos:
        1-based genomic position (VCF convention).
    """

    kind: ClassVar[str] = "point"

    pos: int

    def matches(self, other: SomaticEvent, resolution: int = BOUNDARY_RESOLUTION) -> bool:
        if not isinstance(other, PointMutation):
            return False
        return self.chrom == other.chrom and abs(self.pos - other.pos) <= resolution

    def label(self) -> str:
        return f"{self.chrom}:{self.pos}"


@dataclass(frozen=True)
class SegmentalAlteration(SomaticEvent):
    """A segmental copy-number change over a closed 1-based interval.

    Attributes
    ----------
    chrom:
        Contig name as present in the input.
    start, end:
        Segment boundaries, 1-based and inclusive.
    state:
        Copy-number state, e.g. ``gain``, ``loss``, ``loh`` or ``neutral``.
        Two segments only match when their states are identical.
    """

    kind: ClassVar[str] = "segment"

    start: int
    end: int
    state: str = "neutral"

    def matches(self, other: SomaticEvent, resolution: int = BOUNDARY_RESOLUTION) -> bool:
        if not isinstance(other, SegmentalAlteration):
            return False
        return (
            self.chrom == other.chrom
            and self.state == other.state
            and abs(self.start - other.start) <= resolution
            and abs(self.end - other.end) <= resolution
        )

    def label(self) -> str:
        return f"{self.chrom}:{self.start}-{self.end}({self.state})"

