"""
Schedule builder — expands (value, duration) segments into per-cycle inputs.

Typical use: a treatment phase followed by a maintenance phase,

    transitions = expand_schedule([(P_combo, 2), (P_mono, 18)])   # (20, S, S)
    costs       = expand_schedule([(c_combo, 2), (c_mono, 18)])   # (20, S)

The simulator itself never repeats or truncates inputs, so the expanded
length must equal the model horizon.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple, Union

import numpy as np

from core.errors import DimensionMismatch, InvalidParameter


@dataclass(frozen=True)
class ScheduleSegment:
    """`value` held constant for `duration` consecutive cycles."""
    value: np.ndarray
    duration: int


SegmentLike = Union[ScheduleSegment, Tuple[object, int]]


def _as_segment(seg: SegmentLike) -> ScheduleSegment:
    if isinstance(seg, ScheduleSegment):
        return seg
    value, duration = seg
    return ScheduleSegment(value=np.asarray(value, dtype=float), duration=duration)


def expand_schedule(
    segments: Iterable[SegmentLike],
    n_cycles: Optional[int] = None,
) -> np.ndarray:
    """
    Stack each segment's value `duration` times, in order.

    Returns an array of shape (total_duration, *value.shape).

    Raises
    ------
    InvalidParameter
        No segments, or a duration that is not a positive integer.
    DimensionMismatch
        Segment values of different shapes, or total duration != n_cycles.
    """
    segs = [_as_segment(s) for s in segments]
    if not segs:
        raise InvalidParameter("A schedule needs at least one segment.")

    shape = np.shape(segs[0].value)
    blocks = []
    for i, seg in enumerate(segs):
        duration = seg.duration
        if isinstance(duration, bool) or int(duration) != duration or duration < 1:
            raise InvalidParameter(
                f"Segment {i} duration must be a positive integer, got {duration!r}."
            )
        value = np.asarray(seg.value, dtype=float)
        if value.shape != shape:
            raise DimensionMismatch(
                f"Segment {i} has shape {value.shape}, expected {shape}."
            )
        blocks.append(np.repeat(value[np.newaxis, ...], int(duration), axis=0))

    expanded = np.concatenate(blocks, axis=0)
    if n_cycles is not None and expanded.shape[0] != n_cycles:
        raise DimensionMismatch(
            f"Schedule covers {expanded.shape[0]} cycles, expected {n_cycles}."
        )
    return expanded
