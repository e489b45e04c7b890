#!/usr/bin/env python3
"""
Temporal accumulation control.

The renderer blends successive frames into a double-buffered history while the
view is unchanged. This module decides how many frames may be blended: each
frame the host passes a CameraSnapshot; an identical snapshot grows the count
up to a cap that depends on the time scale, any difference resets it to 1.

    time_scale <= 0       -> MAX_ACCUMULATION_FRAMES (paused: converge freely)
    0 < time_scale < 1    -> ceil(0.85 / time_scale + 0.15)
    time_scale >= 1       -> 1 (bodies move too fast for blending to help)

The controller only tracks numbers; the buffers themselves belong to the
renderer, which reads `read_index` and writes `write_index`.
"""
import math
from dataclasses import dataclass
from typing import Optional

from .constants import MAX_ACCUMULATION_FRAMES


@dataclass(frozen=True)
class CameraSnapshot:
    """Everything whose change invalidates the blended history."""
    fov: float
    orbit_distance: float
    yaw: float
    pitch: float
    time_scale: float
    selected_id: Optional[int] = None


def frame_cap(time_scale: float) -> int:
    if time_scale <= 0:
        return MAX_ACCUMULATION_FRAMES
    if time_scale < 1.0:
        return int(math.ceil(0.85 / time_scale + 0.15))
    return 1


class AccumulationController:
    """Tracks viewer stationarity across frames."""

    def __init__(self):
        self.previous_snapshot: Optional[CameraSnapshot] = None
        self.accumulated_frames = 1
        self.read_index = 0

    @property
    def write_index(self) -> int:
        return 1 - self.read_index

    def observe(self, snapshot: CameraSnapshot) -> int:
        """Compare with the previous frame, swap buffers and return the frame count."""
        if snapshot == self.previous_snapshot:
            if self.accumulated_frames < frame_cap(snapshot.time_scale):
                self.accumulated_frames += 1
        else:
            self.accumulated_frames = 1
        self.previous_snapshot = snapshot
        self.read_index = 1 - self.read_index
        return self.accumulated_frames

    def reset(self) -> None:
        """Discard the blended history (the scene's structure changed)."""
        self.accumulated_frames = 1
        self.read_index = 0
