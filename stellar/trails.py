#!/usr/bin/env python3
"""
Per-body trail history.

Each body keeps a deque of past positions relative to the system's centre of
mass, newest first. Its capacity is recomputed every step from the body's speed
relative to the mass-weighted mean velocity:

    max_points = floor(TRAIL_BUDGET / (time_scale * (relative_speed^2 + 1)))

so slow or central bodies draw long trails, fast ones short trails, and high
time scales shrink every trail. Capacity never drops below one point.
"""
import math
from typing import Iterator, Tuple

from .constants import TRAIL_BUDGET
from .data_models import Body
from .vector_utils import Vec3, vec_add, vec_sub


def max_trail_points(relative_speed: float, time_scale: float) -> int:
    scale = time_scale if time_scale > 0 else 1.0
    return max(1, int(math.floor(TRAIL_BUDGET / (scale * (relative_speed ** 2 + 1.0)))))


def update(body: Body, center_of_mass: Vec3, relative_speed: float, time_scale: float) -> None:
    """Record body's current position and trim the trail to its new capacity."""
    body.max_trail_points = max_trail_points(relative_speed, time_scale)
    body.trail.appendleft(vec_sub(body.position, center_of_mass))
    while len(body.trail) > body.max_trail_points:
        body.trail.pop()


def vertices(body: Body, center_of_mass: Vec3) -> Iterator[Tuple[Vec3, float]]:
    """
    Yield (world_position, age) for drawing, newest first.

    age runs from 0 for the newest point towards 1 at full capacity.
    """
    cap = body.max_trail_points
    for i, rel in enumerate(body.trail):
        yield vec_add(rel, center_of_mass), (i / cap if cap > 0 else 0.0)
