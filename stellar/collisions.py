#!/usr/bin/env python3
"""
Collision handling for Stellar Forge.

Colliding bodies merge perfectly inelastically: the heavier body absorbs the
lighter one, momentum is conserved and radii combine volumetrically. The
survivor keeps its own position, materials and ring geometry.

This module only resolves a single detected pair; detection and the deferred
removal of absorbed bodies are driven by PhysicsWorld.step.
"""
import logging
from typing import Tuple

from .data_models import Body
from .vector_utils import vec_add, vec_scale

logger = logging.getLogger(__name__)


def order_by_mass(bi: Body, bj: Body) -> Tuple[Body, Body]:
    """
    Return (larger, smaller).

    Equal masses resolve to bi as the larger body. PhysicsWorld passes pairs in
    insertion order, so on a tie the earlier body survives.
    """
    if bi.mass >= bj.mass:
        return bi, bj
    return bj, bi


def merge_pair(bi: Body, bj: Body) -> Body:
    """
    Merge the pair in place and return the absorbed (smaller) body.

    The caller is responsible for removing the returned body from the world.
    """
    larger, smaller = order_by_mass(bi, bj)
    m_total = larger.mass + smaller.mass

    new_vel = vec_scale(
        vec_add(vec_scale(larger.velocity, larger.mass), vec_scale(smaller.velocity, smaller.mass)),
        1.0 / m_total,
    )
    # Combine radii by volume (r^3 adds)
    new_radius = (larger.radius ** 3 + smaller.radius ** 3) ** (1.0 / 3.0)

    larger.mass = m_total
    larger.velocity = new_vel
    larger.radius = new_radius

    logger.info("Merged '%s' into '%s' (mass %.4g, radius %.4g).",
                smaller.name, larger.name, m_total, new_radius)
    return smaller
