#!/usr/bin/env python3
"""
Core Physics Engine for Stellar Forge

Responsibilities
- Own the body collection as an id-keyed arena (PhysicsWorld).
- Accumulate pairwise gravity with a squared-distance floor (softening).
- Detect overlapping pairs and merge them inelastically.
- Advance bodies with semi-implicit Euler and integrate their spin.
- Run mass-driven evolution and refresh trails after every step.
- Provide the orbital-velocity helper used when spawning bodies in orbit.

Conventions
- Abstract simulation units; the gravitational constant is passed per step.
- Vectors are (x, y, z) tuples, quaternions (x, y, z, w).

Numerical notes
- Softening: the force law is F = G * m_i * m_j / max(r^2, 1). Unlike the
  Plummer form this leaves distant interactions exact while bounding the force
  at short range.
- Gravity is evaluated once per unordered pair and applied to both bodies with
  opposite signs, so no pair is counted twice.
- A pair with coincident centres has no defined direction; it is skipped for
  the step rather than producing NaN.
- Absorbed bodies are only collected during the pair pass and removed after it,
  so identities and iteration order stay valid for the whole pass.
- Complexity: O(N^2) direct summation. The interactive scale is a handful of
  bodies, so no tree code is needed.
"""

import logging
import math
from typing import Dict, Iterator, List, NamedTuple, Optional, Set

from . import evolution, trails
from .collisions import merge_pair
from .constants import DEFAULT_G, MAX_RENDER_OBJECTS, ROTATION_EPSILON, SOFTENING_DIST_SQ
from .data_models import Body, BodyType, RenderRecord
from .quaternion import quat_from_axis_angle, quat_mult, quat_norm, quat_rotate
from .vector_utils import (
    Vec3,
    ZERO,
    vec_add,
    vec_cross,
    vec_dot,
    vec_len,
    vec_norm,
    vec_scale,
    vec_sub,
)

logger = logging.getLogger(__name__)


class StepResult(NamedTuple):
    """Outcome of one PhysicsWorld.step call."""
    center_of_mass: Vec3
    absorbed_ids: List[int]
    transitions: Dict[int, BodyType]

    @property
    def structure_changed(self) -> bool:
        return bool(self.absorbed_ids)


class PhysicsWorld:
    """
    N-body world with merging and evolving bodies.

    Bodies are keyed by an opaque integer id that survives every step. Their
    position in the `bodies` list is insertion order and shifts when bodies are
    removed, so external code should hold ids, not indices.
    """

    def __init__(self):
        self._bodies: Dict[int, Body] = {}
        self.next_body_id = 0

    # -----------------------
    # Collection management
    # -----------------------

    @property
    def bodies(self) -> List[Body]:
        return list(self._bodies.values())

    def __len__(self) -> int:
        return len(self._bodies)

    def __iter__(self) -> Iterator[Body]:
        return iter(list(self._bodies.values()))

    def __contains__(self, body_id: int) -> bool:
        return body_id in self._bodies

    def ids(self) -> List[int]:
        return list(self._bodies.keys())

    def get(self, body_id: Optional[int]) -> Optional[Body]:
        if body_id is None:
            return None
        return self._bodies.get(body_id)

    def add_body(self, body: Body) -> int:
        """Take ownership of body, assign it a fresh id and return the id."""
        body.id = self.next_body_id
        self.next_body_id += 1
        body.clear_trail()
        body.sync_geometry()
        self._bodies[body.id] = body
        return body.id

    def remove_body(self, body_id: int) -> bool:
        return self._bodies.pop(body_id, None) is not None

    def replace_bodies(self, bodies: List[Body]) -> None:
        """Drop every body and adopt `bodies` with fresh ids and empty trails."""
        self.clear()
        for body in bodies:
            self.add_body(body)

    def clear(self) -> None:
        self._bodies.clear()
        self.next_body_id = 0

    # -----------------------
    # Aggregates
    # -----------------------

    def total_mass(self) -> float:
        return sum(b.mass for b in self._bodies.values())

    def center_of_mass(self) -> Vec3:
        """Mass-weighted mean position; the origin for an empty or massless world."""
        total = self.total_mass()
        if total <= 0:
            return ZERO
        weighted = ZERO
        for b in self._bodies.values():
            weighted = vec_add(weighted, vec_scale(b.position, b.mass))
        return vec_scale(weighted, 1.0 / total)

    def mean_velocity(self) -> Vec3:
        """Mass-weighted mean velocity (velocity of the centre of mass)."""
        total = self.total_mass()
        if total <= 0:
            return ZERO
        weighted = ZERO
        for b in self._bodies.values():
            weighted = vec_add(weighted, vec_scale(b.velocity, b.mass))
        return vec_scale(weighted, 1.0 / total)

    def kinetic_energy(self) -> float:
        return sum(0.5 * b.mass * vec_dot(b.velocity, b.velocity) for b in self._bodies.values())

    def potential_energy(self, G: float = DEFAULT_G) -> float:
        """Pairwise potential consistent with the softened force law."""
        bodies = self.bodies
        total = 0.0
        for a in range(len(bodies)):
            for b in range(a + 1, len(bodies)):
                d = vec_sub(bodies[b].position, bodies[a].position)
                r = math.sqrt(max(vec_dot(d, d), SOFTENING_DIST_SQ))
                total -= G * bodies[a].mass * bodies[b].mass / r
        return total

    # -----------------------
    # Stepping
    # -----------------------

    def step(self, dt: float, gravity_enabled: bool = True, G: float = DEFAULT_G,
             time_scale: float = 1.0) -> StepResult:
        """
        Advance every body by dt (already multiplied by the time scale).

        Order of work:
        1) centre of mass (returned for camera framing)
        2) one pass over unordered pairs: merge overlapping pairs, else
           accumulate gravity on both bodies
        3) apply accumulated forces to surviving bodies
        4) remove absorbed bodies
        5) integrate position and orientation, refresh render records
        6) evolution check per body
        7) trail update per body

        A body takes part in at most one merge per step. Once the body in the
        outer loop has merged, its remaining pairs are skipped for this step.
        A non-positive dt changes nothing.
        """
        com = self.center_of_mass()
        if dt <= 0:
            return StepResult(com, [], {})

        bodies = self.bodies
        n = len(bodies)
        pending: Set[int] = set()
        merged: Set[int] = set()
        forces: Dict[int, Vec3] = {b.id: ZERO for b in bodies}

        for a in range(n):
            bi = bodies[a]
            if bi.id in pending:
                continue
            for b in range(a + 1, n):
                bj = bodies[b]
                if bj.id in pending:
                    continue

                direction = vec_sub(bj.position, bi.position)
                dist_sq = vec_dot(direction, direction)
                if dist_sq == 0.0:
                    logger.debug("Skipping coincident pair %d/%d.", bi.id, bj.id)
                    continue
                distance = math.sqrt(dist_sq)

                if (distance <= bi.radius + bj.radius
                        and bi.id not in merged and bj.id not in merged):
                    absorbed = merge_pair(bi, bj)
                    pending.add(absorbed.id)
                    merged.update((bi.id, bj.id))
                    break

                if gravity_enabled:
                    force_mag = G * bi.mass * bj.mass / max(dist_sq, SOFTENING_DIST_SQ)
                    force = vec_scale(direction, force_mag / distance)
                    forces[bi.id] = vec_add(forces[bi.id], force)
                    forces[bj.id] = vec_sub(forces[bj.id], force)

        for body in bodies:
            if body.id in pending:
                continue
            body.velocity = vec_add(body.velocity, vec_scale(forces[body.id], dt / body.mass))

        for body_id in pending:
            self._bodies.pop(body_id, None)

        for body in self._bodies.values():
            self._integrate(body, dt)

        transitions = {}
        for body in self._bodies.values():
            new_type = evolution.check(body)
            if new_type is not None:
                transitions[body.id] = new_type

        mean_vel = self.mean_velocity()
        for body in self._bodies.values():
            relative_speed = vec_len(vec_sub(body.velocity, mean_vel))
            trails.update(body, com, relative_speed, time_scale)

        return StepResult(com, sorted(pending), transitions)

    @staticmethod
    def _integrate(body: Body, dt: float) -> None:
        body.position = vec_add(body.position, vec_scale(body.velocity, dt))
        angle = vec_len(body.angular_velocity) * dt
        if angle > ROTATION_EPSILON:
            delta = quat_from_axis_angle(vec_norm(body.angular_velocity), angle)
            body.orientation = quat_norm(quat_mult(body.orientation, delta))
        body.sync_geometry()

    # -----------------------
    # Renderer feed
    # -----------------------

    def render_records(self, limit: int = MAX_RENDER_OBJECTS) -> List[RenderRecord]:
        """
        Flatten every body's render records in body order.

        Records beyond `limit` are dropped with a warning; the renderer has a
        fixed-size object buffer.
        """
        records: List[RenderRecord] = []
        total = 0
        for body in self._bodies.values():
            for record in body.geometry:
                total += 1
                if len(records) < limit:
                    records.append(record)
        if total > limit:
            logger.warning("Exceeded maximum number of render objects (%d > %d); dropping %d.",
                           total, limit, total - limit)
        return records


def orbital_velocity(parent_mass: float, new_mass: float, direction: Vec3, distance: float,
                     eccentricity: float = 0.0, inclination_deg: float = 0.0,
                     G: float = DEFAULT_G) -> Vec3:
    """
    Initial velocity (relative to the parent) for a body placed at `distance`
    along unit vector `direction` from its parent.

    Uses the vis-viva equation with the placement point as periapsis:

        a = r / (1 - e)
        v^2 = G * (M + m) * (2 / r - 1 / a)

    The velocity lies in the plane perpendicular to +Y, tilted about
    `direction` by the inclination.

    Args:
        parent_mass: Mass of the body being orbited
        new_mass: Mass of the new body
        direction: Unit vector from parent to the new body
        distance: Separation (must be > 0)
        eccentricity: 0 for a circle, towards 1 for elongated ellipses
        inclination_deg: Tilt of the orbital plane in degrees
        G: Gravitational constant

    Returns:
        Velocity vector; zero when there is no parent or the orbit is unbound.
    """
    if parent_mass <= 0 or distance <= 0:
        return ZERO

    semi_major_axis = distance / (1.0 - eccentricity + 1e-6)
    total_mass = parent_mass + new_mass
    speed_sq = G * total_mass * ((2.0 / distance) - (1.0 / semi_major_axis))
    if speed_sq < 0:
        logger.warning("Requested orbit is unstable (hyperbolic). Setting initial velocity to 0.")
        return ZERO

    speed = math.sqrt(speed_sq)
    flat_dir = vec_norm(vec_cross(direction, (0.0, 1.0, 0.0)))
    tilt = quat_from_axis_angle(vec_norm(direction), math.radians(inclination_deg))
    return vec_scale(quat_rotate(tilt, flat_dir), speed)
