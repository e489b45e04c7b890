#!/usr/bin/env python3
"""
Data models for Stellar Forge.

This module defines the Body dataclass shared between physics, evolution,
persistence and the renderer feed, plus the render records each body owns.

Units and usage
- position and velocity are world-space (x, y, z) tuples in simulation units.
- orientation is a unit quaternion (x, y, z, w); angular_velocity is an axis
  scaled by its rate in rad/s.
- geometry holds one or two RenderRecords. Record 0 is the body's own sphere and
  its r1 is the collision radius; record 1, when present, is a ring or
  accretion disk. Records mirror the body's transform and are refreshed from it
  by sync_geometry() rather than edited independently.
- trail stores past positions relative to the centre of mass, most recent
  first; it is resized every physics step by stellar.trails.
"""
from collections import deque
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Deque, List, Tuple

from .constants import DEFAULT_ANGULAR_VELOCITY
from .quaternion import IDENTITY, Quat
from .vector_utils import Vec3, ZERO


class BodyType(IntEnum):
    """Closed set of body kinds. Values are the persisted type ids."""
    STAR = 0
    BROWN_DWARF = 1
    GAS_GIANT = 2
    ROCKY_PLANET = 3
    BLACK_HOLE = 4

    @property
    def display_name(self) -> str:
        return self.name.replace("_", " ").title()

    @property
    def supports_rings(self) -> bool:
        return self in (BodyType.GAS_GIANT, BodyType.ROCKY_PLANET, BodyType.BLACK_HOLE)


class ShapeKind(IntEnum):
    SPHERE = 0
    DISK = 1


@dataclass
class Material:
    albedo: Vec3 = (1.0, 1.0, 1.0)
    emission: float = 0.0
    metallic: float = 0.0
    roughness: float = 1.0
    texture_id: int = -1


@dataclass
class RenderRecord:
    """
    One primitive handed to the renderer.

    Fields:
    - kind: sphere or disk
    - r1: sphere radius, or outer disk radius
    - r2: inner disk radius (unused for spheres)
    - material: surface description
    - center, rotation: copies of the owning body's transform
    """
    kind: ShapeKind = ShapeKind.SPHERE
    r1: float = 1.0
    r2: float = 0.0
    material: Material = field(default_factory=Material)
    center: Vec3 = ZERO
    rotation: Quat = IDENTITY


@dataclass
class Body:
    """
    Represents a celestial body in the simulation.

    Bodies are normally built by stellar.evolution.create_body so that type and
    geometry agree, and receive their id when added to a PhysicsWorld.

    Fields:
    - id: stable identity assigned by the owning world (-1 until added)
    - name: display name
    - type: current BodyType
    - mass: positive mass
    - position, velocity: world-space state
    - orientation, angular_velocity: rotational state
    - has_rings: ring intent for types that support it
    - geometry: render records, sphere first
    - trail: past positions relative to the centre of mass, newest first
    - max_trail_points: current trail capacity, at least 1
    """
    name: str
    type: BodyType
    mass: float
    position: Vec3 = ZERO
    velocity: Vec3 = ZERO
    orientation: Quat = IDENTITY
    angular_velocity: Vec3 = DEFAULT_ANGULAR_VELOCITY
    has_rings: bool = False
    geometry: List[RenderRecord] = field(default_factory=list)
    id: int = -1
    trail: Deque[Vec3] = field(default_factory=deque)
    max_trail_points: int = 1

    @property
    def radius(self) -> float:
        """Collision radius: the primary sphere's r1."""
        return self.geometry[0].r1 if self.geometry else 0.0

    @radius.setter
    def radius(self, value: float) -> None:
        self.geometry[0].r1 = float(value)

    def sync_geometry(self) -> None:
        """Copy the body's transform onto every render record."""
        for record in self.geometry:
            record.center = self.position
            record.rotation = self.orientation

    def reset_rotation(self) -> None:
        self.orientation = IDENTITY
        self.sync_geometry()

    def clear_trail(self) -> None:
        self.trail.clear()
