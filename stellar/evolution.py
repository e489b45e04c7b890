#!/usr/bin/env python3
"""
Body construction and mass-driven evolution.

setup_as() is the single mapping from a BodyType to its render geometry, default
mass and materials; both evolution and external "change type" requests go
through it. check() applies at most one type transition per call:

    RockyPlanet <-> GasGiant <-> BrownDwarf <-> Star
                 50          200            600      (mass thresholds)

and, overriding everything else, collapses any body whose sphere is smaller
than its collapse radius (mass * SCHWARZSCHILD_FACTOR) into a BlackHole.
BlackHole is terminal: no transition leaves it.
"""
import logging
from dataclasses import dataclass
from typing import Dict, Optional

from .constants import (
    COLLAPSE_DISK_INNER,
    COLLAPSE_DISK_OUTER,
    MASS_LIMIT_DWARF_TO_STAR,
    MASS_LIMIT_GIANT_TO_DWARF,
    MASS_LIMIT_ROCKY_TO_GIANT,
    SCHWARZSCHILD_FACTOR,
)
from .data_models import Body, BodyType, Material, RenderRecord, ShapeKind
from .vector_utils import Vec3, ZERO

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TypeSetup:
    """Per-type defaults. Ring radii are multiples of the sphere radius."""
    radius: float
    albedo: Vec3
    emission: float
    mass: float
    ring_outer: float = 0.0
    ring_inner: float = 0.0
    ring_albedo: Vec3 = (1.0, 1.0, 1.0)
    ring_emission: float = 0.0


TYPE_TABLE: Dict[BodyType, TypeSetup] = {
    BodyType.STAR: TypeSetup(8.0, (1.0, 0.8, 0.5), 1000.0, 800.0),
    BodyType.BROWN_DWARF: TypeSetup(4.0, (0.4, 0.15, 0.1), 7.0, 250.0),
    BodyType.GAS_GIANT: TypeSetup(1.5, (0.8, 0.7, 0.6), 0.0, 80.0,
                                  2.0, 1.2, (0.6, 0.6, 0.6)),
    BodyType.ROCKY_PLANET: TypeSetup(0.5, (0.5, 0.6, 0.8), 0.0, 1.0,
                                     2.5, 1.5, (0.7, 0.7, 0.7)),
    BodyType.BLACK_HOLE: TypeSetup(0.5, (0.0, 0.0, 0.0), 0.0, 100.0,
                                   10.0, 1.5, (1.0, 0.8, 0.3), 500.0),
}

DEFAULT_NAMES = {t.display_name for t in BodyType}


def setup_as(body: Body, body_type: BodyType, keep_mass: bool = False) -> None:
    """
    Rebuild body's geometry, materials and (unless keep_mass) mass for body_type.

    Position, orientation, velocity and trail are preserved. Ring intent is kept
    for gas giants and rocky planets, cleared for stars and brown dwarfs, and
    forced on for black holes. Bodies still carrying a default name are renamed
    after their new type.
    """
    setup = TYPE_TABLE[body_type]
    if body.name in DEFAULT_NAMES:
        body.name = body_type.display_name
    body.type = body_type
    if not keep_mass:
        body.mass = setup.mass

    if body_type == BodyType.BLACK_HOLE:
        body.has_rings = True
    elif not body_type.supports_rings:
        body.has_rings = False

    sphere = RenderRecord(
        kind=ShapeKind.SPHERE,
        r1=setup.radius,
        material=Material(albedo=setup.albedo, emission=setup.emission),
    )
    body.geometry = [sphere]
    if body.has_rings:
        body.geometry.append(RenderRecord(
            kind=ShapeKind.DISK,
            r1=setup.radius * setup.ring_outer,
            r2=setup.radius * setup.ring_inner,
            material=Material(albedo=setup.ring_albedo, emission=setup.ring_emission),
        ))
    body.sync_geometry()


def create_body(body_type: BodyType, position: Vec3 = ZERO, mass: Optional[float] = None,
                name: Optional[str] = None, has_rings: bool = False) -> Body:
    """
    Build a body of body_type from the setup table.

    A mass of None keeps the type's default. A non-positive mass is rejected
    with a warning and the default is kept as well.
    """
    body = Body(name=body_type.display_name, type=body_type, mass=TYPE_TABLE[body_type].mass,
                position=tuple(float(c) for c in position), has_rings=has_rings)
    setup_as(body, body_type)
    if mass is not None:
        if mass > 0:
            body.mass = float(mass)
        else:
            logger.warning("Rejected non-positive mass %r for new %s; keeping %g.",
                           mass, body_type.display_name, body.mass)
    if name:
        body.name = name
    return body


def collapse_radius(mass: float) -> float:
    return mass * SCHWARZSCHILD_FACTOR


def _collapse(body: Body, radius: float) -> None:
    mass = body.mass
    setup_as(body, BodyType.BLACK_HOLE, keep_mass=True)
    body.mass = mass
    sphere = body.geometry[0]
    sphere.r1 = radius
    sphere.material.roughness = 0.0
    disk = body.geometry[1]
    disk.r1 = radius * COLLAPSE_DISK_OUTER
    disk.r2 = radius * COLLAPSE_DISK_INNER


def _next_type(body_type: BodyType, mass: float) -> Optional[BodyType]:
    if body_type == BodyType.STAR:
        if mass < MASS_LIMIT_DWARF_TO_STAR:
            return BodyType.BROWN_DWARF
    elif body_type == BodyType.BROWN_DWARF:
        if mass > MASS_LIMIT_DWARF_TO_STAR:
            return BodyType.STAR
        if mass < MASS_LIMIT_GIANT_TO_DWARF:
            return BodyType.GAS_GIANT
    elif body_type == BodyType.GAS_GIANT:
        if mass > MASS_LIMIT_GIANT_TO_DWARF:
            return BodyType.BROWN_DWARF
        if mass < MASS_LIMIT_ROCKY_TO_GIANT:
            return BodyType.ROCKY_PLANET
    elif body_type == BodyType.ROCKY_PLANET:
        if mass > MASS_LIMIT_ROCKY_TO_GIANT:
            return BodyType.GAS_GIANT
    return None


_TRANSITION_MESSAGES = {
    (BodyType.STAR, BodyType.BROWN_DWARF): "lost mass and became a Brown Dwarf",
    (BodyType.BROWN_DWARF, BodyType.STAR): "gained enough mass to ignite as a Star",
    (BodyType.BROWN_DWARF, BodyType.GAS_GIANT): "cooled into a Gas Giant",
    (BodyType.GAS_GIANT, BodyType.BROWN_DWARF): "became a Brown Dwarf",
    (BodyType.GAS_GIANT, BodyType.ROCKY_PLANET): "lost its atmosphere, revealing a Rocky Planet",
    (BodyType.ROCKY_PLANET, BodyType.GAS_GIANT): "accreted an atmosphere and became a Gas Giant",
}


def check(body: Body) -> Optional[BodyType]:
    """
    Apply at most one evolution step to body.

    Returns the new type when a transition happened, else None. Threshold
    transitions reset the mass to the new type's default; only collapse keeps it.
    """
    current = body.type
    if current == BodyType.BLACK_HOLE:
        return None

    radius = collapse_radius(body.mass)
    if body.radius < radius:
        logger.info("%s '%s' collapsed into a Black Hole!", current.display_name, body.name)
        _collapse(body, radius)
        return BodyType.BLACK_HOLE

    new_type = _next_type(current, body.mass)
    if new_type is None:
        return None
    logger.info("%s '%s' %s.", current.display_name, body.name,
                _TRANSITION_MESSAGES[(current, new_type)])
    setup_as(body, new_type)
    return new_type
