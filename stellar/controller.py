#!/usr/bin/env python3
"""
Simulation controller: the host-facing facade over the physics world.

What this module does
- Owns the PhysicsWorld, the AccumulationController and the current selection.
- Runs one frame per tick(): accumulation bookkeeping, then a physics step, then
  the renderer feed (render records plus accumulation counts).
- Implements editing requests from the UI (add in orbit, delete, change type,
  toggle rings, edit transform, spin and materials, select, save/load) and
  resets accumulation whenever the bodies change, whoever changed them.

Per-frame settings (time scale, gravity, G, camera) are passed in a TickInput
each frame; the controller keeps no copy of them.

Everything runs on the host's frame loop thread; no locking is needed.
"""
import logging
import math
import random
from dataclasses import dataclass
from typing import List, Optional

from . import evolution, scene_io
from .accumulation import AccumulationController, CameraSnapshot
from .constants import DEFAULT_G, MAX_EMISSION, MAX_RENDER_OBJECTS
from .data_models import Body, BodyType, RenderRecord
from .errors import SimulationError
from .physics import PhysicsWorld, StepResult, orbital_velocity
from .quaternion import quat_from_euler
from .vector_utils import Vec3, ZERO, clamp, vec_add, vec_scale

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TickInput:
    """Host inputs for one frame."""
    dt: float
    time_scale: float
    gravity_enabled: bool
    G: float
    snapshot: CameraSnapshot


@dataclass
class FrameResult:
    """What the renderer consumes after a tick."""
    records: List[RenderRecord]
    accumulated_frames: int
    read_index: int
    write_index: int
    center_of_mass: Vec3
    camera_target: Vec3
    step: StepResult


class SimulationController:
    """
    Shared state between the viewport and the control panel.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self.world = PhysicsWorld()
        self.accumulation = AccumulationController()
        self.selected_id: Optional[int] = None
        self.center_of_mass: Vec3 = ZERO
        self.last_message: Optional[str] = None
        self.render_limit = MAX_RENDER_OBJECTS
        self._rng = rng or random.Random()

    # -----------------------
    # Frame
    # -----------------------

    def tick(self, tick: TickInput) -> FrameResult:
        self.accumulation.observe(tick.snapshot)

        result = self.world.step(tick.dt * tick.time_scale, tick.gravity_enabled, tick.G,
                                 time_scale=tick.time_scale)
        self.center_of_mass = result.center_of_mass
        if result.structure_changed:
            self._structure_changed()
        for body_id, new_type in result.transitions.items():
            body = self.world.get(body_id)
            self.last_message = f"'{body.name}' is now a {new_type.display_name}."

        return FrameResult(
            records=self.world.render_records(self.render_limit),
            accumulated_frames=self.accumulation.accumulated_frames,
            read_index=self.accumulation.read_index,
            write_index=self.accumulation.write_index,
            center_of_mass=self.center_of_mass,
            camera_target=self.camera_target(),
            step=result,
        )

    def camera_target(self) -> Vec3:
        """Selected body's position, else the centre of mass."""
        body = self.selected_body()
        if body is not None:
            return body.position
        return self.center_of_mass

    def _structure_changed(self) -> None:
        self.accumulation.reset()
        if self.selected_id is not None and self.selected_id not in self.world:
            self.selected_id = None

    # -----------------------
    # Selection
    # -----------------------

    def selected_body(self) -> Optional[Body]:
        return self.world.get(self.selected_id)

    def select(self, body_id: Optional[int]) -> None:
        self.selected_id = body_id if body_id in self.world else None

    def clear_selection(self) -> None:
        self.selected_id = None

    def select_next(self, step: int = 1) -> Optional[int]:
        """Cycle the selection through bodies in world order (step may be negative)."""
        ids = self.world.ids()
        if not ids:
            self.selected_id = None
            return None
        if self.selected_id in ids:
            index = (ids.index(self.selected_id) + step) % len(ids)
        else:
            index = 0 if step > 0 else len(ids) - 1
        self.selected_id = ids[index]
        return self.selected_id

    # -----------------------
    # Editing
    # -----------------------

    def add_body(self, body: Body) -> int:
        body_id = self.world.add_body(body)
        self._structure_changed()
        logger.info("Added '%s'. Total scene objects: %d", body.name, len(self.world))
        return body_id

    def add_object(self, body_type: BodyType, mass: Optional[float], distance: float,
                   eccentricity: float = 0.0, inclination: float = 0.0,
                   G: float = DEFAULT_G, angle: Optional[float] = None) -> int:
        """
        Spawn a body in orbit around the selected body, or at `distance` from the
        origin when nothing is selected.

        The body is placed on the XZ plane at `angle` radians (random when None).
        """
        parent = self.selected_body()
        if angle is None:
            angle = self._rng.uniform(0.0, 2.0 * math.pi)
        direction = (math.cos(angle), 0.0, math.sin(angle))

        parent_pos = parent.position if parent else ZERO
        parent_vel = parent.velocity if parent else ZERO
        parent_mass = parent.mass if parent else 0.0

        body = evolution.create_body(body_type, vec_add(parent_pos, vec_scale(direction, distance)), mass)
        rel_vel = orbital_velocity(parent_mass, body.mass, direction, distance,
                                   eccentricity, inclination, G)
        body.velocity = vec_add(parent_vel, rel_vel)
        return self.add_body(body)

    def delete_object(self, body_id: Optional[int]) -> bool:
        if body_id is None or not self.world.remove_body(body_id):
            logger.error("Invalid id for object deletion: %r", body_id)
            return False
        self._structure_changed()
        logger.info("Deleted object. Total scene objects: %d", len(self.world))
        return True

    def delete_selected(self) -> bool:
        return self.delete_object(self.selected_id)

    def change_type(self, body_id: int, body_type: BodyType) -> bool:
        """Re-create a body as body_type with that type's default mass."""
        body = self.world.get(body_id)
        if body is None:
            return False
        evolution.setup_as(body, body_type)
        self.accumulation.reset()
        return True

    def set_rings(self, body_id: int, has_rings: bool) -> bool:
        body = self.world.get(body_id)
        if body is None or not body.type.supports_rings:
            return False
        if body.has_rings != has_rings:
            body.has_rings = has_rings
            evolution.setup_as(body, body.type, keep_mass=True)
            self.accumulation.reset()
        return True

    def _edited(self, body: Body) -> None:
        body.sync_geometry()
        self.accumulation.reset()

    def _editable(self, body_id: int) -> Optional[Body]:
        body = self.world.get(body_id)
        if body is None:
            logger.error("Invalid id for object edit: %r", body_id)
        return body

    def set_mass(self, body_id: int, mass: float) -> bool:
        body = self._editable(body_id)
        if body is None:
            return False
        if mass <= 0:
            logger.error("Rejected non-positive mass %r for '%s'", mass, body.name)
            return False
        body.mass = float(mass)
        self._edited(body)
        return True

    def set_position(self, body_id: int, position: Vec3) -> bool:
        body = self._editable(body_id)
        if body is None:
            return False
        body.position = tuple(float(c) for c in position)
        self._edited(body)
        return True

    def set_velocity(self, body_id: int, velocity: Vec3) -> bool:
        body = self._editable(body_id)
        if body is None:
            return False
        body.velocity = tuple(float(c) for c in velocity)
        self._edited(body)
        return True

    def set_orientation(self, body_id: int, euler_deg: Vec3) -> bool:
        """Set orientation from (roll, pitch, yaw) in degrees."""
        body = self._editable(body_id)
        if body is None:
            return False
        body.orientation = quat_from_euler(euler_deg)
        self._edited(body)
        return True

    def set_angular_velocity(self, body_id: int, angular_velocity: Vec3) -> bool:
        body = self._editable(body_id)
        if body is None:
            return False
        body.angular_velocity = tuple(float(c) for c in angular_velocity)
        self._edited(body)
        return True

    def edit_record(self, body_id: int, index: int, r1: Optional[float] = None,
                    r2: Optional[float] = None, albedo: Optional[Vec3] = None,
                    emission: Optional[float] = None, metallic: Optional[float] = None,
                    roughness: Optional[float] = None, texture_id: Optional[int] = None) -> bool:
        """
        Edit one render record of a body. Fields left as None are unchanged.

        Record 0 is the body's sphere, so its r1 is the collision radius; a value
        under the collapse radius turns the body into a black hole on the next
        step. Radii must be positive (r2 may be 0); metallic and roughness are
        clamped to [0, 1] and emission to [0, MAX_EMISSION].
        """
        body = self._editable(body_id)
        if body is None:
            return False
        if not 0 <= index < len(body.geometry):
            logger.error("Invalid render record %r for '%s'", index, body.name)
            return False
        if (r1 is not None and r1 <= 0) or (r2 is not None and r2 < 0):
            logger.error("Rejected radii r1=%r r2=%r for '%s'", r1, r2, body.name)
            return False

        record = body.geometry[index]
        material = record.material
        if r1 is not None:
            record.r1 = float(r1)
        if r2 is not None:
            record.r2 = float(r2)
        if albedo is not None:
            material.albedo = tuple(clamp(float(c), 0.0, 1.0) for c in albedo)
        if emission is not None:
            material.emission = clamp(float(emission), 0.0, MAX_EMISSION)
        if metallic is not None:
            material.metallic = clamp(float(metallic), 0.0, 1.0)
        if roughness is not None:
            material.roughness = clamp(float(roughness), 0.0, 1.0)
        if texture_id is not None:
            material.texture_id = int(texture_id)
        self._edited(body)
        return True

    def replace_bodies(self, bodies: List[Body]) -> None:
        self.world.replace_bodies(bodies)
        self.selected_id = None
        self.center_of_mass = self.world.center_of_mass()
        self._structure_changed()

    # -----------------------
    # Persistence
    # -----------------------

    def save_scene(self, path: str) -> bool:
        try:
            scene_io.save_scene(path, self.world.bodies)
        except SimulationError as exc:
            logger.error("%s", exc)
            self.last_message = str(exc)
            return False
        self.last_message = f"Scene saved to {path}"
        return True

    def load_scene(self, path: str) -> bool:
        """Replace the world with a scene file; on failure the world is unchanged."""
        try:
            bodies = scene_io.load_scene(path)
        except SimulationError as exc:
            logger.error("Failed to load %s: %s", path, exc)
            self.last_message = f"Failed to load scene: {exc}"
            return False
        self.replace_bodies(bodies)
        self.last_message = f"Scene loaded from {path}"
        return True
