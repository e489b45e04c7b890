#!/usr/bin/env python3
"""
Orbit camera for the 3D viewport.

The camera circles a target point at `distance`, oriented by yaw (about +Y) and
pitch (about +X) in degrees. It produces CameraSnapshots for accumulation
control and projects world points to viewport pixels for the Pygame view.
"""
import math
from typing import Optional, Tuple

from .accumulation import CameraSnapshot
from .constants import (
    CAMERA_DISTANCE,
    CAMERA_FOV,
    CAMERA_PITCH,
    CAMERA_YAW,
    DRAG_SENSITIVITY,
    FOV_STEP,
    MAX_DISTANCE,
    MAX_FOV,
    MAX_PITCH,
    MIN_DISTANCE,
    MIN_FOV,
    MIN_PITCH,
    VIEW_HEIGHT,
    VIEW_WIDTH,
    ZOOM_SENSITIVITY,
)
from .quaternion import Quat, quat_conj, quat_from_axis_angle, quat_mult, quat_rotate
from .vector_utils import Vec3, ZERO, clamp, vec_scale, vec_sub


class OrbitCamera:
    """
    Target-centred camera driven by mouse drag and wheel zoom.
    """

    def __init__(self, target: Vec3 = ZERO, distance: float = CAMERA_DISTANCE):
        self.target = target
        self.distance = distance
        self.yaw = CAMERA_YAW
        self.pitch = CAMERA_PITCH
        self.fov = CAMERA_FOV
        self.viewport_size = (VIEW_WIDTH, VIEW_HEIGHT)

    def set_viewport_size(self, w: int, h: int) -> None:
        self.viewport_size = (w, h)

    def orbit_drag(self, dx_pixels: float, dy_pixels: float) -> None:
        self.yaw -= dx_pixels * DRAG_SENSITIVITY
        self.pitch = clamp(self.pitch + dy_pixels * DRAG_SENSITIVITY, MIN_PITCH, MAX_PITCH)

    def orbit_zoom(self, wheel: float) -> None:
        self.distance -= wheel * self.distance * ZOOM_SENSITIVITY
        self.distance = clamp(self.distance, MIN_DISTANCE, MAX_DISTANCE)

    def change_fov(self, steps: int) -> None:
        self.fov = clamp(self.fov + steps * FOV_STEP, MIN_FOV, MAX_FOV)

    def orientation(self) -> Quat:
        yaw_q = quat_from_axis_angle((0.0, 1.0, 0.0), math.radians(self.yaw))
        pitch_q = quat_from_axis_angle((1.0, 0.0, 0.0), math.radians(self.pitch))
        return quat_mult(yaw_q, pitch_q)

    def position(self) -> Vec3:
        forward = quat_rotate(self.orientation(), (0.0, 0.0, -1.0))
        return vec_sub(self.target, vec_scale(forward, self.distance))

    def snapshot(self, time_scale: float, selected_id: Optional[int]) -> CameraSnapshot:
        return CameraSnapshot(
            fov=self.fov,
            orbit_distance=self.distance,
            yaw=self.yaw,
            pitch=self.pitch,
            time_scale=time_scale,
            selected_id=selected_id,
        )

    def world_to_screen(self, pos: Vec3) -> Optional[Tuple[float, float, float]]:
        """
        Pinhole projection of pos.

        Returns (x_px, y_px, pixels_per_unit_at_depth), or None for points
        behind the camera.
        """
        rel = vec_sub(pos, self.position())
        local = quat_rotate(quat_conj(self.orientation()), rel)
        depth = -local[2]
        if depth <= 1e-6:
            return None
        w, h = self.viewport_size
        focal = (h / 2) / math.tan(math.radians(self.fov) / 2)
        scale = focal / depth
        return (w / 2 + local[0] * scale, h / 2 - local[1] * scale, scale)
