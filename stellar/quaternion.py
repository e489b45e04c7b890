#!/usr/bin/env python3
"""
Minimal quaternion algebra for body orientation and orbit inclination.

Quaternions are (x, y, z, w) tuples with the scalar part last, matching the
layout the renderer expects for its rotation records.
"""
import math
from typing import Tuple

from .vector_utils import Vec3

Quat = Tuple[float, float, float, float]

IDENTITY: Quat = (0.0, 0.0, 0.0, 1.0)


def quat_from_axis_angle(axis: Vec3, angle_rad: float) -> Quat:
    """Rotation of angle_rad about axis. The axis is expected to be unit length."""
    half = angle_rad * 0.5
    s = math.sin(half)
    return (axis[0] * s, axis[1] * s, axis[2] * s, math.cos(half))


def quat_mult(q1: Quat, q2: Quat) -> Quat:
    """Hamilton product q1 * q2 (apply q2 first, then q1)."""
    x1, y1, z1, w1 = q1
    x2, y2, z2, w2 = q2
    return (w1 * x2 + x1 * w2 + y1 * z2 - z1 * y2,
            w1 * y2 - x1 * z2 + y1 * w2 + z1 * x2,
            w1 * z2 + x1 * y2 - y1 * x2 + z1 * w2,
            w1 * w2 - x1 * x2 - y1 * y2 - z1 * z2)


def quat_conj(q: Quat) -> Quat:
    return (-q[0], -q[1], -q[2], q[3])


def quat_norm(q: Quat) -> Quat:
    l = math.sqrt(q[0] * q[0] + q[1] * q[1] + q[2] * q[2] + q[3] * q[3])
    if l == 0:
        return IDENTITY
    return (q[0] / l, q[1] / l, q[2] / l, q[3] / l)


def quat_rotate(q: Quat, v: Vec3) -> Vec3:
    """Rotate vector v by unit quaternion q (q * v * q^-1)."""
    p = (v[0], v[1], v[2], 0.0)
    r = quat_mult(quat_mult(q, p), quat_conj(q))
    return (r[0], r[1], r[2])


def quat_from_euler(euler_deg: Vec3) -> Quat:
    """
    Orientation from (roll, pitch, yaw) in degrees about X, Y and Z.

    Applied roll first, then pitch, then yaw; quat_to_euler is the inverse.
    """
    roll, pitch, yaw = (math.radians(a) for a in euler_deg)
    qx = quat_from_axis_angle((1.0, 0.0, 0.0), roll)
    qy = quat_from_axis_angle((0.0, 1.0, 0.0), pitch)
    qz = quat_from_axis_angle((0.0, 0.0, 1.0), yaw)
    return quat_mult(qz, quat_mult(qy, qx))


def quat_to_euler(q: Quat) -> Vec3:
    """(roll, pitch, yaw) in degrees; pitch saturates at +/-90."""
    x, y, z, w = q
    roll = math.atan2(2 * (w * x + y * z), 1 - 2 * (x * x + y * y))
    sinp = 2 * (w * y - z * x)
    pitch = math.copysign(math.pi / 2, sinp) if abs(sinp) >= 1 else math.asin(sinp)
    yaw = math.atan2(2 * (w * z + x * y), 1 - 2 * (y * y + z * z))
    return (math.degrees(roll), math.degrees(pitch), math.degrees(yaw))
