"""Test fixtures for Stellar Forge.

Provides small reusable worlds and a controller for unit and integration tests.
"""
import random

import pytest

from stellar.accumulation import CameraSnapshot
from stellar.controller import SimulationController, TickInput
from stellar.data_models import BodyType
from stellar.evolution import create_body
from stellar.physics import PhysicsWorld


@pytest.fixture
def world():
    """Empty PhysicsWorld."""
    return PhysicsWorld()


@pytest.fixture
def three_body_world():
    """
    Three rocky planets far apart (no merges), at rest.

    Returns:
      PhysicsWorld with bodies at x = 0, 10 and 30 with masses 5, 10 and 20.
    """
    w = PhysicsWorld()
    for x, mass in ((0.0, 5.0), (10.0, 10.0), (30.0, 20.0)):
        body = create_body(BodyType.ROCKY_PLANET, position=(x, 0.0, 0.0), mass=mass)
        body.angular_velocity = (0.0, 0.0, 0.0)
        w.add_body(body)
    return w


@pytest.fixture
def controller():
    """Controller with a seeded RNG so spawn angles are reproducible."""
    return SimulationController(rng=random.Random(1234))


@pytest.fixture
def still_snapshot():
    return CameraSnapshot(fov=45.0, orbit_distance=100.0, yaw=0.0, pitch=-30.0, time_scale=0.0)


@pytest.fixture
def make_tick():
    """Factory for TickInput built around a camera snapshot."""
    def _make(snapshot, dt=1 / 60.0, gravity=True, G=0.5):
        return TickInput(dt=dt, time_scale=snapshot.time_scale, gravity_enabled=gravity, G=G,
                         snapshot=snapshot)
    return _make
