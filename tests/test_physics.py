"""Tests for PhysicsWorld stepping: gravity, merging, integration and spin."""
import math

import pytest

from stellar.constants import DEFAULT_G
from stellar.data_models import BodyType
from stellar.evolution import create_body
from stellar.physics import PhysicsWorld


def _rocky(x, mass, vx=0.0, radius=None):
    body = create_body(BodyType.ROCKY_PLANET, position=(x, 0.0, 0.0), mass=mass)
    body.velocity = (vx, 0.0, 0.0)
    body.angular_velocity = (0.0, 0.0, 0.0)
    if radius is not None:
        body.radius = radius
    return body


def _momentum(w):
    return tuple(sum(b.mass * b.velocity[k] for b in w) for k in range(3))


def test_add_body_assigns_increasing_ids(world):
    a = world.add_body(_rocky(0.0, 1.0))
    b = world.add_body(_rocky(5.0, 1.0))
    assert (a, b) == (0, 1)
    assert world.ids() == [0, 1]
    assert world.next_body_id == 2
    assert 1 in world and 7 not in world


def test_center_of_mass_is_mass_weighted(world):
    world.add_body(_rocky(0.0, 1.0))
    world.add_body(_rocky(9.0, 2.0))
    assert world.center_of_mass() == pytest.approx((6.0, 0.0, 0.0))


def test_center_of_mass_of_empty_world_is_origin(world):
    assert world.center_of_mass() == (0.0, 0.0, 0.0)


def test_gravity_single_pair(world):
    world.add_body(_rocky(0.0, 5.0))
    world.add_body(_rocky(10.0, 10.0))
    world.step(0.1, gravity_enabled=True, G=DEFAULT_G)
    a, b = world.bodies
    force = DEFAULT_G * 5.0 * 10.0 / 100.0
    assert a.velocity[0] == pytest.approx(force / 5.0 * 0.1)
    assert b.velocity[0] == pytest.approx(-force / 10.0 * 0.1)


def test_gravity_counts_each_pair_once(three_body_world):
    dt = 0.1
    three_body_world.step(dt, gravity_enabled=True, G=DEFAULT_G)
    b0, b1, b2 = three_body_world.bodies

    f01 = DEFAULT_G * 5.0 * 10.0 / 10.0 ** 2
    f02 = DEFAULT_G * 5.0 * 20.0 / 30.0 ** 2
    f12 = DEFAULT_G * 10.0 * 20.0 / 20.0 ** 2
    assert b0.velocity[0] == pytest.approx((f01 + f02) / 5.0 * dt)
    assert b1.velocity[0] == pytest.approx((f12 - f01) / 10.0 * dt)
    assert b2.velocity[0] == pytest.approx(-(f02 + f12) / 20.0 * dt)


def test_momentum_conserved_over_many_steps(three_body_world):
    for _ in range(200):
        three_body_world.step(1 / 60.0)
    assert _momentum(three_body_world) == pytest.approx((0.0, 0.0, 0.0), abs=1e-9)
    assert three_body_world.total_mass() == pytest.approx(35.0)


def test_softening_floors_squared_distance(world):
    world.add_body(_rocky(0.0, 2.0, radius=0.1))
    world.add_body(_rocky(0.5, 3.0, radius=0.1))
    world.step(0.01)
    a, b = world.bodies
    force = DEFAULT_G * 2.0 * 3.0 / 1.0
    assert a.velocity[0] == pytest.approx(force / 2.0 * 0.01)
    assert b.velocity[0] == pytest.approx(-force / 3.0 * 0.01)


def test_gravity_disabled_keeps_velocity(world):
    world.add_body(_rocky(0.0, 5.0, vx=1.0))
    world.add_body(_rocky(10.0, 10.0))
    world.step(0.5, gravity_enabled=False)
    a, b = world.bodies
    assert a.velocity == (1.0, 0.0, 0.0)
    assert b.velocity == (0.0, 0.0, 0.0)
    assert a.position == pytest.approx((0.5, 0.0, 0.0))


def test_merge_conserves_mass_and_momentum(world):
    world.add_body(_rocky(0.0, 10.0, vx=1.0))
    world.add_body(_rocky(0.8, 5.0, vx=-1.0))
    before = _momentum(world)

    result = world.step(0.01)

    assert result.absorbed_ids == [1]
    assert result.structure_changed
    assert len(world) == 1
    survivor = world.get(0)
    assert survivor.mass == pytest.approx(15.0)
    assert _momentum(world) == pytest.approx(before)
    assert survivor.velocity[0] == pytest.approx(1.0 / 3.0)
    assert survivor.radius == pytest.approx((2 * 0.5 ** 3) ** (1 / 3))


def test_heavier_body_survives_regardless_of_order(world):
    world.add_body(_rocky(0.0, 2.0))
    world.add_body(_rocky(0.5, 7.0))
    world.step(0.01)
    assert world.ids() == [1]
    assert world.get(1).mass == pytest.approx(9.0)


def test_equal_masses_first_body_survives(world):
    world.add_body(_rocky(0.0, 5.0))
    world.add_body(_rocky(0.5, 5.0))
    world.step(0.01)
    assert world.ids() == [0]
    assert world.get(0).position == pytest.approx((0.0, 0.0, 0.0))


def test_body_merges_at_most_once_per_step(world):
    world.add_body(_rocky(0.0, 1.0))
    world.add_body(_rocky(0.5, 2.0))
    world.add_body(_rocky(0.9, 3.0))

    first = world.step(0.001)
    assert first.absorbed_ids == [0]
    assert len(world) == 2

    second = world.step(0.001)
    assert second.absorbed_ids == [2]
    assert world.ids() == [1]
    assert world.get(1).mass == pytest.approx(6.0)


def test_coincident_pair_is_skipped(world):
    world.add_body(_rocky(0.0, 5.0))
    world.add_body(_rocky(0.0, 5.0))
    result = world.step(0.1)
    assert result.absorbed_ids == []
    assert len(world) == 2
    for body in world:
        assert body.velocity == (0.0, 0.0, 0.0)
        assert all(math.isfinite(c) for c in body.position)


def test_non_positive_dt_changes_nothing(three_body_world):
    before = [(b.position, b.velocity, b.orientation) for b in three_body_world]
    three_body_world.step(0.0)
    three_body_world.step(-1.0)
    after = [(b.position, b.velocity, b.orientation) for b in three_body_world]
    assert after == before
    assert all(len(b.trail) == 0 for b in three_body_world)


def test_spin_integration(world):
    body = _rocky(0.0, 1.0)
    body.angular_velocity = (0.0, 1.0, 0.0)
    world.add_body(body)
    world.step(0.5, gravity_enabled=False)
    expected = (0.0, math.sin(0.25), 0.0, math.cos(0.25))
    assert body.orientation == pytest.approx(expected)
    assert body.geometry[0].rotation == body.orientation


def test_tiny_spin_is_ignored(world):
    body = _rocky(0.0, 1.0)
    body.angular_velocity = (0.0, 1e-9, 0.0)
    world.add_body(body)
    world.step(0.1)
    assert body.orientation == (0.0, 0.0, 0.0, 1.0)


def test_geometry_follows_position(world):
    body = _rocky(0.0, 1.0, vx=2.0)
    world.add_body(body)
    world.step(0.5, gravity_enabled=False)
    assert body.geometry[0].center == pytest.approx((1.0, 0.0, 0.0))


def test_step_reports_evolution(world):
    body_id = world.add_body(_rocky(0.0, 80.0))
    result = world.step(0.01)
    assert result.transitions == {body_id: BodyType.GAS_GIANT}
    assert world.get(body_id).mass == pytest.approx(80.0)
    assert not result.structure_changed


def test_step_updates_trails(three_body_world):
    three_body_world.step(0.01)
    three_body_world.step(0.01)
    for body in three_body_world:
        assert len(body.trail) == 2


def test_potential_energy_is_softened(world):
    world.add_body(_rocky(0.0, 2.0, radius=0.1))
    world.add_body(_rocky(0.5, 3.0, radius=0.1))
    assert world.potential_energy(G=1.0) == pytest.approx(-6.0)


def test_kinetic_energy(world):
    world.add_body(_rocky(0.0, 2.0, vx=3.0))
    assert world.kinetic_energy() == pytest.approx(9.0)


def test_render_records_capacity(world, caplog):
    for i in range(9):
        body = create_body(BodyType.GAS_GIANT, position=(i * 100.0, 0.0, 0.0), has_rings=True)
        world.add_body(body)
    with caplog.at_level("WARNING"):
        records = world.render_records(limit=16)
    assert len(records) == 16
    assert "Exceeded maximum number of render objects" in caplog.text


def test_render_records_within_capacity(world, caplog):
    world.add_body(create_body(BodyType.BLACK_HOLE))
    with caplog.at_level("WARNING"):
        records = world.render_records()
    assert len(records) == 2
    assert caplog.text == ""
