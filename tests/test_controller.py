"""Tests for SimulationController: frame ticks, editing and persistence."""
import dataclasses
import math

import pytest

from stellar.constants import DEFAULT_G
from stellar.data_models import BodyType
from stellar.evolution import create_body
from stellar.physics import orbital_velocity
from stellar.scene_io import SAVES_DIR


def _overlapping_pair():
    heavy = create_body(BodyType.ROCKY_PLANET, position=(0.0, 0.0, 0.0), mass=10.0)
    light = create_body(BodyType.ROCKY_PLANET, position=(0.5, 0.0, 0.0), mass=2.0)
    return heavy, light


def test_paused_tick_accumulates_and_does_not_move(controller, still_snapshot, make_tick):
    body_id = controller.add_body(create_body(BodyType.STAR))
    controller.world.get(body_id).velocity = (1.0, 0.0, 0.0)
    for _ in range(5):
        frame = controller.tick(make_tick(still_snapshot))
    assert frame.accumulated_frames == 5
    assert controller.world.get(body_id).position == (0.0, 0.0, 0.0)


def test_tick_scales_dt_by_time_scale(controller, still_snapshot, make_tick):
    body_id = controller.add_body(create_body(BodyType.STAR))
    controller.world.get(body_id).velocity = (1.0, 0.0, 0.0)
    snap = dataclasses.replace(still_snapshot, time_scale=2.0)
    controller.tick(make_tick(snap, dt=0.5))
    assert controller.world.get(body_id).position == pytest.approx((1.0, 0.0, 0.0))


def test_merge_resets_accumulation_and_selection(controller, still_snapshot, make_tick):
    heavy, light = _overlapping_pair()
    controller.world.add_body(heavy)
    light_id = controller.world.add_body(light)
    controller.select(light_id)
    snap = dataclasses.replace(still_snapshot, time_scale=0.0001, selected_id=light_id)
    for _ in range(3):
        controller.accumulation.observe(snap)
    assert controller.accumulation.accumulated_frames == 3

    frame = controller.tick(make_tick(snap))

    assert frame.step.absorbed_ids == [light_id]
    assert frame.accumulated_frames == 1
    assert frame.read_index == 0
    assert controller.selected_id is None
    assert len(frame.records) == 1


def test_camera_follows_selection_else_center_of_mass(controller, still_snapshot, make_tick):
    a = controller.add_body(create_body(BodyType.STAR, position=(-10.0, 0.0, 0.0)))
    controller.add_body(create_body(BodyType.STAR, position=(30.0, 0.0, 0.0)))
    frame = controller.tick(make_tick(still_snapshot))
    assert frame.camera_target == pytest.approx((10.0, 0.0, 0.0))
    controller.select(a)
    frame = controller.tick(make_tick(still_snapshot))
    assert frame.camera_target == (-10.0, 0.0, 0.0)


def test_transition_sets_message(controller, make_tick, still_snapshot):
    controller.add_body(create_body(BodyType.ROCKY_PLANET, mass=60.0, name="Terra"))
    snap = dataclasses.replace(still_snapshot, time_scale=1.0)
    controller.tick(make_tick(snap))
    assert controller.last_message == "'Terra' is now a Gas Giant."


def test_add_body_resets_accumulation(controller, still_snapshot):
    for _ in range(4):
        controller.accumulation.observe(still_snapshot)
    controller.add_body(create_body(BodyType.STAR))
    assert controller.accumulation.accumulated_frames == 1


def test_select_next_cycles(controller):
    ids = [controller.add_body(create_body(BodyType.ROCKY_PLANET, position=(i * 10.0, 0.0, 0.0)))
           for i in range(3)]
    assert controller.select_next() == ids[0]
    assert controller.select_next() == ids[1]
    assert controller.select_next(-1) == ids[0]
    assert controller.select_next(-1) == ids[2]
    controller.clear_selection()
    assert controller.selected_body() is None


def test_select_unknown_id_clears(controller):
    controller.select(42)
    assert controller.selected_id is None


def test_add_object_in_orbit_of_selection(controller):
    star_id = controller.add_body(create_body(BodyType.STAR))
    controller.select(star_id)
    body_id = controller.add_object(BodyType.ROCKY_PLANET, 1.0, 50.0, angle=0.0)
    body = controller.world.get(body_id)
    assert body.position == pytest.approx((50.0, 0.0, 0.0))
    expected = math.sqrt(DEFAULT_G * 801.0 / 50.0)
    assert body.velocity[0] == pytest.approx(0.0, abs=1e-9)
    assert body.velocity[1] == pytest.approx(0.0, abs=1e-9)
    assert abs(body.velocity[2]) == pytest.approx(expected, rel=1e-4)


def test_add_object_without_selection_starts_at_rest(controller):
    body_id = controller.add_object(BodyType.GAS_GIANT, None, 25.0, angle=math.pi / 2)
    body = controller.world.get(body_id)
    assert body.position == pytest.approx((0.0, 0.0, 25.0))
    assert body.velocity == (0.0, 0.0, 0.0)
    assert body.mass == 80.0


def test_delete_invalid_id(controller, caplog):
    with caplog.at_level("ERROR"):
        assert not controller.delete_object(99)
    assert "Invalid id" in caplog.text
    assert not controller.delete_selected()


def test_delete_selected(controller):
    body_id = controller.add_body(create_body(BodyType.STAR))
    controller.select(body_id)
    assert controller.delete_selected()
    assert len(controller.world) == 0
    assert controller.selected_id is None


def test_change_type_resets_mass(controller):
    body_id = controller.add_body(create_body(BodyType.ROCKY_PLANET, mass=20.0))
    assert controller.change_type(body_id, BodyType.STAR)
    body = controller.world.get(body_id)
    assert body.type == BodyType.STAR
    assert body.mass == 800.0
    assert not controller.change_type(99, BodyType.STAR)


def test_set_rings(controller):
    star_id = controller.add_body(create_body(BodyType.STAR))
    giant_id = controller.add_body(create_body(BodyType.GAS_GIANT, position=(50.0, 0.0, 0.0), mass=120.0))
    assert not controller.set_rings(star_id, True)
    assert controller.set_rings(giant_id, True)
    giant = controller.world.get(giant_id)
    assert len(giant.geometry) == 2
    assert giant.mass == 120.0
    assert controller.set_rings(giant_id, False)
    assert len(giant.geometry) == 1


def test_save_and_load_round_trip(controller, tmp_path):
    controller.add_body(create_body(BodyType.STAR, name="Big Sun"))
    controller.add_body(create_body(BodyType.GAS_GIANT, position=(60.0, 0.0, 0.0), has_rings=True))
    path = str(tmp_path / "pair.scene")
    assert controller.save_scene(path)
    assert controller.last_message == f"Scene saved to {path}"

    controller.delete_object(0)
    assert controller.load_scene(path)
    assert [b.name for b in controller.world] == ["Big Sun", "Gas Giant"]
    assert controller.world.ids() == [0, 1]


def test_failed_load_leaves_world_unchanged(controller, tmp_path):
    controller.add_body(create_body(BodyType.STAR))
    bad = tmp_path / "bad.scene"
    bad.write_text("1\n0 Broken\n")
    assert not controller.load_scene(str(bad))
    assert controller.last_message.startswith("Failed to load scene")
    assert len(controller.world) == 1
    assert not controller.load_scene(str(tmp_path / "missing.scene"))
    assert len(controller.world) == 1


def test_load_bundled_scene(controller):
    assert controller.load_scene(f"{SAVES_DIR}/binary_star.scene")
    assert len(controller.world) == 3
    assert controller.accumulation.accumulated_frames == 1


# -----------------------
# Orbital velocity helper
# -----------------------

def test_orbital_velocity_without_parent_is_zero():
    assert orbital_velocity(0.0, 1.0, (1.0, 0.0, 0.0), 10.0) == (0.0, 0.0, 0.0)
    assert orbital_velocity(100.0, 1.0, (1.0, 0.0, 0.0), 0.0) == (0.0, 0.0, 0.0)


def test_circular_orbit_matches_closed_form():
    v = orbital_velocity(800.0, 0.0, (1.0, 0.0, 0.0), 40.0)
    speed = math.sqrt(sum(c * c for c in v))
    assert speed == pytest.approx(math.sqrt(DEFAULT_G * 800.0 / 40.0), rel=1e-5)


def test_eccentric_orbit_is_faster_at_periapsis():
    circular = orbital_velocity(800.0, 0.0, (1.0, 0.0, 0.0), 40.0)
    eccentric = orbital_velocity(800.0, 0.0, (1.0, 0.0, 0.0), 40.0, eccentricity=0.5)
    assert abs(eccentric[2]) > abs(circular[2])


def test_inclination_tilts_velocity():
    v = orbital_velocity(800.0, 0.0, (1.0, 0.0, 0.0), 40.0, inclination_deg=90.0)
    speed = math.sqrt(DEFAULT_G * 800.0 / 40.0)
    assert v[0] == pytest.approx(0.0, abs=1e-9)
    assert abs(v[1]) == pytest.approx(speed, rel=1e-5)
    assert v[2] == pytest.approx(0.0, abs=1e-6)


def test_unbound_orbit_request_is_zero(caplog):
    with caplog.at_level("WARNING"):
        v = orbital_velocity(800.0, 0.0, (1.0, 0.0, 0.0), 40.0, eccentricity=-2.0)
    assert v == (0.0, 0.0, 0.0)
    assert "unstable" in caplog.text


# -----------------------
# Selected body editing
# -----------------------

def test_transform_edits_sync_geometry_and_reset_accumulation(controller, still_snapshot):
    body_id = controller.add_body(create_body(BodyType.GAS_GIANT, has_rings=True))
    for _ in range(4):
        controller.accumulation.observe(still_snapshot)

    assert controller.set_position(body_id, (1.0, 2.0, 3.0))
    assert controller.accumulation.accumulated_frames == 1
    body = controller.world.get(body_id)
    assert all(record.center == (1.0, 2.0, 3.0) for record in body.geometry)

    controller.accumulation.observe(still_snapshot)
    assert controller.set_orientation(body_id, (0.0, 0.0, 90.0))
    assert controller.accumulation.accumulated_frames == 1
    expected = (0.0, 0.0, math.sin(math.pi / 4), math.cos(math.pi / 4))
    assert body.orientation == pytest.approx(expected)
    assert body.geometry[1].rotation == body.orientation


def test_velocity_spin_and_mass_edits(controller):
    body_id = controller.add_body(create_body(BodyType.ROCKY_PLANET))
    assert controller.set_velocity(body_id, (0.5, 0.0, -0.5))
    assert controller.set_angular_velocity(body_id, (0.0, 1.0, 0.0))
    assert controller.set_mass(body_id, 12.0)
    body = controller.world.get(body_id)
    assert body.velocity == (0.5, 0.0, -0.5)
    assert body.angular_velocity == (0.0, 1.0, 0.0)
    assert body.mass == 12.0
    assert not controller.set_mass(body_id, 0.0)
    assert body.mass == 12.0


def test_edits_on_unknown_body_fail(controller, caplog):
    with caplog.at_level("ERROR"):
        assert not controller.set_position(5, (0.0, 0.0, 0.0))
        assert not controller.set_velocity(5, (0.0, 0.0, 0.0))
        assert not controller.edit_record(5, 0, r1=1.0)
    assert "Invalid id for object edit" in caplog.text


def test_edit_record_material_and_radii(controller):
    body_id = controller.add_body(create_body(BodyType.GAS_GIANT, has_rings=True))
    assert controller.edit_record(body_id, 1, r1=5.0, r2=2.0, albedo=(0.2, 1.5, -1.0),
                                  emission=1e9, metallic=0.4, roughness=2.0, texture_id=3)
    ring = controller.world.get(body_id).geometry[1]
    assert (ring.r1, ring.r2) == (5.0, 2.0)
    assert ring.material.albedo == (0.2, 1.0, 0.0)
    assert ring.material.emission == 50000.0
    assert ring.material.metallic == 0.4
    assert ring.material.roughness == 1.0
    assert ring.material.texture_id == 3


def test_edit_record_rejects_bad_input(controller):
    body_id = controller.add_body(create_body(BodyType.STAR))
    assert not controller.edit_record(body_id, 1, r1=3.0)
    assert not controller.edit_record(body_id, 0, r1=0.0)
    assert not controller.edit_record(body_id, 0, r2=-1.0)
    assert controller.world.get(body_id).radius == 8.0


def test_shrinking_sphere_below_collapse_radius_collapses(controller, still_snapshot, make_tick):
    body_id = controller.add_body(create_body(BodyType.ROCKY_PLANET, mass=40.0))
    assert controller.edit_record(body_id, 0, r1=0.1)
    snap = dataclasses.replace(still_snapshot, time_scale=1.0)
    frame = controller.tick(make_tick(snap))
    body = controller.world.get(body_id)
    assert frame.step.transitions == {body_id: BodyType.BLACK_HOLE}
    assert body.type == BodyType.BLACK_HOLE
    assert body.mass == 40.0
    assert body.radius == pytest.approx(0.2)
