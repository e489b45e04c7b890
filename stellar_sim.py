#!/usr/bin/env python3
"""
Stellar Forge application entry point: viewport, control panel and frame loop.

What this module does
- Opens a Pygame viewport that draws the renderer feed (spheres and disks),
  body trails and a HUD with the temporal-accumulation state.
- Opens a Dear PyGui control panel for scenes, global physics settings, adding
  bodies in orbit and editing the selected body.
- Drives both from one frame loop: input, panel, SimulationController.tick,
  then drawing. Dear PyGui frames are rendered manually so no second thread is
  needed and the simulation never runs concurrently with the UI.

Controls (viewport)
- Left-drag: orbit the camera | Wheel: zoom | +/-: field of view
- Left/Right arrows: cycle the selected body | Up/Down: clear selection
- Space: pause/resume | Esc: quit

Running
1) Install dependencies: `pip install -e .`
2) Run this module: `python stellar_sim.py [--scene saves/binary_star.scene]`
"""

import argparse
import logging
import math
import os

import pygame
from pygame import gfxdraw
import dearpygui.dearpygui as dpg

from stellar import trails
from stellar.camera import OrbitCamera
from stellar.constants import (
    BACKGROUND_COLOR,
    DEFAULT_G,
    FRAME_DT,
    HUD_COLOR,
    MAX_EMISSION,
    SAFE_COORD_LIMIT,
    SELECTION_COLOR,
    VIEW_HEIGHT,
    VIEW_WIDTH,
)
from stellar.controller import FrameResult, SimulationController, TickInput
from stellar.data_models import BodyType, RenderRecord, ShapeKind
from stellar.evolution import TYPE_TABLE
from stellar.quaternion import quat_to_euler
from stellar.scene_io import SAVES_DIR, SCENE_EXTENSION, list_scenes, scene_path
from stellar.utils import try_float

logger = logging.getLogger("stellar_sim")

ADDABLE_TYPES = [BodyType.STAR, BodyType.BROWN_DWARF, BodyType.GAS_GIANT, BodyType.ROCKY_PLANET]
TYPE_BY_NAME = {t.display_name: t for t in BodyType}

# ============================================================
# Pygame Viewport
# ============================================================


class Viewport:
    """
    Pygame window: draws render records, trails and HUD; handles camera input.
    """
    def __init__(self, sim: SimulationController, camera: OrbitCamera):
        self.sim = sim
        self.camera = camera
        self.surface = None
        self.orbiting = False
        self.last_mouse = (0, 0)
        self.running = True
        self.toggle_pause_requested = False

    def open(self):
        pygame.init()
        pygame.display.set_caption("Stellar Forge - Viewport")
        self.surface = pygame.display.set_mode((VIEW_WIDTH, VIEW_HEIGHT), pygame.RESIZABLE)
        self.camera.set_viewport_size(VIEW_WIDTH, VIEW_HEIGHT)

    def handle_events(self):
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False

            elif event.type == pygame.VIDEORESIZE:
                self.surface = pygame.display.set_mode((event.w, event.h), pygame.RESIZABLE)
                self.camera.set_viewport_size(event.w, event.h)

            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    self.running = False
                elif event.key in (pygame.K_EQUALS, pygame.K_PLUS, pygame.K_KP_PLUS):
                    self.camera.change_fov(-1)
                elif event.key in (pygame.K_MINUS, pygame.K_KP_MINUS):
                    self.camera.change_fov(1)
                elif event.key == pygame.K_LEFT:
                    self.sim.select_next(-1)
                elif event.key == pygame.K_RIGHT:
                    self.sim.select_next(1)
                elif event.key in (pygame.K_UP, pygame.K_DOWN):
                    self.sim.clear_selection()
                elif event.key == pygame.K_SPACE:
                    self.toggle_pause_requested = True

            elif event.type == pygame.MOUSEWHEEL:
                self.camera.orbit_zoom(event.y)

            elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                self.orbiting = True
                self.last_mouse = event.pos

            elif event.type == pygame.MOUSEBUTTONUP and event.button == 1:
                self.orbiting = False

            elif event.type == pygame.MOUSEMOTION and self.orbiting:
                dx = event.pos[0] - self.last_mouse[0]
                dy = self.last_mouse[1] - event.pos[1]
                self.camera.orbit_drag(dx, dy)
                self.last_mouse = event.pos

    def _draw_record(self, surf, record: RenderRecord, selected: bool):
        projected = self.camera.world_to_screen(record.center)
        if projected is None:
            return
        sx, sy, scale = projected
        center = _safe_point((sx, sy))
        if center is None:
            return
        color = _shade(record)
        r_px = int(min(max(record.r1 * scale, 2), 400))
        if record.kind == ShapeKind.SPHERE:
            gfxdraw.filled_circle(surf, center[0], center[1], r_px, color)
            gfxdraw.aacircle(surf, center[0], center[1], r_px, color)
            if selected:
                gfxdraw.aacircle(surf, center[0], center[1], r_px + 4, SELECTION_COLOR)
        else:
            # Disks are drawn face-on as an annulus outline.
            gfxdraw.aacircle(surf, center[0], center[1], r_px, color)
            inner = int(max(record.r2 * scale, 1))
            if inner < r_px:
                gfxdraw.aacircle(surf, center[0], center[1], inner, color)

    def draw(self, frame: FrameResult, show_trails: bool, time_scale: float):
        surf = self.surface
        surf.fill(BACKGROUND_COLOR)

        if show_trails:
            for body in self.sim.world:
                pts = []
                for pos, _age in trails.vertices(body, frame.center_of_mass):
                    projected = self.camera.world_to_screen(pos)
                    if projected is None:
                        continue
                    pt = _safe_point(projected[:2])
                    if pt:
                        pts.append(pt)
                if len(pts) > 1:
                    pygame.draw.aalines(surf, _shade(body.geometry[0]), False, pts)

        selected = self.sim.selected_body()
        selected_sphere = selected.geometry[0] if selected else None
        for record in frame.records:
            self._draw_record(surf, record, record is selected_sphere)

        draw_text(surf, "Drag: orbit | Wheel: zoom | +/-: FOV | Left/Right: select | Up/Down: deselect | Space: pause",
                  10, 10, HUD_COLOR)
        draw_text(surf, f"Bodies: {len(self.sim.world)}  Time scale: {time_scale:.2f}x  "
                        f"Accumulated frames: {frame.accumulated_frames}  "
                        f"Buffers: read {frame.read_index} / write {frame.write_index}",
                  10, 30, HUD_COLOR)
        if selected:
            draw_text(surf, f"Selected: {selected.name} ({selected.type.display_name}, mass {selected.mass:.2f})",
                      10, 50, SELECTION_COLOR)

        pygame.display.flip()


def _shade(record: RenderRecord):
    """Approximate display colour: albedo, pushed towards white by emission."""
    r, g, b = record.material.albedo
    glow = min(1.0, math.log10(1.0 + record.material.emission) / 3.0)
    if record.material.albedo == (0.0, 0.0, 0.0) and record.kind == ShapeKind.SPHERE:
        return (20, 20, 20)
    return tuple(int(255 * min(1.0, c + (1.0 - c) * glow * 0.5)) for c in (r, g, b))


_cached_font = None


def draw_text(surface, text, x, y, color):
    global _cached_font
    if not pygame.font.get_init():
        pygame.font.init()
    if _cached_font is None:
        _cached_font = pygame.font.SysFont("consolas", 16)
    img = _cached_font.render(text, True, color)
    surface.blit(img, (x, y))


def _safe_point(pt):
    try:
        x, y = int(pt[0]), int(pt[1])
    except (TypeError, ValueError, OverflowError):
        return None
    if -SAFE_COORD_LIMIT <= x <= SAFE_COORD_LIMIT and -SAFE_COORD_LIMIT <= y <= SAFE_COORD_LIMIT:
        return (x, y)
    return None

# ============================================================
# Dear PyGui Control Panel
# ============================================================


class UI:
    """
    Dear PyGui panel: scenes, global physics, add-object form, selected body editor.

    The panel owns the per-frame settings (time scale, gravity, G); the frame
    loop reads them into a TickInput every frame.
    """
    def __init__(self, sim: SimulationController):
        self.sim = sim

        self.time_scale = 1.0
        self.gravity_enabled = True
        self.G = DEFAULT_G
        self.show_trails = True

        self.status_msg_id = None
        self.save_name_id = None
        self.load_combo_id = None
        self.pause_button_id = None
        self.energy_id = None

        self.add_type_id = None
        self.add_mass_id = None
        self.add_distance_id = None
        self.add_ecc_id = None
        self.add_incl_id = None

        self.edit_name_id = None
        self.edit_type_id = None
        self.edit_mass_id = None
        self.edit_rings_id = None
        self.edit_info_id = None
        self.vector_ids = {}
        self.record_ids = [{}, {}]

        self._last_edit_selected_id = None
        self._last_edit_type = None

        self._build_ui()

    # -----------------------
    # UI Construction
    # -----------------------

    def _build_ui(self):
        dpg.create_context()
        dpg.create_viewport(title='Stellar Forge - Controls', width=460, height=760)

        with dpg.window(label="Controls", width=440, height=740, pos=(10, 10), tag="main_window"):
            with dpg.collapsing_header(label="Scene", default_open=True):
                with dpg.group(horizontal=True):
                    self.save_name_id = dpg.add_input_text(label="Save Filename", default_value="my_scene", width=200)
                    dpg.add_button(label="Save Scene", callback=self._on_save)
                with dpg.group(horizontal=True):
                    self.load_combo_id = dpg.add_combo(items=list_scenes(), width=200, label="Load File")
                    dpg.add_button(label="Load", callback=self._on_load)
                    dpg.add_button(label="Refresh", callback=self._refresh_scene_list)

            with dpg.collapsing_header(label="Global Physics Settings", default_open=True):
                dpg.add_checkbox(label="Enable Gravity", default_value=True,
                                 callback=lambda s, a, u: setattr(self, "gravity_enabled", bool(a)))
                dpg.add_checkbox(label="Show Trails", default_value=True,
                                 callback=lambda s, a, u: self._toggle_trails(a))
                dpg.add_slider_float(label="Gravity Constant (G)", min_value=0.0, max_value=10.0,
                                     default_value=DEFAULT_G, width=200,
                                     callback=lambda s, a, u: setattr(self, "G", float(a)))
                self.pause_button_id = dpg.add_button(label="Pause", callback=self.toggle_pause)
                dpg.add_slider_float(label="Time Scale", min_value=0.0, max_value=20.0, default_value=1.0,
                                     width=200, tag="time_scale_slider",
                                     callback=lambda s, a, u: self._set_time_scale(a))
                self.energy_id = dpg.add_text("")

            with dpg.collapsing_header(label="Add Object", default_open=True):
                dpg.add_text("New objects orbit the selected body (or the origin).")
                self.add_type_id = dpg.add_combo(items=[t.display_name for t in ADDABLE_TYPES],
                                                 default_value=BodyType.ROCKY_PLANET.display_name,
                                                 label="Object Type", width=200,
                                                 callback=lambda s, a, u: self._on_add_type_changed(a))
                self.add_mass_id = dpg.add_input_text(label="Mass", default_value="1.0", width=200)
                self.add_distance_id = dpg.add_input_text(label="Distance from Target", default_value="10.0", width=200)
                self.add_ecc_id = dpg.add_slider_float(label="Eccentricity", min_value=0.0, max_value=0.99,
                                                       default_value=0.0, width=200)
                self.add_incl_id = dpg.add_slider_float(label="Inclination (degrees)", min_value=-90.0,
                                                        max_value=90.0, default_value=0.0, width=200)
                dpg.add_button(label="Create Object", callback=self._on_create_object)

            with dpg.collapsing_header(label="Selected Object", default_open=True):
                self.edit_info_id = dpg.add_text("Nothing selected.")
                self.edit_name_id = dpg.add_input_text(label="Name", default_value="", width=200)
                self.edit_type_id = dpg.add_combo(items=[t.display_name for t in BodyType], label="Type", width=200)
                self.edit_mass_id = dpg.add_input_text(label="Mass", default_value="", width=200)
                self.edit_rings_id = dpg.add_checkbox(label="Has Rings", default_value=False)
                with dpg.group(horizontal=True):
                    dpg.add_button(label="Apply", callback=self._apply_selected_edits)
                    dpg.add_button(label="Reset Rotation", callback=self._reset_rotation)
                    dpg.add_button(label="Delete", callback=self._delete_selected)

                dpg.add_text("Transform & Physics:")
                for key, label, speed in (("position", "Position", 0.1),
                                          ("velocity", "Velocity", 0.01),
                                          ("orientation", "Orientation (Roll, Pitch, Yaw)", 0.5),
                                          ("angular_velocity", "Angular Velocity", 0.01)):
                    self.vector_ids[key] = dpg.add_drag_floatx(label=label, size=3, speed=speed, width=260,
                                                               callback=self._on_vector_edit, user_data=key)

                for index, label in enumerate(("Sphere Data", "Ring Data")):
                    ids = self.record_ids[index]
                    with dpg.tree_node(label=label) as node:
                        ids["node"] = node
                        ids["r1"] = dpg.add_drag_float(label="Radius 1", speed=0.05, min_value=0.001, width=200,
                                                       callback=self._on_record_edit, user_data=(index, "r1"))
                        if index == 1:
                            ids["r2"] = dpg.add_drag_float(label="Radius 2 (Inner)", speed=0.05, min_value=0.0,
                                                           width=200, callback=self._on_record_edit,
                                                           user_data=(index, "r2"))
                        ids["albedo"] = dpg.add_slider_floatx(label="Albedo (RGB)", size=3, min_value=0.0,
                                                              max_value=1.0, width=260,
                                                              callback=self._on_record_edit,
                                                              user_data=(index, "albedo"))
                        ids["texture_id"] = dpg.add_input_int(label="Texture ID", width=200,
                                                              callback=self._on_record_edit,
                                                              user_data=(index, "texture_id"))
                        ids["metallic"] = dpg.add_slider_float(label="Metallic", min_value=0.0, max_value=1.0,
                                                               width=200, callback=self._on_record_edit,
                                                               user_data=(index, "metallic"))
                        ids["roughness"] = dpg.add_slider_float(label="Roughness", min_value=0.0, max_value=1.0,
                                                                width=200, callback=self._on_record_edit,
                                                                user_data=(index, "roughness"))
                        ids["emission"] = dpg.add_drag_float(label="Emission", speed=10.0, min_value=0.0,
                                                             max_value=MAX_EMISSION, width=200,
                                                             callback=self._on_record_edit,
                                                             user_data=(index, "emission"))

            dpg.add_separator()
            self.status_msg_id = dpg.add_text("")

        dpg.setup_dearpygui()
        dpg.show_viewport()
        dpg.set_primary_window("main_window", True)

    # -----------------------
    # UI Callbacks
    # -----------------------

    def _set_status(self, msg: str, color=(180, 220, 180)):
        dpg.set_value(self.status_msg_id, msg)
        dpg.configure_item(self.status_msg_id, color=color)

    def _set_error(self, msg: str):
        dpg.set_value(self.status_msg_id, msg)
        dpg.configure_item(self.status_msg_id, color=(255, 120, 120))

    def _set_time_scale(self, value):
        self.time_scale = max(0.0, float(value))
        dpg.configure_item(self.pause_button_id, label="Pause" if self.time_scale > 0 else "Resume")

    def toggle_pause(self):
        self.time_scale = 0.0 if self.time_scale > 0.0 else 1.0
        dpg.set_value("time_scale_slider", self.time_scale)
        self._set_time_scale(self.time_scale)
        self._set_status("Paused." if self.time_scale == 0.0 else "Resumed.")

    def _toggle_trails(self, value):
        self.show_trails = bool(value)
        if not value:
            for body in self.sim.world:
                body.clear_trail()

    def _refresh_scene_list(self):
        items = list_scenes()
        dpg.configure_item(self.load_combo_id, items=items)
        if items:
            dpg.set_value(self.load_combo_id, items[0])

    def _on_save(self):
        name = dpg.get_value(self.save_name_id).strip()
        if not name:
            self._set_error("Enter a file name to save.")
            return
        if not name.endswith(SCENE_EXTENSION):
            name += SCENE_EXTENSION
        if self.sim.save_scene(scene_path(name)):
            self._set_status(self.sim.last_message)
            self._refresh_scene_list()
        else:
            self._set_error(self.sim.last_message)

    def _on_load(self):
        choice = dpg.get_value(self.load_combo_id)
        if not choice:
            self._set_error("No scene file selected.")
            return
        self.load_scene(scene_path(choice))

    def load_scene(self, path: str):
        if self.sim.load_scene(path):
            self._set_status(self.sim.last_message)
        else:
            self._set_error(self.sim.last_message)

    def _on_add_type_changed(self, type_name):
        body_type = TYPE_BY_NAME.get(type_name, BodyType.ROCKY_PLANET)
        dpg.set_value(self.add_mass_id, f"{TYPE_TABLE[body_type].mass}")

    def _on_create_object(self):
        body_type = TYPE_BY_NAME.get(dpg.get_value(self.add_type_id), BodyType.ROCKY_PLANET)
        mass = try_float(dpg.get_value(self.add_mass_id))
        distance = try_float(dpg.get_value(self.add_distance_id))
        if mass is None or distance is None:
            self._set_error("Invalid numeric input for new object.")
            return
        if mass <= 0 or distance <= 0:
            self._set_error("Mass and distance must be positive.")
            return
        body_id = self.sim.add_object(body_type, mass, distance,
                                      eccentricity=dpg.get_value(self.add_ecc_id),
                                      inclination=dpg.get_value(self.add_incl_id),
                                      G=self.G)
        self._set_status(f"Added '{self.sim.world.get(body_id).name}'.")

    def _populate_edit_fields(self):
        b = self.sim.selected_body()
        if not b:
            dpg.set_value(self.edit_info_id, "Nothing selected.")
            return
        dpg.set_value(self.edit_name_id, b.name)
        dpg.set_value(self.edit_type_id, b.type.display_name)
        dpg.set_value(self.edit_mass_id, f"{b.mass:.6g}")
        dpg.set_value(self.edit_rings_id, b.has_rings)
        self._refresh_vectors(b, force=True)
        for index, ids in enumerate(self.record_ids):
            has_record = index < len(b.geometry)
            dpg.configure_item(ids["node"], show=has_record)
            if not has_record:
                continue
            record = b.geometry[index]
            m = record.material
            dpg.set_value(ids["r1"], record.r1)
            if "r2" in ids:
                dpg.set_value(ids["r2"], record.r2)
            dpg.set_value(ids["albedo"], list(m.albedo))
            dpg.set_value(ids["texture_id"], m.texture_id)
            dpg.set_value(ids["metallic"], m.metallic)
            dpg.set_value(ids["roughness"], m.roughness)
            dpg.set_value(ids["emission"], m.emission)

    def _refresh_vectors(self, b, force=False):
        values = {
            "position": b.position,
            "velocity": b.velocity,
            "orientation": quat_to_euler(b.orientation),
            "angular_velocity": b.angular_velocity,
        }
        for key, value in values.items():
            item = self.vector_ids[key]
            if force or not dpg.is_item_active(item):
                dpg.set_value(item, list(value))

    def _on_vector_edit(self, sender, app_data, user_data):
        b = self.sim.selected_body()
        if not b:
            return
        value = tuple(app_data[:3])
        setter = {
            "position": self.sim.set_position,
            "velocity": self.sim.set_velocity,
            "orientation": self.sim.set_orientation,
            "angular_velocity": self.sim.set_angular_velocity,
        }[user_data]
        setter(b.id, value)

    def _on_record_edit(self, sender, app_data, user_data):
        b = self.sim.selected_body()
        if not b:
            return
        index, field_name = user_data
        value = tuple(app_data[:3]) if field_name == "albedo" else app_data
        if not self.sim.edit_record(b.id, index, **{field_name: value}):
            self._set_error(f"Rejected {field_name} = {value!r}.")

    def _apply_selected_edits(self):
        b = self.sim.selected_body()
        if not b:
            self._set_error("No body selected to edit.")
            return
        body_type = TYPE_BY_NAME.get(dpg.get_value(self.edit_type_id), b.type)
        if body_type != b.type:
            self.sim.change_type(b.id, body_type)
        else:
            mass = try_float(dpg.get_value(self.edit_mass_id))
            if mass is None or mass <= 0:
                self._set_error("Mass must be a positive number.")
                return
            self.sim.set_mass(b.id, mass)
        self.sim.set_rings(b.id, bool(dpg.get_value(self.edit_rings_id)))
        b.name = dpg.get_value(self.edit_name_id).strip() or b.name
        self.sim.accumulation.reset()
        self._populate_edit_fields()
        self._set_status(f"Applied edits to '{b.name}'.")

    def _reset_rotation(self):
        b = self.sim.selected_body()
        if b:
            b.reset_rotation()
            self.sim.accumulation.reset()
            self._refresh_vectors(b, force=True)

    def _delete_selected(self):
        if self.sim.delete_selected():
            self._set_status("Deleted selected body.")
        else:
            self._set_error("No body selected.")

    def sync(self):
        """Per-frame refresh of readouts that follow the simulation."""
        current = self.sim.selected_id
        b = self.sim.selected_body()
        current_type = b.type if b else None
        if current != self._last_edit_selected_id or current_type != self._last_edit_type:
            self._populate_edit_fields()
            self._last_edit_selected_id = current
            self._last_edit_type = current_type
        if b:
            self._refresh_vectors(b)
            dpg.set_value(self.edit_info_id,
                          f"{b.type.display_name}  mass {b.mass:.3f}  radius {b.radius:.3f}  "
                          f"trail {len(b.trail)}/{b.max_trail_points}")
        world = self.sim.world
        ke = world.kinetic_energy()
        pe = world.potential_energy(self.G)
        dpg.set_value(self.energy_id, f"Energy: kinetic {ke:.2f}  potential {pe:.2f}  total {ke + pe:.2f}")
        if self.sim.last_message:
            self._set_status(self.sim.last_message)
            self.sim.last_message = None

# ============================================================
# Application Entry
# ============================================================


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Stellar Forge N-body sandbox")
    parser.add_argument("--scene", default=os.path.join(SAVES_DIR, "empty.scene"),
                        help="scene file to load at startup")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    sim = SimulationController()
    camera = OrbitCamera()
    viewport = Viewport(sim, camera)
    viewport.open()
    ui = UI(sim)

    if os.path.isfile(args.scene):
        ui.load_scene(args.scene)
    else:
        logger.warning("Startup scene %s not found; starting empty.", args.scene)

    clock = pygame.time.Clock()
    try:
        while viewport.running and dpg.is_dearpygui_running():
            viewport.handle_events()
            if viewport.toggle_pause_requested:
                viewport.toggle_pause_requested = False
                ui.toggle_pause()

            snapshot = camera.snapshot(ui.time_scale, sim.selected_id)
            frame = sim.tick(TickInput(
                dt=FRAME_DT,
                time_scale=ui.time_scale,
                gravity_enabled=ui.gravity_enabled,
                G=ui.G,
                snapshot=snapshot,
            ))
            camera.target = frame.camera_target

            ui.sync()
            viewport.draw(frame, ui.show_trails, ui.time_scale)
            dpg.render_dearpygui_frame()
            clock.tick(60)
    finally:
        dpg.destroy_context()
        pygame.quit()


if __name__ == "__main__":
    main()
