#!/usr/bin/env python3
"""
Shared constants for Stellar Forge (simulation units unless stated otherwise).

The simulation runs in abstract units tuned for interactive viewing: masses of
order 1..1000, radii of order 0.5..10, and a gravitational constant of 0.5.
Keeping the tuning in one place ensures evolution thresholds, trail budgets and
render limits agree across the codebase.
"""

# Physics controls
DEFAULT_G = 0.5  # gravitational constant in simulation units
SOFTENING_DIST_SQ = 1.0  # minimum squared separation used in the force law
ROTATION_EPSILON = 1e-6  # rad; smaller per-step rotations are skipped
FRAME_DT = 1 / 60.0  # seconds of real time per host frame
DEFAULT_ANGULAR_VELOCITY = (0.0, 0.15, 0.0)  # rad/s about +Y

# Evolution thresholds (mass)
MASS_LIMIT_ROCKY_TO_GIANT = 50.0
MASS_LIMIT_GIANT_TO_DWARF = 200.0  # approx. 13 Jupiter masses
MASS_LIMIT_DWARF_TO_STAR = 600.0  # approx. 80 Jupiter masses
SCHWARZSCHILD_FACTOR = 0.005  # collapse radius per unit mass
COLLAPSE_DISK_OUTER = 4.0  # disk r1 as a multiple of the collapse radius
COLLAPSE_DISK_INNER = 1.5  # disk r2 as a multiple of the collapse radius

# Trails
TRAIL_BUDGET = 30000  # points at zero relative speed and unit time scale

# Temporal accumulation
MAX_ACCUMULATION_FRAMES = 100000  # cap while paused

# Renderer feed
MAX_RENDER_OBJECTS = 16  # geometry records the renderer accepts per frame
MAX_EMISSION = 50000.0  # upper bound for edited material emission

# Camera
CAMERA_DISTANCE = 100.0
CAMERA_YAW = 0.0
CAMERA_PITCH = -30.0
CAMERA_FOV = 45.0
MIN_PITCH = -89.0
MAX_PITCH = 89.0
MIN_DISTANCE = 1.0
MAX_DISTANCE = 20000.0
MIN_FOV = 10.0
MAX_FOV = 120.0
DRAG_SENSITIVITY = 0.25  # degrees per pixel
ZOOM_SENSITIVITY = 0.1  # fraction of distance per wheel notch
FOV_STEP = 2.0  # degrees per key press

# Rendering (viewport)
VIEW_WIDTH = 1100
VIEW_HEIGHT = 800
BACKGROUND_COLOR = (4, 5, 10)
SELECTION_COLOR = (255, 255, 0)
HUD_COLOR = (200, 200, 200)

# Safety: avoid drawing outside reasonable integer pixel ranges
SAFE_COORD_LIMIT = 30000
