"""Stellar Forge simulation core: merging, evolving gravitating bodies."""

from .accumulation import AccumulationController, CameraSnapshot
from .controller import FrameResult, SimulationController, TickInput
from .data_models import Body, BodyType, Material, RenderRecord, ShapeKind
from .physics import PhysicsWorld, StepResult

__all__ = [
    "AccumulationController",
    "Body",
    "BodyType",
    "CameraSnapshot",
    "FrameResult",
    "Material",
    "PhysicsWorld",
    "RenderRecord",
    "ShapeKind",
    "SimulationController",
    "StepResult",
    "TickInput",
]
