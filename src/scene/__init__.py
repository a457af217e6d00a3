"""
Scene Package
=============
Scene orchestration, object presets, user descriptions and recording.
"""

from .models import ObjectSnapshot, SimulationSettings
from .presets import (
    create_object,
    cyclone,
    anticyclone,
    foucault,
    plane,
)
from .description import (
    FreeKind,
    CycloneKind,
    AnticycloneKind,
    FoucaultKind,
    PlaneKind,
    ObjectDescription,
    SceneDefinition,
)
from .scene import Scene
from .recorder import TrajectoryRecorder

__all__ = [
    "ObjectSnapshot",
    "SimulationSettings",
    "create_object",
    "cyclone",
    "anticyclone",
    "foucault",
    "plane",
    "FreeKind",
    "CycloneKind",
    "AnticycloneKind",
    "FoucaultKind",
    "PlaneKind",
    "ObjectDescription",
    "SceneDefinition",
    "Scene",
    "TrajectoryRecorder",
]
