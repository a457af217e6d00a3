"""
Scene Descriptions
==================
User-editable descriptions of the objects in a scene.

Numeric fields arrive as free text from forms or YAML files. Parsing is
lenient: a value that cannot be converted falls back to a fixed default
(0 unless stated otherwise) with a warning, and never raises. The
simulation core therefore only ever receives numbers.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, ClassVar, Dict, List, Literal, Tuple, Union

import yaml
from loguru import logger
from pydantic import BaseModel, Field, model_validator

from simulation import SimObject

from .presets import CYCLONE_ATTRACTOR_COEFF, anticyclone, create_object, cyclone, foucault, plane


Color = Tuple[float, float, float]


class LenientModel(BaseModel):
    """
    Base model whose numeric fields never fail validation.

    Subclasses list lenient fields in ``lenient_floats`` / ``lenient_ints`` and
    may override individual fallbacks in ``fallbacks``.
    """
    lenient_floats: ClassVar[Tuple[str, ...]] = ()
    lenient_ints: ClassVar[Tuple[str, ...]] = ()
    fallbacks: ClassVar[Dict[str, float]] = {}

    @model_validator(mode="before")
    @classmethod
    def coerce_numbers(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data

        data = dict(data)
        for name in cls.lenient_floats:
            if name in data:
                data[name] = cls._coerce(name, data[name], float)
        for name in cls.lenient_ints:
            if name in data:
                data[name] = cls._coerce(name, data[name], int)
        return data

    @classmethod
    def _coerce(cls, name: str, value: Any, target: type) -> Any:
        fallback = target(cls.fallbacks.get(name, 0))
        if isinstance(value, str):
            value = value.strip()
        try:
            parsed = target(value)
        except (TypeError, ValueError):
            logger.warning(f"Could not parse {name}={value!r}, using {fallback}")
            return fallback

        if target is int and parsed < 0:
            logger.warning(f"Negative {name}={parsed}, using 0")
            return 0
        return parsed


class FreeKind(LenientModel):
    """Single free object."""
    lenient_floats: ClassVar[Tuple[str, ...]] = ("vel_e", "vel_n", "vel_u", "gravity", "friction", "drag")
    fallbacks: ClassVar[Dict[str, float]] = {"gravity": 1.0}

    type: Literal["free"] = "free"
    vel_e: float = 0.0  # m/s
    vel_n: float = 0.0  # m/s
    vel_u: float = 0.0  # m/s
    gravity: float = 1.0  # in units of Earth gravity
    friction: float = 0.0
    drag: float = 0.0


class CycloneKind(LenientModel):
    lenient_floats: ClassVar[Tuple[str, ...]] = ("radius", "vel")
    lenient_ints: ClassVar[Tuple[str, ...]] = ("n_particles",)

    type: Literal["cyclone"] = "cyclone"
    n_particles: int = 8
    radius: float = 1000.0  # km
    vel: float = 100.0  # m/s


class AnticycloneKind(LenientModel):
    lenient_floats: ClassVar[Tuple[str, ...]] = ("vel",)
    lenient_ints: ClassVar[Tuple[str, ...]] = ("n_particles",)

    type: Literal["anticyclone"] = "anticyclone"
    n_particles: int = 8
    vel: float = 100.0  # m/s


class FoucaultKind(LenientModel):
    lenient_floats: ClassVar[Tuple[str, ...]] = ("vel", "azim")

    type: Literal["foucault"] = "foucault"
    vel: float = 2000.0  # m/s
    azim: float = 0.0  # degrees


class PlaneKind(LenientModel):
    lenient_floats: ClassVar[Tuple[str, ...]] = ("vel", "azim")

    type: Literal["plane"] = "plane"
    vel: float = 250.0  # m/s
    azim: float = 0.0  # degrees


ObjectKind = Union[FreeKind, CycloneKind, AnticycloneKind, FoucaultKind, PlaneKind]


class ObjectDescription(LenientModel):
    """
    One entry of a scene: where it starts and what kind of object it is.

    A cyclone or anticyclone entry expands to several simulated objects.
    """
    lenient_floats: ClassVar[Tuple[str, ...]] = ("lat", "lon", "elev")

    lat: float = 0.0  # degrees
    lon: float = 0.0  # degrees
    elev: float = 0.0  # m
    color: Color = (1.0, 0.0, 0.0)
    kind: ObjectKind = Field(default_factory=FreeKind, discriminator="type")

    def into_objects(self) -> List[SimObject]:
        """Build the simulated objects described by this entry."""
        kind = self.kind

        if isinstance(kind, FreeKind):
            obj = (
                create_object(self.lat, self.lon, self.elev, kind.vel_e, kind.vel_n, kind.vel_u)
                .with_color(*self.color)
                .with_gravity_strength(kind.gravity)
                .with_friction(kind.friction)
                .with_drag(kind.drag)
            )
            return [obj]

        if isinstance(kind, CycloneKind):
            return cyclone(
                self.lat,
                self.lon,
                self.elev,
                kind.radius * 1000.0,
                CYCLONE_ATTRACTOR_COEFF,
                kind.vel,
                0.0,
                kind.n_particles,
                self.color,
            )

        if isinstance(kind, AnticycloneKind):
            return anticyclone(
                self.lat, self.lon, self.elev, kind.vel, 0.0, kind.n_particles, self.color
            )

        if isinstance(kind, FoucaultKind):
            return [foucault(self.lat, self.lon, self.elev, kind.vel, kind.azim, self.color)]

        return [plane(self.lat, self.lon, self.elev, kind.vel, kind.azim, self.color)]


class SceneDefinition(BaseModel):
    """Ordered list of object descriptions making up a scene."""
    objects: List[ObjectDescription] = Field(default_factory=list)

    def into_objects(self) -> List[SimObject]:
        objects: List[SimObject] = []
        for description in self.objects:
            objects.extend(description.into_objects())
        return objects

    @classmethod
    def from_yaml(cls, path: Path) -> SceneDefinition:
        """
        Load a scene from a YAML file with a top-level ``objects`` list.

        A missing file yields an empty scene.
        """
        path = Path(path)
        if not path.exists():
            logger.warning(f"Scene file not found: {path}")
            return cls()

        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        definition = cls(objects=data.get("objects", []))
        logger.info(f"Loaded {len(definition.objects)} object descriptions from {path}")
        return definition
