"""
Scene Orchestration
===================
Owns the active objects and advances them once per tick.

Per tick:
1. Every object steps (history push, integration, surface correction).
   An object whose step fails numerically is halted and skipped from then on.
2. Global time advances by dt
3. The view frame angle advances by frame_rotation * OMEGA * dt
4. Subscribers are notified

Objects never interact, so the per-object order does not matter.
"""

from __future__ import annotations

from collections import deque
from typing import Callable, List, Optional, Set, Union

from loguru import logger

from simulation import OMEGA, AdaptiveIntegrator, RK4Integrator, SimObject

from .description import SceneDefinition
from .models import ObjectSnapshot, SimulationSettings


class Scene:
    """
    Simulation state shared with the presentation layer.

    Usage:
        scene = Scene()
        scene.reset(SceneDefinition.from_yaml("config/main_config.yaml"))
        scene.running = True
        while drawing:
            scene.tick()
            draw(scene.snapshots())
    """

    def __init__(
        self,
        settings: Optional[SimulationSettings] = None,
        integrator: Optional[Union[RK4Integrator, AdaptiveIntegrator]] = None
    ):
        """
        Args:
            settings: Simulation controls (default: SimulationSettings())
            integrator: Integrator shared by all objects (default: RK4)
        """
        self.settings = settings or SimulationSettings()
        self.integrator = integrator or RK4Integrator(self.settings.time_step)

        self.t = 0.0
        self.ang = 0.0
        self.frame_rotation = self.settings.frame_rotation
        self.time_step = self.settings.time_step
        self.running = self.settings.running

        self.objects: List[SimObject] = []
        self.definition = SceneDefinition()
        self._halted: Set[int] = set()

        self._subscribers: List[Callable[[Scene], None]] = []

        logger.info(f"Scene initialized (dt={self.time_step}s, frame rotation={self.frame_rotation})")

    @property
    def frame_omega(self) -> float:
        """Angular velocity of the view frame (rad/s)."""
        return self.frame_rotation * OMEGA

    def reset(self, definition: Optional[SceneDefinition] = None) -> None:
        """
        Rebuild all objects from a scene definition.

        Args:
            definition: New definition (default: the current one)
        """
        if definition is not None:
            self.definition = definition

        self.t = 0.0
        self.ang = 0.0
        self.frame_rotation = self.settings.frame_rotation

        self.objects = []
        self._halted.clear()
        for obj in self.definition.into_objects():
            self.add_object(obj)

        logger.info(f"Scene reset with {len(self.objects)} objects")

    def add_object(self, obj: SimObject) -> None:
        obj.path = deque(obj.path, maxlen=self.settings.max_path_len)
        self.objects.append(obj)

    def remove_object(self, index: int) -> SimObject:
        obj = self.objects.pop(index)
        self._halted.discard(id(obj))
        return obj

    def is_halted(self, obj: SimObject) -> bool:
        """True if ``obj`` stopped advancing after a failed step."""
        return id(obj) in self._halted

    def tick(self) -> bool:
        """
        Advance one frame if the simulation is running.

        Returns:
            True if the simulation advanced
        """
        if not self.running:
            return False
        self.advance()
        return True

    def advance(self, dt: Optional[float] = None) -> None:
        """
        Step every object once, regardless of ``running``.

        Args:
            dt: Time step (default: ``time_step``)
        """
        dt = self.time_step if dt is None else dt

        for i, obj in enumerate(self.objects):
            if id(obj) in self._halted:
                continue
            try:
                obj.step(self.integrator, dt)
            except FloatingPointError as e:
                self._halted.add(id(obj))
                logger.error(f"Object {i} halted at t={obj.time:.1f}s: {e}")

        self.t += dt
        self.ang += self.frame_rotation * OMEGA * dt

        self._notify_subscribers()

    def run(self, ticks: int, dt: Optional[float] = None) -> None:
        """Advance ``ticks`` times."""
        for _ in range(ticks):
            self.advance(dt)

    def snapshots(self, omega: Optional[float] = None) -> List[ObjectSnapshot]:
        """
        Current state of every object.

        Args:
            omega: Frame for Cartesian quantities (default: view frame)
        """
        omega = self.frame_omega if omega is None else omega
        return [ObjectSnapshot.from_object(i, obj, omega) for i, obj in enumerate(self.objects)]

    def status(self, max_t: Optional[float] = None) -> List[List[str]]:
        """Status lines per object, reported in the view frame."""
        return [obj.status(self.frame_omega, max_t) for obj in self.objects]

    def subscribe(self, callback: Callable[[Scene], None]) -> None:
        """
        Subscribe to tick updates.

        Args:
            callback: Called with the scene after every tick
        """
        self._subscribers.append(callback)
        logger.debug(f"Added scene subscriber, total: {len(self._subscribers)}")

    def unsubscribe(self, callback: Callable) -> None:
        """Remove a subscriber."""
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def _notify_subscribers(self) -> None:
        for callback in self._subscribers:
            try:
                callback(self)
            except Exception as e:
                logger.error(f"Subscriber callback error: {e}")
