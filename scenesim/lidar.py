"""A planar lidar that casts a fan of rays into the occupancy map."""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, Optional

from scenesim.geometry import Vec2, from_angle
from scenesim.sensors import SceneState, Sensor2D, TimeStamped

if TYPE_CHECKING:
    from scenesim.agent import Agent2DConfig, Agent2DState

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Lidar2DSensed:
    """The world-space points where the lidar's rays hit a boundary."""

    points: tuple[Vec2, ...]


def _regular_directions(n: int) -> list[Vec2]:
    return [from_angle(math.tau * ((i + 0.5) / n)) for i in range(n)]


@dataclass
class Lidar2D(Sensor2D):
    """Ray directions in the agent's body frame."""

    directions: list[Vec2] = field(default_factory=list)

    @classmethod
    def regular(cls, n: int) -> "Lidar2D":
        """A lidar with ``n`` evenly spaced rays, offset by half a step."""
        return cls(_regular_directions(n))

    def set_regular(self, n: int) -> None:
        """Replace the rays with ``n`` evenly spaced ones."""
        self.directions = _regular_directions(n)

    def update_directions(self, directions: Iterable[Vec2]) -> None:
        self.directions = list(directions)

    def sense(
        self,
        agent_config: "Agent2DConfig",
        agent_state: "Agent2DState",
        scene: SceneState,
    ) -> Optional[TimeStamped[Lidar2DSensed]]:
        """Cast every ray; None if the agent sits outside the map or inside a wall."""
        log.info("Sensing surroundings with Lidar")
        start = time.perf_counter()

        grid = scene.occupancy_map
        position = agent_state.position
        x, y = grid.translate(position)
        if x < 0 or y < 0 or grid.is_occupied((x, y)):
            return None

        points = []
        for direction in self.directions:
            world_dir = agent_state.heading.rotate(direction)
            distance = grid.cast_rays(position, world_dir)
            if distance is not None:
                points.append(world_dir * distance + position)

        log.info(
            "Sensing surroundings took %d ms", int((time.perf_counter() - start) * 1000)
        )
        return TimeStamped(time=scene.time, state=Lidar2DSensed(tuple(points)))