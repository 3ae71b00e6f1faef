"""Scene snapshots handed to sensors, and the sensor interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Generic, Optional, TypeVar

from scenesim.occupancy_map import OccupancyMap

if TYPE_CHECKING:
    from scenesim.agent import Agent2DConfig, Agent2DState

T = TypeVar("T")


@dataclass(frozen=True)
class SceneState:
    """What a sensor may see of the scene: its clock and its occupancy map."""

    time: float
    occupancy_map: OccupancyMap


@dataclass(frozen=True)
class TimeStamped(Generic[T]):
    """A value tagged with the scene time it was taken at."""

    time: float
    state: T


class Sensor2D(ABC):
    """A sensor that measures the scene from an agent's pose."""

    @abstractmethod
    def sense(
        self,
        agent_config: "Agent2DConfig",
        agent_state: "Agent2DState",
        scene: SceneState,
    ) -> Optional[TimeStamped]:
        """Take a measurement, or return None if none can be taken."""