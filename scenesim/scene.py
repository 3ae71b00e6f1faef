"""A scene of agents moving over an occupancy map."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Iterable

from scenesim.agent import Agent2D
from scenesim.geometry import Box2D, Vec2
from scenesim.occupancy_map import GridPoint, OccupancyMap
from scenesim.scene_loop import SceneLoop
from scenesim.sensors import SceneState


@dataclass(eq=False)
class Scene2D:
    """Agents keyed by id, the scene clock, the map and the sensor loop."""

    occupancy_map: OccupancyMap
    agents: dict[int, Agent2D] = field(default_factory=dict)
    time: float = 0.0
    scene_loop: SceneLoop = field(default_factory=SceneLoop)

    @classmethod
    def from_pixels(cls, size: GridPoint, pixels: Iterable[int]) -> "Scene2D":
        """Build a scene from greyscale pixels: dark (<= 127) is occupied, light is free."""
        occupied = [p <= 127 for p in pixels]
        return cls(occupancy_map=OccupancyMap.from_pixels(size, occupied))

    def state(self) -> SceneState:
        return SceneState(time=self.time, occupancy_map=self.occupancy_map)

    def update(self, dt: float) -> None:
        """Advance the clock and every agent, and hand the new states to the sensors."""
        self.time += dt
        state = self.state()
        for agent_id, agent in self.agents.items():
            agent.update(dt)
            self.scene_loop.update_state(agent_id, agent.config, replace(agent.state), state)

    def add_agent(self, agent: Agent2D) -> int:
        agent_id = len(self.agents)
        self.scene_loop.insert_agent(agent_id, agent)
        self.agents[agent_id] = agent
        return agent_id

    def in_bounds_vec2(self, loc: Vec2) -> bool:
        return self.occupancy_map.is_valid_vec2(loc)

    def in_bounds(self, loc: GridPoint) -> bool:
        return self.occupancy_map.is_valid(loc)

    def translate(self, loc: Vec2) -> GridPoint:
        return self.occupancy_map.translate(loc)

    def get_box(self, loc: GridPoint) -> Box2D:
        return self.occupancy_map.get_box(loc)

    def is_occupied_vec2(self, loc: Vec2) -> bool:
        return self.occupancy_map.is_occupied_vec2(loc)

    def is_occupied(self, loc: GridPoint) -> bool:
        return self.occupancy_map.is_occupied(loc)