"""Background sensor workers that keep the latest measurement of every agent."""

from __future__ import annotations

import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import replace
from functools import lru_cache
from typing import TYPE_CHECKING, Optional

from scenesim.agent import Agent2DConfig, Agent2DMeasurements, Agent2DState
from scenesim.sensors import SceneState, Sensor2D, TimeStamped

if TYPE_CHECKING:
    from scenesim.agent import Agent2D


@lru_cache(maxsize=None)
def _shared_executor() -> ThreadPoolExecutor:
    return ThreadPoolExecutor(thread_name_prefix="scenesim-sensor")


class SensorWorker:
    """Runs one sensor in the background, at most one measurement in flight at a time."""

    def __init__(self, sensor: Sensor2D, executor: Optional[Executor] = None) -> None:
        self.sensor = sensor
        self._executor = executor if executor is not None else _shared_executor()
        self._lock = threading.Lock()
        self._pending: Optional[Future] = None
        self._last_measurement: Optional[TimeStamped] = None

    @property
    def last_measurement(self) -> Optional[TimeStamped]:
        with self._lock:
            return self._last_measurement

    def update_state(
        self, config: Agent2DConfig, state: Agent2DState, scene_state: SceneState
    ) -> None:
        """Collect a finished measurement and start the next one.

        While a measurement is still running nothing happens.
        """
        with self._lock:
            pending = self._pending
            if pending is not None:
                if not pending.done():
                    return
                measurement = pending.result()
                if measurement is not None:
                    self._last_measurement = measurement
            self._pending = self._executor.submit(
                self.sensor.sense, config, replace(state), scene_state
            )


class AgentWorker:
    """The sensor workers belonging to one agent."""

    def __init__(self, lidar: SensorWorker) -> None:
        self.lidar = lidar

    def query(self) -> Agent2DMeasurements:
        return Agent2DMeasurements(lidar=self.lidar.last_measurement)

    def update_state(
        self, config: Agent2DConfig, state: Agent2DState, scene_state: SceneState
    ) -> None:
        self.lidar.update_state(config, state, scene_state)


class SceneLoop:
    """Keeps a worker per agent and hands out their latest measurements."""

    def __init__(self, executor: Optional[Executor] = None) -> None:
        self._executor = executor
        self._workers: dict[int, AgentWorker] = {}
        self._lock = threading.Lock()

    def contains_agent(self, agent_id: int) -> bool:
        with self._lock:
            return agent_id in self._workers

    def insert_agent(self, agent_id: int, agent: "Agent2D") -> None:
        """Register an agent's sensors; an id already present is left alone."""
        with self._lock:
            if agent_id not in self._workers:
                self._workers[agent_id] = AgentWorker(
                    lidar=SensorWorker(agent.sensors.lidar, self._executor)
                )

    def update_state(
        self,
        agent_id: int,
        config: Agent2DConfig,
        state: Agent2DState,
        scene_state: SceneState,
    ) -> bool:
        """Feed an agent's new state to its worker; False if the agent is unknown."""
        with self._lock:
            worker = self._workers.get(agent_id)
        if worker is None:
            return False
        worker.update_state(config, state, scene_state)
        return True

    def query(self, agent_id: int) -> Optional[Agent2DMeasurements]:
        with self._lock:
            worker = self._workers.get(agent_id)
        return None if worker is None else worker.query()