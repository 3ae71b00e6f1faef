"""A kinematic bicycle-model agent driven by wheel torque and steering angle."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Optional

from scenesim.geometry import Vec2, from_angle
from scenesim.lidar import Lidar2D, Lidar2DSensed
from scenesim.sensors import TimeStamped


def _ratio(a: float, b: float) -> float:
    """Divide with IEEE semantics for a zero divisor."""
    try:
        return a / b
    except ZeroDivisionError:
        if a == 0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)


@dataclass(frozen=True)
class Agent2DConfig:
    """Physical parameters of an agent."""

    mass: float = 15.0
    length: float = 0.5
    width: float = 0.25
    radius_tyre: float = 0.33
    inertia_tyre: float = 0.2
    torque_range: tuple[float, float] = (-100.0, 100.0)
    beta_range: tuple[float, float] = (-math.pi / 3.0, math.pi / 3.0)

    @classmethod
    def with_scale(cls, scale: float) -> "Agent2DConfig":
        """Default parameters for an agent ``scale`` times the default size."""
        base = cls()
        return cls(
            mass=base.mass * scale**2,
            length=base.length * scale,
            width=base.width * scale,
            radius_tyre=base.radius_tyre * scale,
            inertia_tyre=base.inertia_tyre * scale**4,
            torque_range=(
                base.torque_range[0] * scale**4,
                base.torque_range[1] * scale**4,
            ),
            beta_range=base.beta_range,
        )


@dataclass
class Agent2DState:
    """Controls and pose of an agent."""

    beta: float = 0.0
    velocity: float = 0.0
    torque: float = 0.0
    position: Vec2 = Vec2(0.0, 0.0)
    heading: Vec2 = Vec2(0.0, 1.0)


@dataclass
class Agent2DSensors:
    """Sensors mounted on an agent; copies of an agent share them."""

    lidar: Lidar2D = field(default_factory=Lidar2D)


@dataclass
class Agent2DMeasurements:
    """Latest readings of an agent's sensors."""

    lidar: Optional[TimeStamped[Lidar2DSensed]] = None


@dataclass
class Agent2D:
    """An agent with its parameters, current and previous state, and sensors."""

    config: Agent2DConfig = field(default_factory=Agent2DConfig)
    state: Agent2DState = field(default_factory=Agent2DState)
    last_state: Optional[Agent2DState] = None
    sensors: Agent2DSensors = field(default_factory=Agent2DSensors)

    @classmethod
    def with_scale(cls, scale: float) -> "Agent2D":
        return cls(config=Agent2DConfig.with_scale(scale))

    def update(self, dt: float) -> None:
        """Advance the agent by ``dt`` seconds."""
        config = self.config
        state = self.state
        beta, velocity, torque, heading = state.beta, state.velocity, state.torque, state.heading

        if self.last_state is not None:
            dbeta_dt = _ratio(beta - self.last_state.beta, dt)
            dv_dt = _ratio(velocity - self.last_state.velocity, dt)
        else:
            dbeta_dt = dv_dt = 0.0

        tan_beta = math.tan(beta)
        cos2_beta = 1.0 / (1.0 + tan_beta * tan_beta)

        angular_velocity = velocity * tan_beta / config.length
        angular_acceleration = (
            tan_beta / config.length * dv_dt
            + velocity / (config.length * cos2_beta) * dbeta_dt
        )
        acceleration = (
            config.radius_tyre
            * torque
            / (2.0 * config.inertia_tyre + config.mass * config.radius_tyre**2)
        )

        self.last_state = replace(state)

        state.position = state.position + heading * velocity * dt
        state.velocity = velocity + acceleration * dt
        turn = angular_velocity * dt + angular_acceleration * dt * dt / 2.0
        state.heading = from_angle(turn).rotate(heading).normalize_or_zero()
        state.torque = torque * 0.01**dt
        state.beta = beta * 0.3**dt