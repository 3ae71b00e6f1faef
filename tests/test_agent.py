import math

import pytest

from scenesim.agent import Agent2D, Agent2DConfig, Agent2DMeasurements, Agent2DState
from scenesim.geometry import Vec2


def test_default_config():
    config = Agent2DConfig()
    assert config.mass == 15.0
    assert config.length == 0.5
    assert config.width == 0.25
    assert config.radius_tyre == 0.33
    assert config.inertia_tyre == 0.2
    assert config.torque_range == (-100.0, 100.0)
    assert config.beta_range == (-math.pi / 3.0, math.pi / 3.0)


def test_scale_one_is_default():
    assert Agent2DConfig.with_scale(1.0) == Agent2DConfig()


def test_scaling_laws():
    base = Agent2DConfig()
    scaled = Agent2DConfig.with_scale(2.0)
    assert scaled.mass == pytest.approx(base.mass * 4)
    assert scaled.length == pytest.approx(base.length * 2)
    assert scaled.width == pytest.approx(base.width * 2)
    assert scaled.radius_tyre == pytest.approx(base.radius_tyre * 2)
    assert scaled.inertia_tyre == pytest.approx(base.inertia_tyre * 16)
    assert scaled.torque_range[1] == pytest.approx(base.torque_range[1] * 16)
    assert scaled.beta_range == base.beta_range


def test_agent_with_scale_uses_scaled_config():
    agent = Agent2D.with_scale(3.0)
    assert agent.config == Agent2DConfig.with_scale(3.0)
    assert agent.state == Agent2DState()
    assert agent.last_state is None


def test_default_state_and_measurements():
    state = Agent2DState()
    assert state.heading == Vec2(0.0, 1.0)
    assert state.position == Vec2(0.0, 0.0)
    assert Agent2DMeasurements().lidar is None


def test_agents_have_separate_lidars():
    a, b = Agent2D(), Agent2D()
    a.sensors.lidar.set_regular(4)
    assert len(a.sensors.lidar.directions) == 4
    assert b.sensors.lidar.directions == []


def test_resting_agent_stays_put():
    agent = Agent2D()
    for _ in range(5):
        agent.update(0.1)
    assert agent.state.position == Vec2(0.0, 0.0)
    assert agent.state.heading.x == pytest.approx(0.0)
    assert agent.state.heading.y == pytest.approx(1.0)


def test_moves_along_heading():
    agent = Agent2D()
    agent.state.velocity = 2.0
    agent.update(0.25)
    assert agent.state.position.x == pytest.approx(0.0)
    assert agent.state.position.y == pytest.approx(2.0 * 0.25)


def test_last_state_is_a_snapshot():
    agent = Agent2D()
    agent.state.velocity = 1.0
    before = Agent2DState(velocity=1.0)
    agent.update(0.5)
    assert agent.last_state == before
    agent.update(0.5)
    assert agent.last_state.position != before.position
    assert agent.last_state is not agent.state


def test_torque_accelerates_symmetrically():
    forward, backward = Agent2D(), Agent2D()
    forward.state.torque = 10.0
    backward.state.torque = -10.0
    forward.update(0.1)
    backward.update(0.1)
    assert forward.state.velocity > 0
    assert backward.state.velocity == pytest.approx(-forward.state.velocity)


def test_controls_decay():
    agent = Agent2D()
    agent.state.torque = 10.0
    agent.state.beta = 0.4
    agent.update(1.0)
    assert agent.state.torque == pytest.approx(10.0 * 0.01)
    assert agent.state.beta == pytest.approx(0.4 * 0.3)


def test_positive_steering_turns_left():
    agent = Agent2D()
    agent.state.velocity = 1.0
    agent.state.beta = 0.3
    agent.update(0.1)
    assert agent.state.heading.x < 0
    assert agent.state.heading.length() == pytest.approx(1.0)


def test_heading_stays_unit_while_steering():
    agent = Agent2D()
    agent.state.velocity = 1.5
    for step in range(20):
        agent.state.beta = 0.5 if step % 2 else -0.2
        agent.update(0.05)
        assert agent.state.heading.length() == pytest.approx(1.0)