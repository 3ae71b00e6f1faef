from concurrent.futures import Executor, Future

import pytest

from scenesim.agent import Agent2D, Agent2DState
from scenesim.geometry import Vec2
from scenesim.lidar import Lidar2D
from scenesim.occupancy_map import PixelSizeMismatchError
from scenesim.scene import Scene2D
from scenesim.scene_loop import SceneLoop


class ImmediateExecutor(Executor):
    def submit(self, fn, *args, **kwargs):
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except BaseException as exc:
            future.set_exception(exc)
        return future


def _track(n=6):
    return [
        0 if x in (0, n - 1) or y in (0, n - 1) else 255
        for y in range(n)
        for x in range(n)
    ]


@pytest.fixture
def scene():
    s = Scene2D.from_pixels((6, 6), _track(6))
    s.scene_loop = SceneLoop(executor=ImmediateExecutor())
    return s


def test_pixel_size_mismatch():
    with pytest.raises(PixelSizeMismatchError) as info:
        Scene2D.from_pixels((3, 3), [255] * 8)
    assert info.value.count == 8
    assert info.value.shape == (3, 3)


def test_pixel_threshold_inverts():
    s = Scene2D.from_pixels((4, 1), [0, 127, 128, 255])
    assert [s.is_occupied((x, 0)) for x in range(4)] == [True, True, False, False]


def test_bounds_and_occupancy(scene):
    assert scene.in_bounds((5, 5))
    assert not scene.in_bounds((6, 0))
    assert scene.in_bounds_vec2(Vec2(0.0, 0.0))
    assert not scene.in_bounds_vec2(Vec2(3.0, 0.0))
    assert scene.is_occupied((0, 0))
    assert not scene.is_occupied((2, 2))
    assert scene.is_occupied((10, 10))
    assert scene.is_occupied_vec2(Vec2(100.0, 0.0))
    assert not scene.is_occupied_vec2(Vec2(0.5, 0.5))


def test_translate_get_box_round_trip(scene):
    for y in range(6):
        for x in range(6):
            box = scene.get_box((x, y))
            assert scene.translate(box.centroid()) == (x, y)
            assert box.size() == Vec2(1.0, 1.0)


def test_add_agent_ids(scene):
    assert scene.add_agent(Agent2D()) == 0
    assert scene.add_agent(Agent2D()) == 1
    assert set(scene.agents) == {0, 1}
    assert scene.scene_loop.contains_agent(1)


def test_state_snapshot(scene):
    scene.update(0.5)
    scene.update(0.25)
    state = scene.state()
    assert state.time == pytest.approx(0.75)
    assert state.occupancy_map is scene.occupancy_map


def test_update_moves_agents(scene):
    agent = Agent2D(state=Agent2DState(velocity=1.0))
    agent_id = scene.add_agent(agent)
    scene.update(0.5)
    moved = scene.agents[agent_id].state.position
    assert moved.x == pytest.approx(0.0)
    assert moved.y == pytest.approx(0.5)


def test_update_feeds_sensors(scene):
    agent = Agent2D()
    agent.sensors.lidar = Lidar2D.regular(8)
    agent_id = scene.add_agent(agent)
    scene.update(0.1)
    assert scene.scene_loop.query(agent_id).lidar is None
    scene.update(0.1)
    measurement = scene.scene_loop.query(agent_id).lidar
    assert measurement is not None
    assert measurement.time == pytest.approx(0.1)
    assert len(measurement.state.points) == 8


def test_lidar_from_every_free_pixel(scene):
    lidar = Lidar2D.regular(60)
    agent = Agent2D()
    width, height = scene.occupancy_map.size
    free = [
        i for i, occupied in enumerate(scene.occupancy_map.pixels) if not occupied
    ]
    assert len(free) == 16
    for location in free:
        box = scene.get_box((location % width, location // width))
        agent.state.position = box.centroid()
        sensed = lidar.sense(agent.config, agent.state, scene.state())
        assert sensed is not None
        assert len(sensed.state.points) == 60
        for point in sensed.state.points:
            assert max(abs(point.x), abs(point.y)) == pytest.approx(2.0, abs=1e-6)


def test_lidar_in_wall_senses_nothing(scene):
    agent = Agent2D()
    agent.state.position = scene.get_box((0, 0)).centroid()
    assert Lidar2D.regular(10).sense(agent.config, agent.state, scene.state()) is None