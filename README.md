# scenesim

A small 2D simulation library for car-like agents driving on tracks drawn as
images. Dark pixels are walls, light pixels are free space. The edges of the
walls become line segments, the segments go into a bounding volume hierarchy,
and each agent's lidar casts rays against it.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Modules

- `scenesim.geometry`: `Vec2`, `Box2D`, `LineSegment`, `from_angle`,
  `intersect_ray_box` and `intersect_ray_line_segment`.
- `scenesim.bvh`: Morton-code based hierarchy over line segments
  (`build_bvh`, `BVH`, `BVHNode`, `morton_encode`, `embed_even_bits`,
  `Direction`).
- `scenesim.occupancy_map`: `OccupancyMap`, built with
  `OccupancyMap.from_pixels(size, pixels)` from a grid of occupied flags. It
  labels connected walls, collects the wall edges facing free space, answers
  occupancy queries (`is_occupied`, `is_occupied_vec2`, `translate`,
  `get_box`) and finds the nearest wall along a ray with `cast_rays`. A pixel
  count that does not match the size raises `PixelSizeMismatchError`.
- `scenesim.agent`: `Agent2D` with a kinematic bicycle model (`update(dt)`),
  its `Agent2DConfig` (`with_scale`) and `Agent2DState`.
- `scenesim.sensors`: `SceneState`, `TimeStamped` and the `Sensor2D`
  interface.
- `scenesim.lidar`: `Lidar2D`, a ring of evenly spaced rays
  (`Lidar2D.regular(n)`, `set_regular(n)`), returning hit points as
  `Lidar2DSensed`. It gives no reading when the agent is outside the map or
  inside a wall.
- `scenesim.scene`: `Scene2D` holds the map and the agents, and steps them
  with `update(dt)`.
- `scenesim.scene_loop`: `SceneLoop` runs lidar sensing on a thread pool and
  keeps the latest measurement for each agent (`query(agent_id)`).
- `scenesim.trackfile`: reads YAML track descriptions (`load_track_file`,
  `parse_track_file`) into `TrackFile` and `AgentFile` values.
- `scenesim.track`: `load_track` and `TrackState` turn a track file and its
  image into a ready-to-run scene; `agent_at` and `apply_controls` help drive
  it.

## Example

```python
from scenesim.scene import Scene2D
from scenesim.agent import Agent2D
from scenesim.geometry import Vec2

# 0 = wall, 255 = free; a 4x4 room with a solid border
pixels = [
    0, 0, 0, 0,
    0, 255, 255, 0,
    0, 255, 255, 0,
    0, 0, 0, 0,
]
scene = Scene2D.from_pixels((4, 4), pixels)

agent = Agent2D.with_scale(0.5)
agent.sensors.lidar.set_regular(8)
agent.state.position = Vec2(0.0, 0.0)
agent_id = scene.add_agent(agent)

for _ in range(10):
    scene.update(0.016)

print(scene.scene_loop.query(agent_id))
```

Measurements arrive in the background: each `update` collects a finished
measurement, if any, and starts the next one.

## Track files

A track file is YAML that points at an image and places agents:

```yaml
track: track1.png
threshold: 127
agents:
  - scale: 1.0
    position: {x: 0.0, y: 0.0}
    heading: [1.0, 0.0]
    lidar: {count: 60}
```

Vectors may be written as `[x, y]` or as `{x: .., y: ..}`. `agents` and each
agent's `lidar` may be left out; a lidar then has 60 rays.

`scenesim.track.load_track("path/to/track.yaml")` reads the file, loads the
image named in it relative to the file's directory, turns pixels at or below
the threshold black and the rest white, and returns a `TrackState` whose
`scene` is ready to update and whose `active` is the first agent. Failures
raise `TrackLoadError`, whose `kind` is `"io"`, `"image"` or `"deserialize"`.

`agent_at(scene, point)` returns the id of the agent under a world point, and
`apply_controls(agent, dt, accelerate, brake, left, right)` adjusts an
agent's torque and steering angle and clamps them to the agent's ranges.

## What it does not do

scenesim is a library only. It has no window, no drawing of the track or the
agents, no keyboard handling and no command to run; the caller decides when to
step the scene and how to show it.