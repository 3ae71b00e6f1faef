"""Track description files: the track image, its threshold and the agents placed on it."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Any, Mapping, Union

import yaml

from scenesim.geometry import Vec2

_DEFAULT_LIDAR_COUNT = 60


class TrackFileError(ValueError):
    """A track file does not have the expected shape."""


@dataclass(frozen=True)
class LidarCount:
    """A lidar with ``count`` evenly spaced rays."""

    count: int = _DEFAULT_LIDAR_COUNT


@dataclass(frozen=True)
class AgentFile:
    """An agent as described in a track file."""

    scale: float = 1.0
    position: Vec2 = Vec2(0.0, 0.0)
    heading: Vec2 = Vec2(1.0, 0.0)
    lidar: LidarCount = field(default_factory=LidarCount)


@dataclass(frozen=True)
class TrackFile:
    """A track image path, the grey level separating walls from free space, and agents."""

    track: Path
    threshold: int
    agents: list[AgentFile] = field(default_factory=list)


def _number(value: Any, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TrackFileError(f"{name}: expected a number, got {value!r}")
    return float(value)


def _unsigned(value: Any, name: str, upper: Union[int, None] = None) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TrackFileError(f"{name}: expected an unsigned integer, got {value!r}")
    if value < 0 or (upper is not None and value > upper):
        raise TrackFileError(f"{name}: value {value} out of range")
    return value


def _required(data: Mapping[str, Any], key: str) -> Any:
    if key not in data:
        raise TrackFileError(f"missing field `{key}`")
    return data[key]


def parse_vec2(value: Any) -> Vec2:
    """Read a vector written either as ``[x, y]`` or as ``{x: .., y: ..}``."""
    if isinstance(value, (list, tuple)):
        if len(value) != 2:
            raise TrackFileError(
                f"invalid length {len(value)}, expected a vector of two numbers"
            )
        return Vec2(_number(value[0], "x"), _number(value[1], "y"))

    if isinstance(value, Mapping):
        for key in value:
            if key not in ("x", "y"):
                raise TrackFileError(f"unknown field `{key}`, expected `x` or `y`")
        x = _number(_required(value, "x"), "x")
        y = _number(_required(value, "y"), "y")
        return Vec2(x, y)

    raise TrackFileError(f"invalid type: expected a vector, got {value!r}")


def _parse_lidar(value: Any) -> LidarCount:
    if isinstance(value, Mapping) and "count" in value:
        count = value["count"]
        if not isinstance(count, bool) and isinstance(count, int) and count >= 0:
            return LidarCount(count)
    raise TrackFileError("data did not match any variant of untagged enum LidarFile")


def _parse_agent(value: Any) -> AgentFile:
    if not isinstance(value, Mapping):
        raise TrackFileError(f"invalid type: expected an agent mapping, got {value!r}")
    scale = _number(_required(value, "scale"), "scale")
    position = parse_vec2(_required(value, "position"))
    heading = parse_vec2(_required(value, "heading"))
    lidar = _parse_lidar(value["lidar"]) if "lidar" in value else LidarCount()
    return AgentFile(scale=scale, position=position, heading=heading, lidar=lidar)


def parse_track_file(data: Any) -> TrackFile:
    """Validate an already decoded document and turn it into a :class:`TrackFile`."""
    if not isinstance(data, Mapping):
        raise TrackFileError(f"invalid type: expected a track mapping, got {data!r}")

    track = _required(data, "track")
    if not isinstance(track, str):
        raise TrackFileError(f"track: expected a path, got {track!r}")
    threshold = _unsigned(_required(data, "threshold"), "threshold", upper=255)

    agents_data = data.get("agents", [])
    if not isinstance(agents_data, list):
        raise TrackFileError(f"agents: expected a sequence, got {agents_data!r}")

    return TrackFile(
        track=Path(track),
        threshold=threshold,
        agents=[_parse_agent(agent) for agent in agents_data],
    )


def load_track_file(stream: Union[str, bytes, IO]) -> TrackFile:
    """Read a YAML track file from text or an open stream."""
    try:
        data = yaml.safe_load(stream)
    except yaml.YAMLError as err:
        raise TrackFileError(str(err)) from err
    return parse_track_file(data)