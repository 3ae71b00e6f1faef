"""A track loaded from an image and a track file, with the interactive controls."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Union

import yaml
from PIL import Image, UnidentifiedImageError

from scenesim.agent import Agent2D
from scenesim.geometry import Box2D, Vec2
from scenesim.scene import Scene2D
from scenesim.trackfile import TrackFileError, load_track_file

log = logging.getLogger(__name__)

_KIND_LABELS = {"io": "IOError", "image": "ImageError", "deserialize": "Deserialize"}


class TrackLoadError(Exception):
    """Loading a track failed while reading a file, decoding the image or parsing."""

    def __init__(self, kind: str, cause: BaseException) -> None:
        if kind not in _KIND_LABELS:
            raise ValueError(f"unknown track load error kind {kind!r}")
        self.kind = kind
        self.cause = cause
        super().__init__(f"{_KIND_LABELS[kind]}: {cause}")


@dataclass(eq=False)
class TrackState:
    """The thresholded track image, the scene built from it and the selected agent."""

    size: tuple[int, int]
    pixels: list[int]
    scene: Scene2D
    active: Optional[int] = None

    @classmethod
    def from_image(
        cls, image: Image.Image, threshold: int, agents: Iterable[Agent2D]
    ) -> "TrackState":
        """Threshold the image to black and white and place the agents on it."""
        start = time.perf_counter()
        grey = image.convert("L")
        width, height = grey.size
        pixels = [0 if p <= threshold else 255 for p in grey.getdata()]
        log.info("Image: Width: %d, Height: %d", width, height)

        scene = Scene2D.from_pixels((width, height), pixels)
        for agent in agents:
            scene.add_agent(agent)

        log.debug("Took %d ms to build track", int((time.perf_counter() - start) * 1000))
        return cls(size=(width, height), pixels=pixels, scene=scene)

    @classmethod
    def load(
        cls, path: Union[str, Path], threshold: int, agents: Iterable[Agent2D]
    ) -> "TrackState":
        """Read and decode an image file, then build the track from it."""
        log.info("Loading Path: %s with threshold %d", path, threshold)
        try:
            with Image.open(path) as image:
                image.load()
                return cls.from_image(image, threshold, agents)
        except (UnidentifiedImageError, Image.DecompressionBombError) as err:
            raise TrackLoadError("image", err) from err
        except OSError as err:
            raise TrackLoadError("io", err) from err


def _build_agent(spec) -> Agent2D:
    agent = Agent2D.with_scale(spec.scale)
    agent.state.position = spec.position
    agent.state.heading = spec.heading
    agent.sensors.lidar.set_regular(spec.lidar.count)
    return agent


def load_track(track_file_path: Union[str, Path]) -> TrackState:
    """Load a track file and the image it names, relative to the file's directory."""
    log.debug("Loading %r", str(track_file_path))
    try:
        with open(track_file_path, encoding="utf-8") as stream:
            track_file = load_track_file(stream)
        resolved = Path(track_file_path).resolve(strict=True)
    except TrackFileError as err:
        raise TrackLoadError("deserialize", err) from err
    except yaml.YAMLError as err:
        raise TrackLoadError("deserialize", err) from err
    except OSError as err:
        raise TrackLoadError("io", err) from err

    agents = [_build_agent(spec) for spec in track_file.agents]
    image_path = resolved.parent / track_file.track

    state = TrackState.load(image_path, track_file.threshold, agents)
    if state.active is None:
        state.active = next(iter(state.scene.agents), None)
    return state


def agent_at(scene: Scene2D, point: Vec2) -> Optional[int]:
    """The id of the first agent whose body contains the world point, if any."""
    for agent_id, agent in scene.agents.items():
        heading = agent.state.heading
        heading = Vec2(heading.x, heading.y * -heading.y)
        body_view = heading.rotate(point - agent.state.position)
        half = Vec2(agent.config.length, agent.config.width) / 2.0
        if Box2D(-half, half).contains(body_view):
            return agent_id
    return None


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def apply_controls(
    agent: Agent2D,
    dt: float,
    accelerate: bool,
    brake: bool,
    left: bool,
    right: bool,
) -> None:
    """Adjust torque and steering from the pressed keys, then clamp them to range."""
    config = agent.config
    state = agent.state
    torque_low, torque_high = config.torque_range
    beta_low, beta_high = config.beta_range
    torque_step = (torque_high - torque_low) * dt * 0.2
    beta_step = (beta_high - beta_low) * dt * 0.2

    if accelerate:
        state.torque += torque_step
    if brake:
        state.torque -= torque_step
    if left:
        state.beta += beta_step
    if right:
        state.beta -= beta_step

    state.torque = _clamp(state.torque, torque_low, torque_high)
    state.beta = _clamp(state.beta, beta_low, beta_high)