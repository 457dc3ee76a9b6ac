"""
FlockConfig system for configurable flocking behavior.

This module provides a single source of truth for simulation parameters, with
named presets and support for custom overrides.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, Literal, Optional, Union

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# Types & Constants
# -----------------------------------------------------------------------------

AlignmentScope = Literal["global", "neighbors"]
SpawnShape = Literal["disk", "square", "clusters"]
InitialHeading = Literal["random", "zero"]

ALIGNMENT_SCOPES = ("global", "neighbors")
SPAWN_SHAPES = ("disk", "square", "clusters")
INITIAL_HEADINGS = ("random", "zero")


# -----------------------------------------------------------------------------
# Data Structures
# -----------------------------------------------------------------------------


@dataclass
class FlockConfig:
    """
    Configuration for a flocking simulation.

    Holds the population and geometry of the world, the steering options, and
    the seed used to spawn it.
    """

    # Identity/meta
    key: str = "default"
    name: str = "Default Flock"
    description: str = "Reference flock: 2000 boids in a 1000-unit arena"

    # Population & spawning
    population_count: int = 2000
    spawn_radius: float = 100.0
    spawn_shape: SpawnShape = "disk"
    cluster_count: int = 3  # Only used by spawn_shape="clusters"
    initial_heading: InitialHeading = "random"
    seed: int = 0

    # Geometry
    neighbor_radius: float = 100.0  # Local flock-mate distance
    map_radius: float = 1000.0  # Beyond this, steer back to the origin

    # Motion
    agent_speed: float = 100.0  # World units per second
    agent_size: float = 30.0  # Rendering only
    return_bias: float = 1.0  # Length of the boundary-return heading

    # Steering options
    # "global" aligns with every agent's heading; "neighbors" only with agents
    # inside neighbor_radius.
    alignment_scope: AlignmentScope = "global"

    # Use the compiled neighbor scan
    use_numba: bool = True

    def to_dict(self) -> Dict[str, Any]:
        """Convert FlockConfig to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> FlockConfig:
        """
        Create FlockConfig from dictionary, ignoring unknown keys.

        Extra keys in the dict are silently ignored, and missing keys use the
        dataclass defaults.
        """
        known_fields = {f.name for f in cls.__dataclass_fields__.values()}
        filtered_data = {k: v for k, v in data.items() if k in known_fields}
        return cls(**filtered_data)

    def validate(self) -> FlockConfig:
        """Raise ValueError if any parameter is out of range; return self."""
        if self.population_count < 0:
            raise ValueError(
                f"population_count must be >= 0, got {self.population_count}"
            )
        for name in ("spawn_radius", "neighbor_radius", "map_radius", "agent_speed"):
            value = getattr(self, name)
            if not value > 0:
                raise ValueError(f"{name} must be > 0, got {value}")
        if self.agent_size < 0:
            raise ValueError(f"agent_size must be >= 0, got {self.agent_size}")
        if not self.return_bias > 0:
            raise ValueError(f"return_bias must be > 0, got {self.return_bias}")
        if self.alignment_scope not in ALIGNMENT_SCOPES:
            raise ValueError(
                f"alignment_scope must be one of {ALIGNMENT_SCOPES}, "
                f"got {self.alignment_scope!r}"
            )
        if self.spawn_shape not in SPAWN_SHAPES:
            raise ValueError(
                f"spawn_shape must be one of {SPAWN_SHAPES}, got {self.spawn_shape!r}"
            )
        if self.cluster_count < 1:
            raise ValueError(f"cluster_count must be >= 1, got {self.cluster_count}")
        if self.initial_heading not in INITIAL_HEADINGS:
            raise ValueError(
                f"initial_heading must be one of {INITIAL_HEADINGS}, "
                f"got {self.initial_heading!r}"
            )
        return self


# -----------------------------------------------------------------------------
# Presets
# -----------------------------------------------------------------------------

CONFIG_PRESETS: Dict[str, FlockConfig] = {
    "default": FlockConfig(),
    "small": FlockConfig(
        key="small",
        name="Small Flock",
        description="A few hundred boids, quick enough for interactive demos",
        population_count=200,
        spawn_radius=150.0,
        neighbor_radius=60.0,
        map_radius=400.0,
        agent_speed=80.0,
        agent_size=8.0,
    ),
    "local-alignment": FlockConfig(
        key="local-alignment",
        name="Local Alignment",
        description="Reference flock, aligning only with neighbors in range",
        alignment_scope="neighbors",
    ),
    "square-spawn": FlockConfig(
        key="square-spawn",
        name="Square Spawn",
        description="Reference flock scattered over a square instead of a disk",
        spawn_shape="square",
    ),
    "clusters": FlockConfig(
        key="clusters",
        name="Clusters",
        description="Reference flock split into a few tight groups around the spawn disk",
        spawn_shape="clusters",
        cluster_count=4,
    ),
}


# -----------------------------------------------------------------------------
# Factory
# -----------------------------------------------------------------------------


def build_config(
    flock_config: Optional[Union[str, dict, FlockConfig]] = None,
) -> FlockConfig:
    """
    Build a validated FlockConfig from various input formats.

    Args:
        flock_config: Can be:
            - None: uses "default" preset
            - str: preset key (e.g. "small"), falls back to "default" with a
                   warning if not found
            - dict: either a preset override (if "key" field matches a preset)
                    or a complete custom config
            - FlockConfig: copied as-is

    Returns:
        A FlockConfig owned by the caller; presets are never handed out
    """
    if flock_config is None:
        config = CONFIG_PRESETS["default"]

    elif isinstance(flock_config, str):
        if flock_config not in CONFIG_PRESETS:
            logger.warning(
                "Unknown preset %r, using \"default\" (known: %s)",
                flock_config,
                ", ".join(sorted(CONFIG_PRESETS)),
            )
        config = CONFIG_PRESETS.get(flock_config, CONFIG_PRESETS["default"])

    elif isinstance(flock_config, dict):
        key = flock_config.get("key")
        if key and key in CONFIG_PRESETS:
            # Start from preset, overlay custom fields
            base_dict = CONFIG_PRESETS[key].to_dict()
            base_dict.update(flock_config)
            config = FlockConfig.from_dict(base_dict)
        else:
            config = FlockConfig.from_dict(flock_config)

    elif isinstance(flock_config, FlockConfig):
        config = flock_config

    else:
        raise TypeError(f"Unsupported flock_config type: {type(flock_config)}")

    return replace(config).validate()
