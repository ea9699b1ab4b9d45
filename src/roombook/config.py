#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
"""Structured configuration schemas.

YAML files under `roombook/configs` are validated against these dataclasses
when the entry points start (hydra registers them in its config store), and
library users can build a config with `load_config`."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from hydra.core.config_store import ConfigStore
from omegaconf import DictConfig, OmegaConf

from roombook.constants import (
    DEFAULT_BUFFER_TIME_MINUTES,
    DEFAULT_LOCK_TIMEOUT_SECONDS,
    DEFAULT_SWEEP_INTERVAL_MINUTES,
)


@dataclass
class BookingConfig:
    default_buffer_time_minutes: int = DEFAULT_BUFFER_TIME_MINUTES
    # when true, availability search applies each room's buffer time like the
    # conflict resolver does
    buffer_aware_availability: bool = False
    lock_timeout_seconds: float = DEFAULT_LOCK_TIMEOUT_SECONDS


@dataclass
class SweeperConfig:
    interval_minutes: float = DEFAULT_SWEEP_INTERVAL_MINUTES
    # None runs until interrupted
    max_ticks: Optional[int] = None


@dataclass
class StoreConfig:
    snapshot_path: str = "roombook_store.json"


@dataclass
class AvailabilityQueryConfig:
    start: str = ""
    end: str = ""
    min_capacity: Optional[int] = None


@dataclass
class RoombookConfig:
    booking: BookingConfig = field(default_factory=BookingConfig)
    sweeper: SweeperConfig = field(default_factory=SweeperConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    query: AvailabilityQueryConfig = field(default_factory=AvailabilityQueryConfig)
    debug: bool = False


def register_configs() -> None:
    cs = ConfigStore.instance()
    cs.store(name="roombook_schema", node=RoombookConfig)


def load_config(
    path: Path | str | None = None, overrides: list[str] | None = None
) -> DictConfig:
    """Build a validated config from the defaults, an optional YAML file and
    dotlist overrides (eg `["booking.lock_timeout_seconds=2"]`)."""
    cfg = OmegaConf.structured(RoombookConfig)
    if path is not None:
        cfg = OmegaConf.merge(cfg, OmegaConf.load(path))
    if overrides:
        cfg = OmegaConf.merge(cfg, OmegaConf.from_dotlist(overrides))
    return cfg
