"""
Acquisition Configuration

Holds the externally supplied, read-only run parameters and the
threshold control mapping.

Technical assumptions:
- Values are checked when a run starts, not when the object is built,
  so an invalid configuration can be edited and retried
- The voltage range is consumed by the acquisition source only
- The threshold control is a slider 0..200 mapped linearly by 1/1000
"""

from dataclasses import dataclass, asdict, fields
from pathlib import Path
import logging
import math
import os

import yaml

from .errors import ConfigurationError

log = logging.getLogger("AcquisitionConfig")

THRESHOLD_RAW_MAX = 200
THRESHOLD_SCALE = 1000.0
DEFAULT_CONFIG_PATH = "./gatescope.yaml"


@dataclass
class AcquisitionConfig:
    """
    Parameters of one acquisition run.

    Attributes:
        physical_channel: "simulated" or a sound card input device name
        min_voltage: Minimum expected voltage
        max_voltage: Maximum expected voltage
        sample_rate: Sample clock rate in Hz
        block_size: Samples per delivered block (N)
        initial_threshold: Gate threshold at start, magnitude units
        output_path: Fixed location of the persisted scalar
        buffer_blocks: Driver buffer size in blocks
        window_capacity: Length of the rolling RMS history
    """
    physical_channel: str = "simulated"
    min_voltage: float = -10.0
    max_voltage: float = 10.0
    sample_rate: float = 10000.0
    block_size: int = 1000
    initial_threshold: float = 0.0
    output_path: str = "mean_abs.txt"
    buffer_blocks: int = 10
    window_capacity: int = 200

    def check_types(self) -> None:
        """
        Check that every field holds a value of its declared kind.

        Integers are accepted for float fields. Booleans are rejected
        everywhere, since YAML turns "yes" and "on" into True.

        Raises:
            ConfigurationError: First field with a wrong type
        """
        for f in fields(self):
            value = getattr(self, f.name)
            if f.type in (float, "float"):
                ok = isinstance(value, (int, float)) and not isinstance(value, bool)
            elif f.type in (int, "int"):
                ok = isinstance(value, int) and not isinstance(value, bool)
            else:
                ok = isinstance(value, str)
            if not ok:
                raise ConfigurationError(f"{f.name} has the wrong type: {value!r}")

    def validate(self) -> None:
        """
        Check the configuration before a run starts.

        Raises:
            ConfigurationError: First invalid parameter found
        """
        self.check_types()
        if self.block_size <= 0:
            raise ConfigurationError(
                f"Block size must be a positive integer, got {self.block_size!r}"
            )
        if not math.isfinite(self.sample_rate) or self.sample_rate <= 0:
            raise ConfigurationError(
                f"Sample rate must be positive, got {self.sample_rate!r}"
            )
        if self.min_voltage >= self.max_voltage:
            raise ConfigurationError(
                f"Minimum voltage ({self.min_voltage}) must be below "
                f"maximum voltage ({self.max_voltage})"
            )
        if not math.isfinite(self.initial_threshold) or self.initial_threshold < 0:
            raise ConfigurationError(
                f"Threshold must be non-negative, got {self.initial_threshold!r}"
            )
        if self.buffer_blocks < 1:
            raise ConfigurationError("Buffer must hold at least one block")
        if self.window_capacity < 1:
            raise ConfigurationError("Rolling window capacity must be at least 1")

    @property
    def block_duration(self) -> float:
        """Duration of one block in seconds."""
        return self.block_size / self.sample_rate

    @property
    def buffer_size(self) -> int:
        """Samples held by the driver buffer."""
        return self.block_size * self.buffer_blocks

    @property
    def buffer_latency(self) -> float:
        """Driver buffer length in seconds."""
        return self.buffer_size / self.sample_rate

    def frequency_resolution(self) -> float:
        """Spacing of spectrum bins in Hz."""
        return self.sample_rate / self.block_size


def threshold_from_raw(raw: float) -> float:
    """
    Map a raw slider position to a gate threshold.

    Args:
        raw: Slider value in [0, THRESHOLD_RAW_MAX]

    Returns:
        Threshold in magnitude units (raw / 1000)
    """
    if not 0 <= raw <= THRESHOLD_RAW_MAX:
        raise ConfigurationError(
            f"Raw threshold must be within 0..{THRESHOLD_RAW_MAX}, got {raw!r}"
        )
    return raw / THRESHOLD_SCALE


def default_config_path() -> Path:
    return Path(os.getenv("GATESCOPE_CONFIG", DEFAULT_CONFIG_PATH))


def load_config(path: str | Path | None = None) -> AcquisitionConfig:
    """
    Load the configuration from YAML, creating a default file if missing.

    Args:
        path: YAML file (default: $GATESCOPE_CONFIG or ./gatescope.yaml)

    Returns:
        AcquisitionConfig with checked types (ranges are checked on start)

    Raises:
        ConfigurationError: Malformed file, unknown keys or wrong value types
    """
    path = Path(path) if path is not None else default_config_path()

    if not path.exists():
        log.warning("Config file not found: %s. Creating default.", path)
        config = AcquisitionConfig()
        save_config(config, path)
        return config

    with open(path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Could not parse {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigurationError(f"{path} must contain a mapping")

    known = {f.name for f in fields(AcquisitionConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigurationError(f"Unknown configuration keys: {', '.join(unknown)}")

    config = AcquisitionConfig(**data)
    config.check_types()
    log.info("Loaded configuration from %s", path)
    return config


def save_config(config: AcquisitionConfig, path: str | Path | None = None) -> None:
    """Write the configuration as YAML."""
    path = Path(path) if path is not None else default_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(asdict(config), f, default_flow_style=False)
    log.info("Configuration saved to %s", path)
