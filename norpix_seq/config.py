from __future__ import annotations

import json
import logging
import math
import tomllib
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from .errors import ConfigError
from .frame_decoder import Normalization
from .sinks import IMAGE_FORMATS

logger = logging.getLogger(__name__)


RangeBound = Optional[float]


@dataclass(frozen=True)
class ConvertConfig:
    """
    Settings for one SEQ conversion.

    Attributes:
        input_path: SEQ file, or a directory holding exactly one
        output_dir: Where image files go; None writes no images
        image_format: png, tiff, bmp or jpg
        frame_range: (start, end) request or None for all frames
        make_dir: Create output_dir if it is missing
        show: Preview frames while decoding
        normalization: Sample scaling policy
        strict_format: Fail on unrecognized image format codes
        workers: Decode threads (1 = sequential)
        header_info: Optional .json/.mat path for header metadata
    """

    input_path: Path
    output_dir: Optional[Path] = None
    image_format: str = "png"
    frame_range: Optional[Tuple[RangeBound, RangeBound]] = None
    make_dir: bool = False
    show: bool = False
    normalization: Normalization = Normalization.FIXED_255
    strict_format: bool = False
    workers: int = 1
    header_info: Optional[Path] = None

    def __post_init__(self) -> None:
        if self.input_path is None:
            raise ConfigError("input_path is required")
        if self.image_format not in IMAGE_FORMATS:
            raise ConfigError(
                f"Valid options for image_format are {', '.join(IMAGE_FORMATS)}; "
                f"got '{self.image_format}'"
            )
        if self.workers < 1:
            raise ConfigError(f"workers must be >= 1, got {self.workers}")
        if self.frame_range is not None and len(self.frame_range) != 2:
            raise ConfigError(f"frame_range must have 2 items, got {self.frame_range!r}")

    def with_overrides(self, **overrides: Any) -> "ConvertConfig":
        """Return a copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self


def parse_bound(value: Any) -> RangeBound:
    """Parse a range bound from config or the command line ("inf", "-inf", ints)."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise ConfigError(f"Invalid frame range bound {value!r}")
    if isinstance(value, (int, float)):
        return value
    text = str(value).strip().lower()
    if text in {"inf", "+inf", "infinity"}:
        return math.inf
    if text in {"-inf", "-infinity"}:
        return -math.inf
    try:
        return int(text)
    except ValueError:
        raise ConfigError(f"Invalid frame range bound {value!r}")


def parse_normalization(value: Any) -> Normalization:
    try:
        return Normalization(str(value).lower())
    except ValueError:
        valid = ", ".join(n.value for n in Normalization)
        raise ConfigError(f"Invalid normalization '{value}'. Expected one of: {valid}")


def _read_raw(p: Path) -> Dict[str, Any]:
    suffix = p.suffix.lower()
    if suffix == ".toml":
        with p.open("rb") as f:
            return tomllib.load(f)
    with p.open("r", encoding="utf-8") as f:
        if suffix in {".yaml", ".yml"}:
            return yaml.safe_load(f) or {}
        return json.load(f)


def load_config(config_path: str | Path) -> ConvertConfig:
    """
    Load a ConvertConfig from a TOML, YAML or JSON file.

    Expected TOML structure:

    input = "recordings/run1.seq"
    output = "frames/run1"
    format = "png"
    range = [100, "inf"]
    make_dir = true
    show = false
    normalization = "fixed_255"   # fixed_255|bit_depth
    strict_format = false
    workers = 4
    header_info = "frames/run1/headerinfo.json"

    Relative paths are taken relative to the config file.
    """
    p = Path(config_path)
    if not p.exists():
        raise FileNotFoundError(f"Configuration file not found: {p}")

    raw = _read_raw(p)
    if not isinstance(raw, dict):
        raise ConfigError(f"Configuration in {p} must be a table/mapping")
    if "input" not in raw:
        raise ConfigError(f"Configuration in {p} is missing 'input'")

    base = p.parent

    def _path(key: str) -> Optional[Path]:
        value = raw.get(key)
        if value in (None, ""):
            return None
        q = Path(str(value))
        return q if q.is_absolute() else base / q

    rng = raw.get("range")
    # An empty list means every frame
    if isinstance(rng, (list, tuple)) and not rng:
        rng = None
    if rng is not None:
        if not isinstance(rng, (list, tuple)) or len(rng) != 2:
            raise ConfigError(f"'range' must be a list of two bounds, got {rng!r}")
        rng = (parse_bound(rng[0]), parse_bound(rng[1]))

    cfg = ConvertConfig(
        input_path=_path("input"),
        output_dir=_path("output"),
        image_format=str(raw.get("format", "png")).lower(),
        frame_range=rng,
        make_dir=bool(raw.get("make_dir", False)),
        show=bool(raw.get("show", False)),
        normalization=parse_normalization(raw.get("normalization", "fixed_255")),
        strict_format=bool(raw.get("strict_format", False)),
        workers=int(raw.get("workers", 1)),
        header_info=_path("header_info"),
    )
    logger.debug(f"Loaded configuration from {p}: {cfg}")
    return cfg
