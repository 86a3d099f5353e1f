# src/config.py
"""
Hasher configuration and settings loader.

- `HasherConfig`: the immutable (width, height, radix) triple every hash
  call runs against. Validated on construction; never clamped.
- `HashSettings`: optional otsuhash.toml (or a provided path) plus env
  overrides, for applications that want file-driven configuration.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from errors import ConfigLoadError, InvalidConfigurationError
from hash_encoding import MAX_RADIX, MIN_RADIX, digit_length

DEFAULT_WIDTH = 8
DEFAULT_HEIGHT = 8
DEFAULT_RADIX = 16

Algorithm = Literal["otsu", "average", "difference"]


def _describe(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "value"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


class HasherConfig(BaseModel):
    """Grid size and output radix of a hasher."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    width: int = Field(DEFAULT_WIDTH, gt=0, description="Grid columns")
    height: int = Field(DEFAULT_HEIGHT, gt=0, description="Grid rows")
    radix: int = Field(
        DEFAULT_RADIX, ge=MIN_RADIX, le=MAX_RADIX, description="Digit base"
    )

    @classmethod
    def build(cls, **values: Any) -> "HasherConfig":
        """
        Validate and construct, reporting bad values as
        InvalidConfigurationError instead of pydantic's ValidationError.
        """
        try:
            return cls(**values)
        except ValidationError as exc:
            raise InvalidConfigurationError(
                f"Invalid hasher configuration ({_describe(exc)})"
            ) from exc

    def replace(self, **changes: Any) -> "HasherConfig":
        """Return a validated copy with `changes` applied."""
        return HasherConfig.build(**{**self.model_dump(), **changes})

    @property
    def bit_count(self) -> int:
        return self.width * self.height

    @property
    def digit_length(self) -> int:
        """Length of every hash string produced with this configuration."""
        return digit_length(self.bit_count, self.radix)


class HashSettings(BaseModel):
    """Root settings object for applications embedding the hasher."""

    hasher: HasherConfig = HasherConfig()
    algorithm: Algorithm = "otsu"
    url_timeout: float = Field(10.0, gt=0, description="Seconds per URL fetch")

    @staticmethod
    def load(path: Optional[Path] = None) -> "HashSettings":
        """
        Load settings from TOML if present; otherwise return defaults.

        Load order:
          1) Provided path (must exist).
          2) ./otsuhash.toml in the current working directory.
        Env overrides:
          - OTSUHASH_WIDTH, OTSUHASH_HEIGHT, OTSUHASH_RADIX
          - OTSUHASH_ALGORITHM

        Raises:
            ConfigLoadError: if a TOML file cannot be read or validated, or
                an env override is invalid.
        """
        import tomllib

        data: Dict[str, Any] = {}
        toml_path = path or (Path.cwd() / "otsuhash.toml")

        if path is not None and not path.exists():
            raise ConfigLoadError(f"Config file not found: {path}")

        if toml_path.exists():
            try:
                raw_text = toml_path.read_text(encoding="utf-8")
            except OSError as exc:
                raise ConfigLoadError(
                    f"Failed to read config file: {toml_path}"
                ) from exc
            try:
                data = tomllib.loads(raw_text)
            except tomllib.TOMLDecodeError as exc:
                raise ConfigLoadError(
                    f"Invalid TOML in config file: {toml_path}"
                ) from exc

        # Accept either a [hasher] table or bare width/height/radix keys.
        hasher_data = dict(data.get("hasher", {}))
        for key in ("width", "height", "radix"):
            if key in data:
                hasher_data.setdefault(key, data[key])
            env = os.getenv(f"OTSUHASH_{key.upper()}")
            if env:
                hasher_data[key] = env

        top: Dict[str, Any] = {
            k: v for k, v in data.items() if k in ("algorithm", "url_timeout")
        }
        algo_env = os.getenv("OTSUHASH_ALGORITHM")
        if algo_env:
            top["algorithm"] = algo_env.strip().lower()

        try:
            return HashSettings(hasher=HasherConfig(**hasher_data), **top)
        except ValidationError as exc:
            raise ConfigLoadError(
                f"Invalid configuration values in {toml_path} ({_describe(exc)})"
            ) from exc
