from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from config import HasherConfig, HashSettings
from errors import ConfigLoadError, InvalidConfigurationError

_ENV = ("OTSUHASH_WIDTH", "OTSUHASH_HEIGHT", "OTSUHASH_RADIX", "OTSUHASH_ALGORITHM")


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV:
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    cfg = HasherConfig()
    assert (cfg.width, cfg.height, cfg.radix) == (8, 8, 16)
    assert cfg.bit_count == 64
    assert cfg.digit_length == 16
    assert HasherConfig(radix=2).digit_length == 64


def test_config_is_frozen() -> None:
    cfg = HasherConfig()
    with pytest.raises(ValidationError):
        cfg.width = 16  # type: ignore[misc]
    assert cfg.replace(width=16).width == 16
    assert cfg.width == 8


@pytest.mark.parametrize(
    "values",
    [{"width": 0}, {"height": -3}, {"radix": 1}, {"radix": 37}, {"depth": 2}],
)
def test_build_rejects_bad_values(values: dict[str, int]) -> None:
    with pytest.raises(InvalidConfigurationError):
        HasherConfig.build(**values)


def test_load_defaults_without_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    settings = HashSettings.load()
    assert settings.hasher == HasherConfig()
    assert settings.algorithm == "otsu"
    assert settings.url_timeout == 10.0


def test_load_hasher_table(tmp_path: Path) -> None:
    p = tmp_path / "otsuhash.toml"
    p.write_text(
        'algorithm = "average"\nurl_timeout = 2.5\n\n[hasher]\nwidth = 16\nheight = 4\nradix = 36\n',
        encoding="utf-8",
    )
    settings = HashSettings.load(p)
    assert (settings.hasher.width, settings.hasher.height, settings.hasher.radix) == (16, 4, 36)
    assert settings.algorithm == "average"
    assert settings.url_timeout == 2.5


def test_load_bare_keys_from_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / "otsuhash.toml").write_text("width = 12\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    settings = HashSettings.load()
    assert settings.hasher.width == 12
    assert settings.hasher.height == 8


def test_env_overrides(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    p = tmp_path / "otsuhash.toml"
    p.write_text("[hasher]\nwidth = 16\n", encoding="utf-8")
    monkeypatch.setenv("OTSUHASH_WIDTH", "4")
    monkeypatch.setenv("OTSUHASH_RADIX", "2")
    monkeypatch.setenv("OTSUHASH_ALGORITHM", "Difference")
    settings = HashSettings.load(p)
    assert settings.hasher.width == 4
    assert settings.hasher.radix == 2
    assert settings.algorithm == "difference"


def test_load_errors(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    with pytest.raises(ConfigLoadError):
        HashSettings.load(tmp_path / "missing.toml")

    broken = tmp_path / "broken.toml"
    broken.write_text("[hasher\nwidth = ", encoding="utf-8")
    with pytest.raises(ConfigLoadError):
        HashSettings.load(broken)

    invalid = tmp_path / "invalid.toml"
    invalid.write_text("[hasher]\nradix = 64\n", encoding="utf-8")
    with pytest.raises(ConfigLoadError):
        HashSettings.load(invalid)

    ok = tmp_path / "ok.toml"
    ok.write_text("", encoding="utf-8")
    monkeypatch.setenv("OTSUHASH_HEIGHT", "zero")
    with pytest.raises(ConfigLoadError):
        HashSettings.load(ok)
