"""Shared fixtures for the opcxmlda test suite."""

from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from opcxmlda.config import get_settings
from opcxmlda.config.settings import set_toml_config

WriteLayers = Callable[..., Path]


@pytest.fixture
def config_layers(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> WriteLayers:
    """Write TOML layers into a fresh config dir and point the loader at it.

    Keyword names are layer names: config_layers(default="...", lab="...").
    OPCXMLDA_ENV is cleared unless `env` is given.
    """
    directory = tmp_path / "config"
    directory.mkdir()
    monkeypatch.setenv("OPCXMLDA_CONFIG_DIR", str(directory))

    def write(env: str | None = None, **layers: str) -> Path:
        for name, text in layers.items():
            (directory / f"{name}.toml").write_text(text)
        if env is None:
            monkeypatch.delenv("OPCXMLDA_ENV", raising=False)
        else:
            monkeypatch.setenv("OPCXMLDA_ENV", env)
        return directory

    return write


@pytest.fixture(autouse=True)
def fresh_settings() -> Iterator[None]:
    """Drop cached settings around every test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
    set_toml_config({})
