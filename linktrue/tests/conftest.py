from __future__ import annotations

import pytest

from linktrue.config import RegistryConfig, load_config, reset_config_cache
from linktrue.registry import ProfileRegistry
from linktrue.state.events import InMemoryEventSink
from linktrue.state.store import ProfileStore

ALICE = "0x" + "11" * 20
BOB = "0x" + "22" * 20
CAROL = "0x" + "33" * 20
ZERO = "0x" + "00" * 20

VALID_USERNAME = "valid_username1"


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path):
    """Keep tests independent of the developer's LINKTRUE_* settings."""
    for name in (
        "LINKTRUE_MAX_ITEMS",
        "LINKTRUE_MAX_USERNAME_LENGTH",
        "LINKTRUE_RESERVED_NAMES",
        "LINKTRUE_RESERVED_SUBSTRINGS",
        "LINKTRUE_EVENT_LOG",
        "LINKTRUE_LOG_LEVEL",
        "LINKTRUE_LOG_FORMAT",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("LINKTRUE_STATE_FILE", str(tmp_path / "default-state.json"))
    reset_config_cache()
    yield
    reset_config_cache()


@pytest.fixture
def config() -> RegistryConfig:
    return load_config(env={})


@pytest.fixture
def store(config: RegistryConfig) -> ProfileStore:
    return ProfileStore(config=config)


@pytest.fixture
def sink() -> InMemoryEventSink:
    return InMemoryEventSink()


@pytest.fixture
def registry(store: ProfileStore, sink: InMemoryEventSink) -> ProfileRegistry:
    return ProfileRegistry(store, sink=sink)


@pytest.fixture
def alice() -> str:
    return ALICE


@pytest.fixture
def bob() -> str:
    return BOB


@pytest.fixture
def carol() -> str:
    return CAROL
