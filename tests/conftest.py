# tests/conftest.py
from __future__ import annotations

import ipaddress
import os
import socket
from typing import Any, Dict

import pytest

from sitegate.consent import MemoryStorage
from sitegate.validate import resolve_config
from tests.helpers.consent import FakeClock

# Preserve the original connect so we can delegate when allowed
_ORIG_CONNECT = socket.socket.connect

_LOOPBACK_HOSTS = {"localhost", "127.0.0.1", "::1"}


def _is_loopback_host(host: str) -> bool:
    """
    Return True if `host` is a loopback literal (IPv4/IPv6) or 'localhost' (case-insensitive).
    Avoid DNS to keep things strictly offline.
    """
    h = host.strip().lower()
    if h in _LOOPBACK_HOSTS:
        return True
    try:
        return ipaddress.ip_address(h).is_loopback
    except ValueError:
        return False


@pytest.fixture(autouse=True)
def _ban_external_network(monkeypatch: pytest.MonkeyPatch):
    """
    Ban all outbound network connections in tests when SITEGATE_NETWORK_BAN=1,
    but allow loopback and Unix domain sockets.
    """
    if os.environ.get("SITEGATE_NETWORK_BAN", "0") != "1":
        yield
        return

    def _connect_guard(self: socket.socket, address):
        if isinstance(address, str):
            return _ORIG_CONNECT(self, address)
        try:
            host = address[0]
        except (TypeError, IndexError):
            raise AssertionError(f"Network calls are banned in CI (unexpected address: {address!r})")
        if _is_loopback_host(str(host)):
            return _ORIG_CONNECT(self, address)
        raise AssertionError(f"Network calls are banned in CI (attempted connect to {address!r})")

    monkeypatch.setattr(socket.socket, "connect", _connect_guard, raising=True)
    yield


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path):
    """Keep host configuration out of discovery and the consent store."""
    for var in ("SITEGATE_CONFIG", "SITEGATE_CONSENT_PATH", "SITEGATE_DEBUG"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg-empty"))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def effective():
    """Resolve a raw mapping and return only the EffectiveConfig."""

    def _make(raw: Dict[str, Any] | None = None):
        cfg, _ = resolve_config(raw or {})
        return cfg

    return _make

