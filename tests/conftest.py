"""Shared fixtures."""

from __future__ import annotations

import pytest

from mcplink.config import ClientSettings, ServerSettings, SSESettings


@pytest.fixture
def client_settings() -> ClientSettings:
    """Client settings with the health probe and SSE listener switched off."""
    return ClientSettings(health_check=False, sse=SSESettings(enabled=False))


@pytest.fixture
def server_settings(tmp_path) -> ServerSettings:
    return ServerSettings(data_dir=tmp_path)
