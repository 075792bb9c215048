"""Smoke test to verify the project scaffolding works."""

from __future__ import annotations


def test_import() -> None:
    import mcplink

    assert mcplink.__version__ == "0.1.0"


def test_cli_entrypoint() -> None:
    from mcplink.cli import main

    assert callable(main)


def test_server_imports() -> None:
    from mcplink.server import MethodDispatcher, build_dispatcher, create_app

    assert MethodDispatcher is not None
    assert callable(build_dispatcher)
    assert callable(create_app)


def test_lazy_import_from_mcplink() -> None:
    import mcplink

    assert mcplink.MCPConnection is not None
    assert mcplink.ConnectionManager is not None
