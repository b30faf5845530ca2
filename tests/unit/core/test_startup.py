from __future__ import annotations

import pytest

import app.core.startup as startup_module


def test_startup_raises_when_database_unreachable(monkeypatch):
    monkeypatch.setattr(startup_module, "verify_database_connection", lambda: False)

    with pytest.raises(RuntimeError, match="Database connectivity check failed"):
        startup_module.validate_startup_config()


def test_startup_passes_when_database_reachable(monkeypatch):
    monkeypatch.setattr(startup_module, "verify_database_connection", lambda: True)

    startup_module.validate_startup_config()
