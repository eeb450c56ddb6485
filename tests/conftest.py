"""Shared pytest setup.

Makes the in-tree ``lazymd`` package importable when the ``pytest`` script
runs without the repository root on ``sys.path``, and keeps every test away
from the real user config file.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

REPO_ROOT = str(Path(__file__).resolve().parents[1])
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point persisted preferences at a per-test file."""
    from lazymd import config

    path = tmp_path / "lazymd-config.json"
    monkeypatch.setattr(config, "CONFIG_PATH", path)
    return path
