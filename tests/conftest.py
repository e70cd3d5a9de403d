"""Shared test fixtures for linescm tests."""

import os
from datetime import datetime, timezone

import pytest

from linescm.scm.models import Changeset


def pytest_addoption(parser):
    """Add --run-slow option for slow tests."""
    parser.addoption(
        "--run-slow",
        action="store_true",
        default=False,
        help="run slow tests",
    )


def pytest_configure(config):
    """Configure slow marker."""
    config.addinivalue_line("markers", "slow: mark test as slow to run")


def pytest_collection_modifyitems(config, items):
    """Skip slow tests unless --run-slow is given."""
    if config.getoption("--run-slow"):
        return
    skip_slow = pytest.mark.skip(reason="need --run-slow option to run")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


@pytest.fixture
def r1():
    """Changeset from New Year's Day 2018."""
    return Changeset(
        revision="r1", author="alice@example.com", date=datetime(2018, 1, 1, tzinfo=timezone.utc)
    )


@pytest.fixture
def r2():
    """Changeset from March 2018, newer than r1."""
    return Changeset(
        revision="r2", author="bob@example.com", date=datetime(2018, 3, 5, tzinfo=timezone.utc)
    )


@pytest.fixture
def isolated_config_env(tmp_path, monkeypatch):
    """Keep load_config away from the developer's own config files and env."""
    home = tmp_path / "home"
    home.mkdir()
    work = tmp_path / "work"
    work.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(work)
    for key in list(os.environ):
        if key.startswith("LINESCM_"):
            monkeypatch.delenv(key)
    return home, work
