"""Shared pytest configuration and fixtures for sheetstore tests."""

from unittest.mock import Mock

import pytest

from tests.helpers.fakes import make_wrapper

SPREADSHEET_ID = "spreadsheet-id"


def pytest_addoption(parser):
    parser.addoption(
        "--run-slow",
        action="store_true",
        default=False,
        help="Include tests marked @pytest.mark.slow (e.g. live Google Sheets)",
    )


def pytest_configure(config):
    config.addinivalue_line("markers", "slow: marks tests as slow (skipped unless --run-slow)")


def pytest_collection_modifyitems(config, items):
    if config.getoption("--run-slow"):
        return
    skip = pytest.mark.skip(reason="slow test, pass --run-slow to include")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip)


@pytest.fixture
def wrapper() -> Mock:
    return make_wrapper()


@pytest.fixture
def spreadsheet_id() -> str:
    return SPREADSHEET_ID
