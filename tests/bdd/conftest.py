"""
Shared fixtures and step definitions for BDD tests.

- runner, store, context: available to all scenario files in this directory
- no_logging: autouse, prevents log file creation during tests
- 'the output contains' step: shared across all feature files
"""

from datetime import datetime

import pytest
from unittest.mock import patch
from click.testing import CliRunner
from pytest_bdd import given, then, parsers

from studiocrm.db.memory import StudioStore
from studiocrm.db.seed import create_seeded_store

NOW = datetime(2026, 10, 19, 9, 0)


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def context():
    """Mutable dict shared between Given/When/Then steps within a scenario."""
    return {"store": StudioStore(clock=lambda: NOW, single_popular=False)}


@pytest.fixture(autouse=True)
def no_logging():
    with patch("studiocrm.cli.main.configure_logging"):
        yield


@given("the studio starts from the sample data")
def seeded_studio(context):
    context["store"] = create_seeded_store(clock=lambda: NOW, single_popular=False)


@given("an empty studio")
def empty_studio(context):
    context["store"] = StudioStore(clock=lambda: NOW, single_popular=False)


@then(parsers.parse('the output contains "{text}"'))
def output_contains(context, text):
    assert text in context["result"].output, (
        f"Expected {text!r} in output:\n{context['result'].output}"
    )


@pytest.fixture
def now():
    return NOW
