"""
Shared pytest fixtures for rabbitstress tests.
"""

import logging
import random
from pathlib import Path

import pytest

from rabbitstress import Binding, DryRunPublisher, Exchange, ExchangeKind, ManualClock


@pytest.fixture(scope="session")
def test_output_root() -> Path:
    """
    Returns the root test_output directory. Created once per test session.
    Files here persist after tests complete for easy inspection.
    """
    output_dir = Path(__file__).parent.parent / "test_output"
    output_dir.mkdir(exist_ok=True)
    return output_dir


@pytest.fixture
def test_output_dir(request, test_output_root) -> Path:
    """
    Returns a directory for the current test to write reports into.
    Directory structure: test_output/<module_name>/<test_name>/
    """
    module_name = request.module.__name__.split(".")[-1]
    test_name = request.node.name

    test_dir = test_output_root / module_name / test_name
    test_dir.mkdir(parents=True, exist_ok=True)
    return test_dir


@pytest.fixture(autouse=True)
def reset_rabbitstress_logging():
    """Reset logging state before and after each test.

    Removes all handlers except a NullHandler and resets the level, so
    logging configuration from one test never leaks into another.
    """
    logger = logging.getLogger("rabbitstress")

    def _reset():
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
            if not isinstance(handler, logging.NullHandler):
                handler.close()
        logger.addHandler(logging.NullHandler())
        logger.setLevel(logging.NOTSET)

    _reset()
    yield
    _reset()


@pytest.fixture
def exchanges() -> list[Exchange]:
    return [
        Exchange(name="orders", kind=ExchangeKind.TOPIC),
        Exchange(name="audit", kind=ExchangeKind.FANOUT),
    ]


@pytest.fixture
def bindings() -> list[Binding]:
    return [
        Binding(source="orders", routing_key="orders.created", destination="OrdersQueue"),
        Binding(source="orders", routing_key="orders.cancelled", destination="OrdersQueue"),
        Binding(source="audit", routing_key="", destination="AuditQueue"),
    ]


@pytest.fixture
def publisher() -> DryRunPublisher:
    return DryRunPublisher(keep_messages=True)


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)
