"""
pytest configuration and fixtures.
"""

from pathlib import Path

import falcon
import pytest
from loguru import logger

from serve_helpers.templates import renderer


ASSETS = Path(__file__).parent / "assets"


@pytest.fixture
def assets_dir() -> str:
    return str(ASSETS)


@pytest.fixture
def resp() -> falcon.Response:
    """A bare response, as a responder would receive it."""
    return falcon.Response()


@pytest.fixture
def log_messages():
    """Messages logged through loguru while the test runs."""
    messages = []
    handler_id = logger.add(
        lambda message: messages.append(message.record["message"]),
        level="DEBUG")
    yield messages
    logger.remove(handler_id)


@pytest.fixture
def template_dir(tmp_path) -> Path:
    directory = tmp_path / "templates"
    directory.mkdir()
    return directory


@pytest.fixture(autouse=True)
def reset_default_provider():
    """Keep tests from leaking a default template provider into each other."""
    previous = renderer._default_provider
    yield
    renderer.set_template_provider(previous)
