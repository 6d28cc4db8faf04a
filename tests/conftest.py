import logging

import pytest

from mandelreel.config import normalise_config
from mandelreel.util.logging_setup import get_logger


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """The CLI binds handlers to pytest's per-test stderr; drop them afterwards."""
    yield
    logger = get_logger()
    for h in list(logger.handlers):
        logger.removeHandler(h)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def make_config(tmp_path):
    """Build a small RenderConfig that writes into tmp_path/frames."""

    def _make(**overrides):
        settings = {
            "max_iter": 20,
            "zoom_start": 0,
            "zoom_end": 0,
            "zoom_factor": 2.0,
            "width": 8,
            "height": 6,
            "frames_dir": str(tmp_path / "frames"),
        }
        settings.update(overrides)
        return normalise_config(settings)

    return _make
