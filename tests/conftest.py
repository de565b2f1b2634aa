import logging

import pytest

from captioner.backoff import BackoffExecutor


@pytest.fixture(autouse=True)
def restore_root_logger():
    """setup_logging replaces root handlers; put pytest's back afterwards."""
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    yield
    for handler in root.handlers[:]:
        if handler not in saved_handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in saved_handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(saved_level)


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def executor(sleeps):
    return BackoffExecutor(max_attempts=5, base_delay=1.0, sleep=sleeps.append)
