import logging
from collections.abc import Generator

import pytest


@pytest.fixture(autouse=True)
def _restore_root_logger() -> Generator[None]:
    """CLI invocations rebind the root handler to a captured stream; put the original handlers back."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
