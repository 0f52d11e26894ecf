import itertools
from datetime import datetime

import pytest

from unifeed import services

FIXED_NOW = datetime(2024, 5, 1, 12, 0, 0)


@pytest.fixture(autouse=True)
def _restore_services():
    """Reinstall the default identifier generator and clock after each test."""
    try:
        yield
    finally:
        services.reset_services()


@pytest.fixture
def fixed_services():
    """Install a counting identifier generator and a frozen clock."""
    counter = itertools.count(1)
    services.install_id_generator(lambda: f"id-{next(counter)}")
    services.install_clock(lambda: FIXED_NOW)
    return FIXED_NOW
