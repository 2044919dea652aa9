"""Mark every test under `tests/integration/` as `integration`."""

from pathlib import Path

import pytest

from tests.helpers.tiers import add_tier_marker


@pytest.hookimpl(tryfirst=True)
def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    """Add the `integration` marker to this tier's items."""
    add_tier_marker(items, Path(__file__).parent, "integration")
