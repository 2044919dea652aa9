"""Mark every test under `tests/contract/` as `contract`."""

from pathlib import Path

import pytest

from tests.helpers.tiers import add_tier_marker


@pytest.hookimpl(tryfirst=True)
def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    """Add the `contract` marker to this tier's items."""
    add_tier_marker(items, Path(__file__).parent, "contract")
