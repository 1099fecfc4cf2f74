"""Root pytest configuration and shared fixtures."""

from __future__ import annotations

import os
from typing import Callable, Optional

import pytest

from skyflip.config import ValuationOptions, runtime
from skyflip.models import Listing
from tests.helpers.nbt_builder import feed_record, item_payload


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Ignore developer .env files and SKYFLIP_* variables."""
    monkeypatch.setattr(runtime, "_DEFAULT_VALUES", {})
    for name in list(os.environ):
        if name.startswith("SKYFLIP_"):
            monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture
def listing_factory() -> Callable[..., Listing]:
    """Build listings around a generated item payload."""

    def factory(
        uuid: str,
        price: float,
        item_id: Optional[str] = "FOO",
        *,
        payload: Optional[str] = None,
        lore: str = "",
        **payload_kwargs,
    ) -> Listing:
        encoded = payload if payload is not None else item_payload(item_id, **payload_kwargs)
        return Listing.from_feed(feed_record(uuid, price, encoded, lore=lore))

    return factory


@pytest.fixture
def default_options() -> ValuationOptions:
    return ValuationOptions()
