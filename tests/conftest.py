import pytest

# Load shared fixtures from tests._fixtures so pytest discovers them
pytest_plugins = [
    "tests._fixtures.fixtures",
]


@pytest.fixture(autouse=True)
def default_indicator_environment(monkeypatch):
    """Keep developer shell overrides of indicator windows out of the tests."""
    for name in ("SMA_PERIOD", "BB_PERIOD", "BB_MULTIPLIER", "RSI_PERIOD", "VMA_PERIOD", "VROC_PERIOD", "PRICE_SELECTOR"):
        monkeypatch.delenv(name, raising=False)
