import pytest

from bgsubs.settings import Settings


@pytest.fixture
def settings():
    return Settings(
        public_url="",
        vercel_url="",
        enabled_providers=["subsunacs", "subsab"],
        json_logs=False,
    )
