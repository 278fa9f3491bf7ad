import fakeredis
import pytest

from capitalist.models.country import Country, Currency, Location


def _make_country(index: int) -> Country:
    return Country(
        name=f"Country{index}",
        code=f"C{index}",
        capital=f"Capital{index}",
        coordinates=Location(latitude=40.7128, longitude=-74.0060),
        currencies=(Currency(code=f"CUR{index}", name=f"Currency{index}", symbol="$"),),
    )


@pytest.fixture
def make_country():
    return _make_country


@pytest.fixture
def redis_server():
    return fakeredis.FakeServer()


@pytest.fixture
def fake_redis(redis_server):
    return fakeredis.FakeAsyncRedis(server=redis_server)


@pytest.fixture
def usa() -> Country:
    return Country(
        name="United States",
        code="US",
        capital="Washington D.C.",
        coordinates=Location(latitude=38.0, longitude=-97.0),
        currencies=(Currency(code="USD", name="US Dollar", symbol="$"),),
    )


@pytest.fixture
def germany() -> Country:
    return Country(
        name="Germany",
        code="DE",
        capital="Berlin",
        coordinates=Location(latitude=51.0, longitude=9.0),
        currencies=(Currency(code="EUR", name="Euro", symbol="€"),),
    )


@pytest.fixture
def france() -> Country:
    return Country(
        name="France",
        code="FRA",
        capital="Paris",
        coordinates=Location(latitude=46.0, longitude=2.0),
        currencies=(Currency(code="EUR", name="Euro", symbol="€"),),
    )
