import anyio
import pytest

from capitalist.directory.directory import CountryDirectory
from capitalist.models.country import Country, Location, encode_countries
from capitalist.models.result import ErrorKind, Ok, network, not_found
from capitalist.redis_cache.cache import ALL_COUNTRIES_KEY, CountriesCache


class FakeFetcher:
    def __init__(self, outcome):
        self.outcome = outcome
        self.calls = 0

    async def fetch_all(self):
        self.calls += 1
        return self.outcome


class FakeResolver:
    def __init__(self, codes=None):
        self.codes = codes or {}
        self.calls = []

    async def resolve(self, location):
        self.calls.append(location)
        if location in self.codes:
            return Ok(self.codes[location])
        return not_found()


class CountingCache(CountriesCache):
    def __init__(self, client):
        super().__init__(client)
        self.save_calls = 0

    async def save(self, country):
        self.save_calls += 1
        return await super().save(country)


@pytest.fixture
def cache(fake_redis):
    return CountingCache(fake_redis)


@pytest.fixture
def catalog(usa, germany, france):
    return [
        usa,
        germany,
        france,
        Country(name="Niger", code="NER"),
        Country(name="Nigeria", code="NGA"),
    ]


def make_directory(cache, fetcher, resolver=None):
    return CountryDirectory(cache=cache, fetcher=fetcher, resolver=resolver or FakeResolver())


def test_get_all_countries_uses_cache_without_fetching(cache, catalog):
    fetcher = FakeFetcher(Ok([]))
    directory = make_directory(cache, fetcher)

    async def run():
        await cache.save_all(catalog)
        return await directory.get_all_countries()

    assert anyio.run(run) == Ok(catalog)
    assert fetcher.calls == 0


def test_get_all_countries_fetches_and_writes_through(cache, catalog):
    fetcher = FakeFetcher(Ok(catalog))
    directory = make_directory(cache, fetcher)

    async def run():
        fetched = await directory.get_all_countries()
        return fetched, await cache.load_all()

    fetched, cached = anyio.run(run)
    assert fetched == Ok(catalog)
    assert cached == Ok(catalog)
    assert fetcher.calls == 1


def test_get_all_countries_refetches_over_corrupt_cache(cache, fake_redis, catalog):
    fetcher = FakeFetcher(Ok(catalog))
    directory = make_directory(cache, fetcher)

    async def run():
        await fake_redis.set(ALL_COUNTRIES_KEY, "corrupt")
        return await directory.get_all_countries()

    assert anyio.run(run) == Ok(catalog)
    assert fetcher.calls == 1


def test_get_all_countries_refetches_over_non_utf8_snapshot(cache, fake_redis, catalog):
    fetcher = FakeFetcher(Ok(catalog))
    directory = make_directory(cache, fetcher)

    async def run():
        await fake_redis.set(ALL_COUNTRIES_KEY, b"\xff\xfe[")
        fetched = await directory.get_all_countries()
        return fetched, await cache.load_all()

    fetched, cached = anyio.run(run)
    assert fetched == Ok(catalog)
    assert cached == Ok(catalog)
    assert fetcher.calls == 1


def test_get_all_countries_refetches_over_empty_snapshot(cache, fake_redis, catalog):
    fetcher = FakeFetcher(Ok(catalog))
    directory = make_directory(cache, fetcher)

    async def run():
        await fake_redis.set(ALL_COUNTRIES_KEY, encode_countries([]))
        return await directory.get_all_countries()

    assert anyio.run(run) == Ok(catalog)
    assert fetcher.calls == 1


def test_get_all_countries_propagates_fetch_failure(cache):
    directory = make_directory(cache, FakeFetcher(network("Invalid response: 500")))

    async def run():
        outcome = await directory.get_all_countries()
        return outcome, await cache.load_all()

    outcome, cached = anyio.run(run)
    assert outcome.kind == ErrorKind.network
    assert cached.kind == ErrorKind.not_found


def test_get_country_by_code_is_exact(cache, catalog, germany):
    directory = make_directory(cache, FakeFetcher(Ok(catalog)))

    async def run():
        return (
            await directory.get_country_by_code("DE"),
            await directory.get_country_by_code("de"),
        )

    exact, lowercase = anyio.run(run)
    assert exact == Ok(germany)
    assert lowercase.kind == ErrorKind.not_found


def test_get_country_by_code_propagates_upstream_error(cache):
    directory = make_directory(cache, FakeFetcher(network("down")))
    assert anyio.run(directory.get_country_by_code, "DE").kind == ErrorKind.network


def test_get_country_by_name_substring_ignores_case(cache, catalog, usa):
    directory = make_directory(cache, FakeFetcher(Ok(catalog)))
    assert anyio.run(directory.get_country_by_name, "united") == Ok(usa)


def test_get_country_by_name_returns_first_in_catalog_order(cache, catalog):
    directory = make_directory(cache, FakeFetcher(Ok(catalog)))
    assert anyio.run(directory.get_country_by_name, "NIGER").value.code == "NER"


def test_get_country_by_name_without_match(cache, catalog):
    directory = make_directory(cache, FakeFetcher(Ok(catalog)))
    assert anyio.run(directory.get_country_by_name, "Atlantis").kind == ErrorKind.not_found


def test_get_country_by_location_resolves_us(cache, usa):
    new_york = Location(latitude=40.7128, longitude=-74.0060)
    directory = make_directory(cache, FakeFetcher(Ok([usa])), FakeResolver({new_york: "US"}))
    assert anyio.run(directory.get_country_by_location, 40.7128, -74.0060) == Ok(usa)


def test_get_country_by_location_propagates_resolver_error(cache, catalog):
    fetcher = FakeFetcher(Ok(catalog))
    directory = make_directory(cache, fetcher, FakeResolver())
    assert anyio.run(directory.get_country_by_location, 0.0, 0.0).kind == ErrorKind.not_found
    assert fetcher.calls == 0


def test_get_saved_countries_starts_empty(cache):
    directory = make_directory(cache, FakeFetcher(Ok([])))
    assert anyio.run(directory.get_saved_countries) == Ok([])


def test_save_country_twice_adds_once(cache, germany):
    directory = make_directory(cache, FakeFetcher(Ok([])))

    async def run():
        first = await directory.save_country(germany)
        second = await directory.save_country(germany)
        return first, second, await directory.get_saved_countries()

    first, second, saved = anyio.run(run)
    assert first == Ok(True)
    assert second == Ok(False)
    assert saved == Ok([germany])


def test_save_sixth_country_is_rejected_before_cache(cache, make_country):
    directory = make_directory(cache, FakeFetcher(Ok([])))
    countries = [make_country(i) for i in range(1, 6)]
    newcomer = Country(name="NewCountry", code="NC", capital="NewCapital")

    async def run():
        for country in countries:
            await directory.save_country(country)
        rejected = await directory.save_country(newcomer)
        return rejected, await directory.get_saved_countries()

    rejected, saved = anyio.run(run)
    assert rejected.kind == ErrorKind.max_reached
    assert saved == Ok(countries)
    assert cache.save_calls == 5


def test_save_already_saved_country_at_capacity_is_noop(cache, make_country):
    directory = make_directory(cache, FakeFetcher(Ok([])))
    countries = [make_country(i) for i in range(1, 6)]

    async def run():
        for country in countries:
            await directory.save_country(country)
        return await directory.save_country(countries[0])

    assert anyio.run(run) == Ok(False)


def test_remove_country(cache, usa, germany):
    directory = make_directory(cache, FakeFetcher(Ok([])))

    async def run():
        await directory.save_country(usa)
        await directory.save_country(germany)
        removed = await directory.remove_country("US")
        missing = await directory.remove_country("US")
        return removed, missing, await directory.get_saved_countries()

    removed, missing, saved = anyio.run(run)
    assert removed == Ok(True)
    assert missing == Ok(False)
    assert saved == Ok([germany])


def test_seed_saves_country_at_location(cache, catalog, usa):
    new_york = Location(latitude=40.7128, longitude=-74.0060)
    directory = make_directory(cache, FakeFetcher(Ok(catalog)), FakeResolver({new_york: "US"}))
    assert anyio.run(directory.seed_saved_countries, new_york) == Ok([usa])


def test_seed_falls_back_to_default_country(cache, catalog, france):
    resolver = FakeResolver()
    directory = make_directory(cache, FakeFetcher(Ok(catalog)), resolver)
    somewhere = Location(latitude=1.0, longitude=1.0)
    assert anyio.run(directory.seed_saved_countries, somewhere, "FRA") == Ok([france])
    assert resolver.calls == [somewhere]


def test_seed_without_location_uses_default(cache, catalog, france):
    resolver = FakeResolver()
    directory = make_directory(cache, FakeFetcher(Ok(catalog)), resolver)
    assert anyio.run(directory.seed_saved_countries, None, "FRA") == Ok([france])
    assert resolver.calls == []


def test_seed_keeps_existing_saved_list(cache, catalog, germany):
    fetcher = FakeFetcher(Ok(catalog))
    directory = make_directory(cache, fetcher)

    async def run():
        await directory.save_country(germany)
        return await directory.seed_saved_countries(None, "FRA")

    assert anyio.run(run) == Ok([germany])
    assert fetcher.calls == 0


def test_seed_reports_missing_default(cache):
    directory = make_directory(cache, FakeFetcher(network("down")))
    assert anyio.run(directory.seed_saved_countries, None, "FRA").kind == ErrorKind.network
