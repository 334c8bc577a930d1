"""Tests for the cached catalog listing."""

import asyncio

import pytest

from fanrise.catalog.query import MAX_OFFSET, CatalogQueryEngine, SongQuery, search_filter
from fanrise.core.models import Song
from fanrise.storage.base import Collections
from fanrise.storage.local import InMemoryCacheStorage, InMemoryMetadataStorage


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class CountingStorage(InMemoryMetadataStorage):
    """Counts list queries; can hold them until `release` is set."""

    def __init__(self):
        super().__init__()
        self.queries = 0
        self.release: asyncio.Event | None = None

    async def query(self, *args, **kwargs):
        self.queries += 1
        if self.release is not None:
            await self.release.wait()
        return await super().query(*args, **kwargs)


async def add_songs(metadata, *pairs):
    for title, artist in pairs:
        song = Song(title=title, artist=artist, created_by="acct_seed")
        await metadata.save(Collections.SONGS, song.id, song.to_document())


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return CountingStorage()


@pytest.fixture
def engine(store, clock):
    return CatalogQueryEngine(store, InMemoryCacheStorage(clock=clock), ttl_seconds=300)


# =============================================================================
# Normalization
# =============================================================================


class TestSongQuery:
    def test_defaults(self):
        query = SongQuery.normalize()

        assert (query.page, query.page_size) == (1, 10)
        assert query.sort_field == "title"
        assert query.sort_direction == "asc"

    @pytest.mark.parametrize("raw", ["abc", "0", "-3", "", None, "1.5"])
    def test_bad_numbers_fall_back(self, raw):
        query = SongQuery.normalize(page=raw, page_size=raw)

        assert (query.page, query.page_size) == (1, 10)

    def test_numeric_strings(self):
        query = SongQuery.normalize(page="3", page_size="25")

        assert (query.page, query.page_size) == (3, 25)
        assert query.offset == 50

    def test_page_size_capped(self):
        assert SongQuery.normalize(page_size=5000, max_page_size=100).page_size == 100

    def test_huge_page_clamped(self):
        query = SongQuery.normalize(page="99999999999999999999", page_size="10")

        assert query.offset <= MAX_OFFSET
        assert query.page > 1

    def test_sort_allow_list(self):
        assert SongQuery.normalize(sort_field="releaseYear").sort_field == "release_year"
        assert SongQuery.normalize(sort_field="password_hash").sort_field == "title"

    def test_sort_direction(self):
        assert SongQuery.normalize(sort_direction="DESC").sort_direction == "desc"
        assert SongQuery.normalize(sort_direction="sideways").sort_direction == "asc"

    def test_search_escapes_regex(self):
        flt = search_filter("a.b(")

        assert flt["$or"][0]["title"]["$regex"] == r"a\.b\("

    def test_blank_search_is_no_filter(self):
        assert search_filter("   ") == {}


# =============================================================================
# Engine
# =============================================================================


class TestListSongs:
    @pytest.mark.asyncio
    async def test_pages_are_disjoint_and_complete(self, engine, store):
        await add_songs(store, *[("Same Title", f"Artist {i}") for i in range(7)])

        pages = [await engine.list_songs(page=p, page_size=3) for p in (1, 2, 3)]
        ids = [song.id for page in pages for song in page.items]

        assert len(ids) == 7
        assert len(set(ids)) == 7
        assert pages[0].total_pages == 3
        assert pages[0].total_items == 7

    @pytest.mark.asyncio
    async def test_page_past_the_end_is_empty(self, engine, store):
        await add_songs(store, ("Imagine", "John Lennon"))

        page = await engine.list_songs(page=5, page_size=10)

        assert page.items == []
        assert page.total_items == 1
        assert page.total_pages == 1

    @pytest.mark.asyncio
    async def test_huge_page_is_empty(self, engine, store):
        await add_songs(store, ("Imagine", "John Lennon"))

        page = await engine.list_songs(page="99999999999999999999")

        assert page.items == []
        assert page.total_items == 1

    @pytest.mark.asyncio
    async def test_search_title_and_artist_case_insensitive(self, engine, store):
        await add_songs(
            store,
            ("Bohemian Rhapsody", "Queen"),
            ("Imagine", "John Lennon"),
            ("Bohemian wannabe", "Queen 2"),
        )

        for text in ("bohemian", "RHAPSODY", "hemi"):
            page = await engine.list_songs(search_text=text)
            assert all("hemi" in s.title.lower() for s in page.items)
            assert page.total_items >= 1

        by_artist = await engine.list_songs(search_text="lennon")
        assert [s.title for s in by_artist.items] == ["Imagine"]

    @pytest.mark.asyncio
    async def test_sort_descending(self, engine, store):
        await add_songs(store, ("B", "x"), ("A", "x"), ("C", "x"))

        page = await engine.list_songs(sort_field="title", sort_direction="desc")

        assert [s.title for s in page.items] == ["C", "B", "A"]


class TestCaching:
    @pytest.mark.asyncio
    async def test_cached_within_ttl(self, engine, store, clock):
        await add_songs(store, ("Imagine", "John Lennon"))

        first = await engine.list_songs()
        await add_songs(store, ("Billie Jean", "Michael Jackson"))
        clock.now += 299
        second = await engine.list_songs()

        assert store.queries == 1
        assert second.total_items == first.total_items == 1

    @pytest.mark.asyncio
    async def test_refetched_after_ttl(self, engine, store, clock):
        await add_songs(store, ("Imagine", "John Lennon"))
        await engine.list_songs()

        await add_songs(store, ("Billie Jean", "Michael Jackson"))
        clock.now += 300
        page = await engine.list_songs()

        assert store.queries == 2
        assert page.total_items == 2

    @pytest.mark.asyncio
    async def test_zero_ttl_disables_caching(self, store, clock):
        engine = CatalogQueryEngine(store, InMemoryCacheStorage(clock=clock), ttl_seconds=0)
        await engine.list_songs()

        await add_songs(store, ("Imagine", "John Lennon"))
        page = await engine.list_songs()

        assert store.queries == 2
        assert page.total_items == 1

    @pytest.mark.asyncio
    async def test_expired_searches_do_not_pile_up(self, store, clock):
        cache = InMemoryCacheStorage(clock=clock)
        engine = CatalogQueryEngine(store, cache, ttl_seconds=300)
        for i in range(100):
            await engine.list_songs(search_text=f"query {i}")

        clock.now += 300
        await engine.list_songs(search_text="one more")

        assert len(cache._cache) == 1

    @pytest.mark.asyncio
    async def test_different_queries_cached_separately(self, engine, store):
        await add_songs(store, ("Imagine", "John Lennon"))

        await engine.list_songs(page=1)
        await engine.list_songs(page=2)

        assert store.queries == 2

    @pytest.mark.asyncio
    async def test_concurrent_misses_share_one_query(self, engine, store):
        await add_songs(store, ("Imagine", "John Lennon"))
        store.release = asyncio.Event()

        callers = [asyncio.ensure_future(engine.list_songs()) for _ in range(5)]
        await asyncio.sleep(0)
        store.release.set()
        results = await asyncio.gather(*callers)

        assert store.queries == 1
        assert all(r.total_items == 1 for r in results)

    @pytest.mark.asyncio
    async def test_cancelled_caller_does_not_cancel_shared_query(self, engine, store):
        await add_songs(store, ("Imagine", "John Lennon"))
        store.release = asyncio.Event()

        first = asyncio.ensure_future(engine.list_songs())
        second = asyncio.ensure_future(engine.list_songs())
        await asyncio.sleep(0)
        first.cancel()
        store.release.set()

        page = await second
        assert page.total_items == 1
        assert store.queries == 1
