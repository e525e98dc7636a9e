"""Reader cache keys, week generations and invalidation against reader races."""
from fnmatch import fnmatch

from newsletter.core.cache import CacheManager
from newsletter.services.article_query_service import ArticleQueryService
from newsletter.services.article_service import ArticleService


class InMemoryRedis:
    """The handful of redis.asyncio calls CacheManager makes, over a dict"""

    def __init__(self):
        self.store = {}

    async def get(self, key):
        return self.store.get(key)

    async def setex(self, key, ttl, value):
        self.store[key] = value
        return True

    async def incr(self, key):
        self.store[key] = str(int(self.store.get(key, 0)) + 1)
        return int(self.store[key])

    async def delete(self, *keys):
        return sum(1 for key in keys if self.store.pop(key, None) is not None)

    async def scan_iter(self, match="*"):
        for key in list(self.store):
            if fnmatch(key, match):
                yield key

    async def aclose(self):
        pass


class MemoryCache(CacheManager):
    def __init__(self):
        super().__init__("redis://unused", enabled=True)

    async def connect(self):
        if not self.redis:
            self.redis = InMemoryRedis()


class WriteBeforeStoreCache(MemoryCache):
    """Runs one callback after the reader loaded from the store, before it caches"""

    def __init__(self):
        super().__init__()
        self.before_set = None

    async def set(self, key, value, expire=None):
        callback, self.before_set = self.before_set, None
        if callback is not None:
            await callback()
        return await super().set(key, value, expire)


# ------------------------------------------------------------------
# Keys
# ------------------------------------------------------------------
def test_reader_key_is_independent_of_class_order():
    cache = CacheManager("redis://localhost:6379/0", enabled=False)

    assert cache.reader_key("2025-W47", ["B1", "A1"]) == cache.reader_key("2025-W47", {"A1", "B1", "A1"})
    assert cache.reader_key("2025-W47", ["B1", "A1"], 3) == "newsletter:articles:2025-W47:g3:A1,B1"


def test_public_reader_key():
    cache = CacheManager("redis://localhost:6379/0", enabled=False)

    assert cache.reader_key("2025-W47", []) == "newsletter:articles:2025-W47:g0:public"


async def test_disabled_cache_is_always_a_miss():
    cache = CacheManager("redis://localhost:6379/0", enabled=False)

    assert await cache.set("k", {"a": 1}) is False
    assert await cache.get("k") is None
    assert await cache.week_generation("2025-W47") is None
    assert await cache.invalidate_week("2025-W47") == 0
    assert cache.redis is None


async def test_invalidate_bumps_generation_and_drops_views():
    cache = MemoryCache()
    key = cache.reader_key("2025-W47", [], await cache.week_generation("2025-W47"))
    await cache.set(key, {"articles": []})

    await cache.invalidate_week("2025-W47")

    assert await cache.week_generation("2025-W47") == 1
    assert await cache.get(key) is None


# ------------------------------------------------------------------
# Reader views
# ------------------------------------------------------------------
async def test_reader_view_served_from_cache_until_a_write(session, seed):
    cache = MemoryCache()
    writer = ArticleService(session, cache=cache)
    reader = ArticleQueryService(session, cache=cache)
    article = await writer.create_article(seed.week, "Kept", "Body", is_published=True, actor_id=seed.editor)

    first = await reader.get_public_articles(seed.week)
    assert [a.title for a in first.articles] == ["Kept"]
    assert any(key.startswith("newsletter:articles:") for key in cache.redis.store)

    await writer.update_article(article.id, {"title": "Renamed"}, actor_id=seed.editor)

    second = await reader.get_public_articles(seed.week)
    assert [a.title for a in second.articles] == ["Renamed"]


async def test_write_between_load_and_store_is_not_cached(session, seed):
    cache = WriteBeforeStoreCache()
    writer = ArticleService(session, cache=cache)
    reader = ArticleQueryService(session, cache=cache)
    article = await writer.create_article(seed.week, "Doomed", "Body", is_published=True, actor_id=seed.editor)
    article_id = article.id

    async def delete_concurrently():
        await writer.delete_article(article_id, actor_id=seed.editor)

    cache.before_set = delete_concurrently
    racing = await reader.get_public_articles(seed.week)
    assert [a.title for a in racing.articles] == ["Doomed"]

    later = await reader.get_public_articles(seed.week)
    assert later.articles == []
