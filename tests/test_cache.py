"""Tests for the artifact cache."""

import logging

from tagplate.cache import ArtifactCache, Cache, MemoryCache
from tagplate.compiler.compiler import TagCompiler


class CountingCompiler(TagCompiler):
    def __init__(self):
        super().__init__()
        self.calls = 0

    def compile(self, source):
        self.calls += 1
        return super().compile(source)


class BrokenCache(Cache):
    def get(self, key):
        raise ConnectionError("cache down")

    def set(self, key, value):
        raise ConnectionError("cache down")


def test_key_for_replaces_unsafe_characters():
    assert ArtifactCache.key_for("page@main") == "tpl_page_main"
    assert ArtifactCache.key_for("layout/header@main") == "tpl_layout_header_main"
    assert ArtifactCache.key_for("{a}(b)/c\\d@e:f") == "tpl__a__b__c_d_e_f"


def test_hit_skips_compile():
    compiler = CountingCompiler()
    cache = MemoryCache()
    artifacts = ArtifactCache(compiler, cache=cache)

    first = artifacts.get_or_compile("page@main", lambda: "{$a}")
    second = artifacts.get_or_compile("page@main", lambda: "ignored")

    assert compiler.calls == 1
    assert first.source == second.source == "<?= (a) | e =?>"
    assert not first.cached
    assert second.cached
    assert cache.get("tpl_page_main") == "<?= (a) | e =?>"


def test_source_provider_only_called_on_miss():
    cache = MemoryCache()
    cache.set("tpl_page_main", "cached")
    artifacts = ArtifactCache(TagCompiler(), cache=cache)

    def provider():
        raise AssertionError("source should not be read on a hit")

    assert artifacts.get_or_compile("page@main", provider).source == "cached"


def test_without_cache_always_compiles():
    compiler = CountingCompiler()
    artifacts = ArtifactCache(compiler)

    artifacts.get_or_compile("page@main", lambda: "x")
    artifacts.get_or_compile("page@main", lambda: "x")

    assert not artifacts.enabled
    assert compiler.calls == 2


def test_debug_neither_reads_nor_writes():
    compiler = CountingCompiler()
    cache = MemoryCache()
    cache.set("tpl_page_main", "stale")
    artifacts = ArtifactCache(compiler, cache=cache, debug=True)

    artifact = artifacts.get_or_compile("page@main", lambda: "fresh")

    assert artifact.source == "fresh"
    assert cache.get("tpl_page_main") == "stale"
    assert compiler.calls == 1


def test_failing_cache_degrades_to_compile(caplog):
    artifacts = ArtifactCache(TagCompiler(), cache=BrokenCache())

    with caplog.at_level(logging.WARNING, logger="tagplate.cache"):
        artifact = artifacts.get_or_compile("page@main", lambda: "{$a}")

    assert artifact.source == "<?= (a) | e =?>"
    messages = [r.getMessage() for r in caplog.records]
    assert any("Cache read failed for tpl_page_main" in m for m in messages)
    assert any("Cache write failed for tpl_page_main" in m for m in messages)


def test_memory_cache():
    cache = MemoryCache()
    cache.set("k", "v")

    assert "k" in cache
    assert len(cache) == 1
    assert cache.get("missing") is None

    cache.clear()
    assert len(cache) == 0


def test_empty_artifact_is_a_hit():
    compiler = CountingCompiler()
    artifacts = ArtifactCache(compiler, cache=MemoryCache())

    artifacts.get_or_compile("empty", lambda: "")
    second = artifacts.get_or_compile("empty", lambda: "")

    assert compiler.calls == 1
    assert second.cached
    assert second.source == ""
