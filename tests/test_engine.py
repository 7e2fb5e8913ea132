"""Tests for the Engine facade."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from tagplate import Engine, EngineConfig, MemoryCache
from tagplate.config import PathConfig
from tagplate.exceptions import TemplateNotFoundError

from conftest import write_template


@pytest.fixture
def engine(template_root):
    return Engine(cache=MemoryCache()).add_path("main", template_root)


def test_render_file(engine, template_root):
    write_template(template_root, "page", "Hello {$user.name}!")

    assert engine.render_file("page@main", {"user": {"name": "Ann"}}) == "Hello Ann!"


def test_render_file_stores_artifact_under_reference_key(template_root):
    cache = MemoryCache()
    engine = Engine(cache=cache).add_path("main", template_root)
    write_template(template_root, "page", "{$a}")

    engine.render_file("page@main", {"a": 1})

    assert cache.get("tpl_page_main") == "<?= (a) | e =?>"


def test_cache_key_overrides_identity(template_root):
    cache = MemoryCache()
    engine = Engine(cache=cache).add_path("main", template_root)
    write_template(template_root, "page", "x")

    engine.render_file("page@main", cache_key="k")

    assert "tpl_k" in cache
    assert "tpl_page_main" not in cache


def test_render_string_compiles_once(engine, monkeypatch):
    calls = []
    compile_ = engine.compiler.compile

    def counting(source):
        calls.append(source)
        return compile_(source)

    monkeypatch.setattr(engine.compiler, "compile", counting)

    assert engine.render_string("{$a}", {"a": 1}) == "1"
    assert engine.render_string("{$a}", {"a": 2}) == "2"
    assert len(calls) == 1


def test_assign_merges_and_call_data_is_not_kept(engine):
    engine.assign("a", 1).assign({"b": 2, "a": 3})

    assert engine.render_string("{$a}{$b}") == "32"
    assert engine.render_string("{$a}{$b}", {"b": 9}) == "39"
    assert engine.render_string("{$a}{$b}") == "32"


def test_missing_template_raises(engine):
    with pytest.raises(TemplateNotFoundError) as exc_info:
        engine.render_file("nope@main")

    assert exc_info.value.reference == "nope@main"


def test_missing_include_names_include(engine, template_root):
    write_template(template_root, "page", "{include header@main}body")

    with pytest.raises(TemplateNotFoundError) as exc_info:
        engine.render_file("page@main")

    assert "header@main" in str(exc_info.value)


def test_include_renders_with_shared_data(engine, template_root):
    write_template(template_root, "header", "<h1>{$title}</h1>")
    write_template(template_root, "page", "{include header@main}<p>{$body}</p>")

    html = engine.render_file("page@main", {"title": "T", "body": "B"})

    assert html == "<h1>T</h1><p>B</p>"


def test_paths(engine, tmp_path, template_root):
    engine.add_path("main", tmp_path / "theme", priority=10)

    paths = engine.get_paths()
    assert [e.root for e in paths["main"]] == [tmp_path / "theme", template_root]

    assert engine.remove_path("main") is True
    assert engine.remove_path("main") is True
    assert engine.get_paths() == {}


def test_resolve(engine, template_root):
    path = write_template(template_root, "page", "x")

    assert engine.resolve("page@main") == path
    assert engine.resolve("other@main") is None


def test_set_types(engine, template_root):
    write_template(template_root, "page", "desktop")
    write_template(template_root, "page", "mobile", type_="mobile")

    assert engine.set_debug(True).render_file("page@main") == "desktop"
    assert engine.set_types(["mobile"]).render_file("page@main") == "mobile"


def test_cached_artifact_survives_file_change(engine, template_root):
    path = write_template(template_root, "page", "old")
    assert engine.render_file("page@main") == "old"

    path.write_text("new", encoding="utf-8")

    assert engine.render_file("page@main") == "old"
    assert engine.set_debug(True).render_file("page@main") == "new"


def test_set_cache(template_root):
    engine = Engine().add_path("main", template_root)
    write_template(template_root, "page", "x")
    cache = MemoryCache()

    engine.render_file("page@main")
    assert len(cache) == 0

    engine.set_cache(cache).render_file("page@main")
    assert "tpl_page_main" in cache


def test_extend(engine):
    engine.extend(r"\{year\}", lambda m: "2024")

    assert engine.render_string("(c) {year}") == "(c) 2024"


def test_compile_file_and_string(engine, template_root):
    write_template(template_root, "page", "{if $a}x{/if}")

    assert engine.compile_file("page@main") == "<?py if (a) ?>x<?py endif ?>"
    assert engine.compile_string("{$a}") == "<?= (a) | e =?>"


def test_extension_property():
    config = EngineConfig(extension=".tpl")

    assert Engine(config=config).extension == ".tpl"


def test_config_paths_are_registered(template_root):
    write_template(template_root, "page", "{$a}")
    config = EngineConfig(paths={"main": [PathConfig(path=str(template_root))]})

    assert Engine.from_config(config).render_file("page@main", {"a": "ok"}) == "ok"


def test_from_config_file(tmp_path):
    write_template(tmp_path / "templates", "page", "{$a}")
    config_file = tmp_path / "tagplate.yaml"
    config_file.write_text(
        "paths:\n  main:\n    - path: templates\n", encoding="utf-8"
    )

    engine = Engine.from_config(config_file)

    assert engine.render_file("page@main", {"a": "ok"}) == "ok"


def test_concurrent_renders(engine, template_root):
    write_template(template_root, "page", "{foreach $items as $i}{$i}{/foreach}")

    def work(n):
        return engine.render_file("page@main", {"items": list(range(n))})

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(work, range(50)))

    assert results == ["".join(str(i) for i in range(n)) for n in range(50)]


def test_concurrent_renders_keep_literals_apart(template_root):
    engine = Engine().add_path("main", template_root)
    write_template(template_root, "a", "{literal}<A>{/literal}{$n}")
    write_template(template_root, "b", "{literal}{$B}{/literal}:{$n}")

    def work(n):
        if n % 2:
            return engine.render_file("b@main", {"n": n})
        return engine.render_file("a@main", {"n": n})

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(work, range(100)))

    for n, html in enumerate(results):
        if n % 2:
            assert html == f"{{$B}}:{n}"
        else:
            assert html == f"&lt;A&gt;{n}"
