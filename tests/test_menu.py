import pytest

from foodheaven_mcp.menu import MenuCache, section_for
from foodheaven_mcp.remote import MemoryDocumentStore


async def test_reload_loads_catalog(remote, notifier):
    menu = MenuCache(remote, notifier)
    assert await menu.reload() is True

    assert menu.loaded and not menu.loading
    assert len(menu) == 4
    assert menu.get("biryani-1").image_url == "https://img.example/biryani.jpg"
    assert menu.get("biryani-1").is_new is True
    assert [n.message for n in notifier.peek()] == ["Loading menu...", "Menu loaded successfully!"]


async def test_reload_replaces_cache_wholesale(remote, notifier):
    menu = MenuCache(remote, notifier)
    await menu.reload()

    await remote.delete("items", "pizza-1")
    await remote.set("items", "dosa-1", {"name": "Masala Dosa", "price": 90, "category": "tiffin"})
    await menu.reload()

    assert menu.get("pizza-1") is None
    assert menu.get("dosa-1").name == "Masala Dosa"


async def test_empty_collection_is_loaded_but_flagged(notifier):
    menu = MenuCache(MemoryDocumentStore(), notifier)
    assert await menu.reload() is True
    assert menu.loaded
    assert len(menu) == 0
    last = notifier.peek()[-1]
    assert (last.message, last.kind) == ("No menu items found", "error")


async def test_failed_reload_keeps_previous_cache(remote, notifier):
    menu = MenuCache(remote, notifier)
    await menu.reload()

    remote.inject_failure("list")
    assert await menu.reload() is False

    assert len(menu) == 4
    assert not menu.loading
    assert notifier.peek()[-1].message == "Failed to load menu. Please refresh."


async def test_render_sees_loading_then_settled(remote, notifier):
    states = []
    menu = MenuCache(remote, notifier, on_render=lambda m: states.append((m.loading, len(m))))
    await menu.reload()
    assert states == [(True, 0), (False, 4)]


async def test_malformed_items_are_skipped(notifier):
    store = MemoryDocumentStore(
        seed={
            "items": {
                "good": {"name": "Idli", "price": 40, "category": "tiffin"},
                "bad": {"name": "Mystery", "price": "lots"},
                "negative": {"name": "Refund", "price": -10},
            }
        }
    )
    menu = MenuCache(store, notifier)
    await menu.reload()
    assert [item.id for item in menu.items()] == ["good"]


async def test_missing_fields_take_defaults(notifier):
    menu = MenuCache(MemoryDocumentStore(seed={"items": {"x": {}}}), notifier)
    await menu.reload()
    item = menu.get("x")
    assert item.name == "Unnamed Dish"
    assert item.price == 0
    assert item.category == "biryani"
    assert item.stock == 999


@pytest.mark.parametrize(
    "category,section",
    [
        ("biryani", "biryani"),
        ("pizza", "pizza"),
        ("chinese", "chinese"),
        ("tiffin", "tiffin"),
        ("cake", "desserts"),
        ("icecream", "desserts"),
        ("beverage", "desserts"),
        ("unknown", "biryani"),
    ],
)
def test_section_for(category, section):
    assert section_for(category) == section


async def test_sections_group_items(remote, notifier):
    menu = MenuCache(remote, notifier)
    await menu.reload()
    sections = menu.sections()

    assert list(sections) == ["biryani", "pizza", "chinese", "tiffin", "desserts"]
    assert {item.id for item in sections["desserts"]} == {"cake-1", "water-1"}
    assert sections["chinese"] == []


async def test_search_matches_name_and_description(remote, notifier):
    menu = MenuCache(remote, notifier)
    await menu.reload()

    assert [item.id for item in menu.search("margh")] == ["pizza-1"]
    assert [item.id for item in menu.search("SAFFRON")] == ["biryani-1"]
    assert menu.search("sushi") == []
    assert len(menu.search("  ")) == 4
