"""Tests for the menu catalog and menu extraction."""

import asyncio
from typing import Optional

import httpx
import pytest

from qrmenu.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from qrmenu.services.menu_catalog import MenuCatalog
from qrmenu.services.menu_extraction import chain as chain_module
from qrmenu.services.menu_extraction import (
    BaseMenuExtractor,
    ExtractedItem,
    HeuristicMenuParser,
    MenuExtractionChain,
    MenuSource,
    parse_menu_text,
)
from qrmenu.services.menu_extraction.base import parse_items_json
from qrmenu.services.menu_extraction.llm import ChatCompletionsClient, TextMenuExtractor, VisionMenuExtractor

MENU_TEXT = """
STARTERS
Paneer Tikka ..... Rs. 250
Smoky cottage cheese cubes
Served with mint chutney
MAIN COURSE
Dal Makhani ₹240
Butter Chicken 380.00
"""


@pytest.fixture
def catalog(registry) -> MenuCatalog:
    return MenuCatalog(registry, default_currency="INR")


async def add_item(catalog, db, tenant_id, **values):
    data = {"name": "Paneer Tikka", "price": 300, "category": "Starters"}
    data.update(values)
    return await catalog.create(db, tenant_id, data)


class TestCatalog:

    async def test_create_normalizes(self, db, catalog, owner):
        item = await add_item(catalog, db, owner.id, name="  Dal Makhani ", category=" Mains ")

        assert item.name == "Dal Makhani"
        assert item.category == "mains"
        assert item.currency == "INR"
        assert item.is_available

    async def test_create_requires_fields(self, db, catalog, owner):
        with pytest.raises(ValidationError):
            await catalog.create(db, owner.id, {"name": "Tea", "category": "beverages"})

    async def test_negative_price(self, db, catalog, owner):
        with pytest.raises(ValidationError):
            await add_item(catalog, db, owner.id, price=-1)

    async def test_update_and_ownership(self, db, catalog, owner, other_owner):
        item = await add_item(catalog, db, owner.id)

        updated = await catalog.update(db, item.id, owner.id, {"price": 320, "currency": "usd", "name": None})
        assert updated.price == 320
        assert updated.currency == "USD"
        assert updated.name == "Paneer Tikka"

        with pytest.raises(ForbiddenError):
            await catalog.update(db, item.id, other_owner.id, {"price": 1})

    async def test_unknown_item(self, db, catalog, owner):
        with pytest.raises(NotFoundError):
            await catalog.set_availability(db, "missing", owner.id, False)

    async def test_delete_all_is_tenant_scoped(self, db, catalog, owner, other_owner):
        await add_item(catalog, db, owner.id)
        await add_item(catalog, db, owner.id, name="Tea", category="beverages")
        await add_item(catalog, db, other_owner.id)

        assert await catalog.delete_all(db, owner.id) == 2
        assert await catalog.list_for_tenant(db, owner.id) == []
        assert len(await catalog.list_for_tenant(db, other_owner.id)) == 1

    async def test_bulk_upsert(self, db, catalog, owner, other_owner):
        existing = await add_item(catalog, db, owner.id)
        foreign = await add_item(catalog, db, other_owner.id)

        saved = await catalog.bulk_upsert(db, owner.id, [
            {"id": existing.id, "price": 275},
            {"id": foreign.id, "price": 1},
            {"name": "Masala Chai", "price": 40, "category": "Beverages"},
        ])

        assert [item.name for item in saved] == ["Paneer Tikka", "Masala Chai"]
        assert saved[0].price == 275
        assert saved[1].user_id == owner.id
        await db.refresh(foreign)
        assert foreign.price == 300

    async def test_bulk_upsert_requires_rows(self, db, catalog, owner):
        with pytest.raises(ValidationError):
            await catalog.bulk_upsert(db, owner.id, [])


class TestPublicMenu:

    async def test_by_token_includes_table_and_available_items(self, db, catalog, owner, table_qr):
        await add_item(catalog, db, owner.id)
        tea = await add_item(catalog, db, owner.id, name="Masala Chai", category="beverages")
        hidden = await add_item(catalog, db, owner.id, name="Kulfi", category="desserts")
        await catalog.set_availability(db, hidden.id, owner.id, False)

        menu = await catalog.public_menu(db, "ignored", token=table_qr.token)

        assert menu.restaurant.id == owner.id
        assert menu.table_number == "5"
        assert {item.name for item in menu.items} == {"Paneer Tikka", "Masala Chai"}
        assert list(menu.categories) == ["beverages", "starters"]
        assert menu.categories["beverages"] == [tea]

    async def test_by_slug(self, db, catalog, owner):
        await add_item(catalog, db, owner.id)
        menu = await catalog.public_menu(db, "spice-garden")

        assert menu.restaurant.id == owner.id
        assert menu.table_number is None
        assert len(menu.items) == 1

    async def test_unknown_slug(self, db, catalog, owner):
        with pytest.raises(NotFoundError):
            await catalog.public_menu(db, "no-such-place")

    async def test_inactive_token(self, db, catalog, table_qr):
        table_qr.is_active = False
        await db.commit()
        with pytest.raises(NotFoundError):
            await catalog.public_menu(db, "spice-garden", token=table_qr.token)


class TestHeuristicParser:

    def test_parses_prices_categories_and_descriptions(self):
        items = parse_menu_text(MENU_TEXT)

        assert [(i.name, i.price, i.category) for i in items] == [
            ("Paneer Tikka", 250.0, "appetizers"),
            ("Dal Makhani", 240.0, "mains"),
            ("Butter Chicken", 380.0, "mains"),
        ]
        assert items[0].description == "Smoky cottage cheese cubes Served with mint chutney"
        assert items[0].currency == "INR"

    def test_lines_without_prices_are_skipped(self):
        assert parse_menu_text("Welcome to our restaurant\nOpen daily") == []

    async def test_parser_needs_text(self):
        assert await HeuristicMenuParser().try_extract_items(MenuSource(content=b"x", mimetype="image/png")) is None


class TestParseItemsJson:

    def test_fenced_reply(self):
        reply = 'Here you go:\n```json\n[{"name": "Tea", "price": "40", "category": "Beverages"}]\n```'
        items = parse_items_json(reply)

        assert items == [ExtractedItem(name="Tea", price=40.0, category="beverages", currency="INR")]

    def test_unknown_category_and_bad_price(self):
        items = parse_items_json('[{"name": "Mystery", "price": "n/a", "category": "specials"}]')
        assert items[0].category == "uncategorized"
        assert items[0].price == 0.0

    @pytest.mark.parametrize("reply", [None, "", "no json here", "[not valid json"])
    def test_unusable_replies(self, reply):
        assert parse_items_json(reply) is None


class StubExtractor(BaseMenuExtractor):

    def __init__(self, label: str, items: Optional[list[ExtractedItem]], delay: float = 0.0):
        self.label = label
        self.items = items
        self.delay = delay

    @property
    def name(self) -> str:
        return self.label

    async def try_extract_items(self, source: MenuSource) -> Optional[list[ExtractedItem]]:
        await asyncio.sleep(self.delay)
        return self.items


class TestExtractionChain:

    async def test_image_uses_first_extractor_with_items(self):
        tea = ExtractedItem(name="Tea", price=40)
        chain = MenuExtractionChain(
            [StubExtractor("empty", None), StubExtractor("vision", [tea])],
            [],
        )
        result = await chain.extract(b"\x89PNG", "image/png")

        assert result.method == "vision"
        assert result.items == [tea]
        assert result.needs_manual_review

    async def test_slow_extractor_hands_over(self):
        tea = ExtractedItem(name="Tea", price=40)
        chain = MenuExtractionChain(
            [StubExtractor("slow", [tea], delay=1.0), StubExtractor("fast", [tea])],
            [],
            timeout=0.05,
        )
        result = await chain.extract(b"\x89PNG", "image/jpeg")
        assert result.method == "fast"

    async def test_image_without_extractors_needs_manual_entry(self):
        result = await MenuExtractionChain([], [HeuristicMenuParser()]).extract(b"\x89PNG", "image/png")
        assert result.items == []
        assert result.method == "none"

    async def test_pdf_text_goes_to_text_extractors(self, monkeypatch):
        monkeypatch.setattr(chain_module, "extract_pdf_text", lambda content: MENU_TEXT)
        chain = MenuExtractionChain([], [HeuristicMenuParser()])

        result = await chain.extract(b"%PDF-1.4", "application/pdf")

        assert result.method == "heuristic"
        assert len(result.items) == 3
        assert result.extracted_text == MENU_TEXT

    async def test_pdf_without_text(self, monkeypatch):
        monkeypatch.setattr(chain_module, "extract_pdf_text", lambda content: "   ")
        with pytest.raises(ValidationError):
            await MenuExtractionChain([], [HeuristicMenuParser()]).extract(b"%PDF-1.4", "application/pdf")

    async def test_corrupt_pdf(self):
        with pytest.raises(ValidationError):
            await MenuExtractionChain([], []).extract(b"definitely not a pdf", "application/pdf")

    async def test_unsupported_type(self):
        with pytest.raises(ValidationError):
            await MenuExtractionChain([], []).extract(b"hello", "text/plain")

    async def test_empty_upload(self):
        with pytest.raises(ValidationError):
            await MenuExtractionChain([], []).extract(b"", "image/png")

    async def test_failing_extractor_hands_over(self):
        class BrokenExtractor(StubExtractor):
            async def try_extract_items(self, source: MenuSource) -> Optional[list[ExtractedItem]]:
                raise RuntimeError("provider exploded")

        tea = ExtractedItem(name="Tea", price=40)
        chain = MenuExtractionChain([BrokenExtractor("broken", None), StubExtractor("vision", [tea])], [])

        result = await chain.extract(b"\x89PNG", "image/png")
        assert result.method == "vision"


def chat_client(handler) -> ChatCompletionsClient:
    return ChatCompletionsClient("test-key", base_url="https://ai.test/v1", transport=httpx.MockTransport(handler))


class TestChatCompletionExtractors:

    async def test_reads_items_from_reply(self):
        reply = '[{"name": "Tea", "price": 40, "category": "beverages"}]'
        client = chat_client(lambda request: httpx.Response(
            200, json={"choices": [{"message": {"content": reply}}]}
        ))

        source = MenuSource(mimetype="application/pdf", text="Tea 40")
        items = await TextMenuExtractor(client, "gpt-test").try_extract_items(source)

        assert [(item.name, item.price, item.category) for item in items] == [("Tea", 40.0, "beverages")]

    @pytest.mark.parametrize(
        "status, reply",
        [
            (200, {"text": "<html>gateway</html>"}),
            (200, {"json": {"choices": [{"message": None}]}}),
            (200, {"json": {"choices": []}}),
            (502, {"text": "bad gateway"}),
        ],
    )
    async def test_unusable_reply_yields_nothing(self, status, reply):
        client = chat_client(lambda request: httpx.Response(status, **reply))

        text_items = await TextMenuExtractor(client, "gpt-test").try_extract_items(
            MenuSource(mimetype="application/pdf", text=MENU_TEXT)
        )
        image_items = await VisionMenuExtractor(client, "gpt-test").try_extract_items(
            MenuSource(mimetype="image/png", content=b"\x89PNG")
        )

        assert text_items is None
        assert image_items is None

    async def test_garbled_reply_falls_back_to_heuristics(self, monkeypatch):
        monkeypatch.setattr(chain_module, "extract_pdf_text", lambda content: MENU_TEXT)
        client = chat_client(lambda request: httpx.Response(200, text="<html>gateway</html>"))
        chain = MenuExtractionChain([], [TextMenuExtractor(client, "gpt-test"), HeuristicMenuParser()])

        result = await chain.extract(b"%PDF-1.4", "application/pdf")

        assert result.method == "heuristic"
        assert len(result.items) == 3
