import pytest
from lxml import etree

from profile_cards.layout import LayoutSpec, calculate_bounds, compose, slot_origin
from profile_cards.models import BackgroundPattern, CardType, LayoutMode, RenderConfig, parse_cards
from profile_cards.svg import card_frame
from profile_cards.themes import get_theme

NS = {"s": "http://www.w3.org/2000/svg"}
THEME = get_theme("dark")


@pytest.mark.parametrize("mode,count,bounds", [
    (LayoutMode.GRID, 1, (450, 200)),
    (LayoutMode.GRID, 2, (920, 200)),
    (LayoutMode.GRID, 3, (920, 420)),
    (LayoutMode.GRID, 4, (920, 420)),
    (LayoutMode.GRID, 5, (920, 640)),
    (LayoutMode.ROW, 3, (1390, 200)),
    (LayoutMode.COLUMN, 3, (450, 640)),
    (LayoutMode.ROW, 0, (0, 0)),
])
def test_bounds(mode, count, bounds):
    assert calculate_bounds(count, LayoutSpec(mode, 450, 200)) == bounds


def test_grid_slots_wrap_after_max_columns():
    spec = LayoutSpec(LayoutMode.GRID, 450, 200)
    assert [slot_origin(i, spec) for i in range(3)] == [(0, 0), (470, 0), (0, 220)]


def test_compose_translates_each_fragment():
    fragments = [card_frame(THEME, 450, 200, f"Card {i}") for i in range(3)]
    document = compose(fragments, LayoutSpec(LayoutMode.COLUMN, 450, 200), THEME, "octo's GitHub Stats")
    root = etree.fromstring(document.encode("utf-8"))
    assert root.get("width") == "450"
    assert root.get("height") == "640"
    assert root.find("s:title", NS).text == "octo's GitHub Stats"
    slots = root.findall("s:g", NS)
    assert [g.get("transform") for g in slots] == ["translate(0, 0)", "translate(0, 220)", "translate(0, 440)"]
    assert "ns0:" not in document


def test_background_pattern_adds_definitions():
    fragments = [card_frame(THEME, 450, 200)]
    document = compose(fragments, LayoutSpec(LayoutMode.GRID, 450, 200), THEME, pattern=BackgroundPattern.DOTS)
    assert 'id="bg-dots"' in document


def test_parse_cards_drops_unknown_names():
    assert parse_cards("streak, bogus,LANGUAGES") == (CardType.STREAK, CardType.LANGUAGES)
    assert parse_cards("") == (CardType.UNIFIED,)
    assert parse_cards("bogus") == (CardType.UNIFIED,)


def test_render_config_from_query_and_cache_key():
    config = RenderConfig.from_query({"user": "Octo", "cards": "streak,unified", "layout": "row",
                                      "borderRadius": "4", "cardSize": "large"})
    assert config.layout is LayoutMode.ROW
    assert config.border_radius == 4
    assert config.card_dimensions == (550, 240)
    other = RenderConfig.from_query({"user": "octo", "cards": "streak,unified", "layout": "row",
                                     "borderRadius": "4", "cardSize": "large"})
    assert config.cache_key() == other.cache_key()
    assert config.cache_key() != RenderConfig.from_query({"user": "octo"}).cache_key()
