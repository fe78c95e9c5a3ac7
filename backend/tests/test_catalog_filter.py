from decimal import Decimal

from gardenbook.data.default_catalog import DEFAULT_CATALOG
from gardenbook.schemas.catalog import CatalogItem, CatalogType
from gardenbook.utils.catalog_filter import filter_catalog


def _plant(name, description="", tags=()):
    return CatalogItem(type=CatalogType.PLANT, name=name, description=description, tags=list(tags))


CATALOG = [
    _plant("Japanese Maple", "Acer palmatum", ("tree", "deciduous")),
    _plant("Maple, Red", "Acer rubrum", ("tree",)),
    _plant("Lavender", "Lavandula, 1 gal", ("drought tolerant",)),
    CatalogItem(type=CatalogType.SERVICE, name="Maple pruning", default_unit="hr", default_unit_price=Decimal("80")),
]


def test_tokens_match_in_any_order():
    assert [i.name for i in filter_catalog(CATALOG, "jap map")] == ["Japanese Maple"]
    assert [i.name for i in filter_catalog(CATALOG, "map jap")] == ["Japanese Maple"]


def test_short_query_returns_nothing():
    assert filter_catalog(CATALOG, "") == []
    assert filter_catalog(CATALOG, "m") == []


def test_matches_description_and_tags():
    assert [i.name for i in filter_catalog(CATALOG, "acer rubrum")] == ["Maple, Red"]
    assert [i.name for i in filter_catalog(CATALOG, "DROUGHT")] == ["Lavender"]


def test_prefix_matches_rank_first_then_alphabetical():
    names = [i.name for i in filter_catalog(CATALOG, "maple")]

    assert names == ["Maple pruning", "Maple, Red", "Japanese Maple"]


def test_type_filter_applies_before_matching():
    names = [i.name for i in filter_catalog(CATALOG, "maple", type=CatalogType.SERVICE)]

    assert names == ["Maple pruning"]


def test_results_are_capped():
    many = [_plant(f"Rose {n:02d}") for n in range(30)]

    results = filter_catalog(many, "rose")

    assert len(results) == 20
    assert results[0].name == "Rose 00"
    assert len(filter_catalog(many, "rose", max_results=5)) == 5


def test_builtin_catalog_is_searchable():
    names = [i.name for i in filter_catalog(DEFAULT_CATALOG, "jasmine")]

    assert names == ["Star Jasmine"]
