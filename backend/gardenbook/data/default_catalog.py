"""Built-in catalog entries seeded into empty catalogs on startup."""
from decimal import Decimal

from gardenbook.schemas.catalog import CatalogItem, CatalogType
from gardenbook.schemas.line_item import LineItemCategory


def _item(key, catalog_type, category, name, unit, price, description="", tags=()):
    return CatalogItem(
        id=f"builtin-{key}",
        type=catalog_type,
        category=category,
        name=name,
        description=description,
        default_unit=unit,
        default_unit_price=Decimal(price),
        tags=list(tags),
        is_built_in=True,
    )


PLANTS = [
    _item("p-15-tree", CatalogType.PLANT, LineItemCategory.PLANTING, "#15 Tree", "ea", "200.00",
          "15 gallon tree in container", ("tree", "15 gal")),
    _item("p-5-gal", CatalogType.PLANT, LineItemCategory.PLANTING, "5 gal plants", "ea", "40.00",
          "Assorted shrubs and perennials", ("shrub", "perennial")),
    _item("p-1-gal", CatalogType.PLANT, LineItemCategory.PLANTING, "1 gal plants", "ea", "12.00",
          "Assorted perennials and groundcover", ("perennial", "groundcover")),
    _item("p-5-rose", CatalogType.PLANT, LineItemCategory.PLANTING, "5 gal Roses", "ea", "50.00",
          "Shrub and climbing roses", ("rose", "flowering")),
    _item("p-4in", CatalogType.PLANT, LineItemCategory.PLANTING, "4\" plants", "ea", "5.00",
          "Annuals and small groundcover", ("annual", "groundcover")),
    _item("p-jasmine", CatalogType.PLANT, LineItemCategory.PLANTING, "Star Jasmine", "ea", "35.00",
          "Trachelospermum jasminoides, 5 gal", ("vine", "fragrant", "evergreen")),
    _item("p-lavender", CatalogType.PLANT, LineItemCategory.PLANTING, "Lavender", "ea", "14.00",
          "Lavandula, 1 gal", ("drought tolerant", "fragrant")),
    _item("p-flat", CatalogType.PLANT, LineItemCategory.PLANTING, "Flat of groundcover", "flat", "45.00",
          "", ("groundcover",)),
]

SERVICES = [
    _item("s-install", CatalogType.SERVICE, LineItemCategory.LABOR, "Plant installation", "hr", "65.00",
          "Planting labor including soil preparation", ("labor", "install")),
    _item("s-demo", CatalogType.SERVICE, LineItemCategory.LABOR, "Plant removal and haul away", "lot", "450.00",
          "Remove existing plants and debris", ("demo", "removal")),
    _item("s-irrigation", CatalogType.SERVICE, LineItemCategory.IRRIGATION, "Irrigation retrofit", "lot", "1200.00",
          "Convert spray heads to drip", ("drip", "water")),
    _item("s-lighting", CatalogType.SERVICE, LineItemCategory.LIGHTING, "Landscape lighting install", "ea", "175.00",
          "Low-voltage fixture with wiring", ("lights", "low voltage")),
    _item("s-design", CatalogType.SERVICE, LineItemCategory.LABOR, "Landscape design", "lot", "1500.00",
          "Site visit, plan and plant selection", ("design", "plan")),
]

MATERIALS = [
    _item("m-bark", CatalogType.MATERIAL, LineItemCategory.OTHER, "Bark mulch", "cu yd", "65.00",
          "Shredded fir bark", ("mulch", "bark")),
    _item("m-compost", CatalogType.MATERIAL, LineItemCategory.OTHER, "Compost", "cu yd", "55.00",
          "Organic soil amendment", ("soil", "amendment")),
    _item("m-gravel", CatalogType.MATERIAL, LineItemCategory.HARDSCAPE, "Decomposed granite", "ton", "95.00",
          "Stabilized DG for paths", ("gravel", "path", "dg")),
    _item("m-flagstone", CatalogType.MATERIAL, LineItemCategory.HARDSCAPE, "Flagstone", "sq ft", "18.00",
          "Arizona flagstone, set in sand", ("stone", "path", "patio")),
    _item("m-edging", CatalogType.MATERIAL, LineItemCategory.HARDSCAPE, "Steel edging", "lf", "9.00",
          "", ("border", "steel")),
]

DEFAULT_CATALOG = PLANTS + SERVICES + MATERIALS
