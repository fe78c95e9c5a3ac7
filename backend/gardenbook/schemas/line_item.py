from enum import Enum
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import Field

from gardenbook.schemas.common import CamelModel, Money, new_id


class LineItemCategory(str, Enum):
    PLANTING = "Planting"
    HARDSCAPE = "Hardscape"
    IRRIGATION = "Irrigation"
    LIGHTING = "Lighting"
    LABOR = "Labor"
    EQUIPMENT = "Equipment"
    OTHER = "Other"


ALL_CATEGORIES = list(LineItemCategory)
DEFAULT_TAXABLE_CATEGORIES = [LineItemCategory.PLANTING, LineItemCategory.OTHER]

UNIT_OPTIONS = {
    "ea": "each",
    "sqft": "sq ft",
    "lnft": "lin ft",
    "cuyd": "cu yd",
    "hr": "hour",
    "lot": "lot",
    "flat": "flat",
    "bag": "bag",
    "ton": "ton",
    "roll": "roll",
    "box": "box",
}

ListKey = Literal["plantMaterial", "laborAndServices", "otherMaterials"]
LIST_KEYS = ("plantMaterial", "laborAndServices", "otherMaterials")

# Default category for a new row, per list
LIST_DEFAULT_CATEGORY = {
    "plantMaterial": LineItemCategory.PLANTING,
    "laborAndServices": LineItemCategory.LABOR,
    "otherMaterials": LineItemCategory.OTHER,
}


class LineItem(CamelModel):
    id: str = Field(default_factory=new_id)
    category: LineItemCategory = LineItemCategory.OTHER
    description: str = ""
    quantity: Money = Decimal("1")
    unit: str = "ea"
    unit_price: Money = Decimal("0")
    no_price: bool = False
    sub_items: Optional[List[str]] = None


class SimpleLineItem(CamelModel):
    """Flat row of a standalone invoice; no category, no tax."""
    id: str = Field(default_factory=new_id)
    description: str = ""
    amount: Money = Decimal("0")
    sub_items: Optional[List[str]] = None


class ProjectSection(CamelModel):
    id: str = Field(default_factory=new_id)
    name: str = "New Section"
    plant_material: List[LineItem] = []
    labor_and_services: List[LineItem] = []
    other_materials: List[LineItem] = []

    def items(self, list_key: str) -> List[LineItem]:
        """Return the list named by its camelCase key."""
        return getattr(self, _ATTRIBUTE_BY_KEY[list_key])

    def all_items(self) -> List[LineItem]:
        return [*self.plant_material, *self.labor_and_services, *self.other_materials]


_ATTRIBUTE_BY_KEY = {
    "plantMaterial": "plant_material",
    "laborAndServices": "labor_and_services",
    "otherMaterials": "other_materials",
}
