from enum import Enum
from decimal import Decimal
from typing import List

from pydantic import Field

from gardenbook.schemas.common import CamelModel, Money, new_id
from gardenbook.schemas.line_item import LineItemCategory


class CatalogType(str, Enum):
    PLANT = "plant"
    SERVICE = "service"
    MATERIAL = "material"


class CatalogItem(CamelModel):
    id: str = Field(default_factory=new_id)
    type: CatalogType
    category: LineItemCategory = LineItemCategory.OTHER
    name: str
    description: str = ""
    default_unit: str = "ea"
    default_unit_price: Money = Decimal("0")
    tags: List[str] = []
    is_built_in: bool = False
