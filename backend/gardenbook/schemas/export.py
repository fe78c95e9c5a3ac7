from datetime import datetime
from typing import List, Literal

from pydantic import Field

from gardenbook.schemas.common import CamelModel, utcnow
from gardenbook.schemas.catalog import CatalogItem
from gardenbook.schemas.estimate import Estimate
from gardenbook.schemas.settings import BusinessSettings

EXPORT_VERSION = 1


class ExportCatalogs(CamelModel):
    plants: List[CatalogItem] = []
    services: List[CatalogItem] = []
    materials: List[CatalogItem] = []


class ExportData(CamelModel):
    """Versioned backup snapshot; import replaces the named collections."""
    version: Literal[1] = EXPORT_VERSION
    exported_at: datetime = Field(default_factory=utcnow)
    estimates: List[Estimate] = []
    settings: BusinessSettings
    catalogs: ExportCatalogs = Field(default_factory=ExportCatalogs)
