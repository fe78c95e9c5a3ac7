from enum import Enum
from typing import List, Optional

from gardenbook.schemas.common import CamelModel


class SyncStatus(str, Enum):
    IDLE = "idle"
    SYNCING = "syncing"
    SYNCED = "synced"
    ERROR = "error"


class SyncStatusResponse(CamelModel):
    status: SyncStatus
    enabled: bool
    user_id: Optional[str] = None
    pending: List[str] = []


class SignInRequest(CamelModel):
    user_id: str
    email: Optional[str] = None
