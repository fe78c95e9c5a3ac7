from gardenbook.models.local_record import LocalRecord
from gardenbook.models.remote_record import RemoteRecord

__all__ = ["LocalRecord", "RemoteRecord"]
