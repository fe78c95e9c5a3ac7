from datetime import datetime, timezone
from decimal import Decimal
from typing import Annotated
from uuid import uuid4

from pydantic import BaseModel, PlainSerializer
from pydantic.alias_generators import to_camel


# Decimal in Python, plain JSON number on the wire / in export files
Money = Annotated[
    Decimal,
    PlainSerializer(lambda v: float(v), return_type=float, when_used="json"),
]


def new_id() -> str:
    return str(uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """Snake_case attributes, camelCase JSON keys; either accepted on input."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
