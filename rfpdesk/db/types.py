"""Custom SQLAlchemy column types used at the storage boundary."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from functools import cached_property

from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.types import DateTime, String, Text, TypeDecorator


class UTCDateTime(TypeDecorator):
    """Timezone-aware UTC datetimes on every backend.

    Postgres stores timestamptz natively; SQLite has no zone support, so
    values are written as naive UTC and re-tagged on the way out.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if not isinstance(value, datetime):
            raise TypeError(f"Expected datetime, got {type(value).__name__}")
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        value = value.astimezone(timezone.utc)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class EnumText(TypeDecorator):
    """Closed enum stored as text; unknown values are rejected both ways."""

    impl = String
    cache_ok = True

    def __init__(self, enum_cls: type[Enum], length: int = 32):
        super().__init__(length=length)
        self.enum_cls = enum_cls

    def _coerce(self, value) -> Enum:
        try:
            return self.enum_cls(value)
        except ValueError:
            raise ValueError(
                f"Unknown {self.enum_cls.__name__} value: {value!r}"
            ) from None

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return self._coerce(value).value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return self._coerce(value)


class JSONRecordList(TypeDecorator):
    """Ordered list of pydantic records serialized to JSON text.

    Business logic only ever sees typed records; JSON exists only in the
    column.
    """

    impl = Text
    cache_ok = True

    def __init__(self, record_type: type[BaseModel]):
        super().__init__()
        self.record_type = record_type

    @cached_property
    def adapter(self) -> TypeAdapter:
        return TypeAdapter(list[self.record_type])

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        try:
            records = self.adapter.validate_python(list(value))
        except PydanticValidationError as exc:
            raise ValueError(f"Invalid {self.record_type.__name__} list: {exc}") from exc
        return self.adapter.dump_json(records).decode("utf-8")

    def process_result_value(self, value, dialect):
        if value is None or value == "":
            return []
        return self.adapter.validate_json(value)
