"""Conversion between protean aggregates and store records.

Records are whatever ``to_dict()`` produced. Loading keeps only the plain
declared fields of the target class; associations and value objects are
rebuilt by the caller and passed in explicitly.
"""

from protean.fields import HasMany, Reference, ValueObject
from protean.utils.reflection import declared_fields


def load(cls, record: dict, **nested):
    fields = declared_fields(cls)
    values = {
        name: value
        for name, value in record.items()
        if name in fields
        and not name.startswith("_")
        and name not in nested
        and value is not None
        and not isinstance(fields[name], (HasMany, Reference, ValueObject))
    }
    return cls(**values, **nested)


def load_many(cls, records: list[dict]) -> list:
    return [load(cls, record) for record in records]
