"""Lookup and input-coercion helpers shared by the service modules."""

from enum import Enum
from typing import Any, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.errors import NotFoundError, ValidationError

ModelT = TypeVar("ModelT")
EnumT = TypeVar("EnumT", bound=Enum)


async def get_or_raise(
    db: AsyncSession,
    model: type[ModelT],
    entity_id: str,
    label: str | None = None,
    *,
    for_update: bool = False,
) -> ModelT:
    """Load a row by primary key or raise ``NotFoundError``.

    ``for_update`` locks the row for the rest of the transaction on backends that
    support ``SELECT ... FOR UPDATE`` (SQLite serialises writers anyway).
    """
    query = select(model).where(model.id == entity_id)  # type: ignore[attr-defined]
    if for_update:
        query = query.with_for_update()
    result = await db.execute(query)
    obj = result.scalar_one_or_none()
    if obj is None:
        raise NotFoundError.for_entity(label or model.__name__, entity_id)
    return obj


def coerce_enum(enum_cls: type[EnumT], value: Any, label: str) -> EnumT:
    """Turn a raw value into ``enum_cls`` or raise ``ValidationError``."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(str(member.value) for member in enum_cls)
        raise ValidationError(f"Unknown {label} '{value}' (expected one of: {allowed})") from None


def clean_text(value: str | None, label: str, min_length: int, max_length: int) -> str:
    """Strip ``value`` and enforce its length bounds."""
    text = (value or "").strip()
    if len(text) < min_length:
        raise ValidationError(f"{label} must be at least {min_length} characters")
    if len(text) > max_length:
        raise ValidationError(f"{label} must be at most {max_length} characters")
    return text
