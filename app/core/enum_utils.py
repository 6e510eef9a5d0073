"""
Enum Utilities for VARCHAR-based Status Fields

• Database: VARCHAR(50) - NOT a database ENUM
• SQLAlchemy: String(50) with Mapped[str]
• Pydantic / services: Python ``str`` Enum for validation
• Values are stored exactly as the public API spells them
  (``processing``, ``credit_card``, ``User``)
"""

from enum import Enum
from typing import Any, Optional, TypeVar, Type


T = TypeVar('T', bound=Enum)


def to_enum(value: Any, enum_class: Type[T]) -> Optional[T]:
    """Convert a raw value to an enum member, or None when it is not one."""
    if value is None:
        return None
    if isinstance(value, enum_class):
        return value
    try:
        return enum_class(value)
    except ValueError:
        return None


def enum_values(enum_class: Type[Enum]) -> list:
    """All values of an enum, in declaration order."""
    return [member.value for member in enum_class]
