"""Closed value sets shared by models, schemas and services."""

from enum import Enum


class DataType(str, Enum):
    INTEGER = "INTEGER"
    DECIMAL = "DECIMAL"
    STRING = "STRING"
    DATE = "DATE"
    DATETIME = "DATETIME"


class ResourceType(str, Enum):
    DASHBOARD = "DASHBOARD"
    DATACHART = "DATACHART"
    WIDGET = "WIDGET"
    STORYBOARD = "STORYBOARD"


def enum_value(enum_cls: type[Enum], value, field: str) -> str:
    """Normalize an enum member or raw string to its stored value."""
    from metric_catalog.common.exceptions import ValidationError

    raw = value.value if isinstance(value, Enum) else value
    try:
        return enum_cls(raw).value
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(
            f"Invalid {field}", [f"{field} must be one of: {allowed}"],
        ) from None
