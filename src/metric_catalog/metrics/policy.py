"""Field and expression rules for metric definitions."""

import re
from typing import Any

from metric_catalog.common.enums import DataType
from metric_catalog.common.exceptions import ValidationError
from metric_catalog.common.logging import get_logger
from metric_catalog.expressions.validator import ExpressionValidator

logger = get_logger("metrics.policy")

CODE_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9_]*$")
REQUIRED_FIELDS = ("name", "code", "expression", "data_type")
MAX_LENGTHS = {
    "code": 100,
    "name": 255,
    "unit": 50,
    "source_id": 64,
    "owner": 255,
}


class MetricPolicy:
    """Validation rules applied on create, update and publish."""

    def __init__(self, validator: ExpressionValidator):
        self.validator = validator

    def check_fields(self, fields: dict[str, Any]) -> list[str]:
        errors = []
        for name in REQUIRED_FIELDS:
            value = fields.get(name)
            if value is None or (isinstance(value, str) and not value.strip()):
                errors.append(f"{name} is required")

        for name, limit in MAX_LENGTHS.items():
            value = fields.get(name)
            if isinstance(value, str) and len(value) > limit:
                errors.append(f"{name} must be at most {limit} characters")

        code = fields.get("code")
        if isinstance(code, str) and code.strip() and not CODE_PATTERN.match(code):
            errors.append("code must start with a letter and contain only letters, digits and underscores")

        data_type = fields.get("data_type")
        if data_type and data_type not in DataType._value2member_map_:
            allowed = ", ".join(m.value for m in DataType)
            errors.append(f"data_type must be one of: {allowed}")
        return errors

    async def validate_expression(self, expression: str, source_id: str | None) -> None:
        check = await self.validator.validate(expression, source_id)
        if not check.ok:
            logger.warning("expression rejected: %s", check.message)
            raise ValidationError("Expression validation failed", [check.message])

    async def validate(self, fields: dict[str, Any]) -> None:
        """Raise ValidationError unless fields and expression are acceptable."""
        errors = self.check_fields(fields)
        if errors:
            raise ValidationError("Invalid metric definition", errors)
        await self.validate_expression(fields["expression"], fields.get("source_id"))
