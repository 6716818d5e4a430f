"""Expression validation collaborators.

The catalog never executes expressions. It only asks a validator whether an
expression is acceptable for a data source and records the diagnostic.
"""

import logging
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from metric_catalog.common.config import CatalogSettings

logger = logging.getLogger(__name__)

_PAIRS = {")": "(", "]": "["}
_QUOTES = ("'", '"', "`")


@dataclass
class ExpressionCheck:
    """Outcome of a validation call."""

    ok: bool
    message: str = ""


class ExpressionValidator(Protocol):
    async def validate(self, expression: str, source_id: str | None) -> ExpressionCheck:
        ...


class BasicExpressionValidator:
    """Offline structural check: brackets, string literals, known sources."""

    def __init__(self, known_sources: list[str] | None = None):
        self.known_sources = set(known_sources or [])

    async def validate(self, expression: str, source_id: str | None) -> ExpressionCheck:
        if not expression or not expression.strip():
            return ExpressionCheck(False, "Expression is empty")

        if self.known_sources and source_id and source_id not in self.known_sources:
            return ExpressionCheck(False, f"Unknown data source '{source_id}'")

        stack: list[str] = []
        quote: str | None = None
        for pos, ch in enumerate(expression):
            if quote:
                if ch == quote:
                    quote = None
                continue
            if ch in _QUOTES:
                quote = ch
            elif ch in "([":
                stack.append(ch)
            elif ch in _PAIRS:
                if not stack or stack.pop() != _PAIRS[ch]:
                    return ExpressionCheck(False, f"Unbalanced '{ch}' at position {pos}")

        if quote:
            return ExpressionCheck(False, f"Unterminated string literal ({quote})")
        if stack:
            return ExpressionCheck(False, f"Unclosed '{stack[-1]}'")
        return ExpressionCheck(True, "OK")


class HttpExpressionValidator:
    """Calls a remote validation service's POST /validate endpoint.

    Expects a JSON reply of the form {"valid": bool, "message": str}.
    Transport and HTTP errors are reported as a failed check.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def validate(self, expression: str, source_id: str | None) -> ExpressionCheck:
        payload: dict[str, Any] = {"expression": expression, "source_id": source_id}
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url, timeout=self.timeout, transport=self._transport,
            ) as client:
                resp = await client.post("/validate", json=payload)
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPError as e:
            logger.warning("Expression validator unreachable: %s", e)
            return ExpressionCheck(False, f"Expression validator unavailable: {e}")
        except ValueError:
            return ExpressionCheck(False, "Expression validator returned invalid JSON")

        if not isinstance(data, dict):
            return ExpressionCheck(False, "Expression validator returned an unexpected reply")
        return ExpressionCheck(
            ok=bool(data.get("valid", False)),
            message=data.get("message", ""),
        )


def build_expression_validator(settings: CatalogSettings) -> ExpressionValidator:
    if settings.expression_validator == "http":
        return HttpExpressionValidator(
            settings.expression_validator_url,
            timeout=settings.expression_validator_timeout,
        )
    if settings.expression_validator == "basic":
        return BasicExpressionValidator(settings.known_sources)
    raise ValueError(f"Unknown expression validator '{settings.expression_validator}'")
