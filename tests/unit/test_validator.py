"""Tests for expression validators."""

import json

import httpx
import pytest

from metric_catalog.common.exceptions import ValidationError
from metric_catalog.expressions.validator import (
    BasicExpressionValidator,
    HttpExpressionValidator,
    build_expression_validator,
)

from conftest import build_services, create_metric, make_settings


class TestBasicValidator:
    async def test_accepts_balanced_expression(self):
        check = await BasicExpressionValidator().validate("SUM(a) / COUNT(DISTINCT b)", None)
        assert check.ok is True
        assert check.message == "OK"

    async def test_empty_expression(self):
        check = await BasicExpressionValidator().validate("   ", None)
        assert check.ok is False
        assert check.message == "Expression is empty"

    async def test_unbalanced_close(self):
        check = await BasicExpressionValidator().validate("SUM(a))", None)
        assert check.ok is False
        assert check.message == "Unbalanced ')' at position 6"

    async def test_mismatched_brackets(self):
        check = await BasicExpressionValidator().validate("a[(b]", None)
        assert check.ok is False
        assert "Unbalanced ']'" in check.message

    async def test_unclosed_paren(self):
        check = await BasicExpressionValidator().validate("SUM(a", None)
        assert check.ok is False
        assert check.message == "Unclosed '('"

    async def test_unterminated_string(self):
        check = await BasicExpressionValidator().validate("COUNT('abc)", None)
        assert check.ok is False
        assert check.message == "Unterminated string literal (')"

    async def test_brackets_inside_strings_ignored(self):
        check = await BasicExpressionValidator().validate("CONCAT(name, ')(')", None)
        assert check.ok is True

    async def test_unknown_source(self):
        validator = BasicExpressionValidator(known_sources=["sales"])
        check = await validator.validate("SUM(x)", "hr")
        assert check.ok is False
        assert check.message == "Unknown data source 'hr'"

    async def test_known_source(self):
        validator = BasicExpressionValidator(known_sources=["sales"])
        assert (await validator.validate("SUM(x)", "sales")).ok is True

    async def test_any_source_when_unconfigured(self):
        assert (await BasicExpressionValidator().validate("SUM(x)", "anything")).ok is True


class TestHttpValidator:
    async def test_valid_reply(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"valid": True, "message": "fine"})

        validator = HttpExpressionValidator(
            "http://validator.test/", transport=httpx.MockTransport(handler),
        )
        check = await validator.validate("SUM(x)", "sales")
        assert check.ok is True
        assert check.message == "fine"
        assert seen["path"] == "/validate"
        assert seen["body"] == {"expression": "SUM(x)", "source_id": "sales"}

    async def test_invalid_reply(self):
        transport = httpx.MockTransport(
            lambda request: httpx.Response(200, json={"valid": False, "message": "no column x"})
        )
        validator = HttpExpressionValidator("http://validator.test", transport=transport)
        check = await validator.validate("SUM(x)", None)
        assert check.ok is False
        assert check.message == "no column x"

    async def test_server_error_is_a_failed_check(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(503))
        validator = HttpExpressionValidator("http://validator.test", transport=transport)
        check = await validator.validate("SUM(x)", None)
        assert check.ok is False
        assert check.message.startswith("Expression validator unavailable")

    async def test_transport_error_is_a_failed_check(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        validator = HttpExpressionValidator(
            "http://validator.test", transport=httpx.MockTransport(handler),
        )
        check = await validator.validate("SUM(x)", None)
        assert check.ok is False
        assert "refused" in check.message

    async def test_non_json_reply(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>"))
        validator = HttpExpressionValidator("http://validator.test", transport=transport)
        check = await validator.validate("SUM(x)", None)
        assert check.ok is False
        assert check.message == "Expression validator returned invalid JSON"

    @pytest.mark.parametrize("reply", [["ok"], "ok", 1])
    async def test_non_object_reply(self, reply):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json=reply))
        validator = HttpExpressionValidator("http://validator.test", transport=transport)
        check = await validator.validate("SUM(x)", None)
        assert check.ok is False
        assert check.message == "Expression validator returned an unexpected reply"

    async def test_non_object_reply_rejects_create(self, db, settings, alice):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json=["ok"]))
        validator = HttpExpressionValidator("http://validator.test", transport=transport)
        services = build_services(settings, validator=validator)
        with pytest.raises(ValidationError) as exc_info:
            await create_metric(db, services, alice)
        assert exc_info.value.errors == ["Expression validator returned an unexpected reply"]


class TestBuildValidator:
    def test_basic_by_default(self):
        validator = build_expression_validator(make_settings(known_sources=["sales"]))
        assert isinstance(validator, BasicExpressionValidator)
        assert validator.known_sources == {"sales"}

    def test_http(self):
        validator = build_expression_validator(make_settings(
            expression_validator="http",
            expression_validator_url="http://validator.test",
        ))
        assert isinstance(validator, HttpExpressionValidator)
        assert validator.base_url == "http://validator.test"

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            build_expression_validator(make_settings(expression_validator="magic"))
