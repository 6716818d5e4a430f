"""Tests for settings parsing and production checks."""

import pytest

from conftest import make_settings


class TestKeyring:
    def test_scalar_key_is_version_zero(self):
        settings = make_settings(hmac_key="k0")
        assert settings.hmac_keyring == {0: "k0"}
        assert settings.current_hmac_key == "k0"

    def test_keyring_uses_highest_version(self):
        settings = make_settings(hmac_keys='{"0": "old", "2": "new"}')
        assert settings.hmac_keyring == {0: "old", 2: "new"}
        assert settings.current_hmac_key == "new"

    def test_bad_keyring_json(self):
        with pytest.raises(ValueError, match="HMAC_KEYS"):
            make_settings(hmac_keys="not-json").hmac_keyring


class TestGrants:
    def test_empty(self):
        assert make_settings(org_grants="").grants == {}

    def test_parsed(self):
        settings = make_settings(org_grants='{"alice": {"org-1": ["org:manage"]}}')
        assert settings.grants == {"alice": {"org-1": ["org:manage"]}}

    def test_bad_json(self):
        with pytest.raises(ValueError, match="ORG_GRANTS"):
            make_settings(org_grants="{").grants


class TestProductionValidation:
    def test_insecure_defaults_refused_outside_development(self):
        settings = make_settings(
            environment="production",
            hmac_key="insecure-hmac-key-change-me",
        )
        with pytest.raises(RuntimeError, match="METRIC_CATALOG_HMAC_KEY"):
            settings.validate_for_production()

    def test_insecure_defaults_warn_in_development(self):
        settings = make_settings(api_key="insecure-admin-key-change-me")
        with pytest.warns(UserWarning):
            settings.validate_for_production()

    def test_http_validator_requires_url(self):
        settings = make_settings(expression_validator="http", expression_validator_url="")
        with pytest.raises(RuntimeError, match="EXPRESSION_VALIDATOR_URL"):
            settings.validate_for_production()

    def test_secure_production_passes(self):
        settings = make_settings(environment="production")
        settings.validate_for_production()

    def test_page_size_defaults(self):
        settings = make_settings()
        assert settings.default_page_size == 20
        assert settings.max_page_size == 100
