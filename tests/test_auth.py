"""Unit tests for API key authentication."""

from unittest.mock import patch

import pytest

from schedule_limiter.core.auth import (
    parse_api_keys,
    validate_api_key,
    verify_admin_api_key,
    verify_api_key,
)
from schedule_limiter.core.errors import AuthenticationAppError


class TestParseAPIKeys:
    def test_parse_multiple_keys_with_whitespace(self) -> None:
        assert parse_api_keys("key1 , key2  ,  key3") == {"key1", "key2", "key3"}

    def test_parse_removes_duplicates(self) -> None:
        assert parse_api_keys("key1,key2,key1") == {"key1", "key2"}

    @pytest.mark.parametrize("raw", [None, "", "   ,  ,  "])
    def test_parse_empty_inputs(self, raw) -> None:
        assert parse_api_keys(raw) == set()


@patch("schedule_limiter.core.auth.settings")
class TestValidateAPIKey:
    def test_disabled_auth_accepts_anything(self, mock_settings) -> None:
        mock_settings.app.api_key_required = False

        validate_api_key(None)
        validate_api_key(None, admin=True)

    def test_regular_key_accepted(self, mock_settings) -> None:
        mock_settings.app.api_key_required = True
        mock_settings.app.api_keys = "user-key"
        mock_settings.app.admin_api_keys = "admin-key"

        validate_api_key("user-key")

    def test_admin_key_is_also_a_regular_key(self, mock_settings) -> None:
        mock_settings.app.api_key_required = True
        mock_settings.app.api_keys = "user-key"
        mock_settings.app.admin_api_keys = "admin-key"

        validate_api_key("admin-key")
        validate_api_key("admin-key", admin=True)

    def test_regular_key_is_not_admin(self, mock_settings) -> None:
        mock_settings.app.api_key_required = True
        mock_settings.app.api_keys = "user-key"
        mock_settings.app.admin_api_keys = "admin-key"

        with pytest.raises(AuthenticationAppError) as exc_info:
            validate_api_key("user-key", admin=True)

        assert exc_info.value.code == "admin_key_required"

    def test_unknown_key_rejected(self, mock_settings) -> None:
        mock_settings.app.api_key_required = True
        mock_settings.app.api_keys = "user-key"
        mock_settings.app.admin_api_keys = None

        with pytest.raises(AuthenticationAppError) as exc_info:
            validate_api_key("wrong")

        assert exc_info.value.code == "invalid_api_key"

    def test_missing_key_rejected(self, mock_settings) -> None:
        mock_settings.app.api_key_required = True
        mock_settings.app.api_keys = "user-key"
        mock_settings.app.admin_api_keys = None

        with pytest.raises(AuthenticationAppError) as exc_info:
            validate_api_key(None)

        assert exc_info.value.code == "missing_api_key"

    def test_no_keys_configured(self, mock_settings) -> None:
        mock_settings.app.api_key_required = True
        mock_settings.app.api_keys = None
        mock_settings.app.admin_api_keys = None

        with pytest.raises(AuthenticationAppError) as exc_info:
            validate_api_key("some-key")

        assert exc_info.value.code == "api_keys_not_configured"

    def test_padded_key_does_not_match(self, mock_settings) -> None:
        mock_settings.app.api_key_required = True
        mock_settings.app.api_keys = " key1 , key2 "
        mock_settings.app.admin_api_keys = None

        validate_api_key("key1")
        with pytest.raises(AuthenticationAppError):
            validate_api_key(" key1 ")


class TestDependencies:
    @pytest.mark.asyncio
    @patch("schedule_limiter.core.auth.settings")
    async def test_verify_api_key_returns_key(self, mock_settings) -> None:
        mock_settings.app.api_key_required = True
        mock_settings.app.api_keys = "user-key"
        mock_settings.app.admin_api_keys = None

        assert await verify_api_key(x_api_key="user-key") == "user-key"

    @pytest.mark.asyncio
    @patch("schedule_limiter.core.auth.settings")
    async def test_verify_admin_api_key_rejects_user_key(self, mock_settings) -> None:
        mock_settings.app.api_key_required = True
        mock_settings.app.api_keys = "user-key"
        mock_settings.app.admin_api_keys = "admin-key"

        with pytest.raises(AuthenticationAppError):
            await verify_admin_api_key(x_api_key="user-key")
