"""Tests for settings validation."""

import pytest
from pydantic import ValidationError

from movecar.config import Config


class TestTokenTimezone:
    def test_default_is_utc(self):
        assert Config(_env_file=None).token_timezone == "UTC"

    def test_named_zone(self):
        assert Config(_env_file=None, token_timezone="Asia/Shanghai").token_timezone == "Asia/Shanghai"

    def test_unknown_zone_rejected_at_startup(self):
        """Test that a bad zone fails when settings load, not on the first notify."""
        with pytest.raises(ValidationError, match="Unknown time zone: Mars/Olympus"):
            Config(_env_file=None, token_timezone="Mars/Olympus")

    def test_unknown_zone_from_environment(self, monkeypatch):
        monkeypatch.setenv("MOVECAR_TOKEN_TIMEZONE", "Not/AZone")
        with pytest.raises(ValidationError):
            Config(_env_file=None)
