"""Tests for settings validation."""

import pytest
from pydantic import ValidationError

from app.config import DEFAULT_SESSION_SECRET, Settings


class TestSettings:

    def test_timezone_must_be_known(self):
        with pytest.raises(ValidationError):
            Settings(open_now_timezone="Mars/Olympus_Mons")

    def test_log_level_is_normalized(self):
        assert Settings(log_level="debug").log_level == "DEBUG"

    def test_cors_origins_list(self):
        settings = Settings(cors_origins="http://a.test, ,http://b.test ")
        assert settings.cors_origins_list == ["http://a.test", "http://b.test"]

    def test_default_session_secret_fails_production_check(self):
        with pytest.raises(ValueError, match="SESSION_SECRET"):
            Settings(session_secret=DEFAULT_SESSION_SECRET).validate_required_for_production()

    def test_custom_session_secret_passes(self):
        Settings(session_secret="a-long-random-value").validate_required_for_production()
