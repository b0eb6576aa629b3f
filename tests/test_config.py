"""Unit tests for core/config.py -- SECRET_KEY policy and derived defaults.

Settings is instantiated directly with keyword overrides so the cached
get_settings() singleton used by the rest of the suite is left alone.
"""

import pytest

from core.config import Settings

_KEY = "k" * 32


def _settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


def test_debug_generates_secret_key():
    settings = _settings(debug=True, secret_key="")
    assert len(settings.secret_key) >= 32


def test_production_requires_secret_key():
    with pytest.raises(ValueError, match="SECRET_KEY is required"):
        _settings(debug=False, secret_key="")


def test_short_secret_key_rejected():
    with pytest.raises(ValueError, match="at least 32"):
        _settings(debug=True, secret_key="short")


@pytest.mark.parametrize("debug, expected", [(True, False), (False, True)])
def test_secure_cookies_follow_debug(debug, expected):
    assert _settings(debug=debug, secret_key=_KEY).secure_cookies is expected


def test_explicit_secure_cookies_win():
    assert _settings(debug=True, secret_key=_KEY, secure_cookies=True).secure_cookies is True


@pytest.mark.parametrize("rounds", [3, 32])
def test_bcrypt_rounds_out_of_range(rounds):
    with pytest.raises(ValueError, match="BCRYPT_ROUNDS"):
        _settings(debug=True, secret_key=_KEY, bcrypt_rounds=rounds)


def test_session_defaults():
    settings = _settings(debug=True, secret_key=_KEY)
    assert settings.session_max_age_seconds == 30 * 24 * 60 * 60
    assert settings.session_cookie_name == "gallery_session"
