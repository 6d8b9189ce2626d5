from __future__ import annotations

import pytest

from core.config import AppSettings, _parse_env_lines, write_user_env_vars
from core.domain.errors import ConfigurationError


def test_defaults():
    settings = AppSettings(_env_file=None)

    assert settings.carboncare_endpoint == "https://api.carboncare.ch/xml/calc"
    assert settings.carboncare_api_version == "3.2"
    assert settings.resolver_candidate_limit == 5
    assert settings.geocode_max_attempts == 3
    assert settings.http_timeout_seconds is None


def test_reads_prefixed_environment(monkeypatch):
    monkeypatch.setenv("CARBONLEG_CARBONCARE_API_KEY", "env-key")
    monkeypatch.setenv("CARBONLEG_SUPABASE_URL", "https://x.supabase.test")
    monkeypatch.setenv("CARBONLEG_SUPABASE_SERVICE_KEY", "svc")

    settings = AppSettings(_env_file=None)

    assert settings.require_carboncare_api_key() == "env-key"
    assert settings.persistence_configured is True


def test_missing_api_key(monkeypatch):
    monkeypatch.delenv("CARBONLEG_CARBONCARE_API_KEY", raising=False)

    with pytest.raises(ConfigurationError, match="Missing CARBONLEG_CARBONCARE_API_KEY"):
        AppSettings(_env_file=None, carboncare_api_key="  ").require_carboncare_api_key()


def test_write_user_env_vars_merges(tmp_path):
    env_path = tmp_path / "carbonleg" / ".env"
    env_path.parent.mkdir()
    env_path.write_text("# old\nCARBONLEG_DEBUG=true\nCARBONLEG_CARBONCARE_API_KEY='old'\n", encoding="utf-8")

    write_user_env_vars({"CARBONLEG_CARBONCARE_API_KEY": "new-key"}, env_path=env_path)

    assert _parse_env_lines(env_path.read_text(encoding="utf-8")) == {
        "CARBONLEG_CARBONCARE_API_KEY": "new-key",
        "CARBONLEG_DEBUG": "true",
    }
