import pytest
from pydantic import ValidationError

from enjoyrecord.core.config import Settings


def _settings(**overrides) -> Settings:
    values = {"DATABASE_URL": "sqlite+aiosqlite:///./test.db"}
    values.update(overrides)
    return Settings(**values)


def _settings_with_cors(value: str) -> Settings:
    return _settings(CORS_ORIGINS=value)


def test_cors_origin_list_supports_comma_separated_values() -> None:
    settings = _settings_with_cors("http://localhost:5173,http://localhost:3000")
    assert settings.cors_origin_list() == [
        "http://localhost:5173",
        "http://localhost:3000",
    ]


def test_cors_origin_list_normalizes_quotes_and_trailing_slashes() -> None:
    settings = _settings_with_cors("'http://localhost:3000/'")
    assert settings.cors_origin_list() == ["http://localhost:3000"]


def test_cors_origin_list_supports_json_array_format() -> None:
    settings = _settings_with_cors(
        '["http://localhost:3000", "http://127.0.0.1:3000/"]'
    )
    assert settings.cors_origin_list() == [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("postgres://u:p@db/app", "postgresql+asyncpg://u:p@db/app"),
        ("postgresql://u:p@db/app", "postgresql+asyncpg://u:p@db/app"),
        ("postgresql+asyncpg://u:p@db/app", "postgresql+asyncpg://u:p@db/app"),
        ("sqlite:///./data/app.db", "sqlite+aiosqlite:///./data/app.db"),
    ],
)
def test_database_url_is_normalized_to_async_drivers(raw: str, expected: str) -> None:
    assert _settings(DATABASE_URL=raw).database_url == expected


def test_blank_secrets_are_treated_as_unset() -> None:
    settings = _settings(ENJOYRECORD_ADMIN_PASSWORD="   ", TMDB_API_KEY="", RAWG_API_KEY=" rawg ")
    assert settings.admin_password is None
    assert settings.admin_configured() is False
    assert settings.tmdb_api_key is None
    assert settings.rawg_api_key == "rawg"


def test_proxy_reads_https_proxy() -> None:
    assert _settings(HTTPS_PROXY="http://proxy:8080").http_proxy == "http://proxy:8080"


def test_log_level_is_uppercased() -> None:
    assert _settings(LOG_LEVEL="debug").log_level == "DEBUG"


def test_timeouts_must_be_positive() -> None:
    with pytest.raises(ValidationError):
        _settings(SEARCH_TIMEOUT_SECONDS="0")


def test_default_timeouts() -> None:
    settings = _settings()
    assert settings.search_timeout_seconds == 10.0
    assert settings.neodb_timeout_seconds == 30.0
    assert settings.image_timeout_seconds == 15.0
