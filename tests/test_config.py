from splitshare.config import Settings, get_settings
from splitshare.logging import configure_logging, get_logger


def test_settings_defaults():
    settings = Settings()

    assert settings.log_level == "INFO"
    assert settings.supported_currencies == ["COP", "USD", "EUR"]
    assert settings.default_currency == "COP"


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("SUPPORTED_CURRENCIES", '["usd", "gbp"]')
    monkeypatch.setenv("DEFAULT_CURRENCY", "gbp")

    settings = Settings()

    assert settings.supported_currencies == ["USD", "GBP"]
    assert settings.default_currency == "GBP"


def test_get_settings_is_cached():
    assert get_settings() is get_settings()


def test_configure_logging():
    configure_logging(level="debug", json=False)

    get_logger("test").info("test.event", value=1)


def test_settings_accept_comma_separated_currencies(monkeypatch):
    monkeypatch.setenv("SUPPORTED_CURRENCIES", "cop, usd,")

    settings = Settings()

    assert settings.supported_currencies == ["COP", "USD"]
