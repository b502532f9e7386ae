from datetime import date

from groombook.config import DEFAULT_HOURS, Settings


def test_business_hours_defaults() -> None:
    assert DEFAULT_HOURS.end_hour(False) == 16
    assert DEFAULT_HOURS.end_hour(True) == 12
    assert DEFAULT_HOURS.end_hour_for(date(2025, 9, 13)) == 12
    assert DEFAULT_HOURS.end_hour_for(date(2025, 9, 12)) == 16


def test_settings_read_prefixed_environment(monkeypatch) -> None:
    monkeypatch.setenv("GROOMBOOK_WEEKDAY_END_HOUR", "17")
    monkeypatch.setenv("GROOMBOOK_CORS_ORIGINS", '["https://a.example.com", "https://b.example.com"]')
    monkeypatch.setenv("GROOMBOOK_USE_MOCK_DATA", "false")

    settings = Settings()
    hours = settings.business_hours()

    assert hours.weekday_end_hour == 17
    assert hours.saturday_end_hour == 12
    assert len(settings.cors_origins) == 2
    assert settings.use_mock_data is False


def test_cors_origins_accept_comma_separated_string() -> None:
    settings = Settings(cors_origins="https://a.example.com, https://b.example.com")

    assert [str(origin).rstrip("/") for origin in settings.cors_origins] == [
        "https://a.example.com",
        "https://b.example.com",
    ]
