import pytest

from config import get_settings_module, load_settings


@pytest.mark.parametrize(
    "env, expected",
    [
        ("production", "config.production"),
        ("PROD", "config.production"),
        ("test", "config.testing"),
        ("staging", "config.development"),
    ],
)
def test_app_env_selects_settings_module(monkeypatch, env, expected):
    monkeypatch.setenv("APP_ENV", env)

    assert get_settings_module() == expected


def test_testing_settings_never_touch_the_database():
    settings = load_settings("config.testing")

    assert settings.TESTING is True
    assert settings.AUTO_INIT_DB is False
    assert settings.VALIDATE_REPLACEMENTS is True
