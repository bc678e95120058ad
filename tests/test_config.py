from core.config import DEFAULT_BASE_URL, DEFAULT_TIMEOUT, ApiConfig
from core.periods import month_label, next_month_and_year, year_options
from datetime import date


def test_config_from_env():
    env = {"RFC_API_BASE_URL": "https://rfc.example.com/", "RFC_API_TOKEN": "t0k", "RFC_API_TIMEOUT": "5"}
    config = ApiConfig.from_env(env)
    assert config.base_url == "https://rfc.example.com"
    assert config.auth_token == "t0k"
    assert config.timeout == 5.0
    assert config.url("/branch-rfc") == "https://rfc.example.com/branch-rfc"


def test_config_defaults_and_overrides():
    config = ApiConfig.from_env({"RFC_API_TIMEOUT": "soon"}, resource="dawlance-rfc")
    assert config.base_url == DEFAULT_BASE_URL
    assert config.auth_token is None
    assert config.timeout == DEFAULT_TIMEOUT
    assert config.resource == "dawlance-rfc"


def test_next_month_rolls_over_year():
    assert next_month_and_year(date(2025, 7, 15)) == ("08", "2025")
    assert next_month_and_year(date(2025, 12, 1)) == ("01", "2026")


def test_year_options_and_labels():
    assert year_options(date(2025, 1, 1)) == list(range(2020, 2031))
    assert month_label("8") == "August"
    assert month_label("13") == ""
