import pytest

from threat_relay import config


@pytest.mark.parametrize("value, expected", [
    ("2500", 2500),
    ("abc", 10000),
    ("0", 10000),
    ("-5", 10000),
    ("", 10000),
    (None, 10000),
])
def test_int_env_falls_back_to_default(monkeypatch, value, expected):
    if value is None:
        monkeypatch.delenv("GEMINI_TIMEOUT_MS", raising=False)
    else:
        monkeypatch.setenv("GEMINI_TIMEOUT_MS", value)

    assert config._int_env("GEMINI_TIMEOUT_MS", 10000) == expected
