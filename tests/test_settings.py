import configparser

import pytest

from upiqr.config import settings


@pytest.fixture
def ini_config(monkeypatch):
    def _load(text):
        parser = configparser.ConfigParser()
        parser.read_string(text)
        monkeypatch.setattr(settings, "config", parser)
        return parser

    return _load


def test_missing_values_use_fallback(ini_config):
    ini_config("[QR]\n")
    assert settings.get_config("QR", "DARK", fallback="#000000") == "#000000"
    assert settings.get_config("NOPE", "KEY", fallback="x") == "x"


def test_values_are_read_from_file(ini_config):
    ini_config("[QR]\nDARK = #222222\n[LOGO]\nFETCH_TIMEOUT = 2.5\n")
    assert settings.get_config("QR", "DARK") == "#222222"
    assert settings.get_config_float("LOGO", "FETCH_TIMEOUT") == 2.5


def test_float_config_empty_or_invalid_falls_back(ini_config):
    ini_config("[LOGO]\nFETCH_TIMEOUT =\nOTHER = abc\n")
    assert settings.get_config_float("LOGO", "FETCH_TIMEOUT") is None
    assert settings.get_config_float("LOGO", "OTHER", fallback=3.0) == 3.0


def test_defaults_without_config_file():
    assert settings.QR_ERROR_LEVEL in ("L", "M", "Q", "H")
    assert settings.GRAPHICS_BACKEND in ("auto", "pillow", "browser")
