import logging

import pytest

from shared.helper.HelperConfig import HelperConfig


@pytest.fixture
def config():
    return HelperConfig(logger=logging.getLogger("doc_qa_bridge.tests"))


def test_string_value_is_stripped(config, monkeypatch):
    monkeypatch.setenv("SOME_KEY", "  value  ")
    assert config.get_string_val("some_key") == "value"


def test_empty_string_counts_as_unset(config, monkeypatch):
    monkeypatch.setenv("SOME_KEY", "")
    assert config.get_string_val("SOME_KEY", default="fallback") == "fallback"


def test_required_value_raises_when_missing(config, monkeypatch):
    monkeypatch.delenv("SOME_KEY", raising=False)
    with pytest.raises(ValueError, match="SOME_KEY"):
        config.get_string_val("SOME_KEY")


@pytest.mark.parametrize("raw,expected", [("5", 5), ("0.25", 0.25), ("-3", -3)])
def test_number_value(config, monkeypatch, raw, expected):
    monkeypatch.setenv("SOME_NUMBER", raw)
    assert config.get_number_val("SOME_NUMBER") == expected


def test_invalid_number_raises(config, monkeypatch):
    monkeypatch.setenv("SOME_NUMBER", "ten")
    with pytest.raises(ValueError, match="not a valid number"):
        config.get_number_val("SOME_NUMBER", default=1)


@pytest.mark.parametrize("raw,expected", [("true", True), ("1", True), ("YES", True), ("false", False), ("off", False)])
def test_bool_value(config, monkeypatch, raw, expected):
    monkeypatch.setenv("SOME_FLAG", raw)
    assert config.get_bool_val("SOME_FLAG") is expected


def test_list_value(config, monkeypatch):
    monkeypatch.setenv("APP_API_KEYS", "[key-one, key-two,,]")
    assert config.get_list_val("APP_API_KEYS") == ["key-one", "key-two"]


def test_list_value_requires_brackets(config, monkeypatch):
    monkeypatch.setenv("APP_API_KEYS", "key-one,key-two")
    with pytest.raises(ValueError, match="format"):
        config.get_list_val("APP_API_KEYS")


def test_list_value_casts_elements(config, monkeypatch):
    monkeypatch.setenv("SOME_NUMBERS", "[1,2,3]")
    assert config.get_list_val("SOME_NUMBERS", element_type=int) == [1, 2, 3]

    monkeypatch.setenv("SOME_NUMBERS", "[1,x]")
    with pytest.raises(ValueError, match="invalid elements"):
        config.get_list_val("SOME_NUMBERS", element_type=int)


@pytest.mark.parametrize("raw,expected", [("production", True), ("Production", True), ("development", False), (None, False)])
def test_is_production(config, monkeypatch, raw, expected):
    if raw is None:
        monkeypatch.delenv("APP_ENV", raising=False)
    else:
        monkeypatch.setenv("APP_ENV", raw)
    assert config.is_production() is expected
