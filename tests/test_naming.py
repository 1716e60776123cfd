"""Unit tests for naming conventions."""

import pytest

from flex_attributes.naming import foreign_key, pluralize, tableize, underscore


class TestUnderscore:
    @pytest.mark.parametrize(
        "name,expected",
        [
            ("City", "city"),
            ("WikiArticle", "wiki_article"),
            ("HTTPRequest", "http_request"),
            ("Sensor2Reading", "sensor2_reading"),
        ],
    )
    def test_underscore(self, name, expected):
        assert underscore(name) == expected


class TestPluralize:
    def test_pluralizes_last_segment_only(self):
        assert pluralize("wiki_article_attribute") == "wiki_article_attributes"

    def test_irregular_plural(self):
        assert pluralize("city") == "cities"


def test_tableize():
    assert tableize("CityAttribute") == "city_attributes"
    assert tableize("Preference") == "preferences"


def test_foreign_key():
    assert foreign_key("WikiArticle") == "wiki_article_id"
