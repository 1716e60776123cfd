"""Unit tests for attribute classification."""

import pytest

from flex_attributes import AttributeKind, classify, is_flex_eligible, registry
from flex_attributes.classifier import allowed_by_options, defined_on_class, mapped_attribute_names

from .models import Account, Capitol, City, Sensor, WikiArticle


class TestNativeMembers:
    """Native members are never flex attributes."""

    @pytest.mark.parametrize("name", ["id", "name", "city_attributes", "describe", "flex_options"])
    def test_members_of_the_class_are_native(self, name):
        assert classify(City, name) is AttributeKind.NATIVE
        assert not is_flex_eligible(City, name)

    def test_version_column_is_native(self):
        assert classify(WikiArticle, "version") is AttributeKind.NATIVE

    def test_mapped_attribute_names_include_relationship(self):
        names = mapped_attribute_names(City)
        assert {"id", "name", "city_attributes"} <= names

    def test_mapped_attribute_names_of_unmapped_class_is_empty(self):
        assert mapped_attribute_names(object) == frozenset()

    def test_defined_on_class_sees_inherited_members(self):
        assert defined_on_class(City, "write_extended_attributes")
        assert not defined_on_class(City, "has_brie_and_cheese")


class TestUnrestrictedModel:
    def test_any_other_name_is_flex(self):
        assert classify(City, "has_brie_and_cheese") is AttributeKind.FLEX

    def test_accepts_instances(self):
        assert classify(City(name="Paris"), "is_smug") is AttributeKind.FLEX

    def test_underscore_names_are_unknown(self):
        assert classify(City, "_private") is AttributeKind.UNKNOWN
        assert classify(City, "__html__") is AttributeKind.UNKNOWN

    def test_flex_attributes_hook_defaults_to_none(self):
        assert City.flex_attributes() is None


class TestFieldsOption:
    def test_listed_names_are_flex(self):
        for name in ("potions", "fury", "weave"):
            assert classify(Capitol, name) is AttributeKind.FLEX

    def test_unlisted_names_are_unknown(self):
        assert classify(Capitol, "trains_on_time") is AttributeKind.UNKNOWN

    def test_fields_option_wins_over_enumerator(self):
        assert Capitol.flex_attributes() == ["ignored"]
        assert classify(Capitol, "ignored") is AttributeKind.UNKNOWN

    def test_fields_are_normalized_to_strings(self):
        assert registry.get(Capitol).options.fields == ("potions", "fury", "weave")
        assert allowed_by_options(Capitol, "fury")


class TestEnumerator:
    def test_enumerated_names_are_flex(self):
        assert classify(Account, "project_order") is AttributeKind.FLEX

    def test_other_names_are_unknown(self):
        assert classify(Account, "favourite_colour") is AttributeKind.UNKNOWN


class TestClassificationOverride:
    def test_override_replaces_fields_and_enumerator(self):
        assert classify(Sensor, "reading_celsius") is AttributeKind.FLEX
        assert classify(Sensor, "ignored_by_override") is AttributeKind.UNKNOWN

    def test_override_does_not_shadow_columns(self):
        assert classify(Sensor, "label") is AttributeKind.NATIVE


class TestModelsWithoutFlexAttributes:
    def test_unregistered_model_is_unknown(self):
        class Plain:
            pass

        assert classify(Plain, "anything") is AttributeKind.UNKNOWN
