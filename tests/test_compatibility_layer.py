#!/usr/bin/env python3
# CUI // SP-CTI
"""Tests for legacylift.modernization.compatibility_layer."""

import pytest

from legacylift.modernization.compatibility_layer import (
    TRANSFORMATIONS,
    build_compatibility_layer,
    forward,
    render_adapter_source,
    reverse,
)
from legacylift.schemas.artifacts import FieldMapping

CUSTOMER_MAPPINGS = [
    {"source_field": "CUST_ID", "target_field": "customerId", "transformation": "int_to_string"},
    {"source_field": "BAL_CENTS", "target_field": "balance", "transformation": "cents_to_dollars"},
    {"source_field": "CREATED", "target_field": "createdAt", "transformation": "epoch_to_iso"},
    {"source_field": "ACTIVE_YN", "target_field": "active", "transformation": "yn_to_bool"},
    {"source_field": "VIP", "target_field": "vip", "transformation": "int_to_bool"},
    {"source_field": "PREFS", "target_field": "preferences", "transformation": "json_decode"},
    {"source_field": "TAGS", "target_field": "tags", "transformation": "split_csv"},
    {"source_field": "NAME", "target_field": "name"},
    {"source_field": "NICK", "target_field": "nickname", "nullable": True, "default": ""},
]

LEGACY_RECORD = {
    "CUST_ID": 1042,
    "BAL_CENTS": 1999,
    "CREATED": 1700000000,
    "ACTIVE_YN": "N",
    "VIP": 1,
    "PREFS": '{"lang":"en","theme":"dark"}',
    "TAGS": "gold,early",
    "NAME": "Ada",
    "NICK": "ada",
}


@pytest.fixture
def layer():
    return build_compatibility_layer("customer-record", CUSTOMER_MAPPINGS)


class TestTransformationRegistry:
    @pytest.mark.parametrize("name,inverse", [
        ("cents_to_dollars", "dollars_to_cents"),
        ("epoch_to_iso", "iso_to_epoch"),
        ("int_to_bool", "bool_to_int"),
        ("yn_to_bool", "bool_to_yn"),
        ("int_to_string", "string_to_int"),
        ("json_decode", "json_encode"),
        ("split_csv", "join_csv"),
    ])
    def test_registered_in_inverse_pairs(self, name, inverse):
        assert TRANSFORMATIONS[inverse].forward is TRANSFORMATIONS[name].reverse
        assert TRANSFORMATIONS[inverse].reverse is TRANSFORMATIONS[name].forward

    def test_epoch_to_iso(self):
        assert TRANSFORMATIONS["epoch_to_iso"].forward(0) == "1970-01-01T00:00:00Z"
        assert TRANSFORMATIONS["iso_to_epoch"].forward("1970-01-02T00:00:00Z") == 86400

    def test_split_csv_empty(self):
        assert TRANSFORMATIONS["split_csv"].forward("") == []


class TestBuildCompatibilityLayer:
    def test_describes_both_directions(self, layer):
        assert len(layer.mappings) == len(CUSTOMER_MAPPINGS)
        assert layer.forward_transform[0] == "CUST_ID -> customerId (int_to_string)"
        assert layer.reverse_transform[0] == "customerId -> CUST_ID (inverse of int_to_string)"
        assert layer.forward_transform[-1] == "NICK -> nickname (direct) [nullable]"

    def test_accepts_field_mapping_objects(self):
        layer = build_compatibility_layer("x", [FieldMapping("a", "b")])
        assert layer.mappings[0].transformation == "direct"

    def test_unknown_transformation(self):
        with pytest.raises(ValueError, match="rot13"):
            build_compatibility_layer("x", [
                {"source_field": "a", "target_field": "b", "transformation": "rot13"},
            ])

    def test_duplicate_target(self):
        with pytest.raises(ValueError, match="target_field"):
            build_compatibility_layer("x", [
                {"source_field": "a", "target_field": "b"},
                {"source_field": "c", "target_field": "b"},
            ])

    def test_duplicate_source(self):
        with pytest.raises(ValueError, match="source_field"):
            build_compatibility_layer("x", [
                {"source_field": "a", "target_field": "b"},
                {"source_field": "a", "target_field": "c"},
            ])

    def test_missing_field_names(self):
        with pytest.raises(ValueError):
            build_compatibility_layer("x", [{"source_field": "a"}])


class TestTranslate:
    def test_forward(self, layer):
        modern = forward(layer, LEGACY_RECORD)
        assert modern == {
            "customerId": "1042",
            "balance": 19.99,
            "createdAt": "2023-11-14T22:13:20Z",
            "active": False,
            "vip": True,
            "preferences": {"lang": "en", "theme": "dark"},
            "tags": ["gold", "early"],
            "name": "Ada",
            "nickname": "ada",
        }

    def test_round_trip(self, layer):
        assert reverse(layer, forward(layer, LEGACY_RECORD)) == LEGACY_RECORD

    def test_methods_on_layer(self, layer):
        assert layer.reverse(layer.forward(LEGACY_RECORD)) == LEGACY_RECORD

    def test_missing_nullable_gets_default(self, layer):
        record = dict(LEGACY_RECORD)
        del record["NICK"]
        assert forward(layer, record)["nickname"] == ""

    def test_missing_required_raises(self, layer):
        record = dict(LEGACY_RECORD)
        del record["NAME"]
        with pytest.raises(ValueError, match="NAME"):
            forward(layer, record)

    def test_none_passes_through(self, layer):
        record = dict(LEGACY_RECORD, BAL_CENTS=None)
        assert forward(layer, record)["balance"] is None

    def test_extra_fields_ignored(self, layer):
        record = dict(LEGACY_RECORD, UNUSED="x")
        assert "UNUSED" not in forward(layer, record)


class TestRenderAdapterSource:
    def test_class_name_and_banner(self, layer):
        source = render_adapter_source(layer)
        assert "class CustomerRecordAdapter:" in source
        assert source.startswith("# CUI // SP-CTI")

    def test_generated_adapter_matches_layer(self, layer):
        namespace = {}
        exec(compile(render_adapter_source(layer), "<adapter>", "exec"), namespace)
        adapter = namespace["CustomerRecordAdapter"]()
        modern = adapter.to_modern(LEGACY_RECORD)
        assert modern == forward(layer, LEGACY_RECORD)
        assert adapter.to_legacy(modern) == LEGACY_RECORD

    def test_generated_adapter_passes_none_through_transforms(self, layer):
        namespace = {}
        exec(compile(render_adapter_source(layer), "<adapter>", "exec"), namespace)
        adapter = namespace["CustomerRecordAdapter"]()
        record = dict(LEGACY_RECORD, BAL_CENTS=None, CREATED=None)
        modern = adapter.to_modern(record)
        assert modern == forward(layer, record)
        assert modern["balance"] is None
        assert adapter.to_legacy(modern) == reverse(layer, modern)
