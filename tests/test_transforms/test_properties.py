"""
tests/test_transforms/test_properties.py — Unit tests for property construction.
"""

from __future__ import annotations

import pytest

from pulse_pipeline.transforms.properties import (
    build_properties,
    describe,
    enrich_bike_availability,
    render_template,
)
from pulse_pipeline.transforms.transformer import GeoTransformer
from pulse_shared.models.plugin import TransformConfig


class TestTemplates:
    def test_missing_keys_render_blank(self):
        assert render_template("{road} {missing}", {"road": "KING ST W"}) == "KING ST W"

    def test_bad_template_falls_back_to_defaults(self):
        config = TransformConfig(title_template="{name[0}")
        props = build_properties(
            {"name": "Cherry Beach", "waterTemp": 21},
            source_id="beaches",
            index=0,
            config=config,
        )
        assert props["title"] == "Cherry Beach"
        assert props["description"] == "Water temp: 21°C"

    @pytest.mark.parametrize(
        ("template", "record"),
        [
            ("{road[name]}", {"road": {"other": 1}, "name": "Queen St E"}),
            ("{count[0]}", {"count": 7, "name": "Queen St E"}),
        ],
    )
    def test_lookup_failures_fall_back(self, template, record):
        props = build_properties(
            record,
            source_id="closures",
            index=0,
            config=TransformConfig(title_template=template),
        )
        assert props["title"] == "Queen St E"

    def test_template_failure_does_not_abort_transform(self):
        transformer = GeoTransformer(
            "closures", TransformConfig(title_template="{road[name]}")
        )
        collection = transformer.transform(
            [
                {"lat": 43.65, "lon": -79.38, "road": {"other": 1}},
                {"lat": 43.66, "lon": -79.39, "road": {"name": "King St W"}},
            ]
        )

        assert len(collection.features) == 2
        assert collection.features[0].properties["title"] == "closures-0"
        assert collection.features[1].properties["title"] == "King St W"


class TestDescribe:
    def test_known_attributes_in_order(self):
        text = describe({"turbidity": "Clear", "waterTemp": 19.5, "waveAction": "Low"})
        assert text == "Water temp: 19.5°C, Turbidity: Clear, Wave action: Low"

    def test_bike_counts(self):
        assert describe({"bikes_available": 3, "docks_available": 12}).startswith(
            "3 bikes, 12 docks available"
        )


class TestBikeAvailability:
    @pytest.mark.parametrize(
        ("bikes", "category"),
        [(0, "empty"), (2, "low"), (5, "medium"), (6, "high")],
    )
    def test_categories(self, bikes, category):
        props = {"bikes_available": bikes, "capacity": 20, "is_renting": True, "is_returning": True}
        enrich_bike_availability(props, TransformConfig())
        assert props["availability_category"] == category
        assert props["status"] == "active"
        assert props["availability_ratio"] == pytest.approx(bikes / 20)

    def test_zero_capacity(self):
        props = {"bikes_available": 0, "capacity": 0, "is_renting": False}
        enrich_bike_availability(props, TransformConfig())
        assert props["availability_ratio"] == 0.0
        assert props["status"] == "inactive"
