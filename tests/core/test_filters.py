"""Tests for the entity filter pipeline.

Pure function tests - no mocks needed.
"""

import itertools
import math

import pytest

from pawmap.core.entities import Animal, EmergencyReport
from pawmap.core.filters import (
    PREDICATES,
    FilterCriteria,
    FilteredEntities,
    apply_filters,
    matches_age_range,
    matches_category,
    matches_radius,
    matches_severity,
    matches_size,
    matches_text,
    requires_refetch,
)
from pawmap.core.geo import Coordinate, distance_km


CENTER = Coordinate(40.0, -74.0)


def make_animal(id, latitude=40.001, longitude=-74.0, **kwargs):
    coordinate = Coordinate(latitude, longitude)
    kwargs.setdefault("name", f"Dog {id}")
    kwargs.setdefault("distance_km", distance_km(CENTER, coordinate))
    return Animal(id=id, coordinate=coordinate, **kwargs)


def make_emergency(id, latitude=40.002, longitude=-74.0, **kwargs):
    coordinate = Coordinate(latitude, longitude)
    kwargs.setdefault("category", "injured")
    kwargs.setdefault("severity", "medium")
    kwargs.setdefault("description", "")
    kwargs.setdefault("distance_km", distance_km(CENTER, coordinate))
    return EmergencyReport(id=id, coordinate=coordinate, **kwargs)


@pytest.fixture
def animals():
    return [
        make_animal("a1", name="Rex", breed="Labrador", category="stray", size="large", age=3),
        make_animal("a2", name="Bella", breed="Beagle", category="owned", size="small", age=8),
        make_animal("a3", name="Max", breed="Mixed", category="rescue", size="medium", age=None),
        make_animal("a4", latitude=40.3, name="Far", category="stray", age=1),
    ]


@pytest.fixture
def emergencies():
    return [
        make_emergency("e1", category="injured", severity="high", description="Limping near the station"),
        make_emergency("e2", category="lost", severity="low", description="Strayed from home"),
    ]


class TestFilterCriteria:
    """Tests for FilterCriteria validation."""

    def test_defaults(self):
        criteria = FilterCriteria()
        assert criteria.category == "all"
        assert criteria.max_age == math.inf
        assert criteria.radius_km == 50.0

    def test_unknown_category_raises(self):
        with pytest.raises(ValueError):
            FilterCriteria(category="cats")

    def test_unknown_severity_raises(self):
        with pytest.raises(ValueError):
            FilterCriteria(severity="extreme")

    def test_inverted_age_range_raises(self):
        with pytest.raises(ValueError):
            FilterCriteria(min_age=5, max_age=2)

    @pytest.mark.parametrize("radius", [0, -1])
    def test_non_positive_radius_raises(self, radius):
        with pytest.raises(ValueError):
            FilterCriteria(radius_km=radius)

    def test_normalized_query(self):
        assert FilterCriteria(query="  ReX ").normalized_query == "rex"


class TestPredicates:
    """Tests for each individual predicate."""

    def test_empty_query_matches_everything(self, animals, emergencies):
        criteria = FilterCriteria()
        assert all(matches_text(e, criteria) for e in animals + emergencies)

    def test_text_matches_name_case_insensitively(self, animals):
        criteria = FilterCriteria(query="REX")
        assert [a.id for a in animals if matches_text(a, criteria)] == ["a1"]

    def test_text_matches_breed(self, animals):
        criteria = FilterCriteria(query="beag")
        assert [a.id for a in animals if matches_text(a, criteria)] == ["a2"]

    def test_text_matches_emergency_description(self, emergencies):
        criteria = FilterCriteria(query="station")
        assert [e.id for e in emergencies if matches_text(e, criteria)] == ["e1"]

    def test_text_ignores_missing_fields(self):
        animal = make_animal("x", name="Solo", breed=None)
        assert matches_text(animal, FilterCriteria(query="lab")) is False

    def test_category_animals(self, animals, emergencies):
        criteria = FilterCriteria(category="animals")
        assert all(matches_category(a, criteria) for a in animals)
        assert not any(matches_category(e, criteria) for e in emergencies)

    def test_category_emergencies(self, animals, emergencies):
        criteria = FilterCriteria(category="emergencies")
        assert not any(matches_category(a, criteria) for a in animals)
        assert all(matches_category(e, criteria) for e in emergencies)

    def test_category_stray(self, animals, emergencies):
        criteria = FilterCriteria(category="stray")
        assert [a.id for a in animals if matches_category(a, criteria)] == ["a1", "a4"]
        assert not any(matches_category(e, criteria) for e in emergencies)

    def test_age_range_inclusive(self, animals):
        criteria = FilterCriteria(min_age=3, max_age=8)
        assert [a.id for a in animals if matches_age_range(a, criteria)] == ["a1", "a2", "a3"]

    def test_age_range_unknown_age_passes(self, animals):
        criteria = FilterCriteria(min_age=10, max_age=12)
        assert [a.id for a in animals if matches_age_range(a, criteria)] == ["a3"]

    def test_age_range_ignores_emergencies(self, emergencies):
        criteria = FilterCriteria(min_age=10, max_age=12)
        assert all(matches_age_range(e, criteria) for e in emergencies)

    def test_size(self, animals, emergencies):
        criteria = FilterCriteria(size="small")
        assert [a.id for a in animals if matches_size(a, criteria)] == ["a2"]
        assert all(matches_size(e, criteria) for e in emergencies)

    def test_severity(self, animals, emergencies):
        criteria = FilterCriteria(severity="high")
        assert [e.id for e in emergencies if matches_severity(e, criteria)] == ["e1"]
        assert all(matches_severity(a, criteria) for a in animals)

    def test_radius(self, animals):
        criteria = FilterCriteria(radius_km=10)
        assert [a.id for a in animals if matches_radius(a, criteria)] == ["a1", "a2", "a3"]

    def test_radius_unknown_distance_passes(self):
        animal = make_animal("x", distance_km=None)
        assert matches_radius(animal, FilterCriteria(radius_km=1)) is True


class TestApplyFilters:
    """Tests for the full pipeline."""

    def test_default_criteria_keep_everything_in_range(self, animals, emergencies):
        result = apply_filters(FilterCriteria(), animals, emergencies)
        assert result == FilteredEntities(tuple(animals), tuple(emergencies))
        assert result.total == 6

    def test_preserves_order(self, animals, emergencies):
        result = apply_filters(FilterCriteria(category="animals"), animals, emergencies)
        assert [a.id for a in result.animals] == ["a1", "a2", "a3", "a4"]
        assert result.emergencies == ()

    def test_does_not_modify_inputs(self, animals, emergencies):
        before = (list(animals), list(emergencies))
        apply_filters(FilterCriteria(query="rex", radius_km=1), animals, emergencies)
        assert (animals, emergencies) == before

    @pytest.mark.parametrize("criteria", [
        FilterCriteria(),
        FilterCriteria(query="e"),
        FilterCriteria(category="stray", radius_km=10),
        FilterCriteria(min_age=2, max_age=5, severity="low"),
        FilterCriteria(size="large", query="rex"),
    ])
    def test_predicate_order_does_not_matter(self, animals, emergencies, criteria):
        expected = apply_filters(criteria, animals, emergencies)
        for order in itertools.permutations(PREDICATES):
            assert apply_filters(criteria, animals, emergencies, predicates=order) == expected

    @pytest.mark.parametrize("criteria", [
        FilterCriteria(query="a"),
        FilterCriteria(category="emergencies", severity="high"),
        FilterCriteria(radius_km=5, min_age=2),
    ])
    def test_idempotent(self, animals, emergencies, criteria):
        once = apply_filters(criteria, animals, emergencies)
        twice = apply_filters(criteria, once.animals, once.emergencies)
        assert twice == once

    def test_larger_radius_is_superset(self, animals, emergencies):
        for small, large in [(1, 5), (5, 10), (10, 50), (0.1, 100)]:
            inner = apply_filters(FilterCriteria(radius_km=small), animals, emergencies)
            outer = apply_filters(FilterCriteria(radius_km=large), animals, emergencies)
            assert set(inner.animals) <= set(outer.animals)
            assert set(inner.emergencies) <= set(outer.emergencies)

    def test_search_and_radius_scenario(self):
        """A stray 0.1 km away, an owned dog 0.1 km away and one 55 km away."""
        near_stray = make_animal("s", latitude=40.001, name="Stripe", category="stray")
        near_owned = make_animal("o", latitude=40.0, longitude=-74.0013, name="Bo", category="owned")
        far = make_animal("f", latitude=40.5, name="Distant", category="stray")

        result = apply_filters(
            FilterCriteria(query="str", radius_km=10),
            [near_stray, near_owned, far],
            [],
        )

        assert result.animals == (near_stray,)
        assert result.emergencies == ()


class TestRequiresRefetch:
    def test_radius_change_refetches(self):
        assert requires_refetch(FilterCriteria(radius_km=10), FilterCriteria(radius_km=20)) is True

    def test_other_changes_do_not_refetch(self):
        previous = FilterCriteria(radius_km=10)
        current = FilterCriteria(radius_km=10, query="rex", category="stray", size="small")
        assert requires_refetch(previous, current) is False


class TestUnlistedValues:
    """Entities carrying backend values outside the known vocabularies."""

    def test_foster_selectable_by_category(self):
        foster = make_animal("f", category="foster")
        assert matches_category(foster, FilterCriteria(category="foster")) is True
        assert matches_category(foster, FilterCriteria(category="stray")) is False

    def test_unknown_severity_only_fails_exact_severity(self):
        report = make_emergency("u", severity="unknown")
        assert matches_severity(report, FilterCriteria()) is True
        assert matches_severity(report, FilterCriteria(severity="low")) is False
