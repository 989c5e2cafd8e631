"""Pin FacetSelection value semantics."""

import pytest

from switchfinder.logic.selection import FacetSelection


class TestFacetSelection:
    def test_empty(self):
        selection = FacetSelection.empty()
        assert selection.is_empty
        assert selection.active_count == 0
        assert selection.active_facets() == []

    def test_with_value_returns_new_object(self):
        original = FacetSelection.empty()
        updated = original.with_value("duty", "heavy")
        assert original.duty == ""
        assert updated.duty == "heavy"

    def test_with_value_none_clears(self):
        selection = FacetSelection(duty="heavy").with_value("duty", None)
        assert selection.duty == ""

    def test_with_value_features_from_string(self):
        assert FacetSelection().with_value("features", "shield").features == ("shield",)

    def test_with_value_features_dedupes(self):
        assert FacetSelection().with_value("features", ["twin", "twin", "shield"]).features == ("twin", "shield")

    def test_unknown_facet_raises(self):
        with pytest.raises(KeyError):
            FacetSelection().with_value("colour", "red")
        with pytest.raises(KeyError):
            FacetSelection().value("colour")

    def test_cleared(self):
        selection = FacetSelection(duty="heavy", features=("shield",)).cleared("duty", "features")
        assert selection.is_empty

    def test_toggle_feature(self):
        selection = FacetSelection().toggle_feature("shield")
        assert selection.features == ("shield",)
        assert selection.toggle_feature("shield").features == ()

    def test_active_count_counts_each_feature(self):
        selection = FacetSelection(application="industrial", duty="heavy", features=("shield", "twin"))
        assert selection.active_count == 4

    def test_whitespace_search_is_not_set(self):
        assert not FacetSelection(search="   ").is_set("search")

    def test_round_trip_dict(self):
        selection = FacetSelection(application="industrial", features=("shield",), search="iron")
        assert FacetSelection.from_dict(selection.to_dict()) == selection

    def test_from_dict_strips_and_ignores_unknown(self):
        selection = FacetSelection.from_dict({"duty": " heavy ", "colour": "red", "technology": None})
        assert selection.duty == "heavy"
        assert selection.technology == ""

    def test_from_dict_none(self):
        assert FacetSelection.from_dict(None).is_empty

    def test_hashable(self):
        assert len({FacetSelection(duty="heavy"), FacetSelection(duty="heavy")}) == 1
