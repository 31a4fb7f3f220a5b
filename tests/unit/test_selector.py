"""Unit tests for typed label selectors."""

import pytest

from postgres_operator.models.selector import (
    LabelRequirement,
    LabelSelector,
    SelectorOperator,
)


class TestLabelRequirement:
    @pytest.mark.parametrize(
        "operator,values,expected",
        [
            (SelectorOperator.EQUALS, ("kubedb",), "app=kubedb"),
            (SelectorOperator.NOT_EQUALS, ("kubedb",), "app!=kubedb"),
            (SelectorOperator.IN, ("a", "b"), "app in (a,b)"),
            (SelectorOperator.NOT_IN, ("a",), "app notin (a)"),
            (SelectorOperator.EXISTS, (), "app"),
            (SelectorOperator.DOES_NOT_EXIST, (), "!app"),
        ],
    )
    def test_to_string(self, operator, values, expected):
        requirement = LabelRequirement(key="app", operator=operator, values=values)

        assert requirement.to_string() == expected

    def test_equality_requires_one_value(self):
        with pytest.raises(ValueError):
            LabelRequirement(key="app", values=("a", "b"))

    def test_set_operators_require_values(self):
        with pytest.raises(ValueError):
            LabelRequirement(key="app", operator=SelectorOperator.IN)

    def test_existence_takes_no_values(self):
        with pytest.raises(ValueError):
            LabelRequirement(key="app", operator=SelectorOperator.EXISTS, values=("x",))

    def test_empty_key_rejected(self):
        with pytest.raises(ValueError):
            LabelRequirement(key="", values=("x",))

    def test_matches(self):
        in_set = LabelRequirement(key="tier", operator=SelectorOperator.IN, values=("db", "cache"))
        absent = LabelRequirement(key="legacy", operator=SelectorOperator.DOES_NOT_EXIST)

        assert in_set.matches({"tier": "db"})
        assert not in_set.matches({"tier": "web"})
        assert absent.matches({"tier": "db"})
        assert not absent.matches({"legacy": "true"})


class TestLabelSelector:
    def test_from_labels_is_sorted(self):
        selector = LabelSelector.from_labels({"tier": "db", "app": "kubedb"})

        assert selector.to_string() == "app=kubedb,tier=db"
        assert str(selector) == "app=kubedb,tier=db"

    def test_single_label(self):
        assert LabelSelector.from_labels({"app": "kubedb"}).to_string() == "app=kubedb"

    def test_empty_selector_matches_everything(self):
        selector = LabelSelector()

        assert selector.to_string() == ""
        assert selector.matches({"anything": "goes"})
        assert selector.matches(None)

    def test_matches_is_conjunction(self):
        selector = LabelSelector.from_labels({"app": "kubedb", "tier": "db"})

        assert selector.matches({"app": "kubedb", "tier": "db", "extra": "x"})
        assert not selector.matches({"app": "kubedb"})

    def test_frozen_and_hashable(self):
        first = LabelSelector.from_labels({"app": "kubedb"})
        second = LabelSelector.from_labels({"app": "kubedb"})

        assert first == second
        assert hash(first) == hash(second)
