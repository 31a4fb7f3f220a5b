"""Unit tests for the applied-configuration matcher."""

from postgres_operator.utils.config_matcher import ConfigMatcher, matches, use


class TestMatches:
    def test_exact_value_matches(self):
        assert matches([{"a": b"1"}], "a=1")

    def test_different_value_does_not_match(self):
        assert not matches([{"a": b"1"}], "a=2")

    def test_no_sources(self):
        assert not matches([], "a=1")

    def test_expectation_without_separator(self):
        assert not matches([{"a": b"1"}], "a")

    def test_any_source_may_match(self):
        sources = [{"a": b"1"}, {"b": b"2"}, {"a": b"3"}]

        assert matches(sources, "a=3")
        assert matches(sources, "b=2")
        assert not matches(sources, "b=3")

    def test_splits_on_first_separator(self):
        sources = [{"search_path": b"a=b"}]

        assert matches(sources, "search_path=a=b")
        assert not matches(sources, "search_path=a")

    def test_empty_value(self):
        assert matches([{"a": b""}], "a=")
        assert not matches([{"a": b"1"}], "a=")

    def test_missing_key(self):
        assert not matches([{"b": b"1"}], "a=1")

    def test_string_values_compared_as_bytes(self):
        assert matches([{"max_connections": "200"}], "max_connections=200")


class TestConfigMatcher:
    def test_callable(self):
        matcher = use("shared_buffers=256MB")

        assert isinstance(matcher, ConfigMatcher)
        assert matcher([{"shared_buffers": b"256MB"}])
        assert not matcher([{"shared_buffers": b"128MB"}])

    def test_failure_messages(self):
        matcher = use("a=1")
        actual = [{"a": b"2"}]

        assert matcher.failure_message(actual) == (
            "Expected [{'a': b'2'}] to be equivalent to a=1"
        )
        assert matcher.negated_failure_message(actual) == (
            "Expected [{'a': b'2'}] not to be equivalent to a=1"
        )
