"""
Assertion helper for applied Postgres configuration.

Observed configuration is a list of ``key -> bytes`` mappings, one per
source (for example the data of each config secret). An expectation is a
``key=value`` string split on the first ``=``.
"""

from collections.abc import Mapping, Sequence


def _parse_expected(expected: str) -> tuple[str, str] | None:
    key, sep, value = expected.partition("=")
    if not sep:
        return None
    return key, value


def _as_bytes(value: bytes | str) -> bytes:
    if isinstance(value, str):
        return value.encode()
    return bytes(value)


def matches(actual: Sequence[Mapping[str, bytes]], expected: str) -> bool:
    """
    Return True iff any mapping holds ``key`` with exactly ``value``.

    Never raises: a malformed expectation (no ``=``) simply does not match.

    >>> matches([{"max_connections": b"200"}], "max_connections=200")
    True
    """
    parsed = _parse_expected(expected)
    if parsed is None:
        return False
    key, value = parsed
    wanted = value.encode()
    return any(key in source and _as_bytes(source[key]) == wanted for source in actual)


class ConfigMatcher:
    """Callable matcher with failure messages for test assertions."""

    def __init__(self, expected: str):
        self.expected = expected

    def __call__(self, actual: Sequence[Mapping[str, bytes]]) -> bool:
        return matches(actual, self.expected)

    def failure_message(self, actual) -> str:
        return f"Expected {actual} to be equivalent to {self.expected}"

    def negated_failure_message(self, actual) -> str:
        return f"Expected {actual} not to be equivalent to {self.expected}"


def use(config: str) -> ConfigMatcher:
    """Build a matcher for ``config``, e.g. ``use("shared_buffers=256MB")``."""
    return ConfigMatcher(config)
