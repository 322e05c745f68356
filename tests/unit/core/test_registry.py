"""
Tests for the condition registry.
"""

import pytest

from core.domain.criteria import CriteriaTable, CriteriaTier
from core.domain.models import ConditionKey
from core.services.metric_aggregator import base_metrics
from core.services.registry import ConditionModule, ConditionRegistry, RegistryError


def _module(key: str, payload_kinds: frozenset[str] = frozenset()) -> ConditionModule:
    return ConditionModule(
        key=key,
        name=key.title(),
        diagnostic_code="0000",
        aggregate=base_metrics,
        criteria=CriteriaTable.of(CriteriaTier(0, "baseline")),
        symptom_tags=frozenset({key}),
        payload_kinds=payload_kinds,
    )


@pytest.fixture
def registry() -> ConditionRegistry:
    registry = ConditionRegistry()
    registry.register(_module("tinnitus"))
    registry.register(_module("migraine", frozenset({"migraine"})))
    return registry


def test_lookup_by_string_or_enum(registry: ConditionRegistry) -> None:
    module = registry.get("migraine")
    assert module is not None
    assert registry.get(ConditionKey.MIGRAINE) is module
    assert ConditionKey.TINNITUS in registry
    assert "tinnitus" in registry
    assert 42 not in registry


def test_unknown_key_returns_none(registry: ConditionRegistry) -> None:
    assert registry.get("gout") is None
    assert "gout" not in registry


def test_keys_are_sorted(registry: ConditionRegistry) -> None:
    assert registry.keys() == ["migraine", "tinnitus"]
    assert [m.key for m in registry] == ["migraine", "tinnitus"]
    assert len(registry) == 2


def test_duplicate_key_is_rejected(registry: ConditionRegistry) -> None:
    with pytest.raises(RegistryError, match="already registered"):
        registry.register(_module("tinnitus"))


def test_payload_kind_has_one_owner(registry: ConditionRegistry) -> None:
    with pytest.raises(RegistryError, match="already claimed by migraine"):
        registry.register(_module("headache", frozenset({"migraine"})))
    assert "headache" not in registry


def test_uses_measurements() -> None:
    assert not _module("x").uses_measurements
