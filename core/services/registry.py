"""
Condition modules and the registry that maps condition keys onto them.
"""

from collections.abc import Callable, Iterator
from dataclasses import dataclass, field

import structlog

from core.config import AnalysisConfig
from core.domain.criteria import CriteriaTable, Highlight
from core.domain.models import ConditionKey, MetricsBag
from core.services.log_selector import Selection

logger = structlog.get_logger(__name__)

Aggregator = Callable[[Selection, AnalysisConfig], MetricsBag]


class RegistryError(ValueError):
    """Raised when a condition module conflicts with one already registered."""


@dataclass(frozen=True)
class ConditionModule:
    """Everything needed to analyze one condition.

    ``payload_kinds`` lists payload variants this module claims: entries
    carrying such a payload are selected even if their tag is not in
    ``symptom_tags``. A payload kind may be claimed by one module only.
    """

    key: str
    name: str
    diagnostic_code: str
    aggregate: Aggregator
    criteria: CriteriaTable
    symptom_tags: frozenset[str]
    payload_kinds: frozenset[str] = frozenset()
    highlights: tuple[Highlight, ...] = ()
    evaluation_period_days: int = 90
    cfr_reference: str | None = None
    measurement_types: frozenset[str] = field(default_factory=frozenset)

    @property
    def uses_measurements(self) -> bool:
        return bool(self.measurement_types)


def _key_str(key: str | ConditionKey) -> str:
    return key.value if isinstance(key, ConditionKey) else key


class ConditionRegistry:
    """Ordered collection of condition modules, keyed by condition key."""

    def __init__(self) -> None:
        self._modules: dict[str, ConditionModule] = {}
        self._payload_owners: dict[str, str] = {}
        self.logger = logger.bind(component="condition_registry")

    def register(self, module: ConditionModule) -> ConditionModule:
        if module.key in self._modules:
            raise RegistryError(f"condition already registered: {module.key}")
        for kind in module.payload_kinds:
            owner = self._payload_owners.get(kind)
            if owner is not None:
                raise RegistryError(
                    f"payload kind {kind!r} already claimed by {owner}, cannot claim for {module.key}"
                )
        self._modules[module.key] = module
        for kind in module.payload_kinds:
            self._payload_owners[kind] = module.key
        self.logger.debug(
            "condition_registered",
            condition=module.key,
            diagnostic_code=module.diagnostic_code,
            tiers=list(module.criteria.percents),
        )
        return module

    def get(self, key: str | ConditionKey) -> ConditionModule | None:
        return self._modules.get(_key_str(key))

    def keys(self) -> list[str]:
        return sorted(self._modules)

    def modules(self) -> list[ConditionModule]:
        return [self._modules[k] for k in self.keys()]

    def __contains__(self, key: object) -> bool:
        if isinstance(key, (str, ConditionKey)):
            return _key_str(key) in self._modules
        return False

    def __len__(self) -> int:
        return len(self._modules)

    def __iter__(self) -> Iterator[ConditionModule]:
        return iter(self.modules())
