"""Creates sealed, scored records for a given entity class."""

from __future__ import annotations

import dataclasses
from typing import Any, Generic, TypeVar

from org_check.exceptions import UnknownPropertyError
from org_check.factory.dependencies import create_dependencies
from org_check.models.domain import DependencyData
from org_check.scoring.engine import ScoringEngine
from org_check.scoring.rules import ScoreRule

R = TypeVar("R")

_SCORING_FIELDS = ("score", "bad_fields", "bad_reason_ids")


class DataFactoryInstance(Generic[R]):
    def __init__(
        self,
        entity_class: type[R],
        scoring_engine: ScoringEngine,
        score_rules: list[ScoreRule],
        needs_dependencies: bool,
    ) -> None:
        self._entity_class = entity_class
        self._scoring_engine = scoring_engine
        self._score_rules = score_rules
        self._needs_dependencies = needs_dependencies
        self._field_names = frozenset(f.name for f in dataclasses.fields(entity_class))

    @property
    def score_rules(self) -> list[ScoreRule]:
        return list(self._score_rules)

    def create(
        self,
        properties: dict[str, Any],
        dependency_data: DependencyData | None = None,
        id_fields: tuple[str, ...] = ("id",),
    ) -> R:
        if properties is None:
            raise TypeError("properties can't be None.")
        unknown = set(properties) - self._field_names
        if unknown:
            raise UnknownPropertyError(
                f"{self._entity_class.__name__} has no propert"
                f"{'y' if len(unknown) == 1 else 'ies'} {sorted(unknown)}"
            )
        values = {k: v for k, v in properties.items() if k not in _SCORING_FIELDS}
        values.pop("dependencies", None)
        record = self._entity_class(**values)
        if self._needs_dependencies and dependency_data is not None:
            record.dependencies = create_dependencies(
                dependency_data, [getattr(record, f) for f in id_fields]
            )
        return record

    def compute_score(self, record: R) -> R:
        return self._scoring_engine.compute_score(record, self._score_rules)

    def create_with_score(
        self,
        properties: dict[str, Any],
        dependency_data: DependencyData | None = None,
        id_fields: tuple[str, ...] = ("id",),
    ) -> R:
        return self.compute_score(self.create(properties, dependency_data, id_fields))


class DataFactory:
    """One cached DataFactoryInstance per entity class."""

    def __init__(self, scoring_engine: ScoringEngine | None = None) -> None:
        self._scoring_engine = scoring_engine or ScoringEngine()
        self._instances: dict[type, DataFactoryInstance] = {}

    @property
    def scoring_engine(self) -> ScoringEngine:
        return self._scoring_engine

    def get_instance(self, entity_class: type[R]) -> DataFactoryInstance[R]:
        if not dataclasses.is_dataclass(entity_class) or not hasattr(entity_class, "ENTITY_TYPE"):
            raise TypeError(f"{entity_class!r} is not a record class.")
        instance = self._instances.get(entity_class)
        if instance is None:
            names = {f.name for f in dataclasses.fields(entity_class)}
            is_scored = all(name in names for name in _SCORING_FIELDS)
            rules = self._scoring_engine.rules_for(entity_class.ENTITY_TYPE) if is_scored else []
            instance = DataFactoryInstance(
                entity_class,
                self._scoring_engine,
                rules,
                needs_dependencies="dependencies" in names,
            )
            self._instances[entity_class] = instance
        return instance
