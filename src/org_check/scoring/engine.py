"""Applies the score rules to records."""

from __future__ import annotations

from typing import Any

from org_check.models.entities import EntityType
from org_check.observability.logger import get_logger
from org_check.scoring.rules import ALL_SCORE_RULES, ScoreRule

logger = get_logger("scoring")


class ScoringEngine:
    def __init__(self, rules: tuple[ScoreRule, ...] = ALL_SCORE_RULES) -> None:
        self._rules = tuple(sorted(rules, key=lambda r: r.id))
        self._rules_by_id = {r.id: r for r in self._rules}

    def rules_for(self, entity_type: EntityType) -> list[ScoreRule]:
        return [r for r in self._rules if entity_type in r.applicable_types]

    def get_rule(self, rule_id: int) -> ScoreRule | None:
        return self._rules_by_id.get(rule_id)

    def get_all_rules(self) -> list[ScoreRule]:
        return list(self._rules)

    def compute_score(self, record: Any, rules: list[ScoreRule]) -> Any:
        """Append every matching rule to the record's score, in rule id order.

        A predicate that raises is logged and counted as not matching.
        """
        for rule in rules:
            try:
                matched = rule.predicate(record) is True
            except Exception as e:
                logger.warning(
                    "score_rule_failed",
                    rule_id=rule.id,
                    record_type=type(record).__name__,
                    error=str(e),
                )
                continue
            if matched:
                record.score += 1
                record.bad_fields.append(rule.bad_field)
                record.bad_reason_ids.append(rule.id)
        return record
