"""Score rule catalogue endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from org_check.api.dependencies import get_scoring_engine
from org_check.models.schemas import ScoreRuleResponse
from org_check.scoring.engine import ScoringEngine
from org_check.scoring.rules import ScoreRule

router = APIRouter()


def _to_response(rule: ScoreRule) -> ScoreRuleResponse:
    return ScoreRuleResponse(
        id=rule.id,
        description=rule.description,
        bad_field=rule.bad_field,
        error_message=rule.error_message,
        applicable_types=sorted(t.value for t in rule.applicable_types),
    )


@router.get("/rules", response_model=list[ScoreRuleResponse])
async def list_rules(engine: ScoringEngine = Depends(get_scoring_engine)) -> list[ScoreRuleResponse]:
    return [_to_response(rule) for rule in engine.get_all_rules()]


@router.get("/rules/{rule_id}", response_model=ScoreRuleResponse)
async def get_rule(
    rule_id: int, engine: ScoringEngine = Depends(get_scoring_engine)
) -> ScoreRuleResponse:
    rule = engine.get_rule(rule_id)
    if rule is None:
        raise HTTPException(status_code=404, detail=f"No score rule with id {rule_id}")
    return _to_response(rule)
