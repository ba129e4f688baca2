"""/v1/recurring/* - due-checks, atomic posting and confirmation of recurring obligations"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from finance_core.api.dependencies import get_request_id, track_computation
from finance_core.api.v1.schemas import (
    MovementSchema,
    PendingOccurrenceSchema,
    RecurringConfirmRequest,
    RecurringDueRequest,
    RecurringPlanResponse,
    RecurringPostingSchema,
    RecurringRuleSchema,
    RecurringRunRequest,
    RecurringRunResponse,
)
from finance_core.config import settings
from finance_core.domain.recurring import confirm_occurrence, due_rules, plan_postings
from finance_core.infrastructure.database.repositories import LedgerRepository
from finance_core.infrastructure.database.session import get_db
from finance_core.infrastructure.observability.metrics import record_schedule_plan

router = APIRouter()


@router.post("/recurring/due", response_model=RecurringPlanResponse)
def check_due(request_body: RecurringDueRequest, request: Request):
    """
    Compute what is due without persisting anything.

    Returns the due rules plus the plan a run would apply: movements to post,
    posting records, occurrences queued for confirmation and advanced rules.
    """
    with track_computation("recurring", request):
        rules = [r.to_domain() for r in request_body.rules]
        postings = [p.to_domain() for p in request_body.postings]
        due = due_rules(rules, postings, request_body.today)
        plan = plan_postings(rules, postings, request_body.today, settings.recurring_run_max_backfill)

    return RecurringPlanResponse(
        due_rule_ids=[r.id for r in due],
        movements=[MovementSchema.model_validate(m) for m in plan.movements],
        postings=[RecurringPostingSchema.model_validate(p) for p in plan.postings],
        queued=[PendingOccurrenceSchema.model_validate(q) for q in plan.queued],
        rules=[RecurringRuleSchema.model_validate(r) for r in plan.rules],
    )


@router.post("/recurring/run", response_model=RecurringRunResponse)
def run_due_check(
    request_body: RecurringRunRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    """
    Due-check sweep against the stored ledger.

    Flow:
    1. Load rules and existing postings
    2. Plan postings, backfill and rule transitions
    3. Write movements, postings, rules and queued occurrences in one transaction
    """
    request_id = get_request_id(request)
    repo = LedgerRepository(db)

    try:
        with track_computation("recurring", request):
            plan = plan_postings(
                repo.load_rules(),
                repo.load_postings(),
                request_body.today,
                settings.recurring_run_max_backfill,
            )

        repo.apply_schedule_plan(plan)
        db.commit()

    except HTTPException:
        db.rollback()
        raise

    except Exception as e:
        db.rollback()
        logging.error(f"Recurring run failed: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    record_schedule_plan(posted=len(plan.movements), queued=len(plan.queued))
    logging.info(
        "Recurring run applied",
        extra={
            "request_id": request_id,
            "step": "recurring_run",
            "posted": len(plan.movements),
            "queued": len(plan.queued),
        },
    )

    return RecurringRunResponse(
        posted_movement_ids=[m.id for m in plan.movements],
        queued=[PendingOccurrenceSchema.model_validate(q) for q in plan.queued],
    )


@router.put("/recurring/rules/{rule_id}", response_model=RecurringRuleSchema)
def upsert_rule(
    rule_id: str,
    rule: RecurringRuleSchema,
    request: Request,
    db: Session = Depends(get_db),
):
    """Create or replace a stored rule; the path id wins over the body id"""
    repo = LedgerRepository(db)
    domain_rule = rule.to_domain()
    domain_rule.id = rule_id

    try:
        repo.save_rule(domain_rule)
        db.commit()
    except Exception as e:
        db.rollback()
        logging.error(f"Saving rule failed: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=500, detail="Internal server error")

    return RecurringRuleSchema.model_validate(domain_rule)


@router.get("/recurring/pending", response_model=List[PendingOccurrenceSchema])
def list_pending(rule_id: Optional[str] = None, db: Session = Depends(get_db)):
    """Occurrences queued by earlier runs and still waiting for confirmation"""
    return [PendingOccurrenceSchema.model_validate(p) for p in LedgerRepository(db).load_pending(rule_id)]


@router.post("/recurring/confirm", response_model=MovementSchema)
def confirm_pending(
    request_body: RecurringConfirmRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    """
    Post one queued occurrence.

    The movement, its posting record and the removal from the queue are
    written in one transaction. Unknown rules or periods that are not queued
    return 404.
    """
    request_id = get_request_id(request)
    repo = LedgerRepository(db)

    rule = repo.get_rule(request_body.rule_id)
    pending = [
        p for p in repo.load_pending(request_body.rule_id) if p.period_label == request_body.period_label
    ]
    if rule is None or not pending:
        raise HTTPException(status_code=404, detail="No pending occurrence for this rule and period")

    try:
        with track_computation("recurring", request):
            movement, posting = confirm_occurrence(rule, pending[0], request_body.amount_cents)

        repo.apply_confirmation(movement, posting)
        db.commit()

    except HTTPException:
        db.rollback()
        raise

    except Exception as e:
        db.rollback()
        logging.error(f"Confirming occurrence failed: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    record_schedule_plan(posted=1, queued=0)
    logging.info(
        "Pending occurrence confirmed",
        extra={"request_id": request_id, "step": "recurring_confirm", "movement_id": movement.id},
    )
    return MovementSchema.model_validate(movement)
