"""Ledger helpers - movement edits, transfers, derived entity balances and goal progress"""

import uuid
from dataclasses import replace
from datetime import date, datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Optional, Tuple

from finance_core.domain.exceptions import InsufficientBalance, InvalidTransfer
from finance_core.domain.models import EXPENSE, INCOME, Contribution, Entity, Goal, GoalProgress, Movement
from finance_core.utils.money import signed_amount

TRANSFER_CATEGORY = "transfer"


def entity_balances(entities: Iterable[Entity], movements: Iterable[Movement]) -> Dict[str, int]:
    """
    Balance per entity recomputed from the ledger.

    Cached total_cents fields are ignored. Every known entity appears, with 0
    when it has no movements; movements pointing at unknown entities still count.
    """
    balances = {e.id: 0 for e in entities}
    for movement in movements:
        if movement.entity_id is None:
            continue
        balances[movement.entity_id] = balances.get(movement.entity_id, 0) + signed_amount(movement)
    return balances


def total_balance(entities: Iterable[Entity], movements: Iterable[Movement]) -> int:
    return sum(entity_balances(entities, movements).values())


def refresh_entity_totals(entities: Iterable[Entity], movements: Iterable[Movement]) -> List[Entity]:
    """Entities with their cached totals rebuilt from the ledger"""
    entities = list(entities)
    balances = entity_balances(entities, movements)
    return [replace(e, total_cents=balances[e.id]) for e in entities]


def goal_progress(goal: Goal, contributions: Iterable[Contribution], today: date) -> GoalProgress:
    """
    Progress toward a goal from its contributions.

    Projected completion extrapolates the average daily contribution since the
    first contribution; None when nothing has been saved or the goal is met.
    """
    own = sorted((c for c in contributions if c.goal_id == goal.id), key=lambda c: c.date)
    current = sum(c.amount_cents for c in own)
    remaining = max(goal.target_cents - current, 0)

    if goal.target_cents > 0:
        ratio = Decimal(current) * 100 / Decimal(goal.target_cents)
        percentage = int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    else:
        percentage = 100

    projected = None
    if own and remaining > 0 and current > 0:
        elapsed_days = max((today - own[0].date).days, 1)
        days_needed = Decimal(remaining) * elapsed_days / Decimal(current)
        projected = date.fromordinal(
            today.toordinal() + int(days_needed.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
        )

    return GoalProgress(
        goal_id=goal.id,
        current_cents=current,
        remaining_cents=remaining,
        percentage=percentage,
        overfunded=current > goal.target_cents,
        projected_completion=projected,
    )


def edit_movement(
    movement: Movement,
    description: Optional[str] = None,
    category: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Movement:
    """Posted movements only accept description and category edits"""
    return replace(
        movement,
        description=movement.description if description is None else description,
        category=movement.category if category is None else category,
        updated_at=now or datetime.now(timezone.utc),
    )


def transfer(
    from_entity: Entity,
    to_entity: Entity,
    amount_cents: int,
    movements: Iterable[Movement],
    today: date,
    transfer_id: Optional[str] = None,
) -> Tuple[Movement, Movement]:
    """
    Move money between two entities as a paired expense and income.

    The source balance is derived from the ledger, never from the cached
    total. Both movements share the transfer category, description and date.

    Raises:
        InvalidTransfer: Same source and destination, or non-positive amount
        InsufficientBalance: Source balance below the amount
    """
    if from_entity.id == to_entity.id:
        raise InvalidTransfer("Source and destination entities must differ")
    if amount_cents <= 0:
        raise InvalidTransfer(f"Transfer amount must be positive, got {amount_cents}")

    available = entity_balances([from_entity], movements)[from_entity.id]
    if amount_cents > available:
        raise InsufficientBalance(
            f"{from_entity.name} has {available} cents available, transfer needs {amount_cents}"
        )

    transfer_id = transfer_id or uuid.uuid4().hex
    description = f"Transfer {from_entity.name} -> {to_entity.name}"
    outgoing = Movement(
        id=f"{transfer_id}:out",
        description=description,
        amount_cents=amount_cents,
        direction=EXPENSE,
        category=TRANSFER_CATEGORY,
        date=today,
        entity_id=from_entity.id,
    )
    incoming = replace(outgoing, id=f"{transfer_id}:in", direction=INCOME, entity_id=to_entity.id)
    return outgoing, incoming
