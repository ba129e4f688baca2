"""Data access layer mapping ledger tables to domain snapshots"""

from typing import Iterable, List, Optional
from sqlalchemy.orm import Session
from finance_core.infrastructure.database.models import (
    MovementRecord,
    PendingOccurrenceRecord,
    RecurringPostingRecord,
    RecurringRuleRecord,
)
from finance_core.domain.models import (
    Movement,
    PendingOccurrence,
    RecurringPosting,
    RecurringRule,
    SchedulePlan,
)

_RULE_FIELDS = (
    "description",
    "amount_cents",
    "direction",
    "category",
    "entity_id",
    "frequency",
    "start_date",
    "next_due_date",
    "end_date",
    "active",
    "auto_post",
    "is_estimated",
    "backfill_missed",
)


def _rule_from_record(record: RecurringRuleRecord) -> RecurringRule:
    return RecurringRule(id=record.id, **{name: getattr(record, name) for name in _RULE_FIELDS})


class LedgerRepository:
    """Repository for movements, recurring rules and their postings"""

    def __init__(self, db: Session):
        self.db = db

    def load_movements(self) -> List[Movement]:
        """Fetch the full movement ledger as domain objects"""
        return [
            Movement(
                id=r.id,
                description=r.description,
                amount_cents=r.amount_cents,
                direction=r.direction,
                category=r.category,
                date=r.date,
                entity_id=r.entity_id,
                payment_method=r.payment_method,
                created_at=r.created_at,
                updated_at=r.updated_at,
            )
            for r in self.db.query(MovementRecord).order_by(MovementRecord.date, MovementRecord.id).all()
        ]

    def load_rules(self) -> List[RecurringRule]:
        """Fetch every recurring rule, active or not"""
        return [
            _rule_from_record(r)
            for r in self.db.query(RecurringRuleRecord).order_by(RecurringRuleRecord.id).all()
        ]

    def get_rule(self, rule_id: str) -> Optional[RecurringRule]:
        record = self.db.get(RecurringRuleRecord, rule_id)
        return _rule_from_record(record) if record else None

    def load_pending(self, rule_id: Optional[str] = None) -> List[PendingOccurrence]:
        """Queued occurrences in due-date order, optionally for one rule"""
        query = self.db.query(PendingOccurrenceRecord)
        if rule_id is not None:
            query = query.filter(PendingOccurrenceRecord.rule_id == rule_id)
        return [
            PendingOccurrence(
                rule_id=p.rule_id,
                due_date=p.due_date,
                period_label=p.period_label,
                amount_cents=p.amount_cents,
                is_estimated=p.is_estimated,
            )
            for p in query.order_by(PendingOccurrenceRecord.due_date, PendingOccurrenceRecord.rule_id).all()
        ]

    def load_postings(self) -> List[RecurringPosting]:
        """Fetch posting records used for period deduplication"""
        return [
            RecurringPosting(
                rule_id=p.rule_id,
                period_label=p.period_label,
                due_date=p.due_date,
                movement_id=p.movement_id,
            )
            for p in self.db.query(RecurringPostingRecord).all()
        ]

    def add_movements(self, movements: Iterable[Movement]) -> None:
        """Stage new movements without committing"""
        for m in movements:
            self.db.add(
                MovementRecord(
                    id=m.id,
                    description=m.description,
                    amount_cents=m.amount_cents,
                    direction=m.direction,
                    category=m.category,
                    entity_id=m.entity_id,
                    payment_method=m.payment_method,
                    date=m.date,
                )
            )

    def save_rule(self, rule: RecurringRule) -> RecurringRuleRecord:
        """Insert or update a rule's definition and schedule state"""
        record = self.db.get(RecurringRuleRecord, rule.id)
        if record is None:
            record = RecurringRuleRecord(id=rule.id)
            self.db.add(record)
        for name in _RULE_FIELDS:
            setattr(record, name, getattr(rule, name))
        return record

    def _add_postings(self, postings: Iterable[RecurringPosting]) -> None:
        for posting in postings:
            self.db.add(
                RecurringPostingRecord(
                    rule_id=posting.rule_id,
                    period_label=posting.period_label,
                    due_date=posting.due_date,
                    movement_id=posting.movement_id,
                )
            )

    def apply_schedule_plan(self, plan: SchedulePlan) -> None:
        """
        Stage a whole due-check sweep as one write.

        Movements, posting records, queued occurrences and rule transitions go
        into the same transaction; the caller commits or rolls back the batch.
        """
        self.add_movements(plan.movements)
        self.db.flush()  # Movements must exist before postings reference them

        self._add_postings(plan.postings)
        for rule in plan.rules:
            self.save_rule(rule)
        self.db.flush()  # Rules must exist before pending rows reference them

        for occurrence in plan.queued:
            self.db.add(
                PendingOccurrenceRecord(
                    rule_id=occurrence.rule_id,
                    period_label=occurrence.period_label,
                    due_date=occurrence.due_date,
                    amount_cents=occurrence.amount_cents,
                    is_estimated=occurrence.is_estimated,
                )
            )
        self.db.flush()

    def apply_confirmation(self, movement: Movement, posting: RecurringPosting) -> None:
        """Post a confirmed occurrence and remove it from the queue in one write"""
        self.add_movements([movement])
        self.db.flush()
        self._add_postings([posting])
        self.db.query(PendingOccurrenceRecord).filter(
            PendingOccurrenceRecord.rule_id == posting.rule_id,
            PendingOccurrenceRecord.period_label == posting.period_label,
        ).delete(synchronize_session=False)
        self.db.flush()
