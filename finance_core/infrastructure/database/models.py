"""SQLAlchemy ORM models for the ledger tables touched by the recurring sweep"""

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


class MovementRecord(Base):
    """Posted income or expense movement"""

    __tablename__ = "movement"

    id = Column(Text, primary_key=True)
    description = Column(Text, nullable=False)
    amount_cents = Column(BigInteger, nullable=False)
    direction = Column(Text, nullable=False)
    category = Column(Text, nullable=False)
    entity_id = Column(Text, nullable=True, index=True)
    payment_method = Column(Text, nullable=True)
    date = Column(Date, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())


class RecurringRuleRecord(Base):
    """Recurring obligation template and its schedule state"""

    __tablename__ = "recurring_rule"

    id = Column(Text, primary_key=True)
    description = Column(Text, nullable=False)
    amount_cents = Column(BigInteger, nullable=False)
    direction = Column(Text, nullable=False, default="expense")
    category = Column(Text, nullable=False)
    entity_id = Column(Text, nullable=True)
    frequency = Column(Text, nullable=False)
    start_date = Column(Date, nullable=False)
    next_due_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    auto_post = Column(Boolean, nullable=False, default=True)
    is_estimated = Column(Boolean, nullable=False, default=False)
    backfill_missed = Column(Boolean, nullable=False, default=True)

    postings = relationship("RecurringPostingRecord", back_populates="rule", cascade="all, delete-orphan")


class RecurringPostingRecord(Base):
    """One posting per rule and period label"""

    __tablename__ = "recurring_posting"
    __table_args__ = (UniqueConstraint("rule_id", "period_label", name="uq_posting_rule_period"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    rule_id = Column(Text, ForeignKey("recurring_rule.id", ondelete="CASCADE"), nullable=False)
    period_label = Column(Text, nullable=False)
    due_date = Column(Date, nullable=False)
    movement_id = Column(Text, ForeignKey("movement.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    rule = relationship("RecurringRuleRecord", back_populates="postings")


class PendingOccurrenceRecord(Base):
    """Queued occurrence waiting for user confirmation"""

    __tablename__ = "pending_occurrence"
    __table_args__ = (UniqueConstraint("rule_id", "period_label", name="uq_pending_rule_period"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    rule_id = Column(Text, ForeignKey("recurring_rule.id", ondelete="CASCADE"), nullable=False, index=True)
    period_label = Column(Text, nullable=False)
    due_date = Column(Date, nullable=False)
    amount_cents = Column(BigInteger, nullable=False)
    is_estimated = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
