"""SQLAlchemy models for fundtrack database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    CheckConstraint,
    Index,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


class Account(Base):
    """Account model."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    institution_name = Column(String, nullable=False)
    balance = Column(Numeric(14, 2), default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    outgoing = relationship(
        "LedgerTransaction", foreign_keys="LedgerTransaction.from_account_id", back_populates="from_account"
    )
    incoming = relationship(
        "LedgerTransaction", foreign_keys="LedgerTransaction.to_account_id", back_populates="to_account"
    )
    goals = relationship("Goal", back_populates="linked_account")


class LedgerTransaction(Base):
    """Append-only ledger entry model."""

    __tablename__ = "ledger_transactions"

    id = Column(Integer, primary_key=True)
    from_account_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    to_account_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    kind = Column(String, nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    date = Column(Date, nullable=False)
    category = Column(String, nullable=True)
    description = Column(String, nullable=True)
    reference_kind = Column(String, nullable=True)
    reference_id = Column(String, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_ledger_amount_positive"),
        Index("ix_ledger_kind_date", "kind", "date"),
        Index("ix_ledger_reference", "reference_kind", "reference_id"),
    )

    # Relationships
    from_account = relationship("Account", foreign_keys=[from_account_id], back_populates="outgoing")
    to_account = relationship("Account", foreign_keys=[to_account_id], back_populates="incoming")


class Goal(Base):
    """Savings goal model. Holds no balance column."""

    __tablename__ = "goals"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    target_amount = Column(Numeric(14, 2), nullable=False)
    deadline = Column(Date, nullable=True)
    description = Column(String, nullable=True)
    category = Column(String, default="other", nullable=False)
    status = Column(String, default="active", nullable=False)
    linked_account_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    abandonment_reason = Column(String, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    # Relationships
    linked_account = relationship("Account", back_populates="goals")
    allocations = relationship("GoalAllocation", back_populates="goal", order_by="GoalAllocation.id")
    contributions = relationship("GoalContribution", back_populates="goal")


class GoalAllocation(Base):
    """Join between a goal and the ledger transaction that funded it."""

    __tablename__ = "goal_allocations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    goal_id = Column(Integer, ForeignKey("goals.id"), nullable=False, index=True)
    ledger_transaction_id = Column(
        Integer, ForeignKey("ledger_transactions.id"), nullable=False, unique=True
    )
    amount = Column(Numeric(14, 2), nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (CheckConstraint("amount > 0", name="ck_allocation_amount_positive"),)

    # Relationships
    goal = relationship("Goal", back_populates="allocations")
    ledger_transaction = relationship("LedgerTransaction")


class GoalContribution(Base):
    """Goal audit trail model."""

    __tablename__ = "goal_contributions"

    id = Column(Integer, primary_key=True)
    goal_id = Column(Integer, ForeignKey("goals.id"), nullable=False, index=True)
    kind = Column(String, nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    date = Column(Date, nullable=False)
    notes = Column(String, nullable=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    ledger_transaction_id = Column(Integer, ForeignKey("ledger_transactions.id"), nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    goal = relationship("Goal", back_populates="contributions")


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
