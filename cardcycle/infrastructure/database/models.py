"""SQLAlchemy ORM models for cards, transactions and derived billing cycles"""

from sqlalchemy import Column, String, BigInteger, DateTime, Date, Integer, ForeignKey, Text, UniqueConstraint
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


class CreditCard(Base):
    """Credit card account; balance and statement fields are overwritten on every sync"""

    __tablename__ = "credit_card"

    id = Column(Text, primary_key=True)
    name = Column(Text, nullable=False, default="")
    balance_current_cents = Column(BigInteger, nullable=True)
    available_credit_cents = Column(BigInteger, nullable=True)
    reported_limit_cents = Column(BigInteger, nullable=True)
    manual_limit_cents = Column(BigInteger, nullable=True)
    last_statement_balance_cents = Column(BigInteger, nullable=True)
    last_statement_date = Column(Date, nullable=True)
    next_payment_due_date = Column(Date, nullable=True)
    open_date = Column(Date, nullable=True)
    open_date_source = Column(Text, nullable=True)
    minimum_payment_cents = Column(BigInteger, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())

    transactions = relationship("CardTransaction", back_populates="card", cascade="all, delete-orphan")
    billing_cycles = relationship("BillingCycle", back_populates="card", cascade="all, delete-orphan")


class CardTransaction(Base):
    """Transaction synced from the aggregator"""

    __tablename__ = "card_transaction"
    __table_args__ = (UniqueConstraint("card_id", "transaction_id", name="uq_card_transaction"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    card_id = Column(Text, ForeignKey("credit_card.id", ondelete="CASCADE"), nullable=False, index=True)
    transaction_id = Column(Text, nullable=False)
    description = Column(Text, nullable=False, default="")
    amount_cents = Column(BigInteger, nullable=False)
    date = Column(Date, nullable=False, index=True)
    authorized_date = Column(Date, nullable=True)

    card = relationship("CreditCard", back_populates="transactions")


class BillingCycle(Base):
    """Derived billing cycle; deleted and recreated wholesale on regeneration"""

    __tablename__ = "billing_cycle"

    id = Column(Integer, primary_key=True, autoincrement=True)
    cycle_key = Column(String(36), nullable=False, unique=True)  # deterministic per card + window
    card_id = Column(Text, ForeignKey("credit_card.id", ondelete="CASCADE"), nullable=False, index=True)
    kind = Column(Text, nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False, index=True)
    due_date = Column(Date, nullable=True)
    statement_balance_cents = Column(BigInteger, nullable=True)  # NULL = open cycle
    remaining_balance_cents = Column(BigInteger, nullable=True)
    minimum_payment_cents = Column(BigInteger, nullable=True)
    total_spend_cents = Column(BigInteger, nullable=False, default=0)
    transaction_count = Column(Integer, nullable=False, default=0)
    payment_status = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    card = relationship("CreditCard", back_populates="billing_cycles")
