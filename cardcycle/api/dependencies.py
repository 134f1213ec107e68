"""Dependency injection for FastAPI endpoints"""

from datetime import date
from typing import List, Optional

from fastapi import Request
from cardcycle.api.v1.schemas import BillingCycleSchema
from cardcycle.infrastructure.clients.aggregator import AggregatorClient
from cardcycle.infrastructure.database.models import BillingCycle


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_aggregator_client() -> AggregatorClient:
    """Provide aggregator API client instance"""
    return AggregatorClient()


def resolve_as_of(as_of: Optional[date]) -> date:
    """Wall-clock date is only read here, at the HTTP edge"""
    return as_of or date.today()


def to_cycle_schemas(rows: List[BillingCycle]) -> List[BillingCycleSchema]:
    return [
        BillingCycleSchema(
            id=row.cycle_key,
            card_id=row.card_id,
            kind=row.kind,
            start_date=row.start_date,
            end_date=row.end_date,
            due_date=row.due_date,
            statement_balance_cents=row.statement_balance_cents,
            remaining_balance_cents=row.remaining_balance_cents,
            minimum_payment_cents=row.minimum_payment_cents,
            total_spend_cents=row.total_spend_cents,
            transaction_count=row.transaction_count,
            payment_status=row.payment_status,
        )
        for row in rows
    ]
