"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, Field
from datetime import date
from typing import List, Optional


class BillingCycleSchema(BaseModel):
    """Single persisted billing cycle"""

    id: str
    card_id: str
    kind: str
    start_date: date
    end_date: date
    due_date: Optional[date] = None
    statement_balance_cents: Optional[int] = None
    remaining_balance_cents: Optional[int] = None
    minimum_payment_cents: Optional[int] = None
    total_spend_cents: int
    transaction_count: int
    payment_status: Optional[str] = None


class BillingCyclesResponse(BaseModel):
    """Response for GET /v1/cards/{card_id}/billing-cycles and single-card regeneration"""

    card_id: str
    cycles: List[BillingCycleSchema]


class BatchRegenerateRequest(BaseModel):
    """Request body for POST /v1/billing-cycles/regenerate"""

    card_ids: List[str] = Field(..., min_length=1, description="Cards to regenerate")
    as_of: Optional[date] = Field(None, description="Reference date (defaults to today)")


class BatchRegenerateItem(BaseModel):
    """Outcome for one card in a batch regeneration"""

    card_id: str
    status: str  # ok | error
    cycles_created: int = 0
    error: Optional[str] = None


class BatchRegenerateResponse(BaseModel):
    """Response for POST /v1/billing-cycles/regenerate"""

    as_of: date
    results: List[BatchRegenerateItem]


class CardResponse(BaseModel):
    """Card summary with effective limit and utilization"""

    card_id: str
    name: str
    balance_current_cents: Optional[int] = None
    available_credit_cents: Optional[int] = None
    reported_limit_cents: Optional[int] = None
    manual_limit_cents: Optional[int] = None
    effective_limit_cents: Optional[int] = None
    utilization_percent: Optional[float] = None
    last_statement_balance_cents: Optional[int] = None
    last_statement_date: Optional[date] = None
    next_payment_due_date: Optional[date] = None
    minimum_payment_cents: Optional[int] = None
    open_date: Optional[date] = None
    open_date_source: Optional[str] = None


class ManualLimitRequest(BaseModel):
    """Request body for PUT /v1/cards/{card_id}/manual-limit"""

    manual_limit_cents: int = Field(..., gt=0, description="User-supplied credit limit in cents")


class SyncResponse(BaseModel):
    """Response for POST /v1/cards/{card_id}/sync"""

    card_id: str
    transactions_received: int
    cycles: List[BillingCycleSchema]
