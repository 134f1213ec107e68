"""Billing cycle endpoints - regeneration and read access"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from cardcycle.api.v1.schemas import (
    BatchRegenerateItem,
    BatchRegenerateRequest,
    BatchRegenerateResponse,
    BillingCyclesResponse,
)
from cardcycle.api.dependencies import get_request_id, resolve_as_of, to_cycle_schemas
from cardcycle.infrastructure.database.session import get_db
from cardcycle.services.regeneration import BillingCycleService
from cardcycle.domain.exceptions import (
    CardNotFoundError,
    CycleRegenerationInProgressError,
    PersistenceError,
)

router = APIRouter()


@router.post("/cards/{card_id}/billing-cycles/regenerate", response_model=BillingCyclesResponse)
def regenerate_billing_cycles(
    card_id: str,
    request: Request,
    as_of: Optional[date] = Query(None, description="Reference date (defaults to today)"),
    db: Session = Depends(get_db),
):
    """
    Delete and rebuild every billing cycle for a card.

    Flow:
    1. Lock the card
    2. Correct an implausible open date
    3. Generate windows, aggregate spend, reconcile the last statement
    4. Replace the stored cycle set in one transaction
    """
    request_id = get_request_id(request)
    service = BillingCycleService(db)

    try:
        rows = service.regenerate(card_id, resolve_as_of(as_of), request_id=request_id)
        return BillingCyclesResponse(card_id=card_id, cycles=to_cycle_schemas(rows))

    except CardNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    except CycleRegenerationInProgressError as e:
        logging.warning(f"Regeneration busy: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=409, detail="Regeneration already in progress, retry later")

    except PersistenceError as e:
        logging.error(f"Persistence error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Storage unavailable")


@router.get("/cards/{card_id}/billing-cycles", response_model=BillingCyclesResponse)
def get_billing_cycles(card_id: str, db: Session = Depends(get_db)):
    """
    Retrieve persisted billing cycles for a card.

    Returns:
        Cycles ordered by end date, newest first
    """
    service = BillingCycleService(db)
    try:
        rows = service.list_cycles(card_id)
    except CardNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return BillingCyclesResponse(card_id=card_id, cycles=to_cycle_schemas(rows))


@router.post("/billing-cycles/regenerate", response_model=BatchRegenerateResponse)
def regenerate_many(
    request_body: BatchRegenerateRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    """
    Regenerate several cards; each card succeeds or fails on its own.
    """
    request_id = get_request_id(request)
    as_of = resolve_as_of(request_body.as_of)

    outcomes = BillingCycleService(db).regenerate_many(request_body.card_ids, as_of, request_id=request_id)

    return BatchRegenerateResponse(
        as_of=as_of,
        results=[
            BatchRegenerateItem(
                card_id=outcome.card_id,
                status="ok" if outcome.ok else "error",
                cycles_created=len(outcome.cycles),
                error=outcome.error,
            )
            for outcome in outcomes
        ],
    )
