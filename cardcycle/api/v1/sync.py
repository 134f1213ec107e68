"""POST /v1/cards/{card_id}/sync - pull aggregator data and regenerate billing cycles"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from cardcycle.api.v1.schemas import SyncResponse
from cardcycle.api.dependencies import get_aggregator_client, get_request_id, resolve_as_of, to_cycle_schemas
from cardcycle.infrastructure.clients.aggregator import AggregatorClient
from cardcycle.infrastructure.database.session import get_db
from cardcycle.infrastructure.observability.metrics import aggregator_fetch_failures_counter
from cardcycle.services.sync import CardSyncService
from cardcycle.domain.exceptions import (
    AggregatorAPIError,
    CardNotFoundError,
    CycleRegenerationInProgressError,
    PersistenceError,
)

router = APIRouter()


@router.post("/cards/{card_id}/sync", response_model=SyncResponse)
async def sync_card(
    card_id: str,
    request: Request,
    as_of: Optional[date] = Query(None, description="Reference date (defaults to today)"),
    db: Session = Depends(get_db),
    aggregator: AggregatorClient = Depends(get_aggregator_client),
):
    """
    Refresh a card from the aggregator.

    Flow:
    1. Fetch balances/statement metadata and the transaction feed
    2. Upsert the card and replace the feed's date range of transactions
    3. Regenerate billing cycles
    """
    request_id = get_request_id(request)

    try:
        # 1. Fetch from aggregator (failures propagate; retries belong to the caller)
        snapshot = await aggregator.get_account(card_id)
        transactions = await aggregator.get_transactions(card_id)

        # 2-3. Storage and regeneration are blocking; keep them off the event loop
        service = CardSyncService(db)
        rows = await run_in_threadpool(
            service.sync, snapshot, transactions, resolve_as_of(as_of), request_id
        )

        return SyncResponse(
            card_id=card_id,
            transactions_received=len(transactions),
            cycles=to_cycle_schemas(rows),
        )

    except AggregatorAPIError as e:
        aggregator_fetch_failures_counter.inc()
        logging.error(f"Aggregator API error: {e}", extra={"request_id": request_id, "card_id": card_id})
        raise HTTPException(status_code=503, detail="Aggregator service unavailable")

    except CardNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    except CycleRegenerationInProgressError as e:
        logging.warning(f"Regeneration busy: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=409, detail="Regeneration already in progress, retry later")

    except PersistenceError as e:
        logging.error(f"Persistence error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Storage unavailable")
