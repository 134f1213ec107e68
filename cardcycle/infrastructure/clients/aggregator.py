"""Bank-data aggregator HTTP client for card balances, statement metadata and transactions"""

import math
import httpx
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, List, Optional
from cardcycle.domain.models import AccountSnapshot, Transaction
from cardcycle.domain.exceptions import AggregatorAPIError
from cardcycle.config import settings


def to_cents(value: Any) -> Optional[int]:
    """Convert a dollar amount to integer cents; missing or non-finite values become None"""
    if value is None:
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    cents = (Decimal(str(value)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(cents)


def parse_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    return date.fromisoformat(value[:10])


class AggregatorClient:
    """Client for the external aggregator API (no retries; the sync layer owns retry policy)"""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or settings.aggregator_api_base
        self.timeout = settings.http_timeout_seconds if timeout is None else timeout
        self.transport = transport

    async def _get_json(self, path: str, params: dict | None = None) -> dict:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.get(f"{self.base_url}{path}", params=params)
                response.raise_for_status()
                return response.json()
            except httpx.TimeoutException as e:
                raise AggregatorAPIError(f"Aggregator API timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                raise AggregatorAPIError(f"Aggregator API error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                raise AggregatorAPIError(f"Aggregator API unreachable: {e}") from e
            except ValueError as e:
                raise AggregatorAPIError(f"Aggregator returned invalid JSON: {e}") from e

    async def get_account(self, card_id: str) -> AccountSnapshot:
        """
        Fetch balances and statement metadata for one card.

        Raises:
            AggregatorAPIError: On timeout, HTTP errors, or invalid response
        """
        data = await self._get_json(f"/aggregator/accounts/{card_id}")
        try:
            balances = data["balances"]
            liability = data.get("liability") or {}
            return AccountSnapshot(
                card_id=data["account_id"],
                name=data.get("name") or "",
                balance_current_cents=to_cents(balances.get("current")),
                available_credit_cents=to_cents(balances.get("available")),
                reported_limit_cents=to_cents(balances.get("limit")),
                last_statement_balance_cents=to_cents(liability.get("last_statement_balance")),
                last_statement_date=parse_date(liability.get("last_statement_issue_date")),
                next_payment_due_date=parse_date(liability.get("next_payment_due_date")),
                minimum_payment_cents=to_cents(liability.get("minimum_payment_amount")),
                open_date=parse_date(liability.get("open_date")),
            )
        except (KeyError, ValueError, TypeError, ArithmeticError) as e:
            raise AggregatorAPIError(f"Invalid account data from aggregator: {e}") from e

    async def get_transactions(self, card_id: str) -> List[Transaction]:
        """
        Fetch the transaction feed for one card.

        Raises:
            AggregatorAPIError: On timeout, HTTP errors, or invalid response
        """
        data = await self._get_json("/aggregator/transactions", params={"account_id": card_id})
        try:
            return [_parse_transaction(txn) for txn in data.get("transactions", [])]
        except (KeyError, ValueError, TypeError, ArithmeticError) as e:
            raise AggregatorAPIError(f"Invalid transaction data from aggregator: {e}") from e


def _parse_transaction(txn: dict) -> Transaction:
    amount_cents = to_cents(txn["amount"])
    txn_date = parse_date(txn["date"])
    if amount_cents is None or txn_date is None:
        raise ValueError(f"transaction {txn.get('transaction_id')} missing amount or date")
    return Transaction(
        transaction_id=txn["transaction_id"],
        date=txn_date,
        amount_cents=amount_cents,
        description=txn.get("name") or "",
        authorized_date=parse_date(txn.get("authorized_date")),
    )
