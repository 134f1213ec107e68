"""Card endpoints - summary with limit/utilization and manual limit overrides"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from cardcycle.api.v1.schemas import CardResponse, ManualLimitRequest
from cardcycle.domain.credit_limit import effective_limit, utilization
from cardcycle.infrastructure.database.models import CreditCard
from cardcycle.infrastructure.database.repositories import CardRepository, card_to_domain
from cardcycle.infrastructure.database.session import get_db

router = APIRouter()


def _card_response(row: CreditCard) -> CardResponse:
    card = card_to_domain(row)
    return CardResponse(
        card_id=card.card_id,
        name=card.name,
        balance_current_cents=card.balance_current_cents,
        available_credit_cents=card.available_credit_cents,
        reported_limit_cents=card.reported_limit_cents,
        manual_limit_cents=card.manual_limit_cents,
        effective_limit_cents=effective_limit(card),
        utilization_percent=utilization(card),
        last_statement_balance_cents=card.last_statement_balance_cents,
        last_statement_date=card.last_statement_date,
        next_payment_due_date=card.next_payment_due_date,
        minimum_payment_cents=card.minimum_payment_cents,
        open_date=card.open_date,
        open_date_source=card.open_date_source,
    )


def _get_card_or_404(repo: CardRepository, card_id: str) -> CreditCard:
    card = repo.get(card_id)
    if card is None:
        raise HTTPException(status_code=404, detail="Card not found")
    return card


@router.get("/cards/{card_id}", response_model=CardResponse)
def get_card(card_id: str, db: Session = Depends(get_db)):
    """Card balances, effective credit limit and utilization"""
    repo = CardRepository(db)
    return _card_response(_get_card_or_404(repo, card_id))


@router.put("/cards/{card_id}/manual-limit", response_model=CardResponse)
def set_manual_limit(card_id: str, request_body: ManualLimitRequest, db: Session = Depends(get_db)):
    """Override the reported/inferred limit with a user-supplied one"""
    repo = CardRepository(db)
    card = _get_card_or_404(repo, card_id)
    repo.set_manual_limit(card, request_body.manual_limit_cents)
    db.commit()
    return _card_response(card)


@router.delete("/cards/{card_id}/manual-limit", response_model=CardResponse)
def clear_manual_limit(card_id: str, db: Session = Depends(get_db)):
    """Revert to the reported or inferred limit"""
    repo = CardRepository(db)
    card = _get_card_or_404(repo, card_id)
    repo.set_manual_limit(card, None)
    db.commit()
    return _card_response(card)
