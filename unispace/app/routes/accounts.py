"""API routes for registering accounts and managing wallet funds."""
from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, status

from ..accounts import create_account
from ..schemas.accounts import (
    CreateAccountRequest,
    TopUpRequest,
    TransactionListResponse,
    TransactionResponse,
)
from ..schemas.entitlements import AccountSummary
from ..services.community import get_community_services

router = APIRouter(prefix="/api/accounts", tags=["accounts"])


@router.post("", response_model=AccountSummary, status_code=status.HTTP_201_CREATED)
def register_account(payload: CreateAccountRequest) -> AccountSummary:
    services = get_community_services()
    try:
        account = create_account(
            services.store,
            name=payload.name.strip(),
            email=payload.email.strip(),
            role=payload.role,
            now=services.entitlements.now(),
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return AccountSummary.from_account(account)


@router.post("/{account_id}/top-up", response_model=AccountSummary)
def top_up(account_id: str, payload: TopUpRequest) -> AccountSummary:
    services = get_community_services()
    try:
        account = services.wallet.top_up(account_id, payload.amount)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return AccountSummary.from_account(account)


@router.get("/{account_id}/transactions", response_model=TransactionListResponse)
def list_transactions(
    account_id: str,
    limit: int = Query(50, ge=1, le=200),
) -> TransactionListResponse:
    services = get_community_services()
    try:
        transactions = services.wallet.list_transactions(account_id, limit=limit)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return TransactionListResponse(
        items=[TransactionResponse.from_transaction(transaction) for transaction in transactions]
    )
