"""API routes exposing access checks, the quota gate and wallet settlement."""
from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from ..entitlements import ActionType
from ..feature_gates import EntitlementContext, FeatureGateError
from ..schemas.entitlements import (
    AccountSummary,
    EntitlementSummaryResponse,
    PayFineRequest,
    QuotaCheckResponse,
    QuotaUsage,
    ReportUserRequest,
    SubscribeRequest,
)
from ..services.community import get_community_services

router = APIRouter(prefix="/api/entitlements", tags=["entitlements"])


def _not_found(exc: LookupError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@router.get("/{account_id}", response_model=EntitlementSummaryResponse)
def get_entitlements(account_id: str) -> EntitlementSummaryResponse:
    services = get_community_services()
    try:
        account = services.store.require(account_id)
    except LookupError as exc:
        raise _not_found(exc) from exc
    context = EntitlementContext.build(account, services.entitlements)
    return EntitlementSummaryResponse.from_context(context)


@router.post("/{account_id}/check/{action}", response_model=QuotaCheckResponse)
def check_action(account_id: str, action: ActionType) -> QuotaCheckResponse:
    services = get_community_services()
    try:
        decision = services.gate.check_limit(account_id, action)
    except LookupError as exc:
        raise _not_found(exc) from exc
    if not decision.allowed:
        raise decision.to_error().to_http_exception()
    return QuotaCheckResponse(
        decision=QuotaUsage.from_decision(decision),
        account=AccountSummary.from_account(decision.account or services.store.require(account_id)),
    )


@router.post("/{account_id}/subscribe", response_model=AccountSummary)
def subscribe(account_id: str, payload: SubscribeRequest) -> AccountSummary:
    services = get_community_services()
    try:
        account = services.wallet.subscribe(account_id, payload.plan, payload.price)
    except LookupError as exc:
        raise _not_found(exc) from exc
    except FeatureGateError as exc:
        raise exc.to_http_exception() from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return AccountSummary.from_account(account)


@router.post("/{account_id}/pay-fine", response_model=AccountSummary)
def pay_fine(account_id: str, payload: PayFineRequest) -> AccountSummary:
    services = get_community_services()
    try:
        account = services.wallet.pay_ban_fine(account_id, payload.fine_amount)
    except LookupError as exc:
        raise _not_found(exc) from exc
    except FeatureGateError as exc:
        raise exc.to_http_exception() from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return AccountSummary.from_account(account)


@router.post("/{account_id}/report", response_model=AccountSummary)
def report_user(account_id: str, payload: ReportUserRequest) -> AccountSummary:
    services = get_community_services()
    try:
        account = services.moderation.report_user(payload.reporter_id, account_id, payload.reason)
    except LookupError as exc:
        raise _not_found(exc) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return AccountSummary.from_account(account)
