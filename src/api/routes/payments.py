"""Payment API Routes

Plan purchases, gateway confirmations and status polling.
"""

import asyncio
from typing import Optional
from fastapi import APIRouter, Depends, Query, Request, status
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from libs.result import Error
from src.adapter.repositories.payment_repository import SqlAlchemyPaymentRepository
from src.adapter.repositories.subscription_record_repository import SqlAlchemySubscriptionRecordRepository
from src.adapter.services.payment_status_reader import SqlAlchemyPaymentStatusReader
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.api.context import cancel_on_disconnect, ensure_self_or_admin, get_request_context
from src.api.error import ClientError
from src.api.schemas.entitlement_request import ConfirmPaymentRequestSchema, CreatePaymentRequestSchema
from src.app.services.access_cache import AccessCache
from src.app.use_cases.entitlement.confirm_payment import ConfirmPayment
from src.app.use_cases.entitlement.create_payment import CreatePayment
from src.app.use_cases.entitlement.dtos import (
    ConfirmPaymentCommandDTO,
    ConfirmPaymentResponseDTO,
    CreatePaymentCommandDTO,
    PaymentDTO,
    PaymentHistoryDTO,
    PollPaymentCommandDTO,
    PollResultDTO,
    RequestContext,
)
from src.app.use_cases.entitlement.history import ListPaymentHistory
from src.app.use_cases.entitlement.poll_payment import PollPaymentStatus
from src.depends import get_access_cache, get_plan_catalog, get_session, get_session_factory
from src.domain.payment import PaymentMethod
from src.domain.plan import PlanCatalog

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post(
    "",
    response_model=PaymentDTO,
    status_code=status.HTTP_201_CREATED,
)
async def create_payment(
    request: CreatePaymentRequestSchema,
    context: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_session),
    access_cache: AccessCache = Depends(get_access_cache),
    plan_catalog: PlanCatalog = Depends(get_plan_catalog),
):
    """
    Start a plan purchase for the calling account.

    The price comes from the plan catalog. With the simulation gateway
    the payment is confirmed immediately and the response is `completed`.

    **Returns:**
    - 201: Payment created (pending, or completed for simulation)
    """
    uow = SqlAlchemyUnitOfWork(session)
    payment_repo = SqlAlchemyPaymentRepository(session)
    confirm = ConfirmPayment(uow, payment_repo, SqlAlchemySubscriptionRecordRepository(session), access_cache)

    use_case = CreatePayment(
        uow,
        payment_repo,
        plan_catalog,
        confirm_payment=confirm,
        default_method=PaymentMethod(ApplicationConfig.PAYMENT_GATEWAY),
    )
    result = await use_case.execute(
        CreatePaymentCommandDTO(
            user_id=context.user_id,
            plan_type=request.plan_type,
            payment_method=request.payment_method,
        )
    )

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.get(
    "",
    response_model=PaymentHistoryDTO,
    status_code=status.HTTP_200_OK,
)
async def list_payments(
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    context: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_session),
):
    """Payment history of the calling account, newest first."""
    result = await ListPaymentHistory(SqlAlchemyPaymentRepository(session)).execute(
        context.user_id, limit=limit, offset=offset
    )

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.get(
    "/{payment_id}",
    response_model=PaymentDTO,
    status_code=status.HTTP_200_OK,
)
async def get_payment(
    payment_id: str,
    context: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_session),
):
    """Payment details (owner or admin)."""
    payment = await SqlAlchemyPaymentRepository(session).get_by_id(payment_id)
    if not payment:
        raise ClientError(Error(code="PAYMENT_NOT_FOUND", message=f"Payment {payment_id} not found"))

    ensure_self_or_admin(context, payment.user_id)
    return PaymentDTO.from_entity(payment)


@router.post(
    "/{payment_id}/confirm",
    response_model=ConfirmPaymentResponseDTO,
    status_code=status.HTTP_200_OK,
    responses={
        409: {
            "description": "Payment already resolved with a different status",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "PAYMENT_ALREADY_RESOLVED",
                            "message": "Payment is already failed",
                            "details": None
                        }
                    }
                }
            }
        }
    }
)
async def confirm_payment(
    payment_id: str,
    request: ConfirmPaymentRequestSchema,
    session: AsyncSession = Depends(get_session),
    access_cache: AccessCache = Depends(get_access_cache),
):
    """
    Gateway callback with the final verdict of a payment.

    The gateway signature is verified upstream. Safe to call repeatedly:
    only the first `completed` verdict extends the subscription.

    **Returns:**
    - 200: Verdict applied (or already applied, `already_processed=true`)
    - 400: Amount mismatch
    - 404: Unknown payment
    - 409: Payment already resolved with a different status
    """
    use_case = ConfirmPayment(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyPaymentRepository(session),
        SqlAlchemySubscriptionRecordRepository(session),
        access_cache,
    )
    result = await use_case.execute(
        ConfirmPaymentCommandDTO(
            payment_id=payment_id,
            transaction_id=request.transaction_id,
            status=request.status,
            amount=request.amount,
        )
    )

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.get(
    "/{payment_id}/poll",
    response_model=PollResultDTO,
    status_code=status.HTTP_200_OK,
)
async def poll_payment(
    payment_id: str,
    http_request: Request,
    interval: Optional[float] = Query(default=None, gt=0, le=30),
    timeout: Optional[float] = Query(default=None, gt=0, le=300),
    context: RequestContext = Depends(get_request_context),
    session_factory=Depends(get_session_factory),
):
    """
    Wait until a payment is resolved (owner or admin).

    `outcome=timeout` means "still processing", not failure. Polling
    stops with `outcome=cancelled` when the client disconnects.
    """
    async with session_factory() as session:
        payment = await SqlAlchemyPaymentRepository(session).get_by_id(payment_id)
        owner_id = payment.user_id if payment else None

    if owner_id is None:
        raise ClientError(Error(code="PAYMENT_NOT_FOUND", message=f"Payment {payment_id} not found"))
    ensure_self_or_admin(context, owner_id)

    command = PollPaymentCommandDTO(
        payment_id=payment_id,
        interval_seconds=interval or ApplicationConfig.PAYMENT_POLL_INTERVAL_SECONDS,
        timeout_seconds=timeout or ApplicationConfig.PAYMENT_POLL_TIMEOUT_SECONDS,
    )
    cancel_event = asyncio.Event()
    watcher = asyncio.create_task(cancel_on_disconnect(http_request, cancel_event))
    try:
        result = await PollPaymentStatus(SqlAlchemyPaymentStatusReader(session_factory)).execute(
            command, cancel_event=cancel_event
        )
    finally:
        watcher.cancel()

    if result.is_err():
        raise ClientError(result.error)

    return result.value
