# loveframe_payments/app/api/routes/payments.py

from decimal import Decimal
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import AliasChoices, BaseModel, Field

from ...dependencies import get_payment_service
from ...models.schemas import (
    CardPaymentRequest,
    CardPaymentResponse,
    InstallmentOption,
    PaymentMethod,
    PaymentSimulationRequest,
    PaymentSimulationResponse,
    PaymentStatusResponse,
    PixPaymentRequest,
    PixPaymentResponse,
    SimulationAction,
)
from ...services.payment_service import PaymentService
from ...utilities.helpers import mask_card_number
from ...utilities.logging_config import logger

router = APIRouter()


class SimulatePaymentBody(BaseModel):
    id: Annotated[str, Field(min_length=1)]
    action: SimulationAction = SimulationAction.approve
    method: Optional[PaymentMethod] = None


class CardValidationBody(BaseModel):
    card_number: str = Field(..., min_length=1, validation_alias=AliasChoices("card_number", "cardNumber"))


class CardValidationResult(BaseModel):
    valid: bool
    card_number: str


class InstallmentsResult(BaseModel):
    amount: Decimal
    options: List[InstallmentOption]


# ========== PIX ==========

@router.post("/pix/create", response_model=PixPaymentResponse)
async def create_pix_payment(
    payment_data: PixPaymentRequest,
    service: PaymentService = Depends(get_payment_service),
):
    logger.info(f"📥 [create_pix_payment] valor={payment_data.amount} descrição={payment_data.description!r}")
    pix_payment = await service.create_pix_payment(payment_data)
    logger.info(f"📋 [create_pix_payment] id para acompanhamento: {pix_payment.id}")
    return pix_payment


@router.get("/pix/status", response_model=PaymentStatusResponse)
async def get_payment_status(
    payment_id: str = Query(..., alias="id", min_length=1),
    method: Optional[PaymentMethod] = Query(None),
    service: PaymentService = Depends(get_payment_service),
):
    return await service.check_payment_status(payment_id, method)


@router.post("/pix/simulate", response_model=PaymentSimulationResponse)
async def simulate_payment(
    body: SimulatePaymentBody,
    service: PaymentService = Depends(get_payment_service),
):
    # Simulação de cartão usa o caminho de crédito
    method = PaymentMethod.credit_card if body.method == PaymentMethod.debit_card else body.method
    request = PaymentSimulationRequest(payment_id=body.id, action=body.action)

    logger.info(f"🧪 [simulate_payment] {body.id} action={body.action.value} method={method}")
    return await service.simulate_payment(request, method)


# ========== CARTÃO ==========

@router.post("/card/process", response_model=CardPaymentResponse)
async def process_card_payment(
    payment_data: CardPaymentRequest,
    service: PaymentService = Depends(get_payment_service),
):
    logger.info(
        f"📥 [process_card_payment] valor={payment_data.amount} parcelas={payment_data.installments or 1} "
        f"cartão={mask_card_number(payment_data.card.number.get_secret_value())}"
    )
    return await service.process_card_payment(payment_data)


@router.post("/card/validate", response_model=CardValidationResult)
async def validate_card(
    body: CardValidationBody,
    service: PaymentService = Depends(get_payment_service),
):
    return CardValidationResult(
        valid=service.validate_card(body.card_number),
        card_number=mask_card_number(body.card_number),
    )


@router.get("/card/installments", response_model=InstallmentsResult)
async def get_installment_options(
    amount: Decimal = Query(..., gt=0),
    service: PaymentService = Depends(get_payment_service),
):
    return InstallmentsResult(amount=amount, options=service.get_installment_options(amount))
