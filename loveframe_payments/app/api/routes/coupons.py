# loveframe_payments/app/api/routes/coupons.py

from fastapi import APIRouter, Depends
from pydantic import AliasChoices, BaseModel, Field

from ...dependencies import get_coupon_service
from ...models.schemas import CouponValidation
from ...services.coupon_service import CouponService

router = APIRouter()


class CouponBody(BaseModel):
    coupon_code: str = Field(..., min_length=1, validation_alias=AliasChoices("coupon_code", "couponCode"))


@router.post("/coupon/validate", response_model=CouponValidation)
async def validate_coupon(
    body: CouponBody,
    coupon_service: CouponService = Depends(get_coupon_service),
):
    """
    Valida o cupom na AbacatePay. Cupom inválido retorna 200 com `valid=false`;
    falha do gateway cai na tabela local de cupons.
    """
    return await coupon_service.validate_coupon(body.coupon_code)
