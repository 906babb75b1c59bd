# loveframe_payments/app/main.py

from dotenv import load_dotenv; load_dotenv()

from fastapi import FastAPI, Response
from loveframe_payments.app.api.routes import (
    payments_router,
    coupons_router,
    health_router,
)
from loveframe_payments.app.core.config import settings, build_payment_config, validate_payment_config
from loveframe_payments.app.core.error_handlers import add_error_handlers
from loveframe_payments.app.models.schemas import Environment
from loveframe_payments.app.utilities.constants import MAX_INSTALLMENTS
from loveframe_payments.app.utilities.logging_config import logger

VERSION = "0.1.0"


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        version=VERSION,
        description="Camada de pagamentos do LoveFrame: PIX e cartão via AbacatePay, Stripe e Mercado Pago, com failover entre provedores",
        debug=settings.DEBUG,
    )

    # ========== ROTAS PRINCIPAIS ==========
    app.include_router(payments_router, prefix="/payment", tags=["Pagamentos"])
    app.include_router(coupons_router, prefix="/payment", tags=["Cupons"])
    app.include_router(health_router, prefix="/payment", tags=["Health Check"])

    # ========== HANDLERS DE ERRO ==========
    add_error_handlers(app)

    @app.on_event("startup")
    async def startup_event():
        logger.info("🚀 Aplicação iniciando...")
        logger.info(f"✅ API `{app.title}` versão `{app.version}` inicializada!")
        logger.info(f"🔧 Ambiente: {settings.ENVIRONMENT.value} | Debug: {'Ativado' if app.debug else 'Desativado'}")

        payment_config = build_payment_config(settings)
        configured = ", ".join(p.value for p in payment_config.providers) or "nenhum"
        logger.info(f"💳 Provedores configurados: {configured}")
        for warning in validate_payment_config(payment_config):
            logger.warning(f"⚠️ Configuração de pagamento: {warning}")

    @app.on_event("shutdown")
    async def shutdown_event():
        logger.info("🛑 Aplicação sendo encerrada...")

    @app.get("/", tags=["Health Check"])
    @app.head("/", tags=["Health Check"])
    async def health_check(response: Response):
        response.headers["Cache-Control"] = "no-cache"
        return {
            "status": "OK",
            "message": "LoveFrame Payments API operacional",
            "version": VERSION,
            "gateways": {
                "pix": ["abacatepay", "mercadopago"],
                "credit_card": ["stripe", "mercadopago"],
                "debit_card": ["stripe", "mercadopago"],
            },
            "defaults": {
                "pix": settings.DEFAULT_PIX_PROVIDER.value,
                "card": settings.DEFAULT_CARD_PROVIDER.value,
            },
            "installments": {"max_installments": MAX_INSTALLMENTS},
            "endpoints": {
                "pix_create": "/payment/pix/create",
                "pix_status": "/payment/pix/status",
                "pix_simulate": "/payment/pix/simulate",
                "card_process": "/payment/card/process",
                "card_validate": "/payment/card/validate",
                "card_installments": "/payment/card/installments",
                "coupon_validate": "/payment/coupon/validate",
                "providers_health": "/payment/health",
            },
            "environment": {
                "name": settings.ENVIRONMENT.value,
                "simulation_enabled": settings.ENVIRONMENT != Environment.production,
                "debug": settings.DEBUG,
            },
        }

    return app

app = create_app()
__all__ = ["app", "create_app"]
