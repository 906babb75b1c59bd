# loveframe_payments/app/api/routes/health.py

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends

from ...dependencies import get_payment_factory, get_payment_service
from ...services.payment_factory import PaymentFactory
from ...services.payment_service import PaymentService

router = APIRouter()


@router.get("/health")
async def providers_health(
    service: PaymentService = Depends(get_payment_service),
    factory: PaymentFactory = Depends(get_payment_factory),
) -> Dict[str, Any]:
    """
    Saúde dos provedores: `healthy` quando mais da metade responde,
    senão `degraded`. Inclui o provedor em uso para cada método.
    """
    providers_health = await service.check_providers_health()
    supported_methods = factory.get_supported_methods()

    working_providers = {}
    for method in supported_methods:
        provider = await service.get_working_provider(method)
        working_providers[method.value] = provider.provider_type.value if provider else None

    total = len(providers_health)
    healthy = sum(1 for ok in providers_health.values() if ok)
    overall = (healthy / total) * 100 if total else 0.0

    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "overall_health": f"{overall:.1f}%",
        "status": "healthy" if overall > 50 else "degraded",
        "providers": {provider_type.value: ok for provider_type, ok in providers_health.items()},
        "supported_methods": [m.value for m in supported_methods],
        "working_providers": working_providers,
        "details": {
            "total_providers": total,
            "healthy_providers": healthy,
            "degraded_providers": total - healthy,
        },
    }
