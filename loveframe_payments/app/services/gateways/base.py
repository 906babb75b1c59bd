# loveframe_payments/app/services/gateways/base.py

import asyncio
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Mapping, Optional

import httpx
from pydantic import TypeAdapter, ValidationError

from ...core.exceptions import (
    ConfigurationError,
    ProviderConnectionError,
    ProviderTimeoutError,
    UpstreamError,
)
from ...interfaces import PaymentProvider
from ...models.schemas import PaymentStatus, ProviderConfig
from ...utilities.logging_config import logger

_datetime_adapter = TypeAdapter(datetime)


def map_gateway_status(raw_status: Any, table: Mapping[str, PaymentStatus], provider: str) -> PaymentStatus:
    """
    Traduz o status do gateway para o enum interno usando a tabela explícita.
    Status desconhecido vira `pending`, nunca um status final.
    """
    key = str(raw_status or "").strip().lower()
    mapped = table.get(key)
    if mapped is None:
        logger.warning(f"⚠️ [{provider}] status desconhecido '{raw_status}', tratando como pending")
        return PaymentStatus.pending
    return mapped


def parse_datetime(value: Any) -> Optional[datetime]:
    """Converte ISO-8601 ou epoch (segundos) em datetime; valores inválidos viram None."""
    if value in (None, ""):
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    try:
        return _datetime_adapter.validate_python(value)
    except ValidationError:
        logger.debug(f"🔍 data inválida ignorada: {value!r}")
        return None


class BaseGatewayClient(PaymentProvider):
    """
    Cliente HTTP base dos gateways.

    Cada chamada abre um `httpx.AsyncClient` com o transporte injetado (útil em
    testes) e é limitada por `asyncio.wait_for` com o timeout do provedor. Timeout
    vira `ProviderTimeoutError`; HTTP >= 400 vira `UpstreamError` com status e corpo.
    """

    default_base_url: str = ""

    def __init__(self, config: ProviderConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        if not config.api_key:
            raise ConfigurationError(f"API key do {self.name} não configurada", provider=self.provider_type.value)

        self.config = config
        self.base_url = (config.base_url or self.default_base_url).rstrip("/")
        self.timeout = float(config.timeout)
        self._transport = transport

    # ========== HTTP ==========

    def _headers(self, method: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.config.api_key}"}

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self._transport)

    async def _send(
        self,
        method: str,
        endpoint: str,
        *,
        json: Any = None,
        data: Any = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        provider = self.provider_type.value
        async with self._client() as client:
            try:
                return await asyncio.wait_for(
                    client.request(
                        method,
                        endpoint,
                        json=json,
                        data=data,
                        params=params,
                        headers=self._headers(method),
                    ),
                    timeout=self.timeout,
                )
            except (asyncio.TimeoutError, httpx.TimeoutException) as e:
                logger.error(f"⏱️ [{provider}] timeout de {self.timeout}s em {method} {endpoint}")
                raise ProviderTimeoutError(
                    f"Timeout após {self.timeout}s em {method} {endpoint}",
                    provider=provider,
                    timeout=self.timeout,
                ) from e
            except httpx.RequestError as e:
                logger.error(f"❌ [{provider}] erro de conexão em {method} {endpoint}: {e}")
                raise ProviderConnectionError(
                    f"Erro de conexão em {method} {endpoint}: {e}",
                    provider=provider,
                ) from e

    async def _request(
        self,
        method: str,
        endpoint: str,
        *,
        json: Any = None,
        data: Any = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        provider = self.provider_type.value
        logger.info(f"📡 [{provider}] {method} {endpoint}")

        response = await self._send(method, endpoint, json=json, data=data, params=params)

        if response.is_error:
            logger.error(f"❌ [{provider}] HTTP {response.status_code} em {method} {endpoint}: {response.text}")
            raise UpstreamError(
                f"{self.name} API error: {response.status_code}",
                provider=provider,
                status_code=response.status_code,
                body=response.text,
            )

        if not response.content:
            return {}

        try:
            return response.json()
        except ValueError:
            raise UpstreamError(
                f"{self.name} retornou resposta não-JSON",
                provider=provider,
                status_code=response.status_code,
                body=response.text,
            )

    async def _probe(self, endpoint: str, accept: Callable[[httpx.Response], bool]) -> bool:
        """Sonda leve de disponibilidade. Nunca levanta exceção."""
        try:
            response = await self._send("GET", endpoint)
        except Exception as e:
            logger.warning(f"⚠️ [{self.provider_type.value}] indisponível: {e}")
            return False
        return accept(response)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} base_url={self.base_url!r}>"
