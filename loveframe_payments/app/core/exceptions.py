# loveframe_payments/app/core/exceptions.py

from typing import Dict, Optional


class PaymentError(Exception):
    """Erro base da camada de pagamentos."""

    def __init__(self, message: str, provider: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.provider = provider

    def __str__(self) -> str:
        if self.provider:
            return f"[{self.provider}] {self.message}"
        return self.message


class ConfigurationError(PaymentError):
    """Provedor solicitado sem credenciais configuradas."""


class CapabilityError(PaymentError):
    """Provedor resolvido não suporta o método ou operação pedida."""


class ProviderTimeoutError(PaymentError, TimeoutError):
    """Chamada ao gateway não terminou dentro do limite. Pode ser repetida pelo chamador."""

    def __init__(self, message: str, provider: Optional[str] = None, timeout: Optional[float] = None):
        super().__init__(message, provider)
        self.timeout = timeout


class UpstreamError(PaymentError):
    """
    Gateway respondeu com status HTTP de erro. Carrega o status e o corpo bruto
    para diagnóstico. Não implica que o pagamento falhou no gateway.
    """

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ):
        super().__init__(message, provider)
        self.status_code = status_code
        self.body = body


class ProviderConnectionError(UpstreamError):
    """Falha de transporte (DNS, conexão recusada...) sem resposta HTTP."""


class EnvironmentViolation(PaymentError):
    """Simulação de pagamento invocada em produção."""


class AllProvidersFailedError(PaymentError):
    """Todos os provedores tentados falharam; `errors` guarda a falha de cada um."""

    def __init__(self, message: str, errors: Optional[Dict[str, Exception]] = None):
        super().__init__(message)
        self.errors = errors or {}


class PaymentNotFoundError(AllProvidersFailedError):
    """Pagamento não encontrado em nenhum provedor configurado."""


class PollingTimeoutError(PaymentError, TimeoutError):
    """Polling de status excedeu a duração máxima sem status final."""
