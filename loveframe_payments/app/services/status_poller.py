# loveframe_payments/app/services/status_poller.py

import asyncio
import inspect
from contextlib import suppress
from typing import Any, Callable, Optional

from ..core.exceptions import PaymentError, PollingTimeoutError
from ..models.schemas import PaymentMethod, PaymentStatus, PaymentStatusResponse
from ..utilities.constants import POLL_INTERVAL_SECONDS, POLL_MAX_DURATION_SECONDS
from ..utilities.logging_config import logger

Callback = Callable[..., Any]


class PaymentStatusPoller:
    """
    Consulta periodicamente o status de um pagamento até status final ou até
    estourar `max_duration`.

    Callbacks podem ser funções comuns ou corrotinas:
    - `on_status_change(status)`: só quando o status muda entre duas consultas.
    - `on_complete(response)`: status final atingido.
    - `on_error(exc)`: erro numa consulta (o polling continua) ou timeout.

    O loop roda numa `asyncio.Task`; após `await stop()` nenhuma nova consulta
    é feita.
    """

    def __init__(
        self,
        service,
        payment_id: str,
        method: Optional[PaymentMethod] = PaymentMethod.pix,
        interval: float = POLL_INTERVAL_SECONDS,
        max_duration: float = POLL_MAX_DURATION_SECONDS,
        on_status_change: Optional[Callback] = None,
        on_complete: Optional[Callback] = None,
        on_error: Optional[Callback] = None,
    ):
        if interval <= 0 or max_duration <= 0:
            raise ValueError("interval e max_duration devem ser positivos")

        self.service = service
        self.payment_id = payment_id
        self.method = method
        self.interval = interval
        self.max_duration = max_duration
        self.on_status_change = on_status_change
        self.on_complete = on_complete
        self.on_error = on_error

        self.status: Optional[PaymentStatus] = None
        self.payment_data: Optional[PaymentStatusResponse] = None
        self.error: Optional[Exception] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @staticmethod
    async def _emit(callback: Optional[Callback], *args) -> None:
        if callback is None:
            return
        result = callback(*args)
        if inspect.isawaitable(result):
            await result

    async def _poll_once(self) -> Optional[PaymentStatusResponse]:
        try:
            data = await self.service.check_payment_status(self.payment_id, self.method)
        except PaymentError as e:
            logger.warning(f"⚠️ [poller] erro ao consultar {self.payment_id}: {e}")
            self.error = e
            await self._emit(self.on_error, e)
            return None

        self.payment_data = data
        self.error = None
        if data.status != self.status:
            logger.info(f"🔍 [poller] {self.payment_id}: {self.status} → {data.status.value}")
            self.status = data.status
            await self._emit(self.on_status_change, data.status)
        return data

    async def run(self) -> PaymentStatusResponse:
        """
        Executa o polling no task atual. Retorna a resposta com status final
        ou levanta `PollingTimeoutError`.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.max_duration
        logger.info(f"🔄 [poller] iniciar: {self.payment_id} a cada {self.interval}s (máx {self.max_duration}s)")

        while True:
            data = await self._poll_once()
            if data is not None and data.status.is_terminal:
                logger.info(f"✅ [poller] {self.payment_id} finalizado: {data.status.value}")
                await self._emit(self.on_complete, data)
                return data

            remaining = deadline - loop.time()
            if remaining <= 0:
                error = PollingTimeoutError(
                    f"Polling de {self.payment_id} excedeu {self.max_duration}s sem status final"
                )
                logger.error(f"❌ [poller] {error}")
                self.error = error
                await self._emit(self.on_error, error)
                raise error

            await asyncio.sleep(min(self.interval, remaining))

    async def _run_in_background(self) -> Optional[PaymentStatusResponse]:
        try:
            return await self.run()
        except PollingTimeoutError:
            # já reportado via on_error
            return None
        except Exception as e:
            logger.exception(f"❌ [poller] falha inesperada em {self.payment_id}: {e}")
            self.error = e
            await self._emit(self.on_error, e)
            return None

    def start(self) -> asyncio.Task:
        if self.is_running:
            return self._task
        self._task = asyncio.create_task(self._run_in_background())
        return self._task

    async def stop(self) -> None:
        task = self._task
        if task is None or task.done():
            return
        task.cancel()
        logger.info(f"🛑 [poller] interrompido: {self.payment_id}")
        # Chamado de dentro de um callback: o cancelamento ocorre no próximo await do loop
        if task is asyncio.current_task():
            return
        with suppress(asyncio.CancelledError):
            await task
