import logging
import math
import threading
import time
from collections.abc import Callable

from requests import PreparedRequest, Response, Session
from requests.adapters import BaseAdapter, HTTPAdapter

from ..errors import RateLimitCanceled

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Token bucket que espaça as requisições de um canal.

    Cada chamada a wait() consome um token. Os tokens são repostos a cada
    `interval` segundos até o limite de `burst`. Reservas são distribuídas na
    ordem em que os chamadores obtêm o lock, e a espera em si acontece fora do
    lock, então o limiter pode ser compartilhado entre threads.

    Args:
        interval (float): Tempo mínimo entre duas admissões, em segundos.
        burst (int): Quantidade de admissões imediatas permitidas com o bucket cheio.
        clock (Callable[[], float]): Relógio monotônico. Padrão é time.monotonic.
    """

    def __init__(
        self,
        interval: float,
        burst: int = 1,
        clock: Callable[[], float] = time.monotonic,
    ):
        if not math.isfinite(interval) or interval <= 0:
            raise ValueError(f"O intervalo do rate limiter deve ser positivo e finito: {interval}")
        if burst < 1:
            raise ValueError(f"O burst do rate limiter deve ser pelo menos 1: {burst}")

        self.interval = interval
        self.burst = burst
        self._clock = clock
        self._lock = threading.Lock()
        self._tokens = float(burst)
        self._last = clock()
        self._newest: float | None = None

    def _tokens_at(self, now: float) -> float:
        elapsed = max(0.0, now - self._last)
        return min(float(self.burst), self._tokens + elapsed / self.interval)

    def _reserve(self, max_wait: float | None) -> tuple[float, float] | None:
        """
        Reserva um token e devolve (instante atual, instante de admissão).

        Retorna None, sem reservar, se a espera ultrapassar max_wait.
        """
        with self._lock:
            now = self._clock()
            tokens = self._tokens_at(now) - 1.0
            delay = 0.0 if tokens >= 0 else -tokens * self.interval

            if max_wait is not None and delay > max_wait:
                return None

            # Tokens negativos representam admissões já prometidas a outros chamadores
            self._tokens = tokens
            self._last = now
            self._newest = now + delay
            return now, self._newest

    def _release(self, admission: float) -> None:
        """Devolve o token de uma reserva cancelada, se ela ainda for a mais recente."""
        with self._lock:
            if self._newest != admission:
                return
            self._tokens = min(float(self.burst), self._tokens + 1.0)
            self._newest = None

    def wait(
        self,
        cancel: threading.Event | None = None,
        max_wait: float | None = None,
    ) -> float:
        """
        Bloqueia o chamador até o limiter admitir uma requisição.

        Args:
            cancel (threading.Event | None): Sinal de cancelamento. Se for acionado
                antes da admissão, a espera falha. A vaga volta ao limiter se
                nenhuma reserva posterior depender dela.
            max_wait (float | None): Espera máxima aceitável, em segundos. Se a
                admissão exigir mais que isso, falha imediatamente sem reservar.

        Returns:
            float: Instante de admissão, no relógio do limiter.

        Raises:
            RateLimitCanceled: Se a espera foi cancelada ou excederia max_wait.
        """
        if cancel is not None and cancel.is_set():
            raise RateLimitCanceled("cancelado enquanto aguardava o rate limiter")

        reservation = self._reserve(max_wait)
        if reservation is None:
            raise RateLimitCanceled(
                f"cancelado enquanto aguardava o rate limiter: a espera excederia {max_wait:.3f}s"
            )

        now, admission = reservation
        if admission > now:
            logger.debug("Rate limiting: aguardando %.3fs", admission - now)

        while now < admission:
            remaining = admission - now
            if cancel is not None:
                if cancel.wait(remaining):
                    self._release(admission)
                    raise RateLimitCanceled("cancelado enquanto aguardava o rate limiter")
            else:
                time.sleep(remaining)
            now = self._clock()

        return admission


class RateLimitedAdapter(HTTPAdapter):
    """
    Adapter do requests que passa cada requisição por um RateLimiter.

    Depois da admissão, delega a requisição inalterada ao adapter encapsulado e
    devolve exatamente o que ele devolver. Sem adapter encapsulado, usa o
    transporte HTTP padrão do requests.

    Args:
        limiter (RateLimiter): Limiter do canal.
        next_adapter (BaseAdapter | None): Adapter que efetivamente envia a requisição.
        cancel (threading.Event | None): Sinal de cancelamento repassado ao limiter.
        max_wait (float | None): Espera máxima repassada ao limiter.
    """

    def __init__(
        self,
        limiter: RateLimiter,
        next_adapter: BaseAdapter | None = None,
        cancel: threading.Event | None = None,
        max_wait: float | None = None,
    ):
        super().__init__()
        self.limiter = limiter
        self.next_adapter = next_adapter
        self.cancel = cancel
        self.max_wait = max_wait

    def send(self, request: PreparedRequest, **kwargs) -> Response:
        self.limiter.wait(cancel=self.cancel, max_wait=self.max_wait)
        if self.next_adapter is None:
            return super().send(request, **kwargs)
        return self.next_adapter.send(request, **kwargs)

    def close(self) -> None:
        super().close()
        if self.next_adapter is not None:
            self.next_adapter.close()


def mount_rate_limiter(
    session: Session,
    limiter: RateLimiter,
    cancel: threading.Event | None = None,
    max_wait: float | None = None,
) -> None:
    """
    Encapsula os adapters HTTP(S) já montados numa sessão com um RateLimitedAdapter.

    Funciona com qualquer requests.Session, inclusive a AuthorizedSession usada
    pelo gspread, preservando a autenticação do adapter original.

    Args:
        session (Session): Sessão cujo tráfego será limitado.
        limiter (RateLimiter): Limiter do canal.
        cancel (threading.Event | None): Sinal de cancelamento.
        max_wait (float | None): Espera máxima por requisição.
    """
    for prefix in ("https://", "http://"):
        current = session.get_adapter(prefix)
        session.mount(
            prefix,
            RateLimitedAdapter(limiter, next_adapter=current, cancel=cancel, max_wait=max_wait),
        )
    logger.debug("Rate limiter montado na sessão: %.3fs por requisição", limiter.interval)
