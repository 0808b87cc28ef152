import time
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Dict

from fastapi import Request


@dataclass
class _Window:
    count: int
    reset_at_ms: float


class MessageRateLimiter:
    """
    Limite de envio por instância: `max_messages` por janela de `window_ms`.

    Não enfileira nem bloqueia; quem chama decide o que fazer quando
    `can_send` retorna False (ex.: 429 com `get_reset_time_ms`).
    """

    def __init__(
        self,
        window_ms: int = 1000,
        max_messages: int = 1,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.window_ms = window_ms
        self.max_messages = max_messages
        self._clock = clock
        self._windows: Dict[str, _Window] = {}
        self._lock = Lock()

    def _now_ms(self) -> float:
        return self._clock() * 1000

    @staticmethod
    def _key(instance_id: str) -> str:
        return f"msg_{instance_id}"

    def can_send(self, instance_id: str) -> bool:
        now = self._now_ms()
        key = self._key(instance_id)
        with self._lock:
            window = self._windows.get(key)
            if window is None or now >= window.reset_at_ms:
                self._windows[key] = _Window(count=1, reset_at_ms=now + self.window_ms)
                return True
            if window.count >= self.max_messages:
                return False
            window.count += 1
            return True

    def get_reset_time_ms(self, instance_id: str) -> int:
        with self._lock:
            window = self._windows.get(self._key(instance_id))
            if window is None:
                return 0
            return max(0, int(window.reset_at_ms - self._now_ms()))

    def cleanup(self) -> int:
        now = self._now_ms()
        with self._lock:
            expired = [k for k, w in self._windows.items() if now >= w.reset_at_ms]
            for key in expired:
                del self._windows[key]
        return len(expired)


def get_rate_limiter(request: Request) -> MessageRateLimiter:
    return request.app.state.rate_limiter
