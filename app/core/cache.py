import time
from threading import Lock
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

from fastapi import Request

from app.config.settings import (
    PERMISSIONS_CACHE_TTL_SECONDS,
    SETTINGS_CACHE_TTL_SECONDS,
    WEBHOOK_IDEMPOTENCY_MAX_ENTRIES,
    WEBHOOK_IDEMPOTENCY_TTL_SECONDS,
)


class TTLCache:
    """
    Cache em memória (chave → valor) com expiração por entrada.

    - `ttl_seconds` é o prazo padrão; `set(..., ttl_seconds=...)` sobrescreve por entrada.
    - `max_entries`: quando excedido, as entradas expiradas são removidas
      oportunisticamente no próximo `set` (não é um LRU).
    - `clock` injetável para testes (segundos, monotônico).
    """

    def __init__(
        self,
        ttl_seconds: float,
        max_entries: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: Dict[Hashable, Tuple[float, Any]] = {}
        self._lock = Lock()

    def get(self, key: Hashable, default: Any = None) -> Any:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return default
            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return default
            return value

    def set(self, key: Hashable, value: Any, ttl_seconds: Optional[float] = None) -> None:
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        with self._lock:
            self._entries[key] = (self._clock() + ttl, value)
            if self.max_entries is not None and len(self._entries) > self.max_entries:
                self._purge_expired_locked()

    def contains(self, key: Hashable) -> bool:
        sentinel = object()
        return self.get(key, sentinel) is not sentinel

    def delete(self, key: Hashable) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def purge_expired(self) -> int:
        with self._lock:
            return self._purge_expired_locked()

    def _purge_expired_locked(self) -> int:
        now = self._clock()
        expired = [k for k, (expires_at, _) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class Caches:
    """Registro dos caches de processo; fica em `app.state.caches`."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self.permissions = TTLCache(PERMISSIONS_CACHE_TTL_SECONDS, clock=clock)
        self.instance_settings = TTLCache(SETTINGS_CACHE_TTL_SECONDS, clock=clock)
        self.webhook_events = TTLCache(
            WEBHOOK_IDEMPOTENCY_TTL_SECONDS,
            max_entries=WEBHOOK_IDEMPOTENCY_MAX_ENTRIES,
            clock=clock,
        )


def get_caches(request: Request) -> Caches:
    """Dependency: caches do processo registrados no startup da aplicação."""
    return request.app.state.caches
