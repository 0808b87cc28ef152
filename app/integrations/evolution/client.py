from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx

from app.config.settings import (
    APP_URL,
    EVOLUTION_API_BASE_URL,
    EVOLUTION_API_KEY,
    EVOLUTION_API_MAX_RETRIES,
    EVOLUTION_API_RETRY_BASE_SECONDS,
    EVOLUTION_API_TIMEOUT_SECONDS,
)
from app.utils.logger import logger

WEBHOOK_EVENTS: List[str] = [
    "MESSAGES_UPSERT",
    "MESSAGES_UPDATE",
    "CONNECTION_UPDATE",
    "QRCODE_UPDATED",
    "CONTACTS_UPSERT",
]

# Status 0 representa falha de rede (sem resposta HTTP)
NETWORK_ERROR_STATUS = 0

_STATUS_PREFIX = {
    400: "Bad Request",
    401: "Unauthorized: verifique a API key",
    403: "Forbidden",
    404: "Not Found",
    429: "Rate Limited",
    500: "Server Error",
    502: "Bad Gateway: Evolution API fora do ar",
    503: "Service Unavailable: Evolution API indisponível",
    504: "Gateway Timeout: Evolution API demorou para responder",
}


class EvolutionApiError(Exception):
    def __init__(self, message: str, status_code: int, response: Any = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response = response

    @property
    def retryable(self) -> bool:
        return (
            self.status_code >= 500
            or self.status_code == 429
            or self.status_code == NETWORK_ERROR_STATUS
        )


class EvolutionApiClient:
    """
    Cliente HTTP assíncrono para a Evolution API (gateway WhatsApp).

    - Autentica com o header `apikey`.
    - Repete a requisição em status >= 500, 429 ou erro de rede, com espera
      `retry_base_seconds * 2^tentativa`, até `max_retries` novas tentativas.
    - `transport` e `sleep` são injetáveis para testes (ex.: `httpx.MockTransport`).
    """

    def __init__(
        self,
        *,
        base_url: str = EVOLUTION_API_BASE_URL,
        api_key: str = EVOLUTION_API_KEY,
        timeout: float = EVOLUTION_API_TIMEOUT_SECONDS,
        max_retries: int = EVOLUTION_API_MAX_RETRIES,
        retry_base_seconds: float = EVOLUTION_API_RETRY_BASE_SECONDS,
        webhook_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_base_seconds = retry_base_seconds
        self.webhook_url = webhook_url or f"{APP_URL}/api/webhooks/evolution"
        self._transport = transport
        self._sleep = sleep

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Content-Type": "application/json", "apikey": self.api_key},
            timeout=self.timeout,
            transport=self._transport,
        )

    async def _request(self, method: str, endpoint: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        attempt = 0
        while True:
            try:
                return await self._send_once(method, endpoint, payload)
            except EvolutionApiError as e:
                logger.error(
                    "[EVOLUTION] Erro %s em %s %s: %s (tentativa %s)",
                    e.status_code, method, endpoint, e.message, attempt,
                )
                if attempt >= self.max_retries or not e.retryable:
                    raise
                delay = self.retry_base_seconds * (2 ** attempt)
                logger.warning(
                    "[EVOLUTION] Nova tentativa em %.2fs (%s/%s)",
                    delay, attempt + 1, self.max_retries,
                )
                await self._sleep(delay)
                attempt += 1

    async def _send_once(self, method: str, endpoint: str, payload: Optional[Dict[str, Any]]) -> Any:
        try:
            async with self._client() as client:
                resp = await client.request(method, endpoint, json=payload)
        except httpx.TimeoutException as e:
            # timeout não entra no retry, igual a uma resposta 408
            raise EvolutionApiError(
                "Timeout: Evolution API demorou para responder", 408, {"originalError": str(e)}
            ) from e
        except httpx.TransportError as e:
            raise EvolutionApiError(
                "Erro de rede: não foi possível conectar à Evolution API",
                NETWORK_ERROR_STATUS,
                {"originalError": str(e)},
            ) from e

        try:
            data = resp.json() if resp.content else {}
        except ValueError:
            raise EvolutionApiError(
                f"Resposta JSON inválida: {resp.text}", resp.status_code, {"responseText": resp.text}
            )

        if resp.is_error:
            detail = None
            if isinstance(data, dict):
                detail = data.get("message") or data.get("error")
            message = str(detail or f"HTTP {resp.status_code}: {resp.reason_phrase}")
            prefix = _STATUS_PREFIX.get(resp.status_code)
            if prefix:
                message = f"{prefix}. {message}"
            raise EvolutionApiError(message, resp.status_code, data)

        return data

    # ───────────────────────────
    # Instâncias
    # ───────────────────────────

    async def create_instance(
        self,
        instance_name: str,
        *,
        token: Optional[str] = None,
        qrcode: bool = True,
        number: Optional[str] = None,
        integration: str = "WHATSAPP-BAILEYS",
        webhook_url: Optional[str] = None,
        events: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        # O webhook precisa ir aninhado no payload, não em campos soltos
        payload: Dict[str, Any] = {
            "instanceName": instance_name,
            "token": token or instance_name,
            "qrcode": qrcode,
            "integration": integration,
            "webhook": {
                "url": webhook_url or self.webhook_url,
                "byEvents": True,
                "base64": False,
                "events": events or WEBHOOK_EVENTS,
            },
        }
        if number:
            payload["number"] = number

        logger.info("[EVOLUTION] Criando instância %s", instance_name)
        return await self._request("POST", "/instance/create", payload)

    async def connect_instance(self, instance_name: str) -> Dict[str, Any]:
        return await self._request("GET", f"/instance/connect/{instance_name}")

    async def get_connection_state(self, instance_name: str) -> Dict[str, Any]:
        return await self._request("GET", f"/instance/connectionState/{instance_name}")

    async def delete_instance(self, instance_name: str) -> None:
        await self._request("DELETE", f"/instance/delete/{instance_name}")

    async def logout_instance(self, instance_name: str) -> None:
        await self._request("DELETE", f"/instance/logout/{instance_name}")

    # ───────────────────────────
    # Mensagens
    # ───────────────────────────

    async def send_text_message(self, instance_name: str, number: str, text: str) -> Dict[str, Any]:
        return await self._request(
            "POST", f"/message/sendText/{instance_name}", {"number": number, "text": text}
        )

    async def send_audio_message(self, instance_name: str, number: str, audio: str) -> Dict[str, Any]:
        return await self._request(
            "POST", f"/message/sendWhatsAppAudio/{instance_name}", {"number": number, "audio": audio}
        )

    # ───────────────────────────
    # Configurações
    # ───────────────────────────

    async def set_settings(self, instance_name: str, settings: Dict[str, Any]) -> None:
        await self._request("POST", f"/settings/set/{instance_name}", settings)


def get_evolution_client() -> EvolutionApiClient:
    """Dependency: cliente da Evolution API com a configuração do ambiente."""
    return EvolutionApiClient()
