import asyncio
import json

import httpx
import pytest

from app.integrations.evolution.client import EvolutionApiClient, EvolutionApiError


class Recorder:
    """Transport fake: devolve as respostas em sequência e guarda as requisições."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        result = self.responses.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


def _client(recorder, max_retries=3):
    delays = []

    async def fake_sleep(seconds):
        delays.append(seconds)

    client = EvolutionApiClient(
        base_url="http://evolution.test/",
        api_key="chave",
        max_retries=max_retries,
        retry_base_seconds=1.0,
        webhook_url="http://api.test/api/webhooks/evolution",
        transport=httpx.MockTransport(recorder),
        sleep=fake_sleep,
    )
    return client, delays


def test_create_instance_sends_nested_webhook_and_api_key():
    recorder = Recorder(httpx.Response(201, json={"instance": {"instanceName": "loja"}, "hash": "tok"}))
    client, _ = _client(recorder)

    result = asyncio.run(client.create_instance("loja"))

    assert result["hash"] == "tok"
    request = recorder.requests[0]
    assert request.url == "http://evolution.test/instance/create"
    assert request.headers["apikey"] == "chave"
    body = json.loads(request.content)
    assert body["instanceName"] == "loja"
    assert body["webhook"]["url"] == "http://api.test/api/webhooks/evolution"
    assert "MESSAGES_UPSERT" in body["webhook"]["events"]


def test_retries_server_errors_with_exponential_backoff():
    recorder = Recorder(
        httpx.Response(500, json={"message": "falhou"}),
        httpx.Response(503),
        httpx.Response(200, json={"key": {"id": "EXT-9"}}),
    )
    client, delays = _client(recorder)

    result = asyncio.run(client.send_text_message("loja", "5511999998888", "oi"))

    assert result == {"key": {"id": "EXT-9"}}
    assert len(recorder.requests) == 3
    assert delays == [1.0, 2.0]


def test_gives_up_after_max_retries():
    recorder = Recorder(*[httpx.Response(502, json={"message": "fora"}) for _ in range(4)])
    client, delays = _client(recorder)

    with pytest.raises(EvolutionApiError) as exc:
        asyncio.run(client.get_connection_state("loja"))

    assert exc.value.status_code == 502
    assert exc.value.message.startswith("Bad Gateway")
    assert len(recorder.requests) == 4
    assert delays == [1.0, 2.0, 4.0]


def test_client_errors_are_not_retried():
    recorder = Recorder(httpx.Response(404, json={"message": "instance not found"}))
    client, delays = _client(recorder)

    with pytest.raises(EvolutionApiError) as exc:
        asyncio.run(client.logout_instance("loja"))

    assert exc.value.status_code == 404
    assert "instance not found" in exc.value.message
    assert exc.value.retryable is False
    assert delays == []


def test_rate_limited_is_retried():
    recorder = Recorder(httpx.Response(429), httpx.Response(200, json={}))
    client, delays = _client(recorder)

    asyncio.run(client.set_settings("loja", {"rejectCall": True}))

    assert delays == [1.0]


def test_network_error_is_retried_with_status_zero():
    recorder = Recorder(
        httpx.ConnectError("conexão recusada"),
        httpx.ConnectError("conexão recusada"),
    )
    client, delays = _client(recorder, max_retries=1)

    with pytest.raises(EvolutionApiError) as exc:
        asyncio.run(client.delete_instance("loja"))

    assert exc.value.status_code == 0
    assert exc.value.retryable is True
    assert delays == [1.0]


def test_timeout_maps_to_408_without_retry():
    recorder = Recorder(httpx.ReadTimeout("demorou"))
    client, delays = _client(recorder)

    with pytest.raises(EvolutionApiError) as exc:
        asyncio.run(client.connect_instance("loja"))

    assert exc.value.status_code == 408
    assert delays == []


def test_invalid_json_response():
    recorder = Recorder(httpx.Response(200, content=b"<html>erro</html>"))
    client, _ = _client(recorder)

    with pytest.raises(EvolutionApiError) as exc:
        asyncio.run(client.get_connection_state("loja"))

    assert "JSON" in exc.value.message
