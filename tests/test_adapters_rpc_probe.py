"""Tests for main contract readiness probe classification."""

from __future__ import annotations

import json

import httpx
import pytest

from dockerized_node.adapters import MainContractRpcProbe
from dockerized_node.domain import ProbeOutcome


def _build_probe(handler) -> tuple[MainContractRpcProbe, list[httpx.Request]]:
    captured_requests: list[httpx.Request] = []

    def _recording_handler(request: httpx.Request) -> httpx.Response:
        captured_requests.append(request)
        return handler(request)

    http_client = httpx.Client(transport=httpx.MockTransport(_recording_handler))
    return MainContractRpcProbe(http_client=http_client), captured_requests


def test_probe_reports_ready_for_truthy_result() -> None:
    """A non-empty `result` confirms deployment."""

    probe, captured_requests = _build_probe(
        lambda request: httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": "0xdeadbeef"})
    )

    probe_result = probe.adapter_probe_main_contract("http://127.0.0.1:3050")

    assert probe_result.outcome is ProbeOutcome.READY
    assert probe_result.main_contract == "0xdeadbeef"
    assert probe_result.probe_is_ready() is True
    sent_payload = json.loads(captured_requests[0].content)
    assert sent_payload == {"jsonrpc": "2.0", "method": "zks_getMainContract", "params": [], "id": 1}
    assert captured_requests[0].method == "POST"
    assert captured_requests[0].headers["Content-Type"] == "application/json"


@pytest.mark.parametrize("result_value", [None, "", 0])
def test_probe_reports_not_ready_for_empty_result(result_value) -> None:
    """Falsy results mean contracts are not deployed yet."""

    probe, _ = _build_probe(lambda request: httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": result_value}))

    probe_result = probe.adapter_probe_main_contract("http://127.0.0.1:3050")

    assert probe_result.outcome is ProbeOutcome.NOT_READY
    assert probe_result.probe_is_ready() is False


def test_probe_reports_not_ready_for_rpc_error_body() -> None:
    """JSON-RPC error bodies carry no result."""

    probe, _ = _build_probe(
        lambda request: httpx.Response(
            200,
            json={"jsonrpc": "2.0", "id": 1, "error": {"code": -32601, "message": "Method not found"}},
        )
    )

    assert probe.adapter_probe_main_contract("http://127.0.0.1:3050").outcome is ProbeOutcome.NOT_READY


def test_probe_reports_not_ready_for_non_json_body() -> None:
    """Unparseable bodies are a miss, not an error."""

    probe, _ = _build_probe(lambda request: httpx.Response(200, text="<html>starting</html>"))

    assert probe.adapter_probe_main_contract("http://127.0.0.1:3050").outcome is ProbeOutcome.NOT_READY


def test_probe_reports_http_error_for_non_success_status() -> None:
    """Non-2xx responses are classified separately."""

    probe, _ = _build_probe(lambda request: httpx.Response(502, text="bad gateway"))

    probe_result = probe.adapter_probe_main_contract("http://127.0.0.1:3050")

    assert probe_result.outcome is ProbeOutcome.HTTP_ERROR
    assert probe_result.detail == "HTTP 502"


def test_probe_reports_transport_error_when_connection_fails() -> None:
    """Connection failures are swallowed into a transport outcome."""

    def _refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    probe, _ = _build_probe(_refuse)

    probe_result = probe.adapter_probe_main_contract("http://127.0.0.1:3050")

    assert probe_result.outcome is ProbeOutcome.TRANSPORT_ERROR
    assert "connection refused" in (probe_result.detail or "")


def test_probe_rejects_blank_url_and_bad_timeout() -> None:
    """Blank endpoints and non-positive timeouts are invalid."""

    probe, _ = _build_probe(lambda request: httpx.Response(200, json={"result": "0x1"}))

    with pytest.raises(ValueError):
        probe.adapter_probe_main_contract(" ")
    with pytest.raises(ValueError):
        MainContractRpcProbe(request_timeout_seconds=0)
