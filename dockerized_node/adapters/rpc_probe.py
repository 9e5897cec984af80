"""L2 JSON-RPC readiness probe adapter."""

from __future__ import annotations

import logging
from typing import Any, Final

import httpx

from dockerized_node.domain import ProbeOutcome, ProbeResult

from .interfaces import ReadinessProbePort

logger = logging.getLogger(__name__)


class MainContractRpcProbe(ReadinessProbePort):
    """Probe that asks the L2 node for its main contract via `zks_getMainContract`."""

    _USER_AGENT: Final[str] = "dockerized-node-manager/1.0 (Python/httpx)"
    MAIN_CONTRACT_METHOD: Final[str] = "zks_getMainContract"
    _REQUEST_ID: Final[int] = 1

    def __init__(self, request_timeout_seconds: float = 10.0, http_client: httpx.Client | None = None):
        """Initialize the probe with one pooled HTTP client.

        Args:
            request_timeout_seconds: Timeout of one probe request.
            http_client: Optional preconfigured client, used by tests.

        Raises:
            ValueError: Raised when the timeout is not positive.
        """

        if request_timeout_seconds <= 0:
            raise ValueError("request_timeout_seconds must be > 0")

        self._http_client = http_client or httpx.Client(
            timeout=request_timeout_seconds,
            headers={"User-Agent": self._USER_AGENT},
        )

    def adapter_build_request_payload(self) -> dict[str, Any]:
        """Return the JSON-RPC 2.0 request body for the main contract query.

        Returns:
            dict[str, Any]: Request payload with empty params and fixed id.
        """

        return {
            "jsonrpc": "2.0",
            "method": self.MAIN_CONTRACT_METHOD,
            "params": [],
            "id": self._REQUEST_ID,
        }

    def adapter_probe_main_contract(self, rpc_url: str) -> ProbeResult:
        """Send one main contract query and classify the response.

        Args:
            rpc_url: L2 JSON-RPC endpoint.

        Returns:
            ProbeResult: `READY` only when the response carries a truthy `result`.

        Raises:
            ValueError: Raised when the URL is blank.
        """

        normalized_rpc_url = rpc_url.strip()
        if not normalized_rpc_url:
            raise ValueError("rpc_url must not be blank")

        try:
            response = self._http_client.post(
                normalized_rpc_url,
                json=self.adapter_build_request_payload(),
                headers={"Content-Type": "application/json"},
            )
        except httpx.HTTPError as error:
            logger.debug("Error while fetching %s: %s", self.MAIN_CONTRACT_METHOD, error)
            return ProbeResult(outcome=ProbeOutcome.TRANSPORT_ERROR, detail=str(error) or type(error).__name__)

        if not response.is_success:
            logger.debug("%s returned HTTP %s", self.MAIN_CONTRACT_METHOD, response.status_code)
            return ProbeResult(outcome=ProbeOutcome.HTTP_ERROR, detail=f"HTTP {response.status_code}")

        try:
            response_payload = response.json()
        except ValueError:
            logger.debug("Received non-JSON body from %s", self.MAIN_CONTRACT_METHOD)
            return ProbeResult(outcome=ProbeOutcome.NOT_READY, detail="response body is not JSON")

        main_contract = response_payload.get("result") if isinstance(response_payload, dict) else None
        if not main_contract:
            logger.debug("Received unexpected data from %s: %s", self.MAIN_CONTRACT_METHOD, response_payload)
            return ProbeResult(outcome=ProbeOutcome.NOT_READY, detail="result is empty")

        return ProbeResult(outcome=ProbeOutcome.READY, main_contract=str(main_contract))

    def adapter_close(self) -> None:
        """Close the pooled HTTP client."""

        self._http_client.close()
