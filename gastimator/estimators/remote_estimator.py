import itertools
import json
import logging
import threading
from typing import Any, Callable, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field

from gastimator.config import Settings
from gastimator.models.error import GasExceedsLimit, RemoteGasEstimateFailed
from gastimator.models.gas import GAS_MAX, parse_gas_hex
from gastimator.models.transaction import Transaction

logger = logging.getLogger(__name__)

RPC_TIMEOUT = 10.0
ESTIMATE_GAS_METHOD = "eth_estimateGas"

# Alchemy has no error code for an insufficient gas limit, only this message.
ALCHEMY_GAS_USE_EXCEEDS_LIMIT_ERROR = "gas required exceeds allowance"


def _rpc_payload(method: str, params: list, req_id: int = 1) -> dict:
    return {"jsonrpc": "2.0", "method": method, "params": params, "id": req_id}


class EstimateGasInput(BaseModel):
    """The call object passed as the single parameter of ``eth_estimateGas``."""

    model_config = ConfigDict(populate_by_name=True)

    to: Optional[str] = None
    gas: Optional[str] = None
    gas_price: Optional[str] = Field(default=None, alias="gasPrice")
    value: Optional[str] = None
    data: Optional[str] = None

    @classmethod
    def from_transaction(cls, tx: Transaction) -> "EstimateGasInput":
        return cls(
            to=tx.to,
            gas=hex(tx.gas_limit) if tx.gas_limit is not None else None,
            value=hex(tx.value),
            data="0x" + tx.input.hex() if tx.input else None,
        )

    def to_param(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class AlchemyRpcClient:
    """Remote gas estimator backed by the Alchemy Ethereum JSON-RPC API."""

    def __init__(self, url: str, timeout: float = RPC_TIMEOUT):
        self.url = url
        self.timeout = timeout
        self._ids = itertools.count(1)
        self._ids_lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "AlchemyRpcClient":
        return cls(settings.eth_rpc_url, timeout=settings.rpc_timeout)

    def next_id(self) -> int:
        with self._ids_lock:
            return next(self._ids)

    async def call(
        self,
        method: str,
        params: list,
        body_interceptor: Callable[[str], Any] | None = None,
    ) -> Any:
        """POST a JSON-RPC request and return the ``result`` of the response.

        ``body_interceptor`` sees the raw body before it is parsed; when it
        returns something other than ``None`` that value is returned as is.
        """
        payload = _rpc_payload(method, params, self.next_id())
        logger.debug("RPC request: %s", payload)

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                resp = await client.post(self.url, json=payload)
            except httpx.TimeoutException:
                logger.error("RPC TIMEOUT for %s", method)
                raise RemoteGasEstimateFailed(f"request `{method}` timed out")
            except httpx.HTTPError as exc:
                logger.error("RPC request `%s` failed: %s", method, exc)
                raise RemoteGasEstimateFailed(f"failed to make request, method: `{method}`")

        body = resp.text
        logger.info("RPC RESPONSE: method=%s status=%s body_len=%d", method, resp.status_code, len(body))

        if body_interceptor is not None:
            intercepted = body_interceptor(body)
            if intercepted is not None:
                return intercepted

        try:
            resp_json = json.loads(body)
        except ValueError as exc:
            raise RemoteGasEstimateFailed(f"failed to parse response: {exc}")

        if not isinstance(resp_json, dict) or "result" not in resp_json:
            error = resp_json.get("error") if isinstance(resp_json, dict) else None
            logger.error("RPC ERROR for %s: %s", method, error)
            raise RemoteGasEstimateFailed(f"no result in response, error: {error}")
        return resp_json["result"]

    async def estimate_gas(self, tx: Transaction) -> int:
        gas_limit = tx.gas_limit if tx.gas_limit is not None else GAS_MAX

        def intercept_gas_limit_exceeded(body: str):
            if ALCHEMY_GAS_USE_EXCEEDS_LIMIT_ERROR in body:
                raise GasExceedsLimit(estimated_cost=None, gas_limit=gas_limit)
            return None

        result = await self.call(
            ESTIMATE_GAS_METHOD,
            [EstimateGasInput.from_transaction(tx).to_param()],
            body_interceptor=intercept_gas_limit_exceeded,
        )
        if not isinstance(result, str):
            raise RemoteGasEstimateFailed(f"expected hex string result, got: {result!r}")
        try:
            gas_used = parse_gas_hex(result)
        except ValueError as exc:
            raise RemoteGasEstimateFailed(f"failed to parse result `{result}` as gas: {exc}")

        logger.info("Successfully fetched remote gas estimate: %d", gas_used)
        return gas_used
