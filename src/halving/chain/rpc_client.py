"""CKB JSON-RPC client — fetches the chain tip for the countdown.

One POST per poll:

    {"id": 42, "jsonrpc": "2.0", "method": "get_tip_header", "params": []}

``get_tip_header`` reports both the block number and the packed epoch;
``get_blockchain_info`` reports only the epoch. Integers arrive as
0x-prefixed hex strings.

Every failure surfaces as a ChainDataError subclass so the service layer
can skip the cycle with a single except clause.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from halving.chain.epoch_codec import (
    EpochIntegrityError,
    check_epoch,
    decode_epoch,
    parse_packed,
)
from halving.models.epoch import ChainSnapshot

logger = logging.getLogger(__name__)


DEFAULT_RPC_URL = "https://mainnet.ckb.dev/rpc"
METHOD_TIP_HEADER = "get_tip_header"
METHOD_BLOCKCHAIN_INFO = "get_blockchain_info"
SUPPORTED_METHODS = (METHOD_TIP_HEADER, METHOD_BLOCKCHAIN_INFO)
REQUEST_ID = 42


class ChainDataError(Exception):
    """A poll of the node did not produce a usable snapshot."""


class ChainTransportError(ChainDataError):
    """Request failed, timed out, returned non-200 or non-JSON."""


class ChainProtocolError(ChainDataError):
    """Response arrived but its content is unusable."""

    def __init__(self, message: str, code: Optional[int] = None):
        self.code = code
        super().__init__(message)


def build_request(method: str) -> dict[str, Any]:
    return {"id": REQUEST_ID, "jsonrpc": "2.0", "method": method, "params": []}


def parse_result(method: str, payload: Any) -> ChainSnapshot:
    """Turn a decoded JSON-RPC response body into a ChainSnapshot."""
    if not isinstance(payload, dict):
        raise ChainProtocolError("Response body is not a JSON object")

    error = payload.get("error")
    if error is not None:
        if isinstance(error, dict):
            raise ChainProtocolError(
                f"RPC error: {error.get('message', 'unknown')}",
                code=error.get("code"),
            )
        raise ChainProtocolError(f"RPC error: {error!r}")

    result = payload.get("result")
    if not isinstance(result, dict):
        raise ChainProtocolError("Response has no result object")
    if "epoch" not in result:
        raise ChainProtocolError("Result is missing the epoch field")

    try:
        epoch = check_epoch(decode_epoch(parse_packed(result["epoch"])))
        block_number = None
        if method == METHOD_TIP_HEADER:
            if "number" not in result:
                raise ChainProtocolError("Result is missing the number field")
            block_number = parse_packed(result["number"])
    except EpochIntegrityError as e:
        raise ChainProtocolError(str(e)) from e

    return ChainSnapshot(block_number=block_number, epoch=epoch)


class ChainDataClient:
    """Polls a CKB node for the current tip.

    Usage:
        async with ChainDataClient(rpc_url) as client:
            snapshot = await client.fetch_snapshot()

    A caller-supplied ``http_client`` is used as-is and not closed here.
    """

    def __init__(
        self,
        rpc_url: str = DEFAULT_RPC_URL,
        method: str = METHOD_TIP_HEADER,
        timeout: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        if method not in SUPPORTED_METHODS:
            raise ValueError(
                f"Unsupported RPC method {method!r}; "
                f"expected one of {', '.join(SUPPORTED_METHODS)}"
            )
        self.rpc_url = rpc_url
        self.method = method
        self.timeout = timeout
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    async def __aenter__(self) -> "ChainDataClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def fetch_snapshot(self) -> ChainSnapshot:
        """Issue one JSON-RPC request and decode the tip."""
        try:
            resp = await self._client.post(
                self.rpc_url,
                json=build_request(self.method),
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
        except httpx.TimeoutException as e:
            raise ChainTransportError(
                f"{self.method} timed out after {self.timeout}s"
            ) from e
        except httpx.HTTPError as e:
            raise ChainTransportError(f"{self.method} request failed: {e}") from e

        if resp.status_code != 200:
            raise ChainTransportError(
                f"{self.method} returned HTTP {resp.status_code}"
            )

        try:
            payload = resp.json()
        except ValueError as e:
            raise ChainTransportError(f"{self.method} returned malformed JSON") from e

        snapshot = parse_result(self.method, payload)
        logger.debug(
            f"Polled {self.method}: block={snapshot.block_number} "
            f"epoch={snapshot.epoch.number} "
            f"{snapshot.epoch.index}/{snapshot.epoch.length}"
        )
        return snapshot
