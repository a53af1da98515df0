"""
Chain oracle backed by the particl-core JSON-RPC interface.

Only two questions are ever asked: the current block height, and an
address balance as of a given height. The balance is derived from the
address index (getaddressdeltas up to the height), in satoshis.
"""

from itertools import count
from typing import Any, Optional

import httpx
import structlog

from core.config import settings
from core.exceptions import OracleUnavailableError

logger = structlog.get_logger(__name__)


class CoreRpcService:
    """
    Async JSON-RPC client for particl-core.

    Usage:
        async with CoreRpcService() as oracle:
            height = await oracle.current_height()
            balance = await oracle.balance_at("pXYZ...", height)
    """

    def __init__(
        self,
        url: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        user: Optional[str] = None,
        password: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.url = url or settings.CORE_RPC_URL
        user = user if user is not None else settings.CORE_RPC_USER
        password = password if password is not None else settings.CORE_RPC_PASSWORD
        self._owns_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient(
            timeout=timeout or settings.CORE_RPC_TIMEOUT_SECONDS,
            auth=(user, password or "") if user else None,
        )
        self._ids = count(1)

    async def __aenter__(self) -> "CoreRpcService":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_client:
            await self.http_client.aclose()

    async def call(self, method: str, params: Optional[list[Any]] = None) -> Any:
        """
        Perform one JSON-RPC call.

        Raises:
            OracleUnavailableError: transport failure, timeout, HTTP error or RPC error
        """
        payload = {
            "jsonrpc": "1.0",
            "id": next(self._ids),
            "method": method,
            "params": params or [],
        }

        try:
            response = await self.http_client.post(self.url, json=payload)
            data = response.json()
        except httpx.TimeoutException as e:
            logger.warning("core_rpc_timeout", method=method)
            raise OracleUnavailableError(f"{method} timed out") from e
        except httpx.HTTPError as e:
            logger.warning("core_rpc_transport_error", method=method, error=str(e))
            raise OracleUnavailableError(f"{method} failed: {e}") from e
        except ValueError as e:
            # Not JSON, typically an auth failure page
            raise OracleUnavailableError(
                f"{method} returned HTTP {response.status_code} without a JSON body"
            ) from e

        if not isinstance(data, dict):
            raise OracleUnavailableError(
                f"{method} returned HTTP {response.status_code} with an unexpected body"
            )

        error = data.get("error")
        if error:
            logger.warning("core_rpc_error", method=method, error=error)
            raise OracleUnavailableError(f"{method} returned error: {error}")
        if response.status_code >= 400:
            raise OracleUnavailableError(f"{method} returned HTTP {response.status_code}")

        return data.get("result")

    async def current_height(self) -> int:
        """Current chain height."""
        return int(await self.call("getblockcount"))

    async def balance_at(self, address: str, height: int) -> int:
        """Balance of an address, in satoshis, including blocks up to `height`."""
        deltas = await self.call(
            "getaddressdeltas",
            [{"addresses": [address], "start": 1, "end": height}],
        )
        balance = sum(int(delta.get("satoshis", 0)) for delta in deltas or [])
        logger.debug("address_balance", address=address, height=height, balance=balance)
        return max(balance, 0)
