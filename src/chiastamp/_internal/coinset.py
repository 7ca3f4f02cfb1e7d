"""Async client for the coin index and block index (coinset-style RPC).

Both endpoints are JSON-over-POST. Every failure mode (transport error,
non-2xx status, malformed body, API-reported failure) is raised as
CoinsetError so callers have a single exception to convert.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from chiastamp.kernel.chain import BlockRecord, ChainIndexError, CoinRecord

logger = logging.getLogger(__name__)


class CoinsetError(ChainIndexError):
    """Raised when the coin or block index cannot answer a query."""
    pass


class CoinsetClient:
    """Query the coin index and block index.

    Args:
        base_url: Service base URL (no trailing slash).
        client: Optional shared httpx.AsyncClient. When omitted, one is
            created lazily and closed by aclose().
        timeout: Per-request timeout in seconds for an owned client.
    """

    def __init__(
        self,
        base_url: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout

    async def __aenter__(self) -> CoinsetClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self._timeout))
        return self._client

    async def _post(self, api_name: str, path: str, body: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self._base_url}/{path}"
        logger.debug("POST %s %s", url, body)
        try:
            response = await self._get_client().post(url, json=body)
        except httpx.HTTPError as exc:
            raise CoinsetError(
                f"{api_name} request failed: {type(exc).__name__}: {exc}"
            ) from exc

        if not response.is_success:
            raise CoinsetError(
                f"{api_name} responded with status: {response.status_code}"
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise CoinsetError(f"{api_name} returned a malformed response body") from exc
        if not isinstance(data, dict):
            raise CoinsetError(f"{api_name} returned a malformed response body")
        return data

    async def get_coin_records_by_hint(
        self,
        hint: str,
        include_spent_coins: bool = True,
    ) -> List[CoinRecord]:
        """Return coin records hinted with the given value.

        Raises:
            CoinsetError: On transport failure, non-2xx status, or an
                unsuccessful/malformed response
        """
        data = await self._post(
            "Coinset API",
            "get_coin_records_by_hint",
            {"hint": hint, "include_spent_coins": include_spent_coins},
        )
        if data.get("success") is not True or data.get("coin_records") is None:
            raise CoinsetError(_unsuccessful("Coinset API", data))
        try:
            return [CoinRecord.model_validate(r) for r in data["coin_records"]]
        except (ValidationError, TypeError) as exc:
            raise CoinsetError("Coinset API returned malformed coin records") from exc

    async def get_block_record_by_height(self, height: int) -> BlockRecord:
        """Return the block record at the given height.

        Raises:
            CoinsetError: On transport failure, non-2xx status, or an
                unsuccessful/malformed response
        """
        data = await self._post(
            "Block record API",
            "get_block_record_by_height",
            {"height": height},
        )
        if data.get("success") is not True or data.get("block_record") is None:
            raise CoinsetError(_unsuccessful("Block record API", data))
        try:
            return BlockRecord.model_validate(data["block_record"])
        except ValidationError as exc:
            raise CoinsetError("Block record API returned a malformed block record") from exc


def _unsuccessful(api_name: str, data: Dict[str, Any]) -> str:
    message = f"{api_name} returned unsuccessful response"
    error = data.get("error")
    if error:
        message += f": {error}"
    return message
