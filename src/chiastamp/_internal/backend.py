"""Async client for the stamping service (submit a digest, fetch its latest proof)."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from chiastamp.contracts import ProofArtifact

logger = logging.getLogger(__name__)


class BackendError(RuntimeError):
    """Raised when the stamping service request fails."""


class BackendClient:
    """Submit leaf digests for stamping and fetch updated proofs.

    Args:
        base_url: Stamping service base URL.
        client: Optional shared httpx.AsyncClient; when omitted one is
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

    async def __aenter__(self) -> BackendClient:
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

    async def _post_proof(self, path: str, body: Dict[str, Any]) -> ProofArtifact:
        url = f"{self._base_url}/{path}"
        logger.debug("POST %s %s", url, body)
        try:
            response = await self._get_client().post(url, json=body)
        except httpx.HTTPError as exc:
            raise BackendError(f"Request to {url} failed: {type(exc).__name__}: {exc}") from exc

        if not response.is_success:
            raise BackendError(f"Server responded with status: {response.status_code}")

        try:
            return ProofArtifact.model_validate_json(response.content)
        except ValidationError as exc:
            raise BackendError("Server returned a malformed proof") from exc

    async def stamp(self, leaf_hash: str) -> ProofArtifact:
        """Submit a leaf digest; returns the (usually partial) proof."""
        return await self._post_proof("stamp", {"hash": leaf_hash})

    async def fetch_proof(self, leaf_hash: str) -> ProofArtifact:
        """Return the latest proof the service holds for a leaf digest."""
        return await self._post_proof("proof", {"hash": leaf_hash})
