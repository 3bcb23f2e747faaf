"""Authorities that recompute a calculator value independently."""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, Mapping, Optional, Protocol

import httpx

from .errors import AuthorityError
from .expr import evaluate

logger = logging.getLogger(__name__)


class AuthorityClient(Protocol):
    """Anything with a ``name`` and an async ``recompute``.

    ``recompute`` returns the authoritative value or raises
    :class:`AuthorityError`. The runner bounds each call with
    ``asyncio.wait_for``; ``timeout_ms`` is the remaining budget, passed so
    network clients can set their own transport timeout.
    """

    name: str

    async def recompute(self, calculator_id: str, formula_spec: str, inputs: Mapping[str, Any],
                        timeout_ms: float) -> float:
        ...


class ReferenceAuthority:
    """Evaluates the formula spec in-process with the restricted evaluator."""

    name = "reference"

    async def recompute(self, calculator_id: str, formula_spec: str, inputs: Mapping[str, Any],
                        timeout_ms: float) -> float:
        return evaluate(formula_spec, inputs)


class RemoteAuthority:
    """Posts the formula and inputs to an HTTP recomputation service.

    Request body: ``{"calculator": id, "formula": spec, "inputs": {...}}``.
    Expected reply: ``{"value": number}`` with a 2xx status.
    """

    name = "remote"

    def __init__(self, url: str, attempts_per_call: int = 2,
                 transport: Optional[httpx.AsyncBaseTransport] = None,
                 headers: Optional[Dict[str, str]] = None):
        if attempts_per_call < 1:
            raise ValueError("attempts_per_call must be at least 1")
        self.url = url
        self.attempts_per_call = attempts_per_call
        self._transport = transport
        self._headers = headers or {}

    async def _post_once(self, client: httpx.AsyncClient, payload: Dict[str, Any]) -> float:
        try:
            resp = await client.post(self.url, json=payload)
        except httpx.HTTPError as e:
            raise AuthorityError(f"{self.url}: {type(e).__name__}: {e}") from e
        if not resp.is_success:
            raise AuthorityError(f"{self.url}: HTTP {resp.status_code}")
        try:
            data = resp.json()
        except ValueError as e:
            raise AuthorityError(f"{self.url}: response is not JSON") from e
        value = data.get("value") if isinstance(data, dict) else None
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
            raise AuthorityError(f"{self.url}: malformed reply {data!r}")
        return float(value)

    async def recompute(self, calculator_id: str, formula_spec: str, inputs: Mapping[str, Any],
                        timeout_ms: float) -> float:
        payload = {"calculator": calculator_id, "formula": formula_spec, "inputs": dict(inputs)}
        timeout = httpx.Timeout(max(timeout_ms, 1.0) / 1000)
        last_error: Optional[AuthorityError] = None
        async with httpx.AsyncClient(timeout=timeout, transport=self._transport,
                                     headers=self._headers) as client:
            for attempt in range(1, self.attempts_per_call + 1):
                try:
                    return await self._post_once(client, payload)
                except AuthorityError as e:
                    logger.warning(f"Remote authority attempt {attempt}/{self.attempts_per_call} "
                                   f"for {calculator_id} failed: {e}")
                    last_error = e
        raise last_error
