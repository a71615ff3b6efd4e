"""
Analysis Function Client
Async client for the hosted analysis functions (extraction and finalization)
"""

import asyncio
import logging
from typing import Any, Dict, Optional

import aiohttp

from clarivalue.domain.exceptions import (
    RemoteCallError,
    RemoteConnectionError,
    RemoteHTTPError,
    RemoteResponseError,
    RemoteTimeoutError,
)
from clarivalue.infrastructure.utils.json_utils import decode_model_json

logger = logging.getLogger(__name__)

_ERROR_SNIPPET_CHARS = 500


def decode_body(text: str, function_name: str) -> Any:
    """
    Decode a response body.

    Model output sometimes arrives as a JSON string containing fenced JSON;
    one extra level of decoding is applied in that case.
    """
    try:
        data = decode_model_json(text)
        if isinstance(data, str):
            data = decode_model_json(data)
    except ValueError as e:
        raise RemoteResponseError(f"Response is not valid JSON: {e}", function_name=function_name) from e

    if isinstance(data, dict) and isinstance(data.get("error"), str) and len(data) == 1:
        raise RemoteCallError(f"Analysis service reported an error: {data['error']}", function_name=function_name)
    return data


class AnalysisFunctionClient:
    """
    Async client for ``POST {base_url}/functions/v1/{function_name}``.

    Usable directly as the transport of RemoteCallExecutor.
    """

    def __init__(self, base_url: str, api_key: str = "", timeout: int = 300):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = aiohttp.ClientTimeout(total=timeout)

        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def connect(self):
        """Initialize HTTP session"""
        if not self._session:
            self._session = aiohttp.ClientSession(timeout=self.timeout, headers=self._headers())

    async def close(self):
        """Close HTTP session"""
        if self._session:
            await self._session.close()
            self._session = None

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
            headers["apikey"] = self.api_key
        return headers

    def endpoint_for(self, function_name: str) -> str:
        return f"{self.base_url}/functions/v1/{function_name}"

    async def __call__(self, function_name: str, payload: Dict[str, Any]) -> Any:
        return await self.call(function_name, payload)

    async def call(self, function_name: str, payload: Dict[str, Any]) -> Any:
        """Invoke one analysis function and return its decoded body."""
        if not self._session:
            await self.connect()

        endpoint = self.endpoint_for(function_name)
        logger.debug(f"POST {endpoint}")

        try:
            async with self._session.post(endpoint, json=payload) as response:
                text = await response.text()
                if response.status != 200:
                    raise RemoteHTTPError(
                        f"Analysis function failed: {text[:_ERROR_SNIPPET_CHARS]}",
                        status_code=response.status,
                        function_name=function_name,
                    )
        except RemoteCallError:
            raise
        except asyncio.TimeoutError as e:
            raise RemoteTimeoutError(f"Timeout calling analysis function: {e}", function_name=function_name) from e
        except aiohttp.ClientError as e:
            raise RemoteConnectionError(
                f"Connection error calling analysis function: {e}", function_name=function_name
            ) from e

        return decode_body(text, function_name)
