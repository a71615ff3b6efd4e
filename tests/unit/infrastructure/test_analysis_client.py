"""Tests for AnalysisFunctionClient error mapping and body decoding."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from clarivalue.domain.exceptions import (
    RemoteCallError,
    RemoteConnectionError,
    RemoteHTTPError,
    RemoteResponseError,
    RemoteTimeoutError,
)
from clarivalue.infrastructure.remote import AnalysisFunctionClient, decode_body


def mock_session(status=200, text="{}", post_side_effect=None):
    response = MagicMock()
    response.status = status
    response.text = AsyncMock(return_value=text)

    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=response)
    context.__aexit__ = AsyncMock(return_value=False)

    session = MagicMock()
    if post_side_effect is not None:
        session.post.side_effect = post_side_effect
    else:
        session.post.return_value = context
    return session


@pytest.fixture
def client():
    return AnalysisFunctionClient("https://analysis.example.com/", api_key="secret", timeout=30)


class TestDecodeBody:
    def test_plain_json(self):
        assert decode_body('{"requiresUserInput": false}', "extract") == {"requiresUserInput": False}

    def test_markdown_fenced_json(self):
        text = '```json\n{"financialAnalysis": {"financial_periods": []}}\n```'

        assert decode_body(text, "extract") == {"financialAnalysis": {"financial_periods": []}}

    def test_json_string_containing_fenced_json(self):
        text = '"```json\\n{\\"a\\": 1}\\n```"'

        assert decode_body(text, "extract") == {"a": 1}

    def test_json_embedded_in_prose(self):
        assert decode_body('Here is the result: {"a": {"b": 2}} Thanks!', "extract") == {"a": {"b": 2}}

    def test_invalid_body_is_a_response_error(self):
        with pytest.raises(RemoteResponseError):
            decode_body("<html>Bad gateway</html>", "extract")

    def test_error_body_is_a_retryable_call_error(self):
        with pytest.raises(RemoteCallError) as exc_info:
            decode_body('{"error": "model overloaded"}', "finalize")

        assert not isinstance(exc_info.value, (RemoteHTTPError, RemoteResponseError))
        assert "model overloaded" in str(exc_info.value)
        assert exc_info.value.function_name == "finalize"


class TestCall:
    def test_endpoint_and_headers(self, client):
        assert client.endpoint_for("extract") == "https://analysis.example.com/functions/v1/extract"
        assert client._headers()["Authorization"] == "Bearer secret"

    @pytest.mark.asyncio
    async def test_successful_call_returns_decoded_body(self, client):
        client._session = mock_session(text='{"financialAnalysis": {}}')

        result = await client("extract", {"companyName": "Acme Oy"})

        assert result == {"financialAnalysis": {}}
        client._session.post.assert_called_once_with(
            "https://analysis.example.com/functions/v1/extract", json={"companyName": "Acme Oy"}
        )

    @pytest.mark.asyncio
    async def test_http_error_carries_status(self, client):
        client._session = mock_session(status=503, text="Service unavailable")

        with pytest.raises(RemoteHTTPError) as exc_info:
            await client.call("extract", {})

        assert exc_info.value.status_code == 503
        assert "status=503" in str(exc_info.value)
        assert "function=extract" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_connection_error_is_mapped(self, client):
        client._session = mock_session(post_side_effect=aiohttp.ClientConnectionError("refused"))

        with pytest.raises(RemoteConnectionError):
            await client.call("extract", {})

    @pytest.mark.asyncio
    async def test_timeout_is_mapped(self, client):
        client._session = mock_session(post_side_effect=asyncio.TimeoutError())

        with pytest.raises(RemoteTimeoutError):
            await client.call("extract", {})

    @pytest.mark.asyncio
    async def test_close_releases_session(self, client):
        session = MagicMock()
        session.close = AsyncMock()
        client._session = session

        await client.close()

        session.close.assert_awaited_once()
        assert client._session is None
