"""
HTTP transport

POSTs encoded messages to the engine's HTTP API over a keep-alive
connection pool:
- /api/wallet for WALLET_CREATE messages
- /api/execute for everything else

Requests are authenticated with the X-API-Key header.
"""

from typing import Any, Dict, Optional

import httpx

from ..config import TransportConfig
from ..errors import ErrorCode, ExecutionError
from ..types.requests import WALLET_CREATE_MESSAGE_TYPE
from .base import Transport
from .codec import Codec, codec_for_content_type

EXECUTE_PATH = "/api/execute"
WALLET_PATH = "/api/wallet"

# Status -> error code; any other status >= 400 is EXECUTION_FAILED
_STATUS_CODES: Dict[int, ErrorCode] = {
    400: ErrorCode.INVALID_REQUEST,
    401: ErrorCode.INVALID_REQUEST,
    403: ErrorCode.INVALID_REQUEST,
    404: ErrorCode.RESOURCE_NOT_FOUND,
    422: ErrorCode.INVALID_REQUEST,
    429: ErrorCode.RESOURCE_EXHAUSTED,
}


def error_code_for_status(status_code: int) -> ErrorCode:
    return _STATUS_CODES.get(status_code, ErrorCode.EXECUTION_FAILED)


class HttpTransport(Transport):
    """
    Usage:
        transport = HttpTransport(TransportConfig(address="https://engine.example.com", api_key="..."))
        await transport.connect()
        reply = await transport.request(request.to_wire())

    http_transport can inject a custom httpx transport (e.g. httpx.MockTransport).
    """

    name = "HTTP"

    def __init__(
        self,
        config: TransportConfig,
        codec: Optional[Codec] = None,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(config, codec)
        self._http_transport = http_transport
        self._client: Optional[httpx.AsyncClient] = None
        self._last_reply_codec: Codec = self.codec

    async def _open(self) -> None:
        self._client = httpx.AsyncClient(
            base_url=self.address.rstrip("/"),
            timeout=httpx.Timeout(self.config.timeout_seconds),
            limits=httpx.Limits(
                max_connections=20,
                max_keepalive_connections=10,
                keepalive_expiry=60.0,
            ),
            headers={
                "Content-Type": self.codec.content_type,
                "Accept": self.codec.content_type,
                "X-API-Key": self.config.api_key,
            },
            transport=self._http_transport,
        )

    async def _close(self) -> None:
        client = self._client
        self._client = None
        if client is not None:
            await client.aclose()

    def _reply_codec(self) -> Codec:
        return self._last_reply_codec

    @staticmethod
    def _path_for(message: Any) -> str:
        if isinstance(message, dict) and message.get("type") == WALLET_CREATE_MESSAGE_TYPE:
            return WALLET_PATH
        return EXECUTE_PATH

    async def _exchange(self, data: bytes, message: Any) -> bytes:
        if self._client is None:
            raise ConnectionError("HTTP client is not open")

        path = self._path_for(message)
        try:
            response = await self._client.post(path, content=data)
        except httpx.TimeoutException as e:
            raise ExecutionError.timeout(self.name, self.config.timeout_seconds, e) from e
        except httpx.TransportError as e:
            raise ExecutionError.network(self.name, e) from e

        self._last_reply_codec = codec_for_content_type(
            response.headers.get("content-type", ""), self.codec
        )

        if response.status_code >= 400:
            raise self._status_error(response, path)

        return response.content

    def _status_error(self, response: httpx.Response, path: str) -> ExecutionError:
        message = f"HTTP {response.status_code}"
        try:
            body = self._last_reply_codec.decode(response.content)
        except Exception as e:
            self.logger.debug(f"Unreadable error body from {path}: {e}")
        else:
            if isinstance(body, dict) and body.get("error"):
                message = f"HTTP {response.status_code}: {body['error']}"

        return ExecutionError(
            message,
            error_code_for_status(response.status_code),
            self.name,
            details={"status_code": response.status_code, "path": path},
        )
