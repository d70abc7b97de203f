import asyncio
from typing import Dict, Protocol

from starlette.responses import Response
from starlette.types import Receive, Scope, Send

from mockwarp.engine.metrics import observe_response_delay, record_cancelled_response
from mockwarp.engine.models import CompiledMock, ResponseDescriptor
from mockwarp.logging import logger


class ResponseChannel(Protocol):
    """The outbound side of a single HTTP exchange."""

    def set_status(self, status: int) -> None: ...

    def set_header(self, key: str, value: str) -> None: ...

    async def send(self, body: str) -> None: ...


async def dispatch(descriptor: ResponseDescriptor, delay_ms: int, channel: ResponseChannel) -> None:
    """
    Applies a compiled mock to a response channel.

    Status and headers are set right away. The body is sent once `delay_ms`
    milliseconds have passed. The wait is an asyncio sleep, so other requests
    keep being served, and cancelling the calling task abandons the send.
    """
    channel.set_status(descriptor.status)
    for key, value in descriptor.headers.items():
        channel.set_header(key, value)

    if delay_ms > 0:
        logger.debug(f"Delaying response by {delay_ms}ms")
        observe_response_delay(delay_ms)
        await asyncio.sleep(delay_ms / 1000)

    await channel.send(descriptor.body)


class ASGIResponseChannel:
    """
    ResponseChannel writing to an ASGI `send` callable.

    Status and headers are buffered and go out together with the body, along
    with a computed Content-Length and, when the mock set none, a default
    Content-Type. Statuses that carry no body (1xx, 204, 304) get neither a
    Content-Length nor a body. With `head_only` the Content-Length of the
    full body is announced but no body bytes are written, as for HEAD.
    """

    def __init__(
        self,
        send: Send,
        default_content_type: str,
        charset: str = "utf-8",
        head_only: bool = False,
    ):
        self._send = send
        self.head_only = head_only
        self.default_content_type = default_content_type
        self.charset = charset
        self.status_code = 200
        self.headers: Dict[str, str] = {}

    def set_status(self, status: int) -> None:
        self.status_code = status

    def set_header(self, key: str, value: str) -> None:
        self.headers[key.lower()] = value

    async def send(self, body: str) -> None:
        content = body.encode(self.charset)
        headers = dict(self.headers)
        headers.setdefault("content-type", self.default_content_type)
        if self.status_code < 200 or self.status_code in (204, 304):
            content = b""
            headers.pop("content-length", None)
        else:
            headers["content-length"] = str(len(content))

        await self._send(
            {
                "type": "http.response.start",
                "status": self.status_code,
                "headers": [
                    (key.encode("latin-1"), value.encode("latin-1"))
                    for key, value in headers.items()
                ],
            }
        )
        await self._send(
            {"type": "http.response.body", "body": b"" if self.head_only else content}
        )


async def wait_for_disconnect(receive: Receive) -> None:
    while True:
        message = await receive()
        if message["type"] == "http.disconnect":
            return


class MockResponse(Response):
    """
    Starlette response that serves a CompiledMock through `dispatch`.

    The dispatch runs as a task of its own while the ASGI receive channel is
    watched for a client disconnect. If the client goes away before the
    (possibly delayed) body was written, the task is cancelled and nothing
    more is sent.
    """

    def __init__(self, compiled: CompiledMock, default_content_type: str, head_only: bool = False):
        super().__init__(status_code=compiled.descriptor.status)
        self.compiled = compiled
        self.default_content_type = default_content_type
        self.head_only = head_only

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        channel = ASGIResponseChannel(send, self.default_content_type, head_only=self.head_only)
        delivery = asyncio.create_task(
            dispatch(self.compiled.descriptor, self.compiled.delay_ms, channel)
        )
        watcher = asyncio.create_task(wait_for_disconnect(receive))
        try:
            await asyncio.wait({delivery, watcher}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            delivery.cancel()
            raise
        finally:
            watcher.cancel()

        if not delivery.done():
            delivery.cancel()
            await asyncio.wait({delivery})

        if delivery.cancelled():
            logger.info(
                f"Client disconnected from {scope.get('path')} before the delayed response was sent"
            )
            record_cancelled_response()
            return
        # Re-raises anything the dispatch failed with
        delivery.result()
