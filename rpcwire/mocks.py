"""Mock WebSocket and HTTP endpoints that send hardcoded JSON-RPC payloads."""

from __future__ import annotations

import asyncio
import base64
import hashlib
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Union

import aiohttp
from aiohttp import web

from rpcwire.error import CallFailedError
from rpcwire.payloads import to_ws_uri_string

logger = logging.getLogger(__name__)

Address = tuple[str, int]

_WS_GUID = "258EAFA5-E914-47DA-95CA-C5AB0DC85B11"
_TICK_SECONDS = 0.2

_OP_CONTINUATION = 0x0
_OP_TEXT = 0x1
_OP_BINARY = 0x2
_OP_CLOSE = 0x8
_OP_PING = 0x9
_OP_PONG = 0xA

_BACKGROUND: set[asyncio.Task[None]] = set()


@dataclass
class TestContext:
    """A method context whose checks either succeed or fail.

    Every check is recorded in ``checks`` as ``True`` (passed) or ``False`` (failed).
    """

    __test__ = False

    failure_message: str = "RPC context failed"
    checks: list[bool] = field(default_factory=list)

    def ok(self) -> None:
        """Record a passing check."""
        self.checks.append(True)

    def err(self) -> None:
        """Record a failing check and raise the way a failing method would."""
        self.checks.append(False)
        raise CallFailedError(self.failure_message)


@dataclass
class HttpResponse:
    """Status, headers and decoded body of an HTTP response."""

    status: int
    headers: Mapping[str, str]
    body: str


class WebSocketTestError(Exception):
    """The test WebSocket connection failed."""


class RedirectedError(WebSocketTestError):
    """The server answered the handshake with a redirect."""

    def __init__(self, location: str | None) -> None:
        self.location = location
        super().__init__(f"handshake redirected to {location!r}")


class RejectedError(WebSocketTestError):
    """The server rejected the handshake with a status code."""

    def __init__(self, status_code: int) -> None:
        self.status_code = status_code
        super().__init__(f"handshake rejected with status code {status_code}")


@dataclass(frozen=True)
class ResponseMode:
    """Answer every request with ``response``."""

    response: str


@dataclass(frozen=True)
class SubscriptionMode:
    """Answer requests with ``subscription_id``; push ``subscription_response`` when idle."""

    subscription_id: str
    subscription_response: str


@dataclass(frozen=True)
class NotificationMode:
    """Ignore requests; push ``notification`` when idle."""

    notification: str


ServerMode = Union[ResponseMode, SubscriptionMode, NotificationMode]


def _reply_to_request(mode: ServerMode) -> str | None:
    match mode:
        case ResponseMode(response=response):
            return response
        case SubscriptionMode(subscription_id=subscription_id):
            return subscription_id
    return None


def _reply_on_tick(mode: ServerMode) -> str | None:
    match mode:
        case SubscriptionMode(subscription_response=subscription_response):
            return subscription_response
        case NotificationMode(notification=notification):
            return notification
    return None


def _apply_mask(data: bytes, mask: bytes) -> bytes:
    if not data:
        return b""
    stream = (mask * (len(data) // 4 + 1))[: len(data)]
    mixed = int.from_bytes(data, "big") ^ int.from_bytes(stream, "big")
    return mixed.to_bytes(len(data), "big")


def _encode_frame(opcode: int, payload: bytes) -> bytes:
    size = len(payload)
    if size < 126:
        length = bytes([0x80 | size])
    elif size < 1 << 16:
        length = bytes([0x80 | 126]) + size.to_bytes(2, "big")
    else:
        length = bytes([0x80 | 127]) + size.to_bytes(8, "big")
    mask = os.urandom(4)
    return bytes([0x80 | opcode]) + length + mask + _apply_mask(payload, mask)


def _accept_key(key: str) -> str:
    digest = hashlib.sha1((key + _WS_GUID).encode("ascii")).digest()
    return base64.b64encode(digest).decode("ascii")


def _parse_response_head(head: bytes) -> tuple[int, dict[str, str]]:
    lines = head.decode("latin-1").split("\r\n")
    parts = lines[0].split(" ", 2)
    if len(parts) < 2 or not parts[0].startswith("HTTP/"):
        raise WebSocketTestError(f"malformed status line: {lines[0]!r}")
    try:
        status = int(parts[1])
    except ValueError as exc:
        raise WebSocketTestError(f"malformed status code: {parts[1]!r}") from exc
    headers: dict[str, str] = {}
    for line in lines[1:]:
        name, sep, value = line.partition(":")
        if sep:
            headers.setdefault(name.strip().lower(), value.strip())
    return status, headers


async def _close_writer(writer: asyncio.StreamWriter) -> None:
    writer.close()
    try:
        await writer.wait_closed()
    except OSError:
        pass


class WebSocketTestClient:
    """A bare WebSocket client that sends arbitrary payloads, good or bad."""

    def __init__(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        self._reader = reader
        self._writer = writer
        self._closed = False

    def __repr__(self) -> str:
        return "WebSocketTestClient"

    @classmethod
    async def connect(cls, addr: Address) -> WebSocketTestClient:
        """Open a connection to ``(host, port)`` and perform the handshake on ``/``."""
        host, port = addr[0], addr[1]
        try:
            reader, writer = await asyncio.open_connection(host, port)
        except OSError as exc:
            raise WebSocketTestError(f"could not connect to {host}:{port}: {exc}") from exc
        key = base64.b64encode(os.urandom(16)).decode("ascii")
        request = (
            "GET / HTTP/1.1\r\n"
            "Host: test-client\r\n"
            "Upgrade: websocket\r\n"
            "Connection: Upgrade\r\n"
            f"Sec-WebSocket-Key: {key}\r\n"
            "Sec-WebSocket-Version: 13\r\n"
            "\r\n"
        )
        try:
            writer.write(request.encode("ascii"))
            await writer.drain()
            head = await reader.readuntil(b"\r\n\r\n")
            status, headers = _parse_response_head(head)
        except (OSError, asyncio.IncompleteReadError, asyncio.LimitOverrunError) as exc:
            await _close_writer(writer)
            raise WebSocketTestError(f"handshake failed: {exc}") from exc
        except WebSocketTestError:
            await _close_writer(writer)
            raise
        if status == 101:
            if headers.get("sec-websocket-accept") != _accept_key(key):
                await _close_writer(writer)
                raise WebSocketTestError("handshake failed: invalid Sec-WebSocket-Accept")
            return cls(reader, writer)
        await _close_writer(writer)
        if 300 <= status < 400:
            raise RedirectedError(headers.get("location"))
        raise RejectedError(status)

    async def __aenter__(self) -> WebSocketTestClient:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def _send_frame(self, opcode: int, payload: bytes) -> None:
        try:
            self._writer.write(_encode_frame(opcode, payload))
            await self._writer.drain()
        except OSError as exc:
            raise WebSocketTestError(f"send failed: {exc}") from exc

    async def _read_exactly(self, size: int) -> bytes:
        try:
            return await self._reader.readexactly(size)
        except (OSError, asyncio.IncompleteReadError) as exc:
            raise WebSocketTestError("connection closed") from exc

    async def _read_frame(self) -> tuple[bool, int, bytes]:
        head = await self._read_exactly(2)
        fin = bool(head[0] & 0x80)
        opcode = head[0] & 0x0F
        masked = bool(head[1] & 0x80)
        length = head[1] & 0x7F
        if length == 126:
            length = int.from_bytes(await self._read_exactly(2), "big")
        elif length == 127:
            length = int.from_bytes(await self._read_exactly(8), "big")
        mask = await self._read_exactly(4) if masked else None
        payload = await self._read_exactly(length)
        if mask is not None:
            payload = _apply_mask(payload, mask)
        return fin, opcode, payload

    async def _receive_data(self) -> bytes:
        message: bytearray | None = None
        while True:
            fin, opcode, payload = await self._read_frame()
            if opcode == _OP_PING:
                await self._send_frame(_OP_PONG, payload)
                continue
            if opcode == _OP_PONG:
                continue
            if opcode == _OP_CLOSE:
                raise WebSocketTestError("connection closed by the server")
            if opcode in (_OP_TEXT, _OP_BINARY):
                if message is not None:
                    raise WebSocketTestError("new data frame inside a fragmented message")
                message = bytearray(payload)
            elif opcode == _OP_CONTINUATION:
                if message is None:
                    raise WebSocketTestError("continuation frame without a message")
                message += payload
            else:
                raise WebSocketTestError(f"unknown opcode {opcode:#x}")
            if fin:
                return bytes(message)

    async def send_request_text(self, msg: str) -> str:
        """Send a text message and return the next data message as text."""
        await self._send_frame(_OP_TEXT, msg.encode("utf-8"))
        return (await self._receive_data()).decode("utf-8")

    async def send_request_binary(self, msg: bytes) -> str:
        """Send a binary message and return the next data message as text."""
        await self._send_frame(_OP_BINARY, bytes(msg))
        return (await self._receive_data()).decode("utf-8")

    async def close(self) -> None:
        """Send a close frame and drop the connection."""
        if self._closed:
            return
        self._closed = True
        try:
            await self._send_frame(_OP_CLOSE, (1000).to_bytes(2, "big"))
        finally:
            await _close_writer(self._writer)


async def _start_app(app: web.Application, addr: Address) -> tuple[web.AppRunner, Address]:
    runner = web.AppRunner(app, access_log=None)
    await runner.setup()
    site = web.TCPSite(runner, addr[0], addr[1])
    try:
        await site.start()
    except OSError:
        await runner.cleanup()
        raise
    bound = runner.addresses[0]
    return runner, (bound[0], bound[1])


async def _serve_until_cancelled(runner: web.AppRunner) -> None:
    try:
        await asyncio.Event().wait()
    finally:
        await runner.cleanup()


async def _start_background(app: web.Application) -> Address:
    runner, local = await _start_app(app, ("127.0.0.1", 0))
    task = asyncio.ensure_future(_serve_until_cancelled(runner))
    _BACKGROUND.add(task)
    task.add_done_callback(_BACKGROUND.discard)
    return local


class WebSocketTestServer:
    """A WebSocket server that answers with hardcoded JSON-RPC payloads."""

    def __init__(self, runner: web.AppRunner, local_addr: Address, exit_event: asyncio.Event) -> None:
        self._runner = runner
        self._local_addr = local_addr
        self._exit = exit_event
        self._closed = False

    @classmethod
    async def _start(cls, addr: Address, mode: ServerMode) -> WebSocketTestServer:
        exit_event = asyncio.Event()

        async def handler(request: web.Request) -> web.StreamResponse:
            ws = web.WebSocketResponse()
            if not ws.can_prepare(request).ok:
                return web.Response(status=400)
            await ws.prepare(request)
            await _connection_task(ws, mode, exit_event)
            return ws

        app = web.Application()
        app.router.add_route("GET", "/{tail:.*}", handler)
        runner, local = await _start_app(app, addr)
        return cls(runner, local, exit_event)

    @classmethod
    async def with_hardcoded_response(cls, addr: Address, response: str) -> WebSocketTestServer:
        """Answer every request on every connection with ``response``."""
        return await cls._start(addr, ResponseMode(response))

    @classmethod
    async def with_hardcoded_notification(cls, addr: Address, notification: str) -> WebSocketTestServer:
        """Push ``notification`` whenever a connection has been idle for a while."""
        return await cls._start(addr, NotificationMode(notification))

    @classmethod
    async def with_hardcoded_subscription(
        cls, addr: Address, subscription_id: str, subscription_response: str
    ) -> WebSocketTestServer:
        """Answer requests with ``subscription_id`` and push ``subscription_response`` when idle."""
        return await cls._start(addr, SubscriptionMode(subscription_id, subscription_response))

    def local_addr(self) -> Address:
        """The ``(host, port)`` the server listens on."""
        return self._local_addr

    async def close(self) -> None:
        """Close every connection and stop listening."""
        if self._closed:
            return
        self._closed = True
        self._exit.set()
        await self._runner.cleanup()

    async def __aenter__(self) -> WebSocketTestServer:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()


async def _connection_task(ws: web.WebSocketResponse, mode: ServerMode, exit_event: asyncio.Event) -> None:
    receive = asyncio.ensure_future(ws.receive())
    exit_wait = asyncio.ensure_future(exit_event.wait())
    try:
        while True:
            done, _ = await asyncio.wait(
                {receive, exit_wait}, timeout=_TICK_SECONDS, return_when=asyncio.FIRST_COMPLETED
            )
            if exit_wait in done:
                break
            if receive in done:
                msg = receive.result()
                if msg.type not in (aiohttp.WSMsgType.TEXT, aiohttp.WSMsgType.BINARY):
                    break
                # The contents do not matter; only the configured reply is sent.
                reply = _reply_to_request(mode)
                if reply is not None:
                    await ws.send_str(reply)
                receive = asyncio.ensure_future(ws.receive())
            else:
                pushed = _reply_on_tick(mode)
                if pushed is not None:
                    await ws.send_str(pushed)
    except (ConnectionError, RuntimeError) as exc:
        logger.warning("send on test connection failed: %r", exc)
    finally:
        for task in (receive, exit_wait):
            task.cancel()
        await asyncio.gather(receive, exit_wait, return_exceptions=True)
        await ws.close()


def _is_upgrade_request(request: web.Request) -> bool:
    upgrade = request.headers.get("Upgrade", "").lower()
    connection = {token.strip().lower() for token in request.headers.get("Connection", "").split(",")}
    return upgrade == "websocket" and "upgrade" in connection


async def ws_server_with_redirect(other_server: str) -> str:
    """Start a server that redirects WebSocket upgrades; returns its ``ws://`` URI.

    ``/myblock/two`` redirects to ``other_server``, ``/myblock/one`` to ``two``
    and every other path to ``/myblock/one``.
    """

    async def handler(request: web.Request) -> web.Response:
        if not _is_upgrade_request(request):
            raise web.HTTPBadRequest(text="expect upgrade to WS")
        logger.debug("redirecting %s", request.path)
        if request.path == "/myblock/two":
            location = other_server
        elif request.path == "/myblock/one":
            location = "two"
        else:
            location = "/myblock/one"
        return web.Response(status=301, headers={"Location": location})

    app = web.Application()
    app.router.add_route("*", "/{tail:.*}", handler)
    return to_ws_uri_string(await _start_background(app))


async def http_request(body: str | bytes, uri: str) -> HttpResponse:
    """POST a JSON body to ``uri`` and return the response."""
    async with aiohttp.ClientSession() as session:
        async with session.post(uri, data=body, headers={"Content-Type": "application/json"}) as resp:
            raw = await resp.read()
            return HttpResponse(resp.status, resp.headers, raw.decode("utf-8"))


async def http_server_with_hardcoded_response(response: str) -> Address:
    """Start an HTTP server that answers every request with ``response``."""

    async def handler(request: web.Request) -> web.Response:
        return web.Response(body=response.encode("utf-8"))

    app = web.Application()
    app.router.add_route("*", "/{tail:.*}", handler)
    return await _start_background(app)