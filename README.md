# rpcwire

Building blocks for JSON-RPC 2.0 over WebSocket and HTTP, written for asyncio.

## What the package holds

- **Wire types.** `rpcwire.request` has `Request`, `Notification` and
  `InvalidRequest`, plus `serialize_request` and `serialize_notification`.
  `rpcwire.response` has `Response`, `SubscriptionPayload`,
  `SubscriptionPayloadError` and `subscription_response`. `rpcwire.error` has
  `ErrorCode`, `ErrorObject`, `ErrorResponse`, the call errors
  (`CallError`, `InvalidParamsError`, `CallFailedError`, `CustomCallError`), the
  standard error codes and messages, and `reject_too_many_subscriptions` and
  `reject_too_big_request`.
- **Parameters and ids.** `rpcwire.params` has `Params`, which decodes the raw
  parameters of a request, and `ParamsSequence`, which reads positional
  parameters one at a time, with `optional_next` for optional trailing ones.
  An empty array counts as no parameters. `params_to_json` serialises outgoing
  positional or named parameters. `rpcwire.ids` has `parse_version`, `parse_id`
  and `parse_subscription_id`, which check the `"2.0"` marker, request ids and
  subscription ids.
- **Server lifecycle.** `rpcwire.lifecycle` has `StopMonitor`, `ServerHandle`,
  `ShutdownWaiter` and `FutureDriver`, for running a server's background tasks
  and shutting it down once. `ServerHandle.stop` raises `AlreadyStoppedError`
  on a second call. `with_timeout` and `with_default_timeout` (60 seconds) put a
  time limit on an awaitable.
- **Test helpers.** `rpcwire.payloads` builds canned JSON-RPC reply strings,
  such as `ok_response`, `parse_error` and `oversized_request`.
  `rpcwire.mocks` has the following, all built on aiohttp:
  - `WebSocketTestClient`, which sends arbitrary text or binary frames.
  - `WebSocketTestServer`, which answers with a hard-coded response, subscription
    or notification.
  - `ws_server_with_redirect`, a server that answers WebSocket upgrades with
    redirects.
  - `http_request` and `http_server_with_hardcoded_response`.
  - `TestContext`.

## Installation

```
pip install rpcwire
```

For the test suite:

```
pip install "rpcwire[test]"
pytest
```

## Examples

Parse a request and read its parameters:

```python
from rpcwire.request import Request

req = Request.from_json('{"jsonrpc":"2.0","method":"add","params":[1, 2],"id":1}')
seq = req.parsed_params.sequence()
a = seq.next()            # 1
b = seq.next()            # 2
rest = seq.optional_next()  # None: no more parameters
```

Serialise an outgoing call:

```python
from rpcwire.request import serialize_request

serialize_request(1, "subtract", [42, 23])
# '{"jsonrpc":"2.0","id":1,"method":"subtract","params":[42,23]}'
```

Build a successful response or an error response:

```python
from rpcwire.response import Response
from rpcwire.error import ErrorCode, ErrorObject, ErrorResponse

Response(result="ok", id=1).to_json()
# '{"jsonrpc":"2.0","result":"ok","id":1}'

ErrorResponse(ErrorObject.from_code(ErrorCode.from_code(-32603)), 1337).to_json()
# '{"jsonrpc":"2.0","error":{"code":-32603,"message":"Internal error"},"id":1337}'
```

Stop a server and wait until it has finished:

```python
from rpcwire.lifecycle import StopMonitor

monitor = StopMonitor()
handle = monitor.handle()
waiter = handle.stop()   # raises AlreadyStoppedError if stopped before
monitor.close()          # the server marks itself finished
await waiter.wait()
```

Test against a hard-coded WebSocket server:

```python
from rpcwire.mocks import WebSocketTestClient, WebSocketTestServer
from rpcwire.payloads import ok_response

server = await WebSocketTestServer.with_hardcoded_response(
    ("127.0.0.1", 0), ok_response("hello", 1)
)
client = await WebSocketTestClient.connect(server.local_addr())
reply = await client.send_request_text('{"jsonrpc":"2.0","method":"x","id":1}')
await client.close()
await server.close()
```

## What the package does not do

rpcwire has no JSON-RPC server of its own and no client. It has no registry of
methods and it does not dispatch requests to handlers. It does not manage
subscriptions and it applies no limits on connections or resources. The
WebSocket and HTTP servers in `rpcwire.mocks` send back fixed payloads and do
not look at what they receive. The lifecycle classes give a server the means to
shut down, but they do not run a server. There is no command-line program.