"""Tier 2 fixtures: a local aiohttp server speaking the provider API."""

from __future__ import annotations

import json
from dataclasses import dataclass, field

import pytest
from aiohttp import web

from pinguard.gateway import open_gateway
from tests.conftest import TEST_API_KEY, TEST_JWT, make_test_config

STUB_HOST = "127.0.0.1"
STUB_PORT = 9301


@dataclass
class ProviderState:
    """What the stub server has seen, and how it should misbehave next."""

    rate_limit_next: int = 0
    retry_after: str = "1"
    fail_next: int = 0
    pins: dict[str, dict] = field(default_factory=dict)
    hits: list[tuple[str, str]] = field(default_factory=list)
    bodies: list[bytes] = field(default_factory=list)
    uploads: list[dict] = field(default_factory=list)


BASE58 = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"


def _fake_cid(n: int) -> str:
    """Well-formed CIDv0, unique per pin on this server."""
    return "QmStub" + BASE58[n % 58] * 40


@pytest.fixture
async def stub_provider():
    """Local provider API on 127.0.0.1:9301.

    Returns (base_url, state). Requests without the expected credentials
    get a 401.
    """
    state = ProviderState()

    @web.middleware
    async def misbehave(request, handler):
        state.hits.append((request.method, request.path))
        if request.headers.get("pinata_api_key") != TEST_API_KEY:
            return web.json_response({"error": "unauthorized"}, status=401)
        if request.headers.get("Authorization") != f"Bearer {TEST_JWT}":
            return web.json_response({"error": "unauthorized"}, status=401)
        if state.rate_limit_next > 0:
            state.rate_limit_next -= 1
            return web.json_response(
                {"error": "Too Many Requests"},
                status=429,
                headers={"Retry-After": state.retry_after},
            )
        if state.fail_next > 0:
            state.fail_next -= 1
            return web.json_response({"error": "upstream unavailable"}, status=503)
        return await handler(request)

    def _pin(size: int, name: str | None) -> web.Response:
        cid = _fake_cid(len(state.pins) + 1)
        state.pins[cid] = {"size": size, "name": name}
        return web.json_response({
            "IpfsHash": cid,
            "PinSize": size,
            "Timestamp": "2024-01-01T00:00:00.000Z",
        })

    async def pin_json(request):
        raw = await request.read()
        state.bodies.append(raw)
        body = json.loads(raw)
        content = json.dumps(body["pinataContent"]).encode()
        return _pin(len(content), body.get("pinataMetadata", {}).get("name"))

    async def pin_file(request):
        form = await request.post()
        upload = form["file"]
        data = upload.file.read()
        state.uploads.append({
            "filename": upload.filename,
            "data": data,
            "options": json.loads(form.get("pinataOptions", "{}")),
            "metadata": json.loads(form["pinataMetadata"]) if "pinataMetadata" in form else None,
        })
        return _pin(len(data), upload.filename)

    async def pin_list(request):
        rows = [
            {
                "ipfs_pin_hash": cid,
                "size": pin["size"],
                "date_pinned": "2024-01-01T00:00:00.000Z",
                "metadata": {"name": pin["name"]},
            }
            for cid, pin in state.pins.items()
        ]
        return web.json_response({"count": len(rows), "rows": rows})

    async def unpin(request):
        cid = request.match_info["cid"]
        if state.pins.pop(cid, None) is None:
            return web.json_response({"error": "CURRENT_USER_HAS_NOT_PINNED_CID"}, status=404)
        return web.Response(text="OK")

    async def authenticate(request):
        return web.json_response({"message": "Congratulations! You are communicating with the Pinata API!"})

    app = web.Application(middlewares=[misbehave])
    app.router.add_post("/pinning/pinJSONToIPFS", pin_json)
    app.router.add_post("/pinning/pinFileToIPFS", pin_file)
    app.router.add_get("/pinning/pinList", pin_list)
    app.router.add_delete("/pinning/unpin/{cid}", unpin)
    app.router.add_get("/data/testAuthentication", authenticate)

    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, STUB_HOST, STUB_PORT)
    await site.start()
    yield f"http://{STUB_HOST}:{STUB_PORT}", state
    await runner.cleanup()


@pytest.fixture
async def live_gateway(stub_provider, sink):
    """PinningGateway talking to the stub server over real sockets, with real sleeps."""
    base_url, _ = stub_provider
    cfg = make_test_config(base_url=base_url, base_delay_ms=100)
    gw = await open_gateway(cfg, sink=sink)
    yield gw
    await gw.close()
