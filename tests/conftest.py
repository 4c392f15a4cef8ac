import json

import httpx
import pytest

from chain.chain_reader import NotMinted
from fetcher import MetadataFetcher
from models import BlockInfo

GATEWAY = "https://gateway.test/ipfs/"
OWNER = "0xAbC0000000000000000000000000000000000042"


class FakeChain:
    """Stands in for ChainReader. owner=None means the token is not minted."""

    def __init__(self, owner=OWNER, balance=0, timestamp=1_700_000_000, pointer=None, fail=()):
        self.owner = owner
        self.balance = balance
        self.timestamp = timestamp
        self.pointer = pointer
        self.fail = set(fail)
        self.calls = []

    def _check(self, step):
        self.calls.append(step)
        if step in self.fail:
            raise RuntimeError(f"{step} RPC failed")

    async def read_owner(self, token_id):
        self._check("owner")
        if self.owner is None:
            raise NotMinted(token_id)
        return self.owner

    async def read_balance(self, address):
        self._check("balance")
        return self.balance

    async def read_token_pointer(self, token_id):
        self._check("pointer")
        return self.pointer

    async def read_latest_block(self):
        self._check("block")
        return BlockInfo(number=1, timestamp=self.timestamp)

    async def aclose(self):
        pass


@pytest.fixture
def make_chain():
    return FakeChain


@pytest.fixture
def make_fetcher():
    """
    Build a MetadataFetcher whose gateway is served from `docs`:
    {path_after_gateway: dict | str | bytes | int status | Exception}.
    Unknown paths return 404.
    """
    def factory(docs=None, timeout=1.0):
        docs = docs or {}

        def handler(request: httpx.Request) -> httpx.Response:
            path = str(request.url).replace(GATEWAY, "", 1)
            body = docs.get(path)
            if body is None:
                return httpx.Response(404)
            if isinstance(body, Exception):
                raise body
            if isinstance(body, int):
                return httpx.Response(body)
            if isinstance(body, (dict, list)):
                return httpx.Response(200, content=json.dumps(body).encode())
            if isinstance(body, str):
                body = body.encode()
            return httpx.Response(200, content=body)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return MetadataFetcher(client, GATEWAY, timeout=timeout)

    return factory
