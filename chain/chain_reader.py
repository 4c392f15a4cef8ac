# app/chain/chain_reader.py
"""
Read-only chain queries against the deployed ERC-721 token contract.
Used by the metadata resolver; never sends transactions.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

import aiohttp
from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.exceptions import BadFunctionCallOutput, ContractLogicError
from web3.middleware import ExtraDataToPOAMiddleware

from models import BlockInfo
from .abi import ERC721_READ_ABI

logger = logging.getLogger(__name__)

MAX_UINT256 = 2**256 - 1
ZERO_ADDRESS = "0x" + "0" * 40


class NotMinted(Exception):
    """ownerOf reverted: the token was never minted or has been burned."""

    def __init__(self, token_id: int):
        super().__init__(f"token {token_id} is not minted")
        self.token_id = token_id


class ChainReader:
    """
    Wraps the four read calls the resolver needs. Every call is one RPC
    round trip bounded by `timeout`; timeouts surface as asyncio.TimeoutError.
    Safe to share across concurrent requests.
    """

    def __init__(self, w3: AsyncWeb3, contract, timeout: float = 10.0):
        self.w3 = w3
        self.contract = contract
        self.timeout = timeout

    @classmethod
    def from_config(
        cls,
        rpc_url: str,
        contract_address: str,
        *,
        abi: Optional[List[Dict[str, Any]]] = None,
        timeout: float = 10.0,
        poa: bool = False,
    ) -> "ChainReader":
        provider = AsyncHTTPProvider(
            rpc_url,
            request_kwargs={"timeout": aiohttp.ClientTimeout(total=timeout)},
        )
        w3 = AsyncWeb3(provider)
        if poa:
            w3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
        contract = w3.eth.contract(
            address=AsyncWeb3.to_checksum_address(contract_address),
            abi=abi or ERC721_READ_ABI,
        )
        return cls(w3, contract, timeout=timeout)

    async def _bounded(self, awaitable):
        return await asyncio.wait_for(awaitable, timeout=self.timeout)

    async def read_owner(self, token_id: int) -> str:
        if token_id < 0 or token_id > MAX_UINT256:
            raise NotMinted(token_id)
        try:
            owner = await self._bounded(self.contract.functions.ownerOf(token_id).call())
        except ContractLogicError as e:
            logger.debug("ownerOf(%d) reverted: %s", token_id, e)
            raise NotMinted(token_id) from e

        # some non-OZ contracts return the zero address instead of reverting
        if not owner or owner.lower() == ZERO_ADDRESS:
            raise NotMinted(token_id)
        return owner

    async def read_balance(self, address: str) -> int:
        checksum = AsyncWeb3.to_checksum_address(address)
        balance = await self._bounded(self.contract.functions.balanceOf(checksum).call())
        return int(balance)

    async def read_token_pointer(self, token_id: int) -> Optional[str]:
        """Raw tokenURI, or None when it is missing, reverts or is not a string."""
        try:
            pointer = await self._bounded(self.contract.functions.tokenURI(token_id).call())
        except (ContractLogicError, BadFunctionCallOutput) as e:
            logger.info("tokenURI(%d) unavailable: %s", token_id, e)
            return None

        if not isinstance(pointer, str) or not pointer.strip():
            return None
        return pointer.strip()

    async def read_latest_block(self) -> BlockInfo:
        block = await self._bounded(self.w3.eth.get_block("latest"))
        return BlockInfo(number=int(block["number"]), timestamp=int(block["timestamp"]))

    async def aclose(self):
        await self.w3.provider.disconnect()
