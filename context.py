"""
Long-lived clients shared by every request.

Built once in the FastAPI lifespan (main.py), stored on app.state and
handed to routes through the get_context dependency.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import HTTPException, Request

import config
from chain.abi import load_abi
from chain.chain_reader import ChainReader
from fetcher import MetadataFetcher
from pinning import PinningClient
from resolver import MetadataResolver

logger = logging.getLogger(__name__)


@dataclass
class ServiceContext:
    chain: Optional[ChainReader]
    fetcher: MetadataFetcher
    pinning: PinningClient
    resolver: Optional[MetadataResolver]

    async def aclose(self):
        if self.chain is not None:
            await self.chain.aclose()
        await self.fetcher.aclose()
        self.pinning.close()


def build_context() -> ServiceContext:
    fetcher = MetadataFetcher.from_config(config.IPFS_GATEWAY, timeout=config.FETCH_TIMEOUT)
    pinning = PinningClient(
        config.PINATA_API_URL,
        config.PINATA_JWT,
        config.IPFS_GATEWAY,
        timeout=config.PIN_TIMEOUT,
    )

    chain = None
    resolver = None
    if config.CONTRACT_ADDRESS:
        chain = ChainReader.from_config(
            config.RPC_URL,
            config.CONTRACT_ADDRESS,
            abi=load_abi(config.TOKEN_ABI_PATH),
            timeout=config.CHAIN_TIMEOUT,
            poa=config.POA_CHAIN,
        )
        resolver = MetadataResolver(chain, fetcher, platform=config.PLATFORM_NAME)
    else:
        logger.warning("CONTRACT_ADDRESS not set: /metadata is disabled")

    return ServiceContext(chain=chain, fetcher=fetcher, pinning=pinning, resolver=resolver)


def get_context(request: Request) -> ServiceContext:
    ctx = getattr(request.app.state, "ctx", None)
    if ctx is None:
        raise HTTPException(503, "Service not initialized")
    return ctx
