"""
Dynamic metadata resolution for GET /metadata/{token_id}.

Pipeline per request:

    Start -> OwnerLookup -> NotMinted                       (terminal, minimal document)
                         -> Owned -> ParallelResolve{pointer, balance, block}
                                  -> Assemble                (terminal, full document)

Only the pointer step has a fallback (the default document). The owner,
balance and block steps either succeed or fail the whole resolution with
MetadataResolutionError. NotMinted is an expected outcome, not an error.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Tuple, Union

from chain.chain_reader import ChainReader, NotMinted
from fetcher import MetadataFetcher
from models import (
    Attribute,
    BlockInfo,
    DocumentDefaults,
    FetchedDocument,
    OwnershipResult,
    ResolvedMetadata,
)
from reputation import compute_reputation

logger = logging.getLogger(__name__)


class Stage(str, Enum):
    START = "start"
    OWNER_LOOKUP = "owner_lookup"
    NOT_MINTED = "not_minted"
    OWNED = "owned"
    PARALLEL_RESOLVE = "parallel_resolve"
    BALANCE = "balance"
    BLOCK = "block"
    ASSEMBLE = "assemble"


class MetadataResolutionError(Exception):
    """A non-optional step failed; the caller gets a generic failure."""

    def __init__(self, token_id: int, stage: Stage):
        super().__init__(f"metadata resolution failed for token {token_id} at {stage.value}")
        self.token_id = token_id
        self.stage = stage


def iso_timestamp(ts: int) -> str:
    """Unix seconds -> 2023-11-14T22:13:20.000Z"""
    dt = datetime.fromtimestamp(ts, tz=timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


class MetadataResolver:
    def __init__(
        self,
        chain: ChainReader,
        fetcher: MetadataFetcher,
        platform: str = "Realife",
    ):
        self.chain = chain
        self.fetcher = fetcher
        self.platform = platform

    def defaults_for(self, token_id: Union[int, str]) -> DocumentDefaults:
        return DocumentDefaults(
            name=f"{self.platform} NFT #{token_id}",
            description=f"Dynamic {self.platform} NFT with live on-chain attributes.",
        )

    def _transition(self, token_id: int, stage: Stage):
        logger.debug("token %d -> %s", token_id, stage.value)

    # ------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------

    async def _lookup_owner(self, token_id: int) -> OwnershipResult:
        try:
            owner = await self.chain.read_owner(token_id)
        except NotMinted:
            return OwnershipResult(owner=None)
        except Exception as e:
            raise MetadataResolutionError(token_id, Stage.OWNER_LOOKUP) from e
        return OwnershipResult(owner=owner)

    async def _resolve_document(self, token_id: int, defaults: DocumentDefaults) -> FetchedDocument:
        """Pointer step. Falls back to the default document on any failure."""
        try:
            pointer = await self.chain.read_token_pointer(token_id)
        except Exception as e:
            logger.warning("tokenURI(%d) read failed, using defaults: %s", token_id, e)
            pointer = None

        try:
            fetched = await self.fetcher.fetch(pointer, defaults)
        except Exception as e:
            logger.warning("metadata fetch for token %d raised, using defaults: %r", token_id, e)
            fetched = self.fetcher.fallback(defaults, f"fetch error: {e.__class__.__name__}")
        if fetched.degraded:
            logger.info("token %d served with default document (%s)", token_id, fetched.diagnostic)
        return fetched

    async def _read_balance(self, token_id: int, owner: str) -> int:
        try:
            return await self.chain.read_balance(owner)
        except Exception as e:
            raise MetadataResolutionError(token_id, Stage.BALANCE) from e

    async def _read_block(self, token_id: int) -> BlockInfo:
        try:
            return await self.chain.read_latest_block()
        except Exception as e:
            raise MetadataResolutionError(token_id, Stage.BLOCK) from e

    async def _parallel_resolve(
        self, token_id: int, owner: str, defaults: DocumentDefaults
    ) -> Tuple[FetchedDocument, int, BlockInfo]:
        tasks = [
            asyncio.ensure_future(self._resolve_document(token_id, defaults)),
            asyncio.ensure_future(self._read_balance(token_id, owner)),
            asyncio.ensure_future(self._read_block(token_id)),
        ]
        try:
            fetched, balance, block = await asyncio.gather(*tasks)
        except BaseException:
            for t in tasks:
                t.cancel()
            raise
        return fetched, balance, block

    # ------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------

    def not_minted_document(self, defaults: DocumentDefaults) -> ResolvedMetadata:
        return ResolvedMetadata(
            name=defaults.name,
            description=defaults.description,
            image=None,
            attributes=[Attribute(trait_type="Status", value="Not minted")],
        )

    def build_attributes(
        self, token_id: int, owner: str, balance: int, block: BlockInfo
    ) -> List[Attribute]:
        rep = compute_reputation(balance)
        attrs = [
            Attribute(trait_type="Platform", value=self.platform),
            Attribute(trait_type="Token ID", value=str(token_id)),
            Attribute(trait_type="Owner", value=owner),
            Attribute(trait_type="Owned NFTs", value=str(balance)),
            Attribute(trait_type="Last Updated", value=iso_timestamp(block.timestamp)),
        ]
        if rep.verified:
            attrs.append(Attribute(trait_type="Verified Creator", value="Yes"))
        attrs.append(Attribute(trait_type="Reputation", value=rep.tier))
        attrs.append(Attribute(trait_type="Reputation Score", value=rep.score, display_type="number"))
        return attrs

    async def resolve(self, token_id: int, defaults: Optional[DocumentDefaults] = None) -> ResolvedMetadata:
        defaults = defaults or self.defaults_for(token_id)
        self._transition(token_id, Stage.START)

        self._transition(token_id, Stage.OWNER_LOOKUP)
        ownership = await self._lookup_owner(token_id)
        if not ownership.minted:
            self._transition(token_id, Stage.NOT_MINTED)
            return self.not_minted_document(defaults)

        self._transition(token_id, Stage.OWNED)
        self._transition(token_id, Stage.PARALLEL_RESOLVE)
        fetched, balance, block = await self._parallel_resolve(token_id, ownership.owner, defaults)

        self._transition(token_id, Stage.ASSEMBLE)
        # fetched documents already carry the defaults for missing fields
        doc = fetched.document
        return ResolvedMetadata(
            name=doc.name,
            description=doc.description,
            image=doc.image,
            attributes=self.build_attributes(token_id, ownership.owner, balance, block),
        )
