"""
Off-chain metadata fetcher.

Turns a tokenURI into an ExternalDocument. Only ipfs:// pointers are
followed (through the configured HTTP gateway). Anything that goes wrong
here is absorbed: the caller always gets a document back, built from the
supplied defaults, plus a diagnostic explaining why.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Optional

import httpx

from models import DocumentDefaults, ExternalDocument, FetchedDocument

logger = logging.getLogger(__name__)

IPFS_SCHEME = "ipfs://"


def ipfs_to_gateway(pointer: Optional[str], gateway_base: str) -> Optional[str]:
    """ipfs://<cid>/<path> -> <gateway_base>/<cid>/<path>; None for any other scheme."""
    if not pointer or not pointer.startswith(IPFS_SCHEME):
        return None
    path = pointer[len(IPFS_SCHEME):]
    # tolerate the redundant ipfs://ipfs/<cid> form
    if path.startswith("ipfs/"):
        path = path[len("ipfs/"):]
    path = path.lstrip("/")
    if not path:
        return None
    return f"{gateway_base.rstrip('/')}/{path}"


def merge_with_defaults(doc: ExternalDocument, defaults: DocumentDefaults) -> ExternalDocument:
    return ExternalDocument(
        name=doc.name or defaults.name,
        description=doc.description or defaults.description,
        image=doc.image,
        attributes=doc.attributes,
    )


class MetadataFetcher:
    def __init__(self, client: httpx.AsyncClient, gateway_base: str, timeout: float = 5.0):
        self.client = client
        self.gateway_base = gateway_base
        self.timeout = timeout

    @classmethod
    def from_config(cls, gateway_base: str, timeout: float = 5.0) -> "MetadataFetcher":
        client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            follow_redirects=True,
            headers={"Accept": "application/json"},
        )
        return cls(client, gateway_base, timeout=timeout)

    def fallback(self, defaults: DocumentDefaults, reason: str) -> FetchedDocument:
        return FetchedDocument(
            document=ExternalDocument(name=defaults.name, description=defaults.description),
            source="fallback",
            diagnostic=reason,
        )

    async def fetch(self, pointer: Optional[str], defaults: DocumentDefaults) -> FetchedDocument:
        if not pointer:
            return self.fallback(defaults, "no token URI")

        url = ipfs_to_gateway(pointer, self.gateway_base)
        if url is None:
            logger.warning("Unsupported token URI scheme: %s", pointer[:80])
            return self.fallback(defaults, f"unsupported token URI: {pointer[:80]}")

        try:
            r = await asyncio.wait_for(self.client.get(url), timeout=self.timeout)
            r.raise_for_status()
            data = r.json()
            if not isinstance(data, dict):
                raise ValueError(f"expected a JSON object, got {type(data).__name__}")
            doc = ExternalDocument.model_validate(data)
        except asyncio.TimeoutError:
            logger.warning("Metadata fetch timed out after %.1fs: %s", self.timeout, url)
            return self.fallback(defaults, "gateway timeout")
        except httpx.HTTPError as e:
            logger.warning("Metadata fetch failed for %s: %s", url, e)
            return self.fallback(defaults, f"gateway error: {e.__class__.__name__}")
        except httpx.InvalidURL as e:
            logger.warning("Unusable gateway URL for %s: %s", pointer[:80], e)
            return self.fallback(defaults, "invalid token URI")
        except ValueError as e:
            # JSONDecodeError and pydantic ValidationError are both ValueErrors
            logger.warning("Malformed metadata document at %s: %s", url, e)
            return self.fallback(defaults, "malformed metadata document")
        except Exception as e:
            logger.warning("Metadata fetch for %s failed unexpectedly: %r", url[:200], e)
            return self.fallback(defaults, f"fetch error: {e.__class__.__name__}")

        return FetchedDocument(document=merge_with_defaults(doc, defaults), source="remote")

    async def aclose(self):
        await self.client.aclose()
