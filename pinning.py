# app/pinning.py
"""
Pinata pinning client: storeFile / storeJSON -> IPFS CID.

Blocking (requests); called from sync FastAPI routes, which run in
the threadpool.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

import requests

from fetcher import ipfs_to_gateway
from models import PinResult

logger = logging.getLogger(__name__)


class PinningError(Exception):
    pass


class PinningNotConfigured(PinningError):
    pass


class PinningClient:
    def __init__(
        self,
        api_url: str,
        jwt: str,
        gateway_base: str,
        timeout: float = 60.0,
        session: Optional[requests.Session] = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.jwt = jwt
        self.gateway_base = gateway_base
        self.timeout = timeout
        self.session = session or requests.Session()

    @property
    def configured(self) -> bool:
        return bool(self.jwt)

    def _headers(self) -> Dict[str, str]:
        if not self.configured:
            raise PinningNotConfigured("PINATA_JWT not set")
        return {"Authorization": f"Bearer {self.jwt}"}

    def _result(self, r: requests.Response) -> PinResult:
        if r.status_code != 200:
            raise PinningError(f"Pinata returned HTTP {r.status_code}: {r.text[:200]}")
        try:
            cid = r.json().get("IpfsHash")
        except ValueError as e:
            raise PinningError("Pinata returned a non-JSON body") from e
        if not isinstance(cid, str) or not cid:
            raise PinningError("Pinata response has no IpfsHash")

        uri = f"ipfs://{cid}"
        return PinResult(cid=cid, uri=uri, gateway_url=ipfs_to_gateway(uri, self.gateway_base))

    def store_file(self, data: bytes, filename: str) -> PinResult:
        """Pin raw bytes. Returns the CID plus ipfs:// and gateway URLs."""
        if not data:
            raise ValueError("empty file")
        headers = self._headers()
        try:
            r = self.session.post(
                f"{self.api_url}/pinning/pinFileToIPFS",
                headers=headers,
                files={"file": (filename, data)},
                data={"pinataMetadata": json.dumps({"name": filename})},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise PinningError(f"pinFileToIPFS request failed: {e}") from e

        result = self._result(r)
        logger.info("Pinned file %s (%d bytes) -> %s", filename, len(data), result.cid)
        return result

    def store_json(self, content: Dict[str, Any], name: Optional[str] = None) -> PinResult:
        if not isinstance(content, dict) or not content:
            raise ValueError("JSON content must be a non-empty object")
        headers = self._headers()
        body: Dict[str, Any] = {"pinataContent": content}
        if name:
            body["pinataMetadata"] = {"name": name}
        try:
            r = self.session.post(
                f"{self.api_url}/pinning/pinJSONToIPFS",
                headers=headers,
                json=body,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise PinningError(f"pinJSONToIPFS request failed: {e}") from e

        result = self._result(r)
        logger.info("Pinned JSON %s -> %s", name or "<unnamed>", result.cid)
        return result

    def close(self):
        self.session.close()
