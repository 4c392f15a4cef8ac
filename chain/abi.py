# app/chain/abi.py
"""
ABI for the token contract.
Loads from a Foundry/Hardhat build artifact when TOKEN_ABI_PATH is set,
otherwise falls back to the minimal read-only ERC-721 surface below.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Dict, Any, Optional

logger = logging.getLogger(__name__)

ERC721_READ_ABI: List[Dict[str, Any]] = [
    {
        "type": "function",
        "name": "ownerOf",
        "inputs": [{"name": "tokenId", "type": "uint256"}],
        "outputs": [{"name": "", "type": "address"}],
        "stateMutability": "view",
    },
    {
        "type": "function",
        "name": "balanceOf",
        "inputs": [{"name": "owner", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
    },
    {
        "type": "function",
        "name": "tokenURI",
        "inputs": [{"name": "tokenId", "type": "uint256"}],
        "outputs": [{"name": "", "type": "string"}],
        "stateMutability": "view",
    },
]


def load_abi(path: Optional[str]) -> List[Dict[str, Any]]:
    """
    Load an ABI from a build artifact.

    Accepts either a bare ABI list or an artifact object with an "abi" key
    (Foundry's out/<Name>.sol/<Name>.json, Hardhat's artifacts/...).
    Missing or unusable artifacts fall back to ERC721_READ_ABI.
    """
    if not path:
        return ERC721_READ_ABI

    artifact = Path(path)
    if not artifact.exists():
        logger.warning("ABI artifact not found: %s (using ERC-721 defaults)", artifact)
        return ERC721_READ_ABI

    with artifact.open() as f:
        data = json.load(f)

    abi = data.get("abi") if isinstance(data, dict) else data
    if not isinstance(abi, list) or not abi:
        raise ValueError(f"No usable ABI in {artifact}")

    names = {entry.get("name") for entry in abi if entry.get("type") == "function"}
    missing = {"ownerOf", "balanceOf", "tokenURI"} - names
    if missing:
        raise ValueError(f"ABI in {artifact} lacks {sorted(missing)}")

    return abi
