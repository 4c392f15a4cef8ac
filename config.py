# app/config.py
from dotenv import load_dotenv
import logging
import os

load_dotenv()

logger = logging.getLogger(__name__)


def _flag(name, default="false"):
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# ------------------------------------------------------------
# Chain / contract
# ------------------------------------------------------------
RPC_URL = os.getenv(
    "RPC_URL",
    "https://api.avax-test.network/ext/bc/C/rpc"
)

CONTRACT_ADDRESS = os.getenv("CONTRACT_ADDRESS", "").strip()

# Avalanche and other POA chains need the extraData middleware for get_block
POA_CHAIN = _flag("POA_CHAIN", "true")

# Optional Foundry/Hardhat artifact; minimal ERC-721 ABI is used otherwise
TOKEN_ABI_PATH = os.getenv("TOKEN_ABI_PATH", "")

# ------------------------------------------------------------
# IPFS / pinning
# ------------------------------------------------------------
IPFS_GATEWAY = os.getenv("IPFS_GATEWAY", "https://gateway.pinata.cloud/ipfs/")
PINATA_API_URL = os.getenv("PINATA_API_URL", "https://api.pinata.cloud")
PINATA_JWT = os.getenv("PINATA_JWT", "").strip()

# ------------------------------------------------------------
# Timeouts (seconds)
# ------------------------------------------------------------
CHAIN_TIMEOUT = float(os.getenv("CHAIN_TIMEOUT", "10"))
FETCH_TIMEOUT = float(os.getenv("FETCH_TIMEOUT", "5"))
PIN_TIMEOUT = float(os.getenv("PIN_TIMEOUT", "60"))

# ------------------------------------------------------------
# App
# ------------------------------------------------------------
PLATFORM_NAME = os.getenv("PLATFORM_NAME", "Realife")
METADATA_CACHE_SECONDS = int(os.getenv("METADATA_CACHE_SECONDS", "30"))
CORS_ALLOW_ORIGINS = [
    o.strip() for o in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",") if o.strip()
]
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def log_config():
    logger.info("Config loaded:")
    logger.info("  RPC_URL: %s%s", RPC_URL[:48], "…" if len(RPC_URL) > 48 else "")
    logger.info("  CONTRACT_ADDRESS: %s", CONTRACT_ADDRESS or "<missing>")
    logger.info("  POA_CHAIN: %s", POA_CHAIN)
    logger.info("  IPFS_GATEWAY: %s", IPFS_GATEWAY)
    logger.info("  PINATA_JWT: %s", "<set>" if PINATA_JWT else "<missing>")
    logger.info(
        "  Timeouts: chain=%.1fs fetch=%.1fs pin=%.1fs",
        CHAIN_TIMEOUT, FETCH_TIMEOUT, PIN_TIMEOUT,
    )
