import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from web3 import Web3
from web3.exceptions import BadFunctionCallOutput, ContractLogicError

from chain.chain_reader import ChainReader, NotMinted, MAX_UINT256, ZERO_ADDRESS

OWNER = "0xAbC0000000000000000000000000000000000042"


def _reader(owner=OWNER, balance=3, uri="ipfs://QmDoc", block=None, timeout=1.0):
    contract = MagicMock()
    for fn, value in (("ownerOf", owner), ("balanceOf", balance), ("tokenURI", uri)):
        call = AsyncMock(side_effect=value) if isinstance(value, Exception) else AsyncMock(return_value=value)
        getattr(contract.functions, fn).return_value.call = call

    w3 = MagicMock()
    w3.eth.get_block = AsyncMock(return_value=block or {"number": 123, "timestamp": 1_700_000_000})
    return ChainReader(w3, contract, timeout=timeout), contract, w3


# ────────────────────────────────────────────────────────────
# ownerOf
# ────────────────────────────────────────────────────────────

def test_read_owner():
    reader, contract, _ = _reader()
    assert asyncio.run(reader.read_owner(42)) == OWNER
    contract.functions.ownerOf.assert_called_once_with(42)


def test_revert_means_not_minted():
    reader, _, _ = _reader(owner=ContractLogicError("execution reverted: ERC721NonexistentToken"))
    with pytest.raises(NotMinted) as exc:
        asyncio.run(reader.read_owner(7))
    assert exc.value.token_id == 7


def test_zero_address_means_not_minted():
    reader, _, _ = _reader(owner=ZERO_ADDRESS)
    with pytest.raises(NotMinted):
        asyncio.run(reader.read_owner(7))


def test_out_of_range_id_skips_rpc():
    reader, contract, _ = _reader()
    with pytest.raises(NotMinted):
        asyncio.run(reader.read_owner(MAX_UINT256 + 1))
    contract.functions.ownerOf.assert_not_called()


def test_other_owner_failures_propagate():
    reader, _, _ = _reader(owner=ConnectionError("rpc down"))
    with pytest.raises(ConnectionError):
        asyncio.run(reader.read_owner(1))


def test_owner_timeout():
    async def slow():
        await asyncio.sleep(1)
        return OWNER

    reader, contract, _ = _reader(timeout=0.01)
    contract.functions.ownerOf.return_value.call = slow
    with pytest.raises(asyncio.TimeoutError):
        asyncio.run(reader.read_owner(1))


# ────────────────────────────────────────────────────────────
# balanceOf / tokenURI / latest block
# ────────────────────────────────────────────────────────────

def test_read_balance_checksums_address():
    reader, contract, _ = _reader(balance=6)
    assert asyncio.run(reader.read_balance(OWNER.lower())) == 6
    contract.functions.balanceOf.assert_called_once_with(Web3.to_checksum_address(OWNER))


def test_read_token_pointer():
    reader, _, _ = _reader(uri="  ipfs://QmDoc  ")
    assert asyncio.run(reader.read_token_pointer(1)) == "ipfs://QmDoc"


@pytest.mark.parametrize(
    "uri",
    ["", "   ", None, 12345, ContractLogicError("reverted"), BadFunctionCallOutput("bad output")],
)
def test_missing_or_malformed_pointer_is_none(uri):
    reader, _, _ = _reader(uri=uri)
    assert asyncio.run(reader.read_token_pointer(1)) is None


def test_pointer_network_failure_propagates():
    reader, _, _ = _reader(uri=ConnectionError("rpc down"))
    with pytest.raises(ConnectionError):
        asyncio.run(reader.read_token_pointer(1))


def test_read_latest_block():
    reader, _, w3 = _reader(block={"number": 99, "timestamp": 1_700_000_000, "hash": b"\x00"})
    block = asyncio.run(reader.read_latest_block())
    assert block.number == 99
    assert block.timestamp == 1_700_000_000
    w3.eth.get_block.assert_awaited_once_with("latest")
