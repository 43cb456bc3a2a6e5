"""Address and unit helpers shared by the chain and the auction engine."""

from decimal import Decimal
from typing import Union

from eth_account import Account
from eth_utils import is_address, to_checksum_address
from web3 import Web3
from web3.constants import ADDRESS_ZERO

from ..core.exceptions import InvalidAddress

ZERO_ADDRESS = to_checksum_address(ADDRESS_ZERO)


def normalize_address(address: str) -> str:
    """Return the EIP-55 checksummed form of ``address``."""
    if not isinstance(address, str) or not is_address(address):
        raise InvalidAddress(f"Not a valid address: {address!r}")
    return to_checksum_address(address)


def is_zero_address(address: str) -> bool:
    return normalize_address(address) == ZERO_ADDRESS


def derive_address(label: str, nonce: int) -> str:
    """Deterministic address from a label and a nonce (keccak, last 20 bytes)."""
    digest = Web3.keccak(text=f"{label}:{nonce}")
    return to_checksum_address("0x" + bytes(digest[-20:]).hex())


def create_account_address() -> str:
    """Address of a freshly generated keypair."""
    return Account.create().address


def eth_to_wei(amount: Union[int, float, str, Decimal]) -> int:
    """Convert an ETH amount to wei. Floats go through their repr to stay exact."""
    if isinstance(amount, float):
        amount = Decimal(repr(amount))
    return int(Web3.to_wei(Decimal(str(amount)), "ether"))


def wei_to_eth(amount: int) -> Decimal:
    return Decimal(Web3.from_wei(amount, "ether"))
