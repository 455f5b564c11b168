import hashlib
from typing import Optional

ZERO_ADDRESS = "0x" + "0" * 40
BPS_DENOMINATOR = 10000
MAX_UINT256 = 2**256 - 1


def hash(s: str) -> str:
    return hashlib.sha256(s.encode()).hexdigest()


def standardize_address(address: str) -> str:
    address = address.lower().removeprefix("0x")
    return "0x" + address.zfill(40)


def is_zero_address(address: Optional[str]) -> bool:
    return address is None or standardize_address(address) == ZERO_ADDRESS


def derive_address(*parts: object) -> str:
    return standardize_address(hash(":".join(str(part) for part in parts))[-40:])


def bps_of(amount: int, bps: int) -> int:
    return amount * bps // BPS_DENOMINATOR


def to_address(address: Optional[str]) -> str:
    """Canonical form of an address argument; `None` means the native currency."""
    return standardize_address(address or ZERO_ADDRESS)
