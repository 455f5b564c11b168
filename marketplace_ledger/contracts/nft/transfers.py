from typing import Optional

from marketplace_ledger.contracts.nft.erc721 import ERC721
from marketplace_ledger.contracts.nft.erc1155 import ERC1155
from marketplace_ledger.contracts.nft.nft_base import NFTBase
from marketplace_ledger.contracts.nft.nft_enums import NftType
from marketplace_ledger.utils.contract import Contract


def nft_at(contract: Contract, nft_address: Optional[str]) -> Optional[NFTBase]:
    """The NFT contract at `nft_address`, or None when it is not one."""
    if not contract.ledger.is_contract(nft_address):
        return None
    token = contract.contract_at(nft_address)
    if not isinstance(token, NFTBase):
        return None
    return token


def nft_type_of(contract: Contract, nft_address: Optional[str]) -> Optional[NftType]:
    token = nft_at(contract, nft_address)
    return token.nft_type if token is not None else None


def nft_balance(contract: Contract, nft_address: str, holder: str, token_id: int) -> int:
    token = nft_at(contract, nft_address)
    if isinstance(token, ERC721):
        if not token.exists(token_id):
            return 0
        return 1 if token.owner_of(token_id) == holder else 0
    if isinstance(token, ERC1155):
        return token.balance_of(holder, token_id)
    return 0


def transfer_nft(
    contract: Contract,
    nft_address: str,
    sender: str,
    to: str,
    token_id: int,
    amount: int,
) -> None:
    """Moves `amount` of `token_id` with `contract` acting as the operator."""
    token = contract.contract_at(nft_address)
    if isinstance(token, ERC721):
        token.safe_transfer_from(contract.address, sender, to, token_id)
    else:
        token.safe_transfer_from(contract.address, sender, to, token_id, amount)
