from typing import Optional

from sqlalchemy import select

from marketplace_ledger.contracts.nft.models import NFTBalance
from marketplace_ledger.contracts.nft.nft_base import NFTBase
from marketplace_ledger.contracts.nft.nft_enums import (
    INTERFACE_ID_ERC721,
    INTERFACE_ID_ERC721_METADATA,
    NftType,
)
from marketplace_ledger.utils.contract import transaction, view
from marketplace_ledger.utils.errors import Revert, URIQueryNonExistToken
from marketplace_ledger.utils.general_utils import is_zero_address

NOT_OWNER_NOR_APPROVED = "ERC721: caller is not token owner nor approved"
NON_RECEIVER = "ERC721: transfer to non ERC721Receiver implementer"


class ERC721(NFTBase):
    nft_type = NftType.ERC721
    interface_ids = NFTBase.interface_ids | {
        INTERFACE_ID_ERC721,
        INTERFACE_ID_ERC721_METADATA,
    }

    def _owner_of(self, token_id: int) -> Optional[str]:
        row = self.session.scalars(
            select(NFTBalance).where(
                NFTBalance.contract_address == self.address,
                NFTBalance.token_id == token_id,
            )
        ).first()
        return row.holder if row is not None else None

    def _require_minted(self, token_id: int) -> str:
        owner = self._owner_of(token_id)
        if owner is None:
            raise Revert("ERC721: invalid token ID")
        return owner

    def _is_approved_or_owner(self, spender: str, token_id: int) -> bool:
        owner = self._require_minted(token_id)
        return (
            spender == owner
            or self._token(token_id).approved == spender
            or self._is_operator(owner, spender)
        )

    def _mint(self, to: str, token_id: int, uri: str) -> None:
        if is_zero_address(to):
            raise Revert("ERC721: mint to the zero address")
        if self._token(token_id) is not None:
            raise Revert("ERC721: token already minted")
        self._check_receiver(to, NON_RECEIVER)
        token = self._create_token(token_id, uri)
        token.total_supply = 1
        self._credit(token_id, to, 1)
        self.emit("Transfer", sender=None, to=to, token_id=token_id)

    def _transfer(self, sender: str, to: str, token_id: int) -> None:
        if self._owner_of(token_id) != sender:
            raise Revert("ERC721: transfer from incorrect owner")
        if is_zero_address(to):
            raise Revert("ERC721: transfer to the zero address")
        self._token(token_id).approved = None
        self._debit(token_id, sender, 1, "ERC721: transfer from incorrect owner")
        self._credit(token_id, to, 1)
        self.emit("Transfer", sender=sender, to=to, token_id=token_id)

    @view
    def owner_of(self, token_id: int) -> str:
        return self._require_minted(token_id)

    @view
    def balance_of(self, owner: str) -> int:
        if is_zero_address(owner):
            raise Revert("ERC721: address zero is not a valid owner")
        return self._count_holdings(owner)

    @view
    def token_uri(self, token_id: int) -> str:
        token = self._token(token_id)
        if token is None:
            raise URIQueryNonExistToken(token_id)
        return token.uri

    @view
    def get_approved(self, token_id: int) -> Optional[str]:
        self._require_minted(token_id)
        return self._token(token_id).approved

    @transaction
    def approve(self, caller: str, to: str, token_id: int) -> None:
        owner = self._require_minted(token_id)
        if to == owner:
            raise Revert("ERC721: approval to current owner")
        if caller != owner and not self._is_operator(owner, caller):
            raise Revert("ERC721: approve caller is not token owner or approved for all")
        self._token(token_id).approved = to
        self.emit("Approval", owner=owner, approved=to, token_id=token_id)

    @transaction
    def set_approval_for_all(self, caller: str, operator: str, approved: bool) -> None:
        if operator == caller:
            raise Revert("ERC721: approve to caller")
        self._set_operator(caller, operator, approved)

    @transaction
    def transfer_from(self, caller: str, sender: str, to: str, token_id: int) -> None:
        if not self._is_approved_or_owner(caller, token_id):
            raise Revert(NOT_OWNER_NOR_APPROVED)
        self._transfer(sender, to, token_id)

    @transaction
    def safe_transfer_from(
        self, caller: str, sender: str, to: str, token_id: int
    ) -> None:
        if not self._is_approved_or_owner(caller, token_id):
            raise Revert(NOT_OWNER_NOR_APPROVED)
        self._check_receiver(to, NON_RECEIVER)
        self._transfer(sender, to, token_id)
