from marketplace_ledger.contracts.nft.nft_base import NFTBase
from marketplace_ledger.contracts.nft.nft_enums import (
    INTERFACE_ID_ERC1155,
    INTERFACE_ID_ERC1155_METADATA_URI,
    NftType,
)
from marketplace_ledger.utils.contract import transaction, view
from marketplace_ledger.utils.errors import Revert, URIQueryNonExistToken
from marketplace_ledger.utils.general_utils import is_zero_address

NON_RECEIVER = "ERC1155: transfer to non ERC1155Receiver implementer"


class ERC1155(NFTBase):
    nft_type = NftType.ERC1155
    interface_ids = NFTBase.interface_ids | {
        INTERFACE_ID_ERC1155,
        INTERFACE_ID_ERC1155_METADATA_URI,
    }

    def _mint(self, operator: str, to: str, token_id: int, amount: int, uri: str) -> None:
        if is_zero_address(to):
            raise Revert("ERC1155: mint to the zero address")
        self._check_receiver(to, NON_RECEIVER)
        token = self._token(token_id)
        if token is None:
            token = self._create_token(token_id, uri)
        token.total_supply += amount
        self._credit(token_id, to, amount)
        self.emit(
            "TransferSingle",
            operator=operator,
            sender=None,
            to=to,
            token_id=token_id,
            amount=amount,
        )

    def _balance(self, account: str, token_id: int) -> int:
        row = self._balance_row(token_id, account)
        return row.amount if row is not None else 0

    @view
    def balance_of(self, account: str, token_id: int) -> int:
        if is_zero_address(account):
            raise Revert("ERC1155: address zero is not a valid owner")
        return self._balance(account, token_id)

    @view
    def balance_of_batch(self, accounts: list[str], token_ids: list[int]) -> list[int]:
        if len(accounts) != len(token_ids):
            raise Revert("ERC1155: accounts and ids length mismatch")
        return [
            self._balance(account, token_id)
            for account, token_id in zip(accounts, token_ids)
        ]

    @view
    def uri(self, token_id: int) -> str:
        token = self._token(token_id)
        if token is None:
            raise URIQueryNonExistToken(token_id)
        return token.uri

    @transaction
    def set_approval_for_all(self, caller: str, operator: str, approved: bool) -> None:
        if operator == caller:
            raise Revert("ERC1155: setting approval status for self")
        self._set_operator(caller, operator, approved)

    @transaction
    def safe_transfer_from(
        self, caller: str, sender: str, to: str, token_id: int, amount: int
    ) -> None:
        if caller != sender and not self._is_operator(sender, caller):
            raise Revert("ERC1155: caller is not token owner nor approved")
        if is_zero_address(to):
            raise Revert("ERC1155: transfer to the zero address")
        self._check_receiver(to, NON_RECEIVER)
        if amount > 0:
            self._debit(
                token_id, sender, amount, "ERC1155: insufficient balance for transfer"
            )
            self._credit(token_id, to, amount)
        self.emit(
            "TransferSingle",
            operator=caller,
            sender=sender,
            to=to,
            token_id=token_id,
            amount=amount,
        )
