from typing import ClassVar, Optional

from sqlalchemy import func, select

from marketplace_ledger.contracts.nft.models import (
    NFTBalance,
    NFTCollectionInfo,
    NFTOperatorApproval,
    NFTTokenInfo,
)
from marketplace_ledger.contracts.nft.nft_enums import (
    INTERFACE_ID_ERC165,
    INTERFACE_ID_ERC2981,
    NftType,
)
from marketplace_ledger.utils.contract import Contract, view
from marketplace_ledger.utils.errors import (
    InvalidAmount,
    Revert,
    URIQueryNonExistToken,
)
from marketplace_ledger.utils.general_utils import (
    ZERO_ADDRESS,
    BPS_DENOMINATOR,
    bps_of,
    is_zero_address,
)


class NFTBase(Contract):
    """Storage and ERC-2981 royalty logic shared by the ERC-721 and ERC-1155 tokens."""

    nft_type: ClassVar[NftType]
    interface_ids: ClassVar[frozenset[str]] = frozenset(
        {INTERFACE_ID_ERC165, INTERFACE_ID_ERC2981}
    )

    def _init_collection(
        self,
        name: str,
        symbol: str,
        owner: Optional[str] = None,
        factory: Optional[str] = None,
        registry: Optional[str] = None,
        max_total_supply: Optional[int] = None,
        max_batch: Optional[int] = None,
    ) -> NFTCollectionInfo:
        return self.store(
            NFTCollectionInfo(
                address=self.address,
                nft_type=int(self.nft_type),
                name=name,
                symbol=symbol,
                owner=owner,
                factory=factory,
                registry_address=registry,
                token_counter=0,
                max_total_supply=max_total_supply,
                max_batch=max_batch,
                default_royalty_receiver=None,
                default_royalty_bps=None,
            )
        )

    def _info(self) -> NFTCollectionInfo:
        return self.session.get(NFTCollectionInfo, self.address)

    def _token(self, token_id: int) -> Optional[NFTTokenInfo]:
        return self.session.get(NFTTokenInfo, (self.address, token_id))

    def _next_token_id(self) -> int:
        info = self._info()
        info.token_counter += 1
        return info.token_counter

    def _balance_row(self, token_id: int, holder: str) -> Optional[NFTBalance]:
        return self.session.get(NFTBalance, (self.address, token_id, holder))

    def _credit(self, token_id: int, holder: str, amount: int) -> None:
        if amount < 0:
            raise InvalidAmount(amount)
        row = self._balance_row(token_id, holder)
        if row is None:
            self.store(
                NFTBalance(
                    contract_address=self.address,
                    token_id=token_id,
                    holder=holder,
                    amount=amount,
                )
            )
        else:
            row.amount += amount

    def _debit(self, token_id: int, holder: str, amount: int, reason: str) -> None:
        if amount < 0:
            raise InvalidAmount(amount)
        row = self._balance_row(token_id, holder)
        if row is None or row.amount < amount:
            raise Revert(reason)
        if row.amount == amount:
            self.session.delete(row)
            self.session.flush()
        else:
            row.amount -= amount

    def _create_token(self, token_id: int, uri: str) -> NFTTokenInfo:
        return self.store(
            NFTTokenInfo(
                contract_address=self.address,
                token_id=token_id,
                uri=uri,
                total_supply=0,
                approved=None,
                royalty_receiver=None,
                royalty_bps=None,
            )
        )

    def _set_token_uri(self, token_id: int, uri: str) -> None:
        token = self._token(token_id)
        if token is None:
            raise URIQueryNonExistToken(token_id)
        token.uri = uri
        self.emit("URI", value=uri, token_id=token_id)

    def _check_receiver(self, to: str, reason: str) -> None:
        if self.ledger.is_contract(to) and not self.contract_at(to).accepts_nft:
            raise Revert(reason)

    def _is_operator(self, owner: str, operator: str) -> bool:
        approval = self.session.get(
            NFTOperatorApproval, (self.address, owner, operator)
        )
        return approval is not None and approval.approved

    def _set_operator(self, owner: str, operator: str, approved: bool) -> None:
        approval = self.session.get(
            NFTOperatorApproval, (self.address, owner, operator)
        )
        if approval is None:
            self.store(
                NFTOperatorApproval(
                    contract_address=self.address,
                    owner=owner,
                    operator=operator,
                    approved=approved,
                )
            )
        else:
            approval.approved = approved
        self.emit("ApprovalForAll", owner=owner, operator=operator, approved=approved)

    # ERC-2981
    @staticmethod
    def _validate_royalty(receiver: Optional[str], royalty_bps: int) -> None:
        if royalty_bps > BPS_DENOMINATOR:
            raise Revert("ERC2981: royalty fee will exceed salePrice")
        if royalty_bps > 0 and is_zero_address(receiver):
            raise Revert("ERC2981: invalid receiver")

    def _set_default_royalty(self, receiver: Optional[str], royalty_bps: int) -> None:
        self._validate_royalty(receiver, royalty_bps)
        info = self._info()
        info.default_royalty_receiver = receiver
        info.default_royalty_bps = royalty_bps

    def _set_token_royalty(self, token_id: int, receiver: str, royalty_bps: int) -> None:
        self._validate_royalty(receiver, royalty_bps)
        token = self._token(token_id)
        token.royalty_receiver = receiver
        token.royalty_bps = royalty_bps

    @view
    def royalty_info(self, token_id: int, sale_price: int) -> tuple[str, int]:
        token = self._token(token_id)
        if token is not None and token.royalty_bps is not None:
            receiver, royalty_bps = token.royalty_receiver, token.royalty_bps
        else:
            info = self._info()
            receiver = info.default_royalty_receiver
            royalty_bps = info.default_royalty_bps or 0
        if is_zero_address(receiver):
            return ZERO_ADDRESS, 0
        return receiver, bps_of(sale_price, royalty_bps)

    @view
    def supports_interface(self, interface_id: str) -> bool:
        return interface_id.lower() in self.interface_ids

    @view
    def name(self) -> str:
        return self._info().name

    @view
    def symbol(self) -> str:
        return self._info().symbol

    @view
    def get_token_counter(self) -> int:
        return self._info().token_counter

    @view
    def exists(self, token_id: int) -> bool:
        return self._token(token_id) is not None

    @view
    def total_supply(self, token_id: int) -> int:
        token = self._token(token_id)
        return token.total_supply if token is not None else 0

    @view
    def is_approved_for_all(self, owner: str, operator: str) -> bool:
        return self._is_operator(owner, operator)

    @view
    def tokens_of(self, holder: str) -> dict[int, int]:
        """Token ids (and amounts) `holder` owns in this collection."""
        rows = self.session.scalars(
            select(NFTBalance).where(
                NFTBalance.contract_address == self.address,
                NFTBalance.holder == holder,
            )
        )
        return {row.token_id: row.amount for row in rows}

    def _count_holdings(self, holder: str) -> int:
        return self.session.scalar(
            select(func.count())
            .select_from(NFTBalance)
            .where(
                NFTBalance.contract_address == self.address,
                NFTBalance.holder == holder,
            )
        )
