import logging
from typing import Optional

from sqlalchemy import func, select

from marketplace_ledger.contracts.access.admin import AdminControlled, registry_at
from marketplace_ledger.contracts.access.pausable import Pausable
from marketplace_ledger.contracts.collection_factory.models import (
    CollectionFactoryState,
    CollectionInfo,
    MaxCollectionOfUser,
)
from marketplace_ledger.contracts.nft.nft_enums import NftType, parse_nft_type
from marketplace_ledger.utils.contract import Contract, transaction, view
from marketplace_ledger.utils.contract_type import ContractType
from marketplace_ledger.utils.errors import (
    ExceedMaxCollection,
    InvalidAddress,
    InvalidMaxCollection,
    InvalidMaxCollectionOfUser,
    InvalidMaxTotalSupply,
)
from marketplace_ledger.utils.general_utils import is_zero_address


class CollectionFactory(Pausable, AdminControlled, Contract):
    """Clones per-user ERC-721 / ERC-1155 collections from two templates.

    Creation is capped globally by `max_collection` and per user by
    `max_collection_of_users(user)`, which falls back to `max_collection` unless set.
    """

    contract_type = ContractType.COLLECTION_FACTORY

    @transaction
    def initialize(
        self,
        caller: str,
        template_erc721: str,
        template_erc1155: str,
        registry: str,
        nft_manager: Optional[str],
    ) -> None:
        registry_at(self, registry)
        if is_zero_address(template_erc721) or is_zero_address(template_erc1155):
            raise InvalidAddress(template_erc721, template_erc1155)
        self.store(
            CollectionFactoryState(
                address=self.address,
                registry_address=registry,
                template_erc721=template_erc721,
                template_erc1155=template_erc1155,
                nft_manager=None if is_zero_address(nft_manager) else nft_manager,
                max_collection=self.ledger.config.collection.max_collection,
                max_total_supply=self.ledger.config.collection.max_total_supply,
                collection_counter=0,
            )
        )

    def _state(self) -> CollectionFactoryState:
        return self.session.get(CollectionFactoryState, self.address)

    def registry_address(self) -> str:
        return self._state().registry_address

    def _count_of_user(self, user: str) -> int:
        return self.session.scalar(
            select(func.count())
            .select_from(CollectionInfo)
            .where(
                CollectionInfo.factory_address == self.address,
                CollectionInfo.owner == user,
            )
        )

    @view
    def max_collection(self) -> int:
        return self._state().max_collection

    @view
    def max_total_supply(self) -> int:
        return self._state().max_total_supply

    @view
    def max_collection_of_users(self, user: str) -> int:
        cap = self.session.get(MaxCollectionOfUser, (self.address, user))
        return cap.max_collection if cap is not None else self._state().max_collection

    @view
    def get_collection_length(self) -> int:
        return self._state().collection_counter

    @view
    def get_collection_by_user(self, user: str) -> list[CollectionInfo]:
        return list(
            self.session.scalars(
                select(CollectionInfo)
                .where(
                    CollectionInfo.factory_address == self.address,
                    CollectionInfo.owner == user,
                )
                .order_by(CollectionInfo.collection_id)
            )
        )

    @view
    def check_collection_of_user(self, user: str, collection_address: str) -> bool:
        return (
            self.session.scalars(
                select(CollectionInfo).where(
                    CollectionInfo.factory_address == self.address,
                    CollectionInfo.owner == user,
                    CollectionInfo.collection_address == collection_address,
                )
            ).first()
            is not None
        )

    @view
    def collection_id_to_collection_infos(
        self, collection_id: int
    ) -> Optional[CollectionInfo]:
        return self.session.get(CollectionInfo, (self.address, collection_id))

    @view
    def template_addresses(self) -> tuple[str, str]:
        state = self._state()
        return state.template_erc721, state.template_erc1155

    @view
    def nft_manager(self) -> Optional[str]:
        return self._state().nft_manager

    @transaction
    def set_max_collection(self, caller: str, max_collection: int) -> None:
        self.check_owner_or_admin(caller)
        if max_collection <= 0:
            raise InvalidMaxCollection(max_collection)
        self._state().max_collection = max_collection

    @transaction
    def set_max_total_supply(self, caller: str, max_total_supply: int) -> None:
        self.check_owner_or_admin(caller)
        if max_total_supply <= 0:
            raise InvalidMaxTotalSupply(max_total_supply)
        self._state().max_total_supply = max_total_supply

    @transaction
    def set_max_collection_of_user(
        self, caller: str, user: str, max_collection: int
    ) -> None:
        self.check_owner_or_admin(caller)
        if is_zero_address(user):
            raise InvalidAddress(user)
        if max_collection <= 0:
            raise InvalidMaxCollectionOfUser(max_collection)
        cap = self.session.get(MaxCollectionOfUser, (self.address, user))
        if cap is None:
            self.store(
                MaxCollectionOfUser(
                    factory_address=self.address,
                    user=user,
                    max_collection=max_collection,
                )
            )
        else:
            cap.max_collection = max_collection

    @transaction
    def set_template_address(
        self, caller: str, template_erc721: str, template_erc1155: str
    ) -> None:
        self.check_owner_or_admin(caller)
        if is_zero_address(template_erc721) or is_zero_address(template_erc1155):
            raise InvalidAddress(template_erc721, template_erc1155)
        state = self._state()
        state.template_erc721 = template_erc721
        state.template_erc1155 = template_erc1155

    @transaction
    def set_nft_manager(self, caller: str, nft_manager: str) -> None:
        self.check_owner_or_admin(caller)
        if is_zero_address(nft_manager):
            raise InvalidAddress(nft_manager)
        self._state().nft_manager = nft_manager

    @transaction
    def create(
        self,
        caller: str,
        nft_type: int,
        name: str,
        symbol: str,
        royalty_receiver: Optional[str],
        royalty_bps: int,
    ) -> str:
        self.when_not_paused()
        nft_type = parse_nft_type(nft_type)
        state = self._state()
        if state.collection_counter >= state.max_collection:
            raise ExceedMaxCollection(state.max_collection)
        user_cap = self.max_collection_of_users(caller)
        if self._count_of_user(caller) >= user_cap:
            raise ExceedMaxCollection(user_cap)

        template = (
            state.template_erc721
            if nft_type == NftType.ERC721
            else state.template_erc1155
        )
        collection = self.ledger.clone(
            template,
            self.address,
            caller,
            name,
            symbol,
            state.max_total_supply,
            royalty_receiver,
            royalty_bps,
        )
        if state.nft_manager is not None:
            collection.set_admin_by_factory(self.address, state.nft_manager, True)
        admin = self.admin_contract()
        if admin.is_admin(self.address):
            admin.set_permitted_nft(self.address, collection.address, True)

        state.collection_counter += 1
        collection_id = state.collection_counter
        self.store(
            CollectionInfo(
                factory_address=self.address,
                collection_id=collection_id,
                nft_type=int(nft_type),
                collection_address=collection.address,
                owner=caller,
                transaction_version=self.transaction_version(),
            )
        )
        self.emit(
            "CollectionCreated",
            collection_id=collection_id,
            nft_type=int(nft_type),
            collection_address=collection.address,
            owner=caller,
            name=name,
            symbol=symbol,
        )
        logging.info(
            "[CollectionFactory] Collection created",
            extra={
                "factory_address": self.address,
                "collection_id": collection_id,
                "collection_address": collection.address,
                "owner": caller,
            },
        )
        return collection.address
