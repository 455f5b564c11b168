import pytest
from prometheus_client import REGISTRY

from marketplace_ledger.contracts.collection_factory.collection_factory import (
    CollectionFactory,
)
from marketplace_ledger.contracts.nft.nft_enums import NftType
from marketplace_ledger.contracts.nft.token_collection import TokenERC721, TokenERC1155
from marketplace_ledger.utils.errors import (
    CallerIsNotFactory,
    CallerIsNotOwnerOrAdmin,
    CloneFailed,
    ExceedMaxCollection,
    ExceedTotalSupply,
    InvalidAddress,
    InvalidArrayInput,
    InvalidMaxBatch,
    InvalidMaxCollection,
    InvalidMaxCollectionOfUser,
    InvalidMaxTotalSupply,
    InvalidNftType,
    Revert,
)
from marketplace_ledger.utils.general_utils import ZERO_ADDRESS


@pytest.fixture
def templates(ledger, owner):
    return (
        ledger.deploy_template(TokenERC721, owner),
        ledger.deploy_template(TokenERC1155, owner),
    )


@pytest.fixture
def nft_manager_account(ledger):
    return ledger.new_account("nft_manager")


@pytest.fixture
def factory(ledger, owner, admin, templates, nft_manager_account):
    template_erc721, template_erc1155 = templates
    return ledger.deploy(
        CollectionFactory,
        owner,
        template_erc721.address,
        template_erc1155.address,
        admin.address,
        nft_manager_account,
    )


def create_collection(factory, user, nft_type=NftType.ERC721, receiver=None, bps=0):
    return factory.create(user, nft_type, "Collection", "COL", receiver, bps)


def test_default_state(factory, templates, nft_manager_account):
    assert factory.max_collection() == 5
    assert factory.max_total_supply() == 100
    assert factory.get_collection_length() == 0
    assert factory.template_addresses() == tuple(t.address for t in templates)
    assert factory.nft_manager() == nft_manager_account


def test_create_erc721_collection(ledger, factory, user1, nft_manager_account):
    address = create_collection(factory, user1)
    collection = ledger.contract_at(address)

    assert isinstance(collection, TokenERC721)
    assert collection.owner() == user1
    assert collection.factory() == factory.address
    assert collection.name() == "Collection"
    assert collection.max_total_supply() == 100
    assert collection.is_admin(nft_manager_account)
    assert factory.get_collection_length() == 1
    assert factory.check_collection_of_user(user1, address)
    info = factory.collection_id_to_collection_infos(1)
    assert info.collection_address == address
    assert info.nft_type == NftType.ERC721
    event = ledger.get_events(event_type="CollectionCreated")[-1]
    assert event.data["collection_address"] == address


def test_factory_admin_permits_new_collection(ledger, factory, admin, owner, user1):
    admin.set_admin(owner, factory.address, True)
    address = create_collection(factory, user1, NftType.ERC1155)

    assert isinstance(ledger.contract_at(address), TokenERC1155)
    assert admin.is_permitted_nft(address)


def test_collection_caps(factory, owner, user1, user2):
    factory.set_max_collection_of_user(owner, user1, 1)
    assert factory.max_collection_of_users(user1) == 1
    assert factory.max_collection_of_users(user2) == 5

    create_collection(factory, user1)
    with pytest.raises(ExceedMaxCollection):
        create_collection(factory, user1)

    factory.set_max_collection(owner, 2)
    create_collection(factory, user2)
    with pytest.raises(ExceedMaxCollection):
        create_collection(factory, user2)
    assert [info.collection_id for info in factory.get_collection_by_user(user2)] == [2]


def test_setters_validation(factory, owner, user1):
    with pytest.raises(CallerIsNotOwnerOrAdmin):
        factory.set_max_collection(user1, 10)
    with pytest.raises(InvalidMaxCollection):
        factory.set_max_collection(owner, 0)
    with pytest.raises(InvalidMaxTotalSupply):
        factory.set_max_total_supply(owner, 0)
    with pytest.raises(InvalidAddress):
        factory.set_max_collection_of_user(owner, ZERO_ADDRESS, 1)
    with pytest.raises(InvalidMaxCollectionOfUser):
        factory.set_max_collection_of_user(owner, user1, 0)
    with pytest.raises(InvalidAddress):
        factory.set_template_address(owner, ZERO_ADDRESS, ZERO_ADDRESS)
    with pytest.raises(InvalidAddress):
        factory.set_nft_manager(owner, ZERO_ADDRESS)


def reverted_creates():
    value = REGISTRY.get_sample_value(
        "marketplace_ledger_reverted_transactions_total",
        {"contract_type": "collection_factory", "entrypoint": "create"},
    )
    return value or 0


def test_create_with_unknown_nft_type(factory, user1):
    before = reverted_creates()

    with pytest.raises(InvalidNftType):
        create_collection(factory, user1, nft_type=2)

    assert factory.get_collection_length() == 0
    assert reverted_creates() == before + 1


def test_create_from_non_contract_template(factory, owner, user1, user2):
    factory.set_template_address(owner, user2, user2)
    with pytest.raises(CloneFailed):
        create_collection(factory, user1)
    assert factory.get_collection_length() == 0


def test_create_when_paused(factory, owner, user1):
    factory.set_pause(owner, True)
    assert factory.paused()
    with pytest.raises(Revert, match="Pausable: paused"):
        create_collection(factory, user1)

    factory.set_pause(owner, False)
    create_collection(factory, user1)


class TestCollectionToken:
    @pytest.fixture
    def collection(self, ledger, factory, user1):
        address = create_collection(factory, user1, receiver=user1, bps=500)
        return ledger.contract_at(address)

    def test_mint_by_owner_and_admins(self, collection, user1, user2, user3):
        assert collection.mint(user1, user3, "uri.json") == 1
        assert collection.owner_of(1) == user3

        with pytest.raises(CallerIsNotOwnerOrAdmin):
            collection.mint(user2, user2, "uri.json")
        with pytest.raises(Revert, match="Ownable: caller is not the owner"):
            collection.set_admin(user2, user2, True)

        collection.set_admin(user1, user2, True)
        assert collection.mint(user2, user2, "uri.json") == 2

    def test_default_royalty(self, collection, user1):
        collection.mint(user1, user1, "uri.json")
        assert collection.royalty_info(1, 10_000) == (user1, 500)

    def test_set_admin_by_factory(self, collection, user1, user2):
        with pytest.raises(CallerIsNotFactory):
            collection.set_admin_by_factory(user1, user2, True)

    def test_mint_batch(self, collection, user1):
        assert collection.mint_batch(user1, user1, ["a.json", "b.json"]) == [1, 2]

        with pytest.raises(InvalidArrayInput):
            collection.mint_batch(user1, user1, [])
        with pytest.raises(InvalidMaxBatch):
            collection.set_max_batch(user1, 0)
        collection.set_max_batch(user1, 1)
        with pytest.raises(Revert):
            collection.mint_batch(user1, user1, ["c.json", "d.json"])

    def test_max_total_supply(self, ledger, factory, owner, user2):
        factory.set_max_total_supply(owner, 2)
        collection = ledger.contract_at(create_collection(factory, user2))

        collection.mint(user2, user2, "a.json")
        with pytest.raises(ExceedTotalSupply):
            collection.mint_batch(user2, user2, ["b.json", "c.json"])
        collection.mint(user2, user2, "b.json")
        with pytest.raises(ExceedTotalSupply):
            collection.mint(user2, user2, "c.json")

    def test_transfer_ownership(self, collection, user1, user2):
        collection.transfer_ownership(user1, user2)
        assert collection.owner() == user2
        with pytest.raises(Revert, match="Ownable: new owner is the zero address"):
            collection.transfer_ownership(user2, ZERO_ADDRESS)


def test_erc1155_collection(ledger, factory, user1):
    collection = ledger.contract_at(create_collection(factory, user1, NftType.ERC1155))

    collection.mint(user1, user1, 10, "this_is_uri_1.json")
    collection.set_uri(user1, "new_uri.json", 1)

    assert collection.uri(1) == "new_uri.json"
    assert collection.balance_of(user1, 1) == 10
    with pytest.raises(InvalidArrayInput):
        collection.mint_batch(user1, user1, [1], ["a.json", "b.json"])
