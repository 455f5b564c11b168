import pytest

from marketplace_ledger.contracts.access.admin import Admin
from marketplace_ledger.contracts.marketplace.marketplace import Marketplace
from marketplace_ledger.contracts.marketplace.order_manager import OrderManager
from marketplace_ledger.contracts.nft.token_mint import (
    TokenMintERC721,
    TokenMintERC1155,
)
from marketplace_ledger.contracts.tokens.fungible_token import FungibleToken
from marketplace_ledger.contracts.treasury.treasury import Treasury
from marketplace_ledger.ledger import Ledger
from marketplace_ledger.utils.config import LedgerConfig
from marketplace_ledger.utils.general_utils import ZERO_ADDRESS

GENESIS_TIMESTAMP = 1_700_000_000
ETHER = 10**18


@pytest.fixture
def ledger() -> Ledger:
    return Ledger(LedgerConfig(genesis_timestamp=GENESIS_TIMESTAMP))


@pytest.fixture
def owner(ledger: Ledger) -> str:
    return ledger.new_account("owner")


@pytest.fixture
def user1(ledger: Ledger) -> str:
    return ledger.new_account("user1")


@pytest.fixture
def user2(ledger: Ledger) -> str:
    return ledger.new_account("user2")


@pytest.fixture
def user3(ledger: Ledger) -> str:
    return ledger.new_account("user3")


@pytest.fixture
def admin(ledger: Ledger, owner: str) -> Admin:
    return ledger.deploy(Admin, owner, owner)


@pytest.fixture
def treasury(ledger: Ledger, owner: str, admin: Admin) -> Treasury:
    treasury = ledger.deploy(Treasury, owner, admin.address)
    admin.set_treasury(owner, treasury.address)
    return treasury


@pytest.fixture
def token(
    ledger: Ledger,
    owner: str,
    user1: str,
    user2: str,
    user3: str,
    admin: Admin,
    treasury: Treasury,
) -> FungibleToken:
    """CMCG payment token; every test account starts with 1000 tokens."""
    token = ledger.deploy(
        FungibleToken,
        owner,
        "CMC Global Token",
        "CMCG",
        10_000 * ETHER,
        treasury.address,
    )
    admin.set_permitted_payment_token(owner, token.address, True)
    for account in (owner, user1, user2, user3):
        treasury.distribute(owner, token.address, account, 1000 * ETHER)
    return token


@pytest.fixture
def native_payments(
    ledger: Ledger, owner: str, user1: str, user2: str, user3: str, admin: Admin
) -> None:
    admin.set_permitted_payment_token(owner, ZERO_ADDRESS, True)
    for account in (owner, user1, user2, user3):
        ledger.fund(account, 100 * ETHER)


@pytest.fixture
def token_mint_erc721(
    ledger: Ledger, owner: str, admin: Admin, treasury: Treasury
) -> TokenMintERC721:
    nft = ledger.deploy(TokenMintERC721, owner, "NFT General", "NFT", admin.address)
    admin.set_permitted_nft(owner, nft.address, True)
    return nft


@pytest.fixture
def token_mint_erc1155(
    ledger: Ledger, owner: str, admin: Admin, treasury: Treasury
) -> TokenMintERC1155:
    nft = ledger.deploy(TokenMintERC1155, owner, admin.address)
    admin.set_permitted_nft(owner, nft.address, True)
    return nft


@pytest.fixture
def marketplace(
    ledger: Ledger, owner: str, admin: Admin, treasury: Treasury
) -> Marketplace:
    return ledger.deploy(Marketplace, owner, admin.address)


@pytest.fixture
def order_manager(
    ledger: Ledger, owner: str, marketplace: Marketplace
) -> OrderManager:
    order_manager = ledger.deploy(OrderManager, owner, marketplace.address)
    marketplace.set_order_manager(owner, order_manager.address)
    return order_manager
