import pytest

from conftest import ETHER, GENESIS_TIMESTAMP
from marketplace_ledger.contracts.access.admin import Admin
from marketplace_ledger.ledger import Ledger
from marketplace_ledger.utils.config import LedgerConfig
from marketplace_ledger.utils.contract_type import ContractType
from marketplace_ledger.utils.errors import InvalidAmount, Revert
from marketplace_ledger.utils.general_utils import ZERO_ADDRESS
from marketplace_ledger.utils.models.general_models import Base


def test_clock_starts_at_genesis_and_only_moves_forward(ledger):
    assert ledger.now() == GENESIS_TIMESTAMP
    assert ledger.sleep(100) == GENESIS_TIMESTAMP + 100
    assert ledger.now() == GENESIS_TIMESTAMP + 100

    with pytest.raises(ValueError):
        ledger.set_time(GENESIS_TIMESTAMP)
    with pytest.raises(ValueError):
        ledger.sleep(-1)


def test_versions_increase_per_committed_transaction(ledger, owner):
    assert ledger.last_transaction_version is None
    admin = ledger.deploy(Admin, owner, owner)
    assert ledger.last_transaction_version == 0
    admin.set_admin(owner, ledger.new_account("someone"), True)
    assert ledger.last_transaction_version == 1


def test_reverted_transaction_leaves_no_trace(ledger, owner, user1, token):
    version = ledger.last_transaction_version
    events = len(ledger.get_events())

    with pytest.raises(Revert, match="ERC20: transfer amount exceeds balance"):
        token.transfer(user1, owner, 1001 * ETHER)

    assert token.balance_of(user1) == 1000 * ETHER
    assert ledger.last_transaction_version == version
    assert len(ledger.get_events()) == events


def test_events_are_recorded_in_emission_order(ledger, owner, admin, user1):
    admin.set_admin(owner, user1, True)
    admin.set_permitted_nft(owner, user1, True)

    events = ledger.get_events(contract_address=admin.address)
    assert [event.event_type for event in events] == ["SetAdmin", "SetPermittedNFT"]
    assert events[0].data == {"account": user1, "allow": True}
    assert events[0].block_timestamp == GENESIS_TIMESTAMP
    assert events[0].transaction_version < events[1].transaction_version


def test_cross_contract_events_share_one_transaction(
    ledger, owner, user1, token, treasury
):
    treasury.distribute(owner, token.address, user1, ETHER)

    events = ledger.get_events(transaction_version=ledger.last_transaction_version)
    assert [(event.event_index, event.event_type) for event in events] == [
        (0, "Transfer"),
        (1, "Distributed"),
    ]
    assert events[0].contract_address == token.address
    assert events[1].contract_address == treasury.address


def test_native_currency_transfers(ledger, user1, user2):
    ledger.fund(user1, 5 * ETHER)
    ledger.transfer_native(user1, user2, 2 * ETHER)

    assert ledger.native_balance(user1) == 3 * ETHER
    assert ledger.native_balance(user2) == 2 * ETHER

    with pytest.raises(Revert, match="insufficient funds for transfer"):
        ledger.transfer_native(user2, user1, 3 * ETHER)
    assert ledger.native_balance(user2) == 2 * ETHER

    with pytest.raises(InvalidAmount):
        ledger.transfer_native(user1, user2, -2 * ETHER)
    assert ledger.native_balance(user1) == 3 * ETHER
    assert ledger.native_balance(user2) == 2 * ETHER


def test_contract_registry(ledger, owner, admin, user1):
    assert ledger.is_contract(admin.address)
    assert not ledger.is_contract(user1)
    assert not ledger.is_contract(ZERO_ADDRESS)
    assert ledger.contract_type_of(admin.address) == ContractType.ADMIN
    assert ledger.contract_at(admin.address.upper().replace("0X", "0x")) is admin

    with pytest.raises(Revert, match="Address: call to non-contract"):
        ledger.contract_at(user1)


def test_clone_requires_an_open_transaction(ledger, admin):
    with pytest.raises(RuntimeError):
        ledger.clone(admin.address, admin.address)


def test_separate_ledgers_do_not_share_state(owner):
    first = Ledger(LedgerConfig(genesis_timestamp=GENESIS_TIMESTAMP))
    second = Ledger(LedgerConfig(genesis_timestamp=GENESIS_TIMESTAMP))
    admin = first.deploy(Admin, owner, owner)

    assert first.is_contract(admin.address)
    assert not second.is_contract(admin.address)


def test_config_from_yaml_file_with_env_override(tmp_path, monkeypatch):
    config_file = tmp_path / "config.yaml"
    config_file.write_text(
        "ledger_name: test_ledger\n"
        "genesis_timestamp: 1234\n"
        "marketplace:\n"
        "  listing_fee_bps: 300\n"
        "collection:\n"
        "  max_collection: 7\n"
    )
    monkeypatch.setenv("MARKETPLACE_LEDGER_MARKETPLACE__LISTING_FEE_BPS", "500")

    config = LedgerConfig.from_yaml_file(str(config_file))

    assert config.ledger_name == "test_ledger"
    assert config.genesis_timestamp == 1234
    assert config.marketplace.listing_fee_bps == 500
    assert config.collection.max_collection == 7
    assert config.collection.max_total_supply == 100
    assert config.db_connection_uri == "sqlite+pysqlite:///:memory:"


def test_config_rejects_fee_above_denominator():
    with pytest.raises(ValueError):
        LedgerConfig(marketplace={"listing_fee_bps": 10001})


def test_models_keep_the_declarative_registry(ledger):
    mappers = list(Base.registry.mappers)

    assert len(mappers) > 4
    for mapper in mappers:
        assert "registry" not in mapper.columns
        assert mapper.class_.registry is Base.registry
