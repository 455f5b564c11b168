import pytest

from conftest import ETHER
from marketplace_ledger.utils.errors import (
    CallerIsNotOwnerOrAdmin,
    InvalidAddress,
    InvalidAmount,
    PaymentTokenIsNotSupported,
)
from marketplace_ledger.utils.general_utils import ZERO_ADDRESS


def test_admin_is_the_registry(treasury, admin):
    assert treasury.admin() == admin.address


def test_distribute_token(treasury, token, owner, user1):
    before = treasury.balance_of(token.address)

    treasury.distribute(owner, token.address, user1, 10 * ETHER)

    assert treasury.balance_of(token.address) == before - 10 * ETHER
    assert token.balance_of(user1) == 1010 * ETHER


def test_distribute_validation(treasury, token, admin, owner, user1, user2):
    with pytest.raises(CallerIsNotOwnerOrAdmin):
        treasury.distribute(user1, token.address, user1, ETHER)
    with pytest.raises(PaymentTokenIsNotSupported):
        treasury.distribute(owner, user2, user1, ETHER)
    with pytest.raises(InvalidAddress):
        treasury.distribute(owner, token.address, ZERO_ADDRESS, ETHER)
    with pytest.raises(InvalidAmount):
        treasury.distribute(owner, token.address, user1, 0)
    with pytest.raises(InvalidAmount):
        treasury.distribute(owner, token.address, user1, -ETHER)

    admin.set_admin(owner, user2, True)
    treasury.distribute(user2, token.address, user1, ETHER)
    assert token.balance_of(user1) == 1001 * ETHER


def test_receives_and_distributes_native(ledger, treasury, admin, owner, user1):
    ledger.fund(user1, 5 * ETHER)
    ledger.transfer_native(user1, treasury.address, 2 * ETHER)
    assert treasury.balance_of(ZERO_ADDRESS) == 2 * ETHER

    admin.set_permitted_payment_token(owner, ZERO_ADDRESS, True)
    treasury.distribute(owner, ZERO_ADDRESS, user1, ETHER)

    assert treasury.balance_of(ZERO_ADDRESS) == ETHER
    assert ledger.native_balance(user1) == 4 * ETHER

    treasury.distribute(owner, None, user1, ETHER)
    assert treasury.balance_of(None) == 0
    assert ledger.native_balance(user1) == 5 * ETHER
