import pytest

from conftest import ETHER
from marketplace_ledger.contracts.auctions.auction_factory import (
    AuctionFactory,
    AuctionType,
)
from marketplace_ledger.contracts.auctions.dutch_auction import DutchAuction
from marketplace_ledger.contracts.auctions.english_auction import EnglishAuction
from marketplace_ledger.utils.errors import (
    CallerIsNotOwnerOrAdmin,
    CloneFailed,
    InvalidAddress,
    InvalidAmount,
    InvalidAuctionType,
    InvalidNftAddress,
    PaymentTokenIsNotSupported,
    Revert,
)
from marketplace_ledger.utils.general_utils import ZERO_ADDRESS

DURATION = 1000


@pytest.fixture
def nft(token_mint_erc721, owner):
    token_mint_erc721.mint(owner, owner, "uri.json")
    return token_mint_erc721


class TestEnglishAuction:
    @pytest.fixture
    def auction(self, ledger, nft, token, owner):
        start = ledger.now() + 10
        auction = ledger.deploy(
            EnglishAuction,
            owner,
            owner,
            nft.address,
            1,
            token.address,
            ETHER,
            start,
            start + DURATION,
        )
        nft.transfer_from(owner, owner, auction.address, 1)
        return auction

    @pytest.fixture
    def approvals(self, auction, token, user1, user2, user3):
        for bidder in (user1, user2, user3):
            token.approve(bidder, auction.address, 100 * ETHER)

    def test_initial_state(self, ledger, auction, nft, token, owner):
        assert auction.owner() == owner
        assert auction.nft_reward() == nft.address
        assert auction.payment_token() == token.address
        assert auction.highest_bid() == ETHER
        assert auction.highest_bidder() is None
        assert not auction.ended()
        assert auction.end_time() - auction.start_time() == DURATION
        assert nft.owner_of(1) == auction.address

    def test_initialize_validation(self, ledger, nft, token, owner):
        now = ledger.now()
        with pytest.raises(InvalidAddress):
            ledger.deploy(
                EnglishAuction, owner, ZERO_ADDRESS, nft.address, 1, token.address,
                ETHER, now, now + DURATION,
            )
        with pytest.raises(Revert, match="end < start"):
            ledger.deploy(
                EnglishAuction, owner, owner, nft.address, 1, token.address,
                ETHER, now, now,
            )
        with pytest.raises(InvalidAmount):
            ledger.deploy(
                EnglishAuction, owner, owner, nft.address, 1, token.address,
                -ETHER, now, now + DURATION,
            )

    def test_bid_timing(self, ledger, auction, approvals, user1):
        with pytest.raises(Revert, match="not started"):
            auction.bid(user1, 2 * ETHER)

        ledger.sleep(10 + DURATION)
        with pytest.raises(Revert, match="ended"):
            auction.bid(user1, 2 * ETHER)

    def test_bid_must_beat_highest(self, ledger, auction, approvals, token, user1, user2):
        ledger.sleep(10)
        with pytest.raises(Revert, match="amount < highest"):
            auction.bid(user1, ETHER)

        auction.bid(user1, 2 * ETHER)
        with pytest.raises(Revert, match="amount < highest"):
            auction.bid(user2, 2 * ETHER)
        auction.bid(user2, 3 * ETHER)

        assert auction.highest_bidder() == user2
        assert auction.highest_bid() == 3 * ETHER
        assert auction.bids(user1) == 2 * ETHER
        assert token.balance_of(auction.address) == 5 * ETHER

    def test_outbid_bidders_withdraw(
        self, ledger, auction, approvals, token, user1, user2
    ):
        ledger.sleep(10)
        auction.bid(user1, 2 * ETHER)
        auction.bid(user2, 3 * ETHER)
        auction.bid(user1, 4 * ETHER)

        with pytest.raises(Revert, match="highest bidder can not withdraw"):
            auction.withdraw(user1)
        assert auction.bids(user1) == 2 * ETHER

        assert auction.withdraw(user2) == 3 * ETHER
        assert auction.withdraw(user2) == 0
        assert token.balance_of(user2) == 1000 * ETHER
        assert token.balance_of(auction.address) == 6 * ETHER

    def test_winner_recovers_superseded_bid_after_end(
        self, ledger, auction, approvals, nft, token, owner, user1, user2
    ):
        ledger.sleep(10)
        auction.bid(user1, 2 * ETHER)
        auction.bid(user2, 3 * ETHER)
        auction.bid(user1, 4 * ETHER)
        auction.end(owner)

        assert auction.withdraw(user2) == 3 * ETHER
        assert auction.withdraw(user1) == 2 * ETHER
        assert auction.bids(user1) == 0
        assert nft.owner_of(1) == user1
        assert token.balance_of(user1) == 996 * ETHER
        assert token.balance_of(owner) == 1004 * ETHER
        assert token.balance_of(auction.address) == 0

    def test_winner_recovers_superseded_bid_after_owner_settles(
        self, ledger, auction, approvals, nft, token, owner, user1, user2
    ):
        ledger.sleep(10)
        auction.bid(user1, 2 * ETHER)
        auction.bid(user2, 3 * ETHER)
        auction.bid(user1, 4 * ETHER)
        ledger.sleep(DURATION)

        with pytest.raises(Revert, match="highest bidder can not withdraw"):
            auction.withdraw(user1)
        auction.withdraw(owner)

        assert auction.ended()
        assert auction.withdraw(user1) == 2 * ETHER
        assert nft.owner_of(1) == user1
        assert token.balance_of(auction.address) == 3 * ETHER

    def test_end_settles_auction(
        self, ledger, auction, approvals, nft, token, owner, user1, user2
    ):
        ledger.sleep(10)
        auction.bid(user1, 2 * ETHER)
        auction.bid(user2, 3 * ETHER)

        with pytest.raises(Revert, match="Ownable: caller is not the owner"):
            auction.end(user1)
        auction.end(owner)

        assert auction.ended()
        assert nft.owner_of(1) == user2
        assert token.balance_of(owner) == 1003 * ETHER
        event = ledger.get_events(event_type="End")[-1]
        assert event.data == {"winner": user2, "amount": 3 * ETHER}

        with pytest.raises(Revert, match="ended"):
            auction.end(owner)
        with pytest.raises(Revert, match="ended"):
            auction.bid(user1, 4 * ETHER)
        assert auction.withdraw(user1) == 2 * ETHER

    def test_end_before_start(self, auction, owner):
        with pytest.raises(Revert, match="not started"):
            auction.end(owner)

    def test_owner_withdraw_settles_after_end_time(
        self, ledger, auction, approvals, nft, token, owner, user1
    ):
        ledger.sleep(10)
        auction.bid(user1, 2 * ETHER)
        ledger.sleep(DURATION)

        auction.withdraw(owner)

        assert auction.ended()
        assert nft.owner_of(1) == user1
        assert token.balance_of(owner) == 1002 * ETHER

    def test_unsold_nft_returns_to_owner(self, ledger, auction, nft, owner):
        ledger.sleep(10 + DURATION)
        auction.withdraw(owner)

        assert nft.owner_of(1) == owner
        assert ledger.get_events(event_type="End")[-1].data["amount"] == 0

    def test_native_bids(self, ledger, nft, native_payments, owner, user1, user2):
        start = ledger.now()
        auction = ledger.deploy(
            EnglishAuction,
            owner,
            owner,
            nft.address,
            1,
            ZERO_ADDRESS,
            0,
            start,
            start + DURATION,
        )
        nft.transfer_from(owner, owner, auction.address, 1)

        with pytest.raises(InvalidAmount):
            auction.bid(user1, ETHER, value=ETHER - 1)
        auction.bid(user1, ETHER, value=ETHER)
        auction.bid(user2, 2 * ETHER, value=2 * ETHER)
        auction.withdraw(user1)
        auction.end(owner)

        assert ledger.native_balance(user1) == 100 * ETHER
        assert ledger.native_balance(user2) == 98 * ETHER
        assert ledger.native_balance(owner) == 102 * ETHER
        assert ledger.native_balance(auction.address) == 0


class TestDutchAuction:
    @pytest.fixture
    def auction(self, ledger, nft, token, owner):
        start = ledger.now()
        auction = ledger.deploy(
            DutchAuction,
            owner,
            owner,
            nft.address,
            1,
            token.address,
            ETHER,
            start,
            start + DURATION,
            10**15,
        )
        nft.transfer_from(owner, owner, auction.address, 1)
        return auction

    def test_price_decays_linearly(self, ledger, auction):
        assert auction.get_price() == ETHER

        prices = []
        for _ in range(4):
            ledger.sleep(250)
            prices.append(auction.get_price())

        assert prices == [
            ETHER - 250 * 10**15,
            ETHER - 500 * 10**15,
            ETHER - 750 * 10**15,
            0,
        ]
        ledger.sleep(500)
        assert auction.get_price() == 0

    def test_initialize_validation(self, ledger, nft, token, owner):
        now = ledger.now()
        with pytest.raises(InvalidAmount):
            ledger.deploy(
                DutchAuction, owner, owner, nft.address, 1, token.address,
                ETHER, now, now + DURATION, 0,
            )
        with pytest.raises(Revert, match="end < start"):
            ledger.deploy(
                DutchAuction, owner, owner, nft.address, 1, token.address,
                ETHER, now, now - 1, 1,
            )
        with pytest.raises(Revert, match="starting price < min"):
            ledger.deploy(
                DutchAuction, owner, owner, nft.address, 1, token.address,
                DURATION - 1, now, now + DURATION, 1,
            )

    def test_buy_at_current_price(self, ledger, auction, nft, token, owner, user1):
        ledger.sleep(400)
        price = ETHER - 400 * 10**15
        token.approve(user1, auction.address, ETHER)

        with pytest.raises(Revert, match="value < price"):
            auction.buy(user1, price - 1)
        assert auction.buy(user1, ETHER) == price

        assert nft.owner_of(1) == user1
        assert auction.buyer() == user1
        assert auction.is_ended()
        assert token.balance_of(user1) == 1000 * ETHER - price
        assert token.balance_of(owner) == 1000 * ETHER + price
        with pytest.raises(Revert, match="ended"):
            auction.buy(user1, ETHER)

    def test_buy_with_native_refunds_excess(
        self, ledger, nft, native_payments, owner, user1
    ):
        start = ledger.now()
        auction = ledger.deploy(
            DutchAuction,
            owner,
            owner,
            nft.address,
            1,
            ZERO_ADDRESS,
            ETHER,
            start,
            start + DURATION,
            10**15,
        )
        nft.transfer_from(owner, owner, auction.address, 1)
        ledger.sleep(100)

        auction.buy(user1, ETHER, value=ETHER)

        price = ETHER - 100 * 10**15
        assert ledger.native_balance(user1) == 100 * ETHER - price
        assert ledger.native_balance(owner) == 100 * ETHER + price
        assert ledger.native_balance(auction.address) == 0

    def test_buy_after_end_time(self, ledger, auction, token, user1):
        token.approve(user1, auction.address, ETHER)
        ledger.sleep(DURATION)
        with pytest.raises(Revert, match="ended"):
            auction.buy(user1, ETHER)

    def test_owner_withdraw(self, auction, nft, token, owner, user1):
        with pytest.raises(Revert, match="Ownable: caller is not the owner"):
            auction.withdraw(user1)
        auction.withdraw(owner)

        assert auction.is_ended()
        assert nft.owner_of(1) == owner
        token.approve(user1, auction.address, ETHER)
        with pytest.raises(Revert, match="ended"):
            auction.buy(user1, ETHER)


class TestAuctionFactory:
    @pytest.fixture
    def factory(self, ledger, owner, admin):
        dutch = ledger.deploy_template(DutchAuction, owner)
        english = ledger.deploy_template(EnglishAuction, owner)
        return ledger.deploy(
            AuctionFactory, owner, dutch.address, english.address, admin.address
        )

    @pytest.fixture
    def approved_nft(self, nft, factory, owner):
        nft.approve(owner, factory.address, 1)
        return nft

    def create(self, ledger, factory, caller, auction_type, nft, payment_token):
        now = ledger.now()
        return factory.create(
            caller,
            auction_type,
            nft.address,
            1,
            payment_token,
            ETHER,
            now,
            now + DURATION,
            10**15,
        )

    def test_create_dutch_auction(
        self, ledger, factory, approved_nft, token, owner
    ):
        address = self.create(
            ledger, factory, owner, AuctionType.DUTCH, approved_nft, token.address
        )
        auction = ledger.contract_at(address)

        assert isinstance(auction, DutchAuction)
        assert auction.owner() == owner
        assert auction.discount_rate() == 10**15
        assert approved_nft.owner_of(1) == address
        assert factory.get_auction_id() == 1
        assert factory.get_auction_by_user(owner) == [address]
        assert factory.check_auction_of_user(owner, address)
        record = factory.get_auction(1)
        assert record.auction_type == AuctionType.DUTCH
        assert record.nft_address == approved_nft.address
        assert ledger.get_events(event_type="AuctionCreated")[-1].data["owner"] == owner

    def test_create_english_auction(
        self, ledger, factory, approved_nft, token, owner, user1
    ):
        address = self.create(
            ledger, factory, owner, AuctionType.ENGLISH, approved_nft, token.address
        )
        auction = ledger.contract_at(address)

        assert isinstance(auction, EnglishAuction)
        assert auction.highest_bid() == ETHER
        token.approve(user1, address, 2 * ETHER)
        auction.bid(user1, 2 * ETHER)
        assert auction.highest_bidder() == user1

    def test_create_validation(self, ledger, factory, approved_nft, token, owner, user1):
        with pytest.raises(PaymentTokenIsNotSupported):
            self.create(ledger, factory, owner, AuctionType.DUTCH, approved_nft, user1)
        with pytest.raises(InvalidNftAddress):
            self.create(ledger, factory, owner, AuctionType.DUTCH, token, token.address)
        with pytest.raises(InvalidAuctionType):
            self.create(ledger, factory, owner, 2, approved_nft, token.address)
        with pytest.raises(Revert, match="ERC721: transfer from incorrect owner"):
            self.create(
                ledger, factory, user1, AuctionType.DUTCH, approved_nft, token.address
            )
        assert factory.get_auction_id() == 0
        assert approved_nft.owner_of(1) == owner

    def test_create_when_paused(self, ledger, factory, approved_nft, token, owner):
        factory.set_pause(owner, True)
        with pytest.raises(Revert, match="Pausable: paused"):
            self.create(
                ledger, factory, owner, AuctionType.DUTCH, approved_nft, token.address
            )

    def test_template_setters(self, ledger, factory, approved_nft, token, owner, user1):
        with pytest.raises(CallerIsNotOwnerOrAdmin):
            factory.set_dutch_template(user1, user1)
        with pytest.raises(InvalidAddress):
            factory.set_english_template(owner, ZERO_ADDRESS)

        factory.set_dutch_template(owner, user1)
        assert factory.dutch_template() == user1
        with pytest.raises(CloneFailed):
            self.create(
                ledger, factory, owner, AuctionType.DUTCH, approved_nft, token.address
            )
