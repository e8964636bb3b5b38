"""
Test suite for the Pairdex liquidity ledger

Covers:
  - Share mint / burn / transfer and supply accounting
  - Allowances (finite, infinite) and transfer_from
  - EIP-2612 permit with secp256k1 signatures (eth_keys)
"""

import pytest
from eth_keys import keys

from pairdex.chain import ChainContext
from pairdex.constants import INFINITE_ALLOWANCE, LP_TOKEN_DECIMALS, LP_TOKEN_NAME, LP_TOKEN_SYMBOL, ZERO_ADDRESS
from pairdex.crypto import keccak256, sign_typed_data
from pairdex.exceptions import (
    ArithmeticOverflowError,
    ArithmeticUnderflowError,
    InvalidSignatureError,
    PermitExpiredError,
)
from pairdex.exchange.events import ApprovalEvent, TransferEvent
from pairdex.exchange.ledger import LiquidityLedger

PAIR_ADDR = "0x" + "ab" * 20
ALICE = "0x" + "11" * 20
BOB = "0x" + "22" * 20
CAROL = "0x" + "33" * 20

OWNER_KEY = b"\x01" * 32
OWNER = keys.PrivateKey(OWNER_KEY).public_key.to_checksum_address()
NOW = 1_700_000_000


class FakeClock:
    def __init__(self, now: int = NOW):
        self.now = now

    def __call__(self) -> float:
        return self.now


def _ledger(chain_id: int = 1):
    context = ChainContext(chain_id=chain_id, clock=FakeClock())
    events = []
    return LiquidityLedger(PAIR_ADDR, context, events), events


def _permit_args(ledger, spender=BOB, value=10 ** 18, deadline=NOW + 3600, key=OWNER_KEY, owner=OWNER):
    nonce = ledger.nonce_of(owner)
    struct_hash = LiquidityLedger.permit_struct_hash(owner, spender, value, nonce, deadline)
    v, r, s = sign_typed_data(key, ledger.domain_separator, struct_hash)
    return owner, spender, value, deadline, v, r, s


# ============================================================================
#  SUPPLY
# ============================================================================

class TestLedgerSupply:

    def test_metadata(self):
        ledger, _ = _ledger()
        assert ledger.name == LP_TOKEN_NAME
        assert ledger.symbol == LP_TOKEN_SYMBOL
        assert ledger.decimals == LP_TOKEN_DECIMALS == 18

    def test_mint_shares(self):
        ledger, events = _ledger()
        ledger.mint_shares(ALICE, 500)
        assert ledger.total_shares == 500
        assert ledger.balance_of(ALICE) == 500
        assert events == [TransferEvent(ledger.address, ZERO_ADDRESS, ALICE, 500)]
        assert events[0].sender == ZERO_ADDRESS

    def test_burn_shares(self):
        ledger, events = _ledger()
        ledger.mint_shares(ALICE, 500)
        ledger.burn_shares(ALICE, 200)
        assert ledger.total_shares == 300
        assert ledger.balance_of(ALICE) == 300
        assert events[-1].recipient == ZERO_ADDRESS
        assert events[-1].value == 200

    def test_burn_more_than_balance(self):
        ledger, _ = _ledger()
        ledger.mint_shares(ALICE, 10)
        with pytest.raises(ArithmeticUnderflowError):
            ledger.burn_shares(ALICE, 11)

    def test_mint_overflow(self):
        ledger, _ = _ledger()
        ledger.mint_shares(ALICE, 2 ** 256 - 1)
        with pytest.raises(ArithmeticOverflowError):
            ledger.mint_shares(BOB, 1)

    def test_supply_equals_sum_of_balances(self):
        ledger, _ = _ledger()
        ledger.mint_shares(ZERO_ADDRESS, 1000)
        ledger.mint_shares(ALICE, 4000)
        ledger.transfer_shares(ALICE, BOB, 1500)
        ledger.burn_shares(BOB, 500)
        assert sum(ledger.holders().values()) == ledger.total_shares == 4000


# ============================================================================
#  TRANSFERS / ALLOWANCES
# ============================================================================

class TestLedgerTransfers:

    def test_transfer(self):
        ledger, events = _ledger()
        ledger.mint_shares(ALICE, 100)
        event = ledger.transfer_shares(ALICE, BOB, 40)
        assert ledger.balance_of(ALICE) == 60
        assert ledger.balance_of(BOB) == 40
        assert isinstance(event, TransferEvent)
        assert events[-1] is event

    def test_transfer_to_self(self):
        ledger, _ = _ledger()
        ledger.mint_shares(ALICE, 100)
        ledger.transfer_shares(ALICE, ALICE, 100)
        assert ledger.balance_of(ALICE) == 100

    def test_transfer_insufficient_balance(self):
        ledger, _ = _ledger()
        ledger.mint_shares(ALICE, 100)
        with pytest.raises(ArithmeticUnderflowError):
            ledger.transfer_shares(ALICE, BOB, 101)
        assert ledger.balance_of(ALICE) == 100
        assert ledger.balance_of(BOB) == 0

    def test_approve(self):
        ledger, events = _ledger()
        event = ledger.approve(ALICE, BOB, 77)
        assert ledger.allowance(ALICE, BOB) == 77
        assert isinstance(event, ApprovalEvent)
        assert events[-1].value == 77

    def test_transfer_from(self):
        ledger, _ = _ledger()
        ledger.mint_shares(ALICE, 100)
        ledger.approve(ALICE, BOB, 60)
        ledger.transfer_from(BOB, ALICE, CAROL, 50)
        assert ledger.balance_of(CAROL) == 50
        assert ledger.allowance(ALICE, BOB) == 10

    def test_transfer_from_infinite_allowance_not_decremented(self):
        ledger, _ = _ledger()
        ledger.mint_shares(ALICE, 100)
        ledger.approve(ALICE, BOB, INFINITE_ALLOWANCE)
        ledger.transfer_from(BOB, ALICE, CAROL, 100)
        assert ledger.allowance(ALICE, BOB) == INFINITE_ALLOWANCE

    def test_transfer_from_exceeds_allowance(self):
        ledger, _ = _ledger()
        ledger.mint_shares(ALICE, 100)
        ledger.approve(ALICE, BOB, 10)
        with pytest.raises(ArithmeticUnderflowError):
            ledger.transfer_from(BOB, ALICE, CAROL, 11)
        assert ledger.allowance(ALICE, BOB) == 10

    def test_transfer_from_insufficient_balance_keeps_allowance(self):
        ledger, _ = _ledger()
        ledger.mint_shares(ALICE, 5)
        ledger.approve(ALICE, BOB, 10)
        with pytest.raises(ArithmeticUnderflowError):
            ledger.transfer_from(BOB, ALICE, CAROL, 6)
        assert ledger.allowance(ALICE, BOB) == 10
        assert ledger.balance_of(ALICE) == 5

    def test_negative_transfer_rejected(self):
        ledger, events = _ledger()
        ledger.mint_shares(ALICE, 100)
        with pytest.raises(ArithmeticUnderflowError, match="negative"):
            ledger.transfer_shares(BOB, ALICE, -40)
        with pytest.raises(ArithmeticUnderflowError, match="negative"):
            ledger.transfer_shares(ALICE, BOB, -1)
        assert ledger.balance_of(ALICE) == 100
        assert ledger.balance_of(BOB) == 0
        assert len(events) == 1

    def test_negative_transfer_from_keeps_allowance(self):
        ledger, _ = _ledger()
        ledger.mint_shares(ALICE, 100)
        ledger.approve(ALICE, BOB, 10)
        with pytest.raises(ArithmeticUnderflowError, match="negative"):
            ledger.transfer_from(BOB, ALICE, CAROL, -50)
        assert ledger.allowance(ALICE, BOB) == 10
        assert ledger.balance_of(ALICE) == 100
        assert ledger.balance_of(CAROL) == 0

    def test_negative_transfer_from_infinite_allowance(self):
        ledger, _ = _ledger()
        ledger.mint_shares(ALICE, 100)
        ledger.approve(ALICE, BOB, INFINITE_ALLOWANCE)
        with pytest.raises(ArithmeticUnderflowError):
            ledger.transfer_from(BOB, CAROL, ALICE, -50)
        assert ledger.balance_of(CAROL) == 0
        assert ledger.balance_of(ALICE) == 100

    def test_negative_supply_changes_rejected(self):
        ledger, _ = _ledger()
        ledger.mint_shares(ALICE, 100)
        with pytest.raises(ArithmeticUnderflowError):
            ledger.mint_shares(BOB, -10)
        with pytest.raises(ArithmeticUnderflowError):
            ledger.burn_shares(ALICE, -10)
        assert ledger.total_shares == 100
        assert ledger.balance_of(ALICE) == 100
        assert ledger.balance_of(BOB) == 0

    def test_snapshot_restore(self):
        ledger, _ = _ledger()
        ledger.mint_shares(ALICE, 100)
        snap = ledger.snapshot()
        ledger.transfer_shares(ALICE, BOB, 100)
        ledger.approve(ALICE, BOB, 1)
        ledger.restore(snap)
        assert ledger.balance_of(ALICE) == 100
        assert ledger.balance_of(BOB) == 0
        assert ledger.allowance(ALICE, BOB) == 0


# ============================================================================
#  PERMIT
# ============================================================================

class TestPermit:

    def test_domain_separator_binds_chain_id(self):
        ledger_a, _ = _ledger(chain_id=1)
        ledger_b, _ = _ledger(chain_id=5)
        assert len(ledger_a.domain_separator) == 32
        assert ledger_a.domain_separator != ledger_b.domain_separator

    def test_permit_struct_hash_is_keccak(self):
        struct_hash = LiquidityLedger.permit_struct_hash(OWNER, BOB, 1, 0, NOW)
        assert len(struct_hash) == 32
        assert struct_hash != keccak256(b"")

    def test_permit(self):
        ledger, events = _ledger()
        args = _permit_args(ledger)
        event = ledger.permit(*args)
        assert ledger.allowance(OWNER, BOB) == 10 ** 18
        assert ledger.nonce_of(OWNER) == 1
        assert isinstance(event, ApprovalEvent)
        assert events[-1].owner == OWNER

    def test_permit_replay_rejected(self):
        ledger, _ = _ledger()
        args = _permit_args(ledger)
        ledger.permit(*args)
        with pytest.raises(InvalidSignatureError, match="INVALID_SIGNATURE"):
            ledger.permit(*args)
        assert ledger.nonce_of(OWNER) == 1

    def test_permit_expired(self):
        ledger, _ = _ledger()
        args = _permit_args(ledger, deadline=NOW - 1)
        with pytest.raises(PermitExpiredError, match="EXPIRED"):
            ledger.permit(*args)

    def test_permit_deadline_equal_to_now_accepted(self):
        ledger, _ = _ledger()
        ledger.permit(*_permit_args(ledger, deadline=NOW))
        assert ledger.allowance(OWNER, BOB) == 10 ** 18

    def test_permit_wrong_owner(self):
        ledger, _ = _ledger()
        owner, spender, value, deadline, v, r, s = _permit_args(ledger)
        with pytest.raises(InvalidSignatureError):
            ledger.permit(ALICE, spender, value, deadline, v, r, s)

    def test_permit_tampered_value(self):
        ledger, _ = _ledger()
        owner, spender, value, deadline, v, r, s = _permit_args(ledger)
        with pytest.raises(InvalidSignatureError):
            ledger.permit(owner, spender, value + 1, deadline, v, r, s)
        assert ledger.allowance(OWNER, BOB) == 0

    def test_permit_malformed_v(self):
        ledger, _ = _ledger()
        owner, spender, value, deadline, v, r, s = _permit_args(ledger)
        with pytest.raises(InvalidSignatureError):
            ledger.permit(owner, spender, value, deadline, 29, r, s)

    def test_permit_other_chain_rejected(self):
        ledger_main, _ = _ledger(chain_id=1)
        ledger_test, _ = _ledger(chain_id=5)
        args = _permit_args(ledger_main)
        with pytest.raises(InvalidSignatureError):
            ledger_test.permit(*args)
