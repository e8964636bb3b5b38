"""
Test suite for the Pairdex pair factory

Covers:
  - Deterministic CREATE2 pair addresses and canonical ordering
  - Duplicate / identical / null asset rejection
  - feeTo / feeToSetter authority, including permanent revocation
  - Atomic create-if-absent under concurrency
"""

import threading

import pytest
from eth_utils import keccak, to_canonical_address, to_checksum_address

from pairdex.chain import ChainContext
from pairdex.config import PairdexConfig
from pairdex.constants import PAIR_INIT_CODE, ZERO_ADDRESS
from pairdex.exceptions import (
    AuthorizationError,
    DuplicatePairError,
    IdenticalAddressesError,
    PreconditionViolation,
    ZeroAddressError,
)
from pairdex.exchange import (
    FeeToChangedEvent,
    FeeToSetterChangedEvent,
    PairCreatedEvent,
    PairFactory,
    PairRegistry,
    pair_for,
)
from pairdex.tokens import Token

WALLET = "0x" + "11" * 20
OTHER = "0x" + "22" * 20
TEST_ADDRESSES = (
    "0x1000000000000000000000000000000000000000",
    "0x2000000000000000000000000000000000000000",
)


def _factory():
    context = ChainContext(chain_id=1, clock=lambda: 1_600_000_000)
    for i, address in enumerate(TEST_ADDRESSES):
        context.tokens.deploy(Token(address, f"Test {i}", f"T{i}"))
    return PairFactory(context, WALLET), context


def _create2_address(factory_address, token0, token1):
    salt = keccak(to_canonical_address(token0) + to_canonical_address(token1))
    raw = keccak(b"\xff" + to_canonical_address(factory_address) + salt + keccak(PAIR_INIT_CODE))
    return to_checksum_address(raw[12:])


# ============================================================================
#  CREATION
# ============================================================================

class TestCreatePair:

    def test_initial_state(self):
        factory, _ = _factory()
        assert factory.fee_to == ZERO_ADDRESS
        assert factory.fee_to_setter == WALLET
        assert factory.all_pairs_length() == 0

    def _create(self, tokens):
        factory, _ = _factory()
        create2 = _create2_address(factory.address, *TEST_ADDRESSES)

        pair = factory.create_pair(*tokens)

        assert pair.address == create2
        assert factory.events == [
            PairCreatedEvent(factory.address, TEST_ADDRESSES[0], TEST_ADDRESSES[1], create2, 1)
        ]
        with pytest.raises(DuplicatePairError, match="PAIR_EXISTS"):
            factory.create_pair(*tokens)
        with pytest.raises(DuplicatePairError, match="PAIR_EXISTS"):
            factory.create_pair(*reversed(tokens))
        assert factory.get_pair(*tokens) == create2
        assert factory.get_pair(*reversed(tokens)) == create2
        assert factory.all_pairs(0) == create2
        assert factory.all_pairs_length() == 1

        assert pair.factory is factory
        assert pair.token0 == TEST_ADDRESSES[0]
        assert pair.token1 == TEST_ADDRESSES[1]

    def test_create_pair(self):
        self._create(TEST_ADDRESSES)

    def test_create_pair_reverse(self):
        self._create(tuple(reversed(TEST_ADDRESSES)))

    def test_pair_for_matches_deployment(self):
        factory, _ = _factory()
        predicted = pair_for(factory.address, *TEST_ADDRESSES)
        assert predicted == pair_for(factory.address, *reversed(TEST_ADDRESSES))
        assert factory.create_pair(*TEST_ADDRESSES).address == predicted

    def test_same_assets_same_address_across_instances(self):
        factory_a, _ = _factory()
        factory_b, _ = _factory()
        # same deployer nonce in fresh contexts -> same factory address
        assert factory_a.address == factory_b.address
        assert factory_a.create_pair(*TEST_ADDRESSES).address == factory_b.create_pair(*TEST_ADDRESSES).address

    def test_get_pair_missing(self):
        factory, _ = _factory()
        assert factory.get_pair(*TEST_ADDRESSES) is None

    def test_identical_addresses(self):
        factory, _ = _factory()
        with pytest.raises(IdenticalAddressesError, match="IDENTICAL_ADDRESSES"):
            factory.create_pair(TEST_ADDRESSES[0], TEST_ADDRESSES[0])

    def test_identical_addresses_any_casing(self):
        factory, _ = _factory()
        upper = "0x" + TEST_ADDRESSES[0][2:].upper()
        with pytest.raises(IdenticalAddressesError):
            factory.create_pair(TEST_ADDRESSES[0], upper)

    def test_zero_address(self):
        factory, _ = _factory()
        with pytest.raises(ZeroAddressError, match="ZERO_ADDRESS"):
            factory.create_pair(ZERO_ADDRESS, TEST_ADDRESSES[0])
        with pytest.raises(ZeroAddressError):
            factory.create_pair(TEST_ADDRESSES[0], ZERO_ADDRESS)

    def test_undeployed_asset(self):
        factory, _ = _factory()
        with pytest.raises(PreconditionViolation, match="not a deployed token"):
            factory.create_pair(TEST_ADDRESSES[0], "0x3000000000000000000000000000000000000000")
        assert factory.all_pairs_length() == 0

    def test_all_pairs_out_of_range(self):
        factory, _ = _factory()
        with pytest.raises(IndexError):
            factory.all_pairs(0)

    def test_concurrent_create_single_winner(self):
        factory, _ = _factory()
        barrier = threading.Barrier(8)
        created, rejected = [], []

        def worker():
            barrier.wait()
            try:
                created.append(factory.create_pair(*TEST_ADDRESSES))
            except DuplicatePairError as e:
                rejected.append(e)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(created) == 1
        assert len(rejected) == 7
        assert factory.all_pairs_length() == 1


class TestPairRegistry:

    def test_insert_and_lookup(self):
        factory, _ = _factory()
        pair = factory.create_pair(*TEST_ADDRESSES)
        registry = PairRegistry()
        assert registry.insert(pair.token0, pair.token1, pair) == 1
        assert registry.get(pair.token0, pair.token1) is pair
        assert registry.at(0) is pair
        assert registry.all() == [pair]
        assert len(registry) == 1

    def test_injected_registry(self):
        registry = PairRegistry()
        context = ChainContext(chain_id=1, clock=lambda: 0)
        for i, address in enumerate(TEST_ADDRESSES):
            context.tokens.deploy(Token(address, f"Test {i}", f"T{i}"))
        factory = PairFactory(context, WALLET, registry=registry)
        factory.create_pair(*TEST_ADDRESSES)
        assert len(registry) == 1


# ============================================================================
#  FEE SWITCH AUTHORITY
# ============================================================================

class TestFeeAuthority:

    def test_set_fee_to(self):
        factory, _ = _factory()
        with pytest.raises(AuthorizationError, match="FORBIDDEN"):
            factory.set_fee_to(OTHER, OTHER)
        factory.set_fee_to(WALLET, WALLET)
        assert factory.fee_to == WALLET
        assert factory.events[-1] == FeeToChangedEvent(factory.address, ZERO_ADDRESS, WALLET)

    def test_set_fee_to_setter(self):
        factory, _ = _factory()
        with pytest.raises(AuthorizationError, match="FORBIDDEN"):
            factory.set_fee_to_setter(OTHER, OTHER)
        factory.set_fee_to_setter(WALLET, OTHER)
        assert factory.fee_to_setter == OTHER
        assert factory.events[-1] == FeeToSetterChangedEvent(factory.address, WALLET, OTHER)
        with pytest.raises(AuthorizationError, match="FORBIDDEN"):
            factory.set_fee_to_setter(WALLET, WALLET)

    def test_revoke_authority_is_permanent(self):
        factory, _ = _factory()
        factory.set_fee_to(WALLET, OTHER)
        factory.set_fee_to_setter(WALLET, ZERO_ADDRESS)
        with pytest.raises(AuthorizationError):
            factory.set_fee_to(WALLET, ZERO_ADDRESS)
        with pytest.raises(AuthorizationError):
            factory.set_fee_to_setter(WALLET, WALLET)
        with pytest.raises(AuthorizationError):
            factory.set_fee_to_setter(ZERO_ADDRESS, WALLET)
        assert factory.fee_to == OTHER

    def test_from_config(self):
        config = PairdexConfig.from_dict({
            "engine": {"chain_id": 5},
            "factory": {"fee_to_setter": WALLET, "fee_to": OTHER},
        })
        config.validate()
        factory = PairFactory.from_config(config)
        assert factory.context.chain_id == 5
        assert factory.fee_to_setter == WALLET
        assert factory.fee_to == OTHER

    def test_from_config_fee_off(self):
        config = PairdexConfig.from_dict({"factory": {"fee_to_setter": WALLET}})
        config.validate()
        factory = PairFactory.from_config(config)
        assert factory.fee_to == ZERO_ADDRESS
