import pytest

from zklottery.groth16.circuits import CircuitShape
from zklottery.hash import (
    HashParams,
    hash2,
    compute_commitment,
    compute_nullifier_hash,
    compute_claim_nullifier_hash,
)
from zklottery.types import BetSecrets, BetPublics, ClaimPublics, MerkleProof


# ── 작은 회로 (순수 Python 페어링이 느리므로) ──
SHAPE_DEPTH = 2
SHAPE_BITS = 8
SETUP_SEED = b"zklottery-tests"

SECRETS = BetSecrets(1001, 2002, 3003)
LOTTERY_ID, ITEM_ID, AMOUNT, TICKET_START = 4, 5, 6, 10
RECIPIENT = 0xABCDEF0123456789ABCDEF0123456789ABCDEF01


@pytest.fixture(scope="session")
def witness():
    """베팅 비밀값 (secret, nullifier, salt)"""
    return SECRETS


@pytest.fixture(scope="session")
def legacy_params():
    return HashParams.legacy()


@pytest.fixture(scope="session")
def shape(legacy_params):
    return CircuitShape(legacy_params, tree_depth=SHAPE_DEPTH, range_bits=SHAPE_BITS)


@pytest.fixture(scope="session")
def bet_publics(legacy_params):
    s = SECRETS
    return BetPublics(
        compute_commitment(s.secret, s.nullifier, ITEM_ID, AMOUNT, s.salt, legacy_params),
        compute_nullifier_hash(s.nullifier, LOTTERY_ID, legacy_params),
        LOTTERY_ID, ITEM_ID, AMOUNT,
    )


@pytest.fixture(scope="session")
def claim_case(legacy_params, bet_publics):
    """리프 인덱스 2 (경로 비트 [0, 1]), 티켓 구간 [10, 16)

    Returns:
        (merkle_proof, publics(position=12, ...))
    """
    leaves = [7, 8, bet_publics.commitment, 9]
    left = hash2(leaves[0], leaves[1], legacy_params)
    right = hash2(leaves[2], leaves[3], legacy_params)
    root = hash2(left, right, legacy_params)
    proof = MerkleProof([leaves[3], left], [0, 1], root)

    def publics(position=12, ticket_start=TICKET_START, recipient=RECIPIENT, root=root):
        return ClaimPublics(
            merkle_root=root,
            claim_nullifier_hash=compute_claim_nullifier_hash(
                SECRETS.nullifier, LOTTERY_ID, ITEM_ID, legacy_params
            ),
            lottery_id=LOTTERY_ID,
            item_id=ITEM_ID,
            winning_position=position,
            ticket_start=ticket_start,
            recipient=recipient,
            token_amount=AMOUNT,
        )
    return proof, publics
