import pytest

from zklottery.backends.stub import StubProofBackend
from zklottery.builder import CommitmentBuilder
from zklottery.field import FR
from zklottery.hash import hash2, compute_commitment, compute_nullifier_hash
from zklottery.types import BetSecrets, StoredBet, TicketRange
from zklottery.vault import BetVault


# ── 테스트 상수 ──
FIXED_TIME_MS = 1_700_000_000_000
TREE_DEPTH = 4


class MerkleTree:
    """테스트용 고정 깊이 Merkle 트리 (빈 리프는 0)."""

    def __init__(self, leaves, depth, params=None):
        size = 1 << depth
        if len(leaves) > size:
            raise ValueError("리프가 너무 많습니다")
        level = [FR(int(x)) for x in leaves] + [FR(0)] * (size - len(leaves))
        self.depth = depth
        self.levels = [level]
        for _ in range(depth):
            level = [hash2(level[i], level[i + 1], params) for i in range(0, len(level), 2)]
            self.levels.append(level)

    @property
    def root(self):
        return self.levels[-1][0]

    def path(self, index):
        """(path_elements, path_indices)"""
        elements, indices = [], []
        for d in range(self.depth):
            elements.append(self.levels[d][index ^ 1])
            indices.append(index & 1)
            index >>= 1
        return elements, indices


@pytest.fixture
def recipient():
    return "0x" + "ab" * 20


@pytest.fixture
def vault():
    v = BetVault.in_memory().open()
    yield v
    v.close()


@pytest.fixture
def stub_backend():
    return StubProofBackend()


@pytest.fixture
def builder(vault, stub_backend):
    return CommitmentBuilder(vault, stub_backend, clock=lambda: FIXED_TIME_MS)


@pytest.fixture
def merkle_tree():
    """MerkleTree(leaves, depth=TREE_DEPTH, params=None) 팩토리"""
    def factory(leaves, depth=TREE_DEPTH, params=None):
        return MerkleTree(leaves, depth, params)
    return factory


@pytest.fixture
def make_bet():
    """실제 커밋먼트를 가진 StoredBet 팩토리 (seed로 비밀값 결정)"""
    def factory(lottery_id=1, item_id=2, amount=10, start=0, seed=1, params=None):
        secrets = BetSecrets(seed * 3 + 1, seed * 3 + 2, seed * 3 + 3)
        return StoredBet(
            lottery_id=lottery_id,
            item_id=item_id,
            token_amount=amount,
            commitment=compute_commitment(
                secrets.secret, secrets.nullifier, item_id, amount, secrets.salt, params
            ),
            nullifier_hash=compute_nullifier_hash(secrets.nullifier, lottery_id, params),
            secrets=secrets,
            ticket_range=TicketRange.after(start, amount),
            created_at=FIXED_TIME_MS + seed,
        )
    return factory
