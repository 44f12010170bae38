"""
필드 해시 엔진 (Field Hash Engine)
====================================

BN254 스칼라 필드 위의 2-입력 압축 함수 H2와 5-입력 체인 H5.
커밋먼트, 널리파이어 해시, 클레임 널리파이어, Merkle 트리 노드가 모두
이 해시 하나로 계산되며, Groth16 회로(zklottery.groth16.gadgets)도
정확히 같은 연산을 제약으로 표현한다.

**순열 구조** (라운드 i마다):
  1. 라운드 상수 덧셈:  s0 ← s0 + k0ᵢ,  s1 ← s1 + k1ᵢ
  2. S-box:             s0 ← s0⁵
  3. 선형 혼합 (마지막 라운드 제외):
       (s0, s1) ← (s0 + s1, s0 + 2·s1)
  출력: s0 + s1

**파라미터 프리셋**:
  | 프리셋    | 라운드 | 상수 출처                          |
  |-----------|--------|------------------------------------|
  | legacy    | 2      | 기존 프론트엔드와 동일한 상수 3개  |
  | extended  | 8      | SHA-256 카운터로 도출              |

  legacy는 기존에 만들어진 커밋먼트와 호환되지만 라운드 수가 너무 적다.
  라운드 수와 상수는 HashParams로 주입한다.

**도메인 규칙**:
  p 이상의 정수 입력은 연산 전에 mod p로 축소된다. 오류가 아니다.

사용 예시:
    >>> from zklottery.hash import hash2, compute_commitment
    >>> hash2(1, 2) == hash2(1, 2)   # True (결정론적)
    >>> compute_commitment(1, 2, 5, 10, 3)
"""

from zklottery.field import FR, to_field
from zklottery.transcript import Transcript


# 기존 프론트엔드의 라운드 상수
_LEGACY_CONSTANTS = (
    14397397413755236225575615486459253198602422701513067526754101844196324375522,
    10405129301473404666785234951972711717481302463898292859783056520670200613128,
    5179144822360023508491245509308555580251733042407187134628755730783052214509,
)

DEFAULT_ROUNDS = 8
DEFAULT_SEED = b"zklottery/hash/v1"


class HashParams:
    """순열 파라미터: 라운드별 (k0, k1) 상수 쌍.

    속성:
        name: 프리셋 이름 (로그/캐시 키용)
        round_constants: [(FR, FR), ...] 라운드 수만큼
    """

    def __init__(self, name, round_constants):
        if not round_constants:
            raise ValueError("라운드가 최소 1개 필요합니다")
        self.name = name
        self.round_constants = [(to_field(k0), to_field(k1)) for k0, k1 in round_constants]

    @property
    def rounds(self):
        return len(self.round_constants)

    @classmethod
    def legacy(cls):
        """기존 프론트엔드 호환 프리셋 (2 라운드)."""
        c0, c1, c2 = _LEGACY_CONSTANTS
        return cls("legacy", [(c0, 0), (c1, c2)])

    @classmethod
    def generate(cls, rounds=DEFAULT_ROUNDS, seed=DEFAULT_SEED):
        """SHA-256 트랜스크립트에서 라운드 상수를 도출한다.

        Args:
            rounds: 라운드 수
            seed: 도메인 분리용 바이트열

        예시:
            >>> HashParams.generate(8).rounds  # 8
        """
        if rounds < 1:
            raise ValueError(f"라운드 수는 1 이상이어야 합니다: {rounds}")
        t = Transcript(seed)
        t.append_bytes(b"rounds", rounds.to_bytes(4, "big"))
        constants = []
        for i in range(rounds):
            k0 = t.challenge_scalar(b"k0")
            k1 = t.challenge_scalar(b"k1")
            constants.append((k0, k1))
        return cls(f"extended-{rounds}", constants)

    @classmethod
    def from_preset(cls, preset, rounds=DEFAULT_ROUNDS):
        if preset == "legacy":
            return cls.legacy()
        if preset == "extended":
            return cls.generate(rounds)
        raise ValueError(f"알 수 없는 해시 프리셋: {preset!r}")

    def __eq__(self, other):
        if not isinstance(other, HashParams):
            return NotImplemented
        return self.round_constants == other.round_constants

    def __hash__(self):
        return hash(tuple((int(a), int(b)) for a, b in self.round_constants))

    def __repr__(self):
        return f"HashParams({self.name!r}, rounds={self.rounds})"


DEFAULT_PARAMS = HashParams.generate()


def sbox(x):
    """S-box: x⁵ mod p"""
    x2 = x * x
    x4 = x2 * x2
    return x4 * x


def hash2(a, b, params=None):
    """2-입력 압축 함수 H2(a, b).

    위치에 민감하다: H2(a, b) ≠ H2(b, a) (일반적으로).

    Args:
        a, b: 필드 원소 (int/str/FR, mod p 축소)
        params: HashParams (기본값: DEFAULT_PARAMS)

    Returns:
        FR
    """
    if params is None:
        params = DEFAULT_PARAMS
    s0 = to_field(a)
    s1 = to_field(b)

    last = params.rounds - 1
    for i, (k0, k1) in enumerate(params.round_constants):
        s0 = sbox(s0 + k0)
        s1 = s1 + k1
        if i < last:
            s0, s1 = s0 + s1, s0 + s1 + s1
    return s0 + s1


def hash5(a, b, c, d, e, params=None):
    """H5 = H2(H2(H2(H2(a, b), c), d), e)"""
    h = hash2(a, b, params)
    h = hash2(h, c, params)
    h = hash2(h, d, params)
    return hash2(h, e, params)


# ─────────────────────────────────────────────────────────────────────
# 프로토콜 다이제스트
# ─────────────────────────────────────────────────────────────────────

def compute_commitment(secret, nullifier, item_id, token_amount, salt, params=None):
    """베팅 커밋먼트 = H5(secret, nullifier, itemId, tokenAmount, salt)"""
    return hash5(secret, nullifier, item_id, token_amount, salt, params)


def compute_nullifier_hash(nullifier, lottery_id, params=None):
    """베팅 널리파이어 해시 = H2(nullifier, lotteryId)"""
    return hash2(nullifier, lottery_id, params)


def compute_claim_nullifier_hash(nullifier, lottery_id, item_id, params=None):
    """클레임 널리파이어 해시 = H2(H2(nullifier, lotteryId), itemId)

    (lotteryId, itemId, nullifier)마다 유일하므로 같은 당첨을 두 번 청구할 수 없다.
    """
    return hash2(hash2(nullifier, lottery_id, params), item_id, params)


# ─────────────────────────────────────────────────────────────────────
# Merkle 경로
# ─────────────────────────────────────────────────────────────────────

def compute_merkle_root(leaf, path_elements, path_indices, params=None):
    """리프와 형제 노드 경로로부터 루트를 재계산한다.

    path_indices[i] == 0 이면 현재 노드가 왼쪽: H2(node, sibling)
    path_indices[i] == 1 이면 현재 노드가 오른쪽: H2(sibling, node)

    Raises:
        ValueError: 경로 길이 불일치 또는 0/1이 아닌 인덱스
    """
    if len(path_elements) != len(path_indices):
        raise ValueError(
            f"경로 길이 불일치: elements={len(path_elements)}, indices={len(path_indices)}"
        )
    node = to_field(leaf)
    for sibling, index in zip(path_elements, path_indices):
        if index == 0:
            node = hash2(node, sibling, params)
        elif index == 1:
            node = hash2(sibling, node, params)
        else:
            raise ValueError(f"경로 인덱스는 0 또는 1이어야 합니다: {index!r}")
    return node


def verify_merkle_proof(leaf, proof, params=None):
    """MerkleProof가 leaf를 proof.root에 포함시키는지 확인한다."""
    try:
        root = compute_merkle_root(leaf, proof.path_elements, proof.path_indices, params)
    except ValueError:
        return False
    return root == to_field(proof.root)


def index_to_path_indices(index, depth):
    """리프 인덱스 → 하위 비트부터의 경로 인덱스 리스트."""
    if index < 0 or index >= (1 << depth):
        raise ValueError(f"깊이 {depth} 트리의 리프 인덱스 범위를 벗어났습니다: {index}")
    return [(index >> level) & 1 for level in range(depth)]
