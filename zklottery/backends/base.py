"""
증명 백엔드 인터페이스
=======================

커밋먼트 빌더가 의존하는 유일한 증명 능력(capability).
구현체를 바꿔도 다른 컴포넌트의 계약은 변하지 않는다.

  | 구현체               | 용도                                          |
  |----------------------|-----------------------------------------------|
  | StubProofBackend     | 허용적(permissive) 검증기 대상 통합 테스트    |
  | Groth16ProofBackend  | 실제 간결 증명 (py_ecc 기반 참조 구현)        |

두 구현 모두 8원소 ProofArtifact를 반환하므로 호출자는 구분할 필요가 없다.

**진술 (statement)**:
  베팅 커밋먼트:
    commitment    = H5(secret, nullifier, itemId, tokenAmount, salt)
    nullifierHash = H2(nullifier, lotteryId)
  당첨 클레임:
    위 커밋먼트가 merkleRoot 아래의 리프이고,
    ticketStart ≤ winningPosition < ticketStart + tokenAmount 이며,
    claimNullifierHash = H2(H2(nullifier, lotteryId), itemId)

증명 생성은 비동기이다. 취소되어도 볼트에는 아무것도 기록되지 않는다
(기록은 빌더가 증명을 받은 뒤에만 한다).
"""

import abc

from zklottery.hash import (
    DEFAULT_PARAMS,
    compute_commitment,
    compute_nullifier_hash,
    compute_claim_nullifier_hash,
    compute_merkle_root,
)


class ProofBackend(abc.ABC):
    """증명 생성/검증 능력.

    속성:
        hash_params: 진술에 쓰이는 HashParams (빌더와 같아야 한다)
    """

    name = "abstract"

    def __init__(self, hash_params=None):
        self.hash_params = hash_params if hash_params is not None else DEFAULT_PARAMS

    @abc.abstractmethod
    async def prove_bet_commitment(self, secrets, publics):
        """BetSecrets + BetPublics → ProofArtifact"""

    @abc.abstractmethod
    async def prove_winner_claim(self, secrets, merkle_proof, publics):
        """BetSecrets + MerkleProof + ClaimPublics → ProofArtifact"""

    @abc.abstractmethod
    def verify_bet_commitment(self, artifact, publics):
        """로컬 검증 (bool)"""

    @abc.abstractmethod
    def verify_winner_claim(self, artifact, publics):
        """로컬 검증 (bool)"""


def bet_statement_holds(secrets, publics, params=None):
    """평문으로 베팅 진술을 확인한다."""
    commitment = compute_commitment(
        secrets.secret, secrets.nullifier, publics.item_id,
        publics.token_amount, secrets.salt, params,
    )
    nullifier_hash = compute_nullifier_hash(secrets.nullifier, publics.lottery_id, params)
    return commitment == publics.commitment and nullifier_hash == publics.nullifier_hash


def claim_statement_holds(secrets, merkle_proof, publics, params=None):
    """평문으로 클레임 진술을 확인한다."""
    start = publics.ticket_start
    if not (start <= publics.winning_position < start + publics.token_amount):
        return False

    leaf = compute_commitment(
        secrets.secret, secrets.nullifier, publics.item_id,
        publics.token_amount, secrets.salt, params,
    )
    try:
        root = compute_merkle_root(
            leaf, merkle_proof.path_elements, merkle_proof.path_indices, params
        )
    except ValueError:
        return False
    if root != publics.merkle_root or merkle_proof.root != publics.merkle_root:
        return False

    claim_nullifier = compute_claim_nullifier_hash(
        secrets.nullifier, publics.lottery_id, publics.item_id, params
    )
    return claim_nullifier == publics.claim_nullifier_hash
