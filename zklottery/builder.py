"""
커밋먼트 빌더 (Commitment Builder)
===================================

베팅 생성과 당첨 클레임의 오케스트레이션.

**build_bet**:
  1. 새 비밀값 생성 (재사용하지 않는다)
  2. commitment = H5(secret, nullifier, itemId, tokenAmount, salt)
     nullifierHash = H2(nullifier, lotteryId)
  3. ticketRange = [totalTokensBefore, totalTokensBefore + tokenAmount)
  4. 증명 백엔드 호출 (await)
  5. 증명을 받은 뒤에만 볼트에 정확히 한 번 put

  증명 생성이 실패하거나 취소되면 볼트에는 아무것도 남지 않는다.

**build_winner_claim**:
  저장된 베팅, 당첨 위치, 온체인 Merkle 루트, 수령 주소로 클레임 증명을 만든다.
  볼트를 변경하지 않는다.

    ┌─────────────┐  prove   ┌──────────────┐
    │ Builder     │ ───────▶ │ ProofBackend │
    │             │ ◀─────── │              │
    └─────┬───────┘ artifact └──────────────┘
          │ put (성공 시에만)
          ▼
    ┌─────────────┐
    │ BetVault    │
    └─────────────┘
"""

import logging
import time

from zklottery.bet_secrets import generate_secrets
from zklottery.chain import address_to_field
from zklottery.field import to_field
from zklottery.errors import (
    IncompleteBetError,
    InvalidMerkleProofError,
    RangeMismatchError,
)
from zklottery.hash import (
    DEFAULT_PARAMS,
    compute_commitment,
    compute_nullifier_hash,
    compute_claim_nullifier_hash,
    compute_merkle_root,
    index_to_path_indices,
)
from zklottery.serializers import short_hex
from zklottery.types import (
    BetBuildResult,
    BetPublics,
    ClaimPublics,
    MerkleProof,
    StoredBet,
    TicketRange,
    WinnerClaimResult,
)

logger = logging.getLogger(__name__)


def _now_ms():
    return int(time.time() * 1000)


def _require_int(name, value, minimum):
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name}는 정수여야 합니다: {value!r}")
    if value < minimum:
        raise ValueError(f"{name}는 {minimum} 이상이어야 합니다: {value}")


class CommitmentBuilder:
    """베팅/클레임 빌더.

    Args:
        vault: 열린 BetVault
        backend: ProofBackend
        hash_params: HashParams (기본값: backend.hash_params)
        clock: epoch 밀리초를 반환하는 함수 (테스트용)
    """

    def __init__(self, vault, backend, hash_params=None, clock=None):
        self.vault = vault
        self.backend = backend
        if hash_params is None:
            hash_params = getattr(backend, "hash_params", DEFAULT_PARAMS)
        self.hash_params = hash_params
        self.clock = clock or _now_ms

    async def build_bet(self, lottery_id, item_id, token_amount, total_tokens_before):
        """새 베팅을 만들고 증명을 받은 뒤 볼트에 저장한다.

        Returns:
            BetBuildResult

        Raises:
            ValueError: 음수 ID, 0 이하 토큰 수량 등 잘못된 입력
            ProofGenerationError: 백엔드 실패 (볼트는 변경되지 않음)
            DuplicateCommitmentError: 커밋먼트 충돌 (사실상 일어나지 않음)
        """
        _require_int("lottery_id", lottery_id, 0)
        _require_int("item_id", item_id, 0)
        _require_int("token_amount", token_amount, 1)
        _require_int("total_tokens_before", total_tokens_before, 0)

        secrets = generate_secrets()
        params = self.hash_params

        commitment = compute_commitment(
            secrets.secret, secrets.nullifier, item_id, token_amount, secrets.salt, params
        )
        nullifier_hash = compute_nullifier_hash(secrets.nullifier, lottery_id, params)
        ticket_range = TicketRange.after(total_tokens_before, token_amount)

        publics = BetPublics(commitment, nullifier_hash, lottery_id, item_id, token_amount)
        proof = await self.backend.prove_bet_commitment(secrets, publics)

        self.vault.put(StoredBet(
            lottery_id=lottery_id,
            item_id=item_id,
            token_amount=token_amount,
            commitment=commitment,
            nullifier_hash=nullifier_hash,
            secrets=secrets,
            ticket_range=ticket_range,
            created_at=self.clock(),
        ))
        logger.info(
            "베팅 생성: lottery=%d item=%d range=%r commitment=%s",
            lottery_id, item_id, ticket_range, short_hex(commitment),
        )
        return BetBuildResult(proof, commitment, nullifier_hash, secrets, ticket_range)

    def _merkle_proof_for(self, bet, merkle_root):
        path = bet.merkle_path or []
        indices = bet.merkle_path_indices or []
        if len(path) != len(indices):
            raise InvalidMerkleProofError("저장된 Merkle 경로 길이가 일치하지 않습니다")
        try:
            expected = index_to_path_indices(bet.merkle_index, len(indices))
        except ValueError as e:
            raise InvalidMerkleProofError(str(e)) from e
        if indices != expected:
            raise InvalidMerkleProofError(
                f"경로 인덱스가 merkleIndex={bet.merkle_index}와 일치하지 않습니다"
            )
        root = compute_merkle_root(bet.commitment, path, indices, self.hash_params)
        if root != merkle_root:
            raise InvalidMerkleProofError(
                f"저장된 경로가 루트 {short_hex(merkle_root)}를 재현하지 않습니다"
            )
        return MerkleProof(path, indices, root)

    async def build_winner_claim(self, stored_bet, winning_position, merkle_root, recipient):
        """당첨 클레임 증명을 만든다. 볼트를 변경하지 않는다.

        Args:
            stored_bet: 포함이 확인된 StoredBet
            winning_position: 추첨으로 공개된 위치
            merkle_root: 온체인 커밋먼트 트리 루트
            recipient: 상금을 받을 이더리움 주소 ('0x' + 40자리)

        Returns:
            WinnerClaimResult

        Raises:
            IncompleteBetError: merkleIndex == -1
            RangeMismatchError: 위치가 베팅 범위 밖
            InvalidMerkleProofError: 저장된 경로가 루트를 재현하지 않음
            ValueError: 잘못된 수령 주소
        """
        if not stored_bet.is_included:
            raise IncompleteBetError(
                f"포함이 확인되지 않은 베팅입니다: {short_hex(stored_bet.commitment)}"
            )
        if not stored_bet.ticket_range.contains(winning_position):
            raise RangeMismatchError(
                f"위치 {winning_position}가 {stored_bet.ticket_range!r} 밖입니다"
            )

        merkle_root = to_field(merkle_root)
        recipient_field = address_to_field(recipient)
        merkle_proof = self._merkle_proof_for(stored_bet, merkle_root)

        claim_nullifier_hash = compute_claim_nullifier_hash(
            stored_bet.secrets.nullifier, stored_bet.lottery_id, stored_bet.item_id,
            self.hash_params,
        )
        publics = ClaimPublics(
            merkle_root=merkle_root,
            claim_nullifier_hash=claim_nullifier_hash,
            lottery_id=stored_bet.lottery_id,
            item_id=stored_bet.item_id,
            winning_position=winning_position,
            ticket_start=stored_bet.ticket_range.start,
            recipient=recipient_field,
            token_amount=stored_bet.token_amount,
        )
        proof = await self.backend.prove_winner_claim(stored_bet.secrets, merkle_proof, publics)
        logger.info(
            "클레임 증명 생성: lottery=%d item=%d position=%d",
            stored_bet.lottery_id, stored_bet.item_id, winning_position,
        )
        return WinnerClaimResult(proof, claim_nullifier_hash)
