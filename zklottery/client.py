"""
복권 클라이언트 (LotteryClient)
================================

볼트, 빌더, 리졸버를 한 곳에서 조립하는 호출자 측 진입점.

  place_bet ──▶ CommitmentBuilder.build_bet ──▶ BetVault.put
  confirm_inclusion ──▶ BetVault.attach_merkle_path
  find_winning_bet ──▶ resolve_winner(BetVault.list_by_item)
  claim_win ──▶ find_winning_bet + CommitmentBuilder.build_winner_claim

볼트를 변경하는 연산(place_bet, confirm_inclusion)은 asyncio.Lock 하나로
직렬화된다. 잠금은 실행 중인 이벤트 루프마다 새로 만든다.
재시도는 항상 새 비밀값으로 한다 (build_bet이 매번 새로 만든다).

사용 예시:
    >>> async with LotteryClient.from_config(load_config()) as client:
    ...     result = await client.place_bet(1, 2, 10, total_tokens_before=0)
"""

import asyncio
import logging

from zklottery.builder import CommitmentBuilder
from zklottery.config import create_proof_backend, create_vault, hash_params_from_config
from zklottery.errors import DuplicateCommitmentError, ProofGenerationError
from zklottery.resolver import resolve_winner

logger = logging.getLogger(__name__)


class LotteryClient:
    """
    Args:
        vault: BetVault (열려 있지 않으면 열어서 쓴다)
        backend: ProofBackend
        hash_params: HashParams (기본값: backend.hash_params)
    """

    def __init__(self, vault, backend, hash_params=None):
        self.vault = vault
        self.backend = backend
        self.builder = CommitmentBuilder(vault, backend, hash_params)
        self._lock = None
        self._lock_loop = None

    def _mutation_lock(self):
        """실행 중인 이벤트 루프에 묶인 잠금. 루프가 바뀌면 새로 만든다."""
        loop = asyncio.get_running_loop()
        if self._lock_loop is not loop:
            self._lock = asyncio.Lock()
            self._lock_loop = loop
        return self._lock

    @classmethod
    def from_config(cls, config, vault_key=None):
        params = hash_params_from_config(config)
        backend = create_proof_backend(config, params)
        vault = create_vault(config, vault_key)
        return cls(vault, backend, params)

    def open(self):
        self.vault.open()
        return self

    def close(self):
        self.vault.close()

    async def __aenter__(self):
        return self.open()

    async def __aexit__(self, exc_type, exc, tb):
        self.close()

    # ─── 베팅 ───

    async def place_bet(self, lottery_id, item_id, token_amount, total_tokens_before,
                        retries=0):
        """베팅을 만들고 저장한다.

        증명 실패나 커밋먼트 충돌은 retries 횟수만큼 새 비밀값으로 다시 시도한다.

        Returns:
            BetBuildResult
        """
        async with self._mutation_lock():
            attempt = 0
            while True:
                try:
                    return await self.builder.build_bet(
                        lottery_id, item_id, token_amount, total_tokens_before
                    )
                except (ProofGenerationError, DuplicateCommitmentError) as e:
                    if attempt >= retries:
                        raise
                    attempt += 1
                    logger.warning("베팅 생성 재시도 %d/%d: %s", attempt, retries, e)

    async def confirm_inclusion(self, commitment, merkle_index, path, path_indices):
        """온체인 포함이 확인된 베팅에 Merkle 경로를 붙인다."""
        async with self._mutation_lock():
            return self.vault.attach_merkle_path(commitment, merkle_index, path, path_indices)

    # ─── 당첨 ───

    def find_winning_bet(self, lottery_id, item_id, winning_position):
        """이 디바이스에 당첨 베팅이 있으면 반환, 없으면 None"""
        return resolve_winner(winning_position, self.vault.list_by_item(lottery_id, item_id))

    async def claim_win(self, lottery_id, item_id, winning_position, merkle_root, recipient):
        """당첨 베팅이 있으면 클레임 증명을 만든다.

        Returns:
            WinnerClaimResult 또는 None (로컬 당첨 베팅 없음)
        """
        bet = self.find_winning_bet(lottery_id, item_id, winning_position)
        if bet is None:
            logger.info("lottery=%s item=%s: 로컬 당첨 베팅 없음", lottery_id, item_id)
            return None
        return await self.builder.build_winner_claim(bet, winning_position, merkle_root, recipient)
