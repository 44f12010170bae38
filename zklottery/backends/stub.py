"""
결정론적 스텁 증명 백엔드
==========================

허용적 검증기(mock verifier)를 쓰는 통합 테스트용.

- 진술은 평문으로 확인한다. 비밀값이 진술을 만족하지 않으면
  ProofGenerationError를 던진다 (실제 증명자가 실패하는 경우와 같다).
- 아티팩트는 공개 신호의 SHA-256 트랜스크립트에서 뽑은 8개 원소이다.
  같은 공개 신호에는 항상 같은 아티팩트가 나온다.
- 검증은 아티팩트를 다시 계산해서 비교한다.

영지식성도 건전성도 없다. 운영 환경에서 쓰면 안 된다.
"""

import logging

from zklottery.backends.base import (
    ProofBackend,
    bet_statement_holds,
    claim_statement_holds,
)
from zklottery.errors import ProofGenerationError
from zklottery.transcript import Transcript
from zklottery.types import ProofArtifact

logger = logging.getLogger(__name__)

_BET_LABEL = b"zklottery/stub/bet-commitment"
_CLAIM_LABEL = b"zklottery/stub/winner-claim"
_ELEMENT_LABELS = (b"a0", b"a1", b"b00", b"b01", b"b10", b"b11", b"c0", b"c1")


def _stub_artifact(label, signals):
    t = Transcript(label)
    for i, signal in enumerate(signals):
        t.append_scalar(b"pub%d" % i, signal)
    return ProofArtifact([int(t.challenge_scalar(name)) for name in _ELEMENT_LABELS])


class StubProofBackend(ProofBackend):
    name = "stub"

    async def prove_bet_commitment(self, secrets, publics):
        if not bet_statement_holds(secrets, publics, self.hash_params):
            raise ProofGenerationError("비밀값이 커밋먼트/널리파이어 해시를 재현하지 않습니다")
        logger.debug("스텁 베팅 증명 생성")
        return _stub_artifact(_BET_LABEL, publics.signals())

    async def prove_winner_claim(self, secrets, merkle_proof, publics):
        if not claim_statement_holds(secrets, merkle_proof, publics, self.hash_params):
            raise ProofGenerationError("클레임 진술이 성립하지 않습니다")
        logger.debug("스텁 클레임 증명 생성")
        return _stub_artifact(_CLAIM_LABEL, publics.signals())

    def verify_bet_commitment(self, artifact, publics):
        return artifact == _stub_artifact(_BET_LABEL, publics.signals())

    def verify_winner_claim(self, artifact, publics):
        return artifact == _stub_artifact(_CLAIM_LABEL, publics.signals())
