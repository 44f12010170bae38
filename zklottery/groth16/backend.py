"""
Groth16 증명 백엔드
====================

ProofBackend의 실제 증명 구현. 흐름:

  1. 회로 구조(CircuitShape)와 종류마다 한 번 trusted setup
     (메모리 캐시, key_dir가 있으면 JSON 파일 캐시)
  2. witness를 채운 회로 구성
  3. 워커 스레드에서 증명 생성 (asyncio.to_thread)
  4. (A, B, C) → 8원소 ProofArtifact

**아티팩트 인코딩** (온체인 검증기 precompile 순서):
  [A.x, A.y,
   B.x.c1, B.x.c0, B.y.c1, B.y.c0,   ← G2 좌표는 허수부가 먼저
   C.x, C.y]
  무한원점은 (0, 0).

참조 구현이다. 감사되지 않았고 순수 Python이라 느리다.
"""

import asyncio
import json
import logging
import threading
from pathlib import Path

from py_ecc import bn128
from py_ecc.fields import bn128_FQ as FQ

from zklottery.backends.base import ProofBackend
from zklottery.errors import ProofGenerationError
from zklottery.groth16.circuits import (
    BET_COMMITMENT,
    WINNER_CLAIM,
    CIRCUITS,
    CircuitShape,
    bet_commitment_circuit,
    winner_claim_circuit,
)
from zklottery.groth16.proving import prove
from zklottery.groth16.setup import setup, ProvingKey, VerifyingKey
from zklottery.groth16.verifying import verify
from zklottery.types import ProofArtifact

logger = logging.getLogger(__name__)


# ─── 아티팩트 ↔ 곡선 점 ───

def _g1_to_ints(pt):
    if pt is None:
        return [0, 0]
    return [int(pt[0]), int(pt[1])]


def _ints_to_g1(x, y):
    if x == 0 and y == 0:
        return None
    return (FQ(x), FQ(y))


def proof_to_artifact(proof):
    """(A, B, C) → ProofArtifact"""
    prf_a, prf_b, prf_c = proof
    if prf_b is None:
        b = [0, 0, 0, 0]
    else:
        x, y = prf_b
        b = [int(x.coeffs[1]), int(x.coeffs[0]), int(y.coeffs[1]), int(y.coeffs[0])]
    return ProofArtifact(_g1_to_ints(prf_a) + b + _g1_to_ints(prf_c))


def artifact_to_proof(artifact):
    """ProofArtifact → (A, B, C). 곡선 위 검사는 검증 단계에서 한다."""
    e = artifact.elements
    if e[2:6] == [0, 0, 0, 0]:
        prf_b = None
    else:
        prf_b = (bn128.FQ2([e[3], e[2]]), bn128.FQ2([e[5], e[4]]))
    return _ints_to_g1(e[0], e[1]), prf_b, _ints_to_g1(e[6], e[7])


class Groth16ProofBackend(ProofBackend):
    """py_ecc 기반 Groth16 백엔드.

    Args:
        hash_params: HashParams
        tree_depth: 클레임 회로의 Merkle 트리 깊이
        range_bits: 범위 검사 비트 수
        setup_seed: 재현 가능한 setup용 bytes/str (None이면 CSPRNG)
        key_dir: 키 캐시 디렉터리 (None이면 메모리만)
    """

    name = "groth16"

    def __init__(self, hash_params=None, tree_depth=20, range_bits=64,
                 setup_seed=None, key_dir=None):
        super().__init__(hash_params)
        self.shape = CircuitShape(self.hash_params, tree_depth, range_bits)
        if isinstance(setup_seed, str):
            setup_seed = setup_seed.encode("utf-8")
        self.setup_seed = setup_seed
        self.key_dir = Path(key_dir) if key_dir is not None else None
        self._keys = {}
        self._lock = threading.Lock()

    # ─── 키 관리 ───

    def _key_path(self, kind):
        return self.key_dir / f"{kind}-{self.shape.fingerprint(kind)}.json"

    def _load_keys(self, kind):
        path = self._key_path(kind)
        if not path.exists():
            return None
        data = json.loads(path.read_text())
        logger.info("Groth16 키 로드: %s", path)
        return ProvingKey.from_dict(data["provingKey"]), VerifyingKey.from_dict(data["verifyingKey"])

    def _store_keys(self, kind, pk, vk):
        self.key_dir.mkdir(parents=True, exist_ok=True)
        path = self._key_path(kind)
        path.write_text(json.dumps({"provingKey": pk.to_dict(), "verifyingKey": vk.to_dict()}))
        logger.info("Groth16 키 저장: %s", path)

    def keys(self, kind):
        """회로 종류의 (ProvingKey, VerifyingKey). 처음 호출 시 setup한다."""
        with self._lock:
            if kind not in self._keys:
                keys = self._load_keys(kind) if self.key_dir is not None else None
                if keys is None:
                    cs = CIRCUITS[kind](self.shape)
                    keys = setup(cs, self.setup_seed, kind.encode())
                    if self.key_dir is not None:
                        self._store_keys(kind, *keys)
                self._keys[kind] = keys
            return self._keys[kind]

    # ─── 증명 ───

    def _prove(self, kind, cs):
        pk, _ = self.keys(kind)
        return proof_to_artifact(prove(pk, cs))

    def _prove_bet(self, secrets, publics):
        cs = bet_commitment_circuit(self.shape, secrets, publics)
        return self._prove(BET_COMMITMENT, cs)

    def _prove_claim(self, secrets, merkle_proof, publics):
        try:
            cs = winner_claim_circuit(self.shape, secrets, merkle_proof, publics)
        except ValueError as e:
            raise ProofGenerationError(str(e)) from e
        return self._prove(WINNER_CLAIM, cs)

    async def prove_bet_commitment(self, secrets, publics):
        logger.info("Groth16 베팅 증명 요청: lottery=%s item=%s", publics.lottery_id, publics.item_id)
        return await asyncio.to_thread(self._prove_bet, secrets, publics)

    async def prove_winner_claim(self, secrets, merkle_proof, publics):
        logger.info("Groth16 클레임 증명 요청: lottery=%s item=%s", publics.lottery_id, publics.item_id)
        return await asyncio.to_thread(self._prove_claim, secrets, merkle_proof, publics)

    # ─── 검증 ───

    def _verify(self, kind, artifact, signals):
        _, vk = self.keys(kind)
        return verify(vk, artifact_to_proof(artifact), signals)

    def verify_bet_commitment(self, artifact, publics):
        return self._verify(BET_COMMITMENT, artifact, publics.signals())

    def verify_winner_claim(self, artifact, publics):
        return self._verify(WINNER_CLAIM, artifact, publics.signals())
