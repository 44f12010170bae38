"""
복권 회로 (Lottery Circuits)
=============================

두 진술을 ConstraintSystem으로 만든다. 같은 CircuitShape에서 만든 회로는
witness와 관계없이 항상 같은 구조를 가진다.

**베팅 커밋먼트 회로**:
  공개: [commitment, nullifierHash, lotteryId, itemId, tokenAmount]
  개인: secret, nullifier, salt
  제약:
    H5(secret, nullifier, itemId, tokenAmount, salt) = commitment
    H2(nullifier, lotteryId)                         = nullifierHash
    1 ≤ tokenAmount < 2^range_bits

**당첨 클레임 회로**:
  공개: [merkleRoot, claimNullifierHash, lotteryId, itemId,
         winningPosition, ticketStart, recipient]
  개인: secret, nullifier, salt, tokenAmount, pathElements, pathIndices
  제약:
    leaf = H5(secret, nullifier, itemId, tokenAmount, salt)
    MerkleRoot(leaf, path)                           = merkleRoot
    H2(H2(nullifier, lotteryId), itemId)             = claimNullifierHash
    d1 = winningPosition - ticketStart               ∈ [0, 2^range_bits)
    d2 = tokenAmount - 1 - d1                        ∈ [0, 2^range_bits)
    recipient² (recipient을 증명에 묶는다)

  d1, d2 두 범위 검사가 ticketStart ≤ winningPosition < ticketStart + tokenAmount 를 뜻한다.
"""

import hashlib

from zklottery.groth16.r1cs import ConstraintSystem
from zklottery.groth16.gadgets import (
    hash2_gadget,
    hash5_gadget,
    merkle_root_gadget,
    range_check_gadget,
)
from zklottery.hash import DEFAULT_PARAMS

BET_COMMITMENT = "bet-commitment"
WINNER_CLAIM = "winner-claim"


class CircuitShape:
    """회로 구조를 결정하는 파라미터.

    속성:
        hash_params: HashParams
        tree_depth: 커밋먼트 Merkle 트리 깊이
        range_bits: 티켓 위치/수량 범위 검사 비트 수
    """

    def __init__(self, hash_params=None, tree_depth=20, range_bits=64):
        if tree_depth < 1:
            raise ValueError(f"트리 깊이는 1 이상이어야 합니다: {tree_depth}")
        if not 1 <= range_bits <= 128:
            raise ValueError(f"range_bits는 1~128 이어야 합니다: {range_bits}")
        self.hash_params = hash_params if hash_params is not None else DEFAULT_PARAMS
        self.tree_depth = tree_depth
        self.range_bits = range_bits

    def fingerprint(self, kind):
        """키 캐시 파일 이름용 식별자"""
        h = hashlib.sha256()
        h.update(kind.encode())
        h.update(self.tree_depth.to_bytes(4, "big"))
        h.update(self.range_bits.to_bytes(4, "big"))
        for k0, k1 in self.hash_params.round_constants:
            h.update(int(k0).to_bytes(32, "big"))
            h.update(int(k1).to_bytes(32, "big"))
        return h.hexdigest()[:16]

    def __eq__(self, other):
        if not isinstance(other, CircuitShape):
            return NotImplemented
        return (
            self.hash_params == other.hash_params
            and self.tree_depth == other.tree_depth
            and self.range_bits == other.range_bits
        )

    def __hash__(self):
        return hash((self.hash_params, self.tree_depth, self.range_bits))


def bet_commitment_circuit(shape, secrets=None, publics=None):
    """베팅 커밋먼트 회로. 인자가 None이면 0 witness로 구조만 만든다."""
    params = shape.hash_params
    cs = ConstraintSystem()

    signals = publics.signals() if publics is not None else [0] * 5
    commitment, nullifier_hash, lottery_id, item_id, token_amount = [
        cs.public_input(v) for v in signals
    ]

    if secrets is not None:
        secret = cs.private_input(secrets.secret)
        nullifier = cs.private_input(secrets.nullifier)
        salt = cs.private_input(secrets.salt)
    else:
        secret, nullifier, salt = (cs.private_input(0) for _ in range(3))

    c = hash5_gadget(cs, secret, nullifier, item_id, token_amount, salt, params)
    cs.enforce_equal(c, commitment)

    nh = hash2_gadget(cs, nullifier, lottery_id, params)
    cs.enforce_equal(nh, nullifier_hash)

    range_check_gadget(cs, token_amount - 1, shape.range_bits)
    return cs


def winner_claim_circuit(shape, secrets=None, merkle_proof=None, publics=None):
    """당첨 클레임 회로. 인자가 None이면 0 witness로 구조만 만든다.

    Raises:
        ValueError: Merkle 경로 깊이가 shape.tree_depth와 다를 때
    """
    params = shape.hash_params
    depth = shape.tree_depth
    cs = ConstraintSystem()

    signals = publics.signals() if publics is not None else [0] * 7
    (merkle_root, claim_nullifier_hash, lottery_id, item_id,
     winning_position, ticket_start, recipient) = [cs.public_input(v) for v in signals]

    if secrets is not None:
        secret = cs.private_input(secrets.secret)
        nullifier = cs.private_input(secrets.nullifier)
        salt = cs.private_input(secrets.salt)
    else:
        secret, nullifier, salt = (cs.private_input(0) for _ in range(3))
    token_amount = cs.private_input(publics.token_amount if publics is not None else 0)

    if merkle_proof is not None:
        if merkle_proof.depth != depth:
            raise ValueError(
                f"Merkle 경로 깊이 {merkle_proof.depth}가 회로 깊이 {depth}와 다릅니다"
            )
        path = [cs.private_input(x) for x in merkle_proof.path_elements]
        bits = [cs.private_input(i) for i in merkle_proof.path_indices]
    else:
        path = [cs.private_input(0) for _ in range(depth)]
        bits = [cs.private_input(0) for _ in range(depth)]

    leaf = hash5_gadget(cs, secret, nullifier, item_id, token_amount, salt, params)
    root = merkle_root_gadget(cs, leaf, path, bits, params)
    cs.enforce_equal(root, merkle_root)

    inner = hash2_gadget(cs, nullifier, lottery_id, params)
    cnh = hash2_gadget(cs, inner, item_id, params)
    cs.enforce_equal(cnh, claim_nullifier_hash)

    offset = winning_position - ticket_start
    range_check_gadget(cs, offset, shape.range_bits)
    range_check_gadget(cs, token_amount - 1 - offset, shape.range_bits)

    cs.mul(recipient, recipient)
    return cs


CIRCUITS = {
    BET_COMMITMENT: bet_commitment_circuit,
    WINNER_CLAIM: winner_claim_circuit,
}
