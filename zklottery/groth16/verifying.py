"""
Groth16 Verifier
=================

  e(A, B) == e(α, β) · e(IC, γ) · e(C, δ)

  IC = Σ_{i=0..l} pubᵢ·ic[i]  (pub₀ = 1)

py_ecc의 pairing(Q, P)는 (G2, G1) 순서로 인자를 받는다.
"""

import logging

from py_ecc import bn128

from zklottery.field import FR

logger = logging.getLogger(__name__)

mult = bn128.multiply
pairing = bn128.pairing
add = bn128.add


def is_valid_g1(pt):
    return pt is not None and bn128.is_on_curve(pt, bn128.b)


def is_valid_g2(pt):
    return pt is not None and bn128.is_on_curve(pt, bn128.b2)


def public_input_commitment(vk, public_inputs):
    """IC = ic[0] + Σ pubᵢ·ic[i+1]"""
    acc = vk.ic[0]
    for pt, value in zip(vk.ic[1:], public_inputs):
        v = int(FR(int(value)))
        if v == 0 or pt is None:
            continue
        acc = add(acc, mult(pt, v))
    return acc


def verify(vk, proof, public_inputs):
    """증명 (A, B, C)를 공개 입력에 대해 검증한다.

    Args:
        vk: VerifyingKey
        proof: (A: G1, B: G2, C: G1)
        public_inputs: 상수 1을 제외한 공개 신호 리스트

    Returns:
        bool
    """
    prf_a, prf_b, prf_c = proof
    if len(public_inputs) != len(vk.ic) - 1:
        logger.warning(
            "공개 입력 개수 불일치: %d (기대값 %d)", len(public_inputs), len(vk.ic) - 1
        )
        return False
    if not (is_valid_g1(prf_a) and is_valid_g2(prf_b) and is_valid_g1(prf_c)):
        logger.warning("증명 점이 곡선 위에 있지 않습니다")
        return False

    ic = public_input_commitment(vk, public_inputs)

    lhs = pairing(prf_b, prf_a)
    rhs = pairing(vk.beta_g2, vk.alpha_g1)
    rhs = rhs * pairing(vk.gamma_g2, ic)
    rhs = rhs * pairing(vk.delta_g2, prf_c)
    return lhs == rhs
