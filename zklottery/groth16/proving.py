"""
Groth16 Prover
===============

**몫 다항식 h(x)**:
  행별 평가값 a_r = A_r·w, b_r = B_r·w, c_r = C_r·w 를 IFFT로 보간한 뒤
  코셋 5·H 위에서
    h(5ωⁱ) = (A(5ωⁱ)·B(5ωⁱ) - C(5ωⁱ)) / (5ⁿ - 1)
  를 계산하고 코셋 IFFT로 계수를 얻는다. deg h ≤ n - 2.

**증명 (r, s는 무작위)**:
  A = [α]₁ + Σ wᵢ·a_query[i] + r·[δ]₁
  B = [β]₂ + Σ wᵢ·b_g2_query[i] + s·[δ]₂
  B₁ = [β]₁ + Σ wᵢ·b_g1_query[i] + s·[δ]₁
  C = Σ_priv wᵢ·l_query[i] + Σ hⱼ·h_query[j] + s·A + r·B₁ - r·s·[δ]₁
"""

import logging
import secrets

from py_ecc import bn128

from zklottery.errors import ProofGenerationError
from zklottery.field import FR, CURVE_ORDER, get_root_of_unity
from zklottery.polynomial import ifft, coset_fft, coset_ifft
from zklottery.groth16.setup import qap_rows

logger = logging.getLogger(__name__)

mult = bn128.multiply
add = bn128.add
neg = bn128.neg

COSET_SHIFT = FR(5)


def compute_h(cs, n):
    """몫 다항식 h(x)의 계수 (길이 n - 1)"""
    omega = get_root_of_unity(n)
    w = cs.values

    a_evals = [FR(0)] * n
    b_evals = [FR(0)] * n
    c_evals = [FR(0)] * n
    for r, (a, b, c) in enumerate(qap_rows(cs)):
        a_evals[r] = a.evaluate(w)
        b_evals[r] = b.evaluate(w)
        c_evals[r] = c.evaluate(w)

    a_coset = coset_fft(ifft(a_evals, omega), omega, COSET_SHIFT)
    b_coset = coset_fft(ifft(b_evals, omega), omega, COSET_SHIFT)
    c_coset = coset_fft(ifft(c_evals, omega), omega, COSET_SHIFT)

    z_inv = FR(1) / (COSET_SHIFT ** n - FR(1))
    h_coset = [(a_coset[i] * b_coset[i] - c_coset[i]) * z_inv for i in range(n)]
    h = coset_ifft(h_coset, omega, COSET_SHIFT)
    return h[:n - 1]


def _msm(points, scalars):
    """Σ scalarᵢ·pointᵢ (0 스칼라와 무한원점은 건너뛴다)"""
    acc = None
    for pt, s in zip(points, scalars):
        s = int(s)
        if s == 0 or pt is None:
            continue
        acc = add(acc, mult(pt, s))
    return acc


def prove(pk, cs, r=None, s=None):
    """witness가 채워진 ConstraintSystem에 대한 증명을 만든다.

    Args:
        pk: ProvingKey (같은 구조의 회로로 생성된 것)
        cs: witness를 포함한 ConstraintSystem
        r, s: 블라인딩 스칼라 (테스트용, 기본값 CSPRNG)

    Returns:
        (A, B, C): G1, G2, G1 점

    Raises:
        ProofGenerationError: 제약이 만족되지 않거나 키와 구조가 맞지 않을 때
    """
    unsatisfied = cs.first_unsatisfied()
    if unsatisfied is not None:
        raise ProofGenerationError(f"witness가 제약 #{unsatisfied}를 만족하지 않습니다")
    if len(pk.a_query) != cs.num_variables or pk.num_public != cs.num_public:
        raise ProofGenerationError("증명키가 회로 구조와 맞지 않습니다")

    if r is None:
        r = FR(secrets.randbelow(CURVE_ORDER))
    if s is None:
        s = FR(secrets.randbelow(CURVE_ORDER))

    w = cs.values
    h = compute_h(cs, pk.n)

    proof_a = add(add(pk.alpha_g1, _msm(pk.a_query, w)), mult(pk.delta_g1, int(r)))
    proof_b = add(add(pk.beta_g2, _msm(pk.b_g2_query, w)), mult(pk.delta_g2, int(s)))
    temp_b1 = add(add(pk.beta_g1, _msm(pk.b_g1_query, w)), mult(pk.delta_g1, int(s)))

    num_inputs = cs.num_public + 1
    proof_c = _msm(pk.l_query, w[num_inputs:])
    proof_c = add(proof_c, _msm(pk.h_query, h))
    proof_c = add(proof_c, mult(proof_a, int(s)))
    proof_c = add(proof_c, mult(temp_b1, int(r)))
    proof_c = add(proof_c, neg(mult(pk.delta_g1, int(r * s))))

    logger.debug("Groth16 증명 생성 완료 (변수 %d개)", cs.num_variables)
    return proof_a, proof_b, proof_c
