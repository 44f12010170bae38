"""
Groth16 Trusted Setup
======================

ConstraintSystem 하나에 대한 증명키(ProvingKey)/검증키(VerifyingKey)를 만든다.

**QAP 변환**:
  제약 행 r마다 Lagrange 기저 L_r(x)를 붙여 변수 i의 다항식을 만든다.
    Aᵢ(x) = Σ_r A[r][i]·L_r(x)   (Bᵢ, Cᵢ 동일)
  공개 변수(상수 1 포함)마다 A[row][i] = 1 인 행을 하나 더 추가한다.
  이 행이 있어야 공개 변수의 Aᵢ(x)가 서로 선형 독립이 된다.

  도메인 크기 n = next_power_of_2(제약 수 + 공개 변수 수)
  Z(x) = xⁿ - 1

**Toxic waste**: α, β, γ, δ, τ
  seed가 있으면 SHA-256 트랜스크립트로 재현 가능하게 뽑고 (테스트/개발용),
  없으면 secrets.randbelow로 뽑는다.

**키 구성** (G1 = [·]₁, G2 = [·]₂):
  증명키:
    [α]₁, [β]₁, [β]₂, [δ]₁, [δ]₂
    a_query[i]    = [Aᵢ(τ)]₁
    b_g1_query[i] = [Bᵢ(τ)]₁
    b_g2_query[i] = [Bᵢ(τ)]₂
    l_query[i]    = [(β·Aᵢ(τ) + α·Bᵢ(τ) + Cᵢ(τ)) / δ]₁   (개인 변수만)
    h_query[j]    = [τʲ·Z(τ) / δ]₁                        (j = 0..n-2)
  검증키:
    [α]₁, [β]₂, [γ]₂, [δ]₂
    ic[i]         = [(β·Aᵢ(τ) + α·Bᵢ(τ) + Cᵢ(τ)) / γ]₁   (공개 변수만)

0인 스칼라의 곱은 무한원점(None)이 된다.
"""

import logging
import secrets

from py_ecc import bn128

from zklottery.field import FR, CURVE_ORDER, get_root_of_unity, next_power_of_2
from zklottery.groth16.r1cs import LinearCombination
from zklottery.polynomial import lagrange_basis_evals, vanishing_poly_eval
from zklottery.serializers import (
    serialize_g1,
    deserialize_g1,
    serialize_g2,
    deserialize_g2,
)
from zklottery.transcript import Transcript

logger = logging.getLogger(__name__)

g1 = bn128.G1
g2 = bn128.G2

mult = bn128.multiply


class ToxicWaste:
    """setup 후 반드시 폐기해야 하는 비밀값."""

    def __init__(self, alpha, beta, gamma, delta, tau):
        self.alpha = alpha
        self.beta = beta
        self.gamma = gamma
        self.delta = delta
        self.tau = tau

    @classmethod
    def sample(cls, seed=None, label=b""):
        """0이 아닌 5개 스칼라를 뽑는다.

        Args:
            seed: bytes 또는 None (None이면 CSPRNG)
            label: 회로별 도메인 분리
        """
        if seed is None:
            def draw(name):
                return FR(secrets.randbelow(CURVE_ORDER - 1) + 1)
        else:
            t = Transcript(b"zklottery/groth16/setup")
            t.append_bytes(b"seed", seed)
            t.append_bytes(b"circuit", label)

            def draw(name):
                while True:
                    v = t.challenge_scalar(name)
                    if v != FR(0):
                        return v

        return cls(*(draw(name) for name in (b"alpha", b"beta", b"gamma", b"delta", b"tau")))


class ProvingKey:
    def __init__(self, n, num_public, alpha_g1, beta_g1, beta_g2, delta_g1, delta_g2,
                 a_query, b_g1_query, b_g2_query, l_query, h_query):
        self.n = n
        self.num_public = num_public
        self.alpha_g1 = alpha_g1
        self.beta_g1 = beta_g1
        self.beta_g2 = beta_g2
        self.delta_g1 = delta_g1
        self.delta_g2 = delta_g2
        self.a_query = a_query
        self.b_g1_query = b_g1_query
        self.b_g2_query = b_g2_query
        self.l_query = l_query
        self.h_query = h_query

    def to_dict(self):
        return {
            "n": self.n,
            "numPublic": self.num_public,
            "alphaG1": serialize_g1(self.alpha_g1),
            "betaG1": serialize_g1(self.beta_g1),
            "betaG2": serialize_g2(self.beta_g2),
            "deltaG1": serialize_g1(self.delta_g1),
            "deltaG2": serialize_g2(self.delta_g2),
            "aQuery": [serialize_g1(p) for p in self.a_query],
            "bG1Query": [serialize_g1(p) for p in self.b_g1_query],
            "bG2Query": [serialize_g2(p) for p in self.b_g2_query],
            "lQuery": [serialize_g1(p) for p in self.l_query],
            "hQuery": [serialize_g1(p) for p in self.h_query],
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            n=data["n"],
            num_public=data["numPublic"],
            alpha_g1=deserialize_g1(data["alphaG1"]),
            beta_g1=deserialize_g1(data["betaG1"]),
            beta_g2=deserialize_g2(data["betaG2"]),
            delta_g1=deserialize_g1(data["deltaG1"]),
            delta_g2=deserialize_g2(data["deltaG2"]),
            a_query=[deserialize_g1(p) for p in data["aQuery"]],
            b_g1_query=[deserialize_g1(p) for p in data["bG1Query"]],
            b_g2_query=[deserialize_g2(p) for p in data["bG2Query"]],
            l_query=[deserialize_g1(p) for p in data["lQuery"]],
            h_query=[deserialize_g1(p) for p in data["hQuery"]],
        )


class VerifyingKey:
    def __init__(self, alpha_g1, beta_g2, gamma_g2, delta_g2, ic):
        self.alpha_g1 = alpha_g1
        self.beta_g2 = beta_g2
        self.gamma_g2 = gamma_g2
        self.delta_g2 = delta_g2
        self.ic = ic

    def to_dict(self):
        return {
            "alphaG1": serialize_g1(self.alpha_g1),
            "betaG2": serialize_g2(self.beta_g2),
            "gammaG2": serialize_g2(self.gamma_g2),
            "deltaG2": serialize_g2(self.delta_g2),
            "ic": [serialize_g1(p) for p in self.ic],
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            alpha_g1=deserialize_g1(data["alphaG1"]),
            beta_g2=deserialize_g2(data["betaG2"]),
            gamma_g2=deserialize_g2(data["gammaG2"]),
            delta_g2=deserialize_g2(data["deltaG2"]),
            ic=[deserialize_g1(p) for p in data["ic"]],
        )


def domain_size(cs):
    """QAP 도메인 크기 (제약 행 + 공개 변수 행)"""
    return next_power_of_2(cs.num_constraints + cs.num_public + 1)


def qap_rows(cs):
    """제약 행 뒤에 공개 변수 행 (wᵢ × 0 = 0) 을 붙인 (a, b, c) 리스트"""
    rows = list(cs.constraints)
    empty = LinearCombination()
    for i in range(cs.num_public + 1):
        rows.append((LinearCombination.variable(i), empty, empty))
    return rows


def qap_at(cs, n, tau):
    """τ에서 평가한 Aᵢ(τ), Bᵢ(τ), Cᵢ(τ) 리스트"""
    omega = get_root_of_unity(n)
    lagrange = lagrange_basis_evals(n, omega, tau)

    m = cs.num_variables
    a_tau = [FR(0)] * m
    b_tau = [FR(0)] * m
    c_tau = [FR(0)] * m
    for r, (a, b, c) in enumerate(qap_rows(cs)):
        l_r = lagrange[r]
        for idx, coeff in a.terms.items():
            a_tau[idx] = a_tau[idx] + coeff * l_r
        for idx, coeff in b.terms.items():
            b_tau[idx] = b_tau[idx] + coeff * l_r
        for idx, coeff in c.terms.items():
            c_tau[idx] = c_tau[idx] + coeff * l_r
    return a_tau, b_tau, c_tau


def setup(cs, seed=None, label=b""):
    """ConstraintSystem의 구조로 키 쌍을 생성한다.

    Args:
        cs: 구조만 필요하다 (witness 값은 쓰지 않는다)
        seed: 재현 가능한 setup용 bytes (None이면 CSPRNG)
        label: seed 사용 시 회로별 도메인 분리

    Returns:
        (ProvingKey, VerifyingKey)
    """
    n = domain_size(cs)
    toxic = ToxicWaste.sample(seed, label)
    # τ가 도메인 위에 있으면 Z(τ) = 0 이 되므로 다시 뽑는다
    while vanishing_poly_eval(n, toxic.tau) == FR(0):
        label = label + b"'"
        toxic = ToxicWaste.sample(seed, label)

    alpha, beta, gamma, delta, tau = (
        toxic.alpha, toxic.beta, toxic.gamma, toxic.delta, toxic.tau
    )
    logger.info(
        "Groth16 setup: 변수 %d개, 제약 %d개, 공개 %d개, 도메인 %d",
        cs.num_variables, cs.num_constraints, cs.num_public, n,
    )

    a_tau, b_tau, c_tau = qap_at(cs, n, tau)
    num_inputs = cs.num_public + 1

    gamma_inv = FR(1) / gamma
    delta_inv = FR(1) / delta

    ic = []
    l_query = []
    for i in range(cs.num_variables):
        val = beta * a_tau[i] + alpha * b_tau[i] + c_tau[i]
        if i < num_inputs:
            ic.append(mult(g1, int(val * gamma_inv)))
        else:
            l_query.append(mult(g1, int(val * delta_inv)))

    zt = vanishing_poly_eval(n, tau)
    h_query = []
    tau_power = FR(1)
    for _ in range(n - 1):
        h_query.append(mult(g1, int(tau_power * zt * delta_inv)))
        tau_power = tau_power * tau

    pk = ProvingKey(
        n=n,
        num_public=cs.num_public,
        alpha_g1=mult(g1, int(alpha)),
        beta_g1=mult(g1, int(beta)),
        beta_g2=mult(g2, int(beta)),
        delta_g1=mult(g1, int(delta)),
        delta_g2=mult(g2, int(delta)),
        a_query=[mult(g1, int(v)) for v in a_tau],
        b_g1_query=[mult(g1, int(v)) for v in b_tau],
        b_g2_query=[mult(g2, int(v)) for v in b_tau],
        l_query=l_query,
        h_query=h_query,
    )
    vk = VerifyingKey(
        alpha_g1=pk.alpha_g1,
        beta_g2=pk.beta_g2,
        gamma_g2=mult(g2, int(gamma)),
        delta_g2=pk.delta_g2,
        ic=ic,
    )
    return pk, vk
