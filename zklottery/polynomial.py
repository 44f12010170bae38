"""
FFT / IFFT 및 도메인 평가 유틸리티
====================================

Groth16 증명자는 제약 행(row)별 평가값을 다항식으로 보간하고,
몫 다항식 h(x) = (A(x)·B(x) - C(x)) / Z_H(x) 를 계산해야 한다.

**FFT/IFFT (Number Theoretic Transform)**:
  평가 표현 ↔ 계수 표현 변환. 재귀 Cooley-Tukey radix-2.

**코셋 FFT**:
  Z_H(x) = x^n - 1 은 도메인 H 위에서 0이므로 H에서 직접 나눌 수 없다.
  코셋 k·H 위에서는 Z_H(k·ωⁱ) = kⁿ - 1 (상수)이 되어 나눗셈이 가능하다.

**Lagrange 기저 평가**:
  L_i(τ) = (ωⁱ / n) · (τⁿ - 1) / (τ - ωⁱ)
  trusted setup에서 각 변수의 QAP 다항식을 τ에서 평가할 때 사용한다.
"""

from zklottery.field import FR


def fft(coeffs, omega):
    """계수 → [p(1), p(ω), ..., p(ω^(n-1))].

    Args:
        coeffs: FR 원소 리스트 (길이는 2의 거듭제곱)
        omega: n차 원시 단위근
    """
    n = len(coeffs)
    if n == 1:
        return [coeffs[0] if isinstance(coeffs[0], FR) else FR(coeffs[0])]

    even = [coeffs[i] for i in range(0, n, 2)]
    odd = [coeffs[i] for i in range(1, n, 2)]

    omega_sq = omega * omega
    even_vals = fft(even, omega_sq)
    odd_vals = fft(odd, omega_sq)

    # 버터플라이 결합
    result = [FR(0)] * n
    omega_k = FR(1)
    half = n // 2
    for k in range(half):
        t = omega_k * odd_vals[k]
        result[k] = even_vals[k] + t
        result[k + half] = even_vals[k] - t
        omega_k = omega_k * omega
    return result


def ifft(evals, omega):
    """평가값 → 계수. ω^{-1}로 FFT 후 n으로 나눈다."""
    n = len(evals)
    omega_inv = FR(1) / omega
    coeffs = fft(evals, omega_inv)
    n_inv = FR(1) / FR(n)
    return [c * n_inv for c in coeffs]


def coset_fft(coeffs, omega, k=None):
    """코셋 k·H 위에서 평가한다: cᵢ → kⁱ·cᵢ 로 바꾼 뒤 FFT.

    Args:
        coeffs: 다항식 계수 리스트
        omega: n차 원시 단위근
        k: 코셋 생성자 (기본값: FR(5))
    """
    if k is None:
        k = FR(5)
    shifted = []
    k_power = FR(1)
    for c in coeffs:
        shifted.append(c * k_power)
        k_power = k_power * k
    return fft(shifted, omega)


def coset_ifft(evals, omega, k=None):
    """코셋 FFT의 역변환: IFFT 후 cᵢ / kⁱ."""
    if k is None:
        k = FR(5)
    coeffs = ifft(evals, omega)
    k_inv = FR(1) / k
    k_inv_power = FR(1)
    result = []
    for c in coeffs:
        result.append(c * k_inv_power)
        k_inv_power = k_inv_power * k_inv
    return result


def vanishing_poly_eval(n, zeta):
    """Z_H(ζ) = ζ^n - 1"""
    return zeta ** n - FR(1)


def lagrange_basis_evals(n, omega, tau):
    """모든 i에 대해 L_i(τ)를 한 번에 평가한다.

    L_i(τ) = (1/n) · Z_H(τ) · ωⁱ / (τ - ωⁱ)

    τ가 도메인 위의 점이면 크로네커 델타를 반환한다.

    Returns:
        list[FR]: [L_0(τ), ..., L_{n-1}(τ)]
    """
    if not isinstance(tau, FR):
        tau = FR(tau)

    zh_tau = vanishing_poly_eval(n, tau)
    n_inv = FR(1) / FR(n)

    result = []
    omega_i = FR(1)
    for _ in range(n):
        denominator = tau - omega_i
        if denominator == FR(0):
            # τ = ωⁱ → L_i(τ) = 1, 나머지는 0
            return [FR(1) if (omega ** j) == tau else FR(0) for j in range(n)]
        result.append(n_inv * zh_tau * omega_i / denominator)
        omega_i = omega_i * omega
    return result
