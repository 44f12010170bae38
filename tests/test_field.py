"""
field.py, polynomial.py, transcript.py 테스트
"""
import pytest

from zklottery.field import (
    FR, CURVE_ORDER, FIELD_MODULUS,
    to_field, bytes_to_field, to_hex32, from_hex32,
    get_root_of_unity, get_roots_of_unity, next_power_of_2,
)
from zklottery.polynomial import (
    fft, ifft, coset_fft, coset_ifft,
    vanishing_poly_eval, lagrange_basis_evals,
)
from zklottery.transcript import Transcript


# =====================================================================
# to_field
# =====================================================================

class TestToField:
    def test_int(self):
        assert to_field(42) == FR(42)

    def test_reduces_above_modulus(self):
        """p 이상의 입력은 거부하지 않고 축소한다"""
        assert to_field(CURVE_ORDER + 7) == FR(7)

    def test_negative_wraps(self):
        assert to_field(-1) == FR(CURVE_ORDER - 1)

    def test_decimal_string(self):
        assert to_field("12345") == FR(12345)

    def test_hex_string(self):
        assert to_field("0xff") == FR(255)

    def test_fr_passthrough(self):
        x = FR(9)
        assert to_field(x) is x

    def test_bool_rejected(self):
        with pytest.raises(TypeError):
            to_field(True)

    def test_float_rejected(self):
        with pytest.raises(TypeError):
            to_field(1.5)

    def test_bytes_to_field(self):
        assert bytes_to_field(b"\x01\x00") == FR(256)
        assert bytes_to_field(b"\xff" * 32) == FR(2 ** 256 - 1)


class TestHex32:
    def test_width(self):
        h = to_hex32(FR(255))
        assert h == "0x" + "0" * 62 + "ff"
        assert len(h) == 66

    def test_base_field_value_fits(self):
        h = to_hex32(FIELD_MODULUS - 1)
        assert from_hex32(h) == FIELD_MODULUS - 1

    def test_negative_rejected(self):
        with pytest.raises(ValueError):
            to_hex32(-1)

    def test_too_large_rejected(self):
        with pytest.raises(ValueError):
            to_hex32(1 << 256)

    def test_from_hex_requires_prefix(self):
        with pytest.raises(ValueError):
            from_hex32("ff")

    def test_from_hex_too_long(self):
        with pytest.raises(ValueError):
            from_hex32("0x" + "1" * 65)


# =====================================================================
# 단위근
# =====================================================================

class TestRootsOfUnity:
    @pytest.mark.parametrize("n", [1, 2, 4, 8, 16])
    def test_order(self, n):
        omega = get_root_of_unity(n)
        assert omega ** n == FR(1)
        if n > 1:
            assert omega ** (n // 2) != FR(1)

    def test_not_power_of_two(self):
        with pytest.raises(ValueError):
            get_root_of_unity(6)

    def test_roots_distinct(self):
        roots = get_roots_of_unity(8)
        assert len(set(int(r) for r in roots)) == 8
        assert roots[0] == FR(1)

    @pytest.mark.parametrize("n, expected", [(0, 1), (1, 1), (2, 2), (3, 4), (17, 32), (64, 64)])
    def test_next_power_of_2(self, n, expected):
        assert next_power_of_2(n) == expected


# =====================================================================
# FFT
# =====================================================================

class TestFFT:
    def test_fft_evaluates_polynomial(self):
        """p(x) = 1 + 2x + 3x² 를 도메인 위에서 평가"""
        n = 4
        omega = get_root_of_unity(n)
        coeffs = [FR(1), FR(2), FR(3), FR(0)]
        evals = fft(coeffs, omega)
        for i, v in enumerate(evals):
            x = omega ** i
            assert v == FR(1) + FR(2) * x + FR(3) * x * x

    def test_ifft_inverts_fft(self):
        n = 8
        omega = get_root_of_unity(n)
        coeffs = [FR(i * 7 + 1) for i in range(n)]
        assert ifft(fft(coeffs, omega), omega) == coeffs

    def test_coset_fft_evaluates_on_shifted_domain(self):
        n = 4
        omega = get_root_of_unity(n)
        coeffs = [FR(5), FR(0), FR(1), FR(0)]   # 5 + x²
        evals = coset_fft(coeffs, omega)
        for i, v in enumerate(evals):
            x = FR(5) * omega ** i
            assert v == FR(5) + x * x

    def test_coset_ifft_inverts(self):
        n = 8
        omega = get_root_of_unity(n)
        coeffs = [FR(i + 3) for i in range(n)]
        assert coset_ifft(coset_fft(coeffs, omega), omega) == coeffs


class TestLagrange:
    def test_partition_of_unity(self):
        """Σ L_i(τ) = 1"""
        n = 8
        omega = get_root_of_unity(n)
        evals = lagrange_basis_evals(n, omega, FR(123456789))
        total = FR(0)
        for v in evals:
            total = total + v
        assert total == FR(1)

    def test_on_domain_point(self):
        n = 4
        omega = get_root_of_unity(n)
        evals = lagrange_basis_evals(n, omega, omega ** 2)
        assert evals == [FR(0), FR(0), FR(1), FR(0)]

    def test_interpolation(self):
        """Σ yᵢ·Lᵢ(τ) == p(τ) where yᵢ = p(ωⁱ)"""
        n = 4
        omega = get_root_of_unity(n)
        coeffs = [FR(2), FR(0), FR(1), FR(4)]
        ys = fft(coeffs, omega)
        tau = FR(987654321)
        lag = lagrange_basis_evals(n, omega, tau)
        lhs = FR(0)
        for y, l in zip(ys, lag):
            lhs = lhs + y * l
        rhs = FR(2) + tau ** 2 + FR(4) * tau ** 3
        assert lhs == rhs

    def test_vanishing_zero_on_domain(self):
        n = 8
        for r in get_roots_of_unity(n):
            assert vanishing_poly_eval(n, r) == FR(0)


# =====================================================================
# Transcript
# =====================================================================

class TestTranscript:
    def test_deterministic(self):
        t1 = Transcript(b"test")
        t2 = Transcript(b"test")
        t1.append_scalar(b"x", FR(5))
        t2.append_scalar(b"x", FR(5))
        assert t1.challenge_scalar(b"c") == t2.challenge_scalar(b"c")

    def test_label_separates_domains(self):
        t1 = Transcript(b"a")
        t2 = Transcript(b"b")
        assert t1.challenge_scalar(b"c") != t2.challenge_scalar(b"c")

    def test_chained_challenges_differ(self):
        t = Transcript()
        assert t.challenge_scalar(b"c") != t.challenge_scalar(b"c")

    def test_length_prefix(self):
        """('ab', 'c') 와 ('a', 'bc') 가 구분된다"""
        t1 = Transcript()
        t1.append_bytes(b"x", b"ab")
        t1.append_bytes(b"y", b"c")
        t2 = Transcript()
        t2.append_bytes(b"x", b"a")
        t2.append_bytes(b"y", b"bc")
        assert t1.challenge_bytes(b"c") != t2.challenge_bytes(b"c")
