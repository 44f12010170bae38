"""
유한체(Finite Field) FR 및 직렬화 헬퍼
========================================

복권 커밋먼트, 널리파이어, 증명 공개 신호 등 모든 값은 하나의 유한체
위의 원소로 표현된다.

**유한체 FR**:
  bn128(BN254) 타원곡선의 스칼라 필드.
  - 위수 p ≈ 2^254 (소수)
  - 컨트랙트의 검증기와 같은 필드를 사용해야 온체인 검증이 가능하다.
  - p 이상의 정수나 음수 입력은 오류가 아니라 mod p로 축소된다 (정규 도메인 규칙).

**기저 필드 FQ**:
  G1/G2 점의 좌표는 기저 필드 q (bn128.field_modulus) 위의 원소이다.
  증명 아티팩트의 8개 원소는 이 좌표들이므로 p가 아니라 q 미만이어야 한다.

**단위근(Roots of Unity)**:
  Groth16 QAP의 평가 도메인 H = {1, ω, ..., ω^(n-1)}을 정의한다.

사용 예시:
    >>> from zklottery.field import FR, to_field
    >>> to_field(CURVE_ORDER + 7)   # FR(7)
    >>> to_hex32(FR(255))           # '0x00...ff'
"""

from py_ecc.fields import bn128_FQ as FQ
from py_ecc import bn128


class FR(FQ):
    """bn128 스칼라 필드 위의 유한체 원소.

    py_ecc의 FQ 클래스를 상속하여 +, -, *, /, ** 연산을 제공한다.

    예시:
        >>> x = FR(3)
        >>> x ** 5          # FR(243)
        >>> FR(-1) == FR(CURVE_ORDER - 1)  # True
    """
    field_modulus = bn128.curve_order


# 스칼라 필드 위수 p
CURVE_ORDER = bn128.curve_order

# 기저 필드 위수 q (곡선 점 좌표)
FIELD_MODULUS = bn128.field_modulus

# 32바이트 빅엔디안 직렬화 폭
FIELD_BYTES = 32


def to_field(value):
    """정수/문자열/FR 값을 FR 원소로 정규화한다.

    문자열은 10진수 또는 0x 접두사 16진수로 해석한다.
    bool은 정수로 취급하지 않는다.

    Args:
        value: int, str, FR

    Returns:
        FR: value mod p

    Raises:
        TypeError: 지원하지 않는 타입
    """
    if isinstance(value, FR):
        return value
    if isinstance(value, bool):
        raise TypeError("bool은 필드 원소로 변환할 수 없습니다")
    if isinstance(value, int):
        return FR(value)
    if isinstance(value, str):
        text = value.strip()
        if text.lower().startswith("0x"):
            return FR(int(text, 16))
        return FR(int(text, 10))
    raise TypeError(f"필드 원소로 변환할 수 없는 타입: {type(value).__name__}")


def bytes_to_field(data):
    """빅엔디안 바이트열 → FR (mod p 축소)."""
    return FR(int.from_bytes(data, "big"))


def to_hex32(value):
    """정수 또는 FR → '0x' + 64자리 16진수.

    컨트랙트 호출 인자 형식 (32바이트 빅엔디안).
    """
    n = int(value)
    if n < 0 or n >= 1 << (8 * FIELD_BYTES):
        raise ValueError(f"32바이트 범위를 벗어난 값: {n}")
    return "0x" + n.to_bytes(FIELD_BYTES, "big").hex()


def from_hex32(text):
    """'0x...' 16진수 문자열 → int (축소하지 않음)."""
    if not isinstance(text, str) or not text.lower().startswith("0x"):
        raise ValueError(f"0x 접두사 16진수가 아닙니다: {text!r}")
    body = text[2:]
    if not body or len(body) > 2 * FIELD_BYTES:
        raise ValueError(f"32바이트 16진수 길이가 아닙니다: {text!r}")
    return int(body, 16)


# ─────────────────────────────────────────────────────────────────────
# 단위근 (Roots of Unity)
# ─────────────────────────────────────────────────────────────────────

def get_root_of_unity(n):
    """n차 원시 단위근 ω를 반환한다.

    p - 1 = 2^28 × m 이므로 최대 2^28차까지 지원한다.
    생성자 g = FR(5)에서 ω = g^((p-1)/n).

    Raises:
        ValueError: n이 2의 거듭제곱이 아니거나 2^28을 초과할 때
    """
    if n < 1 or (n & (n - 1)) != 0:
        raise ValueError(f"n은 2의 거듭제곱이어야 합니다: {n}")
    if n > (1 << 28):
        raise ValueError(f"n은 2^28 이하여야 합니다: {n}")
    if n == 1:
        return FR(1)
    return FR(5) ** ((CURVE_ORDER - 1) // n)


def get_roots_of_unity(n):
    """[1, ω, ω², ..., ω^(n-1)]"""
    omega = get_root_of_unity(n)
    roots = []
    current = FR(1)
    for _ in range(n):
        roots.append(current)
        current = current * omega
    return roots


def next_power_of_2(n):
    """n 이상의 가장 작은 2의 거듭제곱."""
    if n <= 1:
        return 1
    return 1 << (n - 1).bit_length()
