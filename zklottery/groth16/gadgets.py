"""
회로 가젯 (Circuit Gadgets)
============================

zklottery.hash의 연산을 R1CS 제약으로 옮긴 것.
각 가젯은 ConstraintSystem에 변수와 제약을 추가하고 결과 LinearCombination을 반환한다.

  | 가젯              | 제약 수                          |
  |-------------------|----------------------------------|
  | sbox              | 3                                |
  | hash2             | 3 × rounds                       |
  | hash5             | 12 × rounds                      |
  | merkle_root       | depth × (2 + 3 × rounds)         |
  | range_check       | bits + 1                         |

선형 혼합과 라운드 상수 덧셈은 선형 결합이므로 제약이 들지 않는다.
"""

from zklottery.hash import DEFAULT_PARAMS
from zklottery.groth16.r1cs import LinearCombination


def sbox_gadget(cs, x):
    """x⁵"""
    x2 = cs.mul(x, x)
    x4 = cs.mul(x2, x2)
    return cs.mul(x4, x)


def hash2_gadget(cs, a, b, params=None):
    """hash.hash2와 같은 순열. 반환값은 s0 + s1 선형 결합."""
    if params is None:
        params = DEFAULT_PARAMS
    s0 = LinearCombination._coerce(a)
    s1 = LinearCombination._coerce(b)

    last = params.rounds - 1
    for i, (k0, k1) in enumerate(params.round_constants):
        s0 = sbox_gadget(cs, s0 + k0)
        s1 = s1 + k1
        if i < last:
            s0, s1 = s0 + s1, s0 + s1 * 2
    return s0 + s1


def hash5_gadget(cs, a, b, c, d, e, params=None):
    h = hash2_gadget(cs, a, b, params)
    h = hash2_gadget(cs, h, c, params)
    h = hash2_gadget(cs, h, d, params)
    return hash2_gadget(cs, h, e, params)


def merkle_root_gadget(cs, leaf, path_elements, path_indices, params=None):
    """경로를 따라 루트를 재계산한다.

    레벨마다 bit ∈ {0, 1}, t = bit·(sibling - node) 로 좌/우를 교환한다:
        left  = node + t       (bit=0 → node,    bit=1 → sibling)
        right = sibling - t    (bit=0 → sibling, bit=1 → node)
    """
    node = LinearCombination._coerce(leaf)
    for sibling, bit in zip(path_elements, path_indices):
        cs.enforce_boolean(bit)
        t = cs.mul(bit, sibling - node)
        node = hash2_gadget(cs, node + t, sibling - t, params)
    return node


def range_check_gadget(cs, x, bits):
    """0 ≤ x < 2^bits 를 비트 분해로 강제한다.

    x의 값이 범위를 벗어나면 비트 재조합이 맞지 않아 회로가 만족되지 않는다.
    """
    value = int(cs.value_of(x))
    total = LinearCombination()
    for i in range(bits):
        b = cs.private_input((value >> i) & 1)
        cs.enforce_boolean(b)
        total = total + b * (1 << i)
    cs.enforce_equal(total, x)
