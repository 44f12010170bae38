"""
R1CS (Rank-1 Constraint System)
================================

회로를 (A·w) × (B·w) = (C·w) 형태의 제약 집합으로 표현한다.

**변수 배치**:
  w = [1, pub_1, ..., pub_l, priv_1, ..., priv_m]
  - 인덱스 0은 상수 1 (ONE)
  - 공개 입력은 개인 입력보다 먼저 할당해야 한다
    (검증자는 w[0..l]만 알고 있다)

**선형 결합 (LinearCombination)**:
  Σ cᵢ·wᵢ 형태. 덧셈/상수배는 제약 없이 계산되고,
  곱셈(mul)만 새 변수와 제약 하나를 만든다.

  예: x⁵
    x2 = mul(x, x)     # 제약 1
    x4 = mul(x2, x2)   # 제약 2
    x5 = mul(x4, x)    # 제약 3

값(witness)은 회로를 구성하는 동안 함께 계산된다. trusted setup에서는
모든 입력을 0으로 두고 같은 구조를 만든다 (구조는 값과 무관해야 한다).
"""

from zklottery.field import FR, to_field


class LinearCombination:
    """변수 인덱스 → 계수 매핑.

    예시:
        >>> lc = LinearCombination({1: FR(2)}) + 3   # 2·w₁ + 3
        >>> lc.evaluate([FR(1), FR(5)])             # FR(13)
    """

    def __init__(self, terms=None):
        self.terms = {}
        if terms:
            for idx, coeff in terms.items():
                coeff = to_field(coeff)
                if coeff != FR(0):
                    self.terms[idx] = coeff

    @classmethod
    def constant(cls, value):
        return cls({ConstraintSystem.ONE: to_field(value)})

    @classmethod
    def variable(cls, idx):
        return cls({idx: FR(1)})

    @staticmethod
    def _coerce(other):
        if isinstance(other, LinearCombination):
            return other
        return LinearCombination.constant(other)

    def __add__(self, other):
        other = self._coerce(other)
        terms = dict(self.terms)
        for idx, coeff in other.terms.items():
            terms[idx] = terms.get(idx, FR(0)) + coeff
        return LinearCombination(terms)

    __radd__ = __add__

    def __neg__(self):
        return LinearCombination({idx: -c for idx, c in self.terms.items()})

    def __sub__(self, other):
        return self + (-self._coerce(other))

    def __rsub__(self, other):
        return self._coerce(other) + (-self)

    def __mul__(self, scalar):
        if isinstance(scalar, LinearCombination):
            raise TypeError("선형 결합끼리의 곱은 ConstraintSystem.mul을 사용해야 합니다")
        scalar = to_field(scalar)
        return LinearCombination({idx: c * scalar for idx, c in self.terms.items()})

    __rmul__ = __mul__

    def evaluate(self, values):
        total = FR(0)
        for idx, coeff in self.terms.items():
            total = total + coeff * values[idx]
        return total

    def __repr__(self):
        parts = [f"{int(c)}·w{idx}" for idx, c in sorted(self.terms.items())]
        return "LC(" + " + ".join(parts) + ")" if parts else "LC(0)"


class ConstraintSystem:
    """제약과 witness를 함께 쌓는 빌더.

    속성:
        values: witness 벡터 (values[0] == 1)
        num_public: 공개 입력 개수 (상수 1 제외)
        constraints: [(a, b, c), ...] LinearCombination 튜플
    """

    ONE = 0

    def __init__(self):
        self.values = [FR(1)]
        self.num_public = 0
        self.constraints = []

    @property
    def num_variables(self):
        return len(self.values)

    @property
    def num_constraints(self):
        return len(self.constraints)

    def one(self):
        return LinearCombination.variable(self.ONE)

    def _alloc(self, value):
        self.values.append(to_field(value))
        return LinearCombination.variable(len(self.values) - 1)

    def public_input(self, value):
        if self.num_variables != 1 + self.num_public:
            raise RuntimeError("공개 입력은 개인 변수보다 먼저 할당해야 합니다")
        self.num_public += 1
        return self._alloc(value)

    def private_input(self, value):
        return self._alloc(value)

    def mul(self, a, b):
        """새 변수 out = a·b 와 제약 a × b = out"""
        a = LinearCombination._coerce(a)
        b = LinearCombination._coerce(b)
        out = self._alloc(a.evaluate(self.values) * b.evaluate(self.values))
        self.constraints.append((a, b, out))
        return out

    def enforce(self, a, b, c):
        self.constraints.append((
            LinearCombination._coerce(a),
            LinearCombination._coerce(b),
            LinearCombination._coerce(c),
        ))

    def enforce_equal(self, a, b):
        """a × 1 = b"""
        self.enforce(a, self.one(), b)

    def enforce_boolean(self, a):
        """a × a = a  (a ∈ {0, 1})"""
        self.enforce(a, a, a)

    def value_of(self, lc):
        return LinearCombination._coerce(lc).evaluate(self.values)

    def public_values(self):
        """[1, pub_1, ..., pub_l]"""
        return self.values[:1 + self.num_public]

    def first_unsatisfied(self):
        """만족하지 않는 첫 제약의 인덱스, 모두 만족하면 None"""
        for i, (a, b, c) in enumerate(self.constraints):
            if a.evaluate(self.values) * b.evaluate(self.values) != c.evaluate(self.values):
                return i
        return None

    def is_satisfied(self):
        return self.first_unsatisfied() is None
