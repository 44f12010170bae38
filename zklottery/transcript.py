"""
SHA-256 트랜스크립트
=====================

레이블과 필드 원소를 누적하여 결정론적인 FR 값을 뽑아내는 해시 체인.

사용처:
  - 해시 라운드 상수 도출 (HashParams.generate)
  - 스텁 증명 백엔드의 결정론적 8원소 아티팩트
  - trusted setup의 toxic waste를 seed에서 재현할 때

같은 순서로 같은 데이터를 넣으면 같은 값이 나온다.
서로 다른 용도는 초기 레이블로 도메인을 분리한다.

사용 예시:
    >>> t = Transcript(b"zklottery/stub/bet")
    >>> t.append_scalar(b"commitment", commitment)
    >>> a0 = t.challenge_scalar(b"a0")
"""

import hashlib

from zklottery.field import FR, CURVE_ORDER, FIELD_BYTES


class Transcript:
    """SHA-256 기반 트랜스크립트.

    속성:
        state: 현재까지 누적된 해시 입력 바이트열
    """

    def __init__(self, label=b"zklottery"):
        self.state = bytearray()
        self.state.extend(label)

    def append_bytes(self, label, data):
        """길이 접두사와 함께 임의 바이트열을 추가한다."""
        self.state.extend(label)
        self.state.extend(len(data).to_bytes(4, "big"))
        self.state.extend(data)

    def append_scalar(self, label, scalar):
        """필드 원소를 32바이트 빅엔디안으로 추가한다."""
        self.state.extend(label)
        val = int(scalar) % CURVE_ORDER
        self.state.extend(val.to_bytes(FIELD_BYTES, "big"))

    def challenge_bytes(self, label):
        """현재 상태의 SHA-256 다이제스트. 다이제스트는 상태에 다시 추가된다 (체이닝)."""
        self.state.extend(label)
        h = hashlib.sha256(bytes(self.state)).digest()
        self.state.extend(h)
        return h

    def challenge_scalar(self, label):
        """현재 상태에서 FR 원소를 도출한다."""
        return FR(int.from_bytes(self.challenge_bytes(label), "big") % CURVE_ORDER)
