"""
베팅 비밀값 생성기
==================

베팅마다 secret, nullifier, salt 세 값을 CSPRNG에서 독립적으로 뽑는다.

- 각 값은 32바이트(256비트) 난수를 mod p로 축소한 것이다 (p ≈ 2^254).
- 공개 파라미터(lotteryId, itemId, amount)에서 결정론적으로 유도하지 않는다.
  그렇게 하면 커밋먼트를 추측하거나 연결할 수 있게 된다.
- 호출마다 운영체제 난수원을 직접 읽으므로 시드를 공유하지 않는다.
"""

import secrets

from zklottery.field import bytes_to_field, FIELD_BYTES
from zklottery.types import BetSecrets


def _random_field_element():
    return bytes_to_field(secrets.token_bytes(FIELD_BYTES))


def generate_secrets():
    """새 BetSecrets를 생성한다.

    Returns:
        BetSecrets: 서로 독립인 secret, nullifier, salt
    """
    return BetSecrets(
        secret=_random_field_element(),
        nullifier=_random_field_element(),
        salt=_random_field_element(),
    )
