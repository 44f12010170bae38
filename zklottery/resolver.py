"""
당첨 위치 → 로컬 베팅 매핑
===========================

추첨으로 공개된 당첨 위치(winning position)가 어느 티켓 범위에 속하는지 찾는다.

한 아이템의 범위들은 [0, a), [a, a+b), ... 처럼 연속이고 서로소이므로
위치를 덮는 베팅은 많아야 하나다. 호출자는 아이템에 걸린 베팅의 일부만
가지고 있을 수 있다 (자기 베팅만). 따라서 None은 "당첨자가 없다"가 아니라
"이 디바이스에 당첨 베팅이 없다"는 뜻이다.

예시 (10, 20, 5 토큰 베팅):
    [0, 10)  [10, 30)  [30, 35)
    resolve_winner(25, bets) → 두 번째 베팅
    resolve_winner(35, bets) → None
"""

import logging

from zklottery.errors import OverlappingRangesError

logger = logging.getLogger(__name__)


def resolve_winner(position, bets):
    """위치를 포함하는 베팅을 반환한다.

    Args:
        position: 0 이상의 당첨 위치
        bets: 한 아이템에 대한 StoredBet 리스트

    Returns:
        StoredBet 또는 None

    Raises:
        OverlappingRangesError: 둘 이상의 베팅이 위치를 덮을 때
    """
    matches = [bet for bet in bets if bet.ticket_range.contains(position)]
    if len(matches) > 1:
        raise OverlappingRangesError(
            f"위치 {position}를 덮는 베팅이 {len(matches)}개입니다: "
            + ", ".join(repr(b.ticket_range) for b in matches)
        )
    if not matches:
        logger.debug("위치 %s를 덮는 로컬 베팅 없음 (%d개 중)", position, len(bets))
        return None
    return matches[0]
