"""
zklottery
==========

가중치 기반 ZK 복권의 commit/reveal 코어.

  베팅:  비밀값 생성 → 커밋먼트/널리파이어 해시 → 증명 → 로컬 볼트 저장
  클레임: 당첨 위치 → 로컬 베팅 조회 → Merkle 경로 + 클레임 증명
"""

__version__ = "0.1.0"
