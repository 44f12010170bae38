"""
체인 제출 형식 (Chain Formatting)
==================================

컨트랙트 호출 인자는 모두 32바이트 빅엔디안 '0x' 16진수이다.

  | 값                | 형식                                   |
  |-------------------|----------------------------------------|
  | 필드 원소          | '0x' + 64자리 16진수                   |
  | 증명 아티팩트      | 8개의 32바이트 16진수 리스트           |
  | 수령 주소          | '0x' + 40자리 16진수 → 필드 원소        |

사용 예시:
    >>> format_proof_for_contract(result.proof)
    ['0x00..', '0x00..', ...]   # 8개
"""

import re

from zklottery.field import FR, to_hex32, from_hex32

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


def to_bytes32_hex(value):
    """FR 또는 0 이상의 정수 → '0x' + 64자리"""
    return to_hex32(value)


def from_bytes32_hex(text):
    """'0x...' → int"""
    return from_hex32(text)


def address_to_field(address):
    """이더리움 주소 → FR (160비트 정수)

    Raises:
        ValueError: '0x' + 40자리 16진수가 아닐 때
    """
    if not isinstance(address, str) or not _ADDRESS_RE.match(address):
        raise ValueError(f"이더리움 주소 형식이 아닙니다: {address!r}")
    return FR(int(address, 16))


def format_proof_for_contract(artifact):
    """ProofArtifact → 8개의 bytes32 16진수 문자열"""
    return [to_hex32(v) for v in artifact]


def bet_submission_args(lottery_id, item_id, token_amount, result):
    """placeBet 호출 인자 (BetBuildResult 기반)"""
    return {
        "lotteryId": lottery_id,
        "itemId": item_id,
        "tokenAmount": token_amount,
        "commitment": to_hex32(result.commitment),
        "nullifierHash": to_hex32(result.nullifier_hash),
        "proof": format_proof_for_contract(result.proof),
    }


def claim_submission_args(lottery_id, item_id, winning_position, recipient, result):
    """claimPrize 호출 인자 (WinnerClaimResult 기반)"""
    return {
        "lotteryId": lottery_id,
        "itemId": item_id,
        "winningPosition": winning_position,
        "recipient": recipient,
        "claimNullifierHash": to_hex32(result.claim_nullifier_hash),
        "proof": format_proof_for_contract(result.proof),
    }
