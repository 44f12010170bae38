"""
직렬화/역직렬화 헬퍼
=====================

TinyDB와 스냅샷 블롭에 저장 가능한 형태로 객체를 변환한다.

**StoredBet 레코드**:
  기존 프론트엔드의 레코드 레이아웃(camelCase 키, 필드 원소는 10진 문자열)을
  그대로 따른다. 아직 포함이 확인되지 않은 베팅은 merklePath 키가 없다.

**스냅샷 블롭**:
  base64( JSON {"format": "zklottery/bets", "version": 1, "bets": [...]} )
  기존 프론트엔드의 내보내기 형식인 base64( JSON [...] )도 읽을 수 있다.

**곡선 점**:
  Groth16 키 캐시용 G1/G2 점 ↔ 문자열 리스트.

역직렬화 함수는 잘못된 입력에 대해 ValueError(또는 TypeError)를 던진다.
"""

import base64
import binascii
import json

from py_ecc import bn128
from py_ecc.fields import bn128_FQ as FQ

from zklottery.field import FR, CURVE_ORDER
from zklottery.types import BetSecrets, TicketRange, StoredBet


SNAPSHOT_FORMAT = "zklottery/bets"
SNAPSHOT_VERSION = 1

# 가져오기 한도. 정상 스냅샷의 중첩 깊이는 4 이하이다.
MAX_SNAPSHOT_LENGTH = 32 * 1024 * 1024
MAX_SNAPSHOT_DEPTH = 8


# ─── FR ───

def serialize_fr(val):
    """FR → str(int)"""
    return str(int(val))


def deserialize_fr(s):
    """str(int) 또는 int → FR. 정규 범위 [0, p)를 벗어나면 거부한다."""
    if isinstance(s, bool):
        raise TypeError("bool은 필드 원소가 아닙니다")
    if isinstance(s, int):
        n = s
    elif isinstance(s, str):
        n = int(s, 10)
    else:
        raise TypeError(f"필드 원소 형식이 아닙니다: {type(s).__name__}")
    if n < 0 or n >= CURVE_ORDER:
        raise ValueError(f"정규 필드 원소 범위를 벗어났습니다: {n}")
    return FR(n)


def serialize_fr_list(lst):
    """list[FR] → list[str]"""
    return [str(int(v)) for v in lst]


def deserialize_fr_list(data):
    if not isinstance(data, list):
        raise TypeError("필드 원소 리스트가 아닙니다")
    return [deserialize_fr(s) for s in data]


# ─── G1 / G2 point ───

def serialize_g1(point):
    """G1 point → [str, str] or None"""
    if point is None:
        return None
    return [str(int(point[0])), str(int(point[1]))]


def deserialize_g1(data):
    """[str, str] or None → G1 point"""
    if data is None:
        return None
    return (FQ(int(data[0])), FQ(int(data[1])))


def serialize_g2(point):
    """G2 point → [[str,str],[str,str]] or None"""
    if point is None:
        return None
    return [
        [str(int(point[0].coeffs[0])), str(int(point[0].coeffs[1]))],
        [str(int(point[1].coeffs[0])), str(int(point[1].coeffs[1]))]
    ]


def deserialize_g2(data):
    """[[str,str],[str,str]] or None → G2 point"""
    if data is None:
        return None
    return (
        bn128.FQ2([int(data[0][0]), int(data[0][1])]),
        bn128.FQ2([int(data[1][0]), int(data[1][1])])
    )


# ─── StoredBet ───

def _require_int(record, key, minimum):
    value = record[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{key}는 정수여야 합니다: {value!r}")
    if value < minimum:
        raise ValueError(f"{key}는 {minimum} 이상이어야 합니다: {value}")
    return value


def serialize_bet(bet):
    """StoredBet → dict (camelCase)"""
    record = {
        "lotteryId": bet.lottery_id,
        "itemId": bet.item_id,
        "tokenAmount": bet.token_amount,
        "commitment": serialize_fr(bet.commitment),
        "nullifierHash": serialize_fr(bet.nullifier_hash),
        "secrets": {
            "secret": serialize_fr(bet.secrets.secret),
            "nullifier": serialize_fr(bet.secrets.nullifier),
            "salt": serialize_fr(bet.secrets.salt),
        },
        "ticketRange": {
            "start": bet.ticket_range.start,
            "end": bet.ticket_range.end,
        },
        "merkleIndex": bet.merkle_index,
        "createdAt": bet.created_at,
    }
    if bet.merkle_path is not None:
        record["merklePath"] = serialize_fr_list(bet.merkle_path)
    if bet.merkle_path_indices is not None:
        record["merklePathIndices"] = list(bet.merkle_path_indices)
    return record


def deserialize_bet(record):
    """dict → StoredBet (구조 검증 포함).

    검증 항목:
      - 정수 필드의 타입과 하한
      - 필드 원소가 정규 범위 [0, p)
      - ticketRange.end - ticketRange.start == tokenAmount
      - merkleIndex == -1 이면 경로 없음, 아니면 같은 길이의 경로와 0/1 인덱스

    Raises:
        ValueError, TypeError, KeyError: 형식 오류
    """
    if not isinstance(record, dict):
        raise TypeError("베팅 레코드는 객체여야 합니다")

    lottery_id = _require_int(record, "lotteryId", 0)
    item_id = _require_int(record, "itemId", 0)
    token_amount = _require_int(record, "tokenAmount", 1)
    created_at = _require_int(record, "createdAt", 0)
    merkle_index = _require_int(record, "merkleIndex", -1)

    secrets_data = record["secrets"]
    if not isinstance(secrets_data, dict):
        raise TypeError("secrets는 객체여야 합니다")
    secrets = BetSecrets(
        deserialize_fr(secrets_data["secret"]),
        deserialize_fr(secrets_data["nullifier"]),
        deserialize_fr(secrets_data["salt"]),
    )

    range_data = record["ticketRange"]
    if not isinstance(range_data, dict):
        raise TypeError("ticketRange는 객체여야 합니다")
    start = _require_int(range_data, "start", 0)
    end = _require_int(range_data, "end", 0)
    ticket_range = TicketRange(start, end)
    if ticket_range.size != token_amount:
        raise ValueError(
            f"티켓 범위 크기 {ticket_range.size}가 토큰 수 {token_amount}와 다릅니다"
        )

    path = record.get("merklePath")
    indices = record.get("merklePathIndices")
    if merkle_index == -1:
        if path is not None or indices is not None:
            raise ValueError("포함 확인 전 베팅에 Merkle 경로가 있습니다")
        merkle_path = None
        merkle_path_indices = None
    else:
        if path is None or indices is None:
            raise ValueError("포함 확인된 베팅에 Merkle 경로가 없습니다")
        merkle_path = deserialize_fr_list(path)
        if not isinstance(indices, list) or len(indices) != len(merkle_path):
            raise ValueError("merklePathIndices 길이가 merklePath와 다릅니다")
        for index in indices:
            if isinstance(index, bool) or index not in (0, 1):
                raise ValueError(f"경로 인덱스는 0 또는 1이어야 합니다: {index!r}")
        merkle_path_indices = list(indices)

    return StoredBet(
        lottery_id=lottery_id,
        item_id=item_id,
        token_amount=token_amount,
        commitment=deserialize_fr(record["commitment"]),
        nullifier_hash=deserialize_fr(record["nullifierHash"]),
        secrets=secrets,
        ticket_range=ticket_range,
        created_at=created_at,
        merkle_index=merkle_index,
        merkle_path=merkle_path,
        merkle_path_indices=merkle_path_indices,
    )


# ─── Snapshot ───

def encode_snapshot(bets):
    """list[StoredBet] → base64 문자열"""
    document = {
        "format": SNAPSHOT_FORMAT,
        "version": SNAPSHOT_VERSION,
        "bets": [serialize_bet(b) for b in bets],
    }
    raw = json.dumps(document, separators=(",", ":")).encode("utf-8")
    return base64.b64encode(raw).decode("ascii")


def _check_nesting(text, limit):
    """JSON 텍스트의 괄호 중첩 깊이가 limit을 넘으면 ValueError.

    깊게 중첩된 입력은 json 디코더를 죽일 수 있으므로 파싱 전에 센다.
    """
    depth = 0
    in_string = False
    escaped = False
    for ch in text:
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch in "[{":
            depth += 1
            if depth > limit:
                raise ValueError(f"스냅샷 중첩이 너무 깊습니다 (최대 {limit})")
        elif ch in "]}":
            depth -= 1


def decode_snapshot(blob):
    """base64 문자열 → list[StoredBet].

    모든 레코드를 검증한 뒤에만 결과를 반환한다. 커밋먼트 중복도 거부한다.

    Raises:
        ValueError, TypeError, KeyError: 디코딩 또는 검증 실패
    """
    if isinstance(blob, bytes):
        blob = blob.decode("ascii")
    if not isinstance(blob, str):
        raise TypeError("스냅샷은 문자열이어야 합니다")
    if len(blob) > MAX_SNAPSHOT_LENGTH:
        raise ValueError(f"스냅샷이 너무 큽니다: {len(blob)}자 (최대 {MAX_SNAPSHOT_LENGTH})")
    try:
        raw = base64.b64decode(blob.strip(), validate=True)
    except binascii.Error as e:
        raise ValueError(f"base64 디코딩 실패: {e}") from e
    text = raw.decode("utf-8")
    _check_nesting(text, MAX_SNAPSHOT_DEPTH)
    document = json.loads(text)

    if isinstance(document, list):
        # 기존 프론트엔드 형식: 레코드 배열만 있음
        records = document
    elif isinstance(document, dict):
        if document.get("format") != SNAPSHOT_FORMAT:
            raise ValueError(f"알 수 없는 스냅샷 형식: {document.get('format')!r}")
        if document.get("version") != SNAPSHOT_VERSION:
            raise ValueError(f"지원하지 않는 스냅샷 버전: {document.get('version')!r}")
        records = document["bets"]
        if not isinstance(records, list):
            raise TypeError("bets는 배열이어야 합니다")
    else:
        raise TypeError("스냅샷 최상위는 객체 또는 배열이어야 합니다")

    bets = [deserialize_bet(r) for r in records]

    seen = set()
    for bet in bets:
        key = int(bet.commitment)
        if key in seen:
            raise ValueError(f"스냅샷에 중복 커밋먼트가 있습니다: {key}")
        seen.add(key)
    return bets


def short_hex(val):
    """FR → 축약 16진 문자열 (로그 표시용)"""
    if val is None:
        return "None"
    s = f"{int(val):064x}"
    return "0x" + s[:6] + "…" + s[-4:]
