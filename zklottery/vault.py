"""
베팅 볼트 (Bet Vault)
======================

베터 한 명의 로컬 디바이스에 저장되는 `commitment → StoredBet` 저장소.
전역 상태 없이 주입되는 객체이며, 명시적인 open/close 생명주기를 가진다.

**저장 구조**:
  TinyDB의 "bets" 테이블에 serializers.serialize_bet 레코드를 넣는다.
  저장소 클래스는 CachingMiddleware로 감싸고, 변경 연산마다 flush()로
  정확히 한 번 기록한다. 그래서 스냅샷 가져오기처럼 여러 단계로 된 변경도
  저장소에는 한 번에 반영된다. 기록이 실패하면 캐시를 변경 전으로 되돌린다.

**생명주기**:
  생성 → (베팅 저장, merkleIndex = -1)
       → attach_merkle_path 한 번 (이후 불변)
       → 읽기 전용
       → clear_by_lottery / clear_all 로 삭제

**동시성**:
  잠금이 없다. 같은 커밋먼트에 대한 변경은 호출자가 직렬화해야 한다
  (zklottery.client.LotteryClient 참고).

사용 예시:
    >>> with BetVault.in_memory() as vault:
    ...     vault.put(bet)
    ...     vault.list_by_item(1, 2)
"""

import copy
import logging
from contextlib import contextmanager

from tinydb import TinyDB, Query
from tinydb.middlewares import CachingMiddleware
from tinydb.storages import MemoryStorage

from zklottery.errors import (
    BetNotFoundError,
    DuplicateCommitmentError,
    ImmutableFieldError,
    VaultClosedError,
)
from zklottery.field import to_field
from zklottery.serializers import (
    serialize_bet,
    deserialize_bet,
    serialize_fr,
    serialize_fr_list,
    encode_snapshot,
    decode_snapshot,
    short_hex,
)
from zklottery.storage import EncryptedJSONStorage

logger = logging.getLogger(__name__)

BETS_TABLE = "bets"

BET = Query()


class BetVault:
    """TinyDB 기반 베팅 볼트.

    Args:
        storage_cls: TinyDB Storage 클래스
        *storage_args, **storage_kwargs: 저장소 생성 인자
    """

    def __init__(self, storage_cls, *storage_args, **storage_kwargs):
        self._storage_cls = storage_cls
        self._storage_args = storage_args
        self._storage_kwargs = storage_kwargs
        self._db = None

    @classmethod
    def in_memory(cls):
        """메모리 볼트. close() 하면 내용이 사라진다."""
        return cls(MemoryStorage)

    @classmethod
    def encrypted(cls, path, key):
        """AES-GCM 암호화 파일 볼트."""
        return cls(EncryptedJSONStorage, path, key, create_dirs=True)

    # ─── 생명주기 ───

    def open(self):
        if self._db is None:
            self._db = TinyDB(
                *self._storage_args,
                storage=CachingMiddleware(self._storage_cls),
                **self._storage_kwargs,
            )
            logger.debug("볼트 열림 (%s)", self._storage_cls.__name__)
        return self

    def close(self):
        if self._db is not None:
            self._db.close()
            self._db = None
            logger.debug("볼트 닫힘")

    @property
    def is_open(self):
        return self._db is not None

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()

    @property
    def _table(self):
        if self._db is None:
            raise VaultClosedError("볼트가 열려 있지 않습니다")
        return self._db.table(BETS_TABLE)

    @contextmanager
    def _mutation(self):
        """변경 + flush를 하나로 묶는다.

        저장소 기록이 실패하면 CachingMiddleware 캐시를 변경 전 상태로 되돌리고
        예외를 다시 던진다. 실패한 변경이 다음 flush에 실려 나가지 않는다.
        """
        table = self._table
        storage = self._db.storage
        table.all()
        saved = copy.deepcopy(storage.cache)
        try:
            yield table
            storage.flush()
        except BaseException:
            storage.cache = saved
            storage._cache_modified_count = 0
            table.clear_cache()
            raise

    # ─── 쓰기 ───

    def put(self, bet):
        """새 베팅을 저장한다 (추가 전용).

        Raises:
            DuplicateCommitmentError: 같은 커밋먼트가 이미 있을 때
        """
        table = self._table
        key = serialize_fr(bet.commitment)
        if table.contains(BET.commitment == key):
            raise DuplicateCommitmentError(key)
        with self._mutation() as table:
            table.insert(serialize_bet(bet))
        logger.info(
            "베팅 저장: lottery=%s item=%s commitment=%s",
            bet.lottery_id, bet.item_id, short_hex(bet.commitment),
        )

    def attach_merkle_path(self, commitment, merkle_index, path, path_indices):
        """온체인 포함 확인 후 Merkle 경로를 붙인다. 생성 이후 유일한 변경 연산.

        같은 인자로 다시 호출하면 아무 일도 하지 않는다.

        Args:
            commitment: 대상 커밋먼트
            merkle_index: 0 이상의 리프 인덱스
            path: 형제 노드 리스트
            path_indices: 0/1 리스트 (path와 같은 길이)

        Returns:
            StoredBet: 갱신된 베팅

        Raises:
            BetNotFoundError: 없는 커밋먼트
            ImmutableFieldError: 이미 다른 값으로 확정된 베팅
            ValueError: 음수 인덱스, 길이 불일치, 0/1이 아닌 경로 인덱스
        """
        if isinstance(merkle_index, bool) or not isinstance(merkle_index, int) or merkle_index < 0:
            raise ValueError(f"merkle_index는 0 이상의 정수여야 합니다: {merkle_index!r}")
        path = [to_field(x) for x in path]
        path_indices = list(path_indices)
        if len(path) != len(path_indices):
            raise ValueError("path와 path_indices 길이가 다릅니다")
        if any(isinstance(i, bool) or i not in (0, 1) for i in path_indices):
            raise ValueError("path_indices는 0 또는 1이어야 합니다")

        table = self._table
        key = serialize_fr(to_field(commitment))
        doc = table.get(BET.commitment == key)
        if doc is None:
            raise BetNotFoundError(key)

        if doc["merkleIndex"] != -1:
            same = (
                doc["merkleIndex"] == merkle_index
                and doc.get("merklePath") == serialize_fr_list(path)
                and doc.get("merklePathIndices") == path_indices
            )
            if same:
                return deserialize_bet(doc)
            raise ImmutableFieldError(
                f"이미 merkleIndex={doc['merkleIndex']}로 확정된 베팅입니다: {key}"
            )

        with self._mutation() as table:
            table.update(
                {
                    "merkleIndex": merkle_index,
                    "merklePath": serialize_fr_list(path),
                    "merklePathIndices": path_indices,
                },
                BET.commitment == key,
            )
        logger.info("Merkle 경로 연결: commitment=%s index=%d", short_hex(key), merkle_index)
        return deserialize_bet(table.get(BET.commitment == key))

    def clear_all(self):
        """모든 베팅을 삭제한다 (되돌릴 수 없음)."""
        with self._mutation() as table:
            table.truncate()
        logger.warning("볼트의 모든 베팅을 삭제했습니다")

    def clear_by_lottery(self, lottery_id):
        """한 복권의 베팅을 삭제하고 삭제된 개수를 반환한다."""
        with self._mutation() as table:
            removed = table.remove(BET.lotteryId == lottery_id)
        logger.info("lottery=%s 베팅 %d개 삭제", lottery_id, len(removed))
        return len(removed)

    # ─── 읽기 ───

    def get(self, commitment):
        key = serialize_fr(to_field(commitment))
        doc = self._table.get(BET.commitment == key)
        if doc is None:
            raise BetNotFoundError(key)
        return deserialize_bet(doc)

    def list_all(self):
        return [deserialize_bet(d) for d in self._table.all()]

    def list_by_lottery(self, lottery_id):
        return [deserialize_bet(d) for d in self._table.search(BET.lotteryId == lottery_id)]

    def list_by_item(self, lottery_id, item_id):
        docs = self._table.search((BET.lotteryId == lottery_id) & (BET.itemId == item_id))
        return [deserialize_bet(d) for d in docs]

    def __len__(self):
        return len(self._table)

    # ─── 스냅샷 ───

    def export_snapshot(self):
        """볼트 전체를 자기 기술적(self-describing) base64 블롭으로 내보낸다."""
        return encode_snapshot(self.list_all())

    def import_snapshot(self, blob):
        """스냅샷으로 볼트 내용을 교체한다.

        모든 레코드를 검증한 뒤에만 기록하며, 기록은 한 번에 이루어진다.
        검증에 실패하면 볼트는 그대로이고 False를 반환한다.

        Returns:
            bool: 성공 여부
        """
        self._table  # 닫힌 볼트면 VaultClosedError
        try:
            bets = decode_snapshot(blob)
        except (ValueError, TypeError, KeyError) as e:
            logger.warning("스냅샷 가져오기 실패: %s", e)
            return False

        with self._mutation() as table:
            table.truncate()
            table.insert_multiple(serialize_bet(b) for b in bets)
        logger.info("스냅샷 가져오기: 베팅 %d개", len(bets))
        return True
