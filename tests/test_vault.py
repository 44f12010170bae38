"""
BetVault 테스트: 저장, 조회, Merkle 경로 연결, 삭제, 생명주기
"""
import copy

import pytest
from tinydb.storages import MemoryStorage

from zklottery.errors import (
    BetNotFoundError,
    DuplicateCommitmentError,
    ImmutableFieldError,
    VaultClosedError,
)
from zklottery.field import FR
from zklottery.vault import BetVault


PATH = [FR(11), FR(12), FR(13)]
PATH_INDICES = [1, 0, 1]


class FlakyStorage(MemoryStorage):
    """failing이 켜져 있으면 기록할 때 OSError (디스크 가득 참 흉내)"""

    failing = False

    def write(self, data):
        if self.failing:
            raise OSError("No space left on device")
        super().write(copy.deepcopy(data))


@pytest.fixture
def flaky_vault():
    v = BetVault(FlakyStorage).open()
    yield v
    v.close()


class TestPutGet:
    def test_put_and_get(self, vault, make_bet):
        bet = make_bet()
        vault.put(bet)
        assert vault.get(bet.commitment) == bet
        assert len(vault) == 1

    def test_get_by_decimal_string(self, vault, make_bet):
        bet = make_bet()
        vault.put(bet)
        assert vault.get(str(int(bet.commitment))) == bet

    def test_duplicate_commitment(self, vault, make_bet):
        bet = make_bet()
        vault.put(bet)
        with pytest.raises(DuplicateCommitmentError):
            vault.put(bet)
        assert len(vault) == 1

    def test_get_missing(self, vault):
        with pytest.raises(BetNotFoundError):
            vault.get(12345)

    def test_missing_is_key_error(self, vault):
        with pytest.raises(KeyError):
            vault.get(12345)

    def test_secrets_round_trip(self, vault, make_bet):
        bet = make_bet(seed=7)
        vault.put(bet)
        assert vault.get(bet.commitment).secrets == bet.secrets


class TestListing:
    def test_insertion_order(self, vault, make_bet):
        bets = [make_bet(seed=i, start=i * 10) for i in range(4)]
        for b in bets:
            vault.put(b)
        assert vault.list_all() == bets

    def test_by_lottery(self, vault, make_bet):
        a = make_bet(lottery_id=1, seed=1)
        b = make_bet(lottery_id=2, seed=2)
        c = make_bet(lottery_id=1, seed=3, start=10)
        for x in (a, b, c):
            vault.put(x)
        assert vault.list_by_lottery(1) == [a, c]
        assert vault.list_by_lottery(2) == [b]
        assert vault.list_by_lottery(3) == []

    def test_by_item(self, vault, make_bet):
        a = make_bet(item_id=1, seed=1)
        b = make_bet(item_id=2, seed=2)
        c = make_bet(lottery_id=9, item_id=1, seed=3)
        for x in (a, b, c):
            vault.put(x)
        assert vault.list_by_item(1, 1) == [a]
        assert vault.list_by_item(9, 1) == [c]


class TestAttachMerklePath:
    def test_attach(self, vault, make_bet):
        bet = make_bet()
        vault.put(bet)
        updated = vault.attach_merkle_path(bet.commitment, 5, PATH, PATH_INDICES)
        assert updated.merkle_index == 5
        assert updated.merkle_path == PATH
        assert updated.merkle_path_indices == PATH_INDICES
        assert vault.get(bet.commitment).is_included

    def test_idempotent(self, vault, make_bet):
        bet = make_bet()
        vault.put(bet)
        first = vault.attach_merkle_path(bet.commitment, 5, PATH, PATH_INDICES)
        second = vault.attach_merkle_path(bet.commitment, 5, PATH, PATH_INDICES)
        assert first == second

    def test_different_index_rejected(self, vault, make_bet):
        bet = make_bet()
        vault.put(bet)
        vault.attach_merkle_path(bet.commitment, 5, PATH, PATH_INDICES)
        with pytest.raises(ImmutableFieldError):
            vault.attach_merkle_path(bet.commitment, 6, PATH, [0, 1, 1])
        assert vault.get(bet.commitment).merkle_index == 5

    def test_different_path_rejected(self, vault, make_bet):
        bet = make_bet()
        vault.put(bet)
        vault.attach_merkle_path(bet.commitment, 5, PATH, PATH_INDICES)
        with pytest.raises(ImmutableFieldError):
            vault.attach_merkle_path(bet.commitment, 5, [FR(1)] * 3, PATH_INDICES)

    def test_unknown_commitment(self, vault):
        with pytest.raises(BetNotFoundError):
            vault.attach_merkle_path(FR(1), 0, PATH, PATH_INDICES)

    def test_negative_index(self, vault, make_bet):
        bet = make_bet()
        vault.put(bet)
        with pytest.raises(ValueError):
            vault.attach_merkle_path(bet.commitment, -1, PATH, PATH_INDICES)

    def test_length_mismatch(self, vault, make_bet):
        bet = make_bet()
        vault.put(bet)
        with pytest.raises(ValueError):
            vault.attach_merkle_path(bet.commitment, 5, PATH, [1, 0])
        assert not vault.get(bet.commitment).is_included

    def test_non_binary_index(self, vault, make_bet):
        bet = make_bet()
        vault.put(bet)
        with pytest.raises(ValueError):
            vault.attach_merkle_path(bet.commitment, 5, PATH, [1, 2, 0])

    def test_bool_index_rejected(self, vault, make_bet):
        bet = make_bet()
        vault.put(bet)
        with pytest.raises(ValueError):
            vault.attach_merkle_path(bet.commitment, 1, [FR(7)], [True])
        assert vault.list_all() == [bet]


class TestClear:
    def test_clear_by_lottery(self, vault, make_bet):
        vault.put(make_bet(lottery_id=1, seed=1))
        vault.put(make_bet(lottery_id=1, seed=2, start=10))
        keep = make_bet(lottery_id=2, seed=3)
        vault.put(keep)
        assert vault.clear_by_lottery(1) == 2
        assert vault.list_all() == [keep]

    def test_clear_by_lottery_none(self, vault):
        assert vault.clear_by_lottery(42) == 0

    def test_clear_all(self, vault, make_bet):
        vault.put(make_bet(seed=1))
        vault.put(make_bet(seed=2, start=10))
        vault.clear_all()
        assert vault.list_all() == []
        assert len(vault) == 0


class TestLifecycle:
    def test_closed_vault(self):
        v = BetVault.in_memory()
        with pytest.raises(VaultClosedError):
            v.list_all()

    def test_context_manager(self, make_bet):
        with BetVault.in_memory() as v:
            assert v.is_open
            v.put(make_bet())
        assert not v.is_open
        with pytest.raises(VaultClosedError):
            v.put(make_bet(seed=2))

    def test_open_is_idempotent(self, make_bet):
        v = BetVault.in_memory()
        assert v.open() is v
        v.put(make_bet())
        v.open()
        assert len(v) == 1
        v.close()
        v.close()


class TestFailedWrite:
    """저장소 기록이 실패하면 볼트는 변경 전 그대로여야 한다"""

    def test_put(self, flaky_vault, make_bet, monkeypatch):
        first = make_bet(seed=1)
        flaky_vault.put(first)
        monkeypatch.setattr(FlakyStorage, "failing", True)
        with pytest.raises(OSError):
            flaky_vault.put(make_bet(seed=2, start=10))
        assert flaky_vault.list_all() == [first]

    def test_failed_put_not_flushed_later(self, flaky_vault, make_bet, monkeypatch):
        monkeypatch.setattr(FlakyStorage, "failing", True)
        with pytest.raises(OSError):
            flaky_vault.put(make_bet(seed=1))
        monkeypatch.setattr(FlakyStorage, "failing", False)
        retry = make_bet(seed=2)
        flaky_vault.put(retry)
        assert flaky_vault.list_all() == [retry]

    def test_attach(self, flaky_vault, make_bet, monkeypatch):
        bet = make_bet()
        flaky_vault.put(bet)
        monkeypatch.setattr(FlakyStorage, "failing", True)
        with pytest.raises(OSError):
            flaky_vault.attach_merkle_path(bet.commitment, 5, PATH, PATH_INDICES)
        assert not flaky_vault.get(bet.commitment).is_included

    def test_clear(self, flaky_vault, make_bet, monkeypatch):
        bet = make_bet()
        flaky_vault.put(bet)
        monkeypatch.setattr(FlakyStorage, "failing", True)
        with pytest.raises(OSError):
            flaky_vault.clear_all()
        with pytest.raises(OSError):
            flaky_vault.clear_by_lottery(bet.lottery_id)
        assert flaky_vault.list_all() == [bet]

    def test_import_snapshot(self, flaky_vault, make_bet, monkeypatch):
        old = make_bet(seed=1)
        flaky_vault.put(old)
        with BetVault.in_memory() as other:
            other.put(make_bet(seed=2))
            blob = other.export_snapshot()
        monkeypatch.setattr(FlakyStorage, "failing", True)
        with pytest.raises(OSError):
            flaky_vault.import_snapshot(blob)
        assert flaky_vault.list_all() == [old]
