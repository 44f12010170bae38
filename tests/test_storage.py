"""
암호화 볼트 저장소 테스트
"""
import pytest

from zklottery.errors import VaultDecryptionError
from zklottery.storage import derive_vault_key, EncryptedJSONStorage, KEY_SIZE
from zklottery.vault import BetVault


SIGNATURE = "0x" + "5a" * 65


class TestDeriveVaultKey:
    def test_length(self):
        assert len(derive_vault_key(SIGNATURE)) == KEY_SIZE

    def test_deterministic(self):
        assert derive_vault_key(SIGNATURE) == derive_vault_key(SIGNATURE)

    def test_hex_and_bytes_agree(self):
        assert derive_vault_key(SIGNATURE) == derive_vault_key(bytes.fromhex("5a" * 65))

    def test_salt_changes_key(self):
        assert derive_vault_key(SIGNATURE, b"a") != derive_vault_key(SIGNATURE, b"b")

    def test_empty_secret(self):
        with pytest.raises(ValueError):
            derive_vault_key(b"")


class TestEncryptedStorage:
    def test_bad_key_length(self, tmp_path):
        with pytest.raises(ValueError):
            EncryptedJSONStorage(tmp_path / "v.db", b"short")

    def test_missing_file_reads_none(self, tmp_path):
        storage = EncryptedJSONStorage(tmp_path / "v.db", derive_vault_key(SIGNATURE))
        assert storage.read() is None

    def test_write_read(self, tmp_path):
        storage = EncryptedJSONStorage(tmp_path / "v.db", derive_vault_key(SIGNATURE))
        storage.write({"bets": {"1": {"x": 1}}})
        assert storage.read() == {"bets": {"1": {"x": 1}}}

    def test_ciphertext_hides_plaintext(self, tmp_path):
        path = tmp_path / "v.db"
        storage = EncryptedJSONStorage(path, derive_vault_key(SIGNATURE))
        storage.write({"secret": "123456789123456789"})
        assert b"123456789123456789" not in path.read_bytes()

    def test_no_temp_file_left(self, tmp_path):
        storage = EncryptedJSONStorage(tmp_path / "v.db", derive_vault_key(SIGNATURE))
        storage.write({"a": 1})
        assert [p.name for p in tmp_path.iterdir()] == ["v.db"]


class TestEncryptedVault:
    def test_persists_across_reopen(self, tmp_path, make_bet):
        path = tmp_path / "nested" / "bets.vault"
        key = derive_vault_key(SIGNATURE)
        bet = make_bet()
        with BetVault.encrypted(path, key) as v:
            v.put(bet)
        assert path.exists()
        with BetVault.encrypted(path, key) as v:
            assert v.list_all() == [bet]

    def test_wrong_key(self, tmp_path, make_bet):
        path = tmp_path / "bets.vault"
        with BetVault.encrypted(path, derive_vault_key(SIGNATURE)) as v:
            v.put(make_bet())
        with BetVault.encrypted(path, derive_vault_key("0x01")) as v:
            with pytest.raises(VaultDecryptionError):
                v.list_all()

    def test_secrets_not_in_file(self, tmp_path, make_bet):
        path = tmp_path / "bets.vault"
        bet = make_bet(seed=12345)
        with BetVault.encrypted(path, derive_vault_key(SIGNATURE)) as v:
            v.put(bet)
        assert str(int(bet.commitment)).encode() not in path.read_bytes()
