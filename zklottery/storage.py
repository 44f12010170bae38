"""
볼트 저장소 백엔드 (TinyDB Storage)
====================================

BetVault는 TinyDB 위에 올라가며, 저장소 클래스만 바꿔 끼운다.

  | 저장소                 | 용도                                  |
  |------------------------|---------------------------------------|
  | MemoryStorage          | 테스트, 일회성 세션 (tinydb 기본 제공) |
  | EncryptedJSONStorage   | 로컬 디바이스의 영속 볼트             |

**EncryptedJSONStorage**:
  TinyDB 문서 전체를 JSON으로 직렬화한 뒤 AES-256-GCM으로 암호화한다.
  파일 형식: nonce(12바이트) ‖ ciphertext+tag
  쓰기는 임시 파일에 쓴 뒤 os.replace로 교체하므로 중간 상태가 남지 않는다.

**키 유도**:
  지갑 서명처럼 엔트로피가 충분한 비밀에서 HKDF-SHA256으로 32바이트 키를 만든다.

사용 예시:
    >>> key = derive_vault_key(wallet_signature)
    >>> db = TinyDB("bets.db", key, storage=EncryptedJSONStorage)
"""

import json
import logging
import os
from pathlib import Path

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from tinydb.storages import Storage

from zklottery.errors import VaultDecryptionError

logger = logging.getLogger(__name__)

NONCE_SIZE = 12
KEY_SIZE = 32
_AAD = b"zklottery/vault/v1"


def derive_vault_key(secret, salt=None):
    """지갑 서명 등에서 볼트 암호화 키를 유도한다.

    Args:
        secret: bytes 또는 '0x' 16진 문자열
        salt: 선택적 솔트 (bytes)

    Returns:
        bytes: 32바이트 AES 키
    """
    if isinstance(secret, str):
        text = secret[2:] if secret.lower().startswith("0x") else secret
        secret = bytes.fromhex(text)
    if not secret:
        raise ValueError("빈 비밀값으로 키를 유도할 수 없습니다")
    hkdf = HKDF(
        algorithm=hashes.SHA256(),
        length=KEY_SIZE,
        salt=salt,
        info=_AAD,
    )
    return hkdf.derive(secret)


class EncryptedJSONStorage(Storage):
    """AES-GCM으로 암호화된 JSON 파일 저장소."""

    def __init__(self, path, key, create_dirs=False):
        if len(key) != KEY_SIZE:
            raise ValueError(f"볼트 키는 {KEY_SIZE}바이트여야 합니다")
        self._path = Path(path)
        self._aead = AESGCM(key)
        if create_dirs:
            self._path.parent.mkdir(parents=True, exist_ok=True)

    def read(self):
        if not self._path.exists():
            return None
        blob = self._path.read_bytes()
        if not blob:
            return None
        nonce, ciphertext = blob[:NONCE_SIZE], blob[NONCE_SIZE:]
        try:
            plaintext = self._aead.decrypt(nonce, ciphertext, _AAD)
        except InvalidTag as e:
            raise VaultDecryptionError(f"볼트 파일을 복호화할 수 없습니다: {self._path}") from e
        return json.loads(plaintext.decode("utf-8"))

    def write(self, data):
        nonce = os.urandom(NONCE_SIZE)
        plaintext = json.dumps(data, separators=(",", ":")).encode("utf-8")
        blob = nonce + self._aead.encrypt(nonce, plaintext, _AAD)

        tmp_path = self._path.with_name(self._path.name + ".tmp")
        with open(tmp_path, "wb") as f:
            f.write(blob)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, self._path)
        logger.debug("암호화 볼트 기록: %s (%d bytes)", self._path, len(blob))

    def close(self):
        pass
