"""
설정 (Configuration)
=====================

YAML 파일 + 환경 변수로 구성 요소를 조립한다.

예시 (zklottery.yaml):

    hash_preset: extended
    hash_rounds: 8
    log_level: INFO
    prover:
      backend: groth16
      tree_depth: 20
      range_bits: 64
      setup_seed: null
      key_dir: keys/groth16
    vault:
      path: data/bets.vault

환경 변수가 파일보다 우선한다:
  ZKLOTTERY_BACKEND, ZKLOTTERY_HASH_PRESET, ZKLOTTERY_LOG_LEVEL
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from zklottery.backends.stub import StubProofBackend
from zklottery.errors import ConfigError
from zklottery.groth16.backend import Groth16ProofBackend
from zklottery.hash import HashParams, DEFAULT_ROUNDS
from zklottery.vault import BetVault

logger = logging.getLogger(__name__)

BACKENDS = ("stub", "groth16")
HASH_PRESETS = ("legacy", "extended")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class ProverConfig:
    backend: str = "stub"
    tree_depth: int = 20
    range_bits: int = 64
    setup_seed: Optional[str] = None
    key_dir: Optional[Path] = None

    def __post_init__(self):
        if self.backend not in BACKENDS:
            raise ConfigError(f"알 수 없는 증명 백엔드: {self.backend!r} (가능: {BACKENDS})")
        if self.key_dir is not None:
            self.key_dir = Path(self.key_dir)


@dataclass
class VaultConfig:
    path: Optional[Path] = None

    def __post_init__(self):
        if self.path is not None:
            self.path = Path(self.path)


@dataclass
class LotteryConfig:
    hash_preset: str = "extended"
    hash_rounds: int = DEFAULT_ROUNDS
    log_level: str = "INFO"
    prover: ProverConfig = field(default_factory=ProverConfig)
    vault: VaultConfig = field(default_factory=VaultConfig)

    def __post_init__(self):
        if self.hash_preset not in HASH_PRESETS:
            raise ConfigError(f"알 수 없는 해시 프리셋: {self.hash_preset!r}")
        if not isinstance(self.hash_rounds, int) or self.hash_rounds < 1:
            raise ConfigError(f"hash_rounds는 1 이상의 정수여야 합니다: {self.hash_rounds!r}")
        if (not isinstance(self.log_level, str)
                or not isinstance(logging.getLevelName(self.log_level.upper()), int)):
            raise ConfigError(f"알 수 없는 로그 레벨: {self.log_level!r}")


def _section(data, key):
    value = data.get(key) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{key}' 섹션은 매핑이어야 합니다")
    return value


def config_from_dict(data, environ=None):
    """dict (YAML 내용) + 환경 변수 → LotteryConfig"""
    if environ is None:
        environ = os.environ
    if not isinstance(data, dict):
        raise ConfigError("설정 최상위는 매핑이어야 합니다")

    prover_data = dict(_section(data, "prover"))
    vault_data = dict(_section(data, "vault"))
    top = {k: v for k, v in data.items() if k not in ("prover", "vault")}

    if "ZKLOTTERY_BACKEND" in environ:
        prover_data["backend"] = environ["ZKLOTTERY_BACKEND"]
    if "ZKLOTTERY_HASH_PRESET" in environ:
        top["hash_preset"] = environ["ZKLOTTERY_HASH_PRESET"]
    if "ZKLOTTERY_LOG_LEVEL" in environ:
        top["log_level"] = environ["ZKLOTTERY_LOG_LEVEL"]

    try:
        return LotteryConfig(
            prover=ProverConfig(**prover_data),
            vault=VaultConfig(**vault_data),
            **top,
        )
    except TypeError as e:
        raise ConfigError(f"알 수 없는 설정 키: {e}") from e


def load_config(config_path=None, environ=None):
    """YAML 파일에서 설정을 읽는다. 파일이 없으면 기본값 + 환경 변수.

    Raises:
        ConfigError: YAML 파싱 실패 또는 잘못된 값
    """
    if config_path is None:
        config_path = Path("zklottery.yaml")
    config_path = Path(config_path)

    data = {}
    if config_path.exists():
        try:
            with open(config_path, "r") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"설정 파일을 읽을 수 없습니다 {config_path}: {e}") from e
        logger.debug("설정 로드: %s", config_path)

    return config_from_dict(data, environ)


def save_config(config, config_path):
    """설정을 YAML 파일로 저장한다."""
    data = {
        "hash_preset": config.hash_preset,
        "hash_rounds": config.hash_rounds,
        "log_level": config.log_level,
        "prover": {
            "backend": config.prover.backend,
            "tree_depth": config.prover.tree_depth,
            "range_bits": config.prover.range_bits,
            "setup_seed": config.prover.setup_seed,
            "key_dir": str(config.prover.key_dir) if config.prover.key_dir else None,
        },
        "vault": {
            "path": str(config.vault.path) if config.vault.path else None,
        },
    }
    with open(config_path, "w") as f:
        yaml.safe_dump(data, f, default_flow_style=False)


def setup_logging(log_level="INFO"):
    """루트 로거를 설정한다. 기존 핸들러는 제거한다."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    logging.basicConfig(level=getattr(logging, log_level.upper()), format=LOG_FORMAT)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def hash_params_from_config(config):
    return HashParams.from_preset(config.hash_preset, config.hash_rounds)


def create_proof_backend(config, hash_params=None):
    """설정에 맞는 ProofBackend를 만든다."""
    if hash_params is None:
        hash_params = hash_params_from_config(config)
    prover = config.prover
    if prover.backend == "groth16":
        return Groth16ProofBackend(
            hash_params=hash_params,
            tree_depth=prover.tree_depth,
            range_bits=prover.range_bits,
            setup_seed=prover.setup_seed,
            key_dir=prover.key_dir,
        )
    return StubProofBackend(hash_params)


def create_vault(config, key=None):
    """설정에 맞는 BetVault (열지 않은 상태).

    vault.path가 없으면 메모리 볼트, 있으면 key로 암호화된 파일 볼트.
    """
    if config.vault.path is None:
        return BetVault.in_memory()
    if key is None:
        raise ConfigError("암호화 볼트에는 키가 필요합니다 (derive_vault_key 참고)")
    return BetVault.encrypted(config.vault.path, key)
