"""zklottery 예외 계층."""


class ZkLotteryError(Exception):
    """모든 zklottery 예외의 기반 클래스."""


class DuplicateCommitmentError(ZkLotteryError):
    """같은 커밋먼트가 이미 볼트에 있다."""

    def __init__(self, commitment):
        super().__init__(f"이미 저장된 커밋먼트입니다: {commitment}")
        self.commitment = commitment


class BetNotFoundError(ZkLotteryError, KeyError):
    def __init__(self, commitment):
        super().__init__(f"볼트에 없는 커밋먼트입니다: {commitment}")
        self.commitment = commitment

    def __str__(self):
        return self.args[0]


class ImmutableFieldError(ZkLotteryError):
    """이미 확정된 Merkle 포함 정보를 다른 값으로 바꾸려 했다."""


class IncompleteBetError(ZkLotteryError):
    """Merkle 포함이 아직 확인되지 않은 베팅으로 클레임을 요청했다."""


class RangeMismatchError(ZkLotteryError):
    """당첨 위치가 베팅의 티켓 범위 밖이다."""


class InvalidMerkleProofError(ZkLotteryError):
    """저장된 Merkle 경로가 주어진 루트를 재현하지 못한다."""


class OverlappingRangesError(ZkLotteryError):
    """같은 위치를 덮는 베팅이 둘 이상이다 (범위 불변식 위반)."""


class ProofGenerationError(ZkLotteryError):
    """증명 생성 실패. buildBet은 새 비밀값으로 다시 시도해야 한다."""


class InvalidProofArtifactError(ZkLotteryError, ValueError):
    """증명 아티팩트의 형태가 잘못되었다 (8원소, 기저 필드 범위)."""


class VaultClosedError(ZkLotteryError):
    """닫힌 볼트에 접근했다."""


class ConfigError(ZkLotteryError):
    pass


class VaultDecryptionError(ZkLotteryError):
    """암호화된 볼트 파일을 주어진 키로 복호화할 수 없다."""
