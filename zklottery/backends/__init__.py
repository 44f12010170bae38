from zklottery.backends.base import ProofBackend
from zklottery.backends.stub import StubProofBackend

__all__ = ["ProofBackend", "StubProofBackend"]
