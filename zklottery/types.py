"""
복권 커밋먼트 데이터 모델
==========================

**BetSecrets**: 베팅마다 새로 뽑는 세 개의 독립 필드 원소 (secret, nullifier, salt).
  평문으로 전송되지 않으며, repr에도 값이 드러나지 않는다.

**TicketRange**: 반열림 구간 [start, end). 아이템에 먼저 걸린 토큰 총량이 start.

**StoredBet**: 베터의 로컬 볼트에만 저장되는 베팅 기록.
  체인에는 commitment와 nullifier_hash만 올라간다.

  | 필드               | 의미                                        |
  |--------------------|---------------------------------------------|
  | commitment         | H5(secret, nullifier, itemId, amount, salt)  |
  | nullifier_hash     | H2(nullifier, lotteryId)                     |
  | ticket_range       | [start, start + amount)                      |
  | merkle_index       | 포함 확인 전 -1, 이후 고정된 리프 인덱스     |
  | merkle_path        | 형제 노드 (포함 확인 후 불변)                |
  | merkle_path_indices| 0 = 왼쪽, 1 = 오른쪽                          |
  | created_at         | epoch 밀리초                                  |

**ProofArtifact**: 정확히 8개의 원소 (A 2개, B 4개, C 2개).

**BetPublics / ClaimPublics**: 증명 백엔드에 넘기는 진술(statement).
"""

from zklottery.field import FR, FIELD_MODULUS, to_field
from zklottery.errors import InvalidProofArtifactError


class BetSecrets:
    """베팅 비밀값 세트."""

    def __init__(self, secret, nullifier, salt):
        self.secret = to_field(secret)
        self.nullifier = to_field(nullifier)
        self.salt = to_field(salt)

    def __eq__(self, other):
        if not isinstance(other, BetSecrets):
            return NotImplemented
        return (
            self.secret == other.secret
            and self.nullifier == other.nullifier
            and self.salt == other.salt
        )

    def __repr__(self):
        return "BetSecrets(<hidden>)"


class TicketRange:
    """반열림 티켓 구간 [start, end)."""

    def __init__(self, start, end):
        if not isinstance(start, int) or not isinstance(end, int):
            raise TypeError("티켓 범위는 정수여야 합니다")
        if start < 0 or end < start:
            raise ValueError(f"잘못된 티켓 범위: [{start}, {end})")
        self.start = start
        self.end = end

    @classmethod
    def after(cls, total_before, token_amount):
        """앞선 토큰 총량 뒤에 이어지는 구간."""
        return cls(total_before, total_before + token_amount)

    @property
    def size(self):
        return self.end - self.start

    def contains(self, position):
        return self.start <= position < self.end

    def __eq__(self, other):
        if not isinstance(other, TicketRange):
            return NotImplemented
        return self.start == other.start and self.end == other.end

    def __repr__(self):
        return f"TicketRange[{self.start}, {self.end})"


class StoredBet:
    """로컬 볼트의 베팅 기록."""

    def __init__(self, lottery_id, item_id, token_amount, commitment, nullifier_hash,
                 secrets, ticket_range, created_at, merkle_index=-1,
                 merkle_path=None, merkle_path_indices=None):
        self.lottery_id = lottery_id
        self.item_id = item_id
        self.token_amount = token_amount
        self.commitment = to_field(commitment)
        self.nullifier_hash = to_field(nullifier_hash)
        self.secrets = secrets
        self.ticket_range = ticket_range
        self.created_at = created_at
        self.merkle_index = merkle_index
        self.merkle_path = (
            [to_field(x) for x in merkle_path] if merkle_path is not None else None
        )
        self.merkle_path_indices = (
            list(merkle_path_indices) if merkle_path_indices is not None else None
        )

    @property
    def is_included(self):
        """온체인 커밋먼트 트리 포함이 확인되었는지."""
        return self.merkle_index != -1

    def _key(self):
        return (
            self.lottery_id, self.item_id, self.token_amount,
            self.commitment, self.nullifier_hash, self.secrets,
            self.ticket_range, self.created_at, self.merkle_index,
            self.merkle_path, self.merkle_path_indices,
        )

    def __eq__(self, other):
        if not isinstance(other, StoredBet):
            return NotImplemented
        return self._key() == other._key()

    def __repr__(self):
        return (
            f"StoredBet(lottery={self.lottery_id}, item={self.item_id}, "
            f"amount={self.token_amount}, range={self.ticket_range!r}, "
            f"merkle_index={self.merkle_index})"
        )


class MerkleProof:
    """리프에서 루트까지의 형제 노드와 좌/우 표시."""

    def __init__(self, path_elements, path_indices, root):
        self.path_elements = [to_field(x) for x in path_elements]
        self.path_indices = list(path_indices)
        self.root = to_field(root)

    @property
    def depth(self):
        return len(self.path_elements)

    def __eq__(self, other):
        if not isinstance(other, MerkleProof):
            return NotImplemented
        return (
            self.path_elements == other.path_elements
            and self.path_indices == other.path_indices
            and self.root == other.root
        )


class ProofArtifact:
    """8원소 증명: [a0, a1, b00, b01, b10, b11, c0, c1].

    각 원소는 기저 필드 q 미만의 정수이다.

    Raises:
        InvalidProofArtifactError: 길이 또는 범위가 맞지 않을 때
    """

    SIZE = 8

    def __init__(self, elements):
        values = list(elements)
        if len(values) != self.SIZE:
            raise InvalidProofArtifactError(
                f"증명 아티팩트는 {self.SIZE}개 원소여야 합니다: {len(values)}개"
            )
        for v in values:
            if isinstance(v, bool) or not isinstance(v, int):
                raise InvalidProofArtifactError(f"정수가 아닌 원소: {v!r}")
            if v < 0 or v >= FIELD_MODULUS:
                raise InvalidProofArtifactError(f"기저 필드 범위를 벗어난 원소: {v}")
        self.elements = values

    @property
    def a(self):
        return self.elements[0:2]

    @property
    def b(self):
        return [self.elements[2:4], self.elements[4:6]]

    @property
    def c(self):
        return self.elements[6:8]

    def __iter__(self):
        return iter(self.elements)

    def __len__(self):
        return self.SIZE

    def __eq__(self, other):
        if not isinstance(other, ProofArtifact):
            return NotImplemented
        return self.elements == other.elements

    def __repr__(self):
        return f"ProofArtifact({', '.join(hex(v)[:10] for v in self.elements)})"


class BetPublics:
    """베팅 커밋먼트 증명의 공개 진술."""

    def __init__(self, commitment, nullifier_hash, lottery_id, item_id, token_amount):
        self.commitment = to_field(commitment)
        self.nullifier_hash = to_field(nullifier_hash)
        self.lottery_id = lottery_id
        self.item_id = item_id
        self.token_amount = token_amount

    def signals(self):
        """[commitment, nullifierHash, lotteryId, itemId, tokenAmount]"""
        return [
            self.commitment,
            self.nullifier_hash,
            FR(self.lottery_id),
            FR(self.item_id),
            FR(self.token_amount),
        ]


class ClaimPublics:
    """당첨 클레임 증명의 진술.

    token_amount는 커밋먼트 원상(preimage)의 일부이므로 증명 내부에서만 쓰이고
    signals()에는 포함되지 않는다.
    """

    def __init__(self, merkle_root, claim_nullifier_hash, lottery_id, item_id,
                 winning_position, ticket_start, recipient, token_amount):
        self.merkle_root = to_field(merkle_root)
        self.claim_nullifier_hash = to_field(claim_nullifier_hash)
        self.lottery_id = lottery_id
        self.item_id = item_id
        self.winning_position = winning_position
        self.ticket_start = ticket_start
        self.recipient = to_field(recipient)
        self.token_amount = token_amount

    def signals(self):
        """[merkleRoot, claimNullifierHash, lotteryId, itemId,
        winningPosition, ticketStart, recipient]"""
        return [
            self.merkle_root,
            self.claim_nullifier_hash,
            FR(self.lottery_id),
            FR(self.item_id),
            FR(self.winning_position),
            FR(self.ticket_start),
            self.recipient,
        ]


class BetBuildResult:
    """build_bet의 결과. 호출자가 commitment, nullifier_hash, proof를 체인에 제출한다."""

    def __init__(self, proof, commitment, nullifier_hash, secrets, ticket_range):
        self.proof = proof
        self.commitment = commitment
        self.nullifier_hash = nullifier_hash
        self.secrets = secrets
        self.ticket_range = ticket_range


class WinnerClaimResult:
    def __init__(self, proof, claim_nullifier_hash):
        self.proof = proof
        self.claim_nullifier_hash = claim_nullifier_hash
