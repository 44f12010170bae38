"""
Groth16 참조 백엔드
====================

  r1cs       LinearCombination, ConstraintSystem
  gadgets    해시 / Merkle / 범위 검사 가젯
  circuits   베팅 커밋먼트, 당첨 클레임 회로
  setup      trusted setup → ProvingKey, VerifyingKey
  proving    증명 생성
  verifying  페어링 검증
  backend    Groth16ProofBackend
"""
