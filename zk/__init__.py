"""
Zero-Knowledge Proof Module for Paillier Ciphertexts
Non-interactive set membership proofs (disjunctive sigma protocol)
"""

from .zk_proofs import (
    # Protocol operations
    prove,
    verify,
    derive_challenge,

    # Core classes
    Commitment,
    MembershipProof,
    MembershipProofSystem,

    # Exceptions
    ZKError,
    InvalidPlaintextError,
    InvalidCandidateSetError,
    CommitmentParseError,
)

__version__ = "1.0.0"

__all__ = [
    # Operations
    'prove',
    'verify',
    'derive_challenge',

    # Classes
    'Commitment',
    'MembershipProof',
    'MembershipProofSystem',

    # Exceptions
    'ZKError',
    'InvalidPlaintextError',
    'InvalidCandidateSetError',
    'CommitmentParseError',
]
