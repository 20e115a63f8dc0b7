"""
Zero-Knowledge Set Membership Proofs for Paillier Ciphertexts
=============================================================
Non-interactive (Fiat-Shamir) disjunctive sigma protocol proving that a
Paillier ciphertext encrypts one of a public, ordered list of candidate
messages without revealing which one.

For every candidate m_k the prover publishes (a_k, e_k, z_k) such that

    z_k^n = a_k * u_k^e_k  (mod n^2),   u_k = c * g^(-m_k)  (mod n^2)

and the challenges sum to H(a_0 || ... || a_{N-1}) modulo 2^challenge_bits.
Exactly one branch is answered honestly; the others are simulated by
picking (e_k, z_k) first and solving for a_k.
"""

import hashlib
import logging
import math
import re
import secrets
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import List, Dict, Tuple, Optional, Any, Sequence

from config.config import ZKPConfig
from paillier.paillier_crypto import (
    PaillierPublicKey,
    ModularArithmetic,
    generate_coprime,
    r_encrypt,
)
from utils.utils import PerformanceMonitor

logger = logging.getLogger(__name__)

# Wire format: "<a1>,...,<aN>,;<e1>,...,<eN>,;<z1>,...,<zN>,;"
ELEMENT_DELIMITER = ","
GROUP_DELIMITER = ";"
_DECIMAL_TOKEN = re.compile(r"[0-9]+")

# ============================================================================
# EXCEPTIONS
# ============================================================================


class ZKError(Exception):
    """Base exception for ZK operations"""
    pass


class InvalidPlaintextError(ZKError, ValueError):
    """Plaintext does not appear in the candidate set"""
    pass


class InvalidCandidateSetError(ZKError, ValueError):
    """Candidate set rejected by the configured policy"""
    pass


class CommitmentParseError(ZKError, ValueError):
    """Serialized commitment or proof bundle is malformed"""
    pass


# ============================================================================
# COMMITMENT
# ============================================================================


@dataclass(frozen=True)
class Commitment:
    """Proof transcript: first messages a, challenges e and responses z.

    The three sequences are index-aligned with the candidate set the proof
    was built for. Equality is structural and order-sensitive.
    """
    a: Tuple[int, ...]
    e: Tuple[int, ...]
    z: Tuple[int, ...]

    def __post_init__(self):
        for name in ('a', 'e', 'z'):
            object.__setattr__(self, name, tuple(getattr(self, name)))

    def serialize(self) -> str:
        return "".join(
            "".join(f"{value}{ELEMENT_DELIMITER}" for value in group) + GROUP_DELIMITER
            for group in (self.a, self.e, self.z)
        )

    to_string = serialize

    def __str__(self) -> str:
        return self.serialize()

    @classmethod
    def deserialize(cls, text: str) -> 'Commitment':
        """Parse the canonical text form.

        The final group delimiter is optional so transcripts written without
        it are still accepted.
        """
        if not isinstance(text, str):
            raise CommitmentParseError(
                f"Expected str, got {type(text).__name__}")

        groups = text.split(GROUP_DELIMITER)
        if len(groups) == 4 and groups[-1] == "":
            groups.pop()
        if len(groups) != 3:
            raise CommitmentParseError(
                f"Expected 3 groups separated by '{GROUP_DELIMITER}', found {len(groups)}")

        a, e, z = (cls._parse_group(group, name)
                   for group, name in zip(groups, ('a', 'e', 'z')))

        if not len(a) == len(e) == len(z):
            raise CommitmentParseError(
                f"Group lengths differ: a={len(a)}, e={len(e)}, z={len(z)}")

        return cls(a, e, z)

    from_string = deserialize

    @staticmethod
    def _parse_group(group: str, name: str) -> Tuple[int, ...]:
        if group == "":
            return ()

        tokens = group.split(ELEMENT_DELIMITER)
        if tokens[-1] == "":
            tokens.pop()

        values = []
        for index, token in enumerate(tokens):
            if not _DECIMAL_TOKEN.fullmatch(token):
                raise CommitmentParseError(
                    f"Invalid token at {name}[{index}]: {token[:32]!r}")
            try:
                values.append(int(token))
            except ValueError as e:
                raise CommitmentParseError(
                    f"Token at {name}[{index}] is too long: {e}") from e

        return tuple(values)


@dataclass
class MembershipProof:
    """Ciphertext plus the commitment that travels with it"""
    ciphertext: int
    commitment: Commitment
    generation_time: float = 0.0
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'ciphertext': str(self.ciphertext),
            'commitment': self.commitment.serialize(),
            'generation_time': self.generation_time,
            'timestamp': self.timestamp
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MembershipProof':
        try:
            ciphertext_text = data['ciphertext']
            commitment_text = data['commitment']
        except (KeyError, TypeError) as e:
            raise CommitmentParseError(f"Malformed proof bundle: {e}") from e

        if not isinstance(ciphertext_text, str) or not _DECIMAL_TOKEN.fullmatch(ciphertext_text):
            raise CommitmentParseError("Malformed proof bundle: invalid ciphertext")

        try:
            ciphertext = int(ciphertext_text)
            generation_time = float(data.get('generation_time', 0.0))
            timestamp = float(data.get('timestamp', time.time()))
        except (ValueError, TypeError) as e:
            raise CommitmentParseError(f"Malformed proof bundle: {e}") from e

        return cls(
            ciphertext=ciphertext,
            commitment=Commitment.deserialize(commitment_text),
            generation_time=generation_time,
            timestamp=timestamp
        )


# ============================================================================
# SHARED PROTOCOL STEPS
# ============================================================================


def derive_challenge(first_messages: Sequence[int], challenge_bits: int,
                     hash_algorithm: str = "sha256") -> int:
    """Fiat-Shamir challenge over the decimal text of each first message"""
    digest = hashlib.new(hash_algorithm)
    for a_k in first_messages:
        digest.update(str(a_k).encode('ascii'))

    return int.from_bytes(digest.digest(), 'big') % (1 << challenge_bits)


def _quotient(public_key: PaillierPublicKey, ciphertext: int, message: int) -> int:
    # u_k = c / g^m_k (mod n^2)
    g_mk = ModularArithmetic.mod_exp(public_key.g, message, public_key.n_sq)
    return ModularArithmetic.mod_mul(
        ciphertext,
        ModularArithmetic.mod_inverse(g_mk, public_key.n_sq),
        public_key.n_sq
    )


def _sample_unit(public_key: PaillierPublicKey) -> int:
    """Random value in (0, n) coprime to n"""
    while True:
        value = generate_coprime(public_key.bit_length, public_key.n)
        if 0 < value < public_key.n:
            return value


def _has_duplicates(candidates: Sequence[int]) -> bool:
    return len(set(candidates)) != len(candidates)


def _find_real_index(plaintext: int, candidates: Sequence[int], config: ZKPConfig) -> int:
    if not config.allow_duplicate_candidates and _has_duplicates(candidates):
        raise InvalidCandidateSetError(
            "Candidate set contains duplicate messages")

    real_index = None
    for k, m_k in enumerate(candidates):
        if m_k == plaintext:
            if real_index is not None:
                logger.warning(
                    "Plaintext occurs more than once in the candidate set; "
                    "the last occurrence is used")
            real_index = k

    if real_index is None:
        raise InvalidPlaintextError(
            "Input message does not exist in the set of valid messages")

    return real_index


# ============================================================================
# PROVER
# ============================================================================


def prove(public_key: PaillierPublicKey, plaintext: int, candidates: Sequence[int],
          config: Optional[ZKPConfig] = None) -> Tuple[int, Commitment]:
    """Encrypt plaintext and prove the ciphertext encrypts a member of candidates.

    Returns (ciphertext, commitment). The order of candidates must match the
    order the verifier uses.
    """
    config = config or ZKPConfig()
    candidates = list(candidates)
    real_index = _find_real_index(plaintext, candidates, config)

    n, n_sq = public_key.n, public_key.n_sq
    challenge_modulus = config.challenge_modulus
    size = len(candidates)

    r, ciphertext = r_encrypt(public_key, plaintext)
    omega = _sample_unit(public_key)

    a = [0] * size
    e = [0] * size
    z = [0] * size

    for k, m_k in enumerate(candidates):
        if k == real_index:
            # honest first message; e and z are fixed once the challenge is known
            a[k] = ModularArithmetic.mod_exp(omega, n, n_sq)
            continue

        u_k = _quotient(public_key, ciphertext, m_k)
        z_k = _sample_unit(public_key)
        e_k = secrets.randbelow(challenge_modulus)

        # a_k = z_k^n / u_k^e_k (mod n^2)
        z_nth = ModularArithmetic.mod_exp(z_k, n, n_sq)
        u_eth = ModularArithmetic.mod_exp(u_k, e_k, n_sq)
        a[k] = ModularArithmetic.mod_mul(
            z_nth, ModularArithmetic.mod_inverse(u_eth, n_sq), n_sq)
        e[k] = e_k
        z[k] = z_k

    challenge = derive_challenge(a, config.challenge_bits, config.hash_algorithm)

    simulated_sum = sum(e_k for k, e_k in enumerate(e) if k != real_index)
    e_real = (challenge - simulated_sum) % challenge_modulus

    # z_p = omega * r^e_p (mod n)
    e[real_index] = e_real
    z[real_index] = ModularArithmetic.mod_mul(
        omega, ModularArithmetic.mod_exp(r, e_real, n), n)

    logger.debug(f"Built membership proof over {size} candidates")

    return ciphertext, Commitment(a, e, z)


# ============================================================================
# VERIFIER
# ============================================================================


def _is_unit(value: int, upper: int, n: int) -> bool:
    return 0 < value < upper and math.gcd(value, n) == 1


def _in_range(commitment: Commitment, public_key: PaillierPublicKey, challenge_modulus: int) -> bool:
    # a_k must be a unit mod n^2 and z_k a unit in (0, n), otherwise
    # z^n = a * u^e collapses to 0 = 0 or holds for z + j*n
    n, n_sq = public_key.n, public_key.n_sq
    return (
        all(_is_unit(a_k, n_sq, n) for a_k in commitment.a)
        and all(0 <= e_k < challenge_modulus for e_k in commitment.e)
        and all(_is_unit(z_k, n, n) for z_k in commitment.z)
    )


def verify(public_key: PaillierPublicKey, ciphertext: int, candidates: Sequence[int],
           commitment: Commitment, config: Optional[ZKPConfig] = None) -> bool:
    """Check that ciphertext encrypts one of candidates.

    Returns False for any proof that does not satisfy the protocol; only
    arithmetic failures raise.
    """
    config = config or ZKPConfig()
    candidates = list(candidates)
    size = len(candidates)

    if not len(commitment.a) == len(commitment.e) == len(commitment.z) == size:
        logger.info(
            f"Rejected proof: commitment length does not match {size} candidates")
        return False

    if not config.allow_duplicate_candidates and _has_duplicates(candidates):
        logger.info("Rejected proof: candidate set contains duplicates")
        return False

    if not _is_unit(ciphertext, public_key.n_sq, public_key.n):
        logger.info("Rejected proof: ciphertext is not a unit of Z_{n^2}")
        return False

    if not _in_range(commitment, public_key, config.challenge_modulus):
        logger.info("Rejected proof: commitment value out of range")
        return False

    n, n_sq = public_key.n, public_key.n_sq
    u = [_quotient(public_key, ciphertext, m_k) for m_k in candidates]

    challenge = derive_challenge(
        commitment.a, config.challenge_bits, config.hash_algorithm)
    if sum(commitment.e) % config.challenge_modulus != challenge:
        logger.info("Rejected proof: challenges do not sum to the derived challenge")
        return False

    for k in range(size):
        # z_k^n ?= a_k * u_k^e_k (mod n^2)
        lhs = ModularArithmetic.mod_exp(commitment.z[k], n, n_sq)
        rhs = ModularArithmetic.mod_mul(
            commitment.a[k],
            ModularArithmetic.mod_exp(u[k], commitment.e[k], n_sq),
            n_sq
        )
        if lhs != rhs:
            logger.info(f"Rejected proof: verification equation fails at index {k}")
            return False

    return True


# ============================================================================
# PROOF SYSTEM
# ============================================================================


class MembershipProofSystem:
    """Prover and verifier bound to one configuration, with timing"""

    def __init__(self, config: Optional[ZKPConfig] = None,
                 monitor: Optional[PerformanceMonitor] = None):
        self.config = config or ZKPConfig()
        self.monitor = monitor or PerformanceMonitor()

    def prove(self, public_key: PaillierPublicKey, plaintext: int,
              candidates: Sequence[int]) -> MembershipProof:
        start_time = time.perf_counter()
        with self.monitor.start_operation("prove"):
            ciphertext, commitment = prove(
                public_key, plaintext, candidates, self.config)
        generation_time = time.perf_counter() - start_time

        logger.debug(f"Generated membership proof in {generation_time:.3f}s")

        return MembershipProof(ciphertext, commitment, generation_time)

    def verify(self, public_key: PaillierPublicKey, proof: MembershipProof,
               candidates: Sequence[int]) -> bool:
        with self.monitor.start_operation("verify"):
            return verify(public_key, proof.ciphertext, candidates,
                          proof.commitment, self.config)

    def verify_batch(self, public_key: PaillierPublicKey, proofs: List[MembershipProof],
                     candidates: Sequence[int]) -> List[bool]:
        """Verify independent proofs in parallel; results keep input order"""
        if not proofs:
            return []

        candidates = list(candidates)
        workers = min(self.config.verify_workers, len(proofs))

        def verify_one(proof: MembershipProof) -> bool:
            return verify(public_key, proof.ciphertext, candidates,
                          proof.commitment, self.config)

        with self.monitor.start_operation("verify_batch"):
            with ThreadPoolExecutor(max_workers=workers) as executor:
                results = list(executor.map(verify_one, proofs))

        logger.info(
            f"Verified batch of {len(proofs)} proofs: {sum(results)} valid")

        return results
