"""
Paillier Cryptosystem Module
============================
Key generation, randomized encryption and decryption over Z_{n^2}, plus the
modular arithmetic and coprime sampling used by the membership proofs.
"""

import logging
import math
import secrets
from dataclasses import dataclass, field
from typing import Optional, Tuple

from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.backends import default_backend

logger = logging.getLogger(__name__)

# ============================================================================
# CONSTANTS
# ============================================================================

MIN_KEY_SIZE = 1024
DEFAULT_KEY_SIZE = 2048
RSA_PUBLIC_EXPONENT = 65537

# ============================================================================
# EXCEPTIONS
# ============================================================================


class PaillierError(Exception):
    """Base exception for Paillier operations"""
    pass


class ModularInverseError(ArithmeticError):
    """Raised when a value has no inverse modulo the given modulus"""
    pass


# ============================================================================
# MODULAR ARITHMETIC
# ============================================================================


class ModularArithmetic:
    """Big-integer arithmetic modulo an arbitrary modulus"""

    @staticmethod
    def mod_exp(base: int, exponent: int, modulus: int) -> int:
        return pow(base, exponent, modulus)

    @staticmethod
    def mod_mul(a: int, b: int, modulus: int) -> int:
        return (a * b) % modulus

    @staticmethod
    def mod_inverse(value: int, modulus: int) -> int:
        """Inverse of value modulo modulus via the extended Euclidean algorithm"""
        if modulus <= 0:
            raise ModularInverseError(f"Invalid modulus: {modulus}")

        old_r, r = value % modulus, modulus
        old_s, s = 1, 0
        while r != 0:
            quotient = old_r // r
            old_r, r = r, old_r - quotient * r
            old_s, s = s, old_s - quotient * s

        if old_r != 1:
            raise ModularInverseError(
                f"Value is not invertible modulo {modulus} (gcd={old_r})")

        return old_s % modulus


# ============================================================================
# KEYS
# ============================================================================


@dataclass(frozen=True)
class PaillierPublicKey:
    """Paillier public key (n, g) with n^2 cached; g defaults to n + 1"""
    n: int
    g: Optional[int] = None
    n_sq: int = field(init=False, repr=False)

    def __post_init__(self):
        if self.n <= 1:
            raise PaillierError(f"Invalid modulus: {self.n}")
        if self.g is None:
            object.__setattr__(self, 'g', self.n + 1)
        object.__setattr__(self, 'n_sq', self.n * self.n)

    @property
    def bit_length(self) -> int:
        return self.n.bit_length()


@dataclass(frozen=True)
class PaillierPrivateKey:
    """Paillier private key (lambda, mu) bound to its public key"""
    lmbda: int
    mu: int
    public_key: PaillierPublicKey = field(repr=False)


def _l_function(x: int, n: int) -> int:
    return (x - 1) // n


def keypair_from_primes(p: int, q: int) -> Tuple[PaillierPublicKey, PaillierPrivateKey]:
    """Build a key pair from two distinct primes of equal length"""
    if p == q:
        raise PaillierError("Primes must be distinct")

    n = p * q
    if math.gcd(n, (p - 1) * (q - 1)) != 1:
        raise PaillierError("gcd(n, phi(n)) != 1 for the supplied primes")

    public_key = PaillierPublicKey(n)
    lmbda = (p - 1) * (q - 1) // math.gcd(p - 1, q - 1)

    x = ModularArithmetic.mod_exp(public_key.g, lmbda, public_key.n_sq)
    mu = ModularArithmetic.mod_inverse(_l_function(x, n), n)

    return public_key, PaillierPrivateKey(lmbda, mu, public_key)


def generate_keypair(key_size: int = DEFAULT_KEY_SIZE) -> Tuple[PaillierPublicKey, PaillierPrivateKey]:
    """Generate a Paillier key pair whose modulus has key_size bits"""
    if key_size < MIN_KEY_SIZE:
        raise PaillierError(
            f"Key size {key_size} below minimum of {MIN_KEY_SIZE} bits")

    while True:
        # RSA key generation yields two random primes of key_size/2 bits each
        rsa_key = rsa.generate_private_key(
            public_exponent=RSA_PUBLIC_EXPONENT,
            key_size=key_size,
            backend=default_backend()
        )
        numbers = rsa_key.private_numbers()
        if numbers.p != numbers.q:
            break

    public_key, private_key = keypair_from_primes(numbers.p, numbers.q)
    logger.info(f"Generated {public_key.bit_length}-bit Paillier key pair")

    return public_key, private_key


# ============================================================================
# RANDOMNESS
# ============================================================================


def generate_coprime(bit_length: int, modulus: int) -> int:
    """Draw a value in (0, modulus) coprime to modulus from the OS CSPRNG"""
    if bit_length <= 0:
        raise PaillierError(f"Invalid bit length: {bit_length}")
    if modulus <= 2:
        raise PaillierError(f"Invalid modulus: {modulus}")

    while True:
        candidate = secrets.randbits(bit_length)
        if 0 < candidate < modulus and math.gcd(candidate, modulus) == 1:
            return candidate


# ============================================================================
# ENCRYPTION
# ============================================================================


def r_encrypt(public_key: PaillierPublicKey, plaintext: int) -> Tuple[int, int]:
    """Encrypt plaintext, returning (randomness, ciphertext)

    ciphertext = g^m * r^n mod n^2
    """
    r = generate_coprime(public_key.bit_length, public_key.n)

    g_m = ModularArithmetic.mod_exp(public_key.g, plaintext, public_key.n_sq)
    r_n = ModularArithmetic.mod_exp(r, public_key.n, public_key.n_sq)
    ciphertext = ModularArithmetic.mod_mul(g_m, r_n, public_key.n_sq)

    return r, ciphertext


def encrypt(public_key: PaillierPublicKey, plaintext: int) -> int:
    _, ciphertext = r_encrypt(public_key, plaintext)
    return ciphertext


def decrypt(private_key: PaillierPrivateKey, ciphertext: int) -> int:
    """Recover the plaintext in [0, n)"""
    public_key = private_key.public_key
    if not 0 < ciphertext < public_key.n_sq:
        raise PaillierError("Ciphertext outside Z_{n^2}")

    x = ModularArithmetic.mod_exp(ciphertext, private_key.lmbda, public_key.n_sq)
    return ModularArithmetic.mod_mul(
        _l_function(x, public_key.n), private_key.mu, public_key.n)
