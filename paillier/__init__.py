"""Paillier public-key encryption used by the membership proofs."""

from .paillier_crypto import (
    # Keys
    PaillierPublicKey,
    PaillierPrivateKey,
    generate_keypair,
    keypair_from_primes,

    # Operations
    ModularArithmetic,
    generate_coprime,
    r_encrypt,
    encrypt,
    decrypt,

    # Exceptions
    PaillierError,
    ModularInverseError,
)

__all__ = [
    'PaillierPublicKey',
    'PaillierPrivateKey',
    'generate_keypair',
    'keypair_from_primes',
    'ModularArithmetic',
    'generate_coprime',
    'r_encrypt',
    'encrypt',
    'decrypt',
    'PaillierError',
    'ModularInverseError',
]
