#!/usr/bin/env python3
"""
Hashes binding the protocol transcript.

H_tag(tag, data) = SHA256(SHA256(tag) + SHA256(tag) + data)
"""

from .errors import InvalidKey
from .utils import POINT_SIZE, SCALAR_SIZE, curve, int_from_bytes, tagged_hash

KEYAGG_LIST_TAG = 'KeyAgg list'
KEYAGG_COEFFICIENT_TAG = 'KeyAgg coefficient'
COMMITMENT_TAG = 'MuSig/commitment'
CHALLENGE_TAG = 'MuSig/challenge'
NONCE_TAG = 'MuSig/nonce'


def hash_keys(pubkeys) -> bytes:
    """Computes ell = H_tag(pk[0], ..., pk[np-1])"""

    p = b''
    for i, pubkey in enumerate(pubkeys):
        if len(pubkey) != POINT_SIZE:
            raise InvalidKey('The pubkeys must be a 33-byte array.', index=i)
        p += pubkey
    return tagged_hash(KEYAGG_LIST_TAG, p)


def key_agg_coefficient(ell, pubkey) -> int:
    """Compute a = H_tag(ell + pk)."""

    return int_from_bytes(tagged_hash(KEYAGG_COEFFICIENT_TAG, ell + pubkey)) % curve.n


def nonce_commitment_hash(nonce) -> bytes:
    """Compute the precommitment t = H_tag(R)."""

    return tagged_hash(COMMITMENT_TAG, nonce)


def challenge_hash(agg_nonce, agg_pubkey, msg) -> int:
    """Compute the Fiat-Shamir challenge e = H_tag(R + X + m)."""

    return int_from_bytes(tagged_hash(CHALLENGE_TAG, agg_nonce + agg_pubkey + msg)) % curve.n


def nonce_function(rand, agg_pubkey, position, extra_input=None) -> int:
    """Derive the secret nonce from fresh randomness, the session's aggregated key and
    the signer's position. The result is 0 only with negligible probability."""

    if len(rand) != SCALAR_SIZE:
        raise ValueError('The nonce randomness must be a 32-byte array.')
    data = rand + agg_pubkey + position.to_bytes(4, byteorder='big')
    if extra_input is not None:
        if len(extra_input) != SCALAR_SIZE:
            raise ValueError('The extra input must be a 32-byte array.')
        data += (32).to_bytes(1, 'big') + extra_input
    else:
        data += (0).to_bytes(1, 'big')
    return int_from_bytes(tagged_hash(NONCE_TAG, data)) % curve.n
