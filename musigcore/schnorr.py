#!/usr/bin/env python3

import hmac
import secrets

from .musig import CombinedPubkey
from .transcript import challenge_hash
from .utils import *

AUX_TAG = 'Schnorr/aux'
NONCE_TAG = 'Schnorr/nonce'


def _is_bytes(*values):
    return all(isinstance(value, (bytes, bytearray)) for value in values)

def _encode(P):
    return b'' if is_infinity(P) else bytes_from_point(P)

def _parse_signature(sig):
    R = point_from_bytes(sig[:POINT_SIZE])
    s = int_from_bytes(sig[POINT_SIZE:])
    if R is None or is_scalar_overflow(s):
        return None
    return R, s


def schnorr_sign(msg, seckey, aux_rand=None):
    """Sign a message with a single secret key. The signature has the same format as a MuSig signature."""

    if not _is_bytes(msg):
        raise ValueError('The message must be a byte array.')
    if len(seckey) != SCALAR_SIZE:
        raise ValueError('The secret key must be a 32-byte array.')
    if aux_rand is None:
        aux_rand = secrets.token_bytes(32)
    elif len(aux_rand) != 32:
        raise ValueError('aux_rand must be 32 bytes.')
    x = int_from_bytes(seckey)
    if is_secret_overflow(x):
        raise ScalarOverflowError('The secret key must be an integer in the range 1..n-1.')
    pubkey = bytes_from_point(point_mul(curve.G, x))
    t = bytes(a ^ b for (a, b) in zip(seckey, tagged_hash(AUX_TAG, aux_rand)))
    k = int_from_bytes(tagged_hash(NONCE_TAG, t + pubkey + msg)) % curve.n
    if k == 0:
        raise RuntimeError('Failure. This happens only with negligible probability.')
    R = bytes_from_point(point_mul(curve.G, k))
    e = challenge_hash(R, pubkey, bytes(msg))
    return R + bytes_from_int((k + e * x) % curve.n)


def schnorr_verify(msg, pubkey, sig):
    """
    Verify a signature (R, s) of msg under the (aggregated) public key X: s*G == R + e*X.

    Never raises: malformed input is reported as an invalid signature.
    """

    if not _is_bytes(msg, pubkey, sig):
        return False
    if len(pubkey) != POINT_SIZE or len(sig) != SIGNATURE_SIZE:
        return False
    P = point_from_bytes(pubkey)
    parsed = _parse_signature(sig)
    if P is None or parsed is None:
        return False
    R, s = parsed
    e = challenge_hash(bytes(sig[:POINT_SIZE]), bytes(pubkey), bytes(msg))
    lhs = point_mul(curve.G, s)
    rhs = point_add(R, point_mul(P, e))
    return hmac.compare_digest(_encode(lhs), _encode(rhs))


def musig_verify(msg, pubkeys, sig):
    """Verify a signature against the ordered list of signer public keys."""

    if not isinstance(pubkeys, (list, tuple)) or not _is_bytes(*pubkeys):
        return False
    try:
        combined_pk = CombinedPubkey(pubkeys)
    except (TypeError, ValueError):
        return False
    return schnorr_verify(msg, combined_pk.get_pubkey(), sig)


def schnorr_batch_verify(msgs, pubkeys, sigs):
    """Verify an array of signatures with an array of messages and public keys at once."""

    sig_num = len(msgs)
    if (sig_num != len(pubkeys) or sig_num != len(sigs)):
        raise ValueError('The count of Values must be equally.')
    if not all(_is_bytes(msg, pubkey, sig) for msg, pubkey, sig in zip(msgs, pubkeys, sigs)):
        return False
    s_sum = 0
    RP = None
    seed = hash_sha256(b''.join(sigs) + b''.join(msgs) + b''.join(pubkeys))
    rand_coefficient = [1]

    for i in range(sig_num):
        pubkey = pubkeys[i]
        msg = msgs[i]
        sig = sigs[i]
        if (i % 2 == 1):
            rand_coefficient = chacha20_prng(seed, i // 2)

        if len(pubkey) != POINT_SIZE or len(sig) != SIGNATURE_SIZE:
            return False
        P = point_from_bytes(pubkey)
        parsed = _parse_signature(sig)
        if P is None or parsed is None:
            return False
        R, s = parsed
        e = challenge_hash(bytes(sig[:POINT_SIZE]), bytes(pubkey), bytes(msg))

        a = rand_coefficient[i % 2]
        s_sum = (s_sum + (a * s)) % curve.n
        eP = point_mul(P, (a * e) % curve.n)
        aR = point_mul(R, a)
        RP = point_add(point_add(aR, eP), RP)
    return point_mul(curve.G, s_sum) == RP
