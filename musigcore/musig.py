#!/usr/bin/env python3

import enum
import functools
import hmac
import logging
import secrets

from .errors import (CommitmentMismatch, InvalidKey, InvalidPartialSignature, InvalidSessionState,
                     ParticipantCountMismatch, SessionAlreadyComplete)
from .transcript import challenge_hash, hash_keys, key_agg_coefficient, nonce_commitment_hash, nonce_function
from .utils import *

logger = logging.getLogger(__name__)


@functools.lru_cache(maxsize=256)
def _aggregate_pubkeys(pubkeys):
    """Compute X = (a[0]*X[0]) + (a[1]*X[1]) + ... + (a[n]*X[n]) for a tuple of encoded keys."""

    if len(pubkeys) == 0:
        raise ParticipantCountMismatch('At least one public key is required.', round_name='key aggregation')
    points = []
    for i, pubkey in enumerate(pubkeys):
        P_i = point_from_bytes(pubkey)
        if P_i is None:
            raise InvalidKey('Received an invalid public key.', index=i, round_name='key aggregation')
        points.append(P_i)
    ell = hash_keys(pubkeys)
    if len(points) == 1:
        # a single signer keeps its own key
        coefficients = (1,)
    else:
        coefficients = tuple(key_agg_coefficient(ell, pubkey) for pubkey in pubkeys)
    P = None
    for P_i, a_i in zip(points, coefficients):
        P = point_add(P, point_mul(P_i, a_i))
    if is_infinity(P):
        raise InvalidKey('The combined public key is the point at infinity.', round_name='key aggregation')
    logger.debug('Aggregated %d public keys', len(pubkeys))
    return P, tuple(points), coefficients, ell


class CombinedPubkey:
    """
    This class represents a combined public key for all participating signers.

    In order to create a combined public key all separate public keys needs provided in advance.
    Compute X = (a[0]*X[0]) + (a[1]*X[1]) + ... + (a[n]*X[n])
    !!!The order/index of the public keys needs to be the same as in the MuSig session.!!!
    """

    def __init__(self, pubkeys):
        self.__pubkeys = tuple(bytes(pubkey) for pubkey in pubkeys)
        P, points, coefficients, ell = _aggregate_pubkeys(self.__pubkeys)
        self.__point = P
        self.__points = points
        self.__coefficients = coefficients
        self.__pk_hash = ell
        self.__combined_pk = bytes_from_point(P)

    @property
    def n_signers(self):
        return len(self.__pubkeys)

    @property
    def pubkeys(self):
        return self.__pubkeys

    def get_pubkey(self):
        """Return the combined public key."""

        return self.__combined_pk

    def get_point(self):
        return self.__point

    def get_points(self):
        """Return the decoded public keys in participant order."""

        return self.__points

    def get_coefficients(self):
        return self.__coefficients

    def get_pk_hash(self):
        return self.__pk_hash

    def __eq__(self, other):
        if not isinstance(other, CombinedPubkey):
            return NotImplemented
        return self.__pubkeys == other.pubkeys

    def __hash__(self):
        return hash(self.__pubkeys)

    def __str__(self):
        return 'combined public key: {}'.format(self.__combined_pk.hex())


def combine_pubkeys(pubkeys):
    """Return the 33-byte combined public key of an ordered list of public keys."""

    return CombinedPubkey(pubkeys).get_pubkey()


def aggregate_signatures(partial_sigs, aggregated_nonce, combined_pk):
    """
    Compute the sum of all signature from an array of partial signatures.

    s_sum = s[0] + s[1] + ...  + s[n]
    The result is the 65 byte signature R || s_sum.

    Only the count against the participant list of combined_pk and the range of each
    share are checked here. The sum is order independent, so the binding of every share
    to its signer is checked by MuSigSession.partial_sig_verify (and partial_sig_combine
    with verify_partial_sigs=True). Unverified shares only fail the final verification.
    """

    n_signers = combined_pk.n_signers
    if len(partial_sigs) != n_signers:
        raise ParticipantCountMismatch('The number of signatures is not equal the signing parties.',
                                       expected=n_signers, actual=len(partial_sigs),
                                       round_name='signature aggregation')
    if point_from_bytes(aggregated_nonce) is None:
        raise InvalidKey('The aggregated nonce is not a valid curve point.', round_name='signature aggregation')
    s_sum = 0
    for i, sig in enumerate(partial_sigs):
        if len(sig) != SCALAR_SIZE:
            raise InvalidPartialSignature('The signature must be a 32-byte array.', index=i,
                                          round_name='signature aggregation')
        s = int_from_bytes(sig)
        if is_scalar_overflow(s):
            raise InvalidPartialSignature('The signature is outside of the group order.', index=i,
                                          round_name='signature aggregation')
        s_sum = (s_sum + s) % curve.n
    return bytes(aggregated_nonce) + bytes_from_int(s_sum)


class SessionState(enum.Enum):
    CREATED = 'created'
    AWAITING_OWN_NONCE = 'awaiting own nonce'
    AWAITING_PRECOMMITMENTS = 'awaiting precommitments'
    AWAITING_COMMITMENTS = 'awaiting commitments'
    AWAITING_SIGNATURE = 'awaiting signature'
    AWAITING_PARTIAL_SIGNATURES = 'awaiting partial signatures'
    COMPLETE = 'complete'
    ABORTED = 'aborted'


class MuSigSession:
    """
    A Class that represents one multi signature session of a single signer with n participants.

    The session moves through three rounds:

    1. precommit: ``create_nonce_commitment`` returns t_i = H(R_i), which is broadcast.
    2. reveal: ``get_public_nonce`` takes every t_j and returns R_i, ``set_nonces`` takes every
       R_j, checks it against t_j and computes R = R[0] + ... + R[n].
    3. sign: ``partial_sign`` returns s_i and the challenge e, ``partial_sig_combine`` takes every
       s_j and returns the final signature (R, s).

    A new session is needed for every message. The secret nonce is wiped after signing or when
    a round fails; a failed session can't be resumed. Instances are not thread-safe.
    """

    def __init__(self, position, pubkeys, combined_pk=None, verify_partial_sigs=True):
        self.__state = SessionState.CREATED
        if combined_pk is None:
            combined_pk = CombinedPubkey(pubkeys)
        elif combined_pk.pubkeys != tuple(bytes(pubkey) for pubkey in pubkeys):
            raise ValueError('The combined public key was built from a different participant list.')
        n_signers = combined_pk.n_signers
        if not 0 <= position < n_signers:
            raise ValueError('position {} is out of range for {} participants.'.format(position, n_signers))

        self.__position = position
        self.__combined_pk = combined_pk
        self.__n_signers = n_signers
        self.__verify_partial_sigs = verify_partial_sigs
        self.__secnonce = None
        self.__nonce = None
        self.__nonce_commitment = None
        self.__nonce_commitments = None
        self.__nonce_points = None
        self.__agg_nonce = None
        self.__challenge = None
        self.__set_state(SessionState.AWAITING_OWN_NONCE)

    def get_state(self):
        return self.__state

    def get_self_index(self):
        return self.__position

    def get_n_signers(self):
        return self.__n_signers

    def get_combined_pubkey(self):
        return self.__combined_pk

    def get_aggregated_pubkey(self):
        """Return the 33-byte aggregated public key the final signature verifies under."""

        return self.__combined_pk.get_pubkey()

    def get_aggregated_nonce(self):
        return self.__agg_nonce

    def get_challenge(self):
        return None if self.__challenge is None else bytes_from_int(self.__challenge)

    def create_nonce_commitment(self, session_id32=None, extra_input32=None):
        """
        Create the secret nonce r_i, the public nonce R_i = r_i*G and return the commitment H(R_i).

        session_id32 replaces the internal random source. It must be unique per session,
        reusing it for two messages leaks the secret key.
        """

        self.__require_state(SessionState.AWAITING_OWN_NONCE, 'precommitment')
        if session_id32 is None:
            session_id32 = secrets.token_bytes(32)
        elif len(session_id32) != 32:
            raise ValueError('The session id must be a 32-byte array.')

        secnonce = nonce_function(session_id32, self.get_aggregated_pubkey(), self.__position, extra_input32)
        if is_secret_overflow(secnonce):
            raise ScalarOverflowError('The nonce is outside of the group order.')
        self.__secnonce = secnonce
        self.__nonce = bytes_from_point(point_mul(curve.G, secnonce))
        self.__nonce_commitment = nonce_commitment_hash(self.__nonce)
        self.__set_state(SessionState.AWAITING_PRECOMMITMENTS)
        return self.__nonce_commitment

    def get_public_nonce(self, commitments):
        """Receive the array of nonce commitments (H(R)) of all signers and return the public nonce R_i."""

        round_name = 'precommitment exchange'
        self.__require_state(SessionState.AWAITING_PRECOMMITMENTS, round_name)
        if len(commitments) != self.__n_signers:
            raise self.__abort(ParticipantCountMismatch('The number of commitments is incomplete.',
                                                        expected=self.__n_signers, actual=len(commitments),
                                                        round_name=round_name))
        for i, commitment in enumerate(commitments):
            if len(commitment) != HASH_SIZE:
                raise self.__abort(CommitmentMismatch('The commitment of the nonce must be a 32-byte array.',
                                                      index=i, round_name=round_name))
        if not hmac.compare_digest(bytes(commitments[self.__position]), self.__nonce_commitment):
            raise self.__abort(CommitmentMismatch('The commitment at the own position is not ours.',
                                                  index=self.__position, round_name=round_name))

        self.__nonce_commitments = [bytes(commitment) for commitment in commitments]
        self.__set_state(SessionState.AWAITING_COMMITMENTS)
        return self.__nonce

    def set_nonces(self, nonces):
        """
        Receive the array of public nonces, verify that they match the nonce commitments
        and return the combined nonce R = R[0] + R[1] + ... + R[n].
        """

        round_name = 'nonce exchange'
        self.__require_state(SessionState.AWAITING_COMMITMENTS, round_name)
        if len(nonces) != self.__n_signers:
            raise self.__abort(ParticipantCountMismatch('The number of nonces is incomplete.',
                                                        expected=self.__n_signers, actual=len(nonces),
                                                        round_name=round_name))
        points = []
        R = None
        for i, nonce in enumerate(nonces):
            if (not isinstance(nonce, (bytes, bytearray))
                    or not hmac.compare_digest(nonce_commitment_hash(bytes(nonce)), self.__nonce_commitments[i])):
                raise self.__abort(CommitmentMismatch('The nonce doesn\'t match the commitment.',
                                                      index=i, round_name=round_name))
            # committed to, but not a curve point
            R_i = point_from_bytes(nonce)
            if R_i is None:
                raise self.__abort(InvalidKey('The nonce (R) is an invalid curve point.',
                                              index=i, round_name=round_name))
            points.append(R_i)
            R = point_add(R, R_i)
        if is_infinity(R):
            raise self.__abort(InvalidKey('The combined nonce is the point at infinity.', round_name=round_name))

        self.__nonce_points = points
        self.__agg_nonce = bytes_from_point(R)
        self.__set_state(SessionState.AWAITING_SIGNATURE)
        return self.__agg_nonce

    def partial_sign(self, seckey, msg):
        """Compute s = r + e * a * x with the own secret key and secret nonce. Returns (s, e)."""

        round_name = 'signing'
        self.__require_state(SessionState.AWAITING_SIGNATURE, round_name)
        if not isinstance(msg, (bytes, bytearray)):
            raise ValueError('The message must be a byte array.')
        if len(seckey) != SCALAR_SIZE:
            raise self.__abort(InvalidKey('The secret key must be a 32-byte array.',
                                          index=self.__position, round_name=round_name))
        secret = int_from_bytes(seckey)
        if is_secret_overflow(secret):
            raise self.__abort(InvalidKey('The secret key is outside of the group order.',
                                          index=self.__position, round_name=round_name))
        if point_mul(curve.G, secret) != self.__combined_pk.get_points()[self.__position]:
            raise self.__abort(InvalidKey('The secret key doesn\'t belong to the public key at the own position.',
                                          index=self.__position, round_name=round_name))

        e = challenge_hash(self.__agg_nonce, self.get_aggregated_pubkey(), bytes(msg))
        a = self.__combined_pk.get_coefficients()[self.__position]
        s = (self.__secnonce + e * a * secret) % curve.n
        self.__secnonce = None
        self.__challenge = e
        self.__set_state(SessionState.AWAITING_PARTIAL_SIGNATURES)
        return bytes_from_int(s), bytes_from_int(e)

    def partial_sig_verify(self, sig, i):
        """Validate the partial signature of participant i: s*G == R_i + (e * a_i) * X_i"""

        self.__require_state(SessionState.AWAITING_PARTIAL_SIGNATURES, 'partial signature verification')
        if not 0 <= i < self.__n_signers:
            raise ValueError('index {} is out of range for {} participants.'.format(i, self.__n_signers))
        if len(sig) != SCALAR_SIZE:
            return False
        s = int_from_bytes(sig)
        if is_scalar_overflow(s):
            return False
        return self.__share_is_valid(s, i)

    def partial_sig_combine(self, sigs, challenge):
        """
        Verify and combine the partial signatures of all signers to the final signature (R, s).

        s_sum = s[0] + s[1] + ...  + s[n]
        """

        round_name = 'partial signature exchange'
        self.__require_state(SessionState.AWAITING_PARTIAL_SIGNATURES, round_name)
        if len(challenge) != SCALAR_SIZE or not hmac.compare_digest(bytes(challenge),
                                                                    bytes_from_int(self.__challenge)):
            raise InvalidSessionState('The challenge doesn\'t belong to this session.', round_name=round_name)
        if len(sigs) != self.__n_signers:
            raise self.__abort(ParticipantCountMismatch('The number of signatures is not equal the signing parties.',
                                                        expected=self.__n_signers, actual=len(sigs),
                                                        round_name=round_name))
        for i, sig in enumerate(sigs):
            if len(sig) != SCALAR_SIZE:
                raise self.__abort(InvalidPartialSignature('The signature must be a 32-byte array.',
                                                           index=i, round_name=round_name))
            s = int_from_bytes(sig)
            if is_scalar_overflow(s):
                raise self.__abort(InvalidPartialSignature('The signature is outside of the group order.',
                                                           index=i, round_name=round_name))
            if self.__verify_partial_sigs and not self.__share_is_valid(s, i):
                raise self.__abort(InvalidPartialSignature('The partial signature is invalid.',
                                                           index=i, round_name=round_name))

        signature = aggregate_signatures(sigs, self.__agg_nonce, self.__combined_pk)
        self.__set_state(SessionState.COMPLETE)
        return signature

    def __share_is_valid(self, s, i):
        e = (self.__challenge * self.__combined_pk.get_coefficients()[i]) % curve.n
        X_i = self.__combined_pk.get_points()[i]
        lhs = point_mul(curve.G, s)
        rhs = point_add(self.__nonce_points[i], point_mul(X_i, e))
        return lhs == rhs

    def __require_state(self, expected, round_name):
        if self.__state is SessionState.COMPLETE:
            raise SessionAlreadyComplete('The session is already complete.', round_name=round_name)
        if self.__state is SessionState.ABORTED:
            raise InvalidSessionState('The session was aborted, start a new one.', round_name=round_name)
        if self.__state is not expected:
            raise InvalidSessionState('Expected state "{}", session is in state "{}".'.format(
                expected.value, self.__state.value), round_name=round_name)

    def __set_state(self, state):
        logger.debug('Signer %d: %s -> %s', self.__position, self.__state.value, state.value)
        self.__state = state

    def __abort(self, error):
        """Wipe the nonce material and move to ABORTED. Returns error for the caller to raise."""

        self.__secnonce = None
        self.__nonce_points = None
        logger.warning('Signer %d aborted the session: %s', self.__position, error)
        self.__state = SessionState.ABORTED
        return error

    def __str__(self):
        return 'MuSig session of signer {}/{}: {}'.format(self.__position, self.__n_signers, self.__state.value)
