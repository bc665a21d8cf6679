"""
MuSig Implementation for Python

This is an implementation of the MuSig scheme for Schnorr multi-signatures with
the three round nonce commitment exchange (precommit, reveal, sign).
Paper: https://eprint.iacr.org/2018/068

The signatures are (R, s) pairs over secp256k1 with 33-byte compressed points.
A verifier checks them like a single signer signature under the combined public key.
"""
from .errors import (MuSigError, InvalidKey, InvalidSessionState, SessionAlreadyComplete,
                     CommitmentMismatch, InvalidPartialSignature, ParticipantCountMismatch)
from .musig import CombinedPubkey, MuSigSession, SessionState, combine_pubkeys, aggregate_signatures

from .schnorr import schnorr_sign, schnorr_verify, schnorr_batch_verify, musig_verify

from .version import __version__
