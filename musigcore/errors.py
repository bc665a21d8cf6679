#!/usr/bin/env python3
"""
Errors raised by the MuSig protocol engine.

Every protocol error carries the participant index and the round it was
raised in when those are known, so the caller can exclude a misbehaving
signer and start a new session.
"""


class MuSigError(Exception):
    def __init__(self, message, index=None, round_name=None):
        super().__init__(message)
        self.message = message
        self.index = index
        self.round_name = round_name

    def __str__(self):
        details = []
        if self.round_name is not None:
            details.append('round: {}'.format(self.round_name))
        if self.index is not None:
            details.append('index: {}'.format(self.index))
        if not details:
            return self.message
        return '{} ({})'.format(self.message, ', '.join(details))


class InvalidKey(MuSigError, ValueError):
    """A key or point fails curve-membership or identity checks."""


class InvalidSessionState(MuSigError, RuntimeError):
    """An operation was called out of order."""


class SessionAlreadyComplete(InvalidSessionState):
    pass


class CommitmentMismatch(MuSigError):
    """A revealed nonce does not hash to the precommitment sent earlier."""


class InvalidPartialSignature(MuSigError):
    """A partial signature fails s_j*G == R_j + e*a_j*X_j."""


class ParticipantCountMismatch(MuSigError, ValueError):
    def __init__(self, message, expected=None, actual=None, round_name=None):
        super().__init__(message, round_name=round_name)
        self.expected = expected
        self.actual = actual

    def __str__(self):
        text = super().__str__()
        if self.expected is None:
            return text
        return '{} expected: {}, got: {}'.format(text, self.expected, self.actual)
