import pytest

from musigcore import CombinedPubkey, MuSigSession
from musigcore.utils import bytes_from_int, pubkey_gen

MSG = b'my message'


@pytest.fixture(scope='session')
def keys():
    seckeys = [bytes_from_int(k) for k in (0x1f2e3d4c, 0x5b6a7988, 0x97a6b5c4)]
    pubkeys = [pubkey_gen(seckey) for seckey in seckeys]
    return seckeys, pubkeys


@pytest.fixture(scope='session')
def combined_pk(keys):
    return CombinedPubkey(keys[1])


@pytest.fixture
def revealed(keys, combined_pk):
    """Sessions of all signers after the precommitment exchange, with the commitments and public nonces."""

    def run(**kwargs):
        pubkeys = keys[1]
        sessions = [MuSigSession(i, pubkeys, combined_pk=combined_pk, **kwargs) for i in range(len(pubkeys))]
        commitments = [session.create_nonce_commitment() for session in sessions]
        nonces = [session.get_public_nonce(commitments) for session in sessions]
        return sessions, commitments, nonces

    return run


@pytest.fixture
def signed(keys, revealed):
    """Sessions of all signers after the signing round, with the partial signatures and challenges."""

    def run(msg=MSG, **kwargs):
        seckeys = keys[0]
        sessions, _, nonces = revealed(**kwargs)
        for session in sessions:
            session.set_nonces(nonces)
        results = [session.partial_sign(seckeys[i], msg) for i, session in enumerate(sessions)]
        sigs = [sig for sig, _ in results]
        challenges = [challenge for _, challenge in results]
        return sessions, sigs, challenges

    return run
