#!/usr/bin/env python3
"""
Script for functional testing of a complete MuSig multisignature creation.
"""
import logging

from musigcore import CombinedPubkey, MuSigSession, CommitmentMismatch, schnorr_verify
from musigcore.utils import create_key_pair

N_SIGNERS = 3


def main():
    seckeys = []
    pubkeys = []
    msg = b'my message'
    print('   Starting test of musig multisignature key aggregation session.')
    print('\n   Signing Parties: {}'.format(N_SIGNERS))
    for _ in range(N_SIGNERS):
        seckey, pubkey = create_key_pair()
        seckeys.append(seckey)
        pubkeys.append(pubkey)
    print(' * Secret and public key pairs created for different signers.')

    combined_pk = CombinedPubkey(pubkeys)
    print(' * Combined public key created from the provided public keys successfully.')
    sessions = []
    nonce_commitments = []
    for i in range(N_SIGNERS):
        session = MuSigSession(i, pubkeys, combined_pk=combined_pk)
        print(' * MuSig session initialized for signer: {}.'.format(i+1))
        sessions.append(session)
        nonce_commitments.append(session.create_nonce_commitment())

    nonces = []
    # 1 Set nonce commitments in the signer data and get the own public nonce
    for i in range(N_SIGNERS):
        nonces.append(sessions[i].get_public_nonce(nonce_commitments))
    print('\n * 1st Round: Nonce commitments exchanged successfully.')

    sigs = []
    challenges = []
    # 2 Set public nonces for all participants and create the own partial signature
    for i in range(N_SIGNERS):
        sessions[i].set_nonces(nonces)
        sig, challenge = sessions[i].partial_sign(seckeys[i], msg)
        sigs.append(sig)
        challenges.append(challenge)
    print(' * 2nd Round: Public nonce exchanged and combined nonce created successfully.')

    final_sigs = []
    # 3 exchange partial sigs and combine them to one
    for i in range(N_SIGNERS):
        final_sigs.append(sessions[i].partial_sig_combine(sigs, challenges[i]))
    print(' * 3rd Round: partial signatures created and exchanged successfully.')

    if final_sigs[0] != final_sigs[1] or final_sigs[1] != final_sigs[2]:
        print(' - Signature aggregation failed.')
    else:
        print(' * Signature aggregation successful.')

    if schnorr_verify(msg, combined_pk.get_pubkey(), final_sigs[0]):
        print(' * Final signature validation successful.')
    else:
        print(' - Final signature validation failed.')
    if schnorr_verify(b'different message', combined_pk.get_pubkey(), final_sigs[0]):
        print(' - Signature is valid for a different message.')
    else:
        print(' * Signature is invalid for a different message.')

    print('\n----------------------------------\n')
    print('   Test case cheating signer')
    sessions = [MuSigSession(i, pubkeys, combined_pk=combined_pk) for i in range(N_SIGNERS)]
    nonce_commitments = [session.create_nonce_commitment() for session in sessions]
    nonces = [session.get_public_nonce(nonce_commitments) for session in sessions]
    cheater = N_SIGNERS - 1
    # the last signer reveals a different nonce than it committed to
    nonces[cheater] = nonces[0]
    try:
        sessions[0].set_nonces(nonces)
        print(' - Changed nonce was accepted.')
    except CommitmentMismatch as e:
        print(' * Changed nonce detected, cheating signer: {}.'.format(e.index))


if __name__ == '__main__':
    logging.basicConfig(level=logging.WARNING)
    main()
