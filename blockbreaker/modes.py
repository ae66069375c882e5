#!/usr/bin/env/ python
# encoding: utf-8

"""
A mode-aware AES engine.
Each mode declares the auxiliary input it needs,
so that a wrong call fails before any byte is processed.
"""

import collections
import enum

import blockbreaker.blocks

__author__ = 'aldur'


class UnsupportedModeOperationException(Exception):
    """
    Thrown when an engine receives an input meant for another mode
    (e.g. a nonce handed to a CBC engine).
    """
    pass


class Mode(enum.Enum):
    ECB = "ecb"
    CBC = "cbc"
    CTR = "ctr"


"""The per-call CBC initialization vector."""
Iv = collections.namedtuple("Iv", ["block"])

"""The per-call CTR nonce, a 64 bits unsigned integer."""
Nonce = collections.namedtuple("Nonce", ["value"])


class Aes(object):
    """
    An AES-128 engine bound to a key and a mode.

    :param key: The cipher key.
    :param mode: The mode of operation.
    """

    BLOCK_SIZE = blockbreaker.blocks.BLOCK_SIZE

    """Which auxiliary input each mode requires."""
    _auxiliary = {
        Mode.ECB: None,
        Mode.CBC: Iv,
        Mode.CTR: Nonce,
    }

    def __init__(self, key: bytes, mode: Mode):
        assert len(key) == Aes.BLOCK_SIZE, \
            "Got wrong key size {}".format(len(key))
        assert isinstance(mode, Mode)

        self._key = key
        self.mode = mode

    def _check_auxiliary(self, auxiliary):
        """
        Make sure the auxiliary input matches the mode.

        :param auxiliary: An Iv, a Nonce or None.
        :raise MissingIVOrNonceException: If the mode requires an input we didn't get.
        :raise UnsupportedModeOperationException: If the input belongs to another mode.
        """
        expected = Aes._auxiliary[self.mode]

        if expected is None:
            if auxiliary is not None:
                raise UnsupportedModeOperationException(
                    "{} takes no {}.".format(
                        self.mode.name, type(auxiliary).__name__
                    )
                )
            return

        if auxiliary is None:
            raise blockbreaker.blocks.MissingIVOrNonceException(
                "{} requires a {}.".format(self.mode.name, expected.__name__)
            )

        if not isinstance(auxiliary, expected):
            raise UnsupportedModeOperationException(
                "{} requires a {}, got {}.".format(
                    self.mode.name,
                    expected.__name__,
                    type(auxiliary).__name__
                )
            )

    def encrypt(self, b: bytes, auxiliary=None) -> bytes:
        """
        Encrypt the buffer.

        :param b: The plaintext.
        :param auxiliary: Iv for CBC, Nonce for CTR, nothing for ECB.
        :return: The ciphertext (IV excluded for CBC).
        """
        self._check_auxiliary(auxiliary)

        if self.mode is Mode.ECB:
            return blockbreaker.blocks.aes_ecb(self._key, b)
        elif self.mode is Mode.CBC:
            return blockbreaker.blocks.aes_cbc(self._key, b, iv=auxiliary.block)
        return blockbreaker.blocks.aes_ctr(self._key, b, nonce=auxiliary.value)

    def decrypt(self, b: bytes, auxiliary=None) -> bytes:
        """
        Decrypt the buffer.

        :param b: The ciphertext.
        :param auxiliary: Iv for CBC, Nonce for CTR, nothing for ECB.
        :return: The plaintext.
        :raise InvalidPaddingException: On ECB/CBC padding errors.
        """
        self._check_auxiliary(auxiliary)

        if self.mode is Mode.ECB:
            return blockbreaker.blocks.aes_ecb(self._key, b, decrypt=True)
        elif self.mode is Mode.CBC:
            return blockbreaker.blocks.aes_cbc(
                self._key, b, iv=auxiliary.block, decrypt=True
            )
        return blockbreaker.blocks.aes_ctr(self._key, b, nonce=auxiliary.value)

    def transform(self, b: bytes, nonce: Nonce) -> bytes:
        """
        Apply the CTR keystream to the buffer.
        Only meaningful for CTR engines.

        :param b: The buffer.
        :param nonce: The nonce.
        :return: b xor the keystream.
        """
        if self.mode is not Mode.CTR:
            raise UnsupportedModeOperationException(
                "transform is only available in CTR mode, not {}.".format(
                    self.mode.name
                )
            )
        return self.encrypt(b, nonce)
