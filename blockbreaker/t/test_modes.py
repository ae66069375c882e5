#!/usr/bin/env/ python
# encoding: utf-8

"""
Test the mode-aware engine.
"""

import base64
import unittest

import blockbreaker.blocks
import blockbreaker.modes

__author__ = 'aldur'

Aes = blockbreaker.modes.Aes
Mode = blockbreaker.modes.Mode
Iv = blockbreaker.modes.Iv
Nonce = blockbreaker.modes.Nonce


class ModesTestCase(unittest.TestCase):
    key = "YELLOW SUBMARINE".encode("ascii")
    plaintexts = (
        b"",
        b"foo",
        b"YELLOW SUBMARINE",
        b"Now that the party is jumping, with the bass kicked in",
    )

    def test_round_trip(self):
        aes = {
            Mode.ECB: None,
            Mode.CBC: Iv(bytes(range(16))),
            Mode.CTR: Nonce(1234),
        }

        for mode, auxiliary in aes.items():
            engine = Aes(self.key, mode)
            for p in self.plaintexts:
                self.assertEqual(
                    engine.decrypt(engine.encrypt(p, auxiliary), auxiliary),
                    p,
                    "{} failed on {}".format(mode, p)
                )

    def test_ctr_keeps_length(self):
        engine = Aes(self.key, Mode.CTR)
        for p in self.plaintexts:
            self.assertEqual(len(engine.transform(p, Nonce(0))), len(p))

    def test_block_modes_pad(self):
        for mode, auxiliary in ((Mode.ECB, None), (Mode.CBC, Iv(bytes(16)))):
            engine = Aes(self.key, mode)
            self.assertEqual(len(engine.encrypt(b"", auxiliary)), 16)
            self.assertEqual(len(engine.encrypt(b"YELLOW SUBMARINE", auxiliary)), 32)

    def test_ctr_vector(self):
        b = base64.b64decode(
            "L77na/nrFsKvynd6HzOoG7GHTLXsTVu9qvY/"
            "2syLXzhPweyyMTJULu/6/kXX0KSvoOLSFQ=="
        )
        self.assertEqual(
            Aes(self.key, Mode.CTR).transform(b, Nonce(0)),
            b"Yo, VIP Let's kick it Ice, Ice, baby Ice, Ice, baby "
        )

    def test_missing_auxiliary(self):
        for mode in (Mode.CBC, Mode.CTR):
            engine = Aes(self.key, mode)
            self.assertRaises(
                blockbreaker.blocks.MissingIVOrNonceException,
                engine.encrypt, b"foo"
            )
            self.assertRaises(
                blockbreaker.blocks.MissingIVOrNonceException,
                engine.decrypt, bytes(16)
            )

    def test_mismatched_auxiliary(self):
        f = blockbreaker.modes.UnsupportedModeOperationException

        self.assertRaises(f, Aes(self.key, Mode.CBC).encrypt, b"foo", Nonce(0))
        self.assertRaises(f, Aes(self.key, Mode.CTR).encrypt, b"foo", Iv(bytes(16)))
        self.assertRaises(f, Aes(self.key, Mode.ECB).encrypt, b"foo", Iv(bytes(16)))
        self.assertRaises(f, Aes(self.key, Mode.ECB).decrypt, bytes(16), Nonce(0))

    def test_transform_is_ctr_only(self):
        self.assertRaises(
            blockbreaker.modes.UnsupportedModeOperationException,
            Aes(self.key, Mode.ECB).transform, b"foo", Nonce(0)
        )

    def test_truncated_ciphertext(self):
        f = blockbreaker.blocks.InvalidPaddingException

        self.assertRaises(f, Aes(self.key, Mode.CBC).decrypt, bytes(17), Iv(bytes(16)))
        self.assertRaises(f, Aes(self.key, Mode.ECB).decrypt, bytes(15))

    def test_bad_padding_is_recoverable(self):
        engine = Aes(self.key, Mode.ECB)
        cipher = engine.encrypt(b"foo")

        with self.assertRaises(blockbreaker.blocks.InvalidPaddingException):
            engine.decrypt(cipher[:-16] + blockbreaker.blocks.aes_block(self.key, bytes(16)))


if __name__ == '__main__':
    unittest.main()
