#!/usr/bin/env/ python
# encoding: utf-8

__author__ = 'aldur'

import unittest
import unittest.mock
import random

import blockbreaker.blocks
import blockbreaker.util


class BlocksTestCase(unittest.TestCase):
    key = "YELLOW SUBMARINE".encode("ascii")

    def test_split_blocks(self):
        f = blockbreaker.blocks.split_blocks
        b = "this is a test".encode("ascii")

        blocks = f(b, 4)
        self.assertEqual(
            blocks,
            (b"this", b" is ", b"a te", b"st")
        )
        self.assertEqual(b"".join(blocks), b)
        self.assertEqual(f(b"", 16), tuple())

    def test_pkcs(self):
        b = "YELLOW SUBMARINE".encode("ascii")

        size = 20
        padded = blockbreaker.blocks.pkcs_7(b, size)
        self.assertEqual(len(padded), size)
        self.assertEqual(padded, b + b"\x04" * 4)

        size = 16
        padded = blockbreaker.blocks.pkcs_7(b, size)
        self.assertEqual(len(padded), size * 2)
        self.assertEqual(padded, b + (b"\x10" * size))

        self.assertEqual(blockbreaker.blocks.pkcs_7(b"", 16), b"\x10" * 16)

    def test_un_pkcs(self):
        b = "YELLOW SUBMARINE".encode("ascii")

        size = 20
        padded = blockbreaker.blocks.pkcs_7(b, size)
        un_padded = blockbreaker.blocks.un_pkcs_7(padded, size)
        self.assertEqual(b, un_padded)

        size = 16
        padded = blockbreaker.blocks.pkcs_7(b, size)
        un_padded = blockbreaker.blocks.un_pkcs_7(padded, size)
        self.assertEqual(b, un_padded)

        padded = b"ICE ICE BABY\x04\x04\x04\x04"
        un_padded = blockbreaker.blocks.un_pkcs_7(padded, size)
        self.assertEqual(b"ICE ICE BABY", un_padded)

        for padded in (
                b"ICE ICE BABY\x05\x05\x05\x05",
                b"ICE ICE BABY\x01\x02\x03\x04",
                b"ICE ICE BABY\x00\x00\x00\x00",
                b"ICE ICE BABY\x04\x04\x04",  # Not a multiple of the block size
                b"ICE ICE BABY\x11\x11\x11\x11",
                b"",
        ):
            self.assertRaises(
                blockbreaker.blocks.InvalidPaddingException,
                blockbreaker.blocks.un_pkcs_7,
                padded,
                size
            )

    def test_un_pkcs_round_trip(self):
        rng = random.Random(1)
        for length in range(0, 50):
            b = blockbreaker.util.random_bytes(length, rng)
            self.assertEqual(
                blockbreaker.blocks.un_pkcs_7(blockbreaker.blocks.pkcs_7(b, 16), 16),
                b
            )

    def test_any_equal_block(self):
        f = blockbreaker.blocks.any_equal_block
        self.assertTrue(f(b"A" * 32))
        self.assertFalse(f(b"A" * 16 + b"B" * 16))

    def test_detect_ecb(self):
        b = bytes(16 * 3)
        self.assertTrue(
            blockbreaker.blocks.detect_ecb(
                blockbreaker.blocks.aes_ecb(self.key, b)
            )
        )
        self.assertFalse(
            blockbreaker.blocks.detect_ecb(
                blockbreaker.blocks.aes_cbc(self.key, b, iv=bytes(16))
            )
        )

    def test_aes_block(self):
        f = blockbreaker.blocks.aes_block
        b = "00foobarfoobar00".encode("ascii")

        cipher = f(self.key, b)
        self.assertEqual(len(cipher), 16)
        self.assertNotEqual(cipher, b)
        self.assertEqual(f(self.key, cipher, decrypt=True), b)

    def test_aes_ecb(self):
        f = blockbreaker.blocks.aes_ecb
        b = "00foobarfoobar00".encode("ascii")

        cipher = f(self.key, b)
        self.assertEqual(len(cipher), 32)
        self.assertEqual(
            f(self.key, cipher, decrypt=True),
            b
        )
        self.assertEqual(
            cipher[:16],
            blockbreaker.blocks.aes_block(self.key, b)
        )

    def test_aes_cbc(self):
        f = blockbreaker.blocks.aes_cbc
        b = "00foobarfoobar00, and a bit more".encode("ascii")
        iv = blockbreaker.util.random_aes_key()

        cipher = f(self.key, b, iv=iv)
        self.assertEqual(len(cipher), 48)
        self.assertEqual(
            f(self.key, cipher, iv=iv, decrypt=True),
            b
        )

        # The first block is E(P_1 ^ IV).
        self.assertEqual(
            cipher[:16],
            blockbreaker.blocks.aes_block(
                self.key, blockbreaker.util.xor(b[:16], iv)
            )
        )

    def test_aes_cbc_bad_padding(self):
        iv = bytes(16)
        cipher = bytearray(blockbreaker.blocks.aes_cbc(self.key, b"foo", iv=iv))
        # Garble the padding through the IV.
        iv = bytearray(iv)
        iv[-1] ^= 0xff

        self.assertRaises(
            blockbreaker.blocks.InvalidPaddingException,
            blockbreaker.blocks.aes_cbc,
            self.key, bytes(cipher), bytes(iv), True
        )

    def test_truncated_ciphertext(self):
        iv = bytes(16)
        ecb = blockbreaker.blocks.aes_ecb(self.key, b"foo")
        cbc = blockbreaker.blocks.aes_cbc(self.key, b"foo", iv=iv)

        for cipher in (ecb[:-1], ecb + b"\x00", b""):
            self.assertRaises(
                blockbreaker.blocks.InvalidPaddingException,
                blockbreaker.blocks.aes_ecb,
                self.key, cipher, True
            )

        for cipher in (cbc[:-1], bytes(17), b""):
            self.assertRaises(
                blockbreaker.blocks.InvalidPaddingException,
                blockbreaker.blocks.aes_cbc,
                self.key, cipher, iv, True
            )

    def test_modes_use_aes_block(self):
        b = bytes(40)
        for f, kwargs, calls in (
                (blockbreaker.blocks.aes_ecb, {}, 3),
                (blockbreaker.blocks.aes_cbc, {"iv": bytes(16)}, 3),
                (blockbreaker.blocks.aes_ctr, {"nonce": 0}, 3),
        ):
            with unittest.mock.patch.object(
                    blockbreaker.blocks, "aes_block",
                    wraps=blockbreaker.blocks.aes_block
            ) as aes_block:
                f(self.key, b, **kwargs)
                self.assertEqual(aes_block.call_count, calls)

    def test_aes_cbc_missing_iv(self):
        self.assertRaises(
            blockbreaker.blocks.MissingIVOrNonceException,
            blockbreaker.blocks.aes_cbc,
            self.key, b"foo"
        )

    def test_aes_ctr(self):
        f = blockbreaker.blocks.aes_ctr
        b = "00foobarfoobar00 and then some".encode("ascii")

        cipher = f(self.key, b, nonce=42)
        self.assertEqual(len(cipher), len(b))
        self.assertEqual(
            f(self.key, cipher, nonce=42),
            b
        )
        self.assertNotEqual(f(self.key, b, nonce=43), cipher)
        self.assertEqual(f(self.key, b"", nonce=0), b"")

    def test_aes_ctr_keystream(self):
        nonce = 5
        keystream = blockbreaker.blocks.aes_block(
            self.key,
            nonce.to_bytes(8, "little") + (1).to_bytes(8, "little")
        )
        cipher = blockbreaker.blocks.aes_ctr(self.key, bytes(20), nonce=nonce)
        self.assertEqual(cipher[16:], keystream[:4])

    def test_aes_ctr_missing_nonce(self):
        self.assertRaises(
            blockbreaker.blocks.MissingIVOrNonceException,
            blockbreaker.blocks.aes_ctr,
            self.key, b"foo"
        )

    def test_bytes_in_blocks(self):
        f = blockbreaker.blocks.bytes_in_block
        size = 16

        self.assertEqual(
            f(size, 0),
            slice(0, size)
        )

        self.assertEqual(
            f(size, 1),
            slice(size, size * 2)
        )

    def test_ith_byte_in_block(self):
        f = blockbreaker.blocks.ith_byte_block
        size = 16

        self.assertEqual(f(size, 0), 0)
        self.assertEqual(f(size, size - 1), 0)
        self.assertEqual(f(size, size), 1)
        self.assertEqual(f(size, size * 2), 2)


if __name__ == '__main__':
    unittest.main()
