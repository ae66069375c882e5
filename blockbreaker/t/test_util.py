#!/usr/bin/env/ python
# encoding: utf-8

__author__ = 'aldur'

import random
import unittest

import blockbreaker.util


class UtilTestCase(unittest.TestCase):
    def test_xor(self):
        a = bytearray.fromhex("1c0111001f010100061a024b53535009181c")
        b = bytearray.fromhex("686974207468652062756c6c277320657965")
        c = bytearray(blockbreaker.util.xor(a, b))
        truth = bytearray.fromhex("746865206b696420646f6e277420706c6179")

        self.assertEqual(c, truth)

    def test_xor_empty(self):
        self.assertEqual(blockbreaker.util.xor(b"", b""), b"")

    def test_xor_length_mismatch(self):
        self.assertRaises(
            blockbreaker.util.LengthMismatchException,
            blockbreaker.util.xor,
            b"foo",
            b"foobar"
        )

    def test_escape_metas(self):
        f = blockbreaker.util.escape_metas
        self.assertEqual(
            f("a;b=c", ";="),
            "a\\;b\\=c"
        )
        self.assertEqual(
            f("plain", ";="),
            "plain"
        )

    def test_key_value(self):
        d = blockbreaker.util.key_value_parsing(
            "foo=bar&baz=qux&zap=zazzle&malformed"
        )
        self.assertEqual(
            d,
            {"foo": "bar", "baz": "qux", "zap": "zazzle"}
        )
        self.assertEqual(
            blockbreaker.util.dictionary_to_kv(d),
            "foo=bar&baz=qux&zap=zazzle"
        )

    def test_random_key(self):
        k = blockbreaker.util.random_aes_key()
        self.assertEqual(
            len(k),
            16
        )

    def test_random_bytes_is_seedable(self):
        self.assertEqual(
            blockbreaker.util.random_bytes(32, random.Random(42)),
            blockbreaker.util.random_bytes(32, random.Random(42))
        )

    def test_random_bytes_random_range(self):
        low = 5
        high = 10
        rs = [
            blockbreaker.util.random_bytes_random_range(low, high)
            for _ in range(500)
        ]
        self.assertTrue(
            all(low <= len(r) <= high for r in rs)
        )


if __name__ == '__main__':
    unittest.main()
