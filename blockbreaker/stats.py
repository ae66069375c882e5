#!/usr/bin/env python
# encoding: utf-8

__author__ = "aldur"

"""Buffer/string/bytes stats function will stay here."""

import blockbreaker.util


def count_set_bits(n: int) -> int:
    """Count those bits set (to 1) in n

    :param n: integer
    :returns: number of 1s in n

    """
    assert 0 <= n <= 255
    return sum(
        1 for i in range(8)
        if (n >> i) % 2 == 1
    )


def hamming_d(a: bytes, b: bytes) -> int:
    """
    Compute the Hamming Distance between a and b.
    We compute it by counting the number of different bits.

    :param a: Some bytes.
    :param b: Some bytes.
    :return: The number of bits a and b differ for.
    :raises: LengthMismatchException if a and b differ in length.
    """
    return sum(
        count_set_bits(byte)
        for byte in blockbreaker.util.xor(a, b)
    )
