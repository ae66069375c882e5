#!/usr/bin/env python
# encoding: utf-8

__author__ = "aldur"

"""Various utils."""

import re
import random


class LengthMismatchException(Exception):
    """
    Thrown when two buffers that should be combined
    byte by byte have different lengths.
    """
    pass


def xor(a: bytes, b: bytes) -> bytes:
    """Return a xor b.

    :param a: Some bytes.
    :param b: Some bytes.
    :returns: a xor b
    :raises: LengthMismatchException if a and b differ in length.
    """
    if len(a) != len(b):
        raise LengthMismatchException(
            "Arguments must have same length (got {} and {}).".format(
                len(a), len(b)
            )
        )

    return bytes(x ^ y for x, y in zip(a, b))


def escape_metas(s: str, meta: str, escape="\\") -> str:
    """
    Given a set of meta-characters,
    escape those chars from the given string.

    :param s: The string to be escaped.
    :param meta: The characters to be escaped.
    :param escape: The escape character (defaults to '\')
    :return: The escaped string.
    """
    assert meta

    for m in meta:
        s = re.sub(
            re.escape(m),
            re.escape(escape) + m,
            s
        )
    return s


def key_value_parsing(s: str) -> dict:
    """
    key=value to dictionary parsing.
    Given a string of the form k_1=v_1&k_2=v_2,
    convert it to a dictionary.
    Best effort, skip malformed strings.

    :param s: The input string.
    :return: A dictionary from the input string.
    """
    assert s
    return {
        kv.split("=", 1)[0]: kv.split("=", 1)[1]
        for kv in s.split("&")
        if kv.count("=")
    }


def dictionary_to_kv(d: dict) -> str:
    """
    Given a dictionary, encode it in key value format.

    :param d: The dictionary to be encoded.
    :return: The encoded key-value version of the dictionary.
    """
    assert d
    return "&".join(
        "=".join((str(k), str(v))) for k, v in d.items()
    )


def random_bytes(n: int, rng: random.Random=None) -> bytes:
    """
    Return n random bytes.

    :param n: How many bytes.
    :param rng: The source of randomness (defaults to the system one).
    :return: A buffer of n random bytes.
    """
    assert n >= 0
    rng = rng or random.SystemRandom()
    return bytes(rng.randrange(256) for _ in range(n))


def random_aes_key(rng: random.Random=None) -> bytes:
    """Generate a random AES-128 key."""
    return random_bytes(16, rng)


def random_bytes_random_range(
        low: int, high: int,
        rng: random.Random=None
) -> bytes:
    """
    Return a random number of random bytes,
    between low and high (both included).

    :param low: The minimum number of bytes.
    :param high: The maximum number of bytes.
    :param rng: The source of randomness (defaults to the system one).
    :return: A random buffer.
    """
    assert 0 <= low <= high
    rng = rng or random.SystemRandom()
    return random_bytes(rng.randint(low, high), rng)
