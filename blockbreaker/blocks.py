#!/usr/bin/env/ python
# encoding: utf-8

"""Handle operations supporting blocks here."""

import math

import blockbreaker.util

from Crypto.Cipher import AES

__author__ = 'aldur'

BLOCK_SIZE = 16


class InvalidPaddingException(Exception):
    """
    Throw this exception while detecting that a buffer
    provides an invalid padding.
    """
    pass


class MissingIVOrNonceException(Exception):
    """
    Thrown when CBC or CTR are invoked without
    the per-call randomness they require.
    """
    pass


def ith_byte_block(block_size: int, i: int) -> int:
    """
    Return the block to which the byte at index i belongs.
    :param block_size: The block size.
    :param i: The index of the interesting byte.
    :return: The index of the block to which the byte at index i belongs.
    """
    assert block_size > 0
    assert i >= 0
    return i // block_size


def bytes_in_block(block_size: int, i: int) -> slice:
    """
    Given the block size and the desired block index,
    return the slice of interesting bytes.

    :param block_size: The block size.
    :param i: The block index.
    :return: slice of bytes pointing to given block index.
    """
    return slice(block_size * i, block_size * (i + 1))


def split_blocks(b: bytes, block_size: int=BLOCK_SIZE) -> tuple:
    """Split the buffer into consecutive blocks.
    The last block may be shorter than block_size.

    :param b: The input buffer.
    :param block_size: The block size.
    :returns: A tuple of byte buffers.

    """
    assert block_size > 0

    return tuple(
        b[bytes_in_block(block_size, i)]
        for i in range(math.ceil(len(b) / block_size))
    )


def pkcs_7(b: bytes, size: int=BLOCK_SIZE) -> bytes:
    """
    PKCS#7 padding.
    Given the block size, pad the input buffer,
    so that the result is a multiple of the specified size.

    Please note that this function will always pad,
    even if the buffer is already a multiple of the size.
    So, if size is 16 and b is "YELLOW SUBMARINE",
    it will be padded to:
    b'YELLOW SUBMARINE\\x10\\x10 ... \\x10\\x10'

    :param b: A buffer of bytes.
    :param size: The block size.
    :return: The padded buffer.
    """
    assert 0 < size <= 0xff

    padding = size - (len(b) % size)
    return bytes(b) + bytes((padding,)) * padding


def un_pkcs_7(b: bytes, size: int=BLOCK_SIZE) -> bytes:
    """
    PKCS#7 un_padding.
    Remove padding from the bytes.
    If padding is invalid, throws an exception.

    :param b: A padded buffer of bytes.
    :param size: The block size.
    :return: The buffer without padding.
    :raises: InvalidPaddingException
    """
    assert 0 < size <= 0xff

    if not b or len(b) % size:
        raise InvalidPaddingException(
            "Buffer length {} is not a positive multiple of {}.".format(
                len(b), size
            )
        )

    padding = b[-1]
    if padding <= 0 or padding > size:
        raise InvalidPaddingException(
            "Bad padding value {}.".format(padding)
        )

    if any(byte != padding for byte in b[-padding:]):
        raise InvalidPaddingException(
            "Padding bytes are not all equal to {}.".format(padding)
        )

    return bytes(b[:-padding])


def any_equal_block(b: bytes, block_size: int=BLOCK_SIZE) -> bool:
    """
    Return true if b contains two or more equal blocks.

    :param b: A bytes buffer.
    :param block_size: The block size.
    :return: True if two or more blocks are equal.
    """
    b = split_blocks(b, block_size)
    return len(set(b)) != len(b)


def detect_ecb(b: bytes, block_size: int=BLOCK_SIZE) -> bool:
    """
    Given the encryption of a plaintext whose leading blocks
    are repeated, tell whether it was produced by ECB:
    the 2nd and 3rd ciphertext blocks are then equal.

    :param b: The ciphertext.
    :param block_size: The block size.
    :return: True if the ciphertext looks like ECB.
    """
    assert len(b) >= block_size * 3
    return b[bytes_in_block(block_size, 1)] == b[bytes_in_block(block_size, 2)]


def aes_block(key: bytes, block: bytes, decrypt: bool=False) -> bytes:
    """Encrypt or decrypt exactly one block under key.
    This is the raw AES permutation, no chaining and no padding:
    every mode below is built on top of it.

    :param key: The cipher key.
    :param block: A single block.
    :param decrypt: Whether we should encrypt or decrypt.
    :returns: The transformed block.
    """
    assert len(key) == BLOCK_SIZE, \
        "Got wrong key size {}".format(len(key))
    assert len(block) == BLOCK_SIZE

    aes = AES.new(key, AES.MODE_ECB)
    return aes.decrypt(block) if decrypt else aes.encrypt(block)


def _check_ciphertext_length(b: bytes):
    """
    A ciphertext to be decrypted and un-padded must be
    a positive multiple of the block size.

    :raises: InvalidPaddingException
    """
    if not b or len(b) % BLOCK_SIZE:
        raise InvalidPaddingException(
            "Ciphertext length {} is not a positive multiple of {}.".format(
                len(b), BLOCK_SIZE
            )
        )


def aes_ecb(key: bytes, b: bytes, decrypt: bool=False) -> bytes:
    """AES ECB mode.
    Pad before encrypting, remove padding after decrypting.

    :param key: The cipher key.
    :param b: The buffer to be encrypted/decrypted.
    :param decrypt: Whether we should encrypt or decrypt.
    :returns: The encrypted/decrypted buffer.
    :raises: InvalidPaddingException on decryption of a badly padded buffer.
    """
    if not decrypt:
        return b"".join(
            aes_block(key, block)
            for block in split_blocks(pkcs_7(b, BLOCK_SIZE))
        )

    _check_ciphertext_length(b)
    return un_pkcs_7(
        b"".join(aes_block(key, block, True) for block in split_blocks(b)),
        BLOCK_SIZE
    )


def aes_cbc(
        key: bytes,
        b: bytes,
        iv: bytes=None,
        decrypt: bool=False,
) -> bytes:
    """AES CBC mode.
    The returned ciphertext does not include the IV:
    the caller has to keep it in order to decrypt.

    :param key: The cipher key.
    :param b: The buffer to be encrypted/decrypted.
    :param iv: The IV (mandatory).
    :param decrypt: Whether we should encrypt or decrypt.
    :returns: The encrypted/decrypted buffer.
    :raises: MissingIVOrNonceException, InvalidPaddingException
    """
    if iv is None:
        raise MissingIVOrNonceException("CBC requires an IV.")
    assert len(iv) == BLOCK_SIZE

    exit_buffer = b''
    previous = iv

    if not decrypt:
        for block in split_blocks(pkcs_7(b, BLOCK_SIZE)):
            previous = aes_block(key, blockbreaker.util.xor(block, previous))
            exit_buffer += previous
        return exit_buffer

    _check_ciphertext_length(b)
    for block in split_blocks(b):
        exit_buffer += blockbreaker.util.xor(
            aes_block(key, block, True), previous
        )
        previous = block

    return un_pkcs_7(exit_buffer, BLOCK_SIZE)


def aes_ctr(
        key: bytes,
        b: bytes,
        nonce: int=None,
) -> bytes:
    """AES CTR mode.
    Encryption and decryption are the same operation.
    The keystream block i is AES(nonce || i),
    both as 64 bits little endian integers.

    :param key: The cipher key.
    :param b: The buffer to be encrypted/decrypted.
    :param nonce: The nonce to be used (mandatory).
    :returns: The encrypted/decrypted buffer.
    :raises: MissingIVOrNonceException
    """
    if nonce is None:
        raise MissingIVOrNonceException("CTR requires a nonce.")
    assert 0 <= nonce < 2 ** 64

    nonce = nonce.to_bytes(8, 'little', signed=False)

    keystream = b"".join(
        aes_block(key, nonce + i.to_bytes(8, 'little', signed=False))
        for i in range(math.ceil(len(b) / BLOCK_SIZE))
    )
    return blockbreaker.util.xor(b, keystream[:len(b)])
