#!/usr/bin/env/ python
# encoding: utf-8

"""
The oracle related stuff.
Each oracle owns a secret key and lets attackers
either encrypt chosen bytes or check the padding of a ciphertext.
"""

import abc
import base64
import collections
import random

import blockbreaker.blocks
import blockbreaker.modes
import blockbreaker.util

__author__ = 'aldur'


class CheatingException(Exception):
    """
    Thrown when the oracle detects that the attacker is trying to cheat.
    """
    pass


class Oracle(metaclass=abc.ABCMeta):
    """
    The base oracle abstract class.
    """

    @abc.abstractmethod
    def guess(self, guess) -> bool:
        """
        Given a guess, return true if correct.
        Usually this function can be called only once.

        :param guess: The guess done by the attacker.
        :return: True if the attacker correctly guessed.
        """
        return False


class EncryptionOracle(Oracle):
    """
    An oracle that encrypts attacker's chosen bytes.
    """

    @abc.abstractmethod
    def encrypt(self, b: bytes) -> bytes:
        """
        Encrypt the attacker's bytes
        (usually after surrounding them with secret stuff).

        :param b: The attacker's bytes.
        :return: The ciphertext.
        """
        return bytes()


class PaddingOracle(Oracle):
    """
    An oracle that only tells whether a ciphertext decrypts
    to a correctly padded plaintext.
    """

    @abc.abstractmethod
    def decrypt_and_check(self, ciphertext: bytes, iv: bytes) -> bool:
        """
        Decrypt the ciphertext by using the given IV.

        :param ciphertext: The ciphertext to be checked.
        :param iv: The IV to be used.
        :return: True if the plaintext is correctly padded.
        """
        return False


class OracleAesEcbCbc(EncryptionOracle):
    """An encryption oracle that randomly encrypts with AES ECB or AES CBC.

    Choose at random between AES ECB and AES CBC (by tossing a coin).
    Generate a random key.
    Add random bytes before and after b.
    Encrypt b.

    :param rng: The source of randomness.
    """

    def __init__(self, rng: random.Random=None):
        super().__init__()
        self._rng = rng or random.SystemRandom()

        mode = blockbreaker.modes.Mode.ECB \
            if self._rng.random() >= 0.5 \
            else blockbreaker.modes.Mode.CBC
        self._aes = blockbreaker.modes.Aes(
            blockbreaker.util.random_aes_key(self._rng), mode
        )
        self._truth = mode is blockbreaker.modes.Mode.ECB  # using ECB encryption
        self._guess_done = False

    def encrypt(self, b: bytes) -> bytes:
        """
        Add 5-10 random bytes before and after b, then encrypt.
        CBC uses a fresh random IV on each call.

        :param b: The buffer to be encrypted.
        :returns: An encryption of b.
        """
        b = blockbreaker.util.random_bytes_random_range(5, 10, self._rng) + \
            b + \
            blockbreaker.util.random_bytes_random_range(5, 10, self._rng)

        if self._aes.mode is blockbreaker.modes.Mode.CBC:
            return self._aes.encrypt(
                b,
                blockbreaker.modes.Iv(blockbreaker.util.random_bytes(16, self._rng))
            )
        return self._aes.encrypt(b)

    def guess(self, guess: bool) -> bool:
        """
        Return true if the attacker correctly guesses.
        :param guess: True if attacker thinks encryption is
        ECB, false otherwise.
        :return: True if attacker correctly guesses.
        """
        if self._guess_done:
            raise CheatingException("Attackers can only guess once")
        self._guess_done = True
        return guess == self._truth


class OracleProfileForUser(EncryptionOracle):
    """
    An encryption oracle that provide information about a user.
    Specifically, given an email address, it produces data.
    Then encode it as key-values, and finally encrypts it (AES ECB).

    :param rng: The source of randomness.
    """

    """Possible roles for each user."""
    _roles = ("admin", "user")

    """Every profile gets the same uid."""
    uid = 10

    def __init__(self, rng: random.Random=None):
        super().__init__()
        self._aes = blockbreaker.modes.Aes(
            blockbreaker.util.random_aes_key(rng),
            blockbreaker.modes.Mode.ECB
        )
        self._has_guessed = False

    @staticmethod
    def profile_for(mail: str) -> str:
        """
        Build the profile for a user.
        The role will always be user.

        :param mail: The email of the users. Meta characters "&" and "=" will be escaped.
        :return: The key-value encoded profile.
        """
        d = collections.OrderedDict()
        d["email"] = blockbreaker.util.escape_metas(mail, "&=")
        d["uid"] = OracleProfileForUser.uid
        d["role"] = OracleProfileForUser._roles[1]

        return blockbreaker.util.dictionary_to_kv(d)

    def encrypt(self, mail: bytes) -> bytes:
        """
        Build a profile from the mail, encode it and encrypt it by using AES ECB.
        Then return it.

        :param mail: The mail whose profile must be created.
        """
        profile = OracleProfileForUser.profile_for(mail.decode("latin-1"))
        return self._aes.encrypt(profile.encode("latin-1"))

    def guess(self, guess: bytes) -> bool:
        """
        Check whether the attacker has forged an admin user.

        :param guess: An encoded and encrypted user profile.
        :raise CheatingException: If called more than once.
        :return: True on admin user forging.
        """
        if self._has_guessed:
            raise CheatingException("Attacker can only guess once!")
        self._has_guessed = True

        try:
            encoded_profile = self._aes.decrypt(guess).decode("latin-1")
        except blockbreaker.blocks.InvalidPaddingException:
            return False

        profile = blockbreaker.util.key_value_parsing(encoded_profile)
        return profile.get("role") == OracleProfileForUser._roles[0]


class OracleBitflipping(EncryptionOracle):
    """
    An encryption oracle that takes an arbitrary string,
    prepends it with:
        "comment1=cooking%20MCs;userdata="
    And appends to the result the string:
        ";comment2=%20like%20a%20pound%20of%20bacon"

    Before processing the string it escapes the meta characters
    "=" and ";".

    The attacker's goal is to forge a string such that,
    once decrypted, it contains ";admin=true;"

    :param rng: The source of randomness.
    """

    admin_identifier = b";admin=true;"

    def __init__(self, rng: random.Random=None):
        super().__init__()

        """
        This is a consistent AES key (and IV).
        They're the same for the whole oracle lifetime,
        but they're hidden from anyone (kinda)
        """
        self._aes = blockbreaker.modes.Aes(
            blockbreaker.util.random_aes_key(rng),
            blockbreaker.modes.Mode.CBC
        )
        self._iv = blockbreaker.modes.Iv(blockbreaker.util.random_bytes(16, rng))

        """
        The string prefix.
        """
        self._prefix = b"comment1=cooking%20MCs;userdata="

        """
        The string suffix.
        """
        self._suffix = b";comment2=%20like%20a%20pound%20of%20bacon"

        """
        The meta-characters to be escaped.
        """
        self._meta = "=;"

        self._guess = False

    def encrypt(self, input_string: bytes) -> bytes:
        """
        Escape the meta-character from the input string.
        Append the prefix and the suffix.
        Encrypt it, and return it to the caller.

        :param input_string: The input string.
        """
        input_string = blockbreaker.util.escape_metas(
            input_string.decode("latin-1"), self._meta
        ).encode("latin-1")

        return self._aes.encrypt(
            self._prefix + input_string + self._suffix,
            self._iv
        )

    def is_admin(self, ciphertext: bytes) -> bool:
        """
        Decrypt the ciphertext and look for the admin marker.

        :param ciphertext: An encrypted user data string.
        :return: True if the plaintext contains ";admin=true;"
        """
        try:
            payload = self._aes.decrypt(ciphertext, self._iv)
        except blockbreaker.blocks.InvalidPaddingException:
            return False
        return OracleBitflipping.admin_identifier in payload

    def guess(self, guess: bytes) -> bool:
        """
        Check whether the attacker has forged an admin user.

        :param guess: An encoded and encrypted user profile.
        :raise CheatingException: If called more than once.
        :return: True on admin user forging.
        """
        if self._guess:
            raise CheatingException("Attackers can only guess once!")
        self._guess = True

        return self.is_admin(guess)


class OracleByteAtATimeEcb(EncryptionOracle):
    """
    An encryption oracle that encrypts each block with the
    same fixed key.
    Before encryption, he appends to the input a constant string,
    unknown to the caller.
    The attacker's goal are:
        - guess the block size of encryption, as used by the oracle (16)
        - guess the AES encryption mode (ECB)
        - discover the unknown fixed string, one byte at a time.

    :param prefix: A fixed string prepended to the attacker's input.
    :param suffix: The unknown string (defaults to the Rollin' lyrics).
    :param rng: The source of randomness.
    """

    unknown_string = base64.b64decode(
        b"""Um9sbGluJyBpbiBteSA1LjAKV2l0a
        CBteSByYWctdG9wIGRvd24gc28gbXkgaGFpciBjYW4gYmxvdwpUaGUgZ
        2lybGllcyBvbiBzdGFuZGJ5IHdhdmluZyBqdXN0IHRvIHNheSBoaQpEa
        WQgeW91IHN0b3A/IE5vLCBJIGp1c3QgZHJvdmUgYnkK"""
    )

    def __init__(
            self,
            prefix: bytes=b"",
            suffix: bytes=None,
            rng: random.Random=None
    ):
        super().__init__()
        """
        This is a consistent AES key.
        It is the same for the whole oracle lifetime,
        but it's hidden from anyone (kinda)
        """
        self._aes = blockbreaker.modes.Aes(
            blockbreaker.util.random_aes_key(rng),
            blockbreaker.modes.Mode.ECB
        )
        """
        And this is the unknown string, that the attacker has to find.
        """
        self._unknown_string = OracleByteAtATimeEcb.unknown_string \
            if suffix is None else suffix
        self._prefix = prefix

        self._guess = False

    def guess(self, guess: bytes) -> bool:
        """
        Compare the attacker's guess against the unknown string.

        :param guess: The attacker's guess.
        :raise CheatingException: If called more than once.
        :return: True if the guess is correct.
        """
        if self._guess:
            raise CheatingException("Attackers can only guess once.")
        self._guess = True

        return guess == self._unknown_string

    def encrypt(self, b: bytes) -> bytes:
        """
        Return an encryption of prefix || b || unknown string.
        :param b: The buffer to be encrypted.
        :return: The ECB encryption.
        """
        return self._aes.encrypt(
            self._prefix + b + self._unknown_string
        )


class OracleHarderByteAtATimeEcb(OracleByteAtATimeEcb):
    """
    Same as OracleByteAtATimeEcb, but prefix the user string with
    a fixed, randomly generated one.

    :param rng: The source of randomness.
    """

    def __init__(self, rng: random.Random=None):
        super().__init__(
            prefix=blockbreaker.util.random_bytes_random_range(1, 48, rng),
            rng=rng
        )


class OracleCBCPadding(PaddingOracle):
    """
    Choose at random between one of the possible strings.
    CBC encrypt it with a fixed and random AES key and IV.
    Return to the caller the ciphertext and the IV.

    Furthermore, provide a function that takes a ciphertext,
    decrypts it and returns True whether the acquired plaintext
    has a valid padding.

    The attacker's goal is to discover the encrypted string.

    :param strings: The base64 encoded candidate strings.
    :param rng: The source of randomness.
    """

    strings = (
        b"MDAwMDAwTm93IHRoYXQgdGhlIHBhcnR5IGlzIGp1bXBpbmc=",
        b"MDAwMDAxV2l0aCB0aGUgYmFzcyBraWNrZWQgaW4gYW5kIHRoZSBWZWdhJ3MgYXJlIHB1bXBpbic=",
        b"MDAwMDAyUXVpY2sgdG8gdGhlIHBvaW50LCB0byB0aGUgcG9pbnQsIG5vIGZha2luZw==",
        b"MDAwMDAzQ29va2luZyBNQydzIGxpa2UgYSBwb3VuZCBvZiBiYWNvbg==",
        b"MDAwMDA0QnVybmluZyAnZW0sIGlmIHlvdSBhaW4ndCBxdWljayBhbmQgbmltYmxl",
        b"MDAwMDA1SSBnbyBjcmF6eSB3aGVuIEkgaGVhciBhIGN5bWJhbA==",
        b"MDAwMDA2QW5kIGEgaGlnaCBoYXQgd2l0aCBhIHNvdXBlZCB1cCB0ZW1wbw==",
        b"MDAwMDA3SSdtIG9uIGEgcm9sbCwgaXQncyB0aW1lIHRvIGdvIHNvbG8=",
        b"MDAwMDA4b2xsaW4nIGluIG15IGZpdmUgcG9pbnQgb2g=",
        b"MDAwMDA5aXRoIG15IHJhZy10b3AgZG93biBzbyBteSBoYWlyIGNhbiBibG93",
    )

    def __init__(self, strings: tuple=None, rng: random.Random=None):
        """
        Init the oracle.
        Generate a random AES key and IV and pick at random
        one of the possible strings.
        """
        super().__init__()
        rng = rng or random.SystemRandom()

        self._aes = blockbreaker.modes.Aes(
            blockbreaker.util.random_aes_key(rng),
            blockbreaker.modes.Mode.CBC
        )
        self._iv = blockbreaker.util.random_bytes(16, rng)
        self._hidden_string = base64.b64decode(
            rng.choice(strings or OracleCBCPadding.strings)
        )

        self._guessed = False

    def guess(self, guess: bytes) -> bool:
        """
        Check whether the bytes given by the attacker match
        our hidden string.
        :param guess: The attacker's guess
        """
        if self._guessed:
            raise CheatingException("Attackers can only guess once.")
        self._guessed = True

        return guess == self._hidden_string

    def challenge(self) -> tuple:
        """
        Return to the caller a CBC encryption of the hidden string.
        :return The encryption and the IV.
        """
        ciphertext = self._aes.encrypt(
            self._hidden_string,
            blockbreaker.modes.Iv(self._iv)
        )
        return ciphertext, self._iv

    def decrypt_and_check(self, ciphertext: bytes, iv: bytes) -> bool:
        """
        Check whether the given bytes are correctly padded,
        once decrypted by using the given IV.
        Malformed ciphertexts are simply reported as badly padded.

        :param ciphertext: The bytes to be checked.
        :param iv: The IV to be used.
        """
        block_size = blockbreaker.blocks.BLOCK_SIZE
        if len(iv) != block_size or not ciphertext or len(ciphertext) % block_size:
            return False

        try:
            self._aes.decrypt(ciphertext, blockbreaker.modes.Iv(bytes(iv)))
        except blockbreaker.blocks.InvalidPaddingException:
            return False
        else:
            return True
