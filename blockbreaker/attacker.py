#!/usr/bin/env/ python
# encoding: utf-8

"""
The attacker tools will implemented here.
"""

import abc
import concurrent.futures
import itertools
import random

import blockbreaker.oracle
import blockbreaker.blocks
import blockbreaker.util

__author__ = 'aldur'


class Attacker(metaclass=abc.ABCMeta):
    """The generic, abstract, attacker."""

    @abc.abstractmethod
    def __init__(self, oracle: blockbreaker.oracle.Oracle):
        self.oracle = oracle

    @abc.abstractmethod
    def attack(self) -> bool:
        """
        Perform the attack against the oracle.
        The default implementation does nothing.

        :return: True if the attack was successful.
        """
        return False


def discover_prefix_alignment(
        oracle: blockbreaker.oracle.EncryptionOracle,
        block_size: int
) -> tuple:
    """
    Locate the end of the unknown string the oracle prepends
    to our input.

    First, count the leading blocks on which the encryption
    of nothing and the encryption of a single byte agree:
    those are fully covered by the prefix.
    Then, feed a growing number of zeros:
        0, 00, 000, 0000, 00000
    As long as the block after the full prefix blocks keeps changing,
    our zeros are still filling it.

    ... || prefix | 0000 || ... == ... || prefix | 0000 || 0..

    :param oracle: The encryption oracle.
    :param block_size: The block size.
    :return: The number of full prefix blocks and the number of bytes
        required to reach the next block boundary (0 if already aligned).
    """
    assert block_size > 0

    without_input = blockbreaker.blocks.split_blocks(oracle.encrypt(b""), block_size)
    with_input = blockbreaker.blocks.split_blocks(oracle.encrypt(b"\x00"), block_size)
    full_prefix_blocks = sum(
        1 for _ in itertools.takewhile(
            lambda blocks: blocks[0] == blocks[1],
            zip(without_input, with_input)
        )
    )

    block_slice = blockbreaker.blocks.bytes_in_block(block_size, full_prefix_blocks)
    ciphertexts = [
        oracle.encrypt(bytes(n))[block_slice]
        for n in range(block_size + 1)
    ]
    distance = sum(
        1 for _ in itertools.takewhile(
            lambda pair: pair[0] != pair[1],
            zip(ciphertexts, ciphertexts[1:])
        )
    )

    return full_prefix_blocks, distance % block_size


class AttackerAesEcbCbc(Attacker):
    """
    Guess whether the oracle is using ECB or CBC.

    :param oracle: An instance of OracleAesEcbCbc.
    """

    def __init__(self, oracle: blockbreaker.oracle.OracleAesEcbCbc):
        super().__init__(oracle)
        self.is_ecb = None

    def attack(self) -> bool:
        """
        Pass to the oracle something that,
        even after the random adding,
        is made of 0s in its second and third block.
        ECB is stateless, so they will be equal.
        If they're not, then it's CBC.
        """
        block_size = blockbreaker.blocks.BLOCK_SIZE
        b = bytes(block_size * 4 - 5)

        self.is_ecb = blockbreaker.blocks.detect_ecb(
            self.oracle.encrypt(b), block_size
        )
        return self.oracle.guess(self.is_ecb)


class AttackerProfileForUser(Attacker):
    """
    An admin-user forger.
    ECB encrypts equal blocks to equal blocks, wherever they are:
    we cut an "admin" block out of a profile and paste it
    in place of the role of another profile.

    :param oracle: An instance of OracleProfileForUser.
    """

    def __init__(self, oracle: blockbreaker.oracle.OracleProfileForUser):
        super().__init__(oracle)
        self.block_size = blockbreaker.blocks.BLOCK_SIZE
        self._base_user = None
        self._role = None

    def get_base_user_profile(self):
        """
        Ask the oracle for a profile of the form:
        email=...&uid=10&role= || user | padding
        As you can see, we want the role value to be isolated on the last block.
        """
        fixed = len(blockbreaker.oracle.OracleProfileForUser.profile_for(""))
        fixed -= len("user")

        email_suffix = "@foo.com"
        email_len = -fixed % self.block_size
        while email_len < len(email_suffix) + 1:
            email_len += self.block_size

        email = "a" * (email_len - len(email_suffix)) + email_suffix
        assert (len(email) + fixed) % self.block_size == 0

        self._base_user = self.oracle.encrypt(
            email.encode("ascii")
        )[:len(email) + fixed]

    def get_role_block(self):
        """
        Ask the oracle for a block of the form:
        ... || admin | padding || ...

        We can provide the oracle only emails.
        Let's build an ad-hoc trap.
        """
        fixed = len("email=")
        trap = b"a" * (self.block_size - fixed)
        trap += blockbreaker.blocks.pkcs_7(b"admin", self.block_size)

        self._role = self.oracle.encrypt(trap)[
            blockbreaker.blocks.bytes_in_block(self.block_size, 1)
        ]

    def attack(self) -> bool:
        """
        Perform the attack.
        Get the base block, add the role, and ask for result to the Oracle.
        """
        self.get_base_user_profile()
        self.get_role_block()

        return self.oracle.guess(self._base_user + self._role)


class AttackerBitFlippingCBC(Attacker):
    """
    The attacker against the Bit Flipping CBC Oracle.
    Forge a ciphertext such that, once decrypted,
    it contains ";admin=true;"

    We know for sure that the oracle escapes the meta
    characters ";" and "=".
    As a consequence, we won't send them: we'll
    manipulate the CBC cipher-text instead.

    Decryption computes P_j = D(C_j) ^ C_j-1.
    If we know that P_j is all zeros, then
    C'_j-1 = C_j-1 ^ X turns P_j into X,
    while garbling P_j-1.

    :param oracle: An instance of OracleBitflipping.
    """

    def __init__(self, oracle: blockbreaker.oracle.OracleBitflipping):
        super().__init__(oracle)
        self.block_size = blockbreaker.blocks.BLOCK_SIZE
        self.forged = b""

    def forge(self, payload: bytes) -> bytes:
        """
        Produce a ciphertext whose decryption contains payload,
        right aligned inside a block.

        :param payload: The bytes to be injected.
        :return: The forged ciphertext.
        """
        assert 0 < len(payload) <= self.block_size

        full_prefix_blocks, distance = discover_prefix_alignment(
            self.oracle, self.block_size
        )

        # Align, then two zero blocks: the first one will be sacrificed.
        cipher = bytearray(
            self.oracle.encrypt(bytes(distance + self.block_size * 2))
        )

        sacrificed_block = full_prefix_blocks + (1 if distance else 0)
        offset = (sacrificed_block + 1) * self.block_size - len(payload)
        for i, byte in enumerate(payload):
            cipher[offset + i] ^= byte

        return bytes(cipher)

    def attack(self) -> bool:
        """
        Perform the attack against the oracle.
        :return: True if the attack was successful.
        """
        self.forged = self.forge(
            blockbreaker.oracle.OracleBitflipping.admin_identifier
        )
        return self.oracle.guess(self.forged)


class AttackerByteAtATimeEcb(Attacker):
    """
    The attacker against the One Byte at a Time Ecb Oracle.
    The oracle holds an unknown string.
    The attacker's goal are:
        - guess the block size of encryption, as used by the oracle (16)
        - guess the AES encryption mode (ECB)
        - discover the unknown fixed string, one byte at a time.
    """

    def __init__(self, oracle: blockbreaker.oracle.OracleByteAtATimeEcb):
        super().__init__(oracle)
        self.block_size = -1
        self.full_prefix_blocks = 0
        self.distance = 0
        self.unhidden_string = b""

    @property
    def prefix_len(self) -> int:
        """The length of the string prefixed to our input."""
        return self.full_prefix_blocks * self.block_size + \
            (self.block_size - self.distance) % self.block_size

    def get_fill_bytes_len(self, i: int) -> int:
        """
        We want the i-th byte after the input to be the last of a block.
        i.e. i equal to 0 means we want the first byte after the input,
        and that this byte is the last of a block.

        Return the number of bytes to send to the oracle.

        ... | fill_bytes | ....i || ...

        :param i: The index of the interested byte.
        """
        assert i >= 0
        return self.distance + self.block_size - (i % self.block_size) - 1

    def get_target_block(self, i: int) -> int:
        """
        Return the index of the ciphertext block whose
        last byte is the i-th byte of the hidden string.

        :param i: The index of the interested byte.
        """
        return self.full_prefix_blocks + \
            (1 if self.distance else 0) + \
            blockbreaker.blocks.ith_byte_block(self.block_size, i)

    def discover_block_size(self) -> int:
        """
        Discover the block size used by the oracle,
        by feeding it zeros, one more at the time.
        As soon as the first n bytes of the ciphertext stop changing
        when adding one more zero, we have filled a whole block:
        n is our block size.
        Short prefixes may match by chance: one more zero confirms it.

        :return: The block size used by the oracle.
        """
        previous = self.oracle.encrypt(b"\x00")

        for n in itertools.count(1):
            current = self.oracle.encrypt(bytes(n + 1))
            if previous[:n] == current[:n] and \
                    current[:n] == self.oracle.encrypt(bytes(n + 2))[:n]:
                self.block_size = n
                return self.block_size
            previous = current

    def discover_encryption_mode(self) -> bool:
        """
        Try guessing the encryption mode of the oracle.
        As usual, finding equal blocks means that the encryption
        mode is probably stateless (ECB).

        :return: True if the oracle is using ECB.
        """
        assert self.block_size > 0, \
            "Please discover the block size before calling me!"

        b = bytes(self.block_size * 3)
        cipher = self.oracle.encrypt(b)
        return blockbreaker.blocks.any_equal_block(cipher, self.block_size)

    def discover_prefix(self):
        """
        This oracle doesn't prefix our input.
        """
        self.full_prefix_blocks, self.distance = 0, 0

    def byte_discovery(self, i: int) -> bytes:
        """
        Attack the oracle in order to know the ith
        byte of the hidden string.

        :param i: byte of interest position
        :return: The ith byte of the hidden string,
            or None if no candidate matched.
        """
        assert self.block_size > 0, \
            "Please discover the block size before calling me!"
        assert i == len(self.unhidden_string), \
            "You're missing the string prefix!"

        """
        The zeros that push the byte we want to discover
        to the end of a block.
        """
        trap = bytes(self.get_fill_bytes_len(i))

        """
        The bytes that we will be comparing.
        """
        block_slice = blockbreaker.blocks.bytes_in_block(
            self.block_size, self.get_target_block(i)
        )
        cipher = self.oracle.encrypt(trap)[block_slice]

        """
        Now we add the already unhidden string to the trap,
        and try every possible last byte.
        """
        trap += self.unhidden_string
        for c in range(256):
            c = bytes((c,))
            if self.oracle.encrypt(trap + c)[block_slice] == cipher:
                return c

        return None

    def attack(self) -> bool:
        """
        Perform the attack against the oracle.
        :return: True if the attack was successful.
        """
        self.discover_block_size()
        is_ecb = self.discover_encryption_mode()

        if not is_ecb:
            # We don't know how to do it!
            return False

        self.discover_prefix()

        for i in itertools.count():
            byte = self.byte_discovery(i)
            if byte is None:
                # The last byte was a padding one:
                # the padding has changed under our feet.
                self.unhidden_string = self.unhidden_string[:-1]
                break
            self.unhidden_string += byte

        return self.oracle.guess(self.unhidden_string)


class AttackerHarderByteAtATimeEcb(AttackerByteAtATimeEcb):
    """
    The attacker against the Harder One Byte at a Time Ecb Oracle.
    It's harder respect to One Byte at a Time because the oracle,
    before encrypting, prefix the attacker's input with a random,
    static string.
    """

    def __init__(self, oracle: blockbreaker.oracle.OracleHarderByteAtATimeEcb):
        super().__init__(oracle)

    def discover_block_size(self) -> int:
        """
        The prefix fools the comparison of the leading bytes.
        Feed the oracle a byte at the time instead:
        when the size of the cipher changes,
        we'll have found our block size!

        :return: The block size used by the oracle.
        """
        block_size = len(self.oracle.encrypt(b""))

        for i in itertools.count(1):
            t_block_size = len(self.oracle.encrypt(bytes(i)))

            if block_size != t_block_size:
                self.block_size = t_block_size - block_size
                return self.block_size

    def discover_prefix(self):
        """
        Discover where the fixed string prefix ends.
        """
        self.full_prefix_blocks, self.distance = discover_prefix_alignment(
            self.oracle, self.block_size
        )


class AttackerCBCPadding(Attacker):
    """
    The attacker against the CBC padding oracle.
    The oracle holds an unknown string.
    The attacker's goal is to discover such string.

    The oracle provides a method to check whether
    the plaintext related to a given ciphertext has been
    correctly padded.
    This is a side-channel and we'll use it.

    :param oracle: An instance of PaddingOracle.
    :param rng: The source of the random probes.
    :param workers: How many blocks to attack concurrently.
    """

    def __init__(
            self,
            oracle: blockbreaker.oracle.PaddingOracle,
            rng: random.Random=None,
            workers: int=1
    ):
        super().__init__(oracle)
        assert workers > 0

        self.rng = rng or random.Random()
        self.workers = workers
        self.block_size = blockbreaker.blocks.BLOCK_SIZE
        self.discovered_string = b""

    def _is_false_positive(self, probe: bytearray, block: bytes) -> bool:
        """
        The probe for the last byte might have been accepted
        because the plaintext ends with 0x02 0x02 (or longer)
        instead of 0x01.
        Touch the second-last byte: a real 0x01 doesn't care.

        :param probe: The accepted probe.
        :param block: The attacked block.
        :return: True if the acceptance was accidental.
        """
        altered = bytearray(probe)
        altered[-2] ^= 0xff
        return not self.oracle.decrypt_and_check(block, bytes(altered))

    def solve_block(self, previous: bytes, block: bytes) -> bytes:
        """
        Discover the plaintext of a single block,
        from the last byte to the first.

        Use a probe as the IV of the lone block.
        Fix the already discovered bytes of the probe
        so that they decrypt to the padding value we're after,
        then randomize the remaining ones until the oracle
        accepts the padding.
        The byte of interest ^ the padding ^ the same byte
        of the previous block reveals the original plaintext.

        :param previous: The previous ciphertext block (or the IV).
        :param block: The block to be decrypted.
        :return: The plaintext block.
        """
        assert len(previous) == len(block) == self.block_size

        probe = bytearray(self.block_size)
        discovered = []  # Store already discovered bytes of the block

        for n in range(self.block_size):
            padding_value = n + 1
            index = self.block_size - n - 1

            for i, plain in enumerate(discovered):
                j = index + 1 + i
                probe[j] = plain ^ previous[j] ^ padding_value

            while True:
                for j in range(index + 1):
                    probe[j] = self.rng.randrange(256)

                if not self.oracle.decrypt_and_check(block, bytes(probe)):
                    continue
                if n == 0 and self._is_false_positive(probe, block):
                    continue
                break

            discovered.insert(0, probe[index] ^ padding_value ^ previous[index])

        assert len(discovered) == self.block_size
        return bytes(discovered)

    def decrypt(self, ciphertext: bytes, iv: bytes) -> bytes:
        """
        Discover the whole (padded) plaintext of a ciphertext.
        Each block only depends on the previous ciphertext block,
        so blocks can be attacked independently.

        :param ciphertext: The ciphertext.
        :param iv: The IV used to encrypt it.
        :return: The padded plaintext.
        """
        assert len(ciphertext) % self.block_size == 0

        blocks = blockbreaker.blocks.split_blocks(ciphertext, self.block_size)
        previous = (iv,) + blocks[:-1]

        if self.workers == 1:
            return b"".join(map(self.solve_block, previous, blocks))

        with concurrent.futures.ThreadPoolExecutor(self.workers) as executor:
            return b"".join(executor.map(self.solve_block, previous, blocks))

    def attack(self) -> bool:
        """
        The oracle provides a padding check method.
        An attacker can exploit such method to discover
        the encrypted string, while ignoring the encryption key.
        """
        ciphertext, iv = self.oracle.challenge()

        self.discovered_string = blockbreaker.blocks.un_pkcs_7(
            self.decrypt(ciphertext, iv), self.block_size
        )
        return self.oracle.guess(self.discovered_string)
