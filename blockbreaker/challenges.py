#!/usr/bin/env python
# encoding: utf-8

"""The main file."""

import blockbreaker.util
import blockbreaker.stats
import blockbreaker.blocks
import blockbreaker.modes
import blockbreaker.oracle
import blockbreaker.attacker

import base64
import argparse
import io
import sys
import contextlib
import functools
import colorama

__author__ = "aldur"


def challenge(challenge_f):
    """
    Decorator for challenges function.

    :param challenge_f: The challenge function.
    :return: The decorated function.
    """

    class Tee(io.StringIO):
        """
        Print standard output as usual,
        and at the same time keep track of what
        is being printed.
        """

        def write(self, b: str):
            """
            Write the buffer on the standard output
            before calling the super implementation.

            :param b: The buffer to be written.
            """
            sys.__stdout__.write(b)
            return super().write(b)

    @functools.wraps(challenge_f)
    def decorated_challenge():
        """
        Execute the function and return to screen the result.
        """
        captured_stdout = Tee()
        print("Executing challenge: {}.\n".format(challenge_f.__name__))

        with contextlib.redirect_stdout(captured_stdout):
            result = challenge_f()

        v = captured_stdout.getvalue()
        if v and not v.endswith("\n\n"):
            print("")

        if result is not None:
            print(
                "{}Challenge {}.{}".format(
                    colorama.Fore.GREEN if result else colorama.Fore.RED,
                    "completed" if result else "failed",
                    colorama.Fore.RESET
                ))
        else:
            print("Challenge did not require explicit completion, you're good to go.")

        return result

    return decorated_challenge


@challenge
def six():
    """http://cryptopals.com/sets/1/challenges/6/"""
    a, b = b"this is a test", b"wokka wokka!!!"
    distance = blockbreaker.stats.hamming_d(a, b)
    print("Hamming distance between {} and {}: {}.".format(a, b, distance))
    return distance == 37


@challenge
def nine():
    """http://cryptopals.com/sets/2/challenges/9/"""
    b = "YELLOW SUBMARINE".encode("ascii")
    size = 20
    padding = blockbreaker.blocks.pkcs_7(b, size)
    print("PKCS padding: {}".format(padding))
    return padding == b'YELLOW SUBMARINE\x04\x04\x04\x04'


@challenge
def ten():
    """http://cryptopals.com/sets/2/challenges/10/"""
    key = "YELLOW SUBMARINE".encode("ascii")
    iv = bytes(blockbreaker.blocks.BLOCK_SIZE)
    b = b"I'm back and I'm ringin' the bell"

    aes = blockbreaker.modes.Aes(key, blockbreaker.modes.Mode.CBC)
    ciphertext = aes.encrypt(b, blockbreaker.modes.Iv(iv))
    print("Encrypted: {}".format(ciphertext.hex()))

    plaintext = aes.decrypt(ciphertext, blockbreaker.modes.Iv(iv))
    print("Decrypted: {}".format(plaintext.decode("ascii")))
    return plaintext == b


@challenge
def eleven():
    """http://cryptopals.com/sets/2/challenges/11/"""
    oracle = blockbreaker.oracle.OracleAesEcbCbc()
    attacker = blockbreaker.attacker.AttackerAesEcbCbc(oracle)

    result = attacker.attack()
    print(
        "Guess - Oracle used: {}.".format(
            "ECB" if attacker.is_ecb else "CBC"
        )
    )
    print(
        "Guess is {}.".format(
            "correct" if result else "wrong"
        )
    )
    return result


@challenge
def twelve():
    """http://cryptopals.com/sets/2/challenges/12/"""
    oracle = blockbreaker.oracle.OracleByteAtATimeEcb()
    attacker = blockbreaker.attacker.AttackerByteAtATimeEcb(oracle)
    result = attacker.attack()
    print("Block size: {}.".format(attacker.block_size))
    print("Guessed hidden string is:\n{}".format(
        attacker.unhidden_string.decode("ascii")
    ))
    return result


@challenge
def thirteen():
    """http://cryptopals.com/sets/2/challenges/13/"""
    oracle = blockbreaker.oracle.OracleProfileForUser()
    attacker = blockbreaker.attacker.AttackerProfileForUser(oracle)
    return attacker.attack()


@challenge
def fourteen():
    """http://cryptopals.com/sets/2/challenges/14/"""
    oracle = blockbreaker.oracle.OracleHarderByteAtATimeEcb()
    attacker = blockbreaker.attacker.AttackerHarderByteAtATimeEcb(oracle)

    result = attacker.attack()
    print("Prefix len: {}.".format(attacker.prefix_len))
    print("Guessed hidden string is:\n{}".format(
        attacker.unhidden_string.decode("ascii")
    ))
    return result


@challenge
def fifteen():
    """http://cryptopals.com/sets/2/challenges/15/"""
    pads = (
        (b"ICE ICE BABY\x04\x04\x04\x04", True),
        (b"ICE ICE BABY\x05\x05\x05\x05", False),
        (b"ICE ICE BABY\x01\x02\x03\x04", False),
    )

    result = True
    for padded, valid in pads:
        try:
            blockbreaker.blocks.un_pkcs_7(padded, 16)
            print("Padded buffer {} is valid.".format(padded))
            result &= valid
        except blockbreaker.blocks.InvalidPaddingException:
            print("Padded buffer {} is invalid.".format(padded))
            result &= not valid
    return result


@challenge
def sixteen():
    """http://cryptopals.com/sets/2/challenges/16/"""
    oracle = blockbreaker.oracle.OracleBitflipping()
    attacker = blockbreaker.attacker.AttackerBitFlippingCBC(oracle)

    result = attacker.attack()
    return result


@challenge
def seventeen():
    """http://cryptopals.com/sets/3/challenges/17/"""
    oracle = blockbreaker.oracle.OracleCBCPadding()
    attacker = blockbreaker.attacker.AttackerCBCPadding(oracle, workers=4)

    result = attacker.attack()
    print("Guessed hidden string is:\n{}".format(
        attacker.discovered_string.decode("ascii")
    ))
    return result


@challenge
def eighteen():
    """http://cryptopals.com/sets/3/challenges/18/"""
    key = "YELLOW SUBMARINE".encode("ascii")
    b = base64.b64decode(
        """
        L77na/nrFsKvynd6HzOoG7GHTLXsTVu9qvY/
        2syLXzhPweyyMTJULu/6/kXX0KSvoOLSFQ==
        """
    )
    aes = blockbreaker.modes.Aes(key, blockbreaker.modes.Mode.CTR)
    plaintext = aes.transform(b, blockbreaker.modes.Nonce(0))
    print("The decryption produced: \n{}.".format(
        plaintext.decode("ascii")
    ))
    return plaintext == b"Yo, VIP Let's kick it Ice, Ice, baby Ice, Ice, baby "


def main():
    """
    Read the argument from the command line,
    and execute the related challenge.
    """
    _num2words = {
        6: 'six', 9: 'nine', 10: 'ten',
        11: 'eleven', 12: 'twelve', 13: 'thirteen', 14: 'fourteen',
        15: 'fifteen', 16: 'sixteen', 17: 'seventeen', 18: 'eighteen',
    }

    problem_meta_var = "problem_number"

    def _create_parser() -> argparse.ArgumentParser:
        """
        Create the command line argument parser.

        :return: The command line argument parser for this module.
        """
        parser = argparse.ArgumentParser(
            description='Block cipher modes attacks runner.'
        )

        parser.add_argument(
            problem_meta_var,
            metavar=problem_meta_var,
            type=int,
            choices=sorted(_num2words),
            help='the number of the problem to be solved'
        )

        return parser

    colorama.init()

    command_line_parser = _create_parser()
    args = vars(command_line_parser.parse_args())

    problem = globals()[_num2words[args[problem_meta_var]]]
    assert callable(problem)

    sys.exit(0 if problem() is not False else 1)


if __name__ == '__main__':
    main()
