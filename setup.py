#!/usr/bin/env python
# encoding: utf-8

from setuptools import setup

setup(
    name='BlockBreaker',
    description='AES modes of operation and the oracle attacks against them.',
    version='0.1',

    license='MIT',

    author='aldur',
    author_email='adrianodl@hotmail.it',

    packages=['blockbreaker'],
    python_requires='>=3.6',
    install_requires=[
        'pycryptodome',
        'colorama'
    ],
    extras_require={
        'test': ['pytest'],
    },

    entry_points={
        'console_scripts': [
            'blockbreaker = blockbreaker.challenges:main',
        ],
    },

    zip_safe=False,
    include_package_data=True,
)
