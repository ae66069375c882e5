#!/usr/bin/env python
# encoding: utf-8

"""Block cipher modes of operation, and the oracle attacks that break them."""

__author__ = "aldur"
