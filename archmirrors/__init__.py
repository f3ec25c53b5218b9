#!/usr/bin/env python3

"""
Arch Linux Mirror List Fetcher

Downloads the Arch Linux mirror list filtered by protocol, IP version
and country, uncomments the server entries and writes it to a local file.
"""

__version__ = "1.0.0"
__author__ = "arch-mirrorlist contributors"
