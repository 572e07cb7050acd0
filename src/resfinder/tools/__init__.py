"""
Filesystem and naming utilities for the Unused Resource Finder.

This module contains the directory walker shared by both scanners and the
helpers that normalize resource names and measure resource sizes.
"""
