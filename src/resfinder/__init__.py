"""
Unused Resource Finder - Core Package

Finds the image resources of an application project that its source code
never references, including resources loaded through format-string names.
"""

__version__ = "0.1.0"
__author__ = "Unused Resource Finder Team"
