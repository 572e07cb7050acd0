"""
File size helpers for cataloged resources.
"""

import os
import logging
from typing import Tuple


logger = logging.getLogger(__name__)


def folder_size_at_path(path: str) -> int:
    """
    Get the total size of the regular files below a directory.

    Symbolic links are not followed. Unreadable entries count as zero bytes.
    """
    total = 0

    def _on_error(error: OSError) -> None:
        logger.debug(f"Cannot list {error.filename}: {error}")

    for current_dir, _, files in os.walk(path, onerror=_on_error):
        for filename in files:
            file_path = os.path.join(current_dir, filename)
            try:
                if not os.path.islink(file_path):
                    total += os.path.getsize(file_path)
            except OSError as e:
                logger.debug(f"Cannot stat {file_path}: {e}")
    return total


def file_size_at_path(path: str) -> Tuple[int, bool]:
    """
    Get the size of a file or directory.

    Args:
        path: File or directory path

    Returns:
        Tuple of (size in bytes, is_directory). Directories report the
        recursive total of their contents.

    Raises:
        OSError: If the path cannot be stat'd
    """
    if os.path.isdir(path):
        return folder_size_at_path(path), True
    return os.stat(path).st_size, False
