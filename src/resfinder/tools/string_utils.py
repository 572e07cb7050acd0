"""
Resource name helpers.

Catalog keys and usage strings go through the same normalization so that
`icon@2x.png` on disk and `"icon"` in code end up as the same name.
"""

import os
import re
from pathlib import Path
from typing import Iterable, Optional


IMAGE_SUFFIXES = frozenset([
    "png", "jpg", "jpeg", "gif", "bmp", "webp", "pdf", "svg",
    "tif", "tiff", "heic", "icns",
])

BUNDLE_SUFFIXES = frozenset([
    "imageset", "appiconset", "launchimage", "iconset", "bundle",
])

# @2x, @3x, @1.5x scale and ~ipad / ~iphone device qualifiers
QUALIFIER_RE = re.compile(r"(?:@\d+(?:\.\d+)?x)?(?:~(?:ipad|iphone))?$", re.IGNORECASE)


def normalize_suffix(suffix: str) -> str:
    """Lowercase a suffix and drop its leading dot."""
    return suffix.strip().lstrip('.').lower()


def get_suffix(name: str) -> str:
    """Get the normalized extension of a name, or '' when it has none."""
    _, ext = os.path.splitext(name)
    return normalize_suffix(ext)


def has_suffix(name: str, suffixes: Iterable[str]) -> bool:
    """Check whether a file name ends with one of the given suffixes."""
    suffix = get_suffix(name)
    if not suffix:
        return False
    return suffix in {normalize_suffix(s) for s in suffixes}


def is_image_type(name: str) -> bool:
    """Check whether a name has a known image extension."""
    return get_suffix(name) in IMAGE_SUFFIXES


def remove_resource_suffix(name: str, suffixes: Optional[Iterable[str]] = None) -> str:
    """
    Strip the resource extension and scale/device qualifiers from a name.

    Args:
        name: File name or usage string
        suffixes: Accepted resource suffixes. When omitted, known image and
            bundle types are stripped.

    Returns:
        The normalized resource name. `icon@2x.png` -> `icon`,
        `icon.imageset` -> `icon`, `readme.txt` -> `readme.txt`.
    """
    if suffixes is None:
        accepted = IMAGE_SUFFIXES | BUNDLE_SUFFIXES
    else:
        accepted = {normalize_suffix(s) for s in suffixes}

    key = name
    stem, ext = os.path.splitext(name)
    if ext and stem and normalize_suffix(ext) in accepted:
        key = stem

    stripped = QUALIFIER_RE.sub('', key, count=1)
    return stripped or key


def relative_path(full_path: str, project_path: str) -> str:
    """
    Get a path relative to the project root.

    Paths outside the project (reached through a symlink) are returned unchanged.
    """
    try:
        return str(Path(full_path).relative_to(project_path))
    except ValueError:
        return full_path
