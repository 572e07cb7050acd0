"""
Similar resource name matching.

A resource such as `icon_tag_1.png` is often loaded through a format string,
`[NSString stringWithFormat:@"icon_tag_%d", i]`, or a concatenation,
`"icon_tag_" + i`, so its exact name never appears in the source. The
matcher takes regular expressions that mark the variable part of a name
and checks whether the constant remainder shows up in the usage strings.
"""

import re
from typing import Iterable, List, Optional, Pattern, Tuple, Union
import logging

from ..models.resources import UsageStringSet


logger = logging.getLogger(__name__)

# Placeholders tried by direct set lookup before scanning stored templates
TEMPLATE_PLACEHOLDERS = (
    "%d", "%i", "%u", "%ld", "%lu", "%lld", "%llu", "%zd", "%zu",
    "%@", "%s", "%02d", "%03d", "{}", "{0}",
)


def compile_patterns(patterns: Iterable[Union[str, Pattern]]) -> List[Pattern]:
    """
    Compile similar-name patterns, leaving compiled ones as they are.

    Raises:
        re.error: If a pattern is not a valid regular expression
    """
    compiled = []
    for pattern in patterns:
        if isinstance(pattern, str):
            pattern = re.compile(pattern)
        compiled.append(pattern)
    return compiled


def split_variable_part(name: str, pattern: Pattern) -> Optional[Tuple[str, str]]:
    """
    Split a resource name around the variable part marked by a pattern.

    The variable part is the `var` group when the pattern defines one, else
    group 1 when it has groups, else the whole match. The pattern has to
    match the name exactly once.

    Returns:
        (prefix, suffix), or None when the pattern does not apply
    """
    matches = list(pattern.finditer(name))
    if len(matches) != 1:
        return None

    match = matches[0]
    if 'var' in pattern.groupindex:
        group = 'var'
    elif pattern.groups:
        group = 1
    else:
        group = 0

    start, end = match.span(group)
    if start < 0 or start == end:
        return None

    prefix, suffix = name[:start], name[end:]
    if not prefix and not suffix:
        return None
    return prefix, suffix


class SimilarNameMatcher:
    """
    Checks whether a resource is referenced through a name template.

    Patterns are tried in order and the first hit wins. The matcher holds no
    state besides its patterns and never modifies the usage strings.
    """

    def __init__(self, patterns: Iterable[Union[str, Pattern]]):
        self.patterns = compile_patterns(patterns)

    def matches(self, name: str, usage: UsageStringSet) -> bool:
        """
        Check a resource name against the usage strings.

        Args:
            name: Normalized resource name, e.g. `icon_tag_1`
            usage: Collected usage strings

        Returns:
            True if any pattern yields a template or concatenation found in `usage`
        """
        for pattern in self.patterns:
            parts = split_variable_part(name, pattern)
            if parts is None:
                continue
            prefix, suffix = parts
            if self._has_template(name, prefix, suffix, usage) or self._has_concatenation(prefix, suffix, usage):
                logger.debug(f"'{name}' matched similar-name pattern {pattern.pattern!r}")
                return True
        return False

    def _has_template(self, name: str, prefix: str, suffix: str, usage: UsageStringSet) -> bool:
        for placeholder in TEMPLATE_PLACEHOLDERS:
            if f"{prefix}{placeholder}{suffix}" in usage:
                return True

        if not usage.template_count:
            return False
        for template in usage.iter_templates():
            if template.fullmatch(name):
                return True
        return False

    def _has_concatenation(self, prefix: str, suffix: str, usage: UsageStringSet) -> bool:
        if prefix and suffix:
            return prefix in usage and suffix in usage
        if prefix:
            return prefix in usage
        return suffix in usage
