"""
Version Constraint Matching

Decides whether a plugin version satisfies the constraint another plugin
declares for it. Supported constraint forms:

- empty, None or "*": any version
- "1.0 > *" / "1.0 > 2.0": inclusive range, either bound may be "*"
- PEP 440 specifier sets: ">=1.0", ">=1.0,<2.0", "~=1.2", "==1.2.*"
- anything else: exact version match
"""

import logging
import re
from typing import Optional, Tuple

from packaging.specifiers import InvalidSpecifier, SpecifierSet
from packaging.version import InvalidVersion, Version

from .exceptions import VersionConstraintError

logger = logging.getLogger(__name__)

ANY_VERSION = "*"

_SNAPSHOT_SUFFIX = re.compile(r"[-.]?snapshot$", re.IGNORECASE)
_OPERATOR_PREFIXES = ("<", ">", "=", "!", "~")


def _strip(value: str) -> str:
    return re.sub(r"\s", "", value or "")


def _clean_version(version: str) -> str:
    return _SNAPSHOT_SUFFIX.sub("", _strip(version))


def _parse(version: str) -> Optional[Version]:
    try:
        return Version(_clean_version(version))
    except InvalidVersion:
        return None


def _is_range(constraint: str) -> bool:
    return ">" in constraint and not constraint.startswith(_OPERATOR_PREFIXES)


def _split_range(constraint: str) -> Tuple[str, str]:
    lower, _, upper = constraint.partition(">")
    return lower, upper


def is_any_version(constraint: Optional[str]) -> bool:
    """Check whether a constraint accepts every version."""
    stripped = _strip(constraint or "")
    return stripped in ("", ANY_VERSION)


def validate_constraint(constraint: Optional[str]) -> None:
    """
    Check that a constraint can be evaluated.

    Args:
        constraint: Constraint string to validate

    Raises:
        VersionConstraintError: If the constraint is malformed
    """
    if is_any_version(constraint):
        return

    stripped = _strip(constraint)
    if _is_range(stripped):
        lower, upper = _split_range(stripped)
        for bound in (lower, upper):
            if not bound or (bound != ANY_VERSION and _parse(bound) is None):
                raise VersionConstraintError(f"Invalid version range '{constraint}'")
        return

    if stripped.startswith(_OPERATOR_PREFIXES):
        try:
            SpecifierSet(stripped)
        except InvalidSpecifier as e:
            raise VersionConstraintError(f"Invalid version specifier '{constraint}': {e}") from e


def is_valid_version(version: str, constraint: Optional[str]) -> bool:
    """
    Check whether a version satisfies a constraint.

    Args:
        version: The version a plugin declares
        constraint: The constraint another plugin declares for it

    Returns:
        True if the version is accepted by the constraint
    """
    if is_any_version(constraint):
        return True

    stripped = _strip(constraint)
    if _is_range(stripped):
        return _in_range(version, stripped)

    if stripped.startswith(_OPERATOR_PREFIXES):
        parsed = _parse(version)
        if parsed is None:
            logger.debug(f"Version '{version}' cannot be compared with specifier '{constraint}'")
            return False
        try:
            return SpecifierSet(stripped).contains(parsed, prereleases=True)
        except InvalidSpecifier:
            return False

    required = _parse(stripped)
    actual = _parse(version)
    if required is not None and actual is not None:
        return required == actual
    return _clean_version(version) == _clean_version(stripped)


def _in_range(version: str, constraint: str) -> bool:
    lower, upper = _split_range(constraint)
    actual = _parse(version)
    if actual is None:
        return False

    if lower != ANY_VERSION:
        low = _parse(lower)
        if low is None or actual < low:
            return False
    if upper != ANY_VERSION:
        high = _parse(upper)
        if high is None or actual > high:
            return False
    return True
