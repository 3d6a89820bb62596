"""Bucket name generation and validation."""

from __future__ import annotations

import hashlib
import ipaddress
import re
import secrets
from typing import Callable

from .constants import (
    BUCKET_NAME_MAX_LENGTH,
    BUCKET_NAME_MIN_LENGTH,
    BUCKET_SUFFIX_ALPHABET,
    BUCKET_SUFFIX_LENGTH,
)
from .exceptions import InvalidBucketName

SuffixSource = Callable[[int], str]

_BUCKET_NAME_RE = re.compile(r"^[a-z0-9][a-z0-9.-]*[a-z0-9]$")
_INVALID_CHARS_RE = re.compile(r"[^a-z0-9.-]+")
_SEPARATOR_RUN_RE = re.compile(r"[.-]{2,}")
_RESERVED_PREFIXES = ("xn--", "sthree-")
_RESERVED_SUFFIXES = ("-s3alias", "--ol-s3")


def random_suffix(length: int) -> str:
    """Draw ``length`` characters from the generate-name alphabet."""
    return "".join(secrets.choice(BUCKET_SUFFIX_ALPHABET) for _ in range(length))


def identity_suffix(identity: str, length: int) -> str:
    """Map ``identity`` onto ``length`` characters of the generate-name alphabet."""
    digest = hashlib.sha256(identity.encode("utf-8")).digest()
    return "".join(BUCKET_SUFFIX_ALPHABET[b % len(BUCKET_SUFFIX_ALPHABET)] for b in digest[:length])


def normalize_prefix(prefix: str) -> str:
    """Turn an arbitrary prefix into one that can start an S3 bucket name."""
    normalized = _INVALID_CHARS_RE.sub("-", (prefix or "").lower())
    # Collapse runs like "a..b" or "a-.b" to a single hyphen
    normalized = _SEPARATOR_RUN_RE.sub("-", normalized)
    normalized = normalized.lstrip(".-")
    for reserved in _RESERVED_PREFIXES:
        if normalized.startswith(reserved):
            normalized = "b-" + normalized[len(reserved):].lstrip(".-")
    return normalized


def validate_bucket_name(name: str) -> str:
    """Check ``name`` against the S3 bucket naming rules.

    Returns:
        The name, unchanged

    Raises:
        InvalidBucketName: If any rule is violated
    """
    if not BUCKET_NAME_MIN_LENGTH <= len(name) <= BUCKET_NAME_MAX_LENGTH:
        raise InvalidBucketName(
            f"bucket name {name!r} must be between {BUCKET_NAME_MIN_LENGTH} "
            f"and {BUCKET_NAME_MAX_LENGTH} characters"
        )
    if not _BUCKET_NAME_RE.match(name):
        raise InvalidBucketName(
            f"bucket name {name!r} may only contain lowercase letters, digits, '.' and '-', "
            "and must start and end with a letter or digit"
        )
    if ".." in name or ".-" in name or "-." in name:
        raise InvalidBucketName(f"bucket name {name!r} has adjacent separators")
    if name.startswith(_RESERVED_PREFIXES) or name.endswith(_RESERVED_SUFFIXES):
        raise InvalidBucketName(f"bucket name {name!r} uses a reserved prefix or suffix")
    try:
        ipaddress.IPv4Address(name)
    except ValueError:
        return name
    raise InvalidBucketName(f"bucket name {name!r} must not be formatted as an IP address")


class BucketNameGenerator:
    """Derives bucket names from a user supplied prefix.

    Claims with an identity get a suffix derived from it, so every
    delivery of the same claim yields the same name. The suffix source is
    injectable so tests can make generation deterministic.
    """

    def __init__(
        self,
        suffix_source: SuffixSource | None = None,
        suffix_length: int = BUCKET_SUFFIX_LENGTH,
    ):
        self.suffix_source = suffix_source
        self.suffix_length = suffix_length

    def generate(self, prefix: str = "", identity: str = "") -> str:
        """Append a suffix to the normalized ``prefix``.

        Args:
            prefix: Requested name prefix
            identity: Stable claim identity, usually its UID; random when empty

        Raises:
            InvalidBucketName: If the suffix source yields an unusable suffix
        """
        base = normalize_prefix(prefix)[: BUCKET_NAME_MAX_LENGTH - self.suffix_length]
        if self.suffix_source is not None:
            suffix = self.suffix_source(self.suffix_length)
        elif identity:
            suffix = identity_suffix(identity, self.suffix_length)
        else:
            suffix = random_suffix(self.suffix_length)
        return validate_bucket_name(f"{base}{suffix}")
