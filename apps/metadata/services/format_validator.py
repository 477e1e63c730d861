"""
apps.metadata.services.format_validator
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Checks that a raw metadata value is syntactically valid for its declared
:class:`~apps.metadata.domain.MetadataFormat`.

This module has zero view, serializer or ORM imports; Django's stand-alone
e-mail validator checks the address part of MAIL values.

Rules
-----
=========  ==========================================================
Format     Accepted values
=========  ==========================================================
STRING     anything
BOOLEAN    anything (loose parse, never rejects)
URL        absolute URL: scheme plus authority or path
MAIL       one address, optionally in ``Name <user@host>`` form
DATE       ``<year>-<minute>-<day>`` (see :func:`_check_date`)
NUMERIC    anything ``float()`` accepts
=========  ==========================================================

Blank values (``None``, ``""``, whitespace) are valid for every format and
are not inspected at all.

Public API
----------
check_format(format, value)   – raises FormatError on failure
normalize_value(format, value) – storage form of a valid value
"""
from __future__ import annotations

import re
from typing import Callable
from urllib.parse import urlsplit

import structlog
from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import EmailValidator, validate_email

from apps.metadata.domain import MetadataFormat
from common.exceptions import FormatError

logger = structlog.get_logger(__name__)

#: Stored length of DATE values.
DATE_LENGTH = 10

#: Legacy ``YYYY-mm-dd`` layout: year, *minute* (not month), day of month.
#: Only the leading part has to match; anything after the day is ignored.
_DATE_PATTERN = re.compile(r"^(?P<year>\d+)-(?P<minute>\d+)-(?P<day>\d+)")

_email_validator = EmailValidator()

#: RFC 3986 scheme.
_SCHEME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*$")

#: Schemes whose URLs must name a host.
_NETWORK_SCHEMES = frozenset({"http", "https", "ftp", "ftps", "ws", "wss"})

#: Whole MAIL value: a bare address, or a display name followed by <address>.
_MAIL_PATTERN = re.compile(
    r"^(?:(?P<display>\"[^\"]*\"|[^\",;<>@]*?)\s*<(?P<addr>[^<>\s]+)>|(?P<bare>[^<>\s]+))$"
)

#: Single-label domain such as ``intranet``.
_HOST_LABEL_PATTERN = re.compile(r"^[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?$")


# ---------------------------------------------------------------------------
# Per-format rules.  Each returns True when the value is acceptable.
# ---------------------------------------------------------------------------

def _accept(value: str) -> bool:
    return True


def _check_url(value: str) -> bool:
    """
    Absolute URL: an RFC 3986 scheme followed by an authority or a path.

    Network schemes (http, https, ftp, ...) must name a host; any host name
    is accepted, including single labels such as ``intranet``.
    """
    if any(char.isspace() for char in value):
        return False
    try:
        parts = urlsplit(value)
        parts.port  # noqa: B018 - raises ValueError on a malformed port
    except ValueError:
        return False
    if not _SCHEME_PATTERN.match(parts.scheme):
        return False
    if parts.scheme.lower() in _NETWORK_SCHEMES:
        return bool(parts.hostname)
    return bool(parts.netloc or parts.path)


def _is_address(address: str) -> bool:
    try:
        validate_email(address)
    except DjangoValidationError:
        # validate_email wants a dotted domain; single-label hosts are valid too.
        local_part, _, domain = address.rpartition("@")
        return bool(
            _email_validator.user_regex.match(local_part)
            and _HOST_LABEL_PATTERN.match(domain)
        )
    return True


def _check_mail(value: str) -> bool:
    """
    The whole value must be one address, bare or as ``display <address>``.

    Nothing may follow the address, and lists (``,`` or ``;``) are rejected.
    """
    match = _MAIL_PATTERN.match(value.strip())
    if match is None:
        return False
    return _is_address(match["addr"] or match["bare"])


def _check_date(value: str) -> bool:
    """
    Strict parse of the ``YYYY-mm-dd`` pattern as it was historically written.

    ``mm`` is the minute-of-hour token, so the middle field accepts 0-59
    rather than a calendar month.  Day must be 1-31 and year at least 1.
    """
    match = _DATE_PATTERN.match(value)
    if match is None:
        return False
    year = int(match["year"])
    minute = int(match["minute"])
    day = int(match["day"])
    return year >= 1 and 0 <= minute <= 59 and 1 <= day <= 31


def _check_numeric(value: str) -> bool:
    try:
        float(value)
    except ValueError:
        return False
    return True


#: Exactly one rule per format.  A new MetadataFormat member must be added
#: here, otherwise check_format raises KeyError for it.
_FORMAT_CHECKERS: dict[MetadataFormat, Callable[[str], bool]] = {
    MetadataFormat.STRING: _accept,
    MetadataFormat.BOOLEAN: _accept,
    MetadataFormat.URL: _check_url,
    MetadataFormat.MAIL: _check_mail,
    MetadataFormat.DATE: _check_date,
    MetadataFormat.NUMERIC: _check_numeric,
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def check_format(format: MetadataFormat, value: str | None) -> None:  # noqa: A002
    """
    Validate *value* against *format*.

    Args:
        format: Declared format of the metadata entry.
        value: Raw value; blank values are always accepted.

    Raises:
        FormatError: If *value* is not blank and fails the format's rule.
    """
    if value is None or not value.strip():
        return

    checker = _FORMAT_CHECKERS[MetadataFormat(format)]
    if not checker(value):
        logger.warning("metadata_format_invalid", format=str(format), value=value)
        raise FormatError(str(format), value)


def normalize_value(format: MetadataFormat, value: str | None) -> str | None:  # noqa: A002
    """Return the storage form of an already validated value."""
    if value is not None and format == MetadataFormat.DATE:
        return value[:DATE_LENGTH]
    return value
