# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
"""Construction of the string to sign for the S3 ``AWS`` signature.

The canonical string is laid out as::

    <HTTPMethod>\\n
    <Content-MD5>\\n
    <Content-Type>\\n
    <Date or Expires>\\n
    <x-amz-name:value>\\n ...
    <CanonicalizedResource>

Any deviation from this layout produces a signature the service will reject, so
the functions here are intentionally literal about whitespace and ordering.
"""

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from email.utils import format_datetime, parsedate_to_datetime
from typing import TypeAlias
from urllib.parse import parse_qsl

from ._http import Field
from .exceptions import MalformedDateHeaderError
from .interfaces.http import URI, Request

logger = logging.getLogger(__name__)

DEFAULT_HOST: str = "s3.amazonaws.com"
AMAZON_HEADER_PREFIX: str = "x-amz-"
INTERESTING_HEADERS: frozenset[str] = frozenset(("content-md5", "content-type", "date"))
# Always present in the string to sign, as empty lines when absent from the request.
DEFAULT_HEADERS: tuple[str, ...] = ("content-md5", "content-type")
SIGNIFICANT_SUB_RESOURCES: tuple[str, ...] = ("acl", "torrent", "logging")

Clock: TypeAlias = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)


def format_http_date(value: datetime) -> str:
    """Format a datetime as an RFC 7231 HTTP date, e.g.
    ``Tue, 27 Mar 2007 19:36:42 GMT``.

    Naive datetimes are assumed to be in UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return format_datetime(value.astimezone(UTC), usegmt=True)


def parse_http_date(value: str) -> datetime:
    """Parse an HTTP ``Date`` header value into an aware datetime.

    :raises MalformedDateHeaderError: If ``value`` isn't a valid HTTP date.
    """
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError) as e:
        raise MalformedDateHeaderError(value) from e
    if parsed.tzinfo is None:
        # RFC 2822 "-0000" dates come back naive.
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def is_interesting_header(name: str) -> bool:
    """Whether a header takes part in the string to sign."""
    name = name.lower()
    return name in INTERESTING_HEADERS or name.startswith(AMAZON_HEADER_PREFIX)


def _field_value(request: Request, name: str) -> str | None:
    if name not in request.fields:
        return None
    return request.fields[name].as_string().strip()


def ensure_required_fields(
    request: Request,
    *,
    clock: Clock = utc_now,
    default_host: str = DEFAULT_HOST,
) -> Request:
    """Fill in the ``Date`` and ``Host`` fields the signature depends on.

    This modifies ``request`` in place: a missing or blank ``Date`` is set to the
    current time from ``clock`` and a missing ``Host`` is set to ``default_host``.
    Nothing else on the request is touched. The same request is returned.
    """
    if not _field_value(request, "Date"):
        request.fields.set_field(
            Field(name="Date", values=[format_http_date(clock())])
        )
    if "Host" not in request.fields:
        request.fields.set_field(Field(name="Host", values=[default_host]))
    return request


def request_date(request: Request, *, clock: Clock = utc_now) -> datetime:
    """The time the request claims to have been made.

    Falls back to ``clock`` when the request has no ``Date``.

    :raises MalformedDateHeaderError: If the ``Date`` field can't be parsed.
    """
    if date := _field_value(request, "Date"):
        return parse_http_date(date)
    return clock()


def canonical_string(
    request: Request,
    *,
    expires: int | None = None,
    clock: Clock = utc_now,
    default_host: str = DEFAULT_HOST,
) -> str:
    """Build the string to sign for ``request``.

    ``Date`` and ``Host`` are filled in on the request first, see
    :func:`ensure_required_fields`.

    :param request: The request to derive the string from.
    :param expires: Seconds since the epoch to sign in place of the ``Date`` value.
        Only query string authentication supplies this.
    :param clock: Source of the current time for a missing ``Date``.
    :param default_host: The service host that requests default to.
    """
    ensure_required_fields(request, clock=clock, default_host=default_host)

    signing_fields = {
        field.name.lower(): field.as_string().strip()
        for field in request.fields
        if is_interesting_header(field.name)
    }
    for name in DEFAULT_HEADERS:
        signing_fields.setdefault(name, "")
    if expires is not None:
        signing_fields["date"] = str(expires)

    lines = [request.method.upper()]
    for name, value in sorted(signing_fields.items()):
        if name.startswith(AMAZON_HEADER_PREFIX):
            lines.append(f"{name}:{value}")
        else:
            lines.append(value)
    resource = canonical_path(request, default_host=default_host)
    lines.append(resource)

    # Header values are never logged.
    logger.debug("Built canonical string for %s %s", request.method, resource)
    return "\n".join(lines)


def split_path(uri: URI) -> tuple[str, str]:
    """Separate ``uri`` into its path and query, folding a query written inline
    in the path into the query component."""
    path, _, inline_query = (uri.path or "").partition("?")
    query = "&".join(q for q in (inline_query, uri.query) if q)
    return path, query


def canonical_path(request: Request, *, default_host: str = DEFAULT_HOST) -> str:
    """The canonicalized resource line of the string to sign.

    For virtual hosted requests the bucket is recovered from the ``Host`` field by
    removing ``default_host``. Of the query, only the sub-resources ``acl``,
    ``torrent`` and ``logging`` are kept, and only by name.
    """
    path, query = split_path(request.destination)
    host = _field_value(request, "Host")
    if host is None:
        host = default_host

    bucket = host.replace(default_host, "")
    if bucket.endswith("."):
        bucket = bucket[:-1]
    resource = f"/{bucket}{path}"
    if resource.startswith("//"):
        resource = resource[1:]

    for name, _ in parse_qsl(query, keep_blank_values=True):
        if name in SIGNIFICANT_SUB_RESOURCES:
            return f"{resource}?{name}"
    return resource
