# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import base64
import hmac
import logging
from copy import deepcopy
from dataclasses import replace
from typing import TypedDict
from urllib.parse import quote_plus

from ._http import AWSRequest, Field
from .canonical import (
    DEFAULT_HOST,
    Clock,
    canonical_string,
    ensure_required_fields,
    request_date,
    split_path,
    utc_now,
)
from .exceptions import SigningUnavailableError
from .interfaces.http import Request
from .interfaces.identity import AWSCredentialsIdentity

logger = logging.getLogger(__name__)

DEFAULT_EXPIRY: int = 300  # 5 minutes


class S3SigningProperties(TypedDict, total=False):
    expires: int
    """Seconds since the epoch at which a query string signature expires."""

    expires_in: int
    """Seconds from the request date until a query string signature expires."""

    url_encode: bool
    """Whether to percent-encode the signature. Defaults to ``True`` for query
    string signatures and is always ``False`` for the ``Authorization`` header."""

    default_host: str
    """The service host requests default to, ``s3.amazonaws.com`` if unset."""


def sign_string(
    string_to_sign: str, secret_access_key: str, *, url_encode: bool = False
) -> str:
    """Compute the base64 HMAC-SHA1 of ``string_to_sign``.

    :param string_to_sign: Canonical string generated for the request.
    :param secret_access_key: Key for the HMAC.
    :param url_encode: Form-encode the result so it can be used as a query string
        value.
    :raises SigningUnavailableError: If SHA-1 HMAC isn't supported by the runtime.
    """
    try:
        mac = hmac.new(
            key=secret_access_key.encode("utf-8"),
            msg=string_to_sign.encode("utf-8"),
            digestmod="sha1",
        )
    except ValueError as e:
        raise SigningUnavailableError(
            "HMAC-SHA1 is not available in this Python runtime."
        ) from e
    signature = base64.b64encode(mac.digest()).decode("ascii")
    if url_encode:
        return quote_plus(signature, safe="")
    return signature


def compute_expires(
    request: Request,
    properties: S3SigningProperties | None = None,
    *,
    clock: Clock = utc_now,
) -> int:
    """Return the expiration of a query string signature in seconds since the epoch.

    In order of precedence:

    1) ``expires`` from the signing properties.
    2) The request date plus ``expires_in`` seconds.
    3) The request date plus :data:`DEFAULT_EXPIRY` seconds.

    :raises MalformedDateHeaderError: If the request's ``Date`` can't be parsed.
    """
    properties = properties or S3SigningProperties()
    if (expires := properties.get("expires")) is not None:
        return int(expires)

    expires_in = properties.get("expires_in")
    if expires_in is None:
        expires_in = DEFAULT_EXPIRY
    return int(request_date(request, clock=clock).timestamp()) + int(expires_in)


def make_header_signature(
    request: Request,
    identity: AWSCredentialsIdentity,
    properties: S3SigningProperties | None = None,
    *,
    clock: Clock = utc_now,
) -> str:
    """Generate the value of the ``Authorization`` header for ``request``.

    ``request`` gains a ``Date`` and ``Host`` field if it lacks them, so the values
    that were signed are the ones that get sent. Use :class:`HeaderSigner` to sign
    a copy instead.
    """
    properties = properties or S3SigningProperties()
    string_to_sign = canonical_string(
        request,
        clock=clock,
        default_host=properties.get("default_host", DEFAULT_HOST),
    )
    signature = sign_string(string_to_sign, identity.secret_access_key)
    logger.debug("Signed %s request with header authentication.", request.method)
    return f"AWS {identity.access_key_id}:{signature}"


def make_query_string_signature(
    request: Request,
    identity: AWSCredentialsIdentity,
    properties: S3SigningProperties | None = None,
    *,
    clock: Clock = utc_now,
) -> str:
    """Generate the ``AWSAccessKeyId``, ``Expires`` and ``Signature`` query string
    parameters for ``request``.

    The expiration is signed in place of the request date. Like
    :func:`make_header_signature`, missing ``Date`` and ``Host`` fields are added to
    ``request``.

    :raises MalformedDateHeaderError: If the request's ``Date`` can't be parsed.
    """
    properties = properties or S3SigningProperties()
    default_host = properties.get("default_host", DEFAULT_HOST)
    ensure_required_fields(request, clock=clock, default_host=default_host)
    expires = compute_expires(request, properties, clock=clock)
    string_to_sign = canonical_string(
        request, expires=expires, clock=clock, default_host=default_host
    )
    signature = sign_string(
        string_to_sign,
        identity.secret_access_key,
        url_encode=properties.get("url_encode", True),
    )
    logger.debug(
        "Signed %s request with query string authentication expiring at %s.",
        request.method,
        expires,
    )
    # Keep in alphabetical order
    return (
        f"AWSAccessKeyId={identity.access_key_id}"
        f"&Expires={expires}"
        f"&Signature={signature}"
    )


class HeaderSigner:
    """Request signer for applying S3 header based authentication."""

    def __init__(self, *, clock: Clock = utc_now) -> None:
        self._clock = clock

    def sign(
        self,
        *,
        request: AWSRequest,
        identity: AWSCredentialsIdentity,
        properties: S3SigningProperties | None = None,
    ) -> AWSRequest:
        """Generate and apply an ``Authorization`` field to a copy of the supplied
        request.

        :param request: An AWSRequest to sign prior to sending to the service.
        :param identity: The credentials to sign with.
        :param properties: Optional signing properties, only ``default_host`` is
            used by header authentication.
        """
        new_request = deepcopy(request)
        authorization = make_header_signature(
            new_request, identity, properties, clock=self._clock
        )
        new_request.fields.set_field(
            Field(name="Authorization", values=[authorization])
        )
        return new_request

    def canonical_string(
        self,
        *,
        request: AWSRequest,
        properties: S3SigningProperties | None = None,
    ) -> str:
        """The string :meth:`sign` would sign for ``request``.

        Useful to compare against the ``StringToSign`` returned by the service in a
        ``SignatureDoesNotMatch`` error. ``request`` is not modified.
        """
        properties = properties or S3SigningProperties()
        return canonical_string(
            deepcopy(request),
            clock=self._clock,
            default_host=properties.get("default_host", DEFAULT_HOST),
        )


class QueryStringSigner:
    """Request signer for applying S3 query string authentication, used for
    pre-signed URLs.

    URLs expire :data:`DEFAULT_EXPIRY` seconds after the request date unless
    ``expires`` or ``expires_in`` is given in the signing properties.
    """

    def __init__(self, *, clock: Clock = utc_now) -> None:
        self._clock = clock

    def sign(
        self,
        *,
        request: AWSRequest,
        identity: AWSCredentialsIdentity,
        properties: S3SigningProperties | None = None,
    ) -> AWSRequest:
        """Append the authentication parameters to the query of a copy of the
        supplied request.

        :param request: An AWSRequest to sign.
        :param identity: The credentials to sign with.
        :param properties: Expiration and encoding settings.
        """
        new_request = deepcopy(request)
        parameters = make_query_string_signature(
            new_request, identity, properties, clock=self._clock
        )
        path, query = split_path(new_request.destination)
        new_request.destination = replace(
            new_request.destination,
            path=path,
            query="&".join(q for q in (query, parameters) if q),
        )
        return new_request

    def presign_url(
        self,
        *,
        request: AWSRequest,
        identity: AWSCredentialsIdentity,
        properties: S3SigningProperties | None = None,
    ) -> str:
        """Build a pre-signed URL for ``request`` that can be shared or opened in a
        browser until it expires."""
        signed_request = self.sign(
            request=request, identity=identity, properties=properties
        )
        return signed_request.destination.build()

    def canonical_string(
        self,
        *,
        request: AWSRequest,
        properties: S3SigningProperties | None = None,
    ) -> str:
        """The string :meth:`sign` would sign for ``request``.

        ``request`` is not modified.
        """
        properties = properties or S3SigningProperties()
        default_host = properties.get("default_host", DEFAULT_HOST)
        new_request = ensure_required_fields(
            deepcopy(request), clock=self._clock, default_host=default_host
        )
        return canonical_string(
            new_request,
            expires=compute_expires(new_request, properties, clock=self._clock),
            clock=self._clock,
            default_host=default_host,
        )
