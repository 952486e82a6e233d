# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
"""AWS S3 Signers provides stand-alone signing of S3 REST requests with the legacy
``AWS`` (HMAC-SHA1) signature, as an ``Authorization`` header or as pre-signed URL
query parameters."""

from __future__ import annotations

from ._http import AWSRequest, Field, Fields, URI
from ._identity import AWSCredentialIdentity
from .canonical import canonical_string
from .exceptions import MalformedDateHeaderError, SigningUnavailableError
from .signers import (
    HeaderSigner,
    QueryStringSigner,
    S3SigningProperties,
    make_header_signature,
    make_query_string_signature,
)

__license__ = "Apache-2.0"
__version__ = "0.1.0"

__all__ = (
    "URI",
    "AWSCredentialIdentity",
    "AWSRequest",
    "Field",
    "Fields",
    "HeaderSigner",
    "MalformedDateHeaderError",
    "QueryStringSigner",
    "S3SigningProperties",
    "SigningUnavailableError",
    "canonical_string",
    "make_header_signature",
    "make_query_string_signature",
)
