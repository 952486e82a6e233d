# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0


class BaseAWSSDKException(Exception):
    """Top-level exception to capture SDK-related errors."""


class MalformedDateHeaderError(BaseAWSSDKException, ValueError):
    """The request's ``Date`` header is present but isn't a valid HTTP date."""

    def __init__(self, value: str) -> None:
        super().__init__(
            f"Unable to parse Date header value as an HTTP date: {value!r}"
        )
        self.value = value


class SigningUnavailableError(BaseAWSSDKException, RuntimeError):
    """The HMAC-SHA1 primitive required for signing couldn't be initialized."""
