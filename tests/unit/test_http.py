# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from copy import deepcopy

import pytest
from aws_s3_signers import URI, AWSRequest, Field, Fields


def test_field_as_string() -> None:
    assert Field(name="X-Amz-Meta-A").as_string() == ""
    assert Field(name="X-Amz-Meta-A", values=["a"]).as_string() == "a"
    field = Field(name="X-Amz-Meta-A", values=["a", "b"])
    field.add("c, d")
    assert field.as_string() == "a,b,c, d"


def test_fields_are_case_insensitive() -> None:
    fields = Fields([Field(name="Content-Type", values=["text/plain"])])
    assert "content-type" in fields
    assert "CONTENT-TYPE" in fields
    assert fields["content-TYPE"].name == "Content-Type"
    del fields["CONTENT-type"]
    assert len(fields) == 0
    assert fields.get("Content-Type") is None


def test_fields_rejects_duplicate_names() -> None:
    with pytest.raises(ValueError):
        Fields([Field(name="Date", values=["a"]), Field(name="date", values=["b"])])


def test_fields_rejects_mismatched_key() -> None:
    fields = Fields()
    with pytest.raises(ValueError):
        fields["Date"] = Field(name="Host", values=["s3.amazonaws.com"])


def test_fields_from_mapping() -> None:
    fields = Fields.from_mapping({"Date": "now", "x-amz-acl": "private"})
    assert [field.name for field in fields] == ["Date", "x-amz-acl"]
    assert fields["X-Amz-Acl"].values == ["private"]


@pytest.mark.parametrize(
    "uri,expected",
    [
        (URI(host="s3.amazonaws.com"), "https://s3.amazonaws.com"),
        (
            URI(scheme="http", host="localhost", port=9000, path="/bucket/key"),
            "http://localhost:9000/bucket/key",
        ),
        (
            URI(host="bucket.s3.amazonaws.com", path="/key", query="acl"),
            "https://bucket.s3.amazonaws.com/key?acl",
        ),
    ],
)
def test_uri_build(uri: URI, expected: str) -> None:
    assert uri.build() == expected


def test_request_deepcopy_copies_fields() -> None:
    body = [b"payload"]
    request = AWSRequest(
        destination=URI(host="s3.amazonaws.com", path="/bucket/key"),
        method="PUT",
        body=body,
        fields=Fields.from_mapping({"Content-Type": "text/plain"}),
    )
    copied = deepcopy(request)
    copied.fields.set_field(Field(name="Date", values=["now"]))
    assert copied.body is body
    assert copied.destination is request.destination
    assert "Date" not in request.fields
    assert copied.fields["Content-Type"] is not request.fields["Content-Type"]
