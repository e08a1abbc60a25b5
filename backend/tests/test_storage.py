from __future__ import annotations

import pytest
from botocore.exceptions import ClientError

from tseleskop.core.errors import ConfigurationError
from tseleskop.services.storage import ObjectStorage, StorageError, key_from_url, object_key


class FakeS3:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.calls = []

    def put_object(self, **kwargs) -> None:
        self.calls.append(("put", kwargs))
        if self.fail:
            raise ClientError({"Error": {"Code": "AccessDenied", "Message": "denied"}}, "PutObject")

    def delete_object(self, **kwargs) -> None:
        self.calls.append(("delete", kwargs))


def _storage(client=None, **overrides) -> ObjectStorage:
    options = {"bucket": "goals", "region": "eu-north-1", "access_key": "k", "secret_key": "s", "client": client}
    options.update(overrides)
    return ObjectStorage(**options)


def test_upload_returns_public_url() -> None:
    client = FakeS3()

    url = _storage(client).upload(b"jpeg", "goal-1.jpg")

    assert url == "https://goals.s3.eu-north-1.amazonaws.com/goal-1.jpg"
    assert client.calls == [
        ("put", {"Bucket": "goals", "Key": "goal-1.jpg", "Body": b"jpeg", "ContentType": "image/jpeg"}),
    ]


def test_upload_failure_is_wrapped() -> None:
    with pytest.raises(StorageError):
        _storage(FakeS3(fail=True)).upload(b"jpeg", "goal-1.jpg")


def test_missing_configuration() -> None:
    with pytest.raises(ConfigurationError):
        _storage(bucket=None).upload(b"jpeg", "goal-1.jpg")
    with pytest.raises(ConfigurationError):
        _storage(access_key=None).delete("goal-1.jpg")


def test_keys() -> None:
    key = object_key("user-7")

    assert key.startswith("user-7-") and key.endswith(".jpg")
    assert key_from_url("https://goals.s3.eu-north-1.amazonaws.com/goal-1.jpg") == "goal-1.jpg"
    assert key_from_url(None) is None
