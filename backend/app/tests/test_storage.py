"""
Tests for the Cloudinary storage client, with the SDK calls replaced.
"""
import asyncio
import base64
import logging
import cloudinary
import cloudinary.uploader
import pytest
from cloudinary.exceptions import Error as CloudinaryError
from app.core.exceptions import StorageError
from app.services.storage_service import CloudinaryStorage, SCAN_TRANSFORMATION, StoredImage


@pytest.fixture
def sdk(monkeypatch):
    """Records the Cloudinary SDK calls and answers with canned results."""
    calls = {"config": [], "upload": [], "destroy": []}
    answers = {
        "upload": {
            "secure_url": "https://res.cloudinary.com/demo/images-folder/image_1.png",
            "url": "http://res.cloudinary.com/demo/images-folder/image_1.png",
            "public_id": "images-folder/image_1",
        },
        "destroy": {"result": "ok"},
    }

    def config(**kwargs):
        calls["config"].append(kwargs)

    def upload(file, **options):
        calls["upload"].append((file, options))
        answer = answers["upload"]
        if isinstance(answer, Exception):
            raise answer
        return answer

    def destroy(public_id, **options):
        calls["destroy"].append(public_id)
        answer = answers["destroy"]
        if isinstance(answer, Exception):
            raise answer
        return answer

    monkeypatch.setattr(cloudinary, "config", config)
    monkeypatch.setattr(cloudinary.uploader, "upload", upload)
    monkeypatch.setattr(cloudinary.uploader, "destroy", destroy)
    return calls, answers


def _storage():
    storage = CloudinaryStorage(cloud_name="demo", api_key="key", api_secret="secret")
    storage.connect()
    return storage


def test_connect_configures_sdk(sdk):
    calls, _ = sdk
    storage = _storage()
    assert storage.configured
    assert calls["config"] == [{
        "cloud_name": "demo",
        "api_key": "key",
        "api_secret": "secret",
        "secure": True,
    }]


def test_upload_sends_data_uri_and_options(sdk):
    calls, _ = sdk
    stored = asyncio.run(_storage().upload_image(
        b"\x89PNG",
        mime_type="image/png",
        folder="images-folder",
        public_id="image_1",
        transformation=SCAN_TRANSFORMATION,
        image_format="png"
    ))

    assert stored == StoredImage(
        url="https://res.cloudinary.com/demo/images-folder/image_1.png",
        public_id="images-folder/image_1"
    )
    file, options = calls["upload"][0]
    assert file == "data:image/png;base64," + base64.b64encode(b"\x89PNG").decode()
    assert options == {
        "folder": "images-folder",
        "resource_type": "image",
        "public_id": "image_1",
        "transformation": SCAN_TRANSFORMATION,
        "format": "png",
    }


def test_upload_leaves_out_unset_options(sdk):
    calls, _ = sdk
    asyncio.run(_storage().upload_image(b"x", mime_type="image/jpeg", folder="profile_pictures"))
    _, options = calls["upload"][0]
    assert options == {"folder": "profile_pictures", "resource_type": "image"}


def test_upload_sdk_error_becomes_storage_error(sdk):
    _, answers = sdk
    answers["upload"] = CloudinaryError("Invalid image file")
    with pytest.raises(StorageError, match="Invalid image file"):
        asyncio.run(_storage().upload_image(b"x", mime_type="image/png", folder="images-folder"))


def test_upload_response_without_public_id(sdk):
    _, answers = sdk
    answers["upload"] = {"secure_url": "https://res.cloudinary.com/demo/x.png"}
    with pytest.raises(StorageError, match="missing url or public_id"):
        asyncio.run(_storage().upload_image(b"x", mime_type="image/png", folder="images-folder"))


def test_unconfigured_storage_refuses(sdk):
    calls, _ = sdk
    storage = CloudinaryStorage(cloud_name="", api_key="", api_secret="")
    storage.connect()
    assert not storage.configured
    assert calls["config"] == []

    with pytest.raises(StorageError, match="not configured"):
        asyncio.run(storage.upload_image(b"x", mime_type="image/png", folder="images-folder"))
    with pytest.raises(StorageError, match="not configured"):
        asyncio.run(storage.destroy("images-folder/image_1"))
    assert calls["upload"] == []
    assert calls["destroy"] == []


def test_destroy_calls_sdk(sdk):
    calls, _ = sdk
    asyncio.run(_storage().destroy("images-folder/image_1"))
    assert calls["destroy"] == ["images-folder/image_1"]


def test_destroy_not_found_is_logged(sdk, monkeypatch, caplog):
    _, answers = sdk
    answers["destroy"] = {"result": "not found"}
    monkeypatch.setattr(logging.getLogger("app"), "propagate", True)

    with caplog.at_level(logging.WARNING, logger="app.services.storage_service"):
        asyncio.run(_storage().destroy("images-folder/gone"))

    assert "images-folder/gone" in caplog.text
    assert "not found" in caplog.text


def test_destroy_sdk_error_becomes_storage_error(sdk):
    _, answers = sdk
    answers["destroy"] = CloudinaryError("Server error")
    with pytest.raises(StorageError, match="Server error"):
        asyncio.run(_storage().destroy("images-folder/image_1"))
