"""
Shared fixtures: an app over in-memory SQLite with fake storage and analysis clients.
"""
import io
import pytest
import httpx
from PIL import Image
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from app.core.config import settings
from app.core.exceptions import AnalysisError, StorageError
from app.db.session import Database
from app.main import create_app
from app.services.storage_service import StoredImage

IMAGE_HOST = "https://res.cloudinary.test"


def make_png(size=(2, 2), color="green") -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


class FakeStorage:
    """Records calls instead of talking to Cloudinary."""

    def __init__(self):
        self.uploads = []
        self.destroyed = []
        self.fail_upload = False
        self.fail_destroy = False
        self.connected = False

    def connect(self):
        self.connected = True

    def close(self):
        self.connected = False

    async def upload_image(self, data, *, mime_type, folder, public_id=None,
                           transformation=None, image_format=None):
        if self.fail_upload:
            raise StorageError("upload refused")
        stored_id = f"{folder}/{public_id or 'generated'}_{len(self.uploads)}"
        self.uploads.append({
            "data": data,
            "mime_type": mime_type,
            "folder": folder,
            "public_id": stored_id,
            "transformation": transformation,
            "format": image_format,
        })
        return StoredImage(url=f"{IMAGE_HOST}/{stored_id}.png", public_id=stored_id)

    async def destroy(self, public_id):
        if self.fail_destroy:
            raise StorageError("delete refused")
        self.destroyed.append(public_id)


class FakeAnalyzer:
    def __init__(self):
        self.calls = []
        self.error = None
        self.result = "Monstera deliciosa. Healthy leaves. Water weekly."

    async def analyze_image_url(self, image_url, mime_type):
        self.calls.append((image_url, mime_type))
        if self.error:
            raise AnalysisError(self.error)
        return self.result


def _image_host(request: httpx.Request) -> httpx.Response:
    """Serves a PNG for any path on the fake image host, 404 elsewhere."""
    if str(request.url).startswith(IMAGE_HOST) and "missing" not in request.url.path:
        return httpx.Response(200, content=make_png((40, 20)), headers={"content-type": "image/png"})
    return httpx.Response(404)


@pytest.fixture(autouse=True)
def fast_settings(monkeypatch):
    monkeypatch.setattr(settings, "BCRYPT_ROUNDS", 4)
    monkeypatch.setattr(settings, "PDF_PAGE_COMPRESSION", False)
    monkeypatch.setattr(settings, "DB_CONNECT_INTERVAL", 0.0)


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def analyzer():
    return FakeAnalyzer()


@pytest.fixture
def database():
    return Database("sqlite://", poolclass=StaticPool)


@pytest.fixture
def client(database, storage, analyzer):
    app = create_app(
        database=database,
        storage=storage,
        analyzer=analyzer,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(_image_host))
    )
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def png_bytes():
    return make_png()


def register(client, username="alice", password="secret123"):
    return client.post(
        "/register",
        data={"username": username, "password": password},
        follow_redirects=False
    )


def login(client, username="alice", password="secret123"):
    return client.post(
        "/login",
        data={"username": username, "password": password},
        follow_redirects=False
    )


@pytest.fixture
def logged_in(client):
    """Client with a registered and logged-in 'alice'."""
    register(client)
    response = login(client)
    assert response.status_code == 303
    return client


def upload(client, data, filename="plant.png", content_type="image/png", **form):
    return client.post(
        "/upload1",
        files={"image": (filename, data, content_type)},
        data=form
    )
