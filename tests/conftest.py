"""
Shared fixtures: an app on an in-memory SQLite database with a fake media
uploader, and a test client that does not keep cookies between requests so
each test states exactly which cookies it sends.
"""
import io
from http.cookies import SimpleCookie

import pytest

from api import create_app
from models import storage


class FakeUploader:
    """Stands in for the Cloudinary uploader; records what was uploaded."""

    def __init__(self):
        self.uploaded = []
        self.fail = False

    def upload_file(self, file_storage):
        if file_storage is None or not file_storage.filename or self.fail:
            return None
        url = f"https://media.example.com/{len(self.uploaded)}/{file_storage.filename}"
        self.uploaded.append(url)
        return url


@pytest.fixture
def app():
    app = create_app("testing")
    app.extensions["media_uploader"] = FakeUploader()
    yield app
    with app.app_context():
        storage.drop_all()


@pytest.fixture
def client(app):
    return app.test_client(use_cookies=False)


@pytest.fixture
def uploader(app):
    return app.extensions["media_uploader"]


def register(client, with_avatar=True, with_cover=False, **fields):
    form = {"username": "alice", "email": "a@x.com", "password": "p1", "fullname": "Alice"}
    form.update(fields)
    if with_avatar:
        form["avatar"] = (io.BytesIO(b"avatar-bytes"), "avatar.png")
    if with_cover:
        form["coverImage"] = (io.BytesIO(b"cover-bytes"), "cover.png")
    return client.post("/api/v1/auth/register", data=form, content_type="multipart/form-data")


def login(client, password="p1", **identifier):
    body = {"password": password}
    body.update(identifier or {"username": "alice"})
    return client.post("/api/v1/auth/login", json=body)


def response_cookies(resp):
    """name -> (value, raw Set-Cookie header)"""
    out = {}
    for header in resp.headers.getlist("Set-Cookie"):
        jar = SimpleCookie()
        jar.load(header)
        for name, morsel in jar.items():
            out[name] = (morsel.value, header)
    return out


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def registered(client):
    resp = register(client)
    assert resp.status_code == 201
    return resp.get_json()["data"]


@pytest.fixture
def logged_in(client, registered):
    resp = login(client)
    assert resp.status_code == 200
    return resp.get_json()["data"]
