from models import storage
from models.user import User
from services.errors import RequestValidationError
from services.user_store import UserStore
from utils.security import PasswordVerifier

from conftest import login, register


def test_health(client):
    resp = client.get("/api/v1/health")
    assert resp.status_code == 200
    assert resp.get_json()["status"] == "ok"


def test_unknown_route_uses_error_envelope(client):
    resp = client.get("/api/v1/nope")
    assert resp.status_code == 404
    assert resp.get_json() == {"error": "NOT_FOUND", "message": "Resource not found", "status": 404}


def test_unexpected_error_hides_internals(app, client):
    @app.get("/boom")
    def boom():
        raise RuntimeError("db password is hunter2")

    resp = client.get("/boom")
    assert resp.status_code == 500
    body = resp.get_json()
    assert body["error"] == "INTERNAL_ERROR"
    assert "hunter2" not in resp.get_data(as_text=True)


def test_store_validation_can_be_bypassed(app):
    with app.app_context():
        store = UserStore(storage)
        user = User(
            username="carol", email="c@x.com", fullname="Carol",
            avatar="https://media.example.com/c.png", password_hash="x",
        )
        store.add(user)

        user.username = "NotLower"
        try:
            store.save(user)
        except RequestValidationError as exc:
            assert "username" in exc.details
        else:
            raise AssertionError("expected a validation error")

        user.username = "carol"
        user.refresh_token = "token"
        store.save(user, validate=False)
        assert store.find_by_id(user.id).refresh_token == "token"

        assert store.clear_refresh_token(user.id) is True
        assert store.find_by_id(user.id).refresh_token is None
        assert store.clear_refresh_token("missing") is False


def test_find_by_identifier_matches_either_field(app):
    with app.app_context():
        store = UserStore(storage)
        store.add(User(
            username="dave", email="d@x.com", fullname="Dave",
            avatar="https://media.example.com/d.png", password_hash="x",
        ))
        assert store.find_by_identifier(username="DAVE").email == "d@x.com"
        assert store.find_by_identifier(email="D@X.com").username == "dave"
        assert store.find_by_identifier(username="zed", email="d@x.com").username == "dave"
        assert store.find_by_identifier() is None
        assert store.find_by_identifier(username="zed") is None


def test_collaborators_are_shared(app):
    manager = app.extensions["session_manager"]
    assert manager.store is app.extensions["user_store"]
    assert manager.passwords is app.extensions["password_verifier"]
    assert "token_issuer" not in app.extensions


def test_register_uses_wired_password_verifier(app, client):
    class RecordingVerifier(PasswordVerifier):
        def __init__(self):
            super().__init__()
            self.hashed = []

        def hash(self, password):
            self.hashed.append(password)
            return super().hash(password)

    verifier = RecordingVerifier()
    app.extensions["password_verifier"] = verifier
    app.extensions["session_manager"].passwords = verifier

    assert register(client).status_code == 201
    assert verifier.hashed == ["p1"]
    assert login(client).status_code == 200
