"""Session manager tests against the in-memory store"""

import time

import pytest

from accounts.exceptions import BadRequestError, ConflictError, StoreError, UnauthorizedError
from accounts.models import Subscription
from accounts.security import TokenSigner
from accounts.sessions import extract_bearer_token


def _bearer(token):
    return f"Bearer {token}"


def test_register_returns_public_fields_only(manager, store):
    result = manager.register("a@x.com", "pw123")
    assert result == {"email": "a@x.com", "subscription": "free"}

    user = store.find_by_email("a@x.com")
    assert user.subscription == Subscription.FREE
    assert user.token is None
    assert user.password_hash != "pw123"


def test_register_creates_avatar_under_configured_base_url(manager, store, config):
    manager.register("a@x.com", "pw123")
    user = store.find_by_email("a@x.com")

    assert user.avatar_url.startswith("http://localhost:3000/images/")
    filename = user.avatar_url.rsplit("/", 1)[-1]
    assert (config.images_dir / filename).exists()


def test_register_normalizes_email(manager):
    assert manager.register("  A@X.com ", "pw123")["email"] == "a@x.com"
    with pytest.raises(ConflictError):
        manager.register("a@x.com", "other")


def test_duplicate_registration_conflicts_without_new_record(manager, store):
    manager.register("a@x.com", "pw123")
    with pytest.raises(ConflictError) as exc_info:
        manager.register("a@x.com", "pw123")
    assert exc_info.value.status_code == 409
    assert len(store) == 1


def test_store_level_duplicate_becomes_conflict(manager, store, monkeypatch, config):
    manager.register("a@x.com", "pw123")
    # simulate losing the race: the pre-check sees nothing, the store refuses
    monkeypatch.setattr(store, "find_by_email", lambda email: None)
    images_before = set(config.images_dir.iterdir())

    with pytest.raises(ConflictError):
        manager.register("a@x.com", "pw123")
    assert len(store) == 1
    assert set(config.images_dir.iterdir()) == images_before


def test_login_unknown_email(manager):
    with pytest.raises(UnauthorizedError) as exc_info:
        manager.login("nobody@x.com", "pw123")
    assert exc_info.value.message == "Email or password is wrong"


def test_login_wrong_password(manager):
    manager.register("a@x.com", "pw123")
    with pytest.raises(UnauthorizedError) as exc_info:
        manager.login("a@x.com", "wrong")
    assert exc_info.value.message == "Authentication failed"


def test_login_stores_token_and_returns_it(manager, store):
    manager.register("a@x.com", "pw123")
    result = manager.login("a@x.com", "pw123")

    assert result["user"] == {"email": "a@x.com", "subscription": "free"}
    user = store.find_by_email("a@x.com")
    assert user.token == result["token"]
    assert manager.tokens.verify(result["token"]) == user.id


def test_authorize_resolves_token_owner(manager):
    manager.register("a@x.com", "pw123")
    manager.register("b@x.com", "pw456")
    token_a = manager.login("a@x.com", "pw123")["token"]
    token_b = manager.login("b@x.com", "pw456")["token"]

    ctx = manager.authorize(_bearer(token_a))
    assert ctx.user.email == "a@x.com"
    assert ctx.token == token_a
    assert manager.authorize(_bearer(token_b)).user.email == "b@x.com"


def test_new_login_invalidates_previous_token(manager):
    manager.register("a@x.com", "pw123")
    first = manager.login("a@x.com", "pw123")["token"]
    second = manager.login("a@x.com", "pw123")["token"]

    assert manager.authorize(_bearer(second)).user.email == "a@x.com"
    with pytest.raises(UnauthorizedError):
        manager.authorize(_bearer(first))


def test_logout_invalidates_token(manager, store):
    manager.register("a@x.com", "pw123")
    token = manager.login("a@x.com", "pw123")["token"]
    ctx = manager.authorize(_bearer(token))

    manager.logout(ctx.user)
    assert store.find_by_email("a@x.com").token is None
    with pytest.raises(UnauthorizedError):
        manager.authorize(_bearer(token))


@pytest.mark.parametrize("header", [None, "", "Bearer ", "Basic abc", "Bearer not-a-token"])
def test_authorize_rejects_missing_or_malformed(manager, header):
    with pytest.raises(UnauthorizedError):
        manager.authorize(header)


def test_authorize_rejects_expired_token(manager, monkeypatch):
    manager.register("a@x.com", "pw123")
    issued_at = time.time() - 3 * 24 * 60 * 60
    with monkeypatch.context() as m:
        m.setattr(time, "time", lambda: issued_at)
        token = manager.login("a@x.com", "pw123")["token"]

    with pytest.raises(UnauthorizedError):
        manager.authorize(_bearer(token))


def test_authorize_rejects_token_for_unknown_user(manager):
    token = manager.tokens.issue("no-such-user")
    with pytest.raises(UnauthorizedError) as exc_info:
        manager.authorize(_bearer(token))
    assert exc_info.value.message == "Email or password is wrong"


def test_failed_verification_skips_user_lookup(manager, store, monkeypatch):
    calls = []
    monkeypatch.setattr(store, "find_by_id", lambda user_id: calls.append(user_id))
    foreign = TokenSigner("other-secret", 60).issue("someone")

    with pytest.raises(UnauthorizedError):
        manager.authorize(_bearer(foreign))
    assert calls == []


def test_current_user_projection(manager):
    manager.register("a@x.com", "pw123")
    token = manager.login("a@x.com", "pw123")["token"]
    user = manager.authorize(_bearer(token)).user

    assert manager.current_user(user) == {
        "id": user.id,
        "email": "a@x.com",
        "subscription": "free",
    }


@pytest.mark.parametrize("value", ["pro", "premium", "free"])
def test_update_subscription(manager, store, value):
    manager.register("a@x.com", "pw123")
    user = store.find_by_email("a@x.com")

    result = manager.update_subscription(user, value)
    assert result["subscription"] == value
    assert "password_hash" not in result
    assert "token" not in result
    assert store.find_by_id(user.id).subscription == Subscription(value)


@pytest.mark.parametrize("value", ["gold", "", None, "PRO", 1])
def test_update_subscription_rejects_unknown_values(manager, store, value):
    manager.register("a@x.com", "pw123")
    user = store.find_by_email("a@x.com")
    manager.update_subscription(user, "pro")

    with pytest.raises(BadRequestError) as exc_info:
        manager.update_subscription(store.find_by_id(user.id), value)
    assert exc_info.value.status_code == 400
    assert store.find_by_id(user.id).subscription == Subscription.PRO


def test_update_avatar_uses_configured_base_url(manager, store):
    manager.register("a@x.com", "pw123")
    user = store.find_by_email("a@x.com")

    result = manager.update_avatar(user, "new.png")
    assert result == {"avatarURL": "http://localhost:3000/images/new.png"}
    assert store.find_by_id(user.id).avatar_url == result["avatarURL"]


@pytest.mark.parametrize(
    "header, expected",
    [
        ("Bearer abc", "abc"),
        ("Bearer  abc ", "abc"),
        ("bearer abc", ""),
        ("abc", ""),
        (None, ""),
    ],
)
def test_extract_bearer_token(header, expected):
    assert extract_bearer_token(header) == expected


def test_store_failure_on_create_removes_generated_avatar(manager, store, monkeypatch, config):
    def broken(user):
        raise StoreError("write failed")

    monkeypatch.setattr(store, "create", broken)

    with pytest.raises(StoreError):
        manager.register("a@x.com", "pw123")
    assert len(store) == 0
    assert not config.images_dir.exists() or list(config.images_dir.iterdir()) == []


def test_register_rejects_overlong_password_without_side_effects(manager, store, config):
    with pytest.raises(BadRequestError):
        manager.register("a@x.com", "p" * 73)
    assert len(store) == 0
    assert not config.images_dir.exists() or list(config.images_dir.iterdir()) == []


def test_update_avatar_removes_previous_local_image(manager, store, config):
    manager.register("a@x.com", "pw123")
    user = store.find_by_email("a@x.com")
    generated = user.avatar_url.rsplit("/", 1)[-1]
    (config.images_dir / "new.png").write_bytes(b"png")

    manager.update_avatar(user, "new.png")
    assert not (config.images_dir / generated).exists()
    assert (config.images_dir / "new.png").exists()


def test_update_avatar_leaves_foreign_urls_alone(manager, store, config):
    manager.register("a@x.com", "pw123")
    user = store.update_by_id(
        store.find_by_email("a@x.com").id, avatar_url="https://elsewhere.test/images/x.png"
    )
    config.images_dir.mkdir(parents=True, exist_ok=True)
    (config.images_dir / "x.png").write_bytes(b"keep")

    manager.update_avatar(user, "new.png")
    assert (config.images_dir / "x.png").exists()
