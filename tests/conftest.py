import pytest
from fastapi.testclient import TestClient

from accounts.avatar import AvatarGenerator
from accounts.config import AccountsConfig
from accounts.sessions import AccountSessionManager
from accounts.stores import InMemoryUserStore
from web.app import create_app


@pytest.fixture
def config(tmp_path):
    # lowest bcrypt cost keeps the suite fast
    return AccountsConfig(
        token_secret="test-secret",
        cost_factor=4,
        port=3000,
        data_dir=tmp_path / "data",
        images_dir=tmp_path / "images",
    )


@pytest.fixture
def store():
    return InMemoryUserStore()


@pytest.fixture
def manager(config, store):
    return AccountSessionManager(config, store, AvatarGenerator(config.images_dir, size=50))


@pytest.fixture
def client(config, store):
    app = create_app(config, store)
    return TestClient(app)
