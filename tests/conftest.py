import pytest
from cryptography.fernet import Fernet

from factories import InMemorySyncRepository
from storemetrics.schemas.store import StoreData

TEST_ENCRYPTION_KEY = Fernet.generate_key()


@pytest.fixture(autouse=True)
def setup_encryption_key(monkeypatch):
    """Setup test encryption key for all tests"""
    monkeypatch.setenv("ENCRYPTION_KEY", TEST_ENCRYPTION_KEY.decode())


@pytest.fixture
def repository() -> InMemorySyncRepository:
    return InMemorySyncRepository()


@pytest.fixture
def store(repository) -> StoreData:
    return repository.add_store()
