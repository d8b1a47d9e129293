import os
import tempfile

# Settings are cached on first import, so the environment must be ready first
_DB_DIR = tempfile.mkdtemp(prefix="resume_builder_tests_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_DIR}/resume_builder.db"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["REDIS_URL"] = ""
os.environ["STORAGE_PUBLIC_BASE_URL"] = "https://cdn.example.test"

import asyncio
import time
from types import SimpleNamespace

import jwt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from resume_builder.database import get_db, init_db
from resume_builder.models import User


class FakeStorage:
    """In-memory stand-in for StorageService."""

    def __init__(self, base_url="https://cdn.example.test"):
        self.base_url = base_url
        self.objects = {}
        self.deleted = []
        self.fail_upload = False
        self.fail_delete = False

    def public_url_for(self, logical_id):
        return f"{self.base_url}/{logical_id}.pdf"

    def upload(self, data, logical_id):
        if self.fail_upload:
            raise RuntimeError("bucket unavailable")
        self.objects[logical_id] = data
        return self.public_url_for(logical_id)

    def delete(self, logical_id):
        self.deleted.append(logical_id)
        if self.fail_delete:
            raise RuntimeError("bucket unavailable")
        return self.objects.pop(logical_id, None) is not None


class FakePDF:
    def __init__(self):
        self.snapshots = []

    def render(self, snapshot):
        self.snapshots.append(snapshot)
        return b"%PDF-1.4 fake"


class StubCompletions:
    def __init__(self, content):
        self.content = content
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        return SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=self.content))],
            model="stub-model",
            usage=SimpleNamespace(total_tokens=42),
        )


@pytest.fixture
def fake_storage():
    return FakeStorage()


@pytest.fixture
def fake_pdf():
    return FakePDF()


@pytest.fixture
def stub_openai():
    """Factory for an object shaped like AsyncOpenAI that returns fixed content."""

    def make(content="Seasoned engineer."):
        completions = StubCompletions(content)
        return SimpleNamespace(chat=SimpleNamespace(completions=completions)), completions

    return make


async def add_user(session, user_id):
    session.add(User(id=user_id, email=f"{user_id}@example.com"))
    await session.commit()


@pytest.fixture
def run_db(tmp_path):
    """Run ``scenario(session)`` against a fresh SQLite database."""

    def run(scenario, users=("owner",)):
        async def main():
            engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'service.db'}")
            await init_db(bind=engine)
            session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
            try:
                async with session_factory() as session:
                    for user_id in users:
                        await add_user(session, user_id)
                    return await scenario(session)
            finally:
                await engine.dispose()

        return asyncio.run(main())

    return run


@pytest.fixture
def make_token():
    def make(sub, email=None, expires_in=3600, secret="test-secret"):
        claims = {"sub": sub, "exp": int(time.time()) + expires_in}
        if email:
            claims["email"] = email
        return jwt.encode(claims, secret, algorithm="HS256")

    return make


@pytest.fixture
def auth_headers(make_token):
    def headers(sub):
        return {"Authorization": f"Bearer {make_token(sub, email=f'{sub}@example.com')}"}

    return headers


@pytest.fixture
def api_client(tmp_path, monkeypatch, fake_storage, stub_openai):
    from resume_builder import main
    from resume_builder.dependencies import get_ai_service, get_storage
    from resume_builder.services.ai_service import AIService, CachedAIService
    from resume_builder.services.cache import AICache

    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'api.db'}", poolclass=NullPool)
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def init_test_db():
        await init_db(bind=engine)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    client_stub, completions = stub_openai()
    ai = CachedAIService(AIService(client=client_stub), AICache())

    monkeypatch.setattr(main, "init_db", init_test_db)
    main.app.dependency_overrides[get_db] = override_get_db
    main.app.dependency_overrides[get_storage] = lambda: fake_storage
    main.app.dependency_overrides[get_ai_service] = lambda: ai

    with TestClient(main.app) as client:
        client.completions = completions
        yield client

    main.app.dependency_overrides.clear()
