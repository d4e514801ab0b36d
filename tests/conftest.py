import asyncio
import os
import tempfile
from types import SimpleNamespace

_TMP_DIR = tempfile.mkdtemp(prefix="noken-tests-")

# La configuration est lue à l'import de noken.config
os.environ.update({
    "DATABASE_URL": f"sqlite+aiosqlite:///{_TMP_DIR}/noken.db",
    "AUTO_CREATE_TABLES": "false",
    "MAIL_SERVER": "",
    "OPENAI_API_KEY": "",
    "RATE_LIMIT_ENABLED": "false",
    "UPLOAD_DIR": os.path.join(_TMP_DIR, "uploads"),
    "BCRYPT_ROUNDS": "4",
    "LOG_LEVEL": "WARNING",
})

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from noken.auth.models import Role, User  # noqa: E402
from noken.auth.password import hash_password  # noqa: E402
from noken.db.session import AsyncSessionLocal, init_models  # noqa: E402
from noken.main import app  # noqa: E402
from noken.utils.llm import get_llm_client  # noqa: E402

PASSWORD = "secret123"


def run(coro):
    return asyncio.run(coro)


async def _insert_user(email: str, password: str, role: Role, verified: bool, **fields) -> int:
    async with AsyncSessionLocal() as session:
        user = User(
            email=email,
            password=hash_password(password),
            username=email.split("@")[0],
            role=role.value,
            is_email_verified=verified,
            **fields,
        )
        session.add(user)
        await session.commit()
        return user.id


def insert_user(email: str, password: str = PASSWORD, role: Role = Role.MEMBRE, verified: bool = True, **fields) -> int:
    return run(_insert_user(email, password, role, verified, **fields))


async def _query(fn):
    async with AsyncSessionLocal() as session:
        return await fn(session)


def query(fn):
    """Exécute `fn(session)` dans une session dédiée."""
    return run(_query(fn))


def completion(content=None, tool_calls=None):
    message = SimpleNamespace(content=content, tool_calls=tool_calls)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def tool_call(call_id: str, name: str, arguments: str = "{}"):
    return SimpleNamespace(id=call_id, type="function", function=SimpleNamespace(name=name, arguments=arguments))


class FakeLLM:
    """Remplace AsyncOpenAI : renvoie les réponses préparées dans l'ordre."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    async def _create(self, **kwargs):
        self.calls.append(kwargs)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def client():
    run(init_models(drop=True))
    app.dependency_overrides.clear()
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(client):
    def _make(email: str, role: Role = Role.MEMBRE, **fields) -> SimpleNamespace:
        user_id = insert_user(email, role=role, **fields)
        response = client.post("/auth/login", json={"email": email, "password": PASSWORD})
        assert response.status_code == 200, response.text
        token = response.json()["accessToken"]
        return SimpleNamespace(id=user_id, email=email, headers={"Authorization": f"Bearer {token}"})

    return _make


@pytest.fixture
def member(make_user):
    return make_user("awa@example.com", first_name="Awa", last_name="Diatta", commune="Ziguinchor")


@pytest.fixture
def other(make_user):
    return make_user("moussa@example.com", first_name="Moussa", last_name="Sané")


@pytest.fixture
def admin(make_user):
    return make_user("admin@example.com", role=Role.ADMIN, first_name="Admin", last_name="Noken")


@pytest.fixture
def make_offre(client):
    def _make(user, **fields) -> dict:
        payload = {
            "titre": "Développeur Python",
            "description": "Développement d'API pour une ONG de Ziguinchor",
            "typeOffre": "EMPLOI",
            **fields,
        }
        response = client.post("/api/offres", json=payload, headers=user.headers)
        assert response.status_code == 201, response.text
        return response.json()

    return _make


@pytest.fixture
def use_llm():
    def _use(fake):
        app.dependency_overrides[get_llm_client] = lambda: fake
        return fake

    return _use
