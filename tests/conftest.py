from typing import AsyncGenerator, Dict, Generator, List

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from app.main import app
from app.config import settings
from app.database import Database, get_db
from app.core.security import issue_token, hash_password
from app.models import User, Demande
from app.services.image_service import get_image_storage


API_PREFIX = settings.API_PREFIX
TEST_PASSWORD = "motdepasse"

# Un seul hash bcrypt pour toute la session de tests
TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD)


# --- Base de données ---

@pytest.fixture(scope="function")
def database() -> Generator[Database, None, None]:
    """Base SQLite en mémoire, recréée pour chaque test."""
    database = Database(
        "sqlite://",
        slow_query_ms=None,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    database.create_all()
    yield database
    database.dispose()


@pytest.fixture(scope="function")
def db_session(database: Database) -> Generator[Session, None, None]:
    session = database.session_factory()
    yield session
    session.close()


# --- Hébergement d'images simulé ---

class FakeImageStorage:
    """Hébergeur d'images simulé: enregistre les appels sans réseau."""

    def __init__(self):
        self.uploaded: List[str] = []
        self.destroyed: List[str] = []

    async def upload(self, content: bytes, filename: str = "upload") -> Dict[str, str]:
        public_id = f"local-deals-togo/{len(self.uploaded) + 1}"
        self.uploaded.append(filename)
        return {"url": f"https://res.cloudinary.test/{public_id}.jpg", "publicId": public_id}

    async def upload_base64(self, data: str) -> Dict[str, str]:
        return await self.upload(data.encode(), "base64")

    async def destroy(self, public_id: str) -> str:
        self.destroyed.append(public_id)
        return "ok"


@pytest.fixture(scope="function")
def image_storage() -> FakeImageStorage:
    return FakeImageStorage()


@pytest_asyncio.fixture(scope="function")
async def test_client(
    db_session: Session,
    image_storage: FakeImageStorage,
) -> AsyncGenerator[AsyncClient, None]:
    """AsyncClient httpx branché sur la session de test et l'hébergeur simulé."""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_image_storage] = lambda: image_storage

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# --- Utilisateurs ---

def make_user(db: Session, nom: str, email: str, role: str = "acheteur", **extra) -> User:
    user = User(
        nom=nom,
        email=email,
        hashed_password=TEST_PASSWORD_HASH,
        role=role,
        **extra,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def auth_headers(user: User) -> Dict[str, str]:
    token = issue_token(user.id, user.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def buyer(db_session: Session) -> User:
    return make_user(db_session, "Afi Mensah", "afi@example.com", "acheteur", localisation="Lomé")


@pytest.fixture
def seller(db_session: Session) -> User:
    return make_user(db_session, "Kodjo Electro", "kodjo@example.com", "vendeur")


@pytest.fixture
def seller2(db_session: Session) -> User:
    return make_user(db_session, "Ama Boutique", "ama@example.com", "vendeur")


@pytest.fixture
def admin_user(db_session: Session) -> User:
    return make_user(db_session, "Admin", "admin@example.com", "admin")


@pytest.fixture
def buyer_headers(buyer: User) -> Dict[str, str]:
    return auth_headers(buyer)


@pytest.fixture
def seller_headers(seller: User) -> Dict[str, str]:
    return auth_headers(seller)


@pytest.fixture
def seller2_headers(seller2: User) -> Dict[str, str]:
    return auth_headers(seller2)


@pytest.fixture
def admin_headers(admin_user: User) -> Dict[str, str]:
    return auth_headers(admin_user)


# --- Demandes ---

@pytest.fixture
def demande(db_session: Session, buyer: User) -> Demande:
    """Demande active publiée par l'acheteur."""
    demande = Demande(
        acheteur_id=buyer.id,
        titre="iPhone 13 d'occasion",
        description="Cherche un iPhone 13 en bon état",
        budget=100000,
        images=[],
        categorie="Électronique",
        localisation="Lomé",
        badge="new",
        status="active",
    )
    db_session.add(demande)
    db_session.commit()
    db_session.refresh(demande)
    return demande


@pytest.fixture
def user_factory(db_session: Session):
    """Crée des utilisateurs supplémentaires dans un test."""
    def factory(nom: str, email: str, role: str = "acheteur", **extra) -> User:
        return make_user(db_session, nom, email, role, **extra)
    return factory


@pytest.fixture
def headers_for():
    """Construit les headers Bearer d'un utilisateur quelconque."""
    return auth_headers
