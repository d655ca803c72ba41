"""
Tests d'intégration de l'authentification et du cycle de vie des suspensions.
"""
from datetime import datetime, timedelta

import pytest
from fastapi import status

from app.config import settings
from app.models import Notification, User


API_PREFIX = settings.API_PREFIX
TEST_PASSWORD = "motdepasse"

pytestmark = pytest.mark.asyncio


async def login(client, email, password=TEST_PASSWORD):
    return await client.post(
        f"{API_PREFIX}/auth/login", json={"email": email, "password": password}
    )


async def test_register_acheteur(test_client, db_session):
    response = await test_client.post(
        f"{API_PREFIX}/auth/register",
        json={
            "nom": "  Komi Agbeko ",
            "email": "Komi@Example.com",
            "password": "secret123",
            "localisation": "Kpalimé",
        },
    )
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["token"]
    assert data["user"]["nom"] == "Komi Agbeko"
    assert data["user"]["email"] == "komi@example.com"
    assert data["user"]["role"] == "acheteur"
    assert data["user"]["localisation"] == "Kpalimé"
    assert "password" not in data["user"]
    assert "hashedPassword" not in data["user"]

    user = db_session.query(User).filter(User.email == "komi@example.com").one()
    assert user.hashed_password != "secret123"


async def test_register_vendeur_and_admin_role_is_refused(test_client):
    response = await test_client.post(
        f"{API_PREFIX}/auth/register",
        json={"nom": "Boutique Sika", "email": "sika@example.com", "password": "secret123", "role": "vendeur"},
    )
    assert response.json()["user"]["role"] == "vendeur"

    response = await test_client.post(
        f"{API_PREFIX}/auth/register",
        json={"nom": "Pirate", "email": "pirate@example.com", "password": "secret123", "role": "admin"},
    )
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["user"]["role"] == "acheteur"


async def test_register_duplicate_email(test_client, buyer):
    response = await test_client.post(
        f"{API_PREFIX}/auth/register",
        json={"nom": "Autre Afi", "email": "AFI@example.com", "password": "secret123"},
    )
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["message"]


async def test_register_invalid_payload(test_client):
    response = await test_client.post(
        f"{API_PREFIX}/auth/register",
        json={"nom": "Yawa", "email": "yawa@example.com", "password": "123"},
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["message"] == "Données invalides"

    response = await test_client.post(
        f"{API_PREFIX}/auth/register",
        json={"nom": "Yawa", "email": "pas-un-email", "password": "secret123"},
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST


async def test_login_success_and_me(test_client, buyer, db_session):
    response = await login(test_client, "afi@example.com")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["user"]["_id"] == str(buyer.id)

    db_session.refresh(buyer)
    assert buyer.last_login is not None

    response = await test_client.get(
        f"{API_PREFIX}/auth/me", headers={"Authorization": f"Bearer {data['token']}"}
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["user"]["email"] == "afi@example.com"


async def test_login_wrong_password(test_client, buyer):
    response = await login(test_client, "afi@example.com", "mauvais")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED

    response = await login(test_client, "inconnu@example.com")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


async def test_me_requires_valid_token(test_client):
    response = await test_client.get(f"{API_PREFIX}/auth/me")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED

    response = await test_client.get(
        f"{API_PREFIX}/auth/me", headers={"Authorization": "Bearer invalide"}
    )
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


async def test_login_creates_missed_notifications_for_vendeur(test_client, seller, demande, db_session):
    response = await login(test_client, "kodjo@example.com")
    assert response.status_code == status.HTTP_200_OK

    notifications = db_session.query(Notification).filter(Notification.user_id == seller.id).all()
    assert len(notifications) == 1
    assert notifications[0].type == "nouvelle_demande"
    assert notifications[0].demande_id == demande.id

    # Deuxième connexion: rien de nouveau
    await login(test_client, "kodjo@example.com")
    assert db_session.query(Notification).filter(Notification.user_id == seller.id).count() == 1


async def test_active_ban_blocks_login_and_requests(test_client, buyer, buyer_headers, db_session):
    buyer.is_banned = True
    buyer.ban_type = "temporary"
    buyer.ban_reason = "Spam"
    buyer.ban_expiry = datetime.utcnow() + timedelta(days=2)
    db_session.commit()

    response = await login(test_client, "afi@example.com")
    assert response.status_code == status.HTTP_403_FORBIDDEN
    data = response.json()
    assert data["message"] == "Compte suspendu"
    assert data["banType"] == "temporary"
    assert data["banReason"] == "Spam"
    assert data["banExpiry"]

    response = await test_client.get(f"{API_PREFIX}/auth/me", headers=buyer_headers)
    assert response.status_code == status.HTTP_403_FORBIDDEN


async def test_permanent_ban_has_no_expiry(test_client, buyer, db_session):
    buyer.is_banned = True
    buyer.ban_type = "permanent"
    buyer.ban_reason = "Fraude"
    db_session.commit()

    response = await login(test_client, "afi@example.com")
    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["banType"] == "permanent"
    assert response.json()["banExpiry"] is None


async def test_expired_ban_is_lifted_on_request(test_client, buyer, buyer_headers, db_session):
    buyer.is_banned = True
    buyer.ban_type = "temporary"
    buyer.ban_reason = "Spam"
    buyer.ban_expiry = datetime.utcnow() - timedelta(hours=1)
    db_session.commit()

    response = await test_client.get(f"{API_PREFIX}/auth/me", headers=buyer_headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["user"]["isBanned"] is False

    db_session.refresh(buyer)
    assert buyer.is_banned is False
    assert buyer.ban_type is None
    assert buyer.ban_expiry is None


async def test_expired_ban_is_lifted_on_login(test_client, buyer, db_session):
    buyer.is_banned = True
    buyer.ban_type = "temporary"
    buyer.ban_expiry = datetime.utcnow() - timedelta(minutes=5)
    db_session.commit()

    response = await login(test_client, "afi@example.com")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["user"]["isBanned"] is False
