"""
Tests d'intégration des réponses des vendeurs.
"""
import pytest
from fastapi import status

from app.api.v1.endpoints import reponses as reponses_endpoints
from app.config import settings
from app.models import Notification, Reponse

API_PREFIX = settings.API_PREFIX

pytestmark = pytest.mark.asyncio


async def respond(client, headers, demande_id, text="J'ai cet article", **extra):
    payload = {"message": text}
    payload.update(extra)
    return await client.post(
        f"{API_PREFIX}/demandes/{demande_id}/reponses", json=payload, headers=headers
    )


async def test_reponse_scenario(test_client, buyer, seller, buyer_headers, seller_headers):
    """A publie une demande Électronique à 100000, B répond, A voit une notification non lue."""
    response = await test_client.post(
        f"{API_PREFIX}/demandes",
        json={
            "titre": "Téléphone Samsung",
            "description": "Samsung Galaxy récent",
            "budget": 100000,
            "categorie": "Électronique",
            "localisation": "Lomé",
        },
        headers=buyer_headers,
    )
    assert response.status_code == status.HTTP_201_CREATED
    demande_id = response.json()["demande"]["_id"]

    response = await respond(test_client, seller_headers, demande_id)
    assert response.status_code == status.HTTP_201_CREATED
    reponse = response.json()["reponse"]
    assert reponse["message"] == "J'ai cet article"
    assert reponse["vendeurId"] == str(seller.id)
    assert reponse["vendeur"]["nom"] == seller.nom
    assert reponse["demande"]["_id"] == demande_id
    assert reponse["demande"]["budget"] == 100000

    response = await test_client.get(
        f"{API_PREFIX}/notifications/{buyer.id}", headers=buyer_headers
    )
    assert response.status_code == status.HTTP_200_OK
    notifications = response.json()["notifications"]
    assert len(notifications) == 1
    assert notifications[0]["type"] == "reponse"
    assert notifications[0]["read"] is False
    assert notifications[0]["data"]["demandeId"] == demande_id
    assert notifications[0]["data"]["reponseId"] == reponse["_id"]


async def test_duplicate_reponse_conflict(test_client, demande, seller_headers, db_session):
    first = await respond(test_client, seller_headers, demande.id)
    assert first.status_code == status.HTTP_201_CREATED

    second = await respond(test_client, seller_headers, demande.id, "Encore moi")
    assert second.status_code == status.HTTP_409_CONFLICT
    assert db_session.query(Reponse).count() == 1


async def test_reponse_requires_vendeur(test_client, demande, buyer, user_factory, headers_for):
    other_buyer = user_factory("Yao", "yao@example.com", "acheteur")
    response = await respond(test_client, headers_for(other_buyer), demande.id)
    assert response.status_code == status.HTTP_403_FORBIDDEN


async def test_reponse_to_own_demande_rejected(test_client, user_factory, headers_for, db_session):
    from app.models import Demande

    vendeur = user_factory("Edem", "edem@example.com", "vendeur")
    own = Demande(
        acheteur_id=vendeur.id,
        titre="Cherche imprimante",
        description="Imprimante laser",
        budget=50000,
        images=[],
        categorie="Électronique",
        localisation="Kara",
    )
    db_session.add(own)
    db_session.commit()

    response = await respond(test_client, headers_for(vendeur), own.id)
    assert response.status_code == status.HTTP_400_BAD_REQUEST


async def test_reponse_message_required(test_client, demande, seller_headers):
    response = await respond(test_client, seller_headers, demande.id, "   ")
    assert response.status_code == status.HTTP_400_BAD_REQUEST


async def test_reponse_to_deleted_demande(test_client, demande, seller_headers, db_session):
    demande.status = "deleted"
    db_session.commit()
    response = await respond(test_client, seller_headers, demande.id)
    assert response.status_code == status.HTTP_404_NOT_FOUND


async def test_reponse_to_missing_demande(test_client, seller_headers):
    response = await respond(test_client, seller_headers, 9999)
    assert response.status_code == status.HTTP_404_NOT_FOUND


async def test_list_reponses_filters(
    test_client, buyer, seller, seller2, demande, seller_headers, seller2_headers, buyer_headers
):
    await respond(test_client, seller_headers, demande.id, "Offre 1")
    await respond(test_client, seller2_headers, demande.id, "Offre 2")

    response = await test_client.get(
        f"{API_PREFIX}/reponses", params={"demandeId": demande.id}, headers=buyer_headers
    )
    assert response.status_code == status.HTTP_200_OK
    reponses = response.json()["reponses"]
    assert [r["message"] for r in reponses] == ["Offre 2", "Offre 1"]

    response = await test_client.get(
        f"{API_PREFIX}/reponses", params={"vendeurId": seller.id}, headers=buyer_headers
    )
    assert [r["message"] for r in response.json()["reponses"]] == ["Offre 1"]

    response = await test_client.get(
        f"{API_PREFIX}/reponses", params={"acheteurId": buyer.id}, headers=buyer_headers
    )
    assert len(response.json()["reponses"]) == 2


async def test_list_reponses_excludes_deleted_demandes_for_acheteur(
    test_client, buyer, demande, seller_headers, buyer_headers, db_session
):
    await respond(test_client, seller_headers, demande.id)
    demande.status = "deleted"
    db_session.commit()

    response = await test_client.get(
        f"{API_PREFIX}/reponses", params={"acheteurId": buyer.id}, headers=buyer_headers
    )
    assert response.json()["reponses"] == []


async def test_reponse_notification_created_once(test_client, buyer, demande, seller_headers, db_session):
    await respond(test_client, seller_headers, demande.id)
    assert db_session.query(Notification).filter(
        Notification.user_id == buyer.id,
        Notification.type == "reponse",
    ).count() == 1


async def test_concurrent_duplicate_reponse_conflict(
    test_client, demande, seller_headers, db_session, monkeypatch
):
    """Sans la vérification préalable, la contrainte d'unicité renvoie aussi 409."""
    monkeypatch.setattr(reponses_endpoints, "find_reponse", lambda *args: None)

    first = await respond(test_client, seller_headers, demande.id)
    assert first.status_code == status.HTTP_201_CREATED

    second = await respond(test_client, seller_headers, demande.id, "Encore moi")
    assert second.status_code == status.HTTP_409_CONFLICT
    assert db_session.query(Reponse).count() == 1


async def test_list_reponses_hides_vendeur_email(test_client, seller, demande, seller_headers):
    await respond(test_client, seller_headers, demande.id)

    response = await test_client.get(
        f"{API_PREFIX}/reponses", params={"demandeId": demande.id}, headers=seller_headers
    )
    assert response.status_code == status.HTTP_200_OK
    vendeur = response.json()["reponses"][0]["vendeur"]
    assert vendeur["_id"] == str(seller.id)
    assert vendeur["email"] is None
