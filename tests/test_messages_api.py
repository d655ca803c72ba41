"""
Tests d'intégration de la messagerie: envoi, conversations, suppressions.
"""
import pytest
from httpx import AsyncClient
from fastapi import status
from sqlalchemy.exc import OperationalError

from app.config import settings
from app.models import Message, Notification
from app.services.conversation_service import derive_conversation_id

API_PREFIX = settings.API_PREFIX

pytestmark = pytest.mark.asyncio


async def send(client: AsyncClient, headers, receiver_id, demande_id, text="", **extra):
    payload = {"receiverId": str(receiver_id), "demandeId": str(demande_id), "message": text}
    payload.update(extra)
    return await client.post(f"{API_PREFIX}/messages", json=payload, headers=headers)


# --- Envoi (POST /messages) ---

async def test_send_message_success(test_client, buyer, seller, demande, buyer_headers, db_session):
    """Le message est enregistré et le destinataire reçoit une notification."""
    response = await send(test_client, buyer_headers, seller.id, demande.id, "  Bonjour  ")
    assert response.status_code == status.HTTP_201_CREATED

    data = response.json()["message"]
    expected_id = derive_conversation_id(demande.id, buyer.id, seller.id)
    assert data["conversationId"] == expected_id
    assert data["message"] == "Bonjour"
    assert data["senderId"] == str(buyer.id)
    assert data["receiverId"] == str(seller.id)
    assert data["demandeId"] == str(demande.id)
    assert data["demandeTitre"] == demande.titre
    assert data["images"] == []
    assert "_id" in data
    assert "dateCreation" in data

    notifications = db_session.query(Notification).filter(
        Notification.user_id == seller.id,
        Notification.type == "message",
        Notification.read == False,
        Notification.conversation_id == expected_id,
    ).all()
    assert len(notifications) == 1
    payload = notifications[0].data
    assert payload["conversationId"] == expected_id
    assert payload["senderId"] == str(buyer.id)
    assert payload["demandeId"] == str(demande.id)
    assert payload["demandeTitre"] == demande.titre
    assert payload["messageId"] == data["_id"]


async def test_message_notification_uses_stored_titre(
    test_client, seller, demande, buyer_headers, db_session
):
    """Le titre de la notification vient de la demande, pas du client."""
    response = await send(
        test_client, buyer_headers, seller.id, demande.id, "Bonjour", demandeTitre="Titre modifié"
    )
    assert response.status_code == status.HTTP_201_CREATED

    notification = db_session.query(Notification).filter(
        Notification.user_id == seller.id,
        Notification.type == "message",
    ).one()
    assert notification.data["demandeTitre"] == demande.titre


async def test_send_message_survives_notification_failure(
    test_client, seller, demande, buyer_headers, db_session, monkeypatch
):
    """Une erreur d'insertion des notifications n'annule pas l'envoi."""
    def failing_add_all(instances):
        raise OperationalError("INSERT INTO notifications", {}, Exception("disque plein"))

    monkeypatch.setattr(db_session, "add_all", failing_add_all)

    response = await send(test_client, buyer_headers, seller.id, demande.id, "Bonjour")
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["message"]["message"] == "Bonjour"

    assert db_session.query(Message).count() == 1
    assert db_session.query(Notification).count() == 0


async def test_send_message_with_images_only(test_client, seller, demande, buyer_headers):
    """Un message sans texte est accepté s'il porte une image complète."""
    images = [
        {"url": "https://img.test/1.jpg", "publicId": "local-deals-togo/1"},
        {"url": "https://img.test/2.jpg"},  # incomplète: ignorée
    ]
    response = await send(test_client, buyer_headers, seller.id, demande.id, "", images=images)
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()["message"]
    assert data["message"] == ""
    assert data["images"] == [{"url": "https://img.test/1.jpg", "publicId": "local-deals-togo/1"}]


async def test_send_message_images_truncated_to_five(test_client, seller, demande, buyer_headers):
    images = [{"url": f"https://img.test/{i}.jpg", "publicId": f"p{i}"} for i in range(8)]
    response = await send(test_client, buyer_headers, seller.id, demande.id, "Photos", images=images)
    assert response.status_code == status.HTTP_201_CREATED
    assert len(response.json()["message"]["images"]) == 5


async def test_send_empty_message_rejected(test_client, seller, demande, buyer_headers, db_session):
    response = await send(test_client, buyer_headers, seller.id, demande.id, "   ")
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "message" in response.json()
    assert db_session.query(Message).count() == 0


async def test_send_message_missing_ids_rejected(test_client, buyer_headers):
    response = await test_client.post(
        f"{API_PREFIX}/messages", json={"message": "Bonjour"}, headers=buyer_headers
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["message"] == "Données invalides"


async def test_send_message_unknown_receiver(test_client, demande, buyer_headers):
    response = await send(test_client, buyer_headers, 9999, demande.id, "Bonjour")
    assert response.status_code == status.HTTP_404_NOT_FOUND


async def test_send_message_deleted_demande(test_client, seller, demande, buyer_headers, db_session):
    demande.status = "deleted"
    db_session.commit()
    response = await send(test_client, buyer_headers, seller.id, demande.id, "Bonjour")
    assert response.status_code == status.HTTP_404_NOT_FOUND


async def test_send_message_requires_auth(test_client, seller, demande):
    response = await send(test_client, {}, seller.id, demande.id, "Bonjour")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


# --- Conversations (GET /conversations/{userId}) ---

async def test_conversation_scenario_unread_count(
    test_client, buyer, seller, demande, buyer_headers, seller_headers
):
    """A écrit "Bonjour", B répond "Disponible": A voit une conversation avec 1 non lu."""
    await send(test_client, buyer_headers, seller.id, demande.id, "Bonjour")
    await send(test_client, seller_headers, buyer.id, demande.id, "Disponible")

    response = await test_client.get(
        f"{API_PREFIX}/conversations/{buyer.id}", headers=buyer_headers
    )
    assert response.status_code == status.HTTP_200_OK

    conversations = response.json()["conversations"]
    assert len(conversations) == 1
    conversation = conversations[0]
    assert conversation["conversationId"] == derive_conversation_id(demande.id, buyer.id, seller.id)
    assert conversation["demandeId"] == str(demande.id)
    assert conversation["lastMessage"]["message"] == "Disponible"
    assert conversation["unreadCount"] == 1
    assert conversation["otherUser"]["_id"] == str(seller.id)
    assert conversation["otherUser"]["nom"] == seller.nom


async def test_conversations_unique_and_sorted(
    test_client, buyer, seller, seller2, demande, buyer_headers, seller_headers, seller2_headers
):
    """Chaque conversation n'apparaît qu'une fois, la plus récente en premier."""
    await send(test_client, seller_headers, buyer.id, demande.id, "Premier")
    await send(test_client, seller2_headers, buyer.id, demande.id, "Deuxième")
    await send(test_client, seller_headers, buyer.id, demande.id, "Troisième")

    response = await test_client.get(
        f"{API_PREFIX}/conversations/{buyer.id}", headers=buyer_headers
    )
    conversations = response.json()["conversations"]

    ids = [c["conversationId"] for c in conversations]
    assert len(ids) == len(set(ids)) == 2
    assert conversations[0]["otherUser"]["_id"] == str(seller.id)
    assert conversations[0]["lastMessage"]["message"] == "Troisième"
    assert conversations[0]["unreadCount"] == 2
    assert conversations[1]["lastMessage"]["message"] == "Deuxième"

    dates = [c["lastMessage"]["dateCreation"] for c in conversations]
    assert dates == sorted(dates, reverse=True)


async def test_conversations_scan_limited_to_recent_messages(
    test_client, buyer, seller, seller2, demande, buyer_headers, seller_headers, seller2_headers,
    monkeypatch
):
    """Une conversation au-delà des messages parcourus n'est pas listée."""
    monkeypatch.setattr(settings, "CONVERSATION_SCAN_LIMIT", 2)

    await send(test_client, seller2_headers, buyer.id, demande.id, "Ancien")
    await send(test_client, seller_headers, buyer.id, demande.id, "Récent 1")
    await send(test_client, seller_headers, buyer.id, demande.id, "Récent 2")

    response = await test_client.get(
        f"{API_PREFIX}/conversations/{buyer.id}", headers=buyer_headers
    )
    conversations = response.json()["conversations"]
    assert len(conversations) == 1
    assert conversations[0]["otherUser"]["_id"] == str(seller.id)
    assert conversations[0]["lastMessage"]["message"] == "Récent 2"


async def test_conversations_hide_other_user_email(
    test_client, buyer, seller, demande, buyer_headers
):
    await send(test_client, buyer_headers, seller.id, demande.id, "Bonjour")

    response = await test_client.get(
        f"{API_PREFIX}/conversations/{buyer.id}", headers=buyer_headers
    )
    other = response.json()["conversations"][0]["otherUser"]
    assert other["nom"] == seller.nom
    assert other["email"] is None


async def test_conversations_placeholder_for_missing_user(
    test_client, buyer, demande, buyer_headers, db_session
):
    """Un interlocuteur supprimé est remplacé par un profil générique."""
    db_session.add(Message(
        conversation_id=derive_conversation_id(demande.id, buyer.id, 4242),
        demande_id=demande.id,
        demande_titre=demande.titre,
        sender_id=4242,
        receiver_id=buyer.id,
        message="Toujours disponible ?",
        images=[],
    ))
    db_session.commit()

    response = await test_client.get(
        f"{API_PREFIX}/conversations/{buyer.id}", headers=buyer_headers
    )
    assert response.status_code == status.HTTP_200_OK
    other = response.json()["conversations"][0]["otherUser"]
    assert other["_id"] == "4242"
    assert other["nom"] == "Utilisateur"
    assert other["role"] == "acheteur"


async def test_conversations_forbidden_for_other_user(test_client, buyer, seller_headers):
    response = await test_client.get(
        f"{API_PREFIX}/conversations/{buyer.id}", headers=seller_headers
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN


async def test_conversations_allowed_for_admin(test_client, buyer, admin_headers):
    response = await test_client.get(
        f"{API_PREFIX}/conversations/{buyer.id}", headers=admin_headers
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["conversations"] == []


# --- Messages d'une conversation (GET /messages/{conversationId}) ---

async def test_get_conversation_messages_oldest_first(
    test_client, buyer, seller, demande, buyer_headers, seller_headers
):
    await send(test_client, buyer_headers, seller.id, demande.id, "Bonjour")
    await send(test_client, seller_headers, buyer.id, demande.id, "Disponible")
    conversation_id = derive_conversation_id(demande.id, buyer.id, seller.id)

    response = await test_client.get(
        f"{API_PREFIX}/messages/{conversation_id}", headers=seller_headers
    )
    assert response.status_code == status.HTTP_200_OK
    messages = response.json()["messages"]
    assert [m["message"] for m in messages] == ["Bonjour", "Disponible"]


async def test_get_conversation_messages_not_participant(
    test_client, buyer, seller, demande, buyer_headers, seller2_headers
):
    await send(test_client, buyer_headers, seller.id, demande.id, "Bonjour")
    conversation_id = derive_conversation_id(demande.id, buyer.id, seller.id)

    response = await test_client.get(
        f"{API_PREFIX}/messages/{conversation_id}", headers=seller2_headers
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND


# --- Suppressions ---

async def test_delete_conversation_removes_messages_and_notifications(
    test_client, buyer, seller, demande, buyer_headers, seller_headers, db_session
):
    await send(test_client, buyer_headers, seller.id, demande.id, "Bonjour")
    await send(test_client, seller_headers, buyer.id, demande.id, "Disponible")
    conversation_id = derive_conversation_id(demande.id, buyer.id, seller.id)

    response = await test_client.delete(
        f"{API_PREFIX}/conversations/{conversation_id}", headers=buyer_headers
    )
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["success"] is True
    assert data["deletedCount"] == 2

    assert db_session.query(Message).filter(Message.conversation_id == conversation_id).count() == 0
    assert db_session.query(Notification).filter(
        Notification.conversation_id == conversation_id
    ).count() == 0

    response = await test_client.get(
        f"{API_PREFIX}/messages/{conversation_id}", headers=buyer_headers
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND


async def test_delete_empty_conversation_not_found(test_client, buyer, seller, demande, buyer_headers):
    conversation_id = derive_conversation_id(demande.id, buyer.id, seller.id)
    response = await test_client.delete(
        f"{API_PREFIX}/conversations/{conversation_id}", headers=buyer_headers
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND


async def test_delete_conversation_by_outsider_not_found(
    test_client, buyer, seller, demande, buyer_headers, seller2_headers, db_session
):
    await send(test_client, buyer_headers, seller.id, demande.id, "Bonjour")
    conversation_id = derive_conversation_id(demande.id, buyer.id, seller.id)

    response = await test_client.delete(
        f"{API_PREFIX}/conversations/{conversation_id}", headers=seller2_headers
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert db_session.query(Message).count() == 1


async def test_delete_message_by_sender(
    test_client, buyer, seller, demande, buyer_headers, db_session
):
    response = await send(test_client, buyer_headers, seller.id, demande.id, "Bonjour")
    message_id = response.json()["message"]["_id"]

    response = await test_client.delete(
        f"{API_PREFIX}/messages/{message_id}", headers=buyer_headers
    )
    assert response.status_code == status.HTTP_200_OK
    assert db_session.query(Message).count() == 0
    assert db_session.query(Notification).filter(
        Notification.message_id == int(message_id)
    ).count() == 0


async def test_delete_message_by_receiver_forbidden(
    test_client, seller, demande, buyer_headers, seller_headers
):
    response = await send(test_client, buyer_headers, seller.id, demande.id, "Bonjour")
    message_id = response.json()["message"]["_id"]

    response = await test_client.delete(
        f"{API_PREFIX}/messages/{message_id}", headers=seller_headers
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN


async def test_delete_message_by_admin(
    test_client, seller, demande, buyer_headers, admin_headers
):
    response = await send(test_client, buyer_headers, seller.id, demande.id, "Bonjour")
    message_id = response.json()["message"]["_id"]

    response = await test_client.delete(
        f"{API_PREFIX}/messages/{message_id}", headers=admin_headers
    )
    assert response.status_code == status.HTTP_200_OK


async def test_delete_missing_message(test_client, buyer_headers):
    response = await test_client.delete(f"{API_PREFIX}/messages/9999", headers=buyer_headers)
    assert response.status_code == status.HTTP_404_NOT_FOUND
