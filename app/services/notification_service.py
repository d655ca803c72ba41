"""
Service de gestion des notifications in-app.
Crée les notifications liées aux messages, réponses, demandes et à la modération,
et gère leur état de lecture.
"""

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import settings
from app.core.logging import logger, log_notification_sent
from app.models.demande import Demande
from app.models.message import Message
from app.models.notification import (
    Notification,
    NotificationType,
    render_template,
    reference_columns,
)
from app.models.reponse import Reponse
from app.models.user import User


def format_budget(budget: Any) -> str:
    """Suffixe de budget pour les notifications (ex: ' - 100 000 FCFA')."""
    if budget is None or float(budget) <= 0:
        return ""
    return f" - {int(budget):,} FCFA".replace(",", " ")


class NotificationService:
    """
    Service principal de gestion des notifications.

    Les notifications sont des effets de bord: leur échec est journalisé
    sans jamais annuler l'écriture principale qui les a déclenchées.
    """

    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # Construction / insertion
    # ------------------------------------------------------------------

    def build(
        self,
        user_id: int,
        notification_type: NotificationType,
        data: Dict[str, Any],
    ) -> Notification:
        """
        Construit une notification (non sauvegardée).

        Args:
            user_id: ID du destinataire
            notification_type: Type de notification
            data: Payload affiché au client (title, message, références)

        Returns:
            Instance Notification
        """
        payload = dict(data)
        return Notification(
            user_id=user_id,
            type=NotificationType(notification_type).value,
            data=payload,
            read=False,
            created_at=datetime.utcnow(),
            **reference_columns(payload),
        )

    def from_template(
        self,
        user_id: int,
        notification_type: NotificationType,
        references: Optional[Dict[str, Any]] = None,
        **template_vars,
    ) -> Notification:
        """Construit une notification dont le titre et le texte viennent du template."""
        try:
            data = render_template(notification_type, **template_vars)
        except KeyError as e:
            logger.warning(f"Variable manquante dans le template {notification_type}: {e}")
            data = {"title": "Notification", "message": ""}
        data.update(references or {})
        return self.build(user_id, notification_type, data)

    def dispatch(
        self,
        notifications: List[Notification],
        reference: str = "",
    ) -> int:
        """
        Insère un lot de notifications en un seul commit.

        Returns:
            Nombre de notifications créées (0 en cas d'échec)
        """
        if not notifications:
            return 0

        notification_type = notifications[0].type
        try:
            self.db.add_all(notifications)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Erreur création notifications {notification_type}: {e}")
            log_notification_sent(notification_type, len(notifications), False, reference)
            return 0

        log_notification_sent(notification_type, len(notifications), True, reference)
        return len(notifications)

    # ------------------------------------------------------------------
    # Notifications métier
    # ------------------------------------------------------------------

    def notify_new_message(self, message: Message, sender: User, demande: Demande) -> int:
        """Notifie le destinataire d'un nouveau message (titre de la demande tel qu'enregistré)."""
        notification = self.from_template(
            message.receiver_id,
            NotificationType.MESSAGE,
            references={
                "conversationId": message.conversation_id,
                "messageId": str(message.id),
                "senderId": str(sender.id),
                "senderNom": sender.nom,
                "demandeId": str(message.demande_id),
                "demandeTitre": demande.titre,
            },
            sender_nom=sender.nom,
        )
        return self.dispatch([notification], reference=message.conversation_id)

    def _reponse_notification(self, reponse: Reponse, demande: Demande, vendeur_nom: str) -> Notification:
        return self.from_template(
            demande.acheteur_id,
            NotificationType.REPONSE,
            references={
                "reponseId": str(reponse.id),
                "demandeId": str(demande.id),
                "demandeTitre": demande.titre,
                "vendeurId": str(reponse.vendeur_id),
                "vendeurNom": vendeur_nom,
            },
            vendeur_nom=vendeur_nom,
            demande_titre=demande.titre,
        )

    def notify_new_reponse(self, reponse: Reponse, demande: Demande, vendeur: User) -> int:
        """Notifie l'auteur de la demande qu'un vendeur a répondu."""
        notification = self._reponse_notification(reponse, demande, vendeur.nom)
        return self.dispatch([notification], reference=f"demande {demande.id}")

    def _demande_notification(self, user_id: int, demande: Demande) -> Notification:
        return self.from_template(
            user_id,
            NotificationType.NOUVELLE_DEMANDE,
            references={
                "demandeId": str(demande.id),
                "demandeTitre": demande.titre,
                "categorie": demande.categorie,
            },
            categorie=demande.categorie,
            demande_titre=demande.titre,
            budget=format_budget(demande.budget),
        )

    def notify_vendeurs_new_demande(self, demande: Demande) -> int:
        """
        Notifie tous les vendeurs non bannis (hors auteur) d'une nouvelle demande.
        Les notifications sont insérées en un seul lot.
        """
        vendeur_ids = [
            row.id for row in self.db.query(User.id).filter(
                User.role == "vendeur",
                User.is_banned == False,
                User.id != demande.acheteur_id,
            ).all()
        ]
        notifications = [self._demande_notification(uid, demande) for uid in vendeur_ids]
        return self.dispatch(notifications, reference=f"demande {demande.id}")

    def notify_ban(self, user: User) -> int:
        notification = self.from_template(
            user.id,
            NotificationType.BAN,
            references={
                "banType": user.ban_type,
                "banReason": user.ban_reason,
                "banExpiry": user.ban_expiry.isoformat() if user.ban_expiry else None,
            },
            ban_reason=user.ban_reason,
        )
        return self.dispatch([notification], reference=f"user {user.id}")

    def notify_unban(self, user: User) -> int:
        notification = self.build(
            user.id,
            NotificationType.ADMIN,
            {"title": "Compte réactivé", "message": "Votre compte a été réactivé."},
        )
        return self.dispatch([notification], reference=f"user {user.id}")

    def send_admin_message(
        self,
        message: str,
        title: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
        user_id: Optional[int] = None,
    ) -> int:
        """
        Envoie un message de l'administration.

        Args:
            message: Texte du message
            title: Titre (défaut: template admin)
            data: Données supplémentaires ajoutées au payload
            user_id: Destinataire unique, ou None pour tous les utilisateurs

        Returns:
            Nombre de notifications créées
        """
        if user_id is not None:
            recipients = [user_id]
        else:
            recipients = [row.id for row in self.db.query(User.id).all()]

        payload = render_template(NotificationType.ADMIN, message=message)
        if title:
            payload["title"] = title
        payload.update(data or {})

        notifications = [
            self.build(uid, NotificationType.ADMIN, payload) for uid in recipients
        ]
        return self.dispatch(
            notifications,
            reference="broadcast" if user_id is None else f"user {user_id}",
        )

    def catch_up_on_login(self, user: User, since: Optional[datetime]) -> int:
        """
        Crée les notifications manquées depuis la dernière connexion.

        Vendeur: nouvelles demandes actives (hors les siennes).
        Acheteur: nouvelles réponses à ses demandes actives.
        Les éléments déjà notifiés sont ignorés.
        """
        since = since or datetime(1970, 1, 1)
        limit = settings.LOGIN_CATCHUP_LIMIT

        if user.role == "vendeur":
            demandes = self.db.query(Demande).filter(
                Demande.created_at > since,
                Demande.status == "active",
                Demande.acheteur_id != user.id,
            ).order_by(Demande.created_at.desc()).limit(limit).all()

            already = self._already_notified(
                user.id, NotificationType.NOUVELLE_DEMANDE,
                Notification.demande_id, [d.id for d in demandes],
            )
            notifications = [
                self._demande_notification(user.id, d)
                for d in demandes if d.id not in already
            ]
            return self.dispatch(notifications, reference=f"login {user.id}")

        if user.role == "acheteur":
            reponses = self.db.query(Reponse).join(
                Demande, Reponse.demande_id == Demande.id
            ).filter(
                Demande.acheteur_id == user.id,
                Demande.status == "active",
                Reponse.created_at > since,
            ).order_by(Reponse.created_at.desc()).limit(limit).all()

            already = self._already_notified(
                user.id, NotificationType.REPONSE,
                Notification.reponse_id, [r.id for r in reponses],
            )
            notifications = [
                self._reponse_notification(
                    r, r.demande, r.vendeur.nom if r.vendeur else "Un vendeur"
                )
                for r in reponses if r.id not in already
            ]
            return self.dispatch(notifications, reference=f"login {user.id}")

        return 0

    def _already_notified(
        self,
        user_id: int,
        notification_type: NotificationType,
        column,
        ids: Iterable[int],
    ) -> set:
        ids = list(ids)
        if not ids:
            return set()
        rows = self.db.query(column).filter(
            Notification.user_id == user_id,
            Notification.type == notification_type.value,
            column.in_(ids),
        ).all()
        return {row[0] for row in rows}

    # ------------------------------------------------------------------
    # État de lecture
    # ------------------------------------------------------------------

    def list_for_user(self, user_id: int, unread_only: bool = False) -> List[Notification]:
        query = self.db.query(Notification).filter(Notification.user_id == user_id)
        if unread_only:
            query = query.filter(Notification.read == False)
        return query.order_by(
            Notification.created_at.desc(), Notification.id.desc()
        ).limit(settings.NOTIFICATIONS_LIMIT).all()

    def count_unread(self, user_id: int) -> int:
        return self.db.query(func.count(Notification.id)).filter(
            Notification.user_id == user_id,
            Notification.read == False,
        ).scalar() or 0

    def unread_by_conversation(self, user_id: int, conversation_ids: List[str]) -> Dict[str, int]:
        """Nombre de notifications 'message' non lues par conversation, en une requête."""
        if not conversation_ids:
            return {}
        rows = self.db.query(
            Notification.conversation_id, func.count(Notification.id)
        ).filter(
            Notification.user_id == user_id,
            Notification.type == NotificationType.MESSAGE.value,
            Notification.read == False,
            Notification.conversation_id.in_(conversation_ids),
        ).group_by(Notification.conversation_id).all()
        return {conversation_id: count for conversation_id, count in rows}

    def mark_read(self, notification: Notification) -> Notification:
        """Marque une notification comme lue (transition unique non lue -> lue)."""
        if not notification.read:
            notification.read = True
            self.db.commit()
            self.db.refresh(notification)
        return notification

    def mark_all_read(self, user_id: int) -> int:
        updated = self.db.query(Notification).filter(
            Notification.user_id == user_id,
            Notification.read == False,
        ).update({Notification.read: True}, synchronize_session=False)
        self.db.commit()
        return updated

    def delete_for_conversation(self, conversation_id: str) -> int:
        """Supprime toutes les notifications d'une conversation (sans commit)."""
        return self.db.query(Notification).filter(
            Notification.conversation_id == conversation_id
        ).delete(synchronize_session=False)

    def delete_for_message(self, message_id: int) -> int:
        """Supprime les notifications d'un message (sans commit)."""
        return self.db.query(Notification).filter(
            Notification.message_id == message_id
        ).delete(synchronize_session=False)
