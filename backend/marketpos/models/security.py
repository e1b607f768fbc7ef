from __future__ import annotations

from ..extensions import db
from marketpos.time_utils import to_utc_z


class SecurityEvent(db.Model):
    """
    Immutable audit trail of authentication and authorization outcomes
    (failed logins, permission denials, logouts, user administration).
    """
    __tablename__ = "security_events"
    __table_args__ = (
        db.Index("ix_security_events_user_time", "user_id", "occurred_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)

    event_type = db.Column(db.String(64), nullable=False, index=True)
    success = db.Column(db.Boolean, nullable=False)

    resource = db.Column(db.String(255), nullable=True)
    action = db.Column(db.String(128), nullable=True)
    reason = db.Column(db.String(255), nullable=True)

    ip_address = db.Column(db.String(64), nullable=True)
    user_agent = db.Column(db.String(255), nullable=True)

    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "event_type": self.event_type,
            "success": self.success,
            "resource": self.resource,
            "action": self.action,
            "reason": self.reason,
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "occurred_at": to_utc_z(self.occurred_at),
        }
