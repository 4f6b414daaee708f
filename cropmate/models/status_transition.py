from datetime import datetime

from cropmate.extensions import db


class StatusTransition(db.Model):
    __tablename__ = "status_transitions"

    id = db.Column(db.Integer, primary_key=True)
    entity_type = db.Column(db.String(32), nullable=False, index=True)  # order|delivery|delivery_request
    entity_id = db.Column(db.Integer, nullable=False, index=True)
    from_status = db.Column(db.String(32), nullable=False, default="")
    to_status = db.Column(db.String(32), nullable=False)
    actor_id = db.Column(db.Integer, nullable=True)
    reason = db.Column(db.String(240), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": int(self.id),
            "entity_type": self.entity_type or "",
            "entity_id": int(self.entity_id),
            "from_status": self.from_status or "",
            "to_status": self.to_status or "",
            "actor_id": int(self.actor_id) if self.actor_id is not None else None,
            "reason": self.reason or "",
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
