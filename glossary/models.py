import uuid
from datetime import UTC, datetime

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import event
from sqlalchemy.engine import Engine

db = SQLAlchemy()


def _utcnow():
    return datetime.now(UTC)


def _uuid():
    return uuid.uuid4().hex


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ships with FK enforcement off; term_tags relies on ON DELETE CASCADE.
    if type(dbapi_connection).__module__.startswith("sqlite3"):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# ── Association tables ──────────────────────────────────────────────

term_tags = db.Table(
    "term_tags",
    db.Column("term_id", db.Integer, db.ForeignKey("terms.id", ondelete="CASCADE"), primary_key=True),
    db.Column("tag_id", db.Integer, db.ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)


# ── Tag ─────────────────────────────────────────────────────────────


class Tag(db.Model):
    __tablename__ = "tags"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), unique=True, nullable=False, index=True)

    def to_dict(self):
        return {"id": self.id, "name": self.name}

    def __repr__(self):
        return f"<Tag {self.name}>"


# ── Term ────────────────────────────────────────────────────────────


class Term(db.Model):
    __tablename__ = "terms"

    id = db.Column(db.Integer, primary_key=True)
    public_id = db.Column(db.String(32), unique=True, nullable=False, default=_uuid)
    title = db.Column(db.String(255), nullable=False, index=True)
    content = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=_utcnow, index=True)
    updated_at = db.Column(db.DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)

    tags = db.relationship("Tag", secondary=term_tags, backref="terms", lazy="selectin")

    @property
    def tag_names(self):
        return sorted(t.name for t in self.tags)

    def to_dict(self):
        return {
            "id": self.public_id,
            "title": self.title,
            "content": self.content,
            "tags": [t.to_dict() for t in sorted(self.tags, key=lambda t: t.name)],
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<Term {self.title[:40]}>"


# ── Audit Log ───────────────────────────────────────────────────────


class AuditLog(db.Model):
    __tablename__ = "audit_logs"

    id = db.Column(db.Integer, primary_key=True)
    timestamp = db.Column(db.DateTime, nullable=False, default=_utcnow, index=True)
    action = db.Column(db.String(100), nullable=False, index=True)
    target_type = db.Column(db.String(50), nullable=True)  # term, tag
    target_id = db.Column(db.String(32), nullable=True)
    detail = db.Column(db.Text, nullable=True)
    ip_address = db.Column(db.String(45), nullable=True)

    def __repr__(self):
        return f"<AuditLog {self.action} at {self.timestamp}>"
