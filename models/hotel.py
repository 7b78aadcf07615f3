"""Hotel model definition."""

from . import db
from .user import utcnow


class Hotel(db.Model):
    """A hotel listing that travelers can add to their favorites."""

    __tablename__ = "hotels"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    city = db.Column(db.String(120), nullable=False, index=True)
    country = db.Column(db.String(120), nullable=False)
    price_per_night = db.Column(db.Numeric(10, 2), nullable=False)
    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<Hotel {self.name}>"
