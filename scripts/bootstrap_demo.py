"""Bootstrap demo data for local development."""

from __future__ import annotations

import json
from dataclasses import dataclass, asdict
from decimal import Decimal
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from app import create_app
from models import db
from models.hotel import Hotel
from models.user import User


@dataclass
class CreatedRecords:
    """Container for created or updated record identifiers."""

    operator_id: int
    traveler_id: int
    hotel_ids: list[int]


OPERATOR_EMAIL = "operator@example.com"
OPERATOR_PASSWORD = "OperatorPass123"
TRAVELER_EMAIL = "traveler@example.com"
TRAVELER_PASSWORD = "TravelerPass123"

DEMO_HOTELS = (
    ("Harbour View Hotel", "Taipei", "Taiwan", Decimal("120.00")),
    ("Old Town Inn", "Tainan", "Taiwan", Decimal("85.50")),
    ("Alpine Lodge", "Zermatt", "Switzerland", Decimal("310.00")),
)


def get_or_create_user(email: str, password: str, name: str, role: str) -> User:
    """Create or update a verified user with the provided credentials."""

    user = User.query.filter_by(email=email).first()
    if user is None:
        user = User(email=email, name=name, role=role, is_email_verified=True)
        user.set_password(password)
        db.session.add(user)
    else:
        user.name = name
        user.role = role
        user.is_email_verified = True
        user.set_password(password)
    return user


def get_or_create_hotel(owner_id: int, name: str, city: str, country: str, price: Decimal) -> Hotel:
    """Ensure a hotel with the given name exists for the operator."""

    hotel = Hotel.query.filter_by(name=name, created_by=owner_id).first()
    if hotel is None:
        hotel = Hotel(name=name, created_by=owner_id)
        db.session.add(hotel)
    hotel.city = city
    hotel.country = country
    hotel.price_per_night = price
    return hotel


def bootstrap() -> CreatedRecords:
    """Bootstrap the demo records and return their identifiers."""

    app = create_app()
    with app.app_context():
        db.create_all()

        operator = get_or_create_user(
            OPERATOR_EMAIL, OPERATOR_PASSWORD, "Demo Operator", "operator"
        )
        traveler = get_or_create_user(
            TRAVELER_EMAIL, TRAVELER_PASSWORD, "Demo Traveler", "user"
        )

        db.session.flush()

        hotels = [get_or_create_hotel(operator.id, *values) for values in DEMO_HOTELS]
        db.session.flush()

        for hotel in hotels[:2]:
            if hotel not in traveler.favorites:
                traveler.favorites.append(hotel)

        db.session.commit()

        return CreatedRecords(
            operator_id=operator.id,
            traveler_id=traveler.id,
            hotel_ids=[hotel.id for hotel in hotels],
        )


if __name__ == "__main__":
    records = bootstrap()
    print(json.dumps(asdict(records)))
