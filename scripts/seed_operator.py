"""Seed a hotel operator account."""

import os
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from app import create_app
from models import db
from models.user import User

OPERATOR_EMAIL = os.getenv("SEED_OPERATOR_EMAIL", "operator@example.com")
OPERATOR_PASSWORD = os.getenv("SEED_OPERATOR_PASSWORD", "OperatorPass123")
OPERATOR_NAME = "Wanderlust Operator"


def main() -> None:
    app = create_app()
    with app.app_context():
        operator = User.query.filter_by(email=OPERATOR_EMAIL.lower()).first()
        if operator is None:
            operator = User(
                email=OPERATOR_EMAIL,
                name=OPERATOR_NAME,
                role="operator",
                is_email_verified=True,
            )
            operator.set_password(OPERATOR_PASSWORD)
            db.session.add(operator)
            action = "created"
        else:
            operator.role = "operator"
            operator.is_email_verified = True
            operator.login_attempts = 0
            operator.lock_until = None
            operator.set_password(OPERATOR_PASSWORD)
            action = "updated"
        db.session.commit()
        print(f"Operator user {action}: {operator.email}")


if __name__ == "__main__":
    main()
