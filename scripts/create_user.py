"""
Création d'un compte caissier ou administrateur.

Les comptes ne sont pas créés depuis l'application: ce script hash le PIN
avec bcrypt et insère l'utilisateur.

Usage:
    python scripts/create_user.py --name "Imam Yusuf" --role admin --pin 1234
    python scripts/create_user.py --name "Caissier" --role cashier --pin 5678 --init-db
"""

import argparse
import re
import sys

from masjid_portal.config import settings
from masjid_portal.core.logging import setup_logging, logger
from masjid_portal.core.security import get_pin_hash, verify_pin
from masjid_portal.database import get_db_context, init_db
from masjid_portal.models import User, UserRole


PIN_PATTERN = re.compile(r"^[0-9]{4}$")


def create_user(name: str, role: str, pin: str) -> User:
    """Insère le compte; refuse un PIN déjà utilisé pour ce rôle."""
    pin = pin.strip()
    if not PIN_PATTERN.match(pin):
        raise ValueError("Le PIN doit contenir exactement 4 chiffres")

    with get_db_context() as db:
        existing = db.query(User).filter(User.role == role, User.is_active == True).all()  # noqa: E712
        if any(verify_pin(pin, user.pin_hash) for user in existing):
            raise ValueError(f"Ce PIN est déjà utilisé par un compte {role}")

        user = User(name=name.strip(), role=role, pin_hash=get_pin_hash(pin))
        db.add(user)
        db.flush()
        db.refresh(user)
        db.expunge(user)

    logger.info(f"Compte créé: {user.name} ({role}) id={user.id}")
    return user


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Créer un compte du portail")
    parser.add_argument("--name", required=True, help="Nom affiché")
    parser.add_argument(
        "--role",
        required=True,
        choices=[role.value for role in UserRole],
        help="Rôle du compte",
    )
    parser.add_argument("--pin", required=True, help="Code PIN à 4 chiffres")
    parser.add_argument(
        "--init-db",
        action="store_true",
        help="Créer les tables manquantes avant l'insertion",
    )
    args = parser.parse_args(argv)

    setup_logging(log_file=settings.LOG_FILE)

    if args.init_db:
        init_db()

    try:
        user = create_user(args.name, args.role, args.pin)
    except ValueError as e:
        print(f"Erreur: {e}")
        return 1

    print(f"Compte {user.role} créé pour {user.name} (id={user.id})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
