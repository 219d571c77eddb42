"""
Create a user (e.g. the first superadmin). Run from project root:
  python -m app.scripts.create_user EMAIL PASSWORD [--name NAME] [--role ROLE]
Example:
  python -m app.scripts.create_user superadmin your-secure-password --role superadmin
"""
import argparse
import logging
import sys

from app.core.config import get_settings
from app.core.database import Database
from app.core.errors import AppError
from app.core.security import PASSWORD_MAX_LEN, PASSWORD_MIN_LEN, ROLE_ADMIN, ROLES
from app.services import users as users_service

logger = logging.getLogger(__name__)


def main() -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%SZ",
    )
    parser = argparse.ArgumentParser(description="Create a dashboard user (no registration UI).")
    parser.add_argument("email", help="Email or bare username used to log in")
    parser.add_argument("password", help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars)")
    parser.add_argument("--name", default=None, help="Display name (defaults to the email)")
    parser.add_argument("--role", default=ROLE_ADMIN, choices=sorted(ROLES))
    args = parser.parse_args()

    email = args.email.strip()
    if not email or len(email) > 255:
        print("Invalid email length.", file=sys.stderr)
        return 1
    if len(args.password) < PASSWORD_MIN_LEN or len(args.password) > PASSWORD_MAX_LEN:
        print(f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.", file=sys.stderr)
        return 1
    name = (args.name or email).strip()[:100]

    settings = get_settings()
    database = Database(settings.DATABASE_URL)
    database.open()
    db = database.session()
    try:
        user = users_service.create_user(
            db,
            name=name,
            email=email,
            password=args.password,
            role=args.role,
            rounds=settings.BCRYPT_ROUNDS,
        )
    except AppError as e:
        print(e.message, file=sys.stderr)
        return 1
    finally:
        db.close()
        database.close()
    print(f"Created user '{user.email}' with role '{user.role}'.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
