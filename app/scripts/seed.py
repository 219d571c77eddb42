"""
Seed a fresh database: the superadmin account and a set of sample features.
Run from project root (after migrations):
  python -m app.scripts.seed [--reset-features]

The superadmin is created from ADMIN_EMAIL / ADMIN_PASSWORD when both are set
and no account with that email exists. Sample features are inserted only into
an empty features table unless --reset-features is given.
"""
import argparse
import logging
import sys
from pathlib import Path

from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.database import Database
from app.core.security import ROLE_SUPERADMIN
from app.core.storage import LocalAttachmentStore
from app.models.feature import Feature
from app.schemas.features import FeatureCreate
from app.services import features as features_service
from app.services import users as users_service

logger = logging.getLogger(__name__)

SUPERADMIN_NAME = "Super Admin"

SAMPLE_FEATURES: list[dict] = [
    {
        "name": "Player Profile Management",
        "description": "Comprehensive player profile system with statistics tracking, achievements, and performance analytics.",
        "purpose": "Enable players to track their bowling performance, view statistics, and showcase achievements to build a competitive community.",
        "implementation": "Built using React components with real-time data updates. Integrated with bowling center APIs for automatic score tracking. Used Chart.js for visual analytics and performance graphs.",
        "technical_details": "Frontend: React, TypeScript, Chart.js. Backend: Node.js, Express. Real-time updates via WebSocket. Image upload to object storage. Authentication with JWT tokens.",
        "status": "completed",
        "priority": "high",
        "tags": ["player-management", "analytics", "profiles"],
        "author": "Development Team",
    },
    {
        "name": "Bowling Center Integration API",
        "description": "Seamless integration with bowling center management systems for real-time lane booking and scoring.",
        "purpose": "Streamline the booking process and provide real-time scoring data to enhance the player experience and reduce manual work for bowling centers.",
        "implementation": "RESTful API with webhook support for real-time updates. OAuth 2.0 for secure authentication with bowling center systems. Queue system for handling high-volume booking requests.",
        "technical_details": "API Gateway with rate limiting, Redis for caching, PostgreSQL for transactional data, Docker containers for scalability. Integration with major bowling center software.",
        "status": "in-progress",
        "priority": "critical",
        "tags": ["api", "integration", "booking", "real-time"],
        "author": "Backend Team",
    },
    {
        "name": "Equipment Marketplace",
        "description": "Marketplace for bowling equipment where manufacturers can list products and players can browse, compare, and purchase gear.",
        "purpose": "Create a centralized platform for bowling equipment sales, connecting manufacturers directly with players while providing detailed product information and reviews.",
        "implementation": "Multi-vendor e-commerce platform with advanced search and filtering. Integrated payment processing. Review and rating system with moderation. Inventory management for manufacturers.",
        "technical_details": "Server-side rendering for product pages, a search index for the catalog, Redis for sessions, object storage for product images. Admin dashboard for manufacturers with analytics.",
        "status": "planned",
        "priority": "medium",
        "tags": ["marketplace", "e-commerce", "equipment", "manufacturers"],
        "author": "Product Team",
    },
    {
        "name": "Tournament Management System",
        "description": "Tournament organization platform with bracket generation, scoring, live updates, and prize distribution.",
        "purpose": "Facilitate competitive bowling by providing tools for organizing tournaments, managing participants, and tracking results in real-time.",
        "implementation": "Event-driven architecture with real-time updates. Automated bracket generation. Integration with payment systems for entry fees and prize distribution.",
        "technical_details": "WebSocket for real-time updates, PostgreSQL for tournament data, Redis for leaderboards, integration with streaming platforms. Mobile-responsive design.",
        "status": "in-progress",
        "priority": "high",
        "tags": ["tournaments", "competition", "real-time", "payments"],
        "author": "Full Stack Team",
    },
    {
        "name": "Mobile App with Offline Support",
        "description": "Native mobile application with offline capabilities for score tracking, practice sessions, and social features.",
        "purpose": "Provide bowlers with a mobile-first experience that works even without internet connectivity, ensuring they can track their progress anywhere.",
        "implementation": "Cross-platform mobile client. Local SQLite database for offline storage. Background sync when connectivity returns. Push notifications for tournaments and social updates.",
        "technical_details": "Cross-platform UI toolkit, SQLite, background sync with retry logic, push notifications. Biometric authentication for security.",
        "status": "planned",
        "priority": "high",
        "tags": ["mobile", "offline", "sync"],
        "author": "Mobile Team",
    },
]


def ensure_superadmin(db: Session, settings: Settings) -> bool:
    """Create the ADMIN_EMAIL superadmin if configured and absent. True if created."""
    if not settings.ADMIN_EMAIL or settings.ADMIN_PASSWORD is None:
        logger.info("ADMIN_EMAIL/ADMIN_PASSWORD not set; skipping superadmin")
        return False
    if users_service.find_by_identity(db, settings.ADMIN_EMAIL) is not None:
        logger.info("Superadmin %s already exists", settings.ADMIN_EMAIL)
        return False
    users_service.create_user(
        db,
        name=SUPERADMIN_NAME,
        email=settings.ADMIN_EMAIL,
        password=settings.ADMIN_PASSWORD.get_secret_value(),
        role=ROLE_SUPERADMIN,
        rounds=settings.BCRYPT_ROUNDS,
    )
    return True


def seed_features(db: Session, settings: Settings, reset: bool = False) -> int:
    """Insert the sample features; returns how many were inserted."""
    if reset:
        store = LocalAttachmentStore(
            root=Path(settings.UPLOAD_DIR), url_prefix=settings.UPLOAD_URL_PREFIX
        )
        for (feature_id,) in db.query(Feature.id).all():
            features_service.delete_feature(db, store, feature_id)
        logger.info("Cleared existing features")
    elif db.query(Feature).count() > 0:
        logger.info("Features table is not empty; skipping sample features")
        return 0
    for sample in SAMPLE_FEATURES:
        features_service.create_feature(db, FeatureCreate.model_validate(sample))
    return len(SAMPLE_FEATURES)


def main() -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%SZ",
    )
    parser = argparse.ArgumentParser(description="Seed the superadmin and sample features.")
    parser.add_argument(
        "--reset-features",
        action="store_true",
        help="Delete all existing features (and their attachments) before seeding",
    )
    args = parser.parse_args()

    settings = get_settings()
    database = Database(settings.DATABASE_URL)
    database.open()
    db = database.session()
    try:
        created_admin = ensure_superadmin(db, settings)
        inserted = seed_features(db, settings, reset=args.reset_features)
    finally:
        db.close()
        database.close()
    print(f"Superadmin created: {'yes' if created_admin else 'no'}; sample features inserted: {inserted}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
