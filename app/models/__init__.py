"""SQLAlchemy ORM models."""

from app.models.base import Base
from app.models.feature import Attachment, Feature
from app.models.user import User

__all__ = ["Attachment", "Base", "Feature", "User"]
