"""ORM models for tracked features and their uploaded attachments."""

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import relationship

from app.models.base import Base

FILE_NAME_MAX_LENGTH = 255
FILE_TYPE_MAX_LENGTH = 255


class Feature(Base):
    """
    A product feature shown on the public showcase and roadmap.

    Attachments are owned by the feature: deleting the feature deletes its
    attachment rows (blobs are cleaned up by the feature service).
    """

    __tablename__ = "features"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    description = Column(String(1000), nullable=False)
    purpose = Column(Text, nullable=False, default="")
    implementation = Column(Text, nullable=False, default="")
    technical_details = Column(Text, nullable=False, default="")
    status = Column(String(32), nullable=False, default="planned", index=True)
    priority = Column(String(32), nullable=False, default="medium", index=True)
    tags = Column(JSON, nullable=False, default=list)
    author = Column(String(100), nullable=False, default="Development Team")
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        index=True,
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    attachments = relationship(
        "Attachment",
        back_populates="feature",
        cascade="all, delete-orphan",
        order_by="Attachment.id",
    )


class Attachment(Base):
    """Descriptor of one uploaded file; the blob itself lives in the attachment store."""

    __tablename__ = "feature_attachments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    feature_id = Column(
        Integer,
        ForeignKey("features.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    file_name = Column(String(FILE_NAME_MAX_LENGTH), nullable=False)
    file_type = Column(String(FILE_TYPE_MAX_LENGTH), nullable=False)
    file_size = Column(Integer, nullable=False)
    url = Column(String(2048), nullable=False)
    public_id = Column(String(512), nullable=False)
    uploaded_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    feature = relationship("Feature", back_populates="attachments")
