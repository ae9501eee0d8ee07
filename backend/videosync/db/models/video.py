from sqlalchemy import Column, String, Text, Integer, BigInteger, DateTime, ForeignKey, JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship
from videosync.db.session import Base
from videosync.db.models.channel import generate_uuid, utcnow


class Video(Base):
    __tablename__ = "videos"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    youtube_id = Column(String(20), unique=True, nullable=False, index=True)
    channel_id = Column(String(36), ForeignKey("channels.id"), nullable=False, index=True)
    title = Column(String(500), nullable=False)
    description = Column(Text)
    thumbnail_url = Column(String(500))
    duration = Column(String(16))  # H:MM:SS or M:SS
    published_at = Column(DateTime(timezone=True), nullable=False, index=True)
    view_count = Column(BigInteger, default=0)
    like_count = Column(BigInteger, default=0)
    tags = Column(JSON().with_variant(JSONB, "postgresql"), default=list)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    # Relationships
    channel = relationship("Channel", back_populates="videos")

    def __repr__(self):
        return f"<Video {self.youtube_id}: {self.title[:50] if self.title else 'Untitled'}>"
