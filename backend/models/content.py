"""Document and video model definitions."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, func
from backend.database import Base


class Document(Base):
    """A teacher-published document, stored as a file or an external link."""
    __tablename__ = "documents"

    id = Column(Integer, primary_key=True)
    teacher_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String)
    file_path = Column(String)
    link = Column(String)
    uploaded_at = Column(DateTime, server_default=func.now())


class Video(Base):
    """A YouTube video shared by a teacher."""
    __tablename__ = "videos"

    id = Column(Integer, primary_key=True)
    teacher_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    youtube_id = Column(String(11), nullable=False)
    title = Column(String)
    uploaded_at = Column(DateTime, server_default=func.now())
