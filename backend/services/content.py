import logging
import re
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.core.errors import InvalidInput, StorageFailure
from backend.models.content import Document, Video
from backend.models.test import Test

logger = logging.getLogger(__name__)

YOUTUBE_ID_PATTERN = re.compile(r'[?&]v=([A-Za-z0-9_-]{11})|youtu\.be/([A-Za-z0-9_-]{11})')


@dataclass
class Dashboard:
    documents: list[Document]
    videos: list[Video]
    tests: list[Test]


def parse_youtube_id(url: str | None) -> str:
    match = YOUTUBE_ID_PATTERN.search(url or '')
    if not match:
        raise InvalidInput('Invalid YouTube URL')
    return match.group(1) or match.group(2)


class ContentCatalog:
    def __init__(self, db: Session) -> None:
        self.db = db

    def _save(self, item, action: str):
        try:
            self.db.add(item)
            self.db.commit()
            self.db.refresh(item)
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception('Storage failure while trying to %s', action)
            raise StorageFailure() from exc
        return item

    def add_document(
        self,
        teacher_id: int,
        title: str | None,
        file_ref: str | None = None,
        link: str | None = None,
    ) -> Document:
        link = (link or '').strip() or None
        if not file_ref and not link:
            raise InvalidInput('Please upload a file or provide a link.')

        document = Document(
            teacher_id=teacher_id,
            title=(title or '').strip() or None,
            file_path=file_ref,
            link=link,
        )
        return self._save(document, 'add a document')

    def add_video(self, teacher_id: int, youtube_url: str, title: str | None) -> Video:
        youtube_id = parse_youtube_id(youtube_url)
        video = Video(teacher_id=teacher_id, youtube_id=youtube_id, title=(title or '').strip() or None)
        return self._save(video, 'add a video')

    def teacher_dashboard(self, teacher_id: int) -> Dashboard:
        try:
            return Dashboard(
                documents=self.db.query(Document).filter(Document.teacher_id == teacher_id).order_by(Document.id).all(),
                videos=self.db.query(Video).filter(Video.teacher_id == teacher_id).order_by(Video.id).all(),
                tests=self.db.query(Test).filter(Test.teacher_id == teacher_id).order_by(Test.id).all(),
            )
        except SQLAlchemyError as exc:
            logger.exception('Storage failure while loading teacher dashboard')
            raise StorageFailure() from exc

    def student_dashboard(self) -> Dashboard:
        try:
            return Dashboard(
                documents=self.db.query(Document).order_by(Document.id).all(),
                videos=self.db.query(Video).order_by(Video.id).all(),
                tests=self.db.query(Test).order_by(Test.id).all(),
            )
        except SQLAlchemyError as exc:
            logger.exception('Storage failure while loading student dashboard')
            raise StorageFailure() from exc
