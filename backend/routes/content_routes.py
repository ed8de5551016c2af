from datetime import datetime

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from fastapi.responses import RedirectResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from backend.auth.dependencies import require_student, require_teacher
from backend.auth.identity import Identity
from backend.core.errors import PortalError
from backend.database import get_db
from backend.routes.test_routes import TestResponse
from backend.services.content import ContentCatalog, Dashboard
from backend.storage import LocalBlobStore

router = APIRouter(tags=['content'])


class DocumentResponse(BaseModel):
    id: int
    teacher_id: int
    title: str | None = None
    file_path: str | None = None
    link: str | None = None
    uploaded_at: datetime | None = None

    class Config:
        from_attributes = True


class VideoResponse(BaseModel):
    id: int
    teacher_id: int
    youtube_id: str
    title: str | None = None
    uploaded_at: datetime | None = None

    class Config:
        from_attributes = True


class DashboardResponse(BaseModel):
    user: dict
    docs: list[DocumentResponse]
    vids: list[VideoResponse]
    tests: list[TestResponse]


def get_catalog(db: Session = Depends(get_db)) -> ContentCatalog:
    return ContentCatalog(db)


def get_document_store(request: Request) -> LocalBlobStore:
    return request.app.state.document_store


def to_dashboard_response(identity: Identity, dashboard: Dashboard) -> DashboardResponse:
    return DashboardResponse(
        user={'id': identity.id, 'email': identity.email, 'role': identity.role.value},
        docs=[DocumentResponse.model_validate(document) for document in dashboard.documents],
        vids=[VideoResponse.model_validate(video) for video in dashboard.videos],
        tests=[TestResponse.model_validate(test) for test in dashboard.tests],
    )


@router.get('/teacher/dashboard', response_model=DashboardResponse)
def teacher_dashboard(
    identity: Identity = Depends(require_teacher),
    catalog: ContentCatalog = Depends(get_catalog),
):
    return to_dashboard_response(identity, catalog.teacher_dashboard(identity.id))


@router.get('/student/dashboard', response_model=DashboardResponse)
def student_dashboard(
    identity: Identity = Depends(require_student),
    catalog: ContentCatalog = Depends(get_catalog),
):
    return to_dashboard_response(identity, catalog.student_dashboard())


@router.post('/teacher/documents/upload')
def upload_document(
    title: str = Form(''),
    link: str = Form(''),
    docfile: UploadFile | None = File(None),
    identity: Identity = Depends(require_teacher),
    catalog: ContentCatalog = Depends(get_catalog),
    store: LocalBlobStore = Depends(get_document_store),
):
    file_ref = store.save(docfile) if docfile is not None and docfile.filename else None
    try:
        catalog.add_document(identity.id, title, file_ref=file_ref, link=link)
    except PortalError:
        if file_ref:
            store.delete(file_ref)
        raise
    return RedirectResponse(url='/teacher/dashboard', status_code=status.HTTP_303_SEE_OTHER)


@router.post('/teacher/videos/upload')
def upload_video(
    youtube_url: str = Form(''),
    title: str = Form(''),
    identity: Identity = Depends(require_teacher),
    catalog: ContentCatalog = Depends(get_catalog),
):
    catalog.add_video(identity.id, youtube_url, title)
    return RedirectResponse(url='/teacher/dashboard', status_code=status.HTTP_303_SEE_OTHER)
