from datetime import datetime

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from fastapi.responses import RedirectResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from backend.auth.dependencies import require_student, require_teacher
from backend.auth.identity import Identity
from backend.core.errors import PortalError
from backend.database import get_db
from backend.models.test import SubmissionState, TestSubmission, submission_state
from backend.services.submission_workflow import SubmissionWorkflow
from backend.storage import LocalBlobStore

router = APIRouter(tags=['tests'])


class TestResponse(BaseModel):
    id: int
    teacher_id: int
    title: str
    description: str | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class TestDetailResponse(TestResponse):
    teacher_email: str | None = None


class SubmissionResponse(BaseModel):
    id: int
    test_id: int
    student_id: int
    file_path: str
    submitted_at: datetime
    grade: str | None = None
    feedback: str | None = None
    graded_at: datetime | None = None
    state: SubmissionState

    class Config:
        from_attributes = True


class SubmissionListingResponse(SubmissionResponse):
    student_email: str


class TestSubmissionsResponse(BaseModel):
    test: TestResponse
    submissions: list[SubmissionListingResponse]


class StudentTestResponse(BaseModel):
    test: TestDetailResponse
    submission: SubmissionResponse | None = None
    state: SubmissionState


def get_workflow(db: Session = Depends(get_db)) -> SubmissionWorkflow:
    return SubmissionWorkflow(db)


def get_submission_store(request: Request) -> LocalBlobStore:
    return request.app.state.submission_store


def to_listing(submission: TestSubmission, student_email: str) -> SubmissionListingResponse:
    return SubmissionListingResponse(
        **SubmissionResponse.model_validate(submission).model_dump(),
        student_email=student_email,
    )


@router.post('/teacher/tests/create')
def create_test(
    title: str = Form(''),
    description: str = Form(''),
    identity: Identity = Depends(require_teacher),
    workflow: SubmissionWorkflow = Depends(get_workflow),
):
    workflow.create_test(identity.id, title, description)
    return RedirectResponse(url='/teacher/dashboard', status_code=status.HTTP_303_SEE_OTHER)


@router.get('/teacher/tests/{test_id}/submissions', response_model=TestSubmissionsResponse)
def list_test_submissions(
    test_id: int,
    identity: Identity = Depends(require_teacher),
    workflow: SubmissionWorkflow = Depends(get_workflow),
):
    submissions = workflow.list_submissions(test_id, identity.id)
    test = workflow.get_test(test_id)

    return TestSubmissionsResponse(
        test=TestResponse.model_validate(test),
        submissions=[to_listing(submission, email) for submission, email in submissions],
    )


@router.post('/teacher/tests/{test_id}/grade/{submission_id}')
def grade_submission(
    test_id: int,
    submission_id: int,
    grade: str = Form(''),
    feedback: str = Form(''),
    identity: Identity = Depends(require_teacher),
    workflow: SubmissionWorkflow = Depends(get_workflow),
):
    workflow.grade(test_id, submission_id, grade, feedback, identity.id)
    return RedirectResponse(url=f'/teacher/tests/{test_id}/submissions', status_code=status.HTTP_303_SEE_OTHER)


@router.get('/student/tests/{test_id}', response_model=StudentTestResponse)
def view_student_test(
    test_id: int,
    identity: Identity = Depends(require_student),
    workflow: SubmissionWorkflow = Depends(get_workflow),
):
    test, teacher_email = workflow.get_test_with_teacher(test_id)
    submission = workflow.get_submission(test_id, identity.id)

    return StudentTestResponse(
        test=TestDetailResponse(**TestResponse.model_validate(test).model_dump(), teacher_email=teacher_email),
        submission=SubmissionResponse.model_validate(submission) if submission else None,
        state=submission_state(submission),
    )


@router.post('/student/tests/{test_id}')
def submit_test(
    test_id: int,
    student_file: UploadFile | None = File(None, alias='studentFile'),
    identity: Identity = Depends(require_student),
    workflow: SubmissionWorkflow = Depends(get_workflow),
    store: LocalBlobStore = Depends(get_submission_store),
):
    # Unknown tests are rejected before the upload is written.
    workflow.get_test(test_id)
    file_ref = store.save(student_file)
    try:
        workflow.submit(test_id, identity.id, file_ref)
    except PortalError:
        store.delete(file_ref)
        raise
    return RedirectResponse(url=f'/student/tests/{test_id}', status_code=status.HTTP_303_SEE_OTHER)
