"""Test creation and the submission lifecycle.

A submission is identified by its (test, student) pair and moves
``unsubmitted -> submitted -> graded``. Resubmitting replaces the file and
clears any grade, so a grade always belongs to the file it was given for.
Only the teacher who owns a test may list or grade its submissions.
"""

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from backend.core.errors import InvalidInput, NotOwner, StorageFailure, SubmissionNotFound, TestNotFound
from backend.models.test import Test, TestSubmission
from backend.models.user import User

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 200

# Dialects with INSERT ... ON CONFLICT DO UPDATE.
UPSERT_INSERTS = {
    'sqlite': sqlite.insert,
    'postgresql': postgresql.insert,
}


class SubmissionWorkflow:
    def __init__(self, db: Session, clock: Callable[[], datetime] = datetime.now) -> None:
        self.db = db
        self.clock = clock

    @contextmanager
    def _storage(self, action: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception('Storage failure while trying to %s', action)
            raise StorageFailure() from exc

    def create_test(self, teacher_id: int, title: str, description: str | None = None) -> Test:
        title = (title or '').strip()
        if not title:
            raise InvalidInput('A test title is required.')
        if len(title) > MAX_TITLE_LENGTH:
            raise InvalidInput(f'Test titles must be {MAX_TITLE_LENGTH} characters or fewer.')

        with self._storage('create a test'):
            test = Test(
                teacher_id=teacher_id,
                title=title,
                description=(description or '').strip() or None,
                created_at=self.clock(),
            )
            self.db.add(test)
            self.db.commit()
            self.db.refresh(test)
        return test

    def get_test(self, test_id: int) -> Test:
        with self._storage('load a test'):
            test = self.db.query(Test).filter(Test.id == test_id).first()
        if test is None:
            raise TestNotFound()
        return test

    def get_test_with_teacher(self, test_id: int) -> tuple[Test, str | None]:
        with self._storage('load a test'):
            row = (
                self.db.query(Test, User.email)
                .outerjoin(User, Test.teacher_id == User.id)
                .filter(Test.id == test_id)
                .first()
            )
        if row is None:
            raise TestNotFound()
        return row[0], row[1]

    def _require_owner(self, test_id: int, teacher_id: int) -> Test:
        test = self.get_test(test_id)
        if test.teacher_id != teacher_id:
            logger.info('Teacher %s denied access to test %s', teacher_id, test_id)
            raise NotOwner()
        return test

    def submit(self, test_id: int, student_id: int, file_ref: str) -> TestSubmission:
        if not file_ref:
            raise InvalidInput('Please choose a file to upload.')
        self.get_test(test_id)

        values = {
            'test_id': test_id,
            'student_id': student_id,
            'file_path': file_ref,
            'submitted_at': self.clock(),
            'grade': None,
            'feedback': None,
            'graded_at': None,
        }
        with self._storage('save a submission'):
            self._upsert_submission(values)
            self.db.commit()
            submission = (
                self.db.query(TestSubmission)
                .filter(TestSubmission.test_id == test_id, TestSubmission.student_id == student_id)
                .one()
            )
        return submission

    def _upsert_submission(self, values: dict) -> None:
        table = TestSubmission.__table__
        overwrite = {key: value for key, value in values.items() if key not in ('test_id', 'student_id')}

        insert = UPSERT_INSERTS.get(self.db.get_bind().dialect.name)
        if insert is not None:
            statement = insert(table).values(**values)
            statement = statement.on_conflict_do_update(
                index_elements=['test_id', 'student_id'],
                set_=overwrite,
            )
            self.db.execute(statement)
            return

        try:
            with self.db.begin_nested():
                self.db.execute(table.insert().values(**values))
        except IntegrityError:
            self.db.execute(
                table.update()
                .where(table.c.test_id == values['test_id'], table.c.student_id == values['student_id'])
                .values(**overwrite)
            )

    def grade(
        self,
        test_id: int,
        submission_id: int,
        grade: str,
        feedback: str | None,
        grader_id: int,
    ) -> TestSubmission:
        self._require_owner(test_id, grader_id)

        with self._storage('load a submission'):
            submission = self.db.query(TestSubmission).filter(
                TestSubmission.id == submission_id,
                TestSubmission.test_id == test_id,
            ).first()
        if submission is None:
            raise SubmissionNotFound()

        grade = (grade or '').strip()
        if not grade:
            raise InvalidInput('A grade is required.')

        with self._storage('grade a submission'):
            submission.grade = grade
            submission.feedback = (feedback or '').strip() or None
            submission.graded_at = self.clock()
            self.db.commit()
            self.db.refresh(submission)
        return submission

    def list_submissions(self, test_id: int, requester_id: int) -> list[tuple[TestSubmission, str]]:
        self._require_owner(test_id, requester_id)

        with self._storage('list submissions'):
            rows = (
                self.db.query(TestSubmission, User.email)
                .join(User, TestSubmission.student_id == User.id)
                .filter(TestSubmission.test_id == test_id)
                .order_by(TestSubmission.submitted_at.asc(), TestSubmission.id.asc())
                .all()
            )
        return [(submission, student_email) for submission, student_email in rows]

    def get_submission(self, test_id: int, student_id: int) -> TestSubmission | None:
        with self._storage('load a submission'):
            return self.db.query(TestSubmission).filter(
                TestSubmission.test_id == test_id,
                TestSubmission.student_id == student_id,
            ).first()
