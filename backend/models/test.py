"""Test and test submission model definitions."""

import enum

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, func
from backend.database import Base


class SubmissionState(str, enum.Enum):
    UNSUBMITTED = "unsubmitted"
    SUBMITTED = "submitted"
    GRADED = "graded"


class Test(Base):
    """A test created by a teacher."""
    __tablename__ = "tests"
    __test__ = False

    id = Column(Integer, primary_key=True)
    teacher_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text)
    created_at = Column(DateTime, server_default=func.now())


class TestSubmission(Base):
    """A student's latest file for a test. One row per (test, student)."""
    __tablename__ = "test_submissions"
    __test__ = False
    __table_args__ = (
        UniqueConstraint("test_id", "student_id", name="uq_test_submissions_test_student"),
    )

    id = Column(Integer, primary_key=True)
    test_id = Column(Integer, ForeignKey("tests.id"), nullable=False)
    student_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    file_path = Column(String, nullable=False)
    submitted_at = Column(DateTime, nullable=False)
    grade = Column(String)
    feedback = Column(Text)
    graded_at = Column(DateTime)

    @property
    def state(self) -> SubmissionState:
        if self.grade is None:
            return SubmissionState.SUBMITTED
        return SubmissionState.GRADED


def submission_state(submission: TestSubmission | None) -> SubmissionState:
    if submission is None:
        return SubmissionState.UNSUBMITTED
    return submission.state
