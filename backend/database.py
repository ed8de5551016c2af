import logging
from collections.abc import Iterator

from fastapi import Request
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker


Base = declarative_base()

logger = logging.getLogger(__name__)

SUBMISSION_UNIQUE_INDEX = 'uq_test_submissions_test_student'


def build_engine(database_url: str) -> Engine:
    connect_args = {}
    if database_url.startswith('sqlite'):
        # Requests are served from a worker thread pool.
        connect_args['check_same_thread'] = False
    return create_engine(database_url, connect_args=connect_args)


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
    )


def get_db(request: Request) -> Iterator[Session]:
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def ensure_document_schema(engine: Engine) -> None:
    inspector = inspect(engine)

    if 'documents' not in inspector.get_table_names():
        return

    existing_columns = {column['name'] for column in inspector.get_columns('documents')}
    migration_steps = [
        ('link', 'ALTER TABLE documents ADD COLUMN link VARCHAR'),
        ('file_path', 'ALTER TABLE documents ADD COLUMN file_path VARCHAR'),
    ]

    with engine.begin() as connection:
        for column_name, statement in migration_steps:
            if column_name not in existing_columns:
                connection.execute(text(statement))


def ensure_submission_schema(engine: Engine) -> None:
    """Add the (test_id, student_id) uniqueness to tables created without it."""
    inspector = inspect(engine)

    if 'test_submissions' not in inspector.get_table_names():
        return

    unique_column_sets = [
        tuple(constraint['column_names'])
        for constraint in inspector.get_unique_constraints('test_submissions')
    ]
    unique_column_sets.extend(
        tuple(index['column_names'])
        for index in inspector.get_indexes('test_submissions')
        if index.get('unique')
    )
    if ('test_id', 'student_id') in unique_column_sets:
        return

    with engine.begin() as connection:
        # Keep the newest row for each pair so the index can be built.
        removed = connection.execute(
            text(
                'DELETE FROM test_submissions WHERE id NOT IN ('
                'SELECT MAX(id) FROM test_submissions GROUP BY test_id, student_id)'
            )
        ).rowcount
        if removed:
            logger.warning('Removed %s duplicate test submissions before adding the unique index', removed)
        connection.execute(
            text(
                f'CREATE UNIQUE INDEX IF NOT EXISTS {SUBMISSION_UNIQUE_INDEX} '
                'ON test_submissions(test_id, student_id)'
            )
        )


def initialize_database(engine: Engine) -> None:
    # Registers every model on Base.metadata.
    from backend.models import content, test, user  # noqa: F401

    try:
        Base.metadata.create_all(bind=engine)
        ensure_document_schema(engine)
        ensure_submission_schema(engine)
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')
