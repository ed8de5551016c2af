import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from backend.auth.identity import Identity, IdentityService
from backend.auth.session import current_identity, read_session_identity
from backend.core.config import Settings, load_settings, validate_runtime_config
from backend.core.errors import PortalError
from backend.database import build_engine, build_session_factory, initialize_database
from backend.routes import auth_routes, content_routes, test_routes
from backend.storage import LocalBlobStore

logger = logging.getLogger(__name__)


async def portal_error_handler(request: Request, exc: PortalError) -> JSONResponse:
    return JSONResponse({'detail': exc.detail}, status_code=exc.status_code)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or load_settings()
    validate_runtime_config(settings)

    engine = build_engine(settings.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        initialize_database(engine)
        yield

    app = FastAPI(title='Classroom Portal', lifespan=lifespan)

    # Built once here and only read afterwards.
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.identity_service = IdentityService(settings.jwt_secret_key, settings.jwt_algorithm)
    app.state.document_store = LocalBlobStore(settings.document_upload_dir)
    app.state.submission_store = LocalBlobStore(settings.submission_upload_dir)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=['*'],
        allow_headers=['*'],
    )

    @app.middleware('http')
    async def attach_session_identity(request: Request, call_next):
        request.state.identity = read_session_identity(
            request,
            app.state.identity_service,
            settings.session_cookie_name,
        )
        return await call_next(request)

    app.add_exception_handler(PortalError, portal_error_handler)

    @app.get('/')
    def root(request: Request):
        identity = current_identity(request)
        user = None
        if isinstance(identity, Identity):
            user = {'id': identity.id, 'email': identity.email, 'role': identity.role.value}
        return {'status': 'Classroom Portal Running', 'user': user}

    app.include_router(auth_routes.router)
    app.include_router(content_routes.router)
    app.include_router(test_routes.router)

    logger.info('Classroom portal configured for %s', settings.app_env)
    return app


app = create_app()
