import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from taskboard.api.v1 import analytics, auth, file_upload, project_router, tasks
from taskboard.api.v1.ws import project_ws
from taskboard.core.config import settings
from taskboard.core.database import Base, engine
from taskboard.core.errors import setup_exception_handlers
from taskboard.models import comment, file, project, project_member, task, user  # noqa: F401
from taskboard.services.project_broadcaster import ProjectBroadcaster

# Configure logging
logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created successfully")
    os.makedirs(settings.upload_dir, exist_ok=True)
    yield


def create_app() -> FastAPI:
    app = FastAPI(title="Taskboard API", version="1.0.0", lifespan=lifespan)
    app.state.broadcaster = ProjectBroadcaster()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.frontend_url or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    setup_exception_handlers(app)

    app.include_router(auth.router, prefix="/api/v1/auth", tags=["authentication"])
    app.include_router(project_router.router, prefix="/api/v1/projects", tags=["project"])
    app.include_router(tasks.router, prefix="/api/v1/tasks", tags=["task"])
    app.include_router(file_upload.router, prefix="/api/v1/files", tags=["file"])
    app.include_router(analytics.router, prefix="/api/v1/analytics", tags=["analytics"])
    app.include_router(project_ws.router, prefix="/api/v1", tags=["project websocket"])

    @app.get("/")
    def read_root():
        return {"message": "Taskboard API", "version": "1.0.0"}

    @app.get("/health")
    def health_check():
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return {"status": "healthy", "database": "connected"}
        except Exception as e:
            raise HTTPException(status_code=503, detail=f"Database unhealthy: {str(e)}")

    return app


app = create_app()
