from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from tasktracker.core.config import settings
from tasktracker.core.database import engine, Base
from tasktracker.core.errors import TaskEngineError
from tasktracker.core.logging_setup import setup_logging
from tasktracker.routers import health, auth, projects, tasks

setup_logging(settings.LOG_LEVEL)

# Init DB
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="Task Tracker API",
    version="0.1.0"
)


@app.exception_handler(TaskEngineError)
def task_engine_error_handler(request: Request, exc: TaskEngineError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code}
    )


# Routes
app.include_router(health.router, prefix="/health")
app.include_router(auth.router)
app.include_router(projects.router)
app.include_router(tasks.router)
