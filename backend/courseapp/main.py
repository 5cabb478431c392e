"""FastAPI application entrypoint and HTTP controllers.

Controllers are intentionally thin: they hand the request body or the raw
id string to a manager and render the returned `Result`. The status code
only depends on `result.success` (200 or 400).

Endpoints, per entity under `/api/<plural>`:
- GET    /            list
- GET    /{id}        single row
- GET    /detail      list with related names (detail entities only)
- GET    /detail/{id} single row with related names (detail entities only)
- POST   /            create
- PUT    /            update
- DELETE /            delete (body carries the id)
"""

import json
import logging
import time
import uuid
from typing import Type

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from . import schemas, services
from .config import settings
from .database import create_db_and_tables
from .results import Result
from .unit_of_work import UnitOfWork, get_unit_of_work

app = FastAPI(title="Course Records API")
logger = logging.getLogger("courseapp.api")
if not logger.handlers:
    logging.basicConfig(level=settings.LOG_LEVEL)

if settings.ALLOW_DEV_CORS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

create_db_and_tables()


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    req_id = request.headers.get("X-Request-ID", uuid.uuid4().hex)
    request.state.request_id = req_id
    started = time.perf_counter()
    response: Response
    try:
        response = await call_next(request)
    except Exception:
        elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
        logger.exception(
            "request_failed %s",
            json.dumps(
                {
                    "request_id": req_id,
                    "path": request.url.path,
                    "method": request.method,
                    "duration_ms": elapsed_ms,
                },
                ensure_ascii=True,
            ),
        )
        raise
    response.headers["X-Request-ID"] = req_id
    if request.url.path.startswith("/api"):
        elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
        logger.info(
            "request_done %s",
            json.dumps(
                {
                    "request_id": req_id,
                    "path": request.url.path,
                    "method": request.method,
                    "status_code": response.status_code,
                    "duration_ms": elapsed_ms,
                },
                ensure_ascii=True,
            ),
        )
    return response


def render(result: Result) -> JSONResponse:
    """Translate a manager result into an HTTP response."""
    return JSONResponse(status_code=200 if result.success else 400, content=result.to_dict())


def crud_router(manager_cls: Type[services.EntityManager], create_shape, update_shape, detail: bool = False) -> APIRouter:
    """Build the standard endpoints for one manager."""
    router = APIRouter()

    def manager(uow: UnitOfWork = Depends(get_unit_of_work)) -> services.EntityManager:
        return manager_cls(uow)

    @router.get("/")
    def get_all(mgr=Depends(manager)):
        return render(mgr.get_all())

    if detail:
        # registered before "/{entity_id}" so "detail" is not taken for an id
        @router.get("/detail")
        def get_all_detail(mgr=Depends(manager)):
            return render(mgr.get_all_detail())

        @router.get("/detail/{entity_id}")
        def get_by_id_detail(entity_id: str, mgr=Depends(manager)):
            return render(mgr.get_by_id_detail(entity_id))

    @router.get("/{entity_id}")
    def get_by_id(entity_id: str, mgr=Depends(manager)):
        return render(mgr.get_by_id(entity_id))

    @router.post("/")
    def create(payload: create_shape, mgr=Depends(manager)):
        return render(mgr.create(payload))

    @router.put("/")
    def update(payload: update_shape, mgr=Depends(manager)):
        return render(mgr.update(payload))

    @router.delete("/")
    def delete(payload: schemas.DeleteIn, mgr=Depends(manager)):
        return render(mgr.remove(payload))

    return router


app.include_router(
    crud_router(services.InstructorManager, schemas.InstructorIn, schemas.InstructorUpdate),
    prefix="/api/instructors", tags=["instructors"],
)
app.include_router(
    crud_router(services.StudentManager, schemas.StudentIn, schemas.StudentUpdate),
    prefix="/api/students", tags=["students"],
)
app.include_router(
    crud_router(services.CourseManager, schemas.CourseIn, schemas.CourseUpdate, detail=True),
    prefix="/api/courses", tags=["courses"],
)
app.include_router(
    crud_router(services.LessonManager, schemas.LessonIn, schemas.LessonUpdate, detail=True),
    prefix="/api/lessons", tags=["lessons"],
)
app.include_router(
    crud_router(services.ExamManager, schemas.ExamIn, schemas.ExamUpdate, detail=True),
    prefix="/api/exams", tags=["exams"],
)
app.include_router(
    crud_router(services.ExamResultManager, schemas.ExamResultIn, schemas.ExamResultUpdate, detail=True),
    prefix="/api/examresults", tags=["exam results"],
)
app.include_router(
    crud_router(services.RegistrationManager, schemas.RegistrationIn, schemas.RegistrationUpdate, detail=True),
    prefix="/api/registrations", tags=["registrations"],
)


@app.get("/health")
def health():
    """Liveness probe."""
    return {"status": "ok"}
