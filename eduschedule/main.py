import logging
from datetime import date
from typing import Any, Dict, List, Optional, Type

from fastapi import APIRouter, Body, Depends, FastAPI, Request, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from eduschedule import config
from eduschedule.errors import DataValidationError, NotFoundError, PersistenceError, ScheduleConflictError
from eduschedule.schemas import (
    AppState,
    ClassEntity,
    CompletedPair,
    ConflictResult,
    ContinuationResult,
    ContinueWeekRequest,
    CopySessionRequest,
    Dashboard,
    Major,
    PairProgress,
    Progress,
    Session,
    SessionDraft,
    SessionUpdate,
    SessionView,
    Student,
    Subject,
    SubjectProgressRow,
    Teacher,
    TeacherWorkload,
)
from eduschedule.services.schedule_service import ScheduleService
from eduschedule.services.storage import JsonFileStorage

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title="EduSchedule Session Planner")

service = ScheduleService(JsonFileStorage(config.DATA_FILE), warn_threshold=config.WARN_THRESHOLD)


def get_service() -> ScheduleService:
    return service


# --- Error mapping ---

@app.exception_handler(DataValidationError)
def _validation_error(request: Request, exc: DataValidationError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(ScheduleConflictError)
def _conflict_error(request: Request, exc: ScheduleConflictError):
    return JSONResponse(status_code=409, content={"detail": exc.message})


@app.exception_handler(NotFoundError)
def _not_found(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(PersistenceError)
def _persistence_error(request: Request, exc: PersistenceError):
    logger.error("Request %s %s failed to persist: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": str(exc)})


@app.get("/")
def root():
    return {"status": "ok", "service": "eduschedule"}


# --- Whole-state backup ---

@app.get("/state", response_model=AppState)
def get_state(svc: ScheduleService = Depends(get_service)):
    return svc.snapshot()


@app.put("/state", response_model=AppState)
def restore_state(payload: Any = Body(...), svc: ScheduleService = Depends(get_service)):
    return svc.restore(payload)


@app.post("/state/reset", response_model=AppState)
def reset_state(svc: ScheduleService = Depends(get_service)):
    return svc.reset()


# --- Reference data ---

def crud_router(name: str, model: Type[BaseModel]) -> APIRouter:
    router = APIRouter(prefix=f"/{name}", tags=[name])

    @router.get("", response_model=List[model])
    def list_items(svc: ScheduleService = Depends(get_service)):
        return svc.list_entities(name)

    @router.post("", response_model=model, status_code=201)
    def create_item(payload: Dict[str, Any] = Body(...), svc: ScheduleService = Depends(get_service)):
        return svc.create_entity(name, payload)

    @router.put("/{item_id}", response_model=model)
    def update_item(item_id: str, changes: Dict[str, Any] = Body(...), svc: ScheduleService = Depends(get_service)):
        return svc.update_entity(name, item_id, changes)

    @router.delete("/{item_id}", status_code=204)
    def delete_item(item_id: str, svc: ScheduleService = Depends(get_service)):
        svc.delete_entity(name, item_id)
        return Response(status_code=204)

    return router


for _name, _model in (
    ("teachers", Teacher),
    ("subjects", Subject),
    ("classes", ClassEntity),
    ("students", Student),
    ("majors", Major),
):
    app.include_router(crud_router(_name, _model))


# --- Sessions ---

@app.get("/sessions", response_model=List[SessionView])
def list_sessions(
    class_id: Optional[str] = None,
    week_start: Optional[date] = None,
    svc: ScheduleService = Depends(get_service),
):
    return svc.list_sessions(class_id=class_id, week_start=week_start)


@app.post("/sessions", response_model=Session, status_code=201)
def create_session(draft: SessionDraft, svc: ScheduleService = Depends(get_service)):
    return svc.create_session(draft)


@app.post("/sessions/check", response_model=ConflictResult)
def check_session(draft: SessionDraft, exclude_id: Optional[str] = None, svc: ScheduleService = Depends(get_service)):
    return svc.check(draft, exclude_id=exclude_id)


@app.post("/sessions/continue-next-week", response_model=ContinuationResult)
def continue_next_week(req: ContinueWeekRequest, svc: ScheduleService = Depends(get_service)):
    return svc.continue_week(req.week_start, req.class_id)


@app.patch("/sessions/{session_id}", response_model=Session)
def update_session(session_id: str, update: SessionUpdate, svc: ScheduleService = Depends(get_service)):
    return svc.update_session(session_id, update)


@app.delete("/sessions/{session_id}", status_code=204)
def delete_session(session_id: str, svc: ScheduleService = Depends(get_service)):
    svc.delete_session(session_id)
    return Response(status_code=204)


@app.post("/sessions/{session_id}/copy", response_model=Session, status_code=201)
def copy_session(session_id: str, req: CopySessionRequest, svc: ScheduleService = Depends(get_service)):
    return svc.copy_session(session_id, req.date, req.start_period)


# --- Progress ---

@app.get("/progress", response_model=Progress)
def get_progress(subject_id: str, class_id: str, svc: ScheduleService = Depends(get_service)):
    return svc.progress(subject_id, class_id)


@app.get("/classes/{class_id}/overview", response_model=List[SubjectProgressRow])
def class_overview(class_id: str, svc: ScheduleService = Depends(get_service)):
    return svc.class_overview(class_id)


@app.post("/classes/{class_id}/subjects/{subject_id}/manual-complete")
def toggle_manual_complete(class_id: str, subject_id: str, svc: ScheduleService = Depends(get_service)):
    return {"completed": svc.toggle_manual_complete(subject_id, class_id)}


# --- Reports ---

@app.get("/reports/teachers", response_model=List[TeacherWorkload])
def teacher_report(svc: ScheduleService = Depends(get_service)):
    return svc.teacher_workload()


@app.get("/reports/in-progress", response_model=List[PairProgress])
def in_progress_report(svc: ScheduleService = Depends(get_service)):
    return svc.subjects_in_progress()


@app.get("/reports/completed", response_model=List[CompletedPair])
def completed_report(svc: ScheduleService = Depends(get_service)):
    return svc.completed_pairs()


@app.post("/reports/completed/{subject_id}/{class_id}/paid")
def mark_paid(subject_id: str, class_id: str, svc: ScheduleService = Depends(get_service)):
    svc.mark_paid(subject_id, class_id)
    return {"status": "ok"}


@app.get("/reports/missed", response_model=List[Session])
def missed_report(svc: ScheduleService = Depends(get_service)):
    return svc.missed_sessions()


@app.get("/dashboard", response_model=Dashboard)
def dashboard(svc: ScheduleService = Depends(get_service)):
    return svc.dashboard()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
