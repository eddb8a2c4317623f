"""REST API routes for long-term-plan documents."""

from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

from models.errors import (
    ConflictError,
    EditRefusedError,
    InvalidRequestError,
    NotFoundError,
    PathEscapeError,
    PlanError,
    PlanValidationError,
)
from operations.docs import repair_plan_doc, validate_plan_doc
from operations.plans import create_plan, get_plan, list_plans, update_plan
from operations.tasks import add_task, delete_task, get_task, search_tasks, update_task
from storage.plan_store import PlanConfig


# ---------------------------------------------------------------------------
# Request body models
# ---------------------------------------------------------------------------


class PlanCreateBody(BaseModel):
    title: str
    plan_id: Optional[str] = None
    template: str = "basic"


class PlanUpdateBody(BaseModel):
    title: Optional[str] = None
    body_markdown: Optional[str] = None
    clear_body: bool = False
    if_match: Optional[str] = None


class TaskAddBody(BaseModel):
    title: str
    status: str = "todo"
    section_path: Optional[List[str]] = None
    parent_task_id: Optional[str] = None
    before_task_id: Optional[str] = None
    body_markdown: Optional[str] = None
    if_match: Optional[str] = None


class TaskUpdateBody(BaseModel):
    status: Optional[str] = None
    title: Optional[str] = None
    body_markdown: Optional[str] = None
    clear_body: bool = False
    if_match: Optional[str] = None


class CurrentTaskUpdateBody(TaskUpdateBody):
    allow_default_target: bool = False


class RepairBody(BaseModel):
    actions: List[str]
    dry_run: bool = False
    if_match: Optional[str] = None


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------


def status_code_for(error: PlanError) -> int:
    if isinstance(error, (InvalidRequestError, PathEscapeError)):
        return 400
    if isinstance(error, NotFoundError):
        return 404
    if isinstance(error, ConflictError):
        return 409
    if isinstance(error, (PlanValidationError, EditRefusedError)):
        return 422
    return 500


def _call(fn, *args, **kwargs):
    try:
        return fn(*args, **kwargs)
    except PlanError as e:
        raise HTTPException(
            status_code=status_code_for(e), detail={"error": str(e), "code": e.code}
        ) from e


# ---------------------------------------------------------------------------
# Route registration
# ---------------------------------------------------------------------------


def register_routes(app_router: APIRouter, config: PlanConfig) -> None:
    """Attach all REST routes for the configured plans directory."""

    # --- Plan routes ---

    @app_router.get("/plans")
    def list_plans_route(query: Optional[str] = Query(None)):
        return _call(list_plans, config, query=query)

    @app_router.post("/plans", status_code=201)
    def create_plan_route(body: PlanCreateBody):
        return _call(create_plan, config, body.title, plan_id=body.plan_id, template=body.template)

    @app_router.get("/plans/{plan_id}")
    def get_plan_route(
        plan_id: str,
        view: str = Query("tree"),
        include_plan_body: bool = Query(False),
        include_task_bodies: bool = Query(False),
    ):
        return _call(
            get_plan,
            config,
            plan_id,
            view=view,
            include_plan_body=include_plan_body,
            include_task_bodies=include_task_bodies,
        )

    @app_router.patch("/plans/{plan_id}")
    def update_plan_route(plan_id: str, body: PlanUpdateBody):
        return _call(update_plan, config, plan_id, **body.model_dump())

    @app_router.get("/plans/{plan_id}/validate")
    def validate_plan_route(plan_id: str):
        return _call(validate_plan_doc, config, plan_id)

    @app_router.post("/plans/{plan_id}/repair")
    def repair_plan_route(plan_id: str, body: RepairBody):
        return _call(
            repair_plan_doc,
            config,
            plan_id,
            body.actions,
            dry_run=body.dry_run,
            if_match=body.if_match,
        )

    # --- Task routes ---

    @app_router.get("/tasks/search")
    def search_tasks_route(
        query: str = Query(...),
        status: Optional[str] = Query(None),
        plan_id: Optional[str] = Query(None),
        limit: int = Query(50),
    ):
        return _call(search_tasks, config, query, status=status, plan_id=plan_id, limit=limit)

    @app_router.get("/plans/{plan_id}/current-task")
    def get_current_task(plan_id: str, include_body: bool = Query(True)):
        return _call(get_task, config, plan_id, None, include_body=include_body)

    @app_router.patch("/plans/{plan_id}/current-task")
    def update_current_task(plan_id: str, body: CurrentTaskUpdateBody):
        return _call(update_task, config, plan_id, None, **body.model_dump())

    @app_router.post("/plans/{plan_id}/tasks", status_code=201)
    def add_task_route(plan_id: str, body: TaskAddBody):
        return _call(add_task, config, plan_id, **body.model_dump())

    @app_router.get("/plans/{plan_id}/tasks/{task_id}")
    def get_task_route(plan_id: str, task_id: str, include_body: bool = Query(True)):
        return _call(get_task, config, plan_id, task_id, include_body=include_body)

    @app_router.patch("/plans/{plan_id}/tasks/{task_id}")
    def update_task_route(plan_id: str, task_id: str, body: TaskUpdateBody):
        return _call(update_task, config, plan_id, task_id, **body.model_dump())

    @app_router.delete("/plans/{plan_id}/tasks/{task_id}")
    def delete_task_route(plan_id: str, task_id: str, if_match: Optional[str] = Query(None)):
        return _call(delete_task, config, plan_id, task_id, if_match=if_match)
