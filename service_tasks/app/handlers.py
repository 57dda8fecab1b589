"""
HTTP handlers for the /tasks resource.
"""

from typing import List, Optional

from fastapi import APIRouter, FastAPI, Query, Request, Response, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from shared.errors import RequestError
from shared.observability import ObservabilityManager
from .models import Task

TASKS_PATH = "/tasks"
ALLOWED_METHODS = "GET, POST, PUT, DELETE, OPTIONS"

# Set on every /tasks response, whatever the method or outcome
TASK_RESPONSE_HEADERS = {
    "Content-Type": "application/json",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": ALLOWED_METHODS,
    "Access-Control-Allow-Headers": "Content-Type",
}


async def decode_task(request: Request) -> Task:
    """Decode the request body as a single Task."""
    body = await request.body()
    try:
        return Task.model_validate_json(body)
    except ValidationError as e:
        raise RequestError(str(e)) from e


def require_task_id(task_id: Optional[str]) -> str:
    if not task_id:
        raise RequestError("id is required")
    return task_id


class TaskHandler:
    """Maps HTTP verbs on /tasks onto task store operations."""

    def __init__(self, store, observability: ObservabilityManager):
        self.store = store
        self.observability = observability
        self.metrics = observability.metrics
        self.router = APIRouter(tags=["tasks"])
        self._setup_routes()

    def install(self, app: FastAPI):
        """Register the routes and the /tasks response headers on an app."""
        app.include_router(self.router)

        @app.middleware("http")
        async def task_headers_middleware(request: Request, call_next):
            response = await call_next(request)
            if request.url.path == TASKS_PATH:
                response.headers.update(TASK_RESPONSE_HEADERS)
                if response.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
                    response.headers["Allow"] = ALLOWED_METHODS
            return response

    def _setup_routes(self):
        """Set up API routes."""

        @self.router.options(TASKS_PATH)
        async def preflight_tasks():
            """Answer CORS preflight requests."""
            return Response(status_code=status.HTTP_200_OK)

        @self.router.get(TASKS_PATH, response_model=List[Task])
        async def list_tasks():
            """List every stored task."""
            tasks = await self.store.list_tasks()
            return JSONResponse(content=[task.model_dump() for task in tasks])

        @self.router.post(TASKS_PATH, status_code=status.HTTP_201_CREATED)
        async def create_task(request: Request):
            """Create a task from the JSON body."""
            task = await decode_task(request)
            task_id = await self.store.create_task(task)

            self.metrics.increment_gauge("active_tasks")
            self.observability.log_business_event("task_created", task_id=task_id)
            return Response(status_code=status.HTTP_201_CREATED)

        @self.router.put(TASKS_PATH)
        async def update_task(request: Request, task_id: Optional[str] = Query(None, alias="id")):
            """Overwrite a task; unknown ids still succeed."""
            task_id = require_task_id(task_id)
            task = await decode_task(request)
            await self.store.update_task(task_id, task)
            return Response(status_code=status.HTTP_200_OK)

        @self.router.delete(TASKS_PATH)
        async def delete_task(task_id: Optional[str] = Query(None, alias="id")):
            """Delete a task; unknown ids still succeed."""
            task_id = require_task_id(task_id)
            if await self.store.delete_task(task_id):
                self.metrics.decrement_gauge("active_tasks")
                self.observability.log_business_event("task_deleted", task_id=task_id)
            return Response(status_code=status.HTTP_200_OK)
