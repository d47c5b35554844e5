from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends

from ..db import TASKS, DocumentStore, StoreError, get_store
from ..logging_config import get_logger, log_action
from ..models import TaskStatus, TaskUpdate
from ..services.classifier import is_iso_date
from ..services.errors import ApiError

logger = get_logger(__name__)
router = APIRouter(prefix="/tasks")


@router.get("")
async def list_tasks(
    status: Optional[TaskStatus] = None,
    contactId: Optional[str] = None,
    listingId: Optional[str] = None,
    store: DocumentStore = Depends(get_store),
) -> Dict[str, Any]:
    filters = []
    if status:
        filters.append(("status", "==", status.value))
    if contactId:
        filters.append(("contactId", "==", contactId))
    if listingId:
        filters.append(("listingId", "==", listingId))
    try:
        tasks = await store.query(TASKS, filters)
    except StoreError as e:
        raise ApiError(500, "Failed to fetch tasks", details=str(e))
    tasks.sort(key=lambda t: t.get("dueDate") or "")
    return {"success": True, "tasks": tasks, "count": len(tasks)}


@router.patch("/{task_id}")
async def update_task(task_id: str, payload: TaskUpdate, store: DocumentStore = Depends(get_store)) -> Dict[str, Any]:
    updates = payload.model_dump(exclude_unset=True, mode="json")
    if not updates:
        raise ApiError(400, "No fields to update")
    if "dueDate" in updates and not is_iso_date(updates["dueDate"]):
        raise ApiError(400, "dueDate must be an ISO date (YYYY-MM-DD)")
    updates["updatedAt"] = datetime.now(timezone.utc)
    if updates.get("status") == TaskStatus.COMPLETED.value:
        updates["completedAt"] = updates["updatedAt"]

    try:
        if await store.get(TASKS, task_id) is None:
            raise ApiError(404, "Task not found")
        await store.update(TASKS, task_id, updates)
    except StoreError as e:
        raise ApiError(500, "Failed to update task", details=str(e))

    log_action(logger, "info", "task_updated", "Task updated", task_id=task_id, fields=sorted(updates))
    return {"success": True, "message": "Task updated successfully"}


@router.delete("/{task_id}")
async def delete_task(task_id: str, store: DocumentStore = Depends(get_store)) -> Dict[str, Any]:
    try:
        if await store.get(TASKS, task_id) is None:
            raise ApiError(404, "Task not found")
        await store.delete(TASKS, task_id)
    except StoreError as e:
        raise ApiError(500, "Failed to delete task", details=str(e))

    log_action(logger, "info", "task_deleted", "Task deleted", task_id=task_id)
    return {"success": True, "message": "Task deleted successfully"}
