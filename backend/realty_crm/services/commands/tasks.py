"""
Task creation from natural-language commands.

A task targets exactly one contact or one listing, chosen by taskType.
"""

from typing import Any, Dict

from ...db import TASKS
from ...logging_config import get_logger, log_action
from ...models import TaskPriority, TaskStatus
from ..classifier import is_iso_date
from ..errors import ValidationFailure
from ..intents import CreateTaskData
from ..resolver import contact_display_name, listing_display_name
from .base import CommandGroup, command_handler, ok, require_choice, utcnow

logger = get_logger(__name__)

TASK_TYPES = ("contact", "listing")
TITLE_MAX_LENGTH = 60


def _default_title(description: str) -> str:
    if len(description) <= TITLE_MAX_LENGTH:
        return description
    return description[:TITLE_MAX_LENGTH - 3].rstrip() + "..."


class TaskCommands(CommandGroup):

    @command_handler("Failed to create task. Please try again.")
    async def create_task(self, data: CreateTaskData, command: str) -> Dict[str, Any]:
        description = data.require("taskDescription", "Please describe the task.").strip()
        due_date = data.require("dueDate", "Please specify when the task is due.").strip()
        if not is_iso_date(due_date):
            raise ValidationFailure(
                f'Could not understand the due date "{due_date}".',
                field="dueDate",
                details="Due date must be an ISO date (YYYY-MM-DD)",
            )

        task_type = (data.taskType or "").strip().lower()
        if not task_type:
            if data.contactIdentifier and data.contactIdentifier.strip():
                task_type = "contact"
            elif data.listingIdentifier and data.listingIdentifier.strip():
                task_type = "listing"
        if not task_type:
            raise ValidationFailure("Please specify a contact or listing for the task.", field="taskType")
        task_type = require_choice(task_type, TASK_TYPES, "taskType", f'Invalid task type: "{task_type}".')

        priority = TaskPriority.MEDIUM.value
        if data.priority and data.priority.strip():
            priority = require_choice(data.priority, [p.value for p in TaskPriority], "priority",
                                      f'Invalid priority: "{data.priority}".')

        task: Dict[str, Any] = {
            "title": (data.taskTitle or "").strip() or _default_title(description),
            "description": description,
            "dueDate": due_date,
            "priority": priority,
            "status": TaskStatus.PENDING.value,
            "createdAt": utcnow(),
            "createdBy": "AI",
        }
        if data.prospectId:
            task["prospectId"] = data.prospectId
        if data.prospectBusinessId:
            task["prospectBusinessId"] = data.prospectBusinessId

        if task_type == "contact":
            identifier = data.require("contactIdentifier", "Please specify which contact the task is for.")
            contact = await self.require_contact(identifier)
            target_id, target_name = contact["id"], contact_display_name(contact)
            task["contactId"] = target_id
            target = {"contact": {"id": target_id, "name": target_name}}
        else:
            identifier = data.require("listingIdentifier", "Please specify which listing the task is for.")
            listing = await self.require_listing(identifier)
            target_id, target_name = listing["id"], listing_display_name(listing)
            task["listingId"] = target_id
            target = {"listing": {"id": target_id, "name": target_name}}

        task_id = await self.store.add(TASKS, task)

        log_action(logger, "info", "task_created", f"Created task for {task_type} {target_name}",
                   task_id=task_id, target_type=task_type, target_id=target_id, due_date=due_date)
        await self.audit.record_task_action(command, task_id, task_type, target_id, target_name)
        return ok(
            f'✅ Created task "{task["title"]}" for {target_name}, due {due_date}',
            action="create_task",
            taskId=task_id,
            task={**task, "id": task_id},
            **target,
        )
