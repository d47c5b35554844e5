"""
Tests for task creation.
"""
from realty_crm.db import AI_ACTIONS, TASKS
from realty_crm.services.commands.tasks import TaskCommands
from realty_crm.services.intents import CreateTaskData
from conftest import run


class TestCreateTask:

    def test_contact_task(self, store):
        result = run(TaskCommands(store).create_task(
            CreateTaskData(taskType="contact", contactIdentifier="John Smith",
                           taskDescription="Call about the inspection", dueDate="2026-10-19"),
            "remind me to call John Smith tomorrow",
        ))
        assert result["success"] is True
        assert result["contact"] == {"id": "c1", "name": "John Smith"}
        assert result["message"] == '✅ Created task "Call about the inspection" for John Smith, due 2026-10-19'

        task = run(store.get(TASKS, result["taskId"]))
        assert task["contactId"] == "c1"
        assert "listingId" not in task
        assert task["priority"] == "medium"
        assert task["status"] == "pending"
        assert task["createdBy"] == "AI"

    def test_listing_task_inferred_from_identifier(self, store):
        result = run(TaskCommands(store).create_task(
            CreateTaskData(listingIdentifier="Oakmont", taskTitle="Open house prep",
                           taskDescription="Stage the living room", dueDate="2026-10-23", priority="HIGH"),
            "cmd",
        ))
        assert result["listing"] == {"id": "listing000777", "name": "Oakmont Estate"}
        task = result["task"]
        assert task["listingId"] == "listing000777"
        assert "contactId" not in task
        assert task["title"] == "Open house prep"
        assert task["priority"] == "high"

    def test_long_description_title_is_truncated(self, store):
        description = "Send the revised disclosure packet and the updated comparables spreadsheet"
        result = run(TaskCommands(store).create_task(
            CreateTaskData(taskType="contact", contactIdentifier="Bob", taskDescription=description,
                           dueDate="2026-10-20"),
            "cmd",
        ))
        assert result["task"]["title"].endswith("...")
        assert len(result["task"]["title"]) <= 60

    def test_prospect_ids_carried(self, store):
        result = run(TaskCommands(store).create_task(
            CreateTaskData(taskType="contact", contactIdentifier="Bob", taskDescription="Follow up",
                           dueDate="2026-10-20", prospectId="s1", prospectBusinessId="p1"),
            "cmd",
        ))
        assert result["task"]["prospectId"] == "s1"
        assert result["task"]["prospectBusinessId"] == "p1"

    def test_unresolved_due_date(self, store):
        result = run(TaskCommands(store).create_task(
            CreateTaskData(taskType="contact", contactIdentifier="Bob", taskDescription="Follow up",
                           dueDate="someday"),
            "cmd",
        ))
        assert result["errorType"] == "validation_failure"
        assert result["field"] == "dueDate"
        assert run(store.all(TASKS)) == []

    def test_needs_a_target(self, store):
        result = run(TaskCommands(store).create_task(
            CreateTaskData(taskDescription="Follow up", dueDate="2026-10-20"), "cmd",
        ))
        assert result["field"] == "taskType"

    def test_invalid_priority(self, store):
        result = run(TaskCommands(store).create_task(
            CreateTaskData(taskType="contact", contactIdentifier="Bob", taskDescription="Follow up",
                           dueDate="2026-10-20", priority="urgent"),
            "cmd",
        ))
        assert result["field"] == "priority"

    def test_unknown_contact(self, store):
        result = run(TaskCommands(store).create_task(
            CreateTaskData(taskType="contact", contactIdentifier="Nobody Here", taskDescription="Follow up",
                           dueDate="2026-10-20"),
            "cmd",
        ))
        assert result["errorType"] == "entity_not_found"
        assert run(store.all(TASKS)) == []

    def test_audit_entry(self, store):
        result = run(TaskCommands(store).create_task(
            CreateTaskData(taskType="contact", contactIdentifier="Bob", taskDescription="Follow up",
                           dueDate="2026-10-20"),
            "follow up with Bob",
        ))
        entry = run(store.all(AI_ACTIONS))[0]
        assert entry["action"] == "create_task"
        assert entry["taskId"] == result["taskId"]
        assert entry["targetType"] == "contact"
        assert entry["targetName"] == "Bob Jones"
