"""
Tests for the step executor and the audit log.
"""
import pytest

from realty_crm.db import AI_ACTIONS, MemoryStore, StoreError
from realty_crm.services.audit import AuditLog
from realty_crm.services.errors import EntityNotFound, PartialWorkflowFailure
from realty_crm.services.workflow import Workflow
from conftest import run


async def make_entity():
    return {"id": "e1", "name": "thing"}


async def fail():
    raise EntityNotFound("Listing", "9 Elm", "Try again.")


class TestWorkflow:

    def test_records_completed_steps(self):
        workflow = Workflow("demo", ("create", "attach"))
        run(workflow.run("create", make_entity))
        assert workflow.completed == ["create"]
        assert workflow.report() == [
            {"step": "create", "status": "completed", "entityId": "e1"},
            {"step": "attach", "status": "not_attempted"},
        ]

    def test_failed_step_is_recorded_and_reraised(self):
        workflow = Workflow("demo", ("create", "resolve", "attach"))
        run(workflow.run("create", make_entity))
        with pytest.raises(EntityNotFound):
            run(workflow.run("resolve", fail))
        statuses = [step["status"] for step in workflow.report()]
        assert statuses == ["completed", "failed", "not_attempted"]

    def test_partial_failure_after_a_completed_step(self):
        workflow = Workflow("demo", ("create", "resolve"))
        run(workflow.run("create", make_entity))
        try:
            run(workflow.run("resolve", fail))
        except EntityNotFound as e:
            error = workflow.partial_failure(e, "Created, but not attached.", details=str(e), thingId="e1")
        assert isinstance(error, PartialWorkflowFailure)
        result = error.to_result()
        assert result["completedSteps"] == ["create"]
        assert result["suggestion"] == "Try again."
        assert result["thingId"] == "e1"

    def test_failure_of_first_step_is_returned_unchanged(self):
        workflow = Workflow("demo", ("resolve", "create"))
        try:
            run(workflow.run("resolve", fail))
        except EntityNotFound as e:
            original = e
        assert workflow.partial_failure(original, "unused", details="unused") is original


class BrokenStore(MemoryStore):

    async def add(self, collection, data):
        raise StoreError("unavailable", "add", collection)


class TestAuditLog:

    def test_none_values_are_dropped(self, empty_store):
        run(AuditLog(empty_store).record_contact_action("cmd", "create", "c1", "John Smith"))
        entry = run(empty_store.all(AI_ACTIONS))[0]
        assert "field" not in entry
        assert entry["success"] is True
        assert "timestamp" in entry

    def test_write_failure_does_not_raise(self):
        assert run(AuditLog(BrokenStore()).record_contact_action("cmd", "create", "c1", "John Smith")) is None
