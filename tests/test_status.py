import pytest
from botocore.exceptions import ClientError

from stackwright.api.exceptions import ProvisionError
from stackwright.core.status import StatusPoller, classify_events, current_events
from stackwright.models.result import DeploymentState

STACK = "AWS::CloudFormation::Stack"


def stack_event(status, reason=""):
    return {
        "LogicalResourceId": "devATexampleDOTcom-shop",
        "ResourceType": STACK,
        "ResourceStatus": status,
        "ResourceStatusReason": reason,
    }


def resource_event(logical_id, status, reason=""):
    return {
        "LogicalResourceId": logical_id,
        "ResourceType": "AWS::Lambda::Function",
        "ResourceStatus": status,
        "ResourceStatusReason": reason,
    }


# Events are listed newest first
PREVIOUS_DEPLOYMENT = [
    stack_event("UPDATE_ROLLBACK_COMPLETE"),
    resource_event("OldFunction", "UPDATE_FAILED", "old failure"),
    stack_event("UPDATE_IN_PROGRESS", "User Initiated"),
]


def test_in_progress_deployment():
    events = [
        resource_event("Function", "CREATE_IN_PROGRESS"),
        stack_event("CREATE_IN_PROGRESS", "User Initiated"),
    ]

    assert classify_events(events).state is DeploymentState.IN_PROGRESS


def test_completed_deployment():
    events = [
        stack_event("UPDATE_COMPLETE"),
        stack_event("UPDATE_COMPLETE_CLEANUP_IN_PROGRESS"),
        resource_event("Function", "UPDATE_COMPLETE"),
        stack_event("UPDATE_IN_PROGRESS", "User Initiated"),
    ] + PREVIOUS_DEPLOYMENT

    status = classify_events(events)

    assert status.state is DeploymentState.COMPLETE
    assert status.errors == []


def test_failed_deployment_reports_only_its_own_failures():
    events = [
        stack_event("ROLLBACK_COMPLETE"),
        stack_event("ROLLBACK_IN_PROGRESS", "The following resource(s) failed to create"),
        resource_event("EndpointRole", "CREATE_FAILED", "Resource creation cancelled"),
        resource_event("Endpoint", "CREATE_FAILED", "Invalid handler"),
        stack_event("CREATE_IN_PROGRESS", "User Initiated"),
    ] + PREVIOUS_DEPLOYMENT

    status = classify_events(events)

    assert status.state is DeploymentState.FAILED
    assert status.errors == [
        "EndpointRole: Resource creation cancelled",
        "Endpoint: Invalid handler",
    ]


def test_single_resource_failure_gives_one_diagnostic():
    events = [
        stack_event("CREATE_FAILED"),
        resource_event("Queue", "CREATE_FAILED", "Queue name taken"),
        stack_event("CREATE_IN_PROGRESS", "User Initiated"),
    ]

    status = classify_events(events)

    assert status.state is DeploymentState.FAILED
    assert status.errors == ["Queue: Queue name taken"]


def test_current_events_stop_at_deployment_start():
    events = [stack_event("UPDATE_IN_PROGRESS", "User Initiated")] + PREVIOUS_DEPLOYMENT

    assert current_events(events) == events[:1]


class FakePaginator:
    def __init__(self, pages, error=None):
        self.pages = pages
        self.error = error
        self.served = 0

    def paginate(self, **kwargs):
        if self.error:
            raise self.error
        for page in self.pages:
            self.served += 1
            yield {"StackEvents": page}


class FakeCloudFormation:
    def __init__(self, paginator):
        self.paginator = paginator

    def get_paginator(self, operation):
        assert operation == "describe_stack_events"
        return self.paginator


def client_error(code, message="error"):
    return ClientError({"Error": {"Code": code, "Message": message}}, "DescribeStackEvents")


def test_poller_stops_reading_at_deployment_start():
    paginator = FakePaginator([
        [stack_event("UPDATE_COMPLETE"), stack_event("UPDATE_IN_PROGRESS", "User Initiated")],
        PREVIOUS_DEPLOYMENT,
    ])

    status = StatusPoller(FakeCloudFormation(paginator), "stack").status()

    assert status.state is DeploymentState.COMPLETE
    assert paginator.served == 1


def test_missing_stack_is_complete():
    paginator = FakePaginator([], error=client_error("ValidationError", "Stack does not exist"))

    status = StatusPoller(FakeCloudFormation(paginator), "stack").status()

    assert status.state is DeploymentState.COMPLETE


def test_other_errors_raise():
    paginator = FakePaginator([], error=client_error("AccessDenied"))

    with pytest.raises(ProvisionError):
        StatusPoller(FakeCloudFormation(paginator), "stack").status()


class SequencePoller(StatusPoller):
    def __init__(self, statuses):
        super().__init__(None, "stack")
        self.statuses = list(statuses)
        self.reads = 0

    def status(self):
        self.reads += 1
        return self.statuses.pop(0)


@pytest.mark.asyncio
async def test_wait_polls_until_terminal():
    in_progress = classify_events([stack_event("UPDATE_IN_PROGRESS", "User Initiated")])
    done = classify_events([stack_event("UPDATE_COMPLETE")])
    poller = SequencePoller([in_progress, in_progress, done])

    status = await poller.wait(interval=0)

    assert status.state is DeploymentState.COMPLETE
    assert poller.reads == 3


@pytest.mark.asyncio
async def test_wait_times_out():
    in_progress = classify_events([stack_event("UPDATE_IN_PROGRESS", "User Initiated")])
    poller = SequencePoller([in_progress] * 10)

    with pytest.raises(ProvisionError, match="Timed out"):
        await poller.wait(interval=0, timeout=0)
