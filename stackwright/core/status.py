# stackwright/core/status.py
"""Deployment status from the stack event stream"""

import asyncio
import logging
from typing import Any, Dict, Iterable, List, Optional

from botocore.exceptions import ClientError

from ..api.exceptions import ProvisionError
from ..constants import (
    STACK_FAILURE_STATUSES,
    STACK_RESOURCE_TYPE,
    STACK_SUCCESS_STATUSES,
    USER_INITIATED_REASON,
)
from ..models.result import DeploymentState, DeploymentStatus

logger = logging.getLogger(__name__)


def _is_stack_event(event: Dict[str, Any]) -> bool:
    return event.get('ResourceType') == STACK_RESOURCE_TYPE


def current_events(events: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Events of the most recent deployment

    Args:
        events: Stack events, newest first

    Returns:
        Events up to and including the stack-level event that started
        the latest deployment
    """
    collected = []
    for event in events:
        collected.append(event)
        if _is_stack_event(event) and event.get('ResourceStatusReason') == USER_INITIATED_REASON:
            break
    return collected


def classify_events(events: Iterable[Dict[str, Any]]) -> DeploymentStatus:
    """
    Classify the latest deployment from its events

    The newest stack-level event in a terminal success or failure
    status decides the outcome. Without one the deployment is still in
    progress. A failed deployment carries one message per failed
    resource, newest first.

    Args:
        events: Stack events, newest first

    Returns:
        DeploymentStatus
    """
    events = current_events(events)

    state = DeploymentState.IN_PROGRESS
    for event in events:
        if not _is_stack_event(event):
            continue
        status = event.get('ResourceStatus', '')
        if status in STACK_SUCCESS_STATUSES:
            state = DeploymentState.COMPLETE
            break
        if status in STACK_FAILURE_STATUSES:
            state = DeploymentState.FAILED
            break

    if state is not DeploymentState.FAILED:
        return DeploymentStatus(state=state)

    errors = [
        f"{event.get('LogicalResourceId', '')}: {event.get('ResourceStatusReason', '')}"
        for event in events
        if not _is_stack_event(event) and 'FAILED' in event.get('ResourceStatus', '')
    ]
    return DeploymentStatus(state=state, errors=errors)


class StatusPoller:
    """Reads the deployment status of one stack"""

    def __init__(self, client, stack_name: str):
        """
        Initialize poller

        Args:
            client: boto3 CloudFormation client
            stack_name: Stack to watch
        """
        self.client = client
        self.stack_name = stack_name

    def _events(self) -> List[Dict[str, Any]]:
        paginator = self.client.get_paginator('describe_stack_events')
        events: List[Dict[str, Any]] = []
        for page in paginator.paginate(StackName=self.stack_name):
            page_events = page.get('StackEvents', [])
            events.extend(page_events)
            # Pages are newest first, stop once the deployment start is in view
            if any(_is_stack_event(e) and e.get('ResourceStatusReason') == USER_INITIATED_REASON
                   for e in page_events):
                break
        return events

    def status(self) -> DeploymentStatus:
        """
        Read the current deployment status

        A stack that does not exist has nothing in progress.

        Raises:
            ProvisionError: If the events cannot be read
        """
        try:
            events = self._events()
        except ClientError as e:
            if e.response.get('Error', {}).get('Code') == 'ValidationError':
                logger.debug(f"Stack {self.stack_name} does not exist")
                return DeploymentStatus(state=DeploymentState.COMPLETE)
            raise ProvisionError(f"Failed to read events of {self.stack_name}: {e}") from e

        return classify_events(events)

    async def wait(self, interval: float, timeout: Optional[float] = None) -> DeploymentStatus:
        """
        Poll until the deployment reaches a terminal state

        Args:
            interval: Seconds between reads
            timeout: Give up after this many seconds

        Returns:
            Terminal DeploymentStatus

        Raises:
            ProvisionError: If the timeout expires first
        """
        loop = asyncio.get_running_loop()
        started = loop.time()

        while True:
            status = await loop.run_in_executor(None, self.status)
            if status.is_terminal:
                return status

            if timeout is not None and loop.time() - started >= timeout:
                raise ProvisionError(f"Timed out waiting for {self.stack_name}")

            logger.debug(f"Stack {self.stack_name} in progress, checking again in {interval}s")
            await asyncio.sleep(interval)
