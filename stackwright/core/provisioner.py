# stackwright/core/provisioner.py
"""Stack provisioning through the CloudFormation API"""

import copy
import json
import logging
from typing import Any, Dict, List, Optional

from botocore.exceptions import ClientError

from ..api.exceptions import ProvisionError
from ..constants import NO_UPDATES_MESSAGE
from ..models.result import ProvisionOutcome
from ..models.template import Template
from ..utils.async_utils import run_blocking

logger = logging.getLogger(__name__)

CAPABILITIES = ["CAPABILITY_IAM"]
LAMBDA_FUNCTION_TYPE = "AWS::Lambda::Function"


def _error_code(error: ClientError) -> str:
    return error.response.get('Error', {}).get('Code', '')


def _error_message(error: ClientError) -> str:
    return error.response.get('Error', {}).get('Message', '') or str(error)


def _without_code(template: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of a template body with function bundle locations removed"""
    stripped = copy.deepcopy(template)
    for resource in stripped.get('Resources', {}).values():
        if resource.get('Type') == LAMBDA_FUNCTION_TYPE:
            resource.get('Properties', {}).pop('Code', None)
    return stripped


class Provisioner:
    """Creates or updates the stack of one project"""

    def __init__(self, cloudformation, stack_name: str, lambda_client=None):
        """
        Initialize provisioner

        Args:
            cloudformation: boto3 CloudFormation client
            stack_name: Name of the project stack
            lambda_client: boto3 Lambda client, needed for hotswaps
        """
        self.cloudformation = cloudformation
        self.stack_name = stack_name
        self.lambda_client = lambda_client

    def exists(self) -> bool:
        """
        Check whether the stack exists

        Raises:
            ProvisionError: On any error other than the stack being absent
        """
        try:
            self.cloudformation.describe_stacks(StackName=self.stack_name)
        except ClientError as e:
            if _error_code(e) == 'ValidationError':
                return False
            raise ProvisionError(f"Failed to describe stack {self.stack_name}: {e}") from e
        return True

    def current_template(self) -> Optional[Dict[str, Any]]:
        """Deployed template body, or None if the stack does not exist"""
        try:
            response = self.cloudformation.get_template(StackName=self.stack_name)
        except ClientError as e:
            if _error_code(e) == 'ValidationError':
                return None
            raise ProvisionError(f"Failed to read template of {self.stack_name}: {e}") from e

        body = response.get('TemplateBody')
        if isinstance(body, str):
            try:
                return json.loads(body)
            except json.JSONDecodeError:
                # YAML bodies never come from this tool
                return None
        return body

    def provision(self, template: Template) -> ProvisionOutcome:
        """
        Create the stack, or update it if it exists

        Args:
            template: Template to deploy

        Returns:
            CREATED, UPDATED, or UNCHANGED when the stack already matches

        Raises:
            ProvisionError: If the create or update call fails
        """
        body = template.to_json()

        if not self.exists():
            logger.info(f"Creating stack {self.stack_name}")
            try:
                self.cloudformation.create_stack(
                    StackName=self.stack_name,
                    TemplateBody=body,
                    Capabilities=CAPABILITIES,
                )
            except ClientError as e:
                raise ProvisionError(f"Failed to create stack {self.stack_name}: {e}") from e
            return ProvisionOutcome.CREATED

        logger.info(f"Updating stack {self.stack_name}")
        try:
            self.cloudformation.update_stack(
                StackName=self.stack_name,
                TemplateBody=body,
                Capabilities=CAPABILITIES,
            )
        except ClientError as e:
            if NO_UPDATES_MESSAGE in _error_message(e):
                logger.info(f"Stack {self.stack_name} is up to date")
                return ProvisionOutcome.UNCHANGED
            raise ProvisionError(f"Failed to update stack {self.stack_name}: {e}") from e
        return ProvisionOutcome.UPDATED

    def delete(self) -> bool:
        """
        Delete the stack

        Returns:
            False if there was no stack to delete

        Raises:
            ProvisionError: If the delete call fails
        """
        if not self.exists():
            return False

        logger.info(f"Deleting stack {self.stack_name}")
        try:
            self.cloudformation.delete_stack(StackName=self.stack_name)
        except ClientError as e:
            raise ProvisionError(f"Failed to delete stack {self.stack_name}: {e}") from e
        return True

    def deployed_artifacts(self) -> Dict[str, str]:
        """Bundle keys the deployed stack runs, by function name"""
        current = self.current_template() or {}
        artifacts = {}
        for resource in current.get('Resources', {}).values():
            if resource.get('Type') != LAMBDA_FUNCTION_TYPE:
                continue
            properties = resource.get('Properties', {})
            key = properties.get('Code', {}).get('S3Key')
            if properties.get('FunctionName') and key:
                artifacts[properties['FunctionName']] = key
        return artifacts

    def can_hotswap(self, template: Template) -> bool:
        """Whether only function code differs from the deployed stack"""
        current = self.current_template()
        return current is not None and _without_code(current) == _without_code(template.to_dict())

    def hotswap(self, template: Template, functions: List[str], bucket: str) -> None:
        """
        Point functions at their new bundles without a stack update

        Args:
            template: Template already deployed
            functions: Logical names of the functions to update
            bucket: Artifact bucket

        Raises:
            ProvisionError: If a function cannot be updated
        """
        if self.lambda_client is None:
            raise ProvisionError("Hotswap requires a Lambda client")

        for logical_name in functions:
            if logical_name not in template:
                raise ProvisionError(f"No function {logical_name} in the template")
            resource = template.get(logical_name)
            properties = resource.body['Properties']
            logger.info(f"Hotswapping {properties['FunctionName']}")
            try:
                self.lambda_client.update_function_code(
                    FunctionName=properties['FunctionName'],
                    S3Bucket=bucket,
                    S3Key=properties['Code']['S3Key'],
                )
            except ClientError as e:
                raise ProvisionError(
                    f"Failed to update code of {properties['FunctionName']}: {e}"
                ) from e

    async def provision_async(self, template: Template) -> ProvisionOutcome:
        return await run_blocking(self.provision, template)

    async def can_hotswap_async(self, template: Template) -> bool:
        return await run_blocking(self.can_hotswap, template)

    async def hotswap_async(self, template: Template, functions: List[str], bucket: str) -> None:
        await run_blocking(self.hotswap, template, functions, bucket)

    async def deployed_artifacts_async(self) -> Dict[str, str]:
        return await run_blocking(self.deployed_artifacts)

    async def delete_async(self) -> bool:
        return await run_blocking(self.delete)
