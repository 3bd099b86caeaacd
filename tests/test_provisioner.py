import json
from datetime import datetime, timezone

import boto3
import pytest
from botocore.stub import ANY, Stubber

from stackwright.api.exceptions import ProvisionError
from stackwright.core.provisioner import Provisioner
from stackwright.models.result import ProvisionOutcome
from stackwright.models.template import CfnResource, Template

STACK_NAME = "devATexampleDOTcom-shop"
STACK_ID = f"arn:aws:cloudformation:us-east-1:123456789012:stack/{STACK_NAME}/1"


@pytest.fixture
def cloudformation():
    client = boto3.client("cloudformation", region_name="us-east-1")
    with Stubber(client) as stubber:
        yield client, stubber
        stubber.assert_no_pending_responses()


@pytest.fixture
def template():
    return Template([CfnResource("EndpointFn", {
        "Type": "AWS::Lambda::Function",
        "Properties": {
            "FunctionName": "devATexampleDOTcomDshopDShopApiGetCart",
            "Code": {"S3Bucket": "artifacts", "S3Key": "dev/shop/ShopApiGetCart.zip"},
        },
    })])


def stack_missing(stubber):
    stubber.add_client_error(
        "describe_stacks",
        service_error_code="ValidationError",
        service_message=f"Stack with id {STACK_NAME} does not exist",
        expected_params={"StackName": STACK_NAME},
    )


def stack_present(stubber):
    stubber.add_response(
        "describe_stacks",
        {"Stacks": [{
            "StackName": STACK_NAME,
            "CreationTime": datetime(2024, 1, 1, tzinfo=timezone.utc),
            "StackStatus": "CREATE_COMPLETE",
        }]},
        {"StackName": STACK_NAME},
    )


def test_creates_missing_stack(cloudformation, template):
    client, stubber = cloudformation
    stack_missing(stubber)
    stubber.add_response(
        "create_stack",
        {"StackId": STACK_ID},
        {"StackName": STACK_NAME, "TemplateBody": template.to_json(), "Capabilities": ["CAPABILITY_IAM"]},
    )

    assert Provisioner(client, STACK_NAME).provision(template) is ProvisionOutcome.CREATED


def test_updates_existing_stack(cloudformation, template):
    client, stubber = cloudformation
    stack_present(stubber)
    stubber.add_response(
        "update_stack",
        {"StackId": STACK_ID},
        {"StackName": STACK_NAME, "TemplateBody": ANY, "Capabilities": ["CAPABILITY_IAM"]},
    )

    assert Provisioner(client, STACK_NAME).provision(template) is ProvisionOutcome.UPDATED


def test_no_updates_is_unchanged(cloudformation, template):
    client, stubber = cloudformation
    stack_present(stubber)
    stubber.add_client_error(
        "update_stack",
        service_error_code="ValidationError",
        service_message="No updates are to be performed.",
    )

    assert Provisioner(client, STACK_NAME).provision(template) is ProvisionOutcome.UNCHANGED


def test_update_failure_raises(cloudformation, template):
    client, stubber = cloudformation
    stack_present(stubber)
    stubber.add_client_error(
        "update_stack",
        service_error_code="ValidationError",
        service_message="Stack is in UPDATE_IN_PROGRESS state and can not be updated.",
    )

    with pytest.raises(ProvisionError, match="Failed to update"):
        Provisioner(client, STACK_NAME).provision(template)


def test_describe_failure_raises(cloudformation, template):
    client, stubber = cloudformation
    stubber.add_client_error("describe_stacks", service_error_code="AccessDenied")

    with pytest.raises(ProvisionError, match="Failed to describe"):
        Provisioner(client, STACK_NAME).provision(template)


def test_can_hotswap_only_when_template_matches(cloudformation, template):
    client, stubber = cloudformation
    stubber.add_response("get_template", {"TemplateBody": template.to_json()}, {"StackName": STACK_NAME})
    stubber.add_response("get_template", {"TemplateBody": json.dumps({"Resources": {}})},
                         {"StackName": STACK_NAME})
    stubber.add_client_error("get_template", service_error_code="ValidationError")

    provisioner = Provisioner(client, STACK_NAME)

    assert provisioner.can_hotswap(template) is True
    assert provisioner.can_hotswap(template) is False
    assert provisioner.can_hotswap(template) is False


def test_new_bundle_keys_can_still_be_hotswapped(cloudformation, template):
    client, stubber = cloudformation
    deployed = json.loads(template.to_json())
    deployed["Resources"]["EndpointFn"]["Properties"]["Code"]["S3Key"] = "dev/shop/ShopApiGetCart-0123.zip"
    stubber.add_response("get_template", {"TemplateBody": json.dumps(deployed)}, {"StackName": STACK_NAME})

    assert Provisioner(client, STACK_NAME).can_hotswap(template) is True


def test_deployed_artifacts(cloudformation, template):
    client, stubber = cloudformation
    stubber.add_response("get_template", {"TemplateBody": template.to_json()}, {"StackName": STACK_NAME})
    stubber.add_client_error("get_template", service_error_code="ValidationError",
                             expected_params={"StackName": STACK_NAME})

    provisioner = Provisioner(client, STACK_NAME)

    assert provisioner.deployed_artifacts() == {
        "devATexampleDOTcomDshopDShopApiGetCart": "dev/shop/ShopApiGetCart.zip",
    }
    assert provisioner.deployed_artifacts() == {}


def test_delete_existing_stack(cloudformation):
    client, stubber = cloudformation
    stack_present(stubber)
    stubber.add_response("delete_stack", {}, {"StackName": STACK_NAME})

    assert Provisioner(client, STACK_NAME).delete() is True


def test_delete_missing_stack(cloudformation):
    client, stubber = cloudformation
    stack_missing(stubber)

    assert Provisioner(client, STACK_NAME).delete() is False


def test_delete_failure_raises(cloudformation):
    client, stubber = cloudformation
    stack_present(stubber)
    stubber.add_client_error("delete_stack", service_error_code="AccessDenied")

    with pytest.raises(ProvisionError, match="Failed to delete"):
        Provisioner(client, STACK_NAME).delete()


def test_hotswap_updates_function_code(template):
    lambda_client = boto3.client("lambda", region_name="us-east-1")
    with Stubber(lambda_client) as stubber:
        stubber.add_response(
            "update_function_code",
            {"FunctionName": "devATexampleDOTcomDshopDShopApiGetCart"},
            {
                "FunctionName": "devATexampleDOTcomDshopDShopApiGetCart",
                "S3Bucket": "artifacts",
                "S3Key": "dev/shop/ShopApiGetCart.zip",
            },
        )

        Provisioner(None, STACK_NAME, lambda_client).hotswap(template, ["EndpointFn"], "artifacts")

        stubber.assert_no_pending_responses()


def test_hotswap_unknown_function(template):
    provisioner = Provisioner(None, STACK_NAME, lambda_client=object())

    with pytest.raises(ProvisionError, match="No function"):
        provisioner.hotswap(template, ["Missing"], "artifacts")
