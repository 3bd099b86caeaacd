"""Entry point preambles shared by every role

Placeholders use ``string.Template`` syntax; a literal dollar sign in
generated code must be written as ``$$``.
"""

REMOTE_PREAMBLE = '''\
# Generated by stackwright. Do not edit.
import json
import os

import boto3
from aws_lambda_powertools import Logger

$import_statement

SECRETS_NAMES_ENV = "${env_prefix}_SECRETS_NAMES"
QUEUE_ENV_PREFIX = "${env_prefix}_QUEUE_"

logger = Logger(service="$function_name")


class QueueSender:
    """Send-only handle on one queue"""

    def __init__(self, client, queue_url):
        self.client = client
        self.queue_url = queue_url

    def send_message(self, **kwargs):
        return self.client.send_message(QueueUrl=self.queue_url, **kwargs)


def load_secrets():
    client = boto3.client("ssm")
    secrets = {}
    names = os.environ.get(SECRETS_NAMES_ENV, "").split(",")

    for storage_name in (name.strip() for name in names):
        if not storage_name:
            continue

        parameter = client.get_parameter(Name=storage_name, WithDecryption=True)["Parameter"]
        tags = client.list_tags_for_resource(
            ResourceType="Parameter",
            ResourceId=storage_name,
        ).get("TagList", [])
        name = next((tag["Value"] for tag in tags if tag["Key"] == "original_name"), storage_name)
        secrets[name] = parameter["Value"]

    return secrets


def load_queues():
    queues = {}
    client = None

    for key, value in os.environ.items():
        if key.startswith(QUEUE_ENV_PREFIX):
            if client is None:
                client = boto3.client("sqs")
            queues[key[len(QUEUE_ENV_PREFIX):]] = QueueSender(client, value)

    return queues


logger.info("Fetching secrets")
SECRETS = load_secrets()
logger.info("Provisioning queues")
QUEUES = load_queues()
'''

LOCAL_PREAMBLE = '''\
# Generated by stackwright. Do not edit.
import json
import os
import sys

import boto3

$import_statement

SECRET_ENV_PREFIX = "${env_prefix}_SECRET_"
QUEUE_ENV_PREFIX = "${env_prefix}_QUEUE_"
INVOKE_PAYLOAD_ENV = "${env_prefix}_INVOKE_PAYLOAD"
INVOKE_HEADERS_ENV = "${env_prefix}_INVOKE_HEADERS"
INVOKE_URL_PATH_ENV = "${env_prefix}_INVOKE_URL_PATH"


class QueueSender:
    """Send-only handle on one queue"""

    def __init__(self, client, queue_url):
        self.client = client
        self.queue_url = queue_url

    def send_message(self, **kwargs):
        return self.client.send_message(QueueUrl=self.queue_url, **kwargs)


def load_secrets():
    return {
        key[len(SECRET_ENV_PREFIX):]: value
        for key, value in os.environ.items()
        if key.startswith(SECRET_ENV_PREFIX)
    }


def load_queues():
    queues = {}
    client = None

    for key, value in os.environ.items():
        if key.startswith(QUEUE_ENV_PREFIX):
            if client is None:
                client = boto3.client("sqs")
            queues[key[len(QUEUE_ENV_PREFIX):]] = QueueSender(client, value)

    return queues


def read_payload():
    return os.environ.get(INVOKE_PAYLOAD_ENV, "")
'''

RESPONSE_HELPERS = '''

def to_response(result):
    """Convert a handler result into an HTTP response"""
    if isinstance(result, dict) and "statusCode" in result:
        response = dict(result)
        body = response.get("body", "")
        if not isinstance(body, str):
            response["body"] = json.dumps(body)
        response.setdefault("headers", {})
        return response

    if isinstance(result, str):
        return {
            "statusCode": 200,
            "headers": {"Content-Type": "text/plain"},
            "body": result,
        }

    return {
        "statusCode": 200,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(result),
    }
'''
