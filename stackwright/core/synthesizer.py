# stackwright/core/synthesizer.py
"""Infrastructure template synthesis

Turns a project, its functions and its secrets into a CloudFormation
template. Every function becomes a bundle of resources shaped by its
role; request handlers additionally share one CloudFront distribution
routing each declared path to its function URL.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Sequence

from .naming import artifact_key, escape_resource_name
from ..api.exceptions import MissingQueueError, SynthesisError
from ..constants import (
    CACHE_POLICY_ID,
    CLOUDFRONT_HOSTED_ZONE_ID,
    ENV_QUEUE_PREFIX,
    ENV_SECRETS_NAMES,
    ENV_USERNAME,
    ORIGIN_REQUEST_POLICY_ID,
    Role,
)
from ..models.config import BuildConfig
from ..models.function import EndpointParams, Function
from ..models.project import Project
from ..models.template import CfnResource, Template

logger = logging.getLogger(__name__)

ALLOWED_METHODS = ["DELETE", "GET", "HEAD", "OPTIONS", "PATCH", "POST", "PUT"]
URL_PARAMETER = re.compile(r"\{[^}]*\}")

DYNAMODB_ACTIONS = [
    "dynamodb:BatchGetItem",
    "dynamodb:BatchWriteItem",
    "dynamodb:ConditionCheckItem",
    "dynamodb:PutItem",
    "dynamodb:DescribeTable",
    "dynamodb:DeleteItem",
    "dynamodb:GetItem",
    "dynamodb:Scan",
    "dynamodb:Query",
    "dynamodb:UpdateItem",
]
QUEUE_CONSUMER_ACTIONS = [
    "sqs:ChangeMessageVisibility",
    "sqs:DeleteMessage",
    "sqs:GetQueueAttributes",
    "sqs:GetQueueUrl",
    "sqs:ReceiveMessage",
]

ROLE_PREFIXES = {
    Role.ENDPOINT: "Endpoint",
    Role.WORKER: "Worker",
    Role.CRON: "Cron",
}

# Per-role compute settings
LAMBDA_SETTINGS = {
    Role.ENDPOINT: {"MemorySize": 256, "Timeout": 30},
    Role.WORKER: {"MemorySize": 128, "Timeout": 30},
    Role.CRON: {"MemorySize": 128, "Timeout": 300},
}
CRON_RESERVED_CONCURRENCY = 8

# SQS event source mappings reject a maximum concurrency below 2
MIN_QUEUE_CONCURRENCY = 2


def prefixed(username: str, project_name: str, parts: Sequence[str]) -> str:
    """
    Build a collision-free logical name

    Args:
        username: Owner of the project
        project_name: Project name
        parts: Name parts unique within the project

    Returns:
        Alphanumeric name scoped to the user and project

    Raises:
        SynthesisError: If the result is not alphanumeric after escaping
    """
    joined = "D".join(escape_resource_name(part) for part in parts)
    name = f"{escape_resource_name(username)}D{escape_resource_name(project_name)}D{joined}"
    if not name.isalnum():
        raise SynthesisError(f"Cannot build a logical name from {list(parts)}: {name}")
    return name


def _policy(name: str, statements: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {
        "PolicyName": name,
        "PolicyDocument": {
            "Version": "2012-10-17",
            "Statement": statements,
        },
    }


def _allow(actions: List[str], resource: Any) -> Dict[str, Any]:
    return {"Effect": "Allow", "Action": actions, "Resource": resource}


def _get_att(resource: str, attribute: str = "Arn") -> Dict[str, Any]:
    return {"Fn::GetAtt": [resource, attribute]}


class TemplateSynthesizer:
    """Builds the infrastructure template of a project"""

    def __init__(self, config: BuildConfig, username: str):
        self.config = config
        self.username = username

    def synthesize(self,
                   project: Project,
                   functions: List[Function],
                   secrets: Sequence[str] = ()) -> Template:
        """
        Build the template for a project

        Synthesizing identical inputs twice produces identical output.

        Args:
            project: Project being deployed
            functions: All functions of the project, in declaration order
            secrets: Parameter store names of the project secrets

        Returns:
            Template

        Raises:
            SynthesisError: If the functions cannot be described
        """
        return ProjectTemplate(self.config, self.username, project).build(functions, secrets)

    def logical_name(self, function: Function) -> str:
        """Logical name of the compute resource of a function"""
        return ProjectTemplate(self.config, self.username, function.project).logical_name(function)


class ProjectTemplate:
    """Resource builders for one project of one user"""

    def __init__(self, config: BuildConfig, username: str, project: Project):
        self.config = config
        self.username = username
        self.project = project

    def build(self, functions: List[Function], secrets: Sequence[str] = ()) -> Template:
        template = Template()
        secrets = list(secrets)

        for table in self.project.tables:
            name = self.prefixed([table.name])
            template.add(CfnResource(f"DynamoDBTable{name}", {
                "Type": "AWS::DynamoDB::Table",
                "Properties": {
                    "TableName": table.name,
                    "AttributeDefinitions": [{"AttributeName": "id", "AttributeType": "S"}],
                    "KeySchema": [{"AttributeName": "id", "KeyType": "HASH"}],
                    "ProvisionedThroughput": {"ReadCapacityUnits": 5, "WriteCapacityUnits": 5},
                },
            }))

        for function in functions:
            if function.role == Role.ENDPOINT:
                template.extend(self.endpoint(function, functions, secrets))
            elif function.role == Role.WORKER:
                template.extend(self.worker(function, secrets))
            elif function.role == Role.CRON:
                template.extend(self.cron(function, secrets))
            else:
                raise SynthesisError(f"Unknown role {function.role} of {function.name}")

        endpoints = [f for f in functions if f.role == Role.ENDPOINT]
        if endpoints:
            template.extend(self.routing(endpoints))

        logger.debug(f"Synthesized {len(template)} resources for {self.project.name}")
        return template

    @property
    def project_escaped(self) -> str:
        return escape_resource_name(self.project.name)

    def prefixed(self, parts: Sequence[str]) -> str:
        return prefixed(self.username, self.project.name, parts)

    def logical_name(self, function: Function) -> str:
        """Logical name of the compute resource of a function"""
        return f"{ROLE_PREFIXES[function.role]}{self.prefixed([function.name])}"

    def policies(self, secrets: Sequence[str]) -> List[Dict[str, Any]]:
        """Policies every function role gets: tables, secrets and logs"""
        policies = []

        for table in self.project.tables:
            name = self.prefixed([table.name])
            policies.append(_policy(f"DynamoPolicy{name}", [
                _allow(DYNAMODB_ACTIONS, _get_att(f"DynamoDBTable{name}")),
            ]))

        for secret in secrets:
            policies.append(_policy(f"SecretPolicy{self.prefixed([secret])}", [
                _allow(
                    ["ssm:GetParameter", "ssm:GetParameters", "ssm:ListTagsForResource"],
                    [{"Fn::Sub": f"arn:aws:ssm:${{AWS::Region}}:${{AWS::AccountId}}:parameter/{secret}"}],
                ),
                _allow(
                    ["kms:Decrypt"],
                    [{"Fn::Sub": "arn:aws:kms:${AWS::Region}:${AWS::AccountId}:key/"
                                 f"{self.config.kms_key_id}"}],
                ),
            ]))

        policies.append(_policy("AppendToLogsPolicy", [
            _allow(["logs:CreateLogGroup", "logs:CreateLogStream", "logs:PutLogEvents"], "*"),
        ]))
        return policies

    def environment(self,
                    function: Function,
                    secrets: Sequence[str],
                    queues: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Environment variables of a function

        Reserved variables overwrite user-defined ones of the same name.
        """
        variables: Dict[str, Any] = dict(sorted(function.environment.items()))
        for alias, reference in (queues or {}).items():
            variables[f"{ENV_QUEUE_PREFIX}{alias}"] = reference
        variables[ENV_SECRETS_NAMES] = ",".join(secrets)
        variables[ENV_USERNAME] = self.username
        return {"Variables": variables}

    def _lambda(self,
                function: Function,
                role_resource: str,
                environment: Dict[str, Any]) -> Dict[str, Any]:
        properties: Dict[str, Any] = {
            "FunctionName": self.prefixed([function.name]),
            "Handler": f"{self.project.package_name}.bin.{function.name}.handler",
            "Runtime": self.config.runtime,
            "Environment": environment,
            "Role": _get_att(role_resource),
            **LAMBDA_SETTINGS[function.role],
            "Code": {
                "S3Bucket": self.config.bucket,
                "S3Key": function.artifact_key or artifact_key(
                    self.username, self.project.name, function.name, function.checksum),
            },
            # Functions cannot edit their own tags, so other parts of
            # the stack can rely on this one
            "Tags": [{"Key": ENV_USERNAME, "Value": self.username}],
        }

        if function.params.is_disabled:
            properties["ReservedConcurrentExecutions"] = 0
        elif function.role == Role.CRON:
            properties["ReservedConcurrentExecutions"] = CRON_RESERVED_CONCURRENCY

        return {"Type": "AWS::Lambda::Function", "Properties": properties}

    def _role(self, policies: List[Dict[str, Any]]) -> Dict[str, Any]:
        return {
            "Type": "AWS::IAM::Role",
            "Properties": {
                "AssumeRolePolicyDocument": {
                    "Version": "2012-10-17",
                    "Statement": [{
                        "Effect": "Allow",
                        "Principal": {"Service": ["lambda.amazonaws.com"]},
                        "Action": ["sts:AssumeRole"],
                    }],
                },
                "Path": "/",
                "Policies": policies,
            },
        }

    def _bound_queues(self, function: Function, functions: List[Function]) -> Dict[str, str]:
        """Logical names of the worker queues an endpoint sends to, by alias"""
        params = function.params
        if not isinstance(params, EndpointParams):
            return {}

        by_alias = {}
        for other in functions:
            queue = other.queue if other.role == Role.WORKER else None
            if queue is not None:
                by_alias.setdefault(queue.alias, f"WorkerQueue{self.prefixed([other.name])}")

        bound = {}
        for alias in params.queues:
            if alias not in by_alias:
                raise SynthesisError(
                    f"Endpoint {function.name} sends to unknown queue alias '{alias}'"
                )
            bound[alias] = by_alias[alias]
        return bound

    def endpoint(self,
                 function: Function,
                 functions: List[Function],
                 secrets: Sequence[str]) -> List[CfnResource]:
        """Request handler: function, role, public URL and its permission"""
        name = self.prefixed([function.name])
        bound = self._bound_queues(function, functions)

        policies = self.policies(secrets)
        if bound:
            policies.append(_policy("QueueSendPolicy", [
                _allow(["sqs:SendMessage"], [_get_att(queue) for queue in bound.values()]),
            ]))

        environment = self.environment(
            function, secrets, {alias: {"Ref": queue} for alias, queue in bound.items()}
        )

        return [
            CfnResource(f"Endpoint{name}", self._lambda(function, f"EndpointRole{name}", environment)),
            CfnResource(f"EndpointRole{name}", self._role(policies)),
            CfnResource(f"EndpointUrl{name}", {
                "Type": "AWS::Lambda::Url",
                "Properties": {
                    "AuthType": "NONE",
                    "TargetFunctionArn": {"Ref": f"Endpoint{name}"},
                },
            }),
            CfnResource(f"EndpointUrlPermission{name}", {
                "Type": "AWS::Lambda::Permission",
                "Properties": {
                    "Action": "lambda:InvokeFunctionUrl",
                    "FunctionUrlAuthType": "NONE",
                    "FunctionName": {"Ref": f"Endpoint{name}"},
                    "Principal": "*",
                },
            }),
        ]

    def worker(self, function: Function, secrets: Sequence[str]) -> List[CfnResource]:
        """Queue consumer: function, role, its queue and the event source mapping

        Raises:
            MissingQueueError: If the function has no queue resource
        """
        queue = function.queue
        if queue is None:
            raise MissingQueueError(function.name)

        name = self.prefixed([function.name])
        policies = self.policies(secrets)
        policies.append(_policy("QueuePolicy", [
            _allow(QUEUE_CONSUMER_ACTIONS, _get_att(f"WorkerQueue{name}")),
        ]))

        queue_properties: Dict[str, Any] = {
            "QueueName": self.prefixed([queue.name]) + (".fifo" if queue.fifo else ""),
            "VisibilityTimeout": 60,
            "MaximumMessageSize": 2048,
            "MessageRetentionPeriod": 345600,
            "ReceiveMessageWaitTimeSeconds": 20,
        }
        if queue.fifo:
            queue_properties["FifoQueue"] = True

        return [
            CfnResource(f"Worker{name}",
                        self._lambda(function, f"WorkerRole{name}", self.environment(function, secrets))),
            CfnResource(f"WorkerRole{name}", self._role(policies)),
            CfnResource(f"WorkerQueue{name}", {
                "Type": "AWS::SQS::Queue",
                "Properties": queue_properties,
            }),
            CfnResource(f"WorkerQueueEventSourceMapping{name}", {
                "Type": "AWS::Lambda::EventSourceMapping",
                "Properties": {
                    "EventSourceArn": _get_att(f"WorkerQueue{name}"),
                    "FunctionName": {"Ref": f"Worker{name}"},
                    "BatchSize": 1,
                    "FunctionResponseTypes": ["ReportBatchItemFailures"],
                    "ScalingConfig": {
                        "MaximumConcurrency": max(MIN_QUEUE_CONCURRENCY, queue.concurrency),
                    },
                },
            }),
        ]

    def cron(self, function: Function, secrets: Sequence[str]) -> List[CfnResource]:
        """Timer-triggered: function, role, schedule rule and its permission"""
        if function.schedule is None:
            raise SynthesisError(f"Cron function {function.name} has no schedule")

        name = self.prefixed([function.name])
        return [
            CfnResource(f"Cron{name}",
                        self._lambda(function, f"CronRole{name}", self.environment(function, secrets))),
            CfnResource(f"CronRole{name}", self._role(self.policies(secrets))),
            CfnResource(f"CronEventBridgeRule{name}", {
                "Type": "AWS::Events::Rule",
                "Properties": {
                    "Description": "EventBridge rule to trigger cron lambda",
                    "ScheduleExpression": function.schedule,
                    "State": "ENABLED",
                    "Targets": [{
                        "Arn": _get_att(f"Cron{name}"),
                        "Id": f"CronTarget{name}",
                    }],
                },
            }),
            CfnResource(f"CronEventBridgePermission{name}", {
                "Type": "AWS::Lambda::Permission",
                "Properties": {
                    "Action": "lambda:InvokeFunction",
                    "FunctionName": {"Ref": f"Cron{name}"},
                    "Principal": "events.amazonaws.com",
                    "SourceArn": _get_att(f"CronEventBridgeRule{name}"),
                },
            }),
        ]

    def path_pattern(self, function: Function) -> str:
        """CloudFront path pattern of an endpoint, without trailing slash"""
        url_path = function.url_path or function.name.lower()
        return URL_PARAMETER.sub("*", url_path).rstrip("/")

    def routing(self, endpoints: List[Function]) -> List[CfnResource]:
        """Distribution routing each endpoint path to its function URL

        Unmatched requests go to the first endpoint.
        """
        project = self.project_escaped
        origins = []
        behaviors = []

        for function in endpoints:
            name = self.prefixed([function.name])
            origins.append({
                "Id": f"EndpointOrigin{name}",
                "DomainName": {
                    "Fn::Select": [2, {"Fn::Split": ["/", _get_att(f"EndpointUrl{name}", "FunctionUrl")]}],
                },
                "CustomOriginConfig": {"OriginProtocolPolicy": "https-only"},
            })

            path = self.path_pattern(function)
            for pattern in (path, f"{path}/"):
                behaviors.append({
                    "PathPattern": pattern,
                    "AllowedMethods": ALLOWED_METHODS,
                    "OriginRequestPolicyId": ORIGIN_REQUEST_POLICY_ID,
                    "CachePolicyId": CACHE_POLICY_ID,
                    "TargetOriginId": f"EndpointOrigin{name}",
                    "ViewerProtocolPolicy": "redirect-to-https",
                    "Compress": True,
                })

        default_origin = f"EndpointOrigin{self.prefixed([endpoints[0].name])}"
        project_domain = (f"{self.project.name}.{self.project.domain}"
                          if self.project.domain else None)

        distribution_config: Dict[str, Any] = {
            "Aliases": [project_domain] if project_domain else [],
            "Enabled": True,
            "CacheBehaviors": behaviors,
            "DefaultCacheBehavior": {
                "AllowedMethods": ALLOWED_METHODS,
                "DefaultTTL": 0,
                "MaxTTL": 0,
                "MinTTL": 0,
                "ForwardedValues": {
                    "QueryString": True,
                    "Headers": ["*"],
                    "Cookies": {"Forward": "all"},
                },
                "TargetOriginId": default_origin,
                "ViewerProtocolPolicy": "allow-all",
                "Compress": True,
            },
            "Origins": origins,
        }

        if project_domain:
            distribution_config["ViewerCertificate"] = {
                "AcmCertificateArn": {"Ref": f"EndpointDistributionDomainCert{project}"},
                "SslSupportMethod": "sni-only",
                "MinimumProtocolVersion": "TLSv1.2_2021",
            }
        else:
            distribution_config["ViewerCertificate"] = {"CloudFrontDefaultCertificate": True}

        resources = [CfnResource(f"EndpointDistribution{project}", {
            "Type": "AWS::CloudFront::Distribution",
            "Properties": {"DistributionConfig": distribution_config},
        })]

        if project_domain:
            if not self.config.hosted_zone_id:
                raise SynthesisError("A custom domain requires a hosted zone id")

            resources.extend([
                CfnResource(f"EndpointDistributionDomainCert{project}", {
                    "Type": "AWS::CertificateManager::Certificate",
                    "Properties": {
                        "DomainName": project_domain,
                        "ValidationMethod": "DNS",
                        "DomainValidationOptions": [{
                            "DomainName": project_domain,
                            "HostedZoneId": self.config.hosted_zone_id,
                        }],
                    },
                }),
                CfnResource(f"EndpointDistributionAliasRecord{project}", {
                    "Type": "AWS::Route53::RecordSet",
                    "Properties": {
                        "HostedZoneId": self.config.hosted_zone_id,
                        "Name": project_domain,
                        "Type": "A",
                        "AliasTarget": {
                            "HostedZoneId": CLOUDFRONT_HOSTED_ZONE_ID,
                            "DNSName": _get_att(f"EndpointDistribution{project}", "DomainName"),
                        },
                    },
                }),
            ])

        return resources
