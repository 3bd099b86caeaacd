import dataclasses

import pytest

from stackwright.api.exceptions import MissingQueueError, SynthesisError
from stackwright.core.synthesizer import TemplateSynthesizer, prefixed

from conftest import USERNAME

SECRETS = ["devATexampleDOTcom-shop-API_KEY"]


def name(*parts):
    return prefixed(USERNAME, "shop", parts)


@pytest.fixture
def synthesizer(build_config):
    return TemplateSynthesizer(build_config, USERNAME)


def resources(template):
    return template.to_dict()["Resources"]


def test_same_inputs_give_identical_templates(synthesizer, project, functions):
    first = synthesizer.synthesize(project, functions, SECRETS).to_json()
    second = TemplateSynthesizer(synthesizer.config, USERNAME).synthesize(
        project, functions, SECRETS).to_json()

    assert first == second


def test_resource_names_per_role(synthesizer, project, functions):
    template = synthesizer.synthesize(project, functions, SECRETS)

    cart = name("ShopApiGetCart")
    order = name("ShopTasksPlaceOrder")
    expire = name("ShopTasksExpireCarts")
    assert template.names[0] == f"DynamoDBTable{name('carts')}"
    for expected in (
        f"Endpoint{cart}", f"EndpointRole{cart}", f"EndpointUrl{cart}", f"EndpointUrlPermission{cart}",
        f"Worker{order}", f"WorkerRole{order}", f"WorkerQueue{order}",
        f"WorkerQueueEventSourceMapping{order}",
        f"Cron{expire}", f"CronRole{expire}", f"CronEventBridgeRule{expire}",
        f"CronEventBridgePermission{expire}",
        "EndpointDistributionshop",
    ):
        assert expected in template


def test_function_properties(synthesizer, project, functions):
    body = resources(synthesizer.synthesize(project, functions, SECRETS))

    cart = body[f"Endpoint{name('ShopApiGetCart')}"]["Properties"]
    assert cart["FunctionName"] == name("ShopApiGetCart")
    assert cart["Handler"] == "shop.bin.ShopApiGetCart.handler"
    assert cart["MemorySize"] == 256
    assert cart["Code"] == {
        "S3Bucket": "artifacts",
        "S3Key": "devATexampleDOTcom/shop/ShopApiGetCart.zip",
    }
    variables = cart["Environment"]["Variables"]
    assert variables["CACHE"] == "on"
    assert variables["STAGE"] == "prod"
    assert variables["STACKWRIGHT_SECRETS_NAMES"] == SECRETS[0]
    assert variables["STACKWRIGHT_USERNAME"] == USERNAME
    assert variables["STACKWRIGHT_QUEUE_orders"] == {"Ref": f"WorkerQueue{name('ShopTasksPlaceOrder')}"}

    cron = body[f"Cron{name('ShopTasksExpireCarts')}"]["Properties"]
    assert cron["Timeout"] == 300
    assert cron["ReservedConcurrentExecutions"] == 8
    rule = body[f"CronEventBridgeRule{name('ShopTasksExpireCarts')}"]["Properties"]
    assert rule["ScheduleExpression"] == "rate(1 hour)"


def test_bundle_checksum_changes_the_template(synthesizer, project, functions):
    cart = functions[0]
    cart.checksum = "a" * 64
    first = synthesizer.synthesize(project, functions)
    cart.checksum = "b" * 64
    second = synthesizer.synthesize(project, functions)

    assert first.to_json() != second.to_json()
    code = resources(second)[f"Endpoint{name('ShopApiGetCart')}"]["Properties"]["Code"]
    assert code["S3Key"] == f"devATexampleDOTcom/shop/ShopApiGetCart-{'b' * 16}.zip"


def test_uploaded_key_is_used_as_is(synthesizer, project, functions):
    functions[0].artifact_key = "devATexampleDOTcom/shop/ShopApiGetCart-0123456789abcdef.zip"

    body = resources(synthesizer.synthesize(project, functions))

    code = body[f"Endpoint{name('ShopApiGetCart')}"]["Properties"]["Code"]
    assert code["S3Key"] == functions[0].artifact_key


def test_synthesizer_keeps_no_project_between_calls(synthesizer, project, functions):
    expected = synthesizer.synthesize(project, functions).to_json()
    depot = dataclasses.replace(project, name="depot")
    depot_functions = [dataclasses.replace(f, project=depot) for f in functions]

    template = synthesizer.synthesize(depot, depot_functions)

    assert f"Endpoint{prefixed(USERNAME, 'depot', ['ShopApiGetCart'])}" in template
    assert synthesizer.synthesize(project, functions).to_json() == expected
    assert synthesizer.logical_name(functions[0]) == f"Endpoint{name('ShopApiGetCart')}"
    assert set(vars(synthesizer)) == {"config", "username"}


def test_role_policies(synthesizer, project, functions):
    body = resources(synthesizer.synthesize(project, functions, SECRETS))

    worker_policies = body[f"WorkerRole{name('ShopTasksPlaceOrder')}"]["Properties"]["Policies"]
    assert [p["PolicyName"] for p in worker_policies] == [
        f"DynamoPolicy{name('carts')}",
        f"SecretPolicy{name(SECRETS[0])}",
        "AppendToLogsPolicy",
        "QueuePolicy",
    ]
    secret_policy = worker_policies[1]["PolicyDocument"]["Statement"]
    assert secret_policy[0]["Resource"] == [{
        "Fn::Sub": f"arn:aws:ssm:${{AWS::Region}}:${{AWS::AccountId}}:parameter/{SECRETS[0]}"
    }]

    endpoint_policies = body[f"EndpointRole{name('ShopApiGetCart')}"]["Properties"]["Policies"]
    assert endpoint_policies[-1]["PolicyName"] == "QueueSendPolicy"

    health_policies = body[f"EndpointRole{name('ShopApiHealth')}"]["Properties"]["Policies"]
    assert "QueueSendPolicy" not in [p["PolicyName"] for p in health_policies]


def test_queue_and_event_source_mapping(synthesizer, project, functions):
    body = resources(synthesizer.synthesize(project, functions))

    order = name("ShopTasksPlaceOrder")
    assert body[f"WorkerQueue{order}"]["Properties"]["QueueName"] == order
    mapping = body[f"WorkerQueueEventSourceMapping{order}"]["Properties"]
    assert mapping["ScalingConfig"] == {"MaximumConcurrency": 4}
    assert mapping["FunctionResponseTypes"] == ["ReportBatchItemFailures"]


def test_worker_without_queue(synthesizer, project, functions):
    worker = next(f for f in functions if f.name == "ShopTasksPlaceOrder")
    worker.resources = []

    with pytest.raises(MissingQueueError):
        synthesizer.synthesize(project, functions)


def test_unknown_queue_alias(synthesizer, project, functions):
    worker = next(f for f in functions if f.name == "ShopTasksPlaceOrder")
    worker.resources = [dataclasses.replace(worker.queue, alias="payments")]

    with pytest.raises(SynthesisError, match="orders"):
        synthesizer.synthesize(project, functions)


def test_disabled_function_has_no_concurrency(synthesizer, project, functions):
    health = next(f for f in functions if f.name == "ShopApiHealth")
    health.parsed = dataclasses.replace(
        health.parsed, params=dataclasses.replace(health.params, is_disabled=True)
    )

    body = resources(synthesizer.synthesize(project, functions))

    assert body[f"Endpoint{name('ShopApiHealth')}"]["Properties"]["ReservedConcurrentExecutions"] == 0


def test_routing_without_domain(synthesizer, project, functions):
    body = resources(synthesizer.synthesize(project, functions))

    config = body["EndpointDistributionshop"]["Properties"]["DistributionConfig"]
    assert config["Aliases"] == []
    assert config["ViewerCertificate"] == {"CloudFrontDefaultCertificate": True}
    assert [b["PathPattern"] for b in config["CacheBehaviors"]] == [
        "/carts/*", "/carts/*/", "/health", "/health/",
    ]
    assert all("ForwardedValues" not in b for b in config["CacheBehaviors"])
    assert config["DefaultCacheBehavior"]["TargetOriginId"] == f"EndpointOrigin{name('ShopApiGetCart')}"


def test_routing_with_domain(synthesizer, project, functions):
    project.domain = "example.org"

    template = synthesizer.synthesize(project, functions)
    body = resources(template)

    config = body["EndpointDistributionshop"]["Properties"]["DistributionConfig"]
    assert config["Aliases"] == ["shop.example.org"]
    assert config["ViewerCertificate"]["AcmCertificateArn"] == {
        "Ref": "EndpointDistributionDomainCertshop"
    }
    record = body["EndpointDistributionAliasRecordshop"]["Properties"]
    assert record["HostedZoneId"] == "Z123456"
    assert record["Name"] == "shop.example.org"


def test_domain_requires_hosted_zone(synthesizer, project, functions):
    project.domain = "example.org"
    synthesizer.config.hosted_zone_id = ""

    with pytest.raises(SynthesisError, match="hosted zone"):
        synthesizer.synthesize(project, functions)


def test_no_routing_without_endpoints(synthesizer, project, functions):
    workers = [f for f in functions if f.name != "ShopApiGetCart" and f.name != "ShopApiHealth"]

    template = synthesizer.synthesize(project, workers)

    assert "EndpointDistributionshop" not in template
