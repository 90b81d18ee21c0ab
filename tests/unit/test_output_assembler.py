import pytest

from planner_test_helpers import (
    API_URL,
    FakeProvisioner,
    USER_POOL_CLIENT_ID,
    USER_POOL_ID,
    aws_native_ctx,
    build_config,
    cloud_agnostic_ctx,
    function_url,
    provisioned_services,
    provisioned_storage,
)
from sloth_util import exposure_planner, identity_planner, output_assembler
from sloth_util.context import DeploymentContext

AWS_NATIVE_KEYS = {"apiUrl", "userPoolId", "userPoolClientId", "dynamoTableName", "s3BucketName"}
CLOUD_AGNOSTIC_KEYS = {"quoteGeneratorUrl", "authServiceUrl", "jwksServiceUrl"}
COMMON_KEYS = {"architecture", "stage", "region", "roleIdentifier"}


def realize(ctx: DeploymentContext):
    config = build_config(ctx.stage, ctx.architecture_mode.value)
    provisioner = FakeProvisioner()
    storage = provisioned_storage(ctx, config)
    role = provisioner.provision_role(identity_planner.plan(storage))
    services = provisioned_services(ctx, config)
    exposure = provisioner.provision_exposure(exposure_planner.plan(ctx, services))
    return storage, exposure, role


def test_aws_native_record(aws_native_ctx: DeploymentContext):
    storage, exposure, role = realize(aws_native_ctx)

    record = output_assembler.assemble(aws_native_ctx, storage, exposure, role)

    assert set(record) == COMMON_KEYS | AWS_NATIVE_KEYS
    assert record["architecture"] == "aws-native"
    assert record["apiUrl"] == API_URL
    assert record["userPoolId"] == USER_POOL_ID
    assert record["userPoolClientId"] == USER_POOL_CLIENT_ID
    assert record["dynamoTableName"] == "sloth-util-quotes-production"
    assert record["roleIdentifier"] == role.arn


def test_cloud_agnostic_record(cloud_agnostic_ctx: DeploymentContext):
    storage, exposure, role = realize(cloud_agnostic_ctx)

    record = output_assembler.assemble(cloud_agnostic_ctx, storage, exposure, role)

    assert set(record) == COMMON_KEYS | CLOUD_AGNOSTIC_KEYS
    assert record["architecture"] == "cloud-agnostic"
    assert record["quoteGeneratorUrl"] == function_url("quote-generator")
    assert record["authServiceUrl"] == function_url("auth-service")
    assert record["jwksServiceUrl"] == function_url("jwks-service")


def test_mismatched_variants_are_rejected(
    aws_native_ctx: DeploymentContext, cloud_agnostic_ctx: DeploymentContext
):
    storage, _, role = realize(aws_native_ctx)
    _, direct_endpoints, _ = realize(cloud_agnostic_ctx)

    with pytest.raises(AssertionError):
        output_assembler.assemble(aws_native_ctx, storage, direct_endpoints, role)


def test_unprovisioned_role_is_rejected(cloud_agnostic_ctx: DeploymentContext):
    storage, exposure, _ = realize(cloud_agnostic_ctx)

    with pytest.raises(AssertionError):
        output_assembler.assemble(
            cloud_agnostic_ctx, storage, exposure, identity_planner.plan(storage)
        )
