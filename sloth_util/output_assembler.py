import common.constants as constants
from sloth_util.context import DeploymentContext
from sloth_util.plans import (
    DirectEndpoints,
    ExecutionRole,
    ExposurePlan,
    GatewayExposure,
    ManagedStorage,
    StoragePlan,
)

ENDPOINT_OUTPUT_KEYS = {
    constants.QUOTE_SERVICE: "quoteGeneratorUrl",
    constants.AUTH_SERVICE: "authServiceUrl",
    constants.JWKS_SERVICE: "jwksServiceUrl",
}


def assemble(
    ctx: DeploymentContext,
    storage: StoragePlan,
    exposure: ExposurePlan,
    role: ExecutionRole,
) -> dict[str, str]:
    """Project the realized topology onto the output record.

    Keys that belong to the other architecture are left out entirely.
    """
    assert role.arn is not None, "execution role must be provisioned"
    record = {
        "architecture": ctx.architecture_mode.value,
        "stage": ctx.stage,
        "region": ctx.region,
        "roleIdentifier": role.arn,
    }

    if ctx.is_aws_native:
        assert isinstance(storage, ManagedStorage) and storage.is_bound
        assert isinstance(exposure, GatewayExposure) and exposure.api_url is not None
        record.update(
            apiUrl=exposure.api_url,
            userPoolId=exposure.user_pool_id,
            userPoolClientId=exposure.user_pool_client_id,
            dynamoTableName=storage.table_ref.name,
            s3BucketName=storage.bucket_ref.name,
        )
        return record

    assert not isinstance(storage, ManagedStorage)
    assert isinstance(exposure, DirectEndpoints)
    for service, endpoint in exposure.endpoints.items():
        assert endpoint.url is not None, f"endpoint for {service} was not provisioned"
        record[ENDPOINT_OUTPUT_KEYS[service]] = endpoint.url
    return record
