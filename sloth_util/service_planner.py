import common.constants as constants
from sloth_util.config import DeploymentConfig
from sloth_util.context import DeploymentContext
from sloth_util.plans import (
    ExecutionRole,
    ExternalStorage,
    ManagedStorage,
    ServiceSpec,
    StoragePlan,
)


def issuer(ctx: DeploymentContext) -> str:
    return f"{constants.APP_NAME}-{ctx.stage}"


def base_environment(ctx: DeploymentContext, config: DeploymentConfig) -> dict[str, str]:
    return {
        "STAGE": ctx.stage,
        # AWS_REGION is reserved by the Lambda runtime
        "REGION": ctx.region,
        "BEDROCK_MODEL_ID": config.model_id,
        "LOG_LEVEL": "DEBUG" if ctx.is_development else "INFO",
    }


def storage_environment(storage: StoragePlan) -> dict[str, str]:
    if isinstance(storage, ManagedStorage):
        assert storage.is_bound, "managed storage must be provisioned before wiring services"
        return {
            "DYNAMODB_TABLE_NAME": storage.table_ref.name,
            "S3_CONFIG_BUCKET": storage.bucket_ref.name,
        }

    assert isinstance(storage, ExternalStorage), f"unknown storage plan {storage!r}"
    return {
        "DATABASE_URL": storage.database_url,
        "REDIS_URL": storage.redis_url,
    }


def build_quote_service(
    ctx: DeploymentContext,
    storage: StoragePlan,
    role: ExecutionRole,
    config: DeploymentConfig,
) -> ServiceSpec:
    environment = {
        **base_environment(ctx, config),
        **storage_environment(storage),
        "ARCHITECTURE_TYPE": ctx.architecture_mode.value,
    }
    return ServiceSpec(
        name=constants.QUOTE_SERVICE,
        handler_ref=constants.QUOTE_HANDLER,
        environment=environment,
        role=role,
    )


def build_token_services(
    ctx: DeploymentContext,
    storage: ExternalStorage,
    role: ExecutionRole,
    config: DeploymentConfig,
) -> tuple[ServiceSpec, ServiceSpec]:
    signing = {
        "JWT_SECRET": config.signing_secret or constants.INSECURE_SIGNING_SECRET,
        "JWT_ISSUER": issuer(ctx),
    }
    auth_service = ServiceSpec(
        name=constants.AUTH_SERVICE,
        handler_ref=constants.AUTH_HANDLER,
        environment={
            **base_environment(ctx, config),
            **signing,
            "JWT_EXPIRY": str(config.token_expiry_seconds),
            "DATABASE_URL": storage.database_url,
        },
        role=role,
    )
    jwks_service = ServiceSpec(
        name=constants.JWKS_SERVICE,
        handler_ref=constants.JWKS_HANDLER,
        environment={**base_environment(ctx, config), **signing},
        role=role,
    )
    return auth_service, jwks_service


def plan(
    ctx: DeploymentContext,
    storage: StoragePlan,
    role: ExecutionRole,
    config: DeploymentConfig,
) -> tuple[ServiceSpec, ...]:
    """Services to deploy, quote generator first.

    Token issuing and key-set publishing only exist in cloud-agnostic mode.
    """
    services = [build_quote_service(ctx, storage, role, config)]
    if ctx.is_cloud_agnostic:
        assert isinstance(storage, ExternalStorage), "cloud-agnostic runs use external storage"
        services.extend(build_token_services(ctx, storage, role, config))
    return tuple(services)
