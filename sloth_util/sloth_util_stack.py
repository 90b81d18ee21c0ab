from typing import Mapping, cast

from aws_cdk import (
    Annotations,
    CfnOutput,
    Duration,
    Stack,
    Tags,
    aws_apigatewayv2 as apigwv2,
    aws_apigatewayv2_integrations as apigwv2_integrations,
    aws_cognito as cognito,
    aws_dynamodb as dynamodb,
    aws_iam as iam,
    aws_lambda as _lambda,
    aws_s3 as s3,
)
from constructs import Construct

import common.constants as constants
from common.stack_context import StackContext
from sloth_util.composer import Topology, compose
from sloth_util.config import DeploymentConfig
from sloth_util.plans import (
    BucketSpec,
    CorsConfig,
    DirectEndpoints,
    ExecutionRole,
    ExposurePlan,
    GatewayExposure,
    IdentityPoolSpec,
    ManagedStorage,
    ResourceRef,
    ServiceSpec,
    TableSpec,
)


ATTRIBUTE_TYPES = {
    "S": dynamodb.AttributeType.STRING,
    "N": dynamodb.AttributeType.NUMBER,
}

BUCKET_ENCRYPTION = {
    "AES256": s3.BucketEncryption.S3_MANAGED,
    "aws:kms": s3.BucketEncryption.KMS_MANAGED,
}


def policy_kind(grant_name: str) -> str:
    return grant_name.removeprefix(f"{constants.APP_NAME}-")


def output_id(key: str) -> str:
    """dynamoTableName -> DynamoTableName"""
    return key[0].upper() + key[1:]


class SlothUtilStack(Stack):
    """Realizes the composed topology with CDK constructs.

    The stack is the provisioner handed to ``compose``: each ``provision_*``
    method creates the resources for one planning stage and returns the plan
    with the generated identifiers bound.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        config: DeploymentConfig,
        code: _lambda.Code,
        **kwargs,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)
        self.context = StackContext(
            scope=self,
            deployment=config.deployment_context(),
        )
        self.code = code
        self.execution_role: iam.Role | None = None
        self.functions: dict[str, _lambda.Function] = {}

        Tags.of(self).add("Environment", config.stage)
        Tags.of(self).add("Project", constants.APP_NAME)

        self.topology: Topology = compose(
            config, provisioner=self, ctx=self.context.deployment
        )

        for warning in self.topology.warnings:
            Annotations.of(self).add_warning(warning)

        self._build_outputs(self.topology.outputs)

    # Provisioning

    def provision_storage(self, storage: ManagedStorage) -> ManagedStorage:
        self.quotes_table = self._build_dynamodb(storage.table)
        self.config_bucket = self._build_s3_config_bucket(storage.bucket)
        return storage.bind(
            table_ref=ResourceRef(
                name=self.quotes_table.table_name, arn=self.quotes_table.table_arn
            ),
            bucket_ref=ResourceRef(
                name=self.config_bucket.bucket_name, arn=self.config_bucket.bucket_arn
            ),
        )

    def provision_role(self, role: ExecutionRole) -> ExecutionRole:
        self.execution_role = iam.Role(
            self,
            self.context.build_resource_id("lambda-role"),
            assumed_by=iam.ServicePrincipal(role.service_principal),
            managed_policies=[
                iam.ManagedPolicy.from_aws_managed_policy_name(name)
                for name in role.managed_policies
            ],
        )
        for grant in role.grants:
            iam.Policy(
                self,
                self.context.build_resource_id(policy_kind(grant.name)),
                policy_name=grant.name,
                statements=[
                    iam.PolicyStatement(
                        effect=iam.Effect.ALLOW,
                        actions=sorted(grant.actions),
                        resources=list(grant.resource_refs),
                    )
                ],
                roles=[self.execution_role],
            )
        return role.bind(self.execution_role.role_arn)

    def provision_service(self, service: ServiceSpec) -> ServiceSpec:
        assert self.execution_role is not None, "role must be provisioned before services"
        function = self._build_function(service)
        self.functions[service.name] = function
        return service.bind(
            ResourceRef(name=function.function_name, arn=function.function_arn)
        )

    def provision_exposure(self, exposure: ExposurePlan) -> ExposurePlan:
        if isinstance(exposure, GatewayExposure):
            http_api = self._build_api_gateway_http_api(exposure)
            user_pool, client = self._build_user_pool(exposure.identity_pool)
            return exposure.bind(
                api_url=http_api.api_endpoint,
                user_pool_id=user_pool.user_pool_id,
                user_pool_client_id=client.user_pool_client_id,
            )

        assert isinstance(exposure, DirectEndpoints), f"unknown exposure {exposure!r}"
        urls = {
            name: self._build_function_url(name, endpoint.auth_type, endpoint.cors).url
            for name, endpoint in exposure.endpoints.items()
        }
        return exposure.bind(urls)

    # Resource creation

    def _build_dynamodb(self, spec: TableSpec) -> dynamodb.Table:
        table = dynamodb.Table(
            self,
            id=self.context.build_resource_id(constants.TABLE_KIND),
            table_name=spec.name,
            partition_key=dynamodb.Attribute(
                name=spec.partition_key.name,
                type=ATTRIBUTE_TYPES[spec.partition_key.type],
            ),
            time_to_live_attribute=spec.ttl_attribute,
            removal_policy=self.context.removal_policy,
            billing_mode=dynamodb.BillingMode[spec.billing_mode],
        )
        table.add_global_secondary_index(
            index_name=spec.index.name,
            partition_key=dynamodb.Attribute(
                name=spec.index.partition_key.name,
                type=ATTRIBUTE_TYPES[spec.index.partition_key.type],
            ),
            projection_type=dynamodb.ProjectionType[spec.index.projection],
        )
        return table

    def _build_s3_config_bucket(self, spec: BucketSpec) -> s3.Bucket:
        """Create the versioned, encrypted configuration bucket."""
        return s3.Bucket(
            self,
            self.context.build_resource_id(constants.BUCKET_KIND),
            bucket_name=spec.name,
            versioned=spec.versioned,
            removal_policy=self.context.removal_policy,
            block_public_access=(
                s3.BlockPublicAccess.BLOCK_ALL if spec.block_public_access else None
            ),
            encryption=BUCKET_ENCRYPTION[spec.encryption],
            enforce_ssl=True,
        )

    def _build_function(self, service: ServiceSpec) -> _lambda.Function:
        return _lambda.Function(
            self,
            self.context.build_resource_id(service.name),
            function_name=self.context.build_resource_name(service.name),
            runtime=constants.JAVA_RUNTIME,
            handler=service.handler_ref,
            code=self.code,
            architecture=constants.DEFAULT_ARCHITECTURE,
            timeout=Duration.seconds(constants.FUNCTION_TIMEOUT_SECONDS),
            memory_size=constants.FUNCTION_MEMORY_MB,
            role=cast(iam.IRole, self.execution_role),
            environment=dict(service.environment),
            log_group=self.context.build_log_group(service.name),
        )

    def _build_api_gateway_http_api(self, exposure: GatewayExposure) -> apigwv2.HttpApi:
        """Create the shared HTTP API and route it to the service functions."""
        http_api = apigwv2.HttpApi(
            self,
            self.context.build_resource_id("api"),
            api_name=exposure.name,
            create_default_stage=True,
            cors_preflight=apigwv2.CorsPreflightOptions(
                allow_origins=list(exposure.cors.allow_origins),
                allow_methods=[
                    apigwv2.CorsHttpMethod[method] for method in exposure.cors.allow_methods
                ],
                allow_headers=list(exposure.cors.allow_headers),
            ),
        )
        if exposure.cors.allow_credentials:
            # The L2 construct refuses credentials with a wildcard origin.
            cfn_api = cast(apigwv2.CfnApi, http_api.node.default_child)
            cfn_api.add_property_override("CorsConfiguration.AllowCredentials", True)

        integrations: dict[str, apigwv2_integrations.HttpLambdaIntegration] = {}
        for route in exposure.routes:
            if route.target not in integrations:
                integrations[route.target] = apigwv2_integrations.HttpLambdaIntegration(
                    self.context.build_resource_id(f"{route.target}-integration"),
                    handler=cast(_lambda.IFunction, self.functions[route.target]),
                )
            http_api.add_routes(
                path=route.path,
                methods=[apigwv2.HttpMethod[route.method]],
                integration=integrations[route.target],
            )
        self.http_api = http_api
        return http_api

    def _build_user_pool(
        self, spec: IdentityPoolSpec
    ) -> tuple[cognito.UserPool, cognito.UserPoolClient]:
        policy = spec.password_policy
        user_pool = cognito.UserPool(
            self,
            self.context.build_resource_id("users"),
            user_pool_name=spec.name,
            sign_in_aliases=cognito.SignInAliases(
                email=spec.username_attribute == "email",
                username=False,
            ),
            auto_verify=cognito.AutoVerifiedAttrs(email=spec.auto_verify_email),
            password_policy=cognito.PasswordPolicy(
                min_length=policy.min_length,
                require_uppercase=policy.require_uppercase,
                require_lowercase=policy.require_lowercase,
                require_digits=policy.require_digits,
                require_symbols=policy.require_symbols,
            ),
            removal_policy=self.context.removal_policy,
        )
        client = user_pool.add_client(
            self.context.build_resource_id("client"),
            user_pool_client_name=spec.client.name,
            auth_flows=cognito.AuthFlow(
                user_password=spec.client.user_password_auth,
                admin_user_password=spec.client.admin_user_password_auth,
            ),
            generate_secret=spec.client.generate_secret,
        )
        self.user_pool = user_pool
        return user_pool, client

    def _build_function_url(
        self, service: str, auth_type: str, cors: CorsConfig
    ) -> _lambda.FunctionUrl:
        """Expose a single function through its own invocation URL."""
        max_age = Duration.seconds(cors.max_age) if cors.max_age is not None else None
        return self.functions[service].add_function_url(
            auth_type=_lambda.FunctionUrlAuthType[auth_type],
            cors=_lambda.FunctionUrlCorsOptions(
                allowed_origins=list(cors.allow_origins),
                allowed_methods=[_lambda.HttpMethod[method] for method in cors.allow_methods],
                allowed_headers=list(cors.allow_headers),
                allow_credentials=cors.allow_credentials,
                max_age=max_age,
            ),
        )

    def _build_outputs(self, outputs: Mapping[str, str]) -> None:
        for key, value in outputs.items():
            CfnOutput(self, output_id(key), value=value)
