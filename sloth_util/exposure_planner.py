from typing import Sequence

import common.constants as constants
from sloth_util.context import DeploymentContext
from sloth_util.plans import (
    CorsConfig,
    DirectEndpoints,
    EndpointConfig,
    ExposurePlan,
    GatewayExposure,
    IdentityPoolClientSpec,
    IdentityPoolSpec,
    Route,
    ServiceSpec,
)

# Public key material changes far less often than tokens, so the key-set
# endpoint may be cached longer.
ENDPOINT_CORS = {
    constants.QUOTE_SERVICE: CorsConfig(
        allow_origins=(constants.CORS_ANY_ORIGIN,),
        allow_methods=("GET", "POST", "OPTIONS"),
        allow_headers=constants.CORS_HEADERS,
        max_age=constants.ENDPOINT_SHORT_MAX_AGE,
    ),
    constants.AUTH_SERVICE: CorsConfig(
        allow_origins=(constants.CORS_ANY_ORIGIN,),
        allow_methods=("POST", "OPTIONS"),
        allow_headers=constants.CORS_HEADERS,
        max_age=constants.ENDPOINT_SHORT_MAX_AGE,
    ),
    constants.JWKS_SERVICE: CorsConfig(
        allow_origins=(constants.CORS_ANY_ORIGIN,),
        allow_methods=("GET", "OPTIONS"),
        allow_headers=("Content-Type",),
        max_age=constants.ENDPOINT_KEY_SET_MAX_AGE,
    ),
}

GATEWAY_CORS = CorsConfig(
    allow_origins=(constants.CORS_ANY_ORIGIN,),
    allow_methods=constants.GATEWAY_METHODS,
    allow_headers=constants.CORS_HEADERS,
)


def build_gateway(
    ctx: DeploymentContext, services: Sequence[ServiceSpec]
) -> GatewayExposure:
    names = {service.name for service in services}
    assert constants.QUOTE_SERVICE in names, "gateway routes target the quote service"
    routes = (
        Route(method="GET", path=constants.QUOTES_PATH, target=constants.QUOTE_SERVICE),
        Route(method="OPTIONS", path=constants.QUOTES_PATH, target=constants.QUOTE_SERVICE),
    )
    identity_pool = IdentityPoolSpec(
        name=ctx.resource_name("users"),
        client=IdentityPoolClientSpec(name=ctx.resource_name("client")),
    )
    return GatewayExposure(
        name=ctx.resource_name("api"),
        cors=GATEWAY_CORS,
        routes=routes,
        identity_pool=identity_pool,
    )


def build_direct_endpoints(services: Sequence[ServiceSpec]) -> DirectEndpoints:
    endpoints = {}
    for service in services:
        assert service.name in ENDPOINT_CORS, f"no endpoint settings for {service.name}"
        endpoints[service.name] = EndpointConfig(
            service=service.name, cors=ENDPOINT_CORS[service.name]
        )
    return DirectEndpoints(endpoints=endpoints)


def plan(ctx: DeploymentContext, services: Sequence[ServiceSpec]) -> ExposurePlan:
    """Shared gateway for aws-native, one direct endpoint per service otherwise."""
    for service in services:
        assert service.function_ref is not None, (
            f"service {service.name} must be provisioned before it is exposed"
        )

    if ctx.is_aws_native:
        return build_gateway(ctx, services)
    return build_direct_endpoints(services)
