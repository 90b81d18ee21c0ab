"""Planning-time descriptors.

Storage and exposure are tagged unions: a run holds exactly one variant of
each. Identifiers the provisioning engine generates (ARNs, URLs, ids) start
out unbound and are attached with the ``bind_*`` helpers, which return new
values instead of mutating the plan.
"""
from types import MappingProxyType
from typing import Mapping, Optional, Union

import attrs
from attrs import define, field
from attrs.validators import instance_of, optional

import common.constants as constants


def frozen_mapping(value: Mapping) -> Mapping:
    return MappingProxyType(dict(value))


@define(slots=True, frozen=True, kw_only=True)
class ResourceRef:
    name: str = field(validator=instance_of(str))
    arn: str = field(validator=instance_of(str))


# ---------- storage ----------
@define(slots=True, frozen=True, kw_only=True)
class KeySpec:
    name: str
    type: str = "S"


@define(slots=True, frozen=True, kw_only=True)
class IndexSpec:
    name: str
    partition_key: KeySpec
    projection: str = "ALL"


@define(slots=True, frozen=True, kw_only=True)
class TableSpec:
    name: str = field(validator=instance_of(str))
    partition_key: KeySpec
    index: IndexSpec
    ttl_attribute: str = constants.TABLE_TTL_ATTRIBUTE
    billing_mode: str = "PAY_PER_REQUEST"


@define(slots=True, frozen=True, kw_only=True)
class BucketSpec:
    name: str = field(validator=instance_of(str))
    versioned: bool = True
    encryption: str = "AES256"
    block_public_access: bool = True


@define(slots=True, frozen=True, kw_only=True)
class ManagedStorage:
    table: TableSpec
    bucket: BucketSpec
    table_ref: Optional[ResourceRef] = field(default=None)
    bucket_ref: Optional[ResourceRef] = field(default=None)

    @property
    def is_bound(self) -> bool:
        return self.table_ref is not None and self.bucket_ref is not None

    def bind(self, table_ref: ResourceRef, bucket_ref: ResourceRef) -> "ManagedStorage":
        return attrs.evolve(self, table_ref=table_ref, bucket_ref=bucket_ref)


@define(slots=True, frozen=True, kw_only=True)
class ExternalStorage:
    database_url: str = field(validator=instance_of(str))
    redis_url: str = field(validator=instance_of(str))


StoragePlan = Union[ManagedStorage, ExternalStorage]


# ---------- identity ----------
@define(slots=True, frozen=True, kw_only=True)
class PolicyGrant:
    name: str
    actions: frozenset[str] = field(converter=frozenset)
    resource_refs: tuple[str, ...] = field(converter=tuple)


@define(slots=True, frozen=True, kw_only=True)
class ExecutionRole:
    name: str
    service_principal: str = constants.LAMBDA_SERVICE_PRINCIPAL
    managed_policies: tuple[str, ...] = field(
        default=(constants.LAMBDA_BASIC_EXECUTION_POLICY,), converter=tuple
    )
    grants: tuple[PolicyGrant, ...] = field(default=(), converter=tuple)
    arn: Optional[str] = field(default=None, validator=optional(instance_of(str)))

    def bind(self, arn: str) -> "ExecutionRole":
        return attrs.evolve(self, arn=arn)


# ---------- services ----------
@define(slots=True, frozen=True, kw_only=True)
class ServiceSpec:
    name: str
    handler_ref: str
    environment: Mapping[str, str] = field(converter=frozen_mapping)
    role: ExecutionRole
    function_ref: Optional[ResourceRef] = None

    def bind(self, function_ref: ResourceRef) -> "ServiceSpec":
        return attrs.evolve(self, function_ref=function_ref)


# ---------- exposure ----------
@define(slots=True, frozen=True, kw_only=True)
class CorsConfig:
    allow_origins: tuple[str, ...] = field(converter=tuple)
    allow_methods: tuple[str, ...] = field(converter=tuple)
    allow_headers: tuple[str, ...] = field(converter=tuple)
    allow_credentials: bool = True
    max_age: Optional[int] = None


@define(slots=True, frozen=True, kw_only=True)
class Route:
    method: str
    path: str
    target: str


@define(slots=True, frozen=True, kw_only=True)
class PasswordPolicySpec:
    min_length: int = constants.PASSWORD_MIN_LENGTH
    require_uppercase: bool = True
    require_lowercase: bool = True
    require_digits: bool = True
    require_symbols: bool = True


@define(slots=True, frozen=True, kw_only=True)
class IdentityPoolClientSpec:
    name: str
    user_password_auth: bool = True
    admin_user_password_auth: bool = True
    generate_secret: bool = False


@define(slots=True, frozen=True, kw_only=True)
class IdentityPoolSpec:
    name: str
    password_policy: PasswordPolicySpec = field(factory=PasswordPolicySpec)
    auto_verify_email: bool = True
    username_attribute: str = "email"
    client: IdentityPoolClientSpec


@define(slots=True, frozen=True, kw_only=True)
class GatewayExposure:
    name: str
    cors: CorsConfig
    routes: tuple[Route, ...] = field(converter=tuple)
    identity_pool: IdentityPoolSpec
    api_url: Optional[str] = None
    user_pool_id: Optional[str] = None
    user_pool_client_id: Optional[str] = None

    def bind(
        self, api_url: str, user_pool_id: str, user_pool_client_id: str
    ) -> "GatewayExposure":
        return attrs.evolve(
            self,
            api_url=api_url,
            user_pool_id=user_pool_id,
            user_pool_client_id=user_pool_client_id,
        )


@define(slots=True, frozen=True, kw_only=True)
class EndpointConfig:
    service: str
    cors: CorsConfig
    auth_type: str = "NONE"
    url: Optional[str] = None

    def bind(self, url: str) -> "EndpointConfig":
        return attrs.evolve(self, url=url)


@define(slots=True, frozen=True, kw_only=True)
class DirectEndpoints:
    endpoints: Mapping[str, EndpointConfig] = field(converter=frozen_mapping)

    def bind(self, urls: dict[str, str]) -> "DirectEndpoints":
        return DirectEndpoints(
            endpoints={
                name: endpoint.bind(urls[name])
                for name, endpoint in self.endpoints.items()
            }
        )


ExposurePlan = Union[GatewayExposure, DirectEndpoints]
