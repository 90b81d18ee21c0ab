"""Topology composition.

Runs the planners in dependency order: mode, storage, identity, services,
exposure, outputs. After each stage the provisioner realizes the plan and
hands back the same plan with generated identifiers bound, which is what the
next stage consumes.
"""
import os
from typing import Mapping, Optional, Protocol

from attrs import define, field
from aws_lambda_powertools import Logger

from sloth_util import (
    exposure_planner,
    identity_planner,
    output_assembler,
    service_planner,
    storage_planner,
)
from sloth_util.config import DeploymentConfig
from sloth_util.context import DeploymentContext
from sloth_util.plans import (
    ExecutionRole,
    ExposurePlan,
    ManagedStorage,
    ServiceSpec,
    StoragePlan,
    frozen_mapping,
)

logger = Logger(
    service="sloth-util-topology", level=os.getenv("LOG_LEVEL", "INFO").upper()
)


class Provisioner(Protocol):
    def provision_storage(self, storage: ManagedStorage) -> ManagedStorage: ...

    def provision_role(self, role: ExecutionRole) -> ExecutionRole: ...

    def provision_service(self, service: ServiceSpec) -> ServiceSpec: ...

    def provision_exposure(self, exposure: ExposurePlan) -> ExposurePlan: ...


@define(slots=True, frozen=True, kw_only=True)
class Topology:
    context: DeploymentContext
    storage: StoragePlan
    role: ExecutionRole
    services: tuple[ServiceSpec, ...] = field(converter=tuple)
    exposure: ExposurePlan
    outputs: Mapping[str, str] = field(converter=frozen_mapping)
    warnings: tuple[str, ...] = field(default=(), converter=tuple)

    @property
    def service_names(self) -> tuple[str, ...]:
        return tuple(service.name for service in self.services)


def compose(
    config: DeploymentConfig,
    provisioner: Provisioner,
    ctx: Optional[DeploymentContext] = None,
) -> Topology:
    expected = config.deployment_context()
    ctx = ctx or expected
    assert ctx == expected, f"deployment context {ctx!r} disagrees with config {expected!r}"
    logger.info(
        "Resolved deployment context",
        stage=ctx.stage,
        architecture=ctx.architecture_mode.value,
        is_production=ctx.is_production,
    )

    warnings = config.insecure_defaults(ctx)
    for warning in warnings:
        logger.warning(warning, stage=ctx.stage)

    storage = storage_planner.plan(
        ctx,
        config.database_url,
        config.redis_url,
        bucket_suffix=config.resolved_bucket_suffix(),
    )
    if isinstance(storage, ManagedStorage):
        storage = provisioner.provision_storage(storage)
    logger.debug("Planned storage", storage=type(storage).__name__)

    role = provisioner.provision_role(identity_planner.plan(storage))
    logger.debug("Planned execution role", grants=[grant.name for grant in role.grants])

    services = tuple(
        provisioner.provision_service(service)
        for service in service_planner.plan(ctx, storage, role, config)
    )
    logger.info("Planned services", services=[service.name for service in services])

    exposure = provisioner.provision_exposure(exposure_planner.plan(ctx, services))
    logger.debug("Planned exposure", exposure=type(exposure).__name__)

    outputs = output_assembler.assemble(ctx, storage, exposure, role)
    return Topology(
        context=ctx,
        storage=storage,
        role=role,
        services=services,
        exposure=exposure,
        outputs=outputs,
        warnings=warnings,
    )
