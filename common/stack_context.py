from attrs import define, field
from aws_cdk import RemovalPolicy, Stack, aws_logs as logs

from sloth_util.context import DeploymentContext


@define(slots=True, frozen=True)
class StackContext:
    scope: Stack
    deployment: DeploymentContext = field(
        metadata={"description": "Resolved stage and architecture mode"},
    )

    @property
    def removal_policy(self) -> RemovalPolicy:
        """Production keeps its data when the stack goes away, other stages don't."""
        if self.deployment.is_production:
            return RemovalPolicy.RETAIN
        return RemovalPolicy.DESTROY

    # ---------- naming ----------
    def build_resource_name(self, kind: str) -> str:
        return self.deployment.resource_name(kind)

    def build_resource_id(self, kind: str) -> str:
        return self.deployment.resource_id(kind)

    def build_log_group(self, service: str) -> logs.LogGroup:
        return logs.LogGroup(
            self.scope,
            self.build_resource_id(f"{service}-log-group"),
            log_group_name=f"/aws/lambda/{self.build_resource_name(service)}",
            removal_policy=self.removal_policy,
            retention=logs.RetentionDays.ONE_YEAR,
        )
