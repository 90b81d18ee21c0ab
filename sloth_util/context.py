"""Deployment context and the mode resolver.

The context is derived once per provisioning run from the stage name and the
architecture override, and every planner reads it without modifying it.
"""
from enum import Enum
from typing import Optional

from attrs import define, field
from attrs.validators import in_, instance_of

import common.constants as constants


class ArchitectureMode(str, Enum):
    AWS_NATIVE = constants.AWS_NATIVE
    CLOUD_AGNOSTIC = constants.CLOUD_AGNOSTIC


@define(slots=True, frozen=True, kw_only=True)
class DeploymentContext:
    stage: str = field(validator=instance_of(str))
    is_production: bool = field(validator=instance_of(bool))
    is_development: bool = field(validator=instance_of(bool))
    architecture_mode: ArchitectureMode = field(validator=in_(ArchitectureMode))
    region: str = field(default=constants.DEFAULT_REGION, validator=instance_of(str))

    @property
    def is_aws_native(self) -> bool:
        return self.architecture_mode is ArchitectureMode.AWS_NATIVE

    @property
    def is_cloud_agnostic(self) -> bool:
        return self.architecture_mode is ArchitectureMode.CLOUD_AGNOSTIC

    def resource_name(self, kind: str) -> str:
        """Build a stage qualified physical name.

        Examples:
            - quotes: sloth-util-quotes-dev
            - quote-generator: sloth-util-quote-generator-production
        """
        return f"{constants.APP_NAME}-{kind}-{self.stage}".lower()

    def resource_id(self, kind: str) -> str:
        """Build a construct id.

        Examples:
            - quotes: SlothUtilQuotes
            - quote-generator-url: SlothUtilQuoteGeneratorUrl
        """
        parts = f"{constants.APP_NAME}-{kind}".replace("_", "-").split("-")
        return "".join(part.capitalize() for part in parts if part)


def resolve(
    stage_name: str,
    mode_override: Optional[str] = None,
    region: str = constants.DEFAULT_REGION,
) -> DeploymentContext:
    """Derive the deployment context.

    aws-native is the default; only the literal ``cloud-agnostic`` override
    opts out of it.
    """
    if mode_override == constants.CLOUD_AGNOSTIC:
        mode = ArchitectureMode.CLOUD_AGNOSTIC
    else:
        mode = ArchitectureMode.AWS_NATIVE

    return DeploymentContext(
        stage=stage_name,
        is_production=stage_name == constants.PRODUCTION_STAGE,
        is_development=stage_name in constants.DEVELOPMENT_STAGES,
        architecture_mode=mode,
        region=region,
    )
