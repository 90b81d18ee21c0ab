import hashlib
from typing import Mapping, Optional

from attrs import define, field
from attrs.validators import and_, instance_of, matches_re, optional

import common.constants as constants
from sloth_util.context import DeploymentContext, resolve


def _parse_expiry(value: Optional[str]) -> int:
    if value is None or value == "":
        return constants.DEFAULT_TOKEN_EXPIRY_SECONDS
    try:
        expiry = int(value)
    except ValueError:
        raise ValueError(f"JWT_EXPIRY must be a number of seconds, got {value!r}")
    if expiry <= 0:
        raise ValueError(f"JWT_EXPIRY must be positive, got {expiry}")
    return expiry


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    return value or None


def derive_bucket_suffix(stage: str, account: Optional[str], region: str) -> str:
    """Stable uniqueness suffix so repeated runs produce the same bucket name."""
    seed = f"{constants.APP_NAME}:{stage}:{account or ''}:{region}"
    return hashlib.sha256(seed.encode("utf-8")).hexdigest()[
        : constants.BUCKET_SUFFIX_LENGTH
    ]


@define(slots=True, frozen=True, kw_only=True)
class DeploymentConfig:
    """Every external input of a provisioning run, read once at the top."""

    stage: str = field(
        default=constants.DEFAULT_STAGE,
        validator=and_(instance_of(str), matches_re(constants.STAGE_PATTERN)),
    )
    architecture_override: Optional[str] = field(
        default=None, converter=_blank_to_none, validator=optional(instance_of(str))
    )
    model_id: str = field(default=constants.DEFAULT_MODEL_ID, validator=instance_of(str))
    database_url: Optional[str] = field(default=None, converter=_blank_to_none)
    redis_url: Optional[str] = field(default=None, converter=_blank_to_none)
    signing_secret: Optional[str] = field(default=None, converter=_blank_to_none)
    token_expiry_seconds: int = field(
        default=constants.DEFAULT_TOKEN_EXPIRY_SECONDS, validator=instance_of(int)
    )
    account: Optional[str] = field(default=None, converter=_blank_to_none)
    region: str = field(default=constants.DEFAULT_REGION, validator=instance_of(str))
    bucket_suffix: Optional[str] = field(default=None, converter=_blank_to_none)
    functions_asset_dir: str = field(
        default=constants.FUNCTIONS_ASSET_DIR, validator=instance_of(str)
    )

    @classmethod
    def from_env(
        cls, environ: Mapping[str, str], stage: Optional[str] = None
    ) -> "DeploymentConfig":
        return cls(
            stage=stage or environ.get("STAGE") or constants.DEFAULT_STAGE,
            architecture_override=environ.get(constants.ARCHITECTURE_ENV_VAR),
            model_id=environ.get("BEDROCK_MODEL_ID") or constants.DEFAULT_MODEL_ID,
            database_url=environ.get("DATABASE_URL"),
            redis_url=environ.get("REDIS_URL"),
            signing_secret=environ.get("JWT_SECRET"),
            token_expiry_seconds=_parse_expiry(environ.get("JWT_EXPIRY")),
            account=environ.get("CDK_DEFAULT_ACCOUNT"),
            region=environ.get("CDK_DEFAULT_REGION") or constants.DEFAULT_REGION,
            bucket_suffix=environ.get("BUCKET_SUFFIX"),
            functions_asset_dir=environ.get("FUNCTIONS_ASSET_DIR")
            or constants.FUNCTIONS_ASSET_DIR,
        )

    def deployment_context(self) -> DeploymentContext:
        return resolve(self.stage, self.architecture_override, region=self.region)

    def resolved_bucket_suffix(self) -> str:
        return self.bucket_suffix or derive_bucket_suffix(
            self.stage, self.account, self.region
        )

    def insecure_defaults(self, ctx: DeploymentContext) -> list[str]:
        """Warnings for fallbacks that are only acceptable on a developer machine."""
        if ctx.is_development or not ctx.is_cloud_agnostic:
            return []

        warnings = []
        if self.database_url is None:
            warnings.append(
                f"DATABASE_URL is not set, stage '{ctx.stage}' falls back to "
                f"{constants.DEFAULT_DATABASE_URL}"
            )
        if self.redis_url is None:
            warnings.append(
                f"REDIS_URL is not set, stage '{ctx.stage}' falls back to "
                f"{constants.DEFAULT_REDIS_URL}"
            )
        if self.signing_secret is None:
            warnings.append(
                f"JWT_SECRET is not set, stage '{ctx.stage}' signs tokens with an "
                "insecure placeholder secret"
            )
        return warnings
