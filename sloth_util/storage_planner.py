from typing import Optional

import common.constants as constants
from sloth_util.context import DeploymentContext
from sloth_util.plans import (
    BucketSpec,
    ExternalStorage,
    IndexSpec,
    KeySpec,
    ManagedStorage,
    StoragePlan,
    TableSpec,
)


def build_table_spec(ctx: DeploymentContext) -> TableSpec:
    return TableSpec(
        name=ctx.resource_name(constants.TABLE_KIND),
        partition_key=KeySpec(name=constants.TABLE_PARTITION_KEY),
        index=IndexSpec(
            name=constants.CATEGORY_INDEX_NAME,
            partition_key=KeySpec(name=constants.CATEGORY_INDEX_KEY),
        ),
    )


def build_bucket_spec(ctx: DeploymentContext, suffix: str) -> BucketSpec:
    return BucketSpec(name=f"{ctx.resource_name(constants.BUCKET_KIND)}-{suffix}")


def plan(
    ctx: DeploymentContext,
    external_db_url: Optional[str] = None,
    external_redis_url: Optional[str] = None,
    bucket_suffix: str = "",
) -> StoragePlan:
    """Decide between managed storage and references to external backends.

    Only one variant is ever built; the other mode's fields are never touched.
    """
    if ctx.is_aws_native:
        assert bucket_suffix, "managed storage needs a bucket uniqueness suffix"
        return ManagedStorage(
            table=build_table_spec(ctx),
            bucket=build_bucket_spec(ctx, bucket_suffix),
        )

    return ExternalStorage(
        database_url=external_db_url or constants.DEFAULT_DATABASE_URL,
        redis_url=external_redis_url or constants.DEFAULT_REDIS_URL,
    )
