import pytest

from planner_test_helpers import BUCKET_SUFFIX, aws_native_ctx, cloud_agnostic_ctx
from sloth_util import storage_planner
from sloth_util.context import ArchitectureMode, DeploymentContext, resolve
from sloth_util.plans import ExternalStorage, ManagedStorage


def test_aws_native_plans_managed_table(aws_native_ctx: DeploymentContext):
    storage = storage_planner.plan(aws_native_ctx, bucket_suffix=BUCKET_SUFFIX)

    assert isinstance(storage, ManagedStorage)
    table = storage.table
    assert table.name == "sloth-util-quotes-production"
    assert (table.partition_key.name, table.partition_key.type) == ("id", "S")
    assert table.index.name == "CategoryIndex"
    assert table.index.partition_key.name == "category"
    assert table.index.projection == "ALL"
    assert table.ttl_attribute == "ttl"
    assert table.billing_mode == "PAY_PER_REQUEST"


def test_aws_native_plans_versioned_encrypted_bucket(aws_native_ctx: DeploymentContext):
    storage = storage_planner.plan(aws_native_ctx, bucket_suffix=BUCKET_SUFFIX)

    assert storage.bucket.name == "sloth-util-config-production-abc123def"
    assert storage.bucket.versioned is True
    assert storage.bucket.encryption == "AES256"


def test_managed_storage_starts_unbound(aws_native_ctx: DeploymentContext):
    storage = storage_planner.plan(aws_native_ctx, bucket_suffix=BUCKET_SUFFIX)

    assert storage.is_bound is False


def test_aws_native_ignores_external_urls(aws_native_ctx: DeploymentContext):
    storage = storage_planner.plan(
        aws_native_ctx,
        "postgresql://db.internal:5432/slothutil",
        "redis://cache.internal:6379",
        bucket_suffix=BUCKET_SUFFIX,
    )

    assert isinstance(storage, ManagedStorage)
    assert not hasattr(storage, "database_url")


def test_aws_native_requires_bucket_suffix(aws_native_ctx: DeploymentContext):
    with pytest.raises(AssertionError):
        storage_planner.plan(aws_native_ctx)


def test_cloud_agnostic_falls_back_to_local_defaults(cloud_agnostic_ctx: DeploymentContext):
    storage = storage_planner.plan(cloud_agnostic_ctx)

    assert storage == ExternalStorage(
        database_url="postgresql://localhost:5432/slothutil",
        redis_url="redis://localhost:6379",
    )


def test_cloud_agnostic_uses_supplied_urls(cloud_agnostic_ctx: DeploymentContext):
    storage = storage_planner.plan(
        cloud_agnostic_ctx,
        "postgresql://db.internal:5432/slothutil",
        "redis://cache.internal:6379",
    )

    assert storage.database_url == "postgresql://db.internal:5432/slothutil"
    assert storage.redis_url == "redis://cache.internal:6379"
    assert not hasattr(storage, "table")


@pytest.mark.parametrize("stage", ["dev", "development", "staging", "production"])
@pytest.mark.parametrize("override", [None, "cloud-agnostic"])
def test_variant_matches_architecture_mode(stage: str, override):
    ctx = resolve(stage, override)

    storage = storage_planner.plan(ctx, bucket_suffix=BUCKET_SUFFIX)

    expected = (
        ManagedStorage
        if ctx.architecture_mode is ArchitectureMode.AWS_NATIVE
        else ExternalStorage
    )
    assert type(storage) is expected
