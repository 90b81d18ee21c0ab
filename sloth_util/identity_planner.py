"""Shared execution role and its least-privilege grants."""
import attrs

import common.constants as constants
from sloth_util.plans import (
    ExecutionRole,
    ExternalStorage,
    ManagedStorage,
    PolicyGrant,
    StoragePlan,
)

ROLE_NAME = f"{constants.APP_NAME}-lambda-role"


def grant_bedrock_invoke(role: ExecutionRole) -> PolicyGrant:
    """Model invocation, needed by every service whatever the storage backend."""
    return PolicyGrant(
        name=f"{constants.APP_NAME}-bedrock-policy",
        actions=constants.BEDROCK_ACTIONS,
        resource_refs=(constants.BEDROCK_MODEL_RESOURCE,),
    )


def storage_grants(storage: StoragePlan) -> tuple[PolicyGrant, ...]:
    if isinstance(storage, ExternalStorage):
        return ()

    assert isinstance(storage, ManagedStorage), f"unknown storage plan {storage!r}"
    # Grants must point at the realized resources, not at guessed names.
    assert storage.is_bound, "managed storage must be provisioned before granting access"
    table_arn = storage.table_ref.arn
    bucket_arn = storage.bucket_ref.arn
    return (
        PolicyGrant(
            name=f"{constants.APP_NAME}-dynamodb-policy",
            actions=constants.DYNAMODB_ACTIONS,
            resource_refs=(table_arn, f"{table_arn}/index/*"),
        ),
        PolicyGrant(
            name=f"{constants.APP_NAME}-s3-policy",
            actions=constants.S3_OBJECT_ACTIONS,
            resource_refs=(f"{bucket_arn}/*",),
        ),
    )


def plan(storage: StoragePlan) -> ExecutionRole:
    role = ExecutionRole(name=ROLE_NAME)
    return attrs.evolve(
        role, grants=(grant_bedrock_invoke(role),) + storage_grants(storage)
    )
