from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

import pytest
from aws_cdk import App, aws_lambda as _lambda
from aws_cdk.assertions import Match, Template

from sloth_util.config import DeploymentConfig
from sloth_util.sloth_util_stack import SlothUtilStack


# ------------------- Test Case Data Classes -------------------
@dataclass(frozen=True)
class LambdaTestCase:
    id: str
    function_name: str
    handler: str
    extra_env: Mapping[str, Any]


@dataclass(frozen=True)
class FunctionUrlTestCase:
    id: str
    function: str
    allowed_methods: list[str]
    allowed_headers: list[str]
    max_age: int


@dataclass(frozen=True)
class UpdateDeletePolicyTestCase:
    id: str
    update_policy: str
    delete_policy: str


# ------------------- Helper Functions -------------------


def find_resources_by_type(
    template: Template, resource_type: str, props: Optional[dict] = None
) -> Mapping[str, Any]:

    return template.find_resources(resource_type, props=props)


def get_single_resource_id(
    resources: Mapping[str, Any], resource_type: str = "resource"
) -> str:
    assert len(resources) == 1, f"expected exactly one {resource_type}"
    return next(iter(resources))


def build_stack(
    config: DeploymentConfig, asset_dir: Path, stack_id: str = "TestSlothUtilStack"
) -> SlothUtilStack:
    app = App()
    return SlothUtilStack(
        app,
        stack_id,
        config=config,
        code=_lambda.Code.from_asset(str(asset_dir)),
    )


def build_template(config: DeploymentConfig, asset_dir: Path) -> Template:
    return Template.from_stack(build_stack(config, asset_dir))


# ------------------- Pytest Fixtures -------------------


@pytest.fixture(scope="session")
def asset_dir(tmp_path_factory: pytest.TempPathFactory) -> Path:
    directory = tmp_path_factory.mktemp("functions")
    (directory / "placeholder.txt").write_text("handler code is built separately\n")
    return directory


@pytest.fixture(scope="session")
def aws_native_config() -> DeploymentConfig:
    return DeploymentConfig(stage="production", bucket_suffix="abc123def")


@pytest.fixture(scope="session")
def cloud_agnostic_config() -> DeploymentConfig:
    return DeploymentConfig(stage="dev", architecture_override="cloud-agnostic")


@pytest.fixture(scope="session")
def aws_native_template(aws_native_config: DeploymentConfig, asset_dir: Path) -> Template:
    return build_template(aws_native_config, asset_dir)


@pytest.fixture(scope="session")
def cloud_agnostic_template(
    cloud_agnostic_config: DeploymentConfig, asset_dir: Path
) -> Template:
    return build_template(cloud_agnostic_config, asset_dir)


@pytest.fixture(scope="session")
def json_template(aws_native_template: Template) -> Mapping[str, Any]:
    return aws_native_template.to_json()


def expected_lambda_props(case: LambdaTestCase) -> Mapping[str, Any]:
    return {
        "FunctionName": Match.string_like_regexp(case.function_name),
        "Handler": case.handler,
        "Runtime": "java17",
        "MemorySize": 1024,
        "Timeout": 30,
        "Architectures": ["x86_64"],
        "Code": {
            "S3Bucket": Match.any_value(),
            "S3Key": Match.any_value(),
        },
        "Role": {"Fn::GetAtt": [Match.string_like_regexp(r".*SlothUtilLambdaRole.*"), "Arn"]},
        "Environment": {"Variables": Match.object_like(dict(case.extra_env))},
    }
