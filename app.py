#!/usr/bin/env python3
"""AWS CDK entrypoint for provisioning the sloth-util topology.

Every input (stage, architecture override, URLs, secrets) is read here once
into a ``DeploymentConfig`` and handed to the stack. Pick the stage with
``cdk synth --context stage=production`` or the STAGE environment variable,
and opt out of the aws-native default with ARCHITECTURE_TYPE=cloud-agnostic.
"""
import os

import aws_cdk as cdk
from aws_cdk import Environment, aws_lambda as _lambda

from sloth_util.config import DeploymentConfig
from sloth_util.sloth_util_stack import SlothUtilStack

app = cdk.App()

config = DeploymentConfig.from_env(os.environ, stage=app.node.try_get_context("stage"))

env = Environment(account=config.account, region=config.region)

SlothUtilStack(
    app,
    f"SlothUtil-{config.stage}",
    env=env,
    config=config,
    code=_lambda.Code.from_asset(config.functions_asset_dir),
)

app.synth()
