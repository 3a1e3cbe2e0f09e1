"""Pytest configuration and shared fixtures."""
import json
import os
from dataclasses import replace
from types import SimpleNamespace

# Trigger modules build boto3 clients at import time
os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-2")

import pulumi
import pytest

from backend_config import BackendConfig


# ---------------------------------------------------------------------------
# Trigger events
# ---------------------------------------------------------------------------

@pytest.fixture
def lambda_context():
    return SimpleNamespace(aws_request_id="req-123")


@pytest.fixture
def make_event():
    """Build a Cognito trigger event the way the user pool sends it."""

    def _make(trigger_source, user_attributes=None, **request):
        return {
            "version": "1",
            "region": "us-east-2",
            "userPoolId": "us-east-2_TestPool",
            "userName": "6f1c2d4e-user",
            "triggerSource": trigger_source,
            "callerContext": {"awsSdkVersion": "aws-sdk-unknown", "clientId": "client-123"},
            "request": {
                "userAttributes": dict(user_attributes or {}),
                **request,
            },
            "response": {},
        }

    return _make


@pytest.fixture
def attempt():
    def _attempt(correct):
        return {
            "challengeName": "CUSTOM_CHALLENGE",
            "challengeResult": correct,
            "challengeMetadata": "CODE_SENT_EMAIL",
        }

    return _attempt


# ---------------------------------------------------------------------------
# Pulumi
# ---------------------------------------------------------------------------

class BackendMocks(pulumi.runtime.Mocks):
    """Records every registered resource and fakes the outputs AWS would assign."""

    def __init__(self):
        self.resources = []

    def new_resource(self, args: pulumi.runtime.MockResourceArgs):
        outputs = dict(args.inputs)
        outputs.setdefault("name", args.name)
        outputs.setdefault("arn", f"arn:aws:mock::{args.name}")
        if args.typ == "aws:pinpoint/app:App":
            outputs["applicationId"] = f"{args.name}-application-id"
        self.resources.append(args)
        return [f"{args.name}_id", outputs]

    def call(self, args: pulumi.runtime.MockCallArgs):
        if args.token == "aws:iam/getPolicyDocument:getPolicyDocument":
            return {"json": json.dumps(args.args, default=str), "id": "policy-doc"}
        return {}

    def of_type(self, typ):
        return {r.name: r.inputs for r in self.resources if r.typ == typ}


@pytest.fixture
def mocks():
    m = BackendMocks()
    pulumi.runtime.set_mocks(m, preview=False)
    return m


@pytest.fixture
def backend_config():
    def _config(**overrides):
        base = BackendConfig(
            stack="dev",
            name_prefix="passwordless-auth-dev",
            target_region="us-east-2",
            source_email="no-reply@example.com",
        )
        return replace(base, **overrides)

    return _config


class FakeConfig:
    """Stands in for pulumi.Config, parsing typed values the way Pulumi does."""

    def __init__(self, values):
        self.values = values

    def get(self, key):
        return self.values.get(key)

    def get_int(self, key):
        raw = self.get(key)
        if raw is None:
            return None
        try:
            return int(raw)
        except ValueError:
            raise pulumi.ConfigTypeError(key, raw, "int")

    def get_bool(self, key):
        raw = self.get(key)
        if raw is None:
            return None
        if raw == "true":
            return True
        if raw == "false":
            return False
        raise pulumi.ConfigTypeError(key, raw, "bool")


@pytest.fixture
def fake_config():
    return FakeConfig
