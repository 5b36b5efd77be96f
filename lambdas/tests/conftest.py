"""Shared pytest fixtures."""

import os

import boto3
import pytest
from moto import mock_aws

# Set before any handler module is imported
os.environ.setdefault("TABLE_NAME", "test-table")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("POWERTOOLS_SERVICE_NAME", "qtune")
os.environ.setdefault("POWERTOOLS_METRICS_NAMESPACE", "QTune")
os.environ.setdefault("POWERTOOLS_TRACE_DISABLED", "true")
os.environ.setdefault("POWERTOOLS_LOG_LEVEL", "DEBUG")
os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")
os.environ.setdefault("AWS_SECURITY_TOKEN", "testing")
os.environ.setdefault("AWS_SESSION_TOKEN", "testing")


@pytest.fixture(autouse=True)
def env_setup(monkeypatch):
    """Pin test environment and drop cached configuration."""
    from shared.config import reset_config

    monkeypatch.setenv("TABLE_NAME", "test-table")
    monkeypatch.setenv("ENVIRONMENT", "test")
    monkeypatch.delenv("DAILY_LIMIT", raising=False)
    monkeypatch.delenv("HOURLY_LIMIT", raising=False)
    monkeypatch.delenv("MAX_HISTORY_SIZE", raising=False)
    monkeypatch.delenv("QUOTA_TIMEZONE", raising=False)
    monkeypatch.delenv("CLAUDE_MODEL", raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def dynamodb_table():
    """Mocked single table with PK/SK keys."""
    with mock_aws():
        dynamodb = boto3.resource("dynamodb", region_name="us-east-1")
        table = dynamodb.create_table(
            TableName="test-table",
            KeySchema=[
                {"AttributeName": "PK", "KeyType": "HASH"},
                {"AttributeName": "SK", "KeyType": "RANGE"},
            ],
            AttributeDefinitions=[
                {"AttributeName": "PK", "AttributeType": "S"},
                {"AttributeName": "SK", "AttributeType": "S"},
            ],
            BillingMode="PAY_PER_REQUEST",
        )
        table.wait_until_exists()
        yield table
