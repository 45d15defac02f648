"""Shared fixtures for the test suite."""
import os

import pytest


@pytest.fixture
def aws_credentials(monkeypatch):
    """Point boto3 at fake credentials so moto never reaches AWS."""
    monkeypatch.setenv('AWS_ACCESS_KEY_ID', 'testing')
    monkeypatch.setenv('AWS_SECRET_ACCESS_KEY', 'testing')
    monkeypatch.setenv('AWS_SECURITY_TOKEN', 'testing')
    monkeypatch.setenv('AWS_SESSION_TOKEN', 'testing')
    monkeypatch.setenv('AWS_DEFAULT_REGION', 'us-east-1')
    yield os.environ
