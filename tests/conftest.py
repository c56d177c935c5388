"""Pytest configuration and fixtures."""

import os

import pytest


@pytest.fixture(scope="session", autouse=True)
def setup_test_env():
    """Set up test environment variables."""
    os.environ["IBM_API_KEY"] = "test-ibm-key"
    os.environ["IBM_PROJECT_ID"] = "test-project"
    os.environ["OPENAI_API_KEY"] = "test-openai-key"
    os.environ["PROPOSAL_ENGINE_ENV"] = "test"
