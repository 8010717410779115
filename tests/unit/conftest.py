import pytest

TEST_AWS_ACCESS_KEY_ID = "test"
TEST_AWS_SECRET_ACCESS_KEY = "test"
TEST_AWS_REGION_NAME = "us-east-1"


@pytest.fixture(autouse=True)
def set_boto_test_credentials_and_region(monkeypatch):
    """
    Automatically sets the default credentials and region for all unit tests.
    """
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", TEST_AWS_ACCESS_KEY_ID)
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", TEST_AWS_SECRET_ACCESS_KEY)
    monkeypatch.setenv("AWS_DEFAULT_REGION", TEST_AWS_REGION_NAME)


@pytest.fixture(autouse=True)
def no_poll_interval(monkeypatch):
    """Makes stack status polls return immediately."""
    from stackwrapper import config

    monkeypatch.setattr(config, "STACK_POLL_INTERVAL", 0)
    monkeypatch.setattr(config, "STACK_DELETE_TIMEOUT", 0)
