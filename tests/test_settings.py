"""Tests for settings and state store selection."""

import pytest
from pydantic import ValidationError

from cloudprism.naming import ApplicationEnvironment
from cloudprism.settings import AWSCredentials, CloudPrismSettings, reload_settings
from cloudprism.statestore import LocalStateStore, S3StateStore, get_state_store


def test_defaults():
    settings = CloudPrismSettings()

    assert settings.state_backend == "local"
    assert settings.state_path == "."
    assert settings.state_name == ".statestore"
    assert settings.environment == ApplicationEnvironment.SANDBOX
    assert settings.bucket_tags == {}
    assert settings.stack_name == "dev"


@pytest.mark.parametrize("value", ["production", "PRODUCTION", "3"])
def test_environment_from_env(monkeypatch, value):
    monkeypatch.setenv("CP_ENVIRONMENT", value)

    assert CloudPrismSettings().environment == ApplicationEnvironment.PRODUCTION


def test_unknown_environment_number_kept(monkeypatch):
    monkeypatch.setenv("CP_ENVIRONMENT", "7")

    environment = CloudPrismSettings().environment

    assert environment == 7
    assert not isinstance(environment, ApplicationEnvironment)


def test_unknown_environment_number_falls_back_to_generic_bucket(engine, monkeypatch):
    monkeypatch.setenv("CP_STATE_BACKEND", "s3")
    monkeypatch.setenv("CP_APPLICATION", "My App!")
    monkeypatch.setenv("CP_ENVIRONMENT", "7")

    store = get_state_store(reload_settings(), engine=engine)

    assert isinstance(store, S3StateStore)
    assert store.bucket_name == "my-app-etc-state"
    assert store.uri == "s3://my-app-etc-state"


def test_unknown_environment_name_rejected(monkeypatch):
    monkeypatch.setenv("CP_ENVIRONMENT", "staging")

    with pytest.raises(ValidationError):
        CloudPrismSettings()


def test_bucket_tags_from_json(monkeypatch):
    monkeypatch.setenv("CP_BUCKET_TAGS", '{"team": "platform", "cost-center": "42"}')

    assert CloudPrismSettings().bucket_tags == {
        "team": "platform",
        "cost-center": "42",
    }


def test_passphrase_accepts_standard_pulumi_variable(monkeypatch):
    monkeypatch.setenv("PULUMI_CONFIG_PASSPHRASE", "s3cret")

    assert reload_settings().pulumi_config_passphrase == "s3cret"


def test_aws_credentials_from_env(monkeypatch):
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "AKIAEXAMPLE")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "secret")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "token")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-west-2")

    creds = AWSCredentials()

    assert creds.access_key_id == "AKIAEXAMPLE"
    assert creds.secret_access_key == "secret"
    assert creds.session_token == "token"
    assert creds.region == "us-west-2"


def test_aws_region_defaults(monkeypatch):
    assert AWSCredentials().region == "eu-central-1"

    monkeypatch.setenv("AWS_DEFAULT_REGION", "")
    assert AWSCredentials().region == "eu-central-1"


def test_aws_credentials_explicit():
    creds = AWSCredentials(
        access_key_id="AKIA", secret_access_key="secret", region="eu-west-1"
    )

    assert creds.access_key_id == "AKIA"
    assert creds.session_token is None
    assert creds.region == "eu-west-1"


def test_get_state_store_local(engine, monkeypatch):
    monkeypatch.setenv("CP_STATE_PATH", "/var/lib/cloudprism")
    monkeypatch.setenv("CP_STATE_NAME", "state")

    store = get_state_store(CloudPrismSettings(), engine=engine)

    assert isinstance(store, LocalStateStore)
    assert store.uri == "file:///var/lib/cloudprism/state"
    assert store.engine is engine


def test_get_state_store_s3(engine, monkeypatch):
    monkeypatch.setenv("CP_STATE_BACKEND", "s3")
    monkeypatch.setenv("CP_APPLICATION", "My App!")
    monkeypatch.setenv("CP_ENVIRONMENT", "production")
    monkeypatch.setenv("CP_BUCKET_TAGS", '{"team": "platform"}')

    store = get_state_store(CloudPrismSettings(), engine=engine)

    assert isinstance(store, S3StateStore)
    assert store.bucket_name == "my-app-prd-state"
    assert store.uri == "s3://my-app-prd-state"
    assert store.tags == {"team": "platform"}
