"""Tests for configuration loading."""

import pytest
import yaml

from ims_middleware.config import ENV_VARS, IMSConfig, load_config, load_config_from_file
from ims_middleware.dispatcher import DEFAULT_IMS_URL


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for env_var in list(ENV_VARS.values()) + ["UAA_CLIENT_SECRET_FILE"]:
        monkeypatch.delenv(env_var, raising=False)
    # Keep ./ims.yaml lookups away from the working tree
    monkeypatch.chdir(tmp_path)


REQUIRED = dict(
    predix_zone_id="zone",
    subtenant_id="tenant",
    client_id="client",
    client_secret="secret",
)


class TestIMSConfig:

    def test_uaa_url_wins(self):
        config = IMSConfig(**REQUIRED, uaa_url="https://uaa.example.com/oauth/token", uaa_instance_id="abc")
        assert config.uaa_token_url == "https://uaa.example.com/oauth/token"

    def test_uaa_url_from_instance_id(self):
        config = IMSConfig(**REQUIRED, uaa_instance_id="abc")
        assert config.uaa_token_url == "https://abc.predix-uaa.run.aws-usw02-pr.ice.predix.io/oauth/token"

    def test_uaa_location_required(self):
        with pytest.raises(ValueError):
            IMSConfig(**REQUIRED).uaa_token_url

    def test_tenant_headers(self):
        config = IMSConfig(**REQUIRED, uaa_instance_id="abc")
        assert config.tenant_headers == {
            "Predix-Zone-Id": "zone",
            "x-subtenant-id": "tenant",
            "content-type": "application/json",
        }

    def test_summary_hides_secret(self):
        config = IMSConfig(**REQUIRED, uaa_instance_id="abc")
        assert "secret" not in config.summary().values()

    def test_default_ims_url(self):
        assert IMSConfig(**REQUIRED).ims_url == DEFAULT_IMS_URL


class TestLoadConfig:

    def test_overrides(self):
        config = load_config(**REQUIRED, uaa_instance_id="abc")
        assert config.client_id == "client"
        assert config.ims_url == DEFAULT_IMS_URL

    def test_environment(self, monkeypatch):
        monkeypatch.setenv("PREDIX_ZONE_ID", "zone")
        monkeypatch.setenv("IMS_SUBTENANT_ID", "tenant")
        monkeypatch.setenv("UAA_CLIENT_ID", "client")
        monkeypatch.setenv("UAA_CLIENT_SECRET", "secret")
        monkeypatch.setenv("UAA_URL", "https://uaa.example.com/oauth/token")
        monkeypatch.setenv("IMS_URL", "https://ims.example.com")
        monkeypatch.setenv("IMS_TIMEOUT", "5")

        config = load_config()

        assert config.predix_zone_id == "zone"
        assert config.client_secret == "secret"
        assert config.ims_url == "https://ims.example.com"
        assert config.timeout == 5.0

    def test_file_beats_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv("UAA_CLIENT_ID", "from-env")
        path = tmp_path / "custom.yaml"
        path.write_text(yaml.safe_dump({**REQUIRED, "uaa_instance_id": "abc"}))

        config = load_config(str(path))

        assert config.client_id == "client"

    def test_overrides_beat_file(self, tmp_path):
        path = tmp_path / "custom.yaml"
        path.write_text(yaml.safe_dump({**REQUIRED, "uaa_instance_id": "abc"}))

        config = load_config(str(path), subtenant_id="other")

        assert config.subtenant_id == "other"

    def test_local_file_is_found(self, tmp_path):
        (tmp_path / "ims.yaml").write_text(yaml.safe_dump({**REQUIRED, "uaa_instance_id": "abc"}))

        assert load_config().predix_zone_id == "zone"

    def test_secret_file(self, tmp_path):
        secret_path = tmp_path / "client-secret"
        secret_path.write_text("from-file\n")
        values = {k: v for k, v in REQUIRED.items() if k != "client_secret"}
        path = tmp_path / "custom.yaml"
        path.write_text(yaml.safe_dump({**values, "uaa_instance_id": "abc", "client_secret_file": str(secret_path)}))

        config = load_config(str(path))

        assert config.client_secret == "from-file"

    def test_file_secret_beats_environment_secret_file(self, monkeypatch, tmp_path):
        env_secret = tmp_path / "env-secret"
        env_secret.write_text("from-env-file\n")
        monkeypatch.setenv("UAA_CLIENT_SECRET_FILE", str(env_secret))
        path = tmp_path / "custom.yaml"
        path.write_text(yaml.safe_dump({**REQUIRED, "uaa_instance_id": "abc"}))

        config = load_config(str(path))

        assert config.client_secret == "secret"

    def test_environment_secret_file(self, monkeypatch, tmp_path):
        env_secret = tmp_path / "env-secret"
        env_secret.write_text("from-env-file\n")
        monkeypatch.setenv("UAA_CLIENT_SECRET_FILE", str(env_secret))
        monkeypatch.setenv("UAA_CLIENT_SECRET", "from-env")
        values = {k: v for k, v in REQUIRED.items() if k != "client_secret"}

        config = load_config(**values, uaa_instance_id="abc")

        assert config.client_secret == "from-env-file"

    def test_missing_required(self):
        with pytest.raises(ValueError) as excinfo:
            load_config(predix_zone_id="zone", uaa_instance_id="abc")

        message = str(excinfo.value)
        assert "IMS_SUBTENANT_ID" in message
        assert "UAA_CLIENT_ID" in message
        assert "UAA_CLIENT_SECRET" in message

    def test_missing_uaa_location(self):
        with pytest.raises(ValueError, match="UAA location"):
            load_config(**REQUIRED)


class TestLoadConfigFromFile:

    def test_no_file(self, tmp_path):
        assert load_config_from_file(str(tmp_path / "missing.yaml")) is None

    def test_invalid_yaml_is_skipped(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("predix_zone_id: [unclosed")

        assert load_config_from_file(str(path)) is None
