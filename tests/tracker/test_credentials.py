"""Tests for bearer credential providers."""

import pytest

from issuekeeper.config import GitHubConfig
from issuekeeper.errors import CredentialError
from issuekeeper.tracker import (
    EnvCredentialProvider,
    SecretFileCredentialProvider,
    StaticCredentialProvider,
    build_credential_provider,
)


class TestStaticCredentialProvider:
    def test_returns_token(self):
        assert StaticCredentialProvider("abc").get_token().get_secret_value() == "abc"

    def test_empty_token(self):
        with pytest.raises(CredentialError):
            StaticCredentialProvider("").get_token()


class TestEnvCredentialProvider:
    def test_reads_variable(self, monkeypatch):
        monkeypatch.setenv("GITHUB_TOKEN", "from-env")

        assert EnvCredentialProvider().get_token().get_secret_value() == "from-env"

    def test_custom_variable(self, monkeypatch):
        monkeypatch.setenv("TRACKER_TOKEN", "custom")

        assert EnvCredentialProvider("TRACKER_TOKEN").get_token().get_secret_value() == "custom"

    def test_missing_variable(self):
        with pytest.raises(CredentialError, match="GITHUB_TOKEN"):
            EnvCredentialProvider().get_token()

    def test_token_is_not_leaked_in_repr(self, monkeypatch):
        monkeypatch.setenv("GITHUB_TOKEN", "super-secret")

        assert "super-secret" not in repr(EnvCredentialProvider().get_token())


class TestSecretFileCredentialProvider:
    """Tests for SecretFileCredentialProvider."""

    def test_yaml_file(self, tmp_path):
        secret = tmp_path / "secret.yaml"
        secret.write_text("GITHUB_TOKEN: yaml-token\n")

        assert SecretFileCredentialProvider(secret).get_token().get_secret_value() == "yaml-token"

    def test_dotenv_file(self, tmp_path):
        secret = tmp_path / "secret.env"
        secret.write_text("OTHER=1\nGITHUB_TOKEN=env-token\n")

        assert SecretFileCredentialProvider(secret).get_token().get_secret_value() == "env-token"

    def test_custom_key(self, tmp_path):
        secret = tmp_path / "secret.yaml"
        secret.write_text("token: abc\n")

        provider = SecretFileCredentialProvider(secret, key="token")

        assert provider.get_token().get_secret_value() == "abc"

    def test_rotation_is_picked_up(self, tmp_path):
        secret = tmp_path / "secret.yaml"
        secret.write_text("GITHUB_TOKEN: first\n")
        provider = SecretFileCredentialProvider(secret)
        assert provider.get_token().get_secret_value() == "first"

        secret.write_text("GITHUB_TOKEN: second\n")

        assert provider.get_token().get_secret_value() == "second"

    def test_missing_file(self, tmp_path):
        with pytest.raises(CredentialError, match="not found"):
            SecretFileCredentialProvider(tmp_path / "absent.yaml").get_token()

    def test_missing_key(self, tmp_path):
        secret = tmp_path / "secret.yaml"
        secret.write_text("OTHER: value\n")

        with pytest.raises(CredentialError, match="GITHUB_TOKEN"):
            SecretFileCredentialProvider(secret).get_token()


class TestBuildCredentialProvider:
    def test_env_by_default(self):
        provider = build_credential_provider(GitHubConfig())

        assert isinstance(provider, EnvCredentialProvider)
        assert provider.variable == "GITHUB_TOKEN"

    def test_token_file_wins(self, tmp_path):
        config = GitHubConfig(token_file=str(tmp_path / "s.yaml"), token_env="IGNORED")

        provider = build_credential_provider(config)

        assert isinstance(provider, SecretFileCredentialProvider)
