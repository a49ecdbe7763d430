"""
Integration tests for the Policy Engine.

This module verifies fixture loading, configuration loading and the
policyctl CLI end to end.
"""

import json
import tempfile
from pathlib import Path

import pytest
from click.testing import CliRunner

from policy_engine.cli.policyctl import cli
from policy_engine.config import EngineConfig, load_config
from policy_engine.errors import FixtureLoadError
from policy_engine.ingestion import build_policy_service, load_fixture
from policy_engine.models import MasterPasswordPolicyOptions, PolicyType

FIXTURE_YAML = """
active_user: alice
users:
  alice:
    memberships:
      - organizationId: org1
        enabled: true
        usePolicies: true
        status: Confirmed
        type: User
      - organizationId: org2
        enabled: true
        usePolicies: true
        status: Confirmed
        type: Owner
      - organizationId: org3
        enabled: true
        usePolicies: true
        status: Invited
        type: User
    policies:
      Data:
        - Id: mp-1
          OrganizationId: org1
          Type: MasterPassword
          Enabled: true
          Data: {minLength: 12, requireNumbers: true}
        - Id: mp-2
          OrganizationId: org2
          Type: MasterPassword
          Enabled: true
          Data: {minLength: 40}
        - Id: rp-1
          OrganizationId: org1
          Type: ResetPassword
          Enabled: true
          Data: {autoEnrollEnabled: true}
        - Id: vt-1
          OrganizationId: org3
          Type: MaximumVaultTimeout
          Enabled: true
          Data: {minutes: 5}
  bob:
    memberships: []
    policies:
      Data: null
"""


@pytest.mark.integration
class TestFixtureLoading:
    """Integration tests for fixture and configuration loading."""

    @pytest.fixture
    def temp_dir(self):
        """Create a temporary directory for testing."""
        with tempfile.TemporaryDirectory() as temp_dir:
            yield Path(temp_dir)

    @pytest.fixture
    def fixture_file(self, temp_dir):
        path = temp_dir / "fixture.yaml"
        path.write_text(FIXTURE_YAML, encoding="utf-8")
        return path

    def test_build_policy_service(self, fixture_file):
        service = build_policy_service(load_fixture(fixture_file))

        assert service.account_service.current_user_id == "alice"
        assert [p.id for p in service.policies().first()] == ["mp-1", "mp-2", "rp-1", "vt-1"]
        assert service.master_password_policy_options().first() == MasterPasswordPolicyOptions(
            min_length=12, require_numbers=True
        )
        assert service.maximum_vault_timeout_policy_options().first() is None
        assert service.store.raw("bob") is None

    def test_json_fixture(self, temp_dir):
        path = temp_dir / "fixture.json"
        path.write_text(json.dumps({
            "users": {"carol": {"policies": {"Data": []}}},
        }), encoding="utf-8")

        service = build_policy_service(load_fixture(path), active_user_id="carol")

        assert service.store.raw("carol") == {}
        assert service.policy_applies_to_active_user(PolicyType.MASTER_PASSWORD).first() is False

    def test_invalid_fixture(self, temp_dir):
        path = temp_dir / "broken.yaml"
        path.write_text("users:\n  alice:\n    memberships: [{enabled: true}]\n", encoding="utf-8")

        with pytest.raises(FixtureLoadError):
            load_fixture(path)

    def test_missing_fixture(self, temp_dir):
        with pytest.raises(FixtureLoadError, match="file not found"):
            load_fixture(temp_dir / "absent.yaml")

    def test_load_config(self, temp_dir):
        path = temp_dir / "config.yaml"
        path.write_text("log_level: debug\nactive_user_id: bob\n", encoding="utf-8")

        config = load_config(path)

        assert config.log_level == "DEBUG"
        assert config.active_user_id == "bob"
        assert load_config(None) == EngineConfig()

    def test_load_config_rejects_bad_level(self, temp_dir):
        path = temp_dir / "config.yaml"
        path.write_text("log_level: LOUD\n", encoding="utf-8")

        with pytest.raises(FixtureLoadError):
            load_config(path)

    def test_load_config_missing_file(self, temp_dir):
        with pytest.raises(FileNotFoundError):
            load_config(temp_dir / "absent.yaml")


@pytest.mark.integration
class TestPolicyCtl:
    """Integration tests for the policyctl CLI."""

    @pytest.fixture
    def fixture_file(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "fixture.yaml"
            path.write_text(FIXTURE_YAML, encoding="utf-8")
            yield path

    @pytest.fixture
    def runner(self):
        return CliRunner()

    def test_applicable(self, runner, fixture_file):
        result = runner.invoke(cli, ["--fixture", str(fixture_file), "applicable"])

        assert result.exit_code == 0
        assert "mp-1" in result.output
        assert "rp-1" in result.output
        assert "mp-2" not in result.output
        assert "vt-1" not in result.output

    def test_applicable_admin_override(self, runner, fixture_file):
        result = runner.invoke(cli, ["--fixture", str(fixture_file), "applicable",
                                     "--type", "MasterPassword", "--admin-override"])

        assert result.exit_code == 0
        assert "mp-1" in result.output
        assert "mp-2" in result.output

    def test_applicable_unknown_type(self, runner, fixture_file):
        result = runner.invoke(cli, ["--fixture", str(fixture_file), "applicable", "--type", "Bogus"])

        assert result.exit_code == 2
        assert "Unknown policy type" in result.output

    def test_no_policies_for_other_user(self, runner, fixture_file):
        result = runner.invoke(cli, ["--fixture", str(fixture_file), "--user", "bob", "applicable"])

        assert result.exit_code == 0
        assert "No policies apply to bob" in result.output

    def test_master_password_options(self, runner, fixture_file):
        result = runner.invoke(cli, ["--fixture", str(fixture_file), "master-password-options"])

        assert result.exit_code == 0
        assert "min_length" in result.output
        assert "12" in result.output

    def test_check_password_violation(self, runner, fixture_file):
        result = runner.invoke(cli, ["--fixture", str(fixture_file), "check-password", "short"])

        assert result.exit_code == 1
        assert "Must be at least 12 characters long" in result.output
        assert "Must contain a number (0-9)" in result.output

    def test_check_password_ok(self, runner, fixture_file):
        result = runner.invoke(cli, ["--fixture", str(fixture_file), "check-password",
                                     "long-enough-password-1", "--score", "3"])

        assert result.exit_code == 0
        assert "satisfies" in result.output

    def test_reset_password_options(self, runner, fixture_file):
        result = runner.invoke(cli, ["--fixture", str(fixture_file), "reset-password-options", "org1"])

        assert result.exit_code == 0
        assert "Auto-enroll: yes" in result.output

    def test_vault_timeout_not_applicable(self, runner, fixture_file):
        result = runner.invoke(cli, ["--fixture", str(fixture_file), "vault-timeout"])

        assert result.exit_code == 0
        assert "No maximum vault timeout policy applies" in result.output
