"""Tests for pre-flight checks."""

from unittest.mock import patch

from module_registry.config import Config
from module_registry.preflight import check_commands, check_config
from module_registry.registry.manifest import write_manifest


class TestCheckCommands:
    """Test executable checks."""
    
    def test_missing_command(self):
        result = check_commands(["definitely-not-a-real-command-xyz"])
        assert result == {"status": "fail", "missing": ["definitely-not-a-real-command-xyz"]}
    
    def test_present_command(self):
        with patch("module_registry.preflight.shutil.which", return_value="/usr/bin/git"):
            assert check_commands(["git"]) == {"status": "pass"}


class TestCheckConfig:
    """Test mode-specific configuration checks."""
    
    def test_on_demand_pass(self, tmp_path):
        with patch("module_registry.preflight.shutil.which", return_value="/usr/bin/git"):
            assert check_config(Config(repo_path=tmp_path))["status"] == "pass"
    
    def test_on_demand_missing_repo(self, tmp_path):
        with patch("module_registry.preflight.shutil.which", return_value="/usr/bin/git"):
            result = check_config(Config(repo_path=tmp_path / "nope"))
        assert result["status"] == "fail"
        assert "Repository path does not exist" in result["problems"][0]
    
    def test_repo_url_skips_path_check(self, tmp_path):
        with patch("module_registry.preflight.shutil.which", return_value="/usr/bin/git"):
            config = Config(repo_path=tmp_path / "nope", repo_url="https://example.com/modules.git")
            assert check_config(config)["status"] == "pass"
    
    def test_missing_git(self, tmp_path):
        with patch("module_registry.preflight.shutil.which", return_value=None):
            result = check_config(Config(repo_path=tmp_path))
        assert result["problems"] == ["git executable not found on PATH"]
    
    def test_precomputed_needs_manifest(self, tmp_path):
        result = check_config(Config(mode="precomputed", assets_dir=tmp_path))
        assert result["status"] == "fail"
        
        write_manifest(tmp_path, ["v1.0.0"])
        assert check_config(Config(mode="precomputed", assets_dir=tmp_path))["status"] == "pass"
    
    def test_build_ignores_asset_cache(self, tmp_path):
        """Should require a repository, not a manifest, when building."""
        with patch("module_registry.preflight.shutil.which", return_value="/usr/bin/git"):
            config = Config(mode="precomputed", assets_dir=tmp_path / "assets", repo_path=tmp_path)
            assert check_config(config, building=True)["status"] == "pass"
    
    def test_tls_needs_both_files(self, tmp_path):
        cert = tmp_path / "cert.pem"
        cert.write_text("cert")
        with patch("module_registry.preflight.shutil.which", return_value="/usr/bin/git"):
            result = check_config(Config(repo_path=tmp_path, tls_certfile=cert))
        assert result["status"] == "fail"
    
    def test_tls_files_must_exist(self, tmp_path):
        with patch("module_registry.preflight.shutil.which", return_value="/usr/bin/git"):
            result = check_config(Config(
                repo_path=tmp_path,
                tls_certfile=tmp_path / "cert.pem",
                tls_keyfile=tmp_path / "key.pem",
            ))
        assert len(result["problems"]) == 2
