"""Tests for the command-line entry point."""

import pytest

from module_registry import __version__
from module_registry.cli import build_parser, main
from module_registry.registry import archive_path
from module_registry.registry.manifest import read_manifest


class TestParser:
    """Test argument parsing."""
    
    def test_serve_arguments(self, tmp_path):
        args = build_parser().parse_args(["serve", "--mode", "precomputed", "--assets", str(tmp_path), "-p", "9000"])
        
        assert args.command == "serve"
        assert args.mode == "precomputed"
        assert args.assets == tmp_path
        assert args.port == 9000
    
    def test_build_arguments(self):
        args = build_parser().parse_args(["build", "--repo-url", "https://example.com/m.git", "-j", "4"])
        
        assert args.command == "build"
        assert args.repo_url == "https://example.com/m.git"
        assert args.jobs == 4
    
    def test_rejects_unknown_mode(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["serve", "--mode", "lazy"])


class TestMain:
    """Test command dispatch."""
    
    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["--version"])
        
        assert exc.value.code == 0
        assert __version__ in capsys.readouterr().out
    
    def test_no_command(self):
        with pytest.raises(SystemExit) as exc:
            main([])
        assert exc.value.code == 2
    
    def test_serve_fails_preflight(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["serve", "--mode", "precomputed", "--assets", str(tmp_path)])
        
        assert exc.value.code == 1
        assert "Preflight failed" in capsys.readouterr().err
    
    def test_build(self, module_repo, tmp_path, capsys):
        assets = tmp_path / "assets"
        
        with pytest.raises(SystemExit) as exc:
            main(["build", "--repo", str(module_repo), "--assets", str(assets), "--log-level", "WARNING"])
        
        assert exc.value.code == 0
        assert read_manifest(assets) == ["v1.0.0", "v1.1.0"]
        assert archive_path(assets, "v1.1.0", "aws").is_file()
        assert "Built 4 archives for 2 versions" in capsys.readouterr().out
    
    def test_build_bad_repository(self, tmp_path, capsys):
        plain = tmp_path / "plain"
        plain.mkdir()
        
        with pytest.raises(SystemExit) as exc:
            main(["build", "--repo", str(plain), "--assets", str(tmp_path / "assets")])
        
        assert exc.value.code == 1
