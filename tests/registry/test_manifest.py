"""Tests for the versions manifest."""

import json

import pytest

from module_registry.errors import ManifestError
from module_registry.registry.manifest import MANIFEST_NAME, read_manifest, write_manifest


class TestManifest:
    """Test manifest persistence and validation."""
    
    def test_write_then_read(self, tmp_path):
        path = write_manifest(tmp_path, ["v1.0.0", "v1.1.0"])
        
        assert path.name == MANIFEST_NAME
        assert read_manifest(tmp_path) == ["v1.0.0", "v1.1.0"]
    
    def test_written_as_versions_envelope(self, tmp_path):
        """Should store the exact document served to clients."""
        write_manifest(tmp_path, ["v1.0.0"])
        document = json.loads((tmp_path / MANIFEST_NAME).read_text())
        assert document == {"modules": [{"versions": [{"version": "v1.0.0"}]}]}
    
    def test_missing_manifest(self, tmp_path):
        with pytest.raises(ManifestError):
            read_manifest(tmp_path)
    
    def test_corrupt_manifest(self, tmp_path):
        (tmp_path / MANIFEST_NAME).write_text("{not json")
        with pytest.raises(ManifestError):
            read_manifest(tmp_path)
    
    def test_invalid_shape(self, tmp_path):
        """Should reject documents that are not a versions envelope."""
        (tmp_path / MANIFEST_NAME).write_text(json.dumps({"modules": [{"versions": ["v1.0.0"]}]}))
        with pytest.raises(ManifestError):
            read_manifest(tmp_path)
