"""
Tests for run options validation.
"""

from pathlib import Path

import pytest

from docusaurus_migrator.options import ConfigError, MigrationOptions


class TestValidate:
    def test_valid(self, tmp_path: Path):
        options = MigrationOptions(source_root=str(tmp_path), product=" sdk ")
        options.validate()
        assert options.product == "sdk"

    @pytest.mark.parametrize("product", ["", "   ", "/"])
    def test_blank_product(self, tmp_path: Path, product):
        with pytest.raises(ConfigError, match="product"):
            MigrationOptions(source_root=str(tmp_path), product=product).validate()

    def test_missing_source(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="not found"):
            MigrationOptions(source_root=str(tmp_path / "nope"), product="sdk").validate()

    def test_source_must_be_directory(self, tmp_path: Path):
        file_path = tmp_path / "file.md"
        file_path.write_text("# x\n")
        with pytest.raises(ConfigError):
            MigrationOptions(source_root=str(file_path), product="sdk").validate()

    def test_blank_version(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="version"):
            MigrationOptions(source_root=str(tmp_path), product="sdk", version=" ").validate()

    def test_missing_docs_json(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="docs.json"):
            MigrationOptions(source_root=str(tmp_path), product="sdk",
                             docs_json=str(tmp_path / "docs.json")).validate()

    def test_timeout_positive(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="timeout"):
            MigrationOptions(source_root=str(tmp_path), product="sdk", fetch_timeout=0).validate()


class TestOutputRoot:
    def test_output_dir_by_default(self):
        assert MigrationOptions(source_root=".", output_dir="out").output_root == "out"

    def test_staging_dir_when_staging(self):
        options = MigrationOptions(source_root=".", output_dir="out", staging=True, staging_dir="stage")
        assert options.output_root == "stage"
