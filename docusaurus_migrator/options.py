"""Per-run migration settings."""

import os
from dataclasses import dataclass
from typing import Optional


class ConfigError(Exception):
    """Fatal configuration problem; the run stops before anything is written."""


@dataclass
class MigrationOptions:
    source_root: str
    output_dir: str = './output'
    product: str = ''
    version: Optional[str] = None  # treat source_root as a single version tree
    dry_run: bool = False
    staging: bool = False
    staging_dir: str = './tmp/migration-staging'
    update_navigation: bool = False
    docs_json: Optional[str] = None
    fetch_references: bool = True
    fetch_timeout: float = 10.0

    def validate(self):
        """Raise ConfigError for settings the run cannot start with."""
        self.product = (self.product or '').strip().strip('/')
        if not self.product:
            raise ConfigError('A product label is required (e.g. --product sdk)')
        if not self.source_root:
            raise ConfigError('A source directory is required')
        if not os.path.isdir(self.source_root):
            raise ConfigError(f'Source directory not found: {self.source_root}')
        if not os.access(self.source_root, os.R_OK | os.X_OK):
            raise ConfigError(f'Source directory is not readable: {self.source_root}')
        if self.version is not None and not self.version.strip():
            raise ConfigError('--version must not be empty')
        if self.docs_json and not os.path.isfile(self.docs_json):
            raise ConfigError(f'docs.json not found: {self.docs_json}')
        if self.fetch_timeout <= 0:
            raise ConfigError('Fetch timeout must be positive')

    @property
    def output_root(self) -> str:
        """Directory the run writes to: the staging area in staging mode."""
        return self.staging_dir if self.staging else self.output_dir
