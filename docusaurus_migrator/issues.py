"""Collect non-fatal migration problems and render the final report."""

from collections import OrderedDict
from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, Optional


class Severity(str, Enum):
    ERROR = 'error'
    WARNING = 'warning'
    INFO = 'info'


@dataclass(frozen=True)
class MigrationIssue:
    """One problem found in one source file."""
    file: str
    line: Optional[int]
    severity: Severity
    message: str
    suggestion: str = ''

    def relocated(self, file: str) -> 'MigrationIssue':
        return replace(self, file=file)


def issue(file: str, message: str, suggestion: str = '', line: Optional[int] = None,
          severity: Severity = Severity.WARNING) -> MigrationIssue:
    return MigrationIssue(file=file, line=line, severity=severity,
                          message=message, suggestion=suggestion)


class IssueReporter:
    """Accumulates issues for one migration run.

    The orchestrator points the reporter at a file with ``set_current_file``
    before handling it; ``record`` and friends then attribute issues to that
    file. Nothing here ever stops the pipeline.
    """

    def __init__(self):
        self.issues: list[MigrationIssue] = []
        self.current_file = ''
        self._fingerprints: set[str] = set()

    def set_current_file(self, path: str):
        self.current_file = path

    def claim(self, path: str, content: str) -> bool:
        """Return True the first time a (path, content) pair is seen.

        Cache hits replay their stored issues only when the claim succeeds,
        so the same content under the same path is never reported twice.
        """
        fingerprint = f'{path}:{content[:200]}'
        if fingerprint in self._fingerprints:
            return False
        self._fingerprints.add(fingerprint)
        return True

    def record(self, line: Optional[int], message: str, suggestion: str = '',
               severity: Severity = Severity.WARNING) -> MigrationIssue:
        found = MigrationIssue(self.current_file, line, severity, message, suggestion)
        self.issues.append(found)
        return found

    def error(self, line: Optional[int], message: str, suggestion: str = '') -> MigrationIssue:
        return self.record(line, message, suggestion, Severity.ERROR)

    def warning(self, line: Optional[int], message: str, applied: str = '') -> MigrationIssue:
        return self.record(line, message, applied, Severity.WARNING)

    def removal(self, message: str, details: str = '') -> MigrationIssue:
        return self.record(None, message, details, Severity.INFO)

    def replay(self, issues: Iterable[MigrationIssue]):
        """Re-record issues (e.g. from a cache entry) under the current file."""
        for found in issues:
            self.issues.append(found.relocated(self.current_file))

    @property
    def errors(self) -> list[MigrationIssue]:
        return [i for i in self.issues if i.severity == Severity.ERROR]

    @property
    def warnings(self) -> list[MigrationIssue]:
        return [i for i in self.issues if i.severity == Severity.WARNING]

    @property
    def removals(self) -> list[MigrationIssue]:
        return [i for i in self.issues if i.severity == Severity.INFO]

    def issues_for(self, path: str) -> list[MigrationIssue]:
        return [i for i in self.issues if i.file == path]

    def has_issues(self) -> bool:
        return bool(self.issues)

    def generate_report(self) -> str:
        """Render errors, warnings and removals grouped by file."""
        if not self.issues:
            return ''

        errors, warnings, removals = self.errors, self.warnings, self.removals
        lines = ['', '=' * 80, 'MIGRATION REPORT', '=' * 80]

        if errors:
            lines.extend(['', f'ERRORS ({len(errors)}) - These need manual fixes:', '-' * 80])
            lines.extend(_grouped_lines(errors, 'Suggestion'))

        if warnings:
            lines.extend(['', f'WARNINGS ({len(warnings)}) - Automatically handled but please verify:',
                          '-' * 80])
            lines.extend(_grouped_lines(warnings, 'Applied'))

        if removals:
            lines.extend(['', f'REMOVED CONTENT ({len(removals)}) - Content removed for compatibility:',
                          '-' * 80])
            lines.extend(_grouped_lines(removals, 'Details'))

        lines.extend([
            '',
            '=' * 80,
            f'Summary: {len(errors)} errors, {len(warnings)} warnings, {len(removals)} removals',
            '=' * 80,
            '',
        ])
        return '\n'.join(lines)


def _grouped_lines(issues: list[MigrationIssue], detail_label: str) -> list[str]:
    by_file: 'OrderedDict[str, list[MigrationIssue]]' = OrderedDict()
    for found in issues:
        by_file.setdefault(found.file, []).append(found)

    lines = []
    for path, file_issues in by_file.items():
        lines.append('')
        lines.append(f'File: {path}')
        for found in file_issues:
            where = f'Line {found.line}: ' if found.line else ''
            lines.append(f'  {where}{found.message}')
            if found.suggestion:
                lines.append(f'    {detail_label}: {found.suggestion}')
    return lines
