"""
Tests for issue collection and the migration report.
"""

from docusaurus_migrator.issues import IssueReporter, Severity, issue


class TestIssueReporter:
    def test_records_against_current_file(self):
        reporter = IssueReporter()
        reporter.set_current_file("next/intro.md")
        reporter.error(3, "Unclosed JSX expression", "Add the closing brace")
        reporter.warning(None, "Wrapped tokens")
        reporter.removal("Removed long comment", "Started with: TODO")

        assert [i.severity for i in reporter.issues] == [Severity.ERROR, Severity.WARNING, Severity.INFO]
        assert all(i.file == "next/intro.md" for i in reporter.issues)
        assert len(reporter.errors) == len(reporter.warnings) == len(reporter.removals) == 1

    def test_claim_is_once_per_path_and_content(self):
        reporter = IssueReporter()
        assert reporter.claim("next/a.md", "content") is True
        assert reporter.claim("next/a.md", "content") is False
        assert reporter.claim("v1/a.md", "content") is True

    def test_replay_relocates_issues(self):
        reporter = IssueReporter()
        cached = (issue("a.md", "Fixed escaped JSX comment delimiters"),)
        reporter.set_current_file("v0.47/a.md")
        reporter.replay(cached)

        assert reporter.issues_for("v0.47/a.md")[0].message == "Fixed escaped JSX comment delimiters"
        assert reporter.issues_for("a.md") == []


class TestReport:
    def test_empty_report(self):
        reporter = IssueReporter()
        assert not reporter.has_issues()
        assert reporter.generate_report() == ""

    def test_sections_and_summary(self):
        reporter = IssueReporter()
        reporter.set_current_file("next/intro.md")
        reporter.error(7, "Unclosed opening tag <Note>", "Add a matching closing tag")
        reporter.warning(None, "Balanced unclosed or orphaned component tags", "Automatic MDX repair")
        reporter.set_current_file("next/other.md")
        reporter.removal("Removed 12-line HTML comment", "Started with: old notes")

        report = reporter.generate_report()

        assert "MIGRATION REPORT" in report
        assert "ERRORS (1) - These need manual fixes:" in report
        assert "WARNINGS (1) - Automatically handled but please verify:" in report
        assert "REMOVED CONTENT (1) - Content removed for compatibility:" in report
        assert "File: next/intro.md" in report
        assert "  Line 7: Unclosed opening tag <Note>" in report
        assert "    Suggestion: Add a matching closing tag" in report
        assert "    Applied: Automatic MDX repair" in report
        assert "    Details: Started with: old notes" in report
        assert "Summary: 1 errors, 1 warnings, 1 removals" in report
