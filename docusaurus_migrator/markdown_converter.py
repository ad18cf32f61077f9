"""Convert one Docusaurus markdown document to Mintlify MDX.

Stages, in order: frontmatter/title/description extraction, structural tree
passes (links, markup, code blocks), regex repairs, validation, and finally
Mintlify frontmatter assembly.
"""

from dataclasses import dataclass, field

from .frontmatter import DocumentMetadata, build_frontmatter, parse_document
from .issues import MigrationIssue, Severity, issue
from .repairs import REPORTED_REPAIRS, repair
from .tree_transformer import StructuralTransformer, Untransformed
from .validator import validate


@dataclass
class ConversionResult:
    content: str
    metadata: DocumentMetadata
    issues: list[MigrationIssue] = field(default_factory=list)


class MarkdownConverter:
    """Converts Docusaurus-flavored Markdown to Mintlify MDX."""

    def __init__(self, product: str, fetcher=None):
        """
        Args:
            product: Product label used to namespace internal links (e.g. 'sdk')
            fetcher: Optional ReferenceFetcher for GitHub reference code blocks
        """
        self.product = product
        self.transformer = StructuralTransformer(product, fetcher)
        self.qa_issues: list[MigrationIssue] = []

    @property
    def documents_processed(self) -> int:
        return self.transformer.documents_processed

    def convert(self, content: str, source_path: str, version: str) -> ConversionResult:
        """Convert a document.

        Args:
            source_path: Path of the file relative to its version root (e.g. '02-guides/01-start.md')
            version: Version label the document belongs to (e.g. 'v0.50' or 'next')
        """
        self.qa_issues = []
        content = content.replace('\r\n', '\n')

        parsed, extraction_issues = parse_document(content, source_path)
        self.qa_issues.extend(extraction_issues)

        result = self.transformer.transform(parsed.body, source_path, version)
        if isinstance(result, Untransformed):
            self.qa_issues.append(result.issue)
        else:
            self.qa_issues.extend(result.issues)

        body, applied = repair(result.text)
        for name in applied:
            if name in REPORTED_REPAIRS:
                self.qa_issues.append(issue(source_path, REPORTED_REPAIRS[name],
                                            'Automatic MDX repair'))

        frontmatter = build_frontmatter(parsed.metadata)
        body = body.strip('\n')
        output = frontmatter + '\n' + body + '\n' if body else frontmatter

        # Body line 1 sits after the frontmatter and one blank line
        line_offset = frontmatter.count('\n') + 1
        for line, message, suggestion in validate(body, line_offset):
            self.qa_issues.append(issue(source_path, message, suggestion, line=line,
                                        severity=Severity.ERROR))

        return ConversionResult(content=output, metadata=parsed.metadata, issues=list(self.qa_issues))
