"""Frontmatter, title and description extraction for Docusaurus pages."""

import math
import re
from dataclasses import dataclass, field
from typing import Optional

import yaml
from bs4 import BeautifulSoup

from .issues import MigrationIssue, issue
from .protect import fenced_block_spans
from .utils import title_from_filename

FRONTMATTER_RE = re.compile(r'\A---[ \t]*\r?\n(.*?)(?:\r?\n)?^---[ \t]*(?:\r?\n|\Z)', re.S | re.M)
H1_RE = re.compile(r'^#[ \t]+(.+?)(?:[ \t]+#+)?[ \t]*$')
HEADING_ID_RE = re.compile(r'\s*\{#[\w-]+\}\s*$')
LIST_OR_QUOTE_RE = re.compile(r'^(?:[-*+]\s|\d+[.)]\s|>|!\[)')

DESCRIPTION_MIN = 10
DESCRIPTION_MAX = 300


@dataclass(frozen=True)
class DocumentMetadata:
    title: str
    description: Optional[str] = None
    position: Optional[float] = None  # sidebar ordering hint
    icon: Optional[str] = None
    sidebar_title: Optional[str] = None
    hidden: bool = False


@dataclass
class ParsedDocument:
    metadata: DocumentMetadata
    body: str
    frontmatter: dict = field(default_factory=dict)


def parse_document(content: str, source_path: str) -> tuple[ParsedDocument, list[MigrationIssue]]:
    """Split frontmatter from the body and fill in title/description.

    Title precedence: frontmatter ``title``, then the first ``# `` heading
    (removed from the body), then the file name.
    """
    issues = []
    fm, body, problem = split_frontmatter(content)
    if problem:
        issues.append(issue(source_path, problem, 'Parsed key/value pairs leniently'))

    h1, body_without_h1 = extract_h1(body)
    fm_title = _as_text(fm.get('title'))
    if fm_title:
        title = fm_title
        if h1 and h1.lower() == fm_title.lower():
            body = body_without_h1
    elif h1:
        title = h1
        body = body_without_h1
    else:
        title = title_from_filename(source_path)

    description = _as_text(fm.get('description')) or extract_description(body)

    position = None
    raw_position = fm.get('sidebar_position')
    if raw_position is not None:
        position = _as_number(raw_position)
        if position is None:
            issues.append(issue(source_path, f'Ignored non-numeric sidebar_position "{raw_position}"',
                                'Page is ordered after explicitly positioned siblings'))

    hidden = any(fm.get(key) is True for key in ('unlisted', 'hidden', 'draft'))

    metadata = DocumentMetadata(
        title=title or 'Untitled',
        description=description or None,
        position=position,
        icon=_as_text(fm.get('icon')) or None,
        sidebar_title=_as_text(fm.get('sidebar_label')) or None,
        hidden=hidden,
    )
    return ParsedDocument(metadata=metadata, body=body, frontmatter=fm), issues


def split_frontmatter(content: str) -> tuple[dict, str, Optional[str]]:
    """Split YAML frontmatter from body content.

    Returns (frontmatter, body, problem); problem is a message when the
    block had to be parsed leniently or was ignored.
    """
    match = FRONTMATTER_RE.match(content)
    if not match:
        return {}, content, None

    fm_text = match.group(1)
    body = content[match.end():]
    try:
        data = yaml.safe_load(fm_text) if fm_text.strip() else {}
    except yaml.YAMLError as e:
        mark = getattr(e, 'problem_mark', None)
        where = f' (line {mark.line + 1})' if mark is not None else ''
        return _parse_simple_frontmatter(fm_text), body, f'Invalid YAML frontmatter{where}'

    if data is None:
        return {}, body, None
    if not isinstance(data, dict):
        return {}, body, 'Frontmatter is not a key/value mapping and was ignored'
    return data, body, None


def _parse_simple_frontmatter(fm_text: str) -> dict:
    """Forgiving ``key: value`` parser for frontmatter YAML rejects."""
    fm = {}
    lines = fm_text.split('\n')
    i = 0
    while i < len(lines):
        line = lines[i]
        if ':' in line and not line.startswith((' ', '\t', '#')):
            key, _, value = line.partition(':')
            value = value.strip().strip('"').strip("'")
            # Block scalar indicators (>-, |-, >, |)
            if value in ('>', '|-', '>-', '|'):
                block_lines = []
                i += 1
                while i < len(lines) and (lines[i].startswith('  ') or lines[i].strip() == ''):
                    block_lines.append(lines[i].strip())
                    i += 1
                fm[key.strip()] = ' '.join(bl for bl in block_lines if bl)
                continue
            if value in ('true', 'false'):
                fm[key.strip()] = value == 'true'
            elif value:
                fm[key.strip()] = value
        i += 1
    return fm


def extract_h1(body: str) -> tuple[str, str]:
    """Find the first H1 outside code blocks.

    Returns (heading text, body with that heading line removed), or
    ('', body) when there is none.
    """
    lines = body.split('\n')
    in_code = set()
    for start, end in fenced_block_spans(lines):
        in_code.update(range(start, end + 1))

    for index, line in enumerate(lines):
        if index in in_code:
            continue
        match = H1_RE.match(line)
        if not match:
            continue
        title = HEADING_ID_RE.sub('', match.group(1)).strip()
        if not title:
            continue
        drop = 1
        if index + 1 < len(lines) and not lines[index + 1].strip():
            drop = 2
        remaining = lines[:index] + lines[index + drop:]
        return title, '\n'.join(remaining)
    return '', body


def extract_description(body: str) -> Optional[str]:
    """First usable paragraph after the leading heading(s), cleaned up."""
    lines = body.split('\n')
    i = 0
    while i < len(lines) and (not lines[i].strip() or lines[i].lstrip().startswith('#')):
        i += 1

    paragraph = []
    while i < len(lines) and lines[i].strip():
        paragraph.append(lines[i].strip())
        i += 1
    text = ' '.join(paragraph)

    if not text:
        return None
    if '|' in text or ':::' in text or '```' in text or '~~~' in text:
        return None
    if text.startswith(('<', '{', 'import ', 'export ')) or LIST_OR_QUOTE_RE.match(text):
        return None

    text = re.sub(r'!?\[([^\]]*)\]\([^)]*\)', r'\1', text)
    if '<' in text:
        text = BeautifulSoup(text, 'lxml').get_text()
    text = re.sub(r'[*_`]', '', text)
    text = re.sub(r'\s+', ' ', text).strip()

    if DESCRIPTION_MIN < len(text) < DESCRIPTION_MAX:
        return text
    return None


def build_frontmatter(metadata: DocumentMetadata) -> str:
    """Generate Mintlify MDX frontmatter."""
    lines = ['---']
    lines.append(f'title: "{escape_yaml(metadata.title)}"')
    if metadata.sidebar_title and metadata.sidebar_title != metadata.title:
        lines.append(f'sidebarTitle: "{escape_yaml(metadata.sidebar_title)}"')
    if metadata.description:
        lines.append(f'description: "{escape_yaml(metadata.description)}"')
    if metadata.icon:
        lines.append(f'icon: "{escape_yaml(metadata.icon)}"')
    if metadata.hidden:
        lines.append('hidden: true')
    lines.append('---')
    lines.append('')
    return '\n'.join(lines)


def escape_yaml(text: str) -> str:
    """Escape a value for a double-quoted YAML scalar."""
    return text.replace('\\', '\\\\').replace('"', '\\"').replace('\n', ' ').strip()


def _as_text(value) -> str:
    if value is None or isinstance(value, (dict, list)):
        return ''
    return str(value).strip()


def _as_number(value) -> Optional[float]:
    """A finite number from a frontmatter value, else None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if not isinstance(value, float):
        try:
            value = float(str(value).strip())
        except ValueError:
            return None
    # .inf / .nan can't be turned into a navigation position
    return value if math.isfinite(value) else None
