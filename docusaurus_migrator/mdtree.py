"""A small structural tree for Docusaurus markdown.

The tree covers a closed set of node kinds (see ``NodeKind``). Block nodes
keep enough of their source text that rendering an untouched tree gives back
the input byte for byte; passes only pay for what they change.

Block level: Heading, Paragraph (any other prose: lists, quotes, setext
headings...), Code (fenced), Raw (HTML/JSX blocks and comments), Table,
Link (reference definitions) and Text (blank lines).
Inline level (children of Heading/Paragraph/Table): Text, Link, Code.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Iterator, Union

from .protect import INLINE_CODE_RE, fence_open, is_fence_close


class NodeKind(Enum):
    HEADING = 'heading'
    PARAGRAPH = 'paragraph'
    LINK = 'link'
    CODE = 'code'
    RAW = 'raw'
    TABLE = 'table'
    TEXT = 'text'


@dataclass
class Text:
    kind: ClassVar[NodeKind] = NodeKind.TEXT
    value: str

    def render(self) -> str:
        return self.value


@dataclass
class Link:
    """Inline link ``[label](url "title")`` or reference definition ``[label]: url``."""
    kind: ClassVar[NodeKind] = NodeKind.LINK
    label: str
    url: str
    title: str = ''  # raw, including leading whitespace and quotes
    angle: bool = False
    definition: bool = False
    indent: str = ''
    trailing: str = ''

    def render(self) -> str:
        url = f'<{self.url}>' if self.angle else self.url
        if self.definition:
            return f'{self.indent}[{self.label}]: {url}{self.title}{self.trailing}'
        return f'[{self.label}]({url}{self.title})'


@dataclass
class Code:
    """Fenced code block, or an inline code span when ``inline`` is set."""
    kind: ClassVar[NodeKind] = NodeKind.CODE
    value: str  # block: content lines, each with its newline
    lang: str = ''
    meta: str = ''
    inline: bool = False
    fence: str = '```'
    indent: str = ''
    open_line: str = ''
    open_break: str = '\n'  # empty when the opening fence ends the text
    close_line: str = ''
    trailing: str = ''
    source_info: tuple = ('', '')

    @property
    def lines(self) -> list[str]:
        return self.value.splitlines()

    def set_content(self, text: str):
        text = text.strip('\n')
        self.value = text + '\n' if text else ''

    def render(self) -> str:
        if self.inline:
            return f'{self.fence}{self.value}{self.fence}'
        if (self.lang, self.meta) == self.source_info and self.open_line:
            opening = self.open_line
        else:
            info = ' '.join(part for part in (self.lang, self.meta) if part)
            opening = f'{self.indent}{self.fence}{info}'
        open_break = self.open_break if not self.value else '\n'
        return f'{opening}{open_break}{self.value}{self.close_line}{self.trailing}'


@dataclass
class Raw:
    """Embedded HTML/JSX markup or a comment, kept verbatim."""
    kind: ClassVar[NodeKind] = NodeKind.RAW
    value: str

    def render(self) -> str:
        return self.value


@dataclass
class Heading:
    kind: ClassVar[NodeKind] = NodeKind.HEADING
    level: int
    children: list = field(default_factory=list)
    prefix: str = ''
    suffix: str = ''

    def render(self) -> str:
        return self.prefix + ''.join(child.render() for child in self.children) + self.suffix


@dataclass
class Paragraph:
    kind: ClassVar[NodeKind] = NodeKind.PARAGRAPH
    children: list = field(default_factory=list)

    def render(self) -> str:
        return ''.join(child.render() for child in self.children)


@dataclass
class Table:
    kind: ClassVar[NodeKind] = NodeKind.TABLE
    children: list = field(default_factory=list)

    def render(self) -> str:
        return ''.join(child.render() for child in self.children)


Inline = Union[Text, Link, Code]
Block = Union[Heading, Paragraph, Code, Raw, Table, Link, Text]
CONTAINERS = (NodeKind.HEADING, NodeKind.PARAGRAPH, NodeKind.TABLE)


@dataclass
class Document:
    children: list = field(default_factory=list)

    def render(self) -> str:
        return ''.join(block.render() for block in self.children)


HEADING_RE = re.compile(r'^( {0,3}(#{1,6})(?:[ \t]+|(?=\n)|$))(.*?)([ \t]*\n?)$', re.S)
TABLE_DELIMITER_RE = re.compile(r'^\s*\|?\s*:?-+:?\s*(?:\|\s*:?-+:?\s*)*\|?\s*$')
DEFINITION_RE = re.compile(
    r'^( {0,3})\[(?!\^)([^\]\n]+)\]:[ \t]*(?:<([^<>\n]*)>|(\S+))((?:[ \t]+(?:"[^"\n]*"|\'[^\'\n]*\'|\([^)\n]*\)))?[ \t]*)(\n?)$'
)
BLOCK_TAGS = (
    'address|article|aside|blockquote|br|center|dd|details|dialog|div|dl|dt|figcaption|figure|'
    'footer|form|h[1-6]|header|hr|iframe|img|li|main|nav|ol|p|picture|pre|section|summary|'
    'table|tbody|td|tfoot|th|thead|tr|ul|video'
)
RAW_START_RE = re.compile(
    rf'^ {{0,3}}(?:<!--|</?(?:[A-Z][\w.]*|(?i:{BLOCK_TAGS}))(?=[\s/>]|$))'
)
LINK_RE = re.compile(
    r'(?<![!\\])\[(?P<label>(?:[^\[\]\n]|\[[^\[\]\n]*\])*)\]'
    r'\([ \t]*(?:<(?P<angle>[^<>\n]*)>|(?P<url>(?:[^\s()]|\([^\s()]*\))*))'
    r'(?P<title>[ \t]+(?:"[^"\n]*"|\'[^\'\n]*\'))?[ \t]*\)'
)


def parse(text: str) -> Document:
    """Parse markdown text (``\\n`` line endings) into a Document."""
    lines = text.splitlines(keepends=True)
    blocks = []
    i = 0
    while i < len(lines):
        line = lines[i]

        if not line.strip():
            j = i
            while j < len(lines) and not lines[j].strip():
                j += 1
            blocks.append(Text(''.join(lines[i:j])))
            i = j
            continue

        opened = fence_open(line)
        if opened:
            block, i = _parse_fenced(lines, i, opened)
            blocks.append(block)
            continue

        heading = HEADING_RE.match(line)
        if heading:
            prefix, hashes, content, suffix = heading.groups()
            blocks.append(Heading(level=len(hashes), children=parse_inline(content),
                                  prefix=prefix, suffix=suffix))
            i += 1
            continue

        if _starts_table(lines, i):
            j = i
            while j < len(lines) and lines[j].strip() and '|' in lines[j]:
                j += 1
            blocks.append(Table(children=parse_inline(''.join(lines[i:j]))))
            i = j
            continue

        if RAW_START_RE.match(line):
            j = _raw_block_end(lines, i)
            blocks.append(Raw(''.join(lines[i:j])))
            i = j
            continue

        definition = DEFINITION_RE.match(line)
        if definition:
            indent, label, angle_url, url, title, trailing = definition.groups()
            blocks.append(Link(label=label, url=angle_url if angle_url is not None else url,
                               title=title, angle=angle_url is not None, definition=True,
                               indent=indent, trailing=trailing))
            i += 1
            continue

        j = i + 1
        while j < len(lines) and not _interrupts_paragraph(lines, j):
            j += 1
        blocks.append(Paragraph(children=parse_inline(''.join(lines[i:j]))))
        i = j

    return Document(children=blocks)


def _parse_fenced(lines: list[str], start: int, opened) -> tuple[Code, int]:
    indent, fence, info = opened
    info = info.strip()
    lang, _, meta = info.partition(' ')
    meta = meta.strip()
    j = start + 1
    while j < len(lines) and not is_fence_close(lines[j], fence):
        j += 1

    value = ''.join(lines[start + 1:j])
    if j < len(lines):
        close = lines[j]
        close_line = close.rstrip('\n')
        trailing = close[len(close_line):]
        end = j + 1
    else:
        # Unclosed: the block runs to the end of the text
        close_line = trailing = ''
        end = j

    open_line = lines[start].rstrip('\n')
    code = Code(value=value, lang=lang, meta=meta, fence=fence, indent=indent,
                open_line=open_line, open_break=lines[start][len(open_line):],
                close_line=close_line, trailing=trailing,
                source_info=(lang, meta))
    return code, end


def _starts_table(lines: list[str], i: int) -> bool:
    return (
        '|' in lines[i]
        and i + 1 < len(lines)
        and '|' in lines[i + 1]
        and bool(TABLE_DELIMITER_RE.match(lines[i + 1]))
    )


def _raw_block_end(lines: list[str], i: int) -> int:
    """Index one past the last line of a raw markup block starting at i."""
    if lines[i].lstrip().startswith('<!--'):
        j = i
        while j < len(lines):
            if '-->' in lines[j]:
                return j + 1
            j += 1
        return j
    j = i + 1
    while j < len(lines) and lines[j].strip():
        j += 1
    return j


def _interrupts_paragraph(lines: list[str], j: int) -> bool:
    line = lines[j]
    return (
        not line.strip()
        or fence_open(line) is not None
        or bool(HEADING_RE.match(line))
        or bool(RAW_START_RE.match(line))
        or _starts_table(lines, j)
    )


def parse_inline(text: str) -> list:
    """Split inline text into Text, Code (inline) and Link nodes.

    Links are found with code spans blanked out, so brackets inside code
    never start a link while a label may still contain code.
    """
    masked = INLINE_CODE_RE.sub(lambda m: '\0' * len(m.group(0)), text)
    nodes = []
    cursor = 0
    for match in LINK_RE.finditer(masked):
        nodes.extend(_split_code(text[cursor:match.start()]))

        def group(name):
            start, end = match.span(name)
            return text[start:end] if start >= 0 else None

        angle = group('angle')
        nodes.append(Link(
            label=group('label'),
            url=angle if angle is not None else group('url'),
            title=group('title') or '',
            angle=angle is not None,
        ))
        cursor = match.end()
    nodes.extend(_split_code(text[cursor:]))
    return nodes


def _split_code(text: str) -> list:
    nodes = []
    cursor = 0
    for match in INLINE_CODE_RE.finditer(text):
        if match.start() > cursor:
            nodes.append(Text(text[cursor:match.start()]))
        nodes.append(Code(value=match.group(2), inline=True, fence=match.group(1)))
        cursor = match.end()
    if cursor < len(text):
        nodes.append(Text(text[cursor:]))
    return nodes


def render(document: Document) -> str:
    return document.render()


def walk(document: Document) -> Iterator:
    """Yield every block node and, for containers, its inline children."""
    for block in document.children:
        yield block
        if block.kind in CONTAINERS:
            yield from block.children
