"""Text-level MDX repairs.

Every repair is a pure ``str -> str`` function. ``REPAIRS`` fixes the order
they run in, and ``repair`` runs them all with code hidden by
``apply_outside_code``. Running the sequence on its own output changes
nothing.
"""

import re

from .protect import apply_outside_code

# Docusaurus admonition type -> Mintlify callout component
ADMONITION_MAP = {
    'note': 'Note',
    'tip': 'Tip',
    'info': 'Info',
    'warning': 'Warning',
    'danger': 'Warning',
    'caution': 'Warning',
    'important': 'Info',
    'success': 'Check',
    'details': 'Accordion',
}

COMPONENT_TAGS = (
    'AccordionGroup', 'Accordion', 'CardGroup', 'Card', 'CodeGroup', 'Check', 'Expandable',
    'Info', 'Note', 'Steps', 'Step', 'Tabs', 'Tab', 'Tip', 'Warning',
)

THEME_IMPORT_RE = re.compile(
    r'^[ \t]*import\s+[^\n]*?\s+from\s+[\'"]@(?:theme|site|docusaurus)/[^\'"\n]*[\'"];?[ \t]*(?:\n|$)',
    re.M,
)
ADMONITION_OPEN_RE = re.compile(r'^([ \t]*):{3,}([A-Za-z]+)(?:\[(.+)\]|[ \t]+(.+?))?[ \t]*$')
ADMONITION_CLOSE_RE = re.compile(r'^[ \t]*:{3,}[ \t]*$')
TABS_OPEN_RE = re.compile(r'<Tabs\b[^<>]*>')
TAB_ITEM_OPEN_RE = re.compile(r'<TabItem\b([^<>]*)>')
HEADING_ANCHOR_RE = re.compile(r'^(#{1,6}[ \t].*?)[ \t]*\{#[\w-]+\}[ \t]*$', re.M)
DIRECT_LINK_RE = re.compile(r'[ \t]*\[\u200b?\]\(#[^)\s]*(?:[ \t]+"[^"\n]*")?\)')
AUTOLINK_RE = re.compile(r'<(https?://[^<>\s]+)>')
TABLE_DELIMITER_RE = re.compile(r'^\s*\|?\s*:?-+:?\s*(?:\|\s*:?-+:?\s*)*\|?\s*$')
TAG_RE = re.compile(r'<[A-Za-z/!][^<>]*>')
# Spans the table escaper must not touch: brace groups, link targets, tags, bare URLs
TABLE_ESCAPE_SKIP_RE = re.compile(r'\{[^{}\n]*\}|\]\([^)\n]*\)|<[A-Za-z/!][^<>]*>|https?://[^\s|)]+')
# Spans template wrapping must not touch: inline code made by earlier steps, tags
TEMPLATE_SKIP_RE = re.compile(r'`[^`\n]+`|<[A-Za-z/!][^<>]*>')
TEMPLATE_TOKEN_RE = re.compile(
    r'(?P<path>/[A-Za-z][\w/.-]*\{[^{}\n]+\}(?:[\w/.-]|\{[^{}\n]+\})*)'
    r'|(?P<token>\{(?:[A-Za-z_$][\w$]*(?:\.[\w$]+|\[[^\]\n]+\])*|[A-Za-z_][\w ]*\w)\})'
)
TABLE_BRACES_RE = re.compile(r'\{(?!/\*)[^{}|\n]+\}')
COMPONENT_TAG_RE = re.compile(r'<(/?)(' + '|'.join(COMPONENT_TAGS) + r')\b([^<>]*?)(/?)>')
COMPONENT_ATTRS_RE = re.compile(r'<([A-Z][\w.]*)(\s[^<>]*?)(/?)>')
HYPHEN_ATTR_RE = re.compile(r'(?<=\s)(?!aria-|data-)([a-z]+(?:-[a-z]+)+)(?==)')


def drop_docusaurus_imports(text: str) -> str:
    """Remove ``import X from '@theme/...'`` style lines; Mintlify provides its own components."""
    return THEME_IMPORT_RE.sub('', text)


def convert_admonitions(text: str) -> str:
    """Convert ``:::note Title`` ... ``:::`` blocks to Mintlify callouts."""
    result = []
    stack = []
    for line in text.split('\n'):
        opened = ADMONITION_OPEN_RE.match(line)
        if opened:
            indent, kind, bracket_title, title = opened.groups()
            title = (bracket_title or title or '').strip()
            component = ADMONITION_MAP.get(kind.lower(), 'Note')
            stack.append(component)
            if component == 'Accordion':
                safe_title = (title or 'Details').replace('"', '&quot;')
                result.append(f'{indent}<Accordion title="{safe_title}">')
            else:
                result.append(f'{indent}<{component}>')
                if title:
                    result.append(f'{indent}**{title}**')
            continue
        if ADMONITION_CLOSE_RE.match(line):
            if stack:
                indent = line[:len(line) - len(line.lstrip())]
                result.append(f'{indent}</{stack.pop()}>')
            continue
        result.append(line)
    return '\n'.join(result)


def convert_tabs(text: str) -> str:
    """Docusaurus ``<Tabs>/<TabItem>`` -> Mintlify ``<Tabs>/<Tab title>``."""
    def replace_item(match):
        attrs = match.group(1)
        label = re.search(r'\blabel=(?:"([^"]*)"|\'([^\']*)\')', attrs)
        value = re.search(r'\bvalue=(?:"([^"]*)"|\'([^\']*)\')', attrs)
        found = label or value
        title = (found.group(1) if found.group(1) is not None else found.group(2)) if found else 'Tab'
        return f'<Tab title="{title}">'

    text = TABS_OPEN_RE.sub('<Tabs>', text)
    text = TAB_ITEM_OPEN_RE.sub(replace_item, text)
    return text.replace('</TabItem>', '</Tab>')


def strip_heading_anchors(text: str) -> str:
    """Drop ``{#custom-id}`` heading ids and pasted "Direct link" anchors."""
    text = HEADING_ANCHOR_RE.sub(r'\1', text)
    return DIRECT_LINK_RE.sub('', text)


def fix_escaped_jsx_comments(text: str) -> str:
    return text.replace('{/\\*', '{/*').replace('\\*/}', '*/}')


def convert_autolinks(text: str) -> str:
    """``<https://...>`` autolinks are not valid MDX; make them regular links."""
    return AUTOLINK_RE.sub(r'[\1](\1)', text)


def _table_rows(lines: list[str]) -> set[int]:
    rows = set()
    i = 0
    while i < len(lines):
        if ('|' in lines[i] and i + 1 < len(lines) and '|' in lines[i + 1]
                and TABLE_DELIMITER_RE.match(lines[i + 1])):
            j = i
            while j < len(lines) and lines[j].strip() and '|' in lines[j]:
                rows.add(j)
                j += 1
            i = j
            continue
        i += 1
    return rows


def _map_table_rows(text: str, fn) -> str:
    lines = text.split('\n')
    for index in _table_rows(lines):
        lines[index] = fn(lines[index])
    return '\n'.join(lines)


def _outside(pattern, text: str, fn) -> str:
    """Apply ``fn`` to the parts of ``text`` not matched by ``pattern``."""
    parts = []
    cursor = 0
    for match in pattern.finditer(text):
        parts.append(fn(text[cursor:match.start()]))
        parts.append(match.group(0))
        cursor = match.end()
    parts.append(fn(text[cursor:]))
    return ''.join(parts)


def escape_table_cells(text: str) -> str:
    """Escape emphasis underscores and stray ``<`` inside table rows.

    Brace groups are left alone here; ``wrap_template_tokens`` wraps them.
    """
    def escape(segment: str) -> str:
        segment = re.sub(r'(?<=[A-Za-z0-9])_(?=[A-Za-z0-9])', r'\\_', segment)
        return re.sub(r'<(?![A-Za-z/!])', '&lt;', segment)

    return _map_table_rows(text, lambda row: _outside(TABLE_ESCAPE_SKIP_RE, row, escape))


def wrap_template_tokens(text: str) -> str:
    """Wrap ``{var}``-like tokens in inline code so MDX doesn't evaluate them."""
    def wrap(match):
        return f'`{match.group(0)}`'

    text = _map_table_rows(
        text, lambda row: _outside(TAG_RE, row, lambda seg: TABLE_BRACES_RE.sub(wrap, seg)))
    return _outside(TEMPLATE_SKIP_RE, text, lambda seg: TEMPLATE_TOKEN_RE.sub(wrap, seg))


def balance_component_tags(text: str) -> str:
    """Drop orphan closing component tags and close unclosed ones at the end."""
    stack = []

    def visit(match):
        closing, name, _, self_closing = match.groups()
        if self_closing:
            return match.group(0)
        if not closing:
            stack.append(name)
            return match.group(0)
        if stack and stack[-1] == name:
            stack.pop()
            return match.group(0)
        if name in stack:
            # Mismatched nesting: pair it with the nearest opener of the same name
            del stack[len(stack) - 1 - stack[::-1].index(name)]
            return match.group(0)
        return ''

    text = COMPONENT_TAG_RE.sub(visit, text)
    if stack:
        closers = '\n'.join(f'</{name}>' for name in reversed(stack))
        text = text.rstrip('\n') + '\n\n' + closers + '\n'
    return text


def camel_case_component_attributes(text: str) -> str:
    """``<Card icon-type="x">`` -> ``<Card iconType="x">``."""
    def fix_tag(match):
        name, attrs, self_closing = match.groups()
        attrs = HYPHEN_ATTR_RE.sub(
            lambda m: re.sub(r'-([a-z])', lambda c: c.group(1).upper(), m.group(1)), attrs)
        return f'<{name}{attrs}{self_closing}>'

    return COMPONENT_ATTRS_RE.sub(fix_tag, text)


def collapse_blank_lines(text: str) -> str:
    return re.sub(r'\n[ \t]*\n(?:[ \t]*\n)+', '\n\n', text)


REPAIRS = (
    drop_docusaurus_imports,
    convert_admonitions,
    convert_tabs,
    strip_heading_anchors,
    fix_escaped_jsx_comments,
    convert_autolinks,
    escape_table_cells,  # before wrap_template_tokens
    wrap_template_tokens,
    balance_component_tags,
    camel_case_component_attributes,
    collapse_blank_lines,
)

# Repairs worth a reviewer's attention when they fire
REPORTED_REPAIRS = {
    'fix_escaped_jsx_comments': 'Fixed escaped JSX comment delimiters',
    'escape_table_cells': 'Escaped underscores/angle brackets in table cells',
    'wrap_template_tokens': 'Wrapped template-like {tokens} in inline code',
    'balance_component_tags': 'Balanced unclosed or orphaned component tags',
    'camel_case_component_attributes': 'Converted hyphenated component attributes to camelCase',
}


def repair(text: str) -> tuple[str, list[str]]:
    """Run every repair in order; returns (text, names of repairs that changed it)."""
    applied = []

    def run_all(prose: str) -> str:
        for fix in REPAIRS:
            fixed = fix(prose)
            if fixed != prose:
                applied.append(fix.__name__)
            prose = fixed
        return prose

    return apply_outside_code(text, run_all), applied
