"""Detect MDX defects that the automatic repairs could not fix.

Only reports; never changes content. Each finding is a
(line, message, suggestion) tuple with 1-based line numbers.
"""

import re

from .protect import iter_prose_lines

VALIDATED_TAGS = ('Info', 'Warning', 'Note', 'Tip', 'Check', 'Accordion', 'Expandable')

TAG_RE = re.compile(r'<[A-Za-z/!][^<>]*>')
TEMPLATE_VAR_RE = re.compile(r'(?<!\\)\{[A-Za-z_][\w.]*\}')
HYPHEN_ATTR_RE = re.compile(r'<[A-Z][\w.]*\s[^<>]*?(?<=\s)(?!aria-|data-)([a-z]+(?:-[a-z]+)+)=')
ESCAPED_COMMENT_RE = re.compile(r'\{/\\\*|\\\*/\}')
STACK_TAG_RE = re.compile(r'<(/?)(' + '|'.join(VALIDATED_TAGS) + r')\b[^<>]*?(/?)>')
EXPRESSION_LOOKAHEAD = 4


def validate(text: str, line_offset: int = 0) -> list[tuple[int, str, str]]:
    findings = []
    prose = list(iter_prose_lines(text))

    for position, (number, line) in enumerate(prose):
        lineno = number + line_offset

        if '``' in line:
            findings.append((lineno, 'Unmatched double backticks',
                             'Balance the backticks or use single backticks'))

        outside_tags = TAG_RE.sub('', line)
        var = TEMPLATE_VAR_RE.search(outside_tags)
        if var:
            findings.append((lineno, f'Unescaped template variable: {var.group(0)}',
                             'Wrap in backticks or escape the braces with a backslash'))

        attr = HYPHEN_ATTR_RE.search(line)
        if attr:
            camel = re.sub(r'-([a-z])', lambda m: m.group(1).upper(), attr.group(1))
            findings.append((lineno, f'JSX attribute with hyphen: {attr.group(1)}',
                             f'Convert to camelCase (e.g., {camel})'))

        if ESCAPED_COMMENT_RE.search(line):
            findings.append((lineno, 'Invalid JSX comment with escaped characters',
                             'Change to a proper JSX comment: {/* content */}'))

        if '<!--' in line:
            findings.append((lineno, 'Unconverted HTML comment',
                             'Close the comment with --> or convert it to {/* ... */}'))

        if '{/*' in line:
            if '*/}' not in line and not any('*/}' in later for _, later in prose[position + 1:]):
                findings.append((lineno, 'Unclosed comment in JSX expression',
                                 'Comments inside JSX expressions must end with */}'))
        elif re.search(r'(?<!\\)\{[^}]*$', line):
            following = prose[position + 1:position + 1 + EXPRESSION_LOOKAHEAD]
            if not any('}' in later for _, later in following):
                findings.append((lineno, 'Unclosed JSX expression',
                                 'Add the missing closing brace or escape the opening one'))

    findings.extend(_check_tag_nesting(prose, line_offset))
    findings.sort(key=lambda finding: finding[0])
    return findings


def _check_tag_nesting(prose: list[tuple[int, str]], line_offset: int) -> list[tuple[int, str, str]]:
    findings = []
    stack = []
    for number, line in prose:
        for match in STACK_TAG_RE.finditer(line):
            closing, name, self_closing = match.groups()
            if self_closing:
                continue
            if not closing:
                stack.append((name, number))
            elif stack and stack[-1][0] == name:
                stack.pop()
            else:
                findings.append((number + line_offset, f'Orphaned or mismatched closing tag </{name}>',
                                 'Check for a missing opening tag or remove this closing tag'))
    for name, number in stack:
        findings.append((number + line_offset, f'Unclosed opening tag <{name}>',
                         'Add a matching closing tag or remove this opening tag'))
    return findings
