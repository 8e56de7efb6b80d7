"""
Sequence diagram parser - validates, parses, formats and generates the
Mermaid `sequenceDiagram` subset the platform emits and consumes.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from specgraph.domain.entities import ParseStatus

HEADER = "sequenceDiagram"
COMMENT_PREFIX = "%%"
INDENT_UNIT = "  "

# Blocks tracked for structural validation, each closed by a bare `end`
BLOCK_KINDS = ("loop", "alt", "opt", "par")
INDENT_OPENERS = BLOCK_KINDS + ("else",)
HTTP_METHODS = ("GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS")

# Longest arrows first so `-->>` is never read as `-` + `->>`
ARROWS = ("-->>", "->>", "-->", "->", "--x", "-x", "--)", "-)")

_DECLARATION = re.compile(r'^(participant|actor)\s+(?:"([^"]+)"|(\S+))(?:\s+as\s+(\S+))?')
_MESSAGE = re.compile(
    r"^(\S+?)\s*(" + "|".join(re.escape(arrow) for arrow in ARROWS) + r")\s*([^:]+?)\s*:\s*(.+)$"
)
_API_CALL = re.compile(
    r"^(" + "|".join(HTTP_METHODS) + r")\s+(\S+)(?:\s+(?:-\s+)?(.+))?$"
)
_ACTIVATION = re.compile(r"^(activate|deactivate)\s+\S+")
_NOTE = re.compile(r"^Note\s+(right of|left of|over)\s+", re.IGNORECASE)


@dataclass
class ValidationResult:
    valid: bool
    error: Optional[str] = None


@dataclass
class ParsedCall:
    """One message line; method and path are set when it reads as an HTTP call."""
    source: str
    target: str
    sequence: int
    line_number: int
    raw: str
    method: Optional[str] = None
    path: Optional[str] = None
    description: Optional[str] = None

    @property
    def is_api_call(self) -> bool:
        return self.method is not None and self.path is not None


@dataclass
class ParseResult:
    success: bool
    participants: List[str] = field(default_factory=list)
    calls: List[ParsedCall] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def api_calls(self) -> List[ParsedCall]:
        return [call for call in self.calls if call.is_api_call]


@dataclass
class DiagramAnalysis:
    parse_status: ParseStatus
    parse_error: Optional[str]
    result: ParseResult


def _is_skippable(line: str) -> bool:
    return not line or line.startswith(COMMENT_PREFIX)


def _keyword(line: str, keywords: Sequence[str]) -> Optional[str]:
    """Return the block keyword a line opens with, if any."""
    for keyword in keywords:
        if line == keyword or line.startswith(keyword + " "):
            return keyword
    return None


def validate_diagram(text: str) -> ValidationResult:
    """
    Check the structure of diagram source without parsing messages.

    Empty text is valid (not authored yet). Otherwise the first meaningful
    line must be the header and every loop/alt/opt/par block must be closed.
    """
    if not text or not text.strip():
        return ValidationResult(valid=True)

    lines = [line.strip() for line in text.split("\n")]
    first = next((line for line in lines if not _is_skippable(line)), None)
    if first is None or _keyword(first, (HEADER,)) is None:
        return ValidationResult(valid=False, error=f'Must start with "{HEADER}"')

    open_blocks: List[str] = []
    for line in lines:
        if _is_skippable(line):
            continue
        if line == "end":
            if open_blocks:
                open_blocks.pop()
            continue
        kind = _keyword(line, BLOCK_KINDS)
        if kind:
            open_blocks.append(kind)

    for kind in BLOCK_KINDS:
        if kind in open_blocks:
            return ValidationResult(valid=False, error=f"Unclosed {kind} block")

    return ValidationResult(valid=True)


def _declared_name(match: re.Match[str]) -> str:
    # alias wins over the quoted or bare name
    return match.group(4) or match.group(2) or match.group(3)


def parse_diagram(text: str) -> ParseResult:
    """
    Parse diagram source into participants and ordered calls.

    Lines the platform does not emit are skipped rather than rejected;
    structural problems are reported by validate_diagram only.
    """
    if not text or not text.strip():
        return ParseResult(success=True)

    participants: List[str] = []
    calls: List[ParsedCall] = []

    def add_participant(name: str) -> None:
        if name not in participants:
            participants.append(name)

    for index, raw_line in enumerate(text.split("\n")):
        line = raw_line.strip()
        if _is_skippable(line):
            continue

        declaration = _DECLARATION.match(line)
        if declaration:
            add_participant(_declared_name(declaration))
            continue

        if _ACTIVATION.match(line) or _NOTE.match(line):
            continue

        message = _MESSAGE.match(line)
        if not message:
            continue

        source = message.group(1)
        # `A->>+B` / `A-->>-B` are activation shorthands on the receiver
        target = message.group(3).lstrip("+-")
        body = message.group(4).strip()
        call = ParsedCall(
            source=source,
            target=target,
            sequence=len(calls),
            line_number=index + 1,
            raw=line,
        )
        api = _API_CALL.match(body)
        if api:
            call.method = api.group(1)
            call.path = api.group(2)
            call.description = api.group(3)
        else:
            call.description = body
        calls.append(call)
        add_participant(source)
        add_participant(target)

    return ParseResult(success=True, participants=participants, calls=calls)


def analyze_diagram(text: str) -> DiagramAnalysis:
    """Validate then parse, deriving the parse status stored with a diagram."""
    if not text or not text.strip():
        return DiagramAnalysis(ParseStatus.PENDING, None, ParseResult(success=True))

    validation = validate_diagram(text)
    if not validation.valid:
        return DiagramAnalysis(
            ParseStatus.ERROR,
            validation.error or "Invalid diagram syntax",
            ParseResult(success=False, error=validation.error),
        )

    result = parse_diagram(text)
    if not result.success:
        return DiagramAnalysis(ParseStatus.ERROR, result.error or "Failed to parse diagram", result)
    return DiagramAnalysis(ParseStatus.SUCCESS, None, result)


def format_diagram(text: str) -> str:
    """Re-indent diagram source by block nesting; idempotent."""
    formatted = []
    level = 0
    for raw_line in text.split("\n"):
        line = raw_line.strip()
        if not line:
            formatted.append("")
            continue

        if line == "end" or _keyword(line, ("else",)):
            level = max(0, level - 1)

        formatted.append(INDENT_UNIT * level + line)

        if _keyword(line, INDENT_OPENERS):
            level += 1

    return "\n".join(formatted)


def generate_diagram(participants: Sequence[str], calls: Sequence[ParsedCall]) -> str:
    """Build minimal diagram source from parsed participants and calls."""
    lines = [HEADER]
    for participant in participants:
        if re.search(r"\s", participant):
            lines.append(f'{INDENT_UNIT}participant "{participant}"')
        else:
            lines.append(f"{INDENT_UNIT}participant {participant}")

    lines.append("")

    for call in calls:
        if call.is_api_call:
            message = f"{call.method} {call.path}"
            if call.description:
                message += f" - {call.description}"
            arrow = "->>"
        else:
            message = call.description or ""
            arrow = "->"
        lines.append(f"{INDENT_UNIT}{call.source}{arrow}{call.target}: {message}")

    return "\n".join(lines)
