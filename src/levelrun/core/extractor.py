"""Best-effort extraction of robot actions and printed output from source text.

Both scans are textual heuristics over the same input, not a parser. Anything
they do not recognise is skipped silently; compile correctness is the job of
an external syntax checker. A real tokenizer can replace either scan without
changing what `extract` returns.
"""

from __future__ import annotations

import ast
import bisect
import re
from dataclasses import dataclass
from typing import TypeAlias

from levelrun.core.types import Action, Direction, Grab, Move, NoOp, OpenDoor, Scan, Wait

STDOUT_PREFIX = "stdout: "
STDERR_PREFIX = "stderr: "
# widest integer type a solution can print; wider folds stay unresolved
MAX_FOLDED_BITS = 128

CALL_RE = re.compile(r"(?P<definition>\bfn\s+)?(?<!\w)(?P<name>move_bot|move|scan|grab|open_door|wait)\s*\(")
PRINT_RE = re.compile(r"(?<!\w)(?P<macro>eprintln|eprint|println|print)!\s*\(")
LET_RE = re.compile(r"\blet\s+(?:mut\s+)?(?P<name>[A-Za-z_]\w*)\s*(?::[^=;]+)?=\s*(?P<value>[^;]+);")
PLACEHOLDER_RE = re.compile(r"\{\{|\}\}|\{(?P<key>[A-Za-z_]\w*|\d+)?(?::[^{}]*)?\}")
DIRECTION_RE = re.compile(r'^(?:&\s*)?(?:Direction::)?"?(?P<word>[A-Za-z]+)"?$')

STDERR_MACROS = frozenset({"eprintln", "eprint"})
DIRECTION_WORDS: dict[str, Direction] = {
    "up": Direction.UP,
    "north": Direction.UP,
    "down": Direction.DOWN,
    "south": Direction.DOWN,
    "left": Direction.LEFT,
    "west": Direction.LEFT,
    "right": Direction.RIGHT,
    "east": Direction.RIGHT,
    "current": Direction.CURRENT,
    "here": Direction.CURRENT,
}
ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "0": "\0", "\\": "\\", '"': '"', "'": "'"}


@dataclass(frozen=True)
class _Span:
    kind: str  # comment|string
    start: int
    end: int


class _SourceMap:
    """Comment and string-literal spans of one source text."""

    def __init__(self, source: str) -> None:
        self.source = source
        self.spans = _lex(source)
        self._starts = [span.start for span in self.spans]
        self.code = self._mask_comments()

    def _mask_comments(self) -> str:
        chars = list(self.source)
        for span in self.spans:
            if span.kind != "comment":
                continue
            for index in range(span.start, span.end):
                if chars[index] != "\n":
                    chars[index] = " "
        return "".join(chars)

    def span_at(self, index: int) -> _Span | None:
        position = bisect.bisect_right(self._starts, index) - 1
        if position < 0:
            return None
        span = self.spans[position]
        if span.start <= index < span.end:
            return span
        return None

    def in_code(self, index: int) -> bool:
        return self.span_at(index) is None

    def closing_paren(self, open_index: int) -> int | None:
        """Index of the `)` matching the `(` at open_index, skipping literals."""
        depth = 0
        index = open_index
        while index < len(self.source):
            span = self.span_at(index)
            if span is not None:
                index = span.end
                continue
            ch = self.source[index]
            if ch in "([{":
                depth += 1
            elif ch in ")]}":
                depth -= 1
                if depth == 0:
                    return index
            index += 1
        return None


def _lex(source: str) -> list[_Span]:
    spans: list[_Span] = []
    index = 0
    length = len(source)
    while index < length:
        ch = source[index]
        nxt = source[index + 1] if index + 1 < length else ""
        if ch == "/" and nxt == "/":
            end = source.find("\n", index)
            end = length if end == -1 else end
            spans.append(_Span("comment", index, end))
            index = end
        elif ch == "/" and nxt == "*":
            end = source.find("*/", index + 2)
            end = length if end == -1 else end + 2
            spans.append(_Span("comment", index, end))
            index = end
        elif ch == "r" and nxt in ('"', "#") and (index == 0 or not _is_word(source[index - 1])):
            end = _raw_string_end(source, index)
            if end is None:
                index += 1
                continue
            spans.append(_Span("string", index, end))
            index = end
        elif ch == '"':
            end = _string_end(source, index)
            spans.append(_Span("string", index, end))
            index = end
        elif ch == "'":
            end = _char_end(source, index)
            if end is not None:
                spans.append(_Span("string", index, end))
                index = end
            else:
                index += 1
        else:
            index += 1
    return spans


def _is_word(ch: str) -> bool:
    return ch.isalnum() or ch == "_"


def _string_end(source: str, start: int) -> int:
    index = start + 1
    while index < len(source):
        ch = source[index]
        if ch == "\\":
            index += 2
            continue
        if ch == '"':
            return index + 1
        index += 1
    return len(source)


def _raw_string_end(source: str, start: int) -> int | None:
    index = start + 1
    hashes = 0
    while index < len(source) and source[index] == "#":
        hashes += 1
        index += 1
    if index >= len(source) or source[index] != '"':
        return None
    terminator = '"' + "#" * hashes
    end = source.find(terminator, index + 1)
    return len(source) if end == -1 else end + len(terminator)


def _char_end(source: str, start: int) -> int | None:
    # 'x' or '\n'; a lone quote (lifetime) is not a literal
    if start + 2 < len(source) and source[start + 1] != "\\" and source[start + 2] == "'":
        return start + 3
    if start + 3 < len(source) and source[start + 1] == "\\" and source[start + 3] == "'":
        return start + 4
    return None


def extract(source: str) -> tuple[list[Action], list[str]]:
    """Extract ordered actions and ordered print events from source text."""

    source_map = _SourceMap(source)
    return _scan_actions(source_map), _scan_prints(source_map)


def extract_actions(source: str) -> list[Action]:
    return _scan_actions(_SourceMap(source))


def extract_print_events(source: str) -> list[str]:
    return _scan_prints(_SourceMap(source))


def parse_direction(raw: str) -> Direction | None:
    match = DIRECTION_RE.match(raw.strip())
    if match is None:
        return None
    return DIRECTION_WORDS.get(match.group("word").casefold())


def _scan_actions(source_map: _SourceMap) -> list[Action]:
    actions: list[Action] = []
    for match in CALL_RE.finditer(source_map.code):
        if match.group("definition") or not source_map.in_code(match.start("name")):
            continue
        open_index = match.end() - 1
        close_index = source_map.closing_paren(open_index)
        if close_index is None:
            continue
        args = source_map.source[open_index + 1 : close_index].strip()
        action = _build_action(match.group("name"), args)
        if action is not None:
            actions.append(action)
    return actions


def _build_action(name: str, args: str) -> Action | None:
    if name in ("move", "move_bot"):
        direction = parse_direction(args)
        if direction is None or direction is Direction.CURRENT:
            return NoOp(raw=f"{name}({args})")
        return Move(direction)
    if name == "scan":
        direction = parse_direction(args) if args else Direction.CURRENT
        if direction is None:
            return NoOp(raw=f"{name}({args})")
        return Scan(direction)
    if name == "grab":
        return Grab()
    if name == "open_door":
        return OpenDoor()
    if name == "wait":
        return Wait()
    return None


def _scan_prints(source_map: _SourceMap) -> list[str]:
    bindings = _collect_bindings(source_map)
    events: list[str] = []
    for match in PRINT_RE.finditer(source_map.code):
        if not source_map.in_code(match.start("macro")):
            continue
        open_index = match.end() - 1
        close_index = source_map.closing_paren(open_index)
        if close_index is None:
            continue
        args = _split_args(source_map.source[open_index + 1 : close_index])
        text = _render(args, bindings, match.start())
        if text is None:
            continue
        prefix = STDERR_PREFIX if match.group("macro") in STDERR_MACROS else STDOUT_PREFIX
        events.append(prefix + text)
    return events


def _split_args(text: str) -> list[str]:
    if not text.strip():
        return []
    inner = _SourceMap(text)
    parts: list[str] = []
    depth = 0
    current_start = 0
    index = 0
    while index < len(text):
        span = inner.span_at(index)
        if span is not None:
            index = span.end
            continue
        ch = text[index]
        if ch in "([{":
            depth += 1
        elif ch in ")]}":
            depth -= 1
        elif ch == "," and depth == 0:
            parts.append(text[current_start:index].strip())
            current_start = index + 1
        index += 1
    tail = text[current_start:].strip()
    if tail:
        parts.append(tail)
    return parts


_Bindings: TypeAlias = dict[str, list[tuple[int, str]]]


def _collect_bindings(source_map: _SourceMap) -> _Bindings:
    bindings: _Bindings = {}
    for match in LET_RE.finditer(source_map.code):
        if not source_map.in_code(match.start()):
            continue
        value = _evaluate(match.group("value"), bindings, match.start())
        if value is None:
            continue
        bindings.setdefault(match.group("name"), []).append((match.start(), value))
    return bindings


def _lookup(bindings: _Bindings, name: str, before: int) -> str | None:
    latest: str | None = None
    for position, value in bindings.get(name, []):
        if position >= before:
            break
        latest = value
    return latest


def _render(args: list[str], bindings: _Bindings, at: int) -> str | None:
    if not args:
        return ""
    template = _string_literal(args[0])
    if template is None:
        return None

    positional: list[str] = []
    named: dict[str, str] = {}
    for arg in args[1:]:
        key, sep, expr = arg.partition("=")
        if sep and re.fullmatch(r"\s*[A-Za-z_]\w*\s*", key) and not expr.startswith("="):
            named[key.strip()] = expr.strip()
        else:
            positional.append(arg)

    next_positional = 0

    def substitute(match: re.Match[str]) -> str:
        nonlocal next_positional
        token = match.group(0)
        if token == "{{":
            return "{"
        if token == "}}":
            return "}"
        key = match.group("key")
        expr: str | None
        if key is None:
            expr = positional[next_positional] if next_positional < len(positional) else None
            next_positional += 1
        elif key.isdigit():
            index = int(key)
            expr = positional[index] if index < len(positional) else None
        else:
            expr = named.get(key, key)
        if expr is None:
            return token
        value = _evaluate(expr, bindings, at)
        return token if value is None else value

    return PLACEHOLDER_RE.sub(substitute, template)


def _string_literal(expr: str) -> str | None:
    expr = expr.strip()
    if expr.startswith("r"):
        raw = re.fullmatch(r'r(#*)"(.*)"\1', expr, flags=re.DOTALL)
        return raw.group(2) if raw else None
    if len(expr) < 2 or not (expr.startswith('"') and expr.endswith('"')):
        return None
    return _unescape(expr[1:-1])


def _unescape(body: str) -> str:
    out: list[str] = []
    index = 0
    while index < len(body):
        ch = body[index]
        if ch != "\\" or index + 1 >= len(body):
            out.append(ch)
            index += 1
            continue
        code = body[index + 1]
        if code in ESCAPES:
            out.append(ESCAPES[code])
            index += 2
        elif code == "u":
            unicode_escape = re.match(r"u\{([0-9a-fA-F]{1,6})\}", body[index + 1 :])
            if unicode_escape is None:
                out.append(ch)
                index += 1
                continue
            out.append(chr(int(unicode_escape.group(1), 16)))
            index += 1 + unicode_escape.end()
        elif code == "\n":
            # line continuation swallows leading whitespace of the next line
            index += 2
            while index < len(body) and body[index] in " \t":
                index += 1
        else:
            out.append(ch + code)
            index += 2
    return "".join(out)


def _evaluate(expr: str, bindings: _Bindings, at: int) -> str | None:
    """Render a literal, a bound name, or integer arithmetic over those."""

    expr = expr.strip().lstrip("&").strip()
    expr = re.sub(r"\.(?:to_string|to_owned|clone)\(\)$", "", expr)
    expr = re.sub(r"^String::from\((.*)\)$", r"\1", expr, flags=re.DOTALL).strip()
    literal = _string_literal(expr)
    if literal is not None:
        return literal
    if expr in ("true", "false"):
        return expr
    if re.fullmatch(r"[A-Za-z_]\w*", expr):
        return _lookup(bindings, expr, at)
    number = re.fullmatch(r"(-?\d+(?:\.\d+)?)(?:_?[iuf](?:8|16|32|64|128|size))?", expr)
    if number:
        return number.group(1)
    return _arithmetic(expr, bindings, at)


def _arithmetic(expr: str, bindings: _Bindings, at: int) -> str | None:
    try:
        tree = ast.parse(expr, mode="eval")
        value = _fold(tree.body, bindings, at)
    except (SyntaxError, ValueError, RecursionError, MemoryError):
        return None
    return None if value is None else str(value)


def _bounded(value: int | None) -> int | None:
    if value is None or value.bit_length() > MAX_FOLDED_BITS:
        return None
    return value


def _fold(node: ast.AST, bindings: _Bindings, at: int) -> int | None:
    if isinstance(node, ast.Constant) and type(node.value) is int:
        return _bounded(node.value)
    if isinstance(node, ast.Name):
        bound = _lookup(bindings, node.id, at)
        if bound is None or not re.fullmatch(r"-?\d+", bound):
            return None
        return _bounded(int(bound))
    if isinstance(node, ast.UnaryOp) and isinstance(node.op, ast.USub):
        operand = _fold(node.operand, bindings, at)
        return None if operand is None else -operand
    if isinstance(node, ast.BinOp) and isinstance(node.op, (ast.Add, ast.Sub, ast.Mult)):
        left = _fold(node.left, bindings, at)
        right = _fold(node.right, bindings, at)
        if left is None or right is None:
            return None
        if isinstance(node.op, ast.Add):
            return _bounded(left + right)
        if isinstance(node.op, ast.Sub):
            return _bounded(left - right)
        return _bounded(left * right)
    return None
