"""
json_autocorrect.py
Schema-free auto-correction of broken JSON text.

═══════════════════════════════════════════════════════════════════════════════
Pipeline
═══════════════════════════════════════════════════════════════════════════════

Every call runs four stages, strictly left to right, one pass each:

1. **tokenize** : lenient lexer.  Unterminated strings are kept, truncated
   literals are completed (``tr`` -> ``true``, ``fals`` -> ``false``,
   ``nul`` -> ``null``) and bare identifiers become strings.

2. **fix_tokens** : bracket balancer.  Closers that do not match the open
   container are replaced by the expected one, stray closers are dropped and
   everything still open at end of input is closed.

3. **parse** : forgiving parser.  Missing commas and colons are tolerated,
   stray tokens between object members are skipped, trailing commas vanish.

4. **serialize** : compact or pretty JSON via orjson.

The corrector never raises: the worst possible output is ``{}`` (nothing
recognisable in the input) or ``null`` (the repaired tree could not be
encoded).

Examples
    {"key":42                 -> {"key":42}
    {"key":[1,2,3}            -> {"key":[1,2,3]}
    {"key1":42 "key2":true}   -> {"key1":42,"key2":true}
    {"flag":tr}               -> {"flag":true}
    {"outer":{"inner":[1,2,3  -> {"outer":{"inner":[1,2,3]}}

Notes
- String escapes are NOT decoded: ``\\n`` inside a string is kept as the two
  characters backslash + ``n`` and re-escaped on output.  Re-correcting
  output that contains escapes therefore doubles the backslashes.
- Arrays end at the first token that cannot start a value; objects skip such
  tokens and keep going.  The asymmetry is intentional.

Public API
- correct(text: str) -> str
- correct_pretty(text: str) -> str
- correct_value(text: str) -> Any
- tokenize / fix_tokens / parse / serialize / serialize_pretty
"""

from __future__ import annotations

import enum
import json
import os as _os
import re
import sys
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import orjson

# Debug tracing (disabled by default). Enable by setting JSON_AUTOCORRECT_DEBUG=1
_DEBUG = _os.environ.get("JSON_AUTOCORRECT_DEBUG", "").strip() not in (
    "",
    "0",
    "false",
    "False",
)


def _trace(stage: str, detail: str) -> None:
    if _DEBUG:
        print(f"  + {stage}: {detail}", file=sys.stderr)


# -----------------------------
# Tokens
# -----------------------------
class TokenKind(enum.Enum):
    LBRACE = "{"
    RBRACE = "}"
    LBRACKET = "["
    RBRACKET = "]"
    COLON = ":"
    COMMA = ","
    STRING = "STRING"
    NUMBER = "NUMBER"
    TRUE = "TRUE"
    FALSE = "FALSE"
    NULL = "NULL"
    EOF = "EOF"
    UNKNOWN = "UNKNOWN"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: Optional[str] = None


_STRUCTURAL: Dict[str, TokenKind] = {
    "{": TokenKind.LBRACE,
    "}": TokenKind.RBRACE,
    "[": TokenKind.LBRACKET,
    "]": TokenKind.RBRACKET,
    ":": TokenKind.COLON,
    ",": TokenKind.COMMA,
}

_LITERALS = (
    ("true", Token(TokenKind.TRUE, "true")),
    ("false", Token(TokenKind.FALSE, "false")),
    ("null", Token(TokenKind.NULL, "null")),
)

_CLOSER_FOR = {
    TokenKind.LBRACE: TokenKind.RBRACE,
    TokenKind.LBRACKET: TokenKind.RBRACKET,
}

_VALUE_START = frozenset({
    TokenKind.LBRACE,
    TokenKind.LBRACKET,
    TokenKind.STRING,
    TokenKind.NUMBER,
    TokenKind.TRUE,
    TokenKind.FALSE,
    TokenKind.NULL,
})

EOF_TOKEN = Token(TokenKind.EOF)


# -----------------------------
# Tokenizer
# -----------------------------
_WHITESPACE = frozenset(" \t\r\n\f\v")
_RE_LITERAL_RUN = re.compile(r"[A-Za-z0-9-][A-Za-z0-9+.-]*")
_RE_NUMBER = re.compile(r"-?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?", re.ASCII)
_RE_IDENT = re.compile(r"[A-Za-z_]\w*", re.ASCII)


def _classify_literal(raw: str) -> Token:
    """Turn a literal run into TRUE/FALSE/NULL, NUMBER, STRING or UNKNOWN."""
    if len(raw) <= 5:
        low = raw.lower()
        for full, token in _LITERALS:
            # partial literals: t, tr, TRU, fals, nul ...
            if low[0] == full[0] and full.startswith(low):
                return token

    if _RE_NUMBER.fullmatch(raw):
        return Token(TokenKind.NUMBER, raw)

    # bare identifiers are read as unquoted strings
    if _RE_IDENT.fullmatch(raw):
        return Token(TokenKind.STRING, raw)

    return Token(TokenKind.UNKNOWN, raw)


def _scan_string(text: str, i: int) -> Tuple[str, int]:
    """Read a string body starting just after the opening quote.

    Returns the raw body and the index after the closing quote (or the end of
    input for a truncated string).  Escape pairs are copied untouched.
    """
    buf: List[str] = []
    n = len(text)
    while i < n:
        c = text[i]
        if c == '"':
            return "".join(buf), i + 1
        if c == "\\":
            if i + 1 >= n:
                # dangling backslash at end of input
                return "".join(buf), n
            buf.append(text[i : i + 2])
            i += 2
            continue
        buf.append(c)
        i += 1
    return "".join(buf), n


def tokenize(text: str) -> List[Token]:
    toks: List[Token] = []
    i = 0
    n = len(text)

    while i < n:
        c = text[i]
        if c in _WHITESPACE:
            i += 1
            continue

        kind = _STRUCTURAL.get(c)
        if kind is not None:
            toks.append(Token(kind, c))
            i += 1
            continue

        if c == '"':
            body, i = _scan_string(text, i + 1)
            toks.append(Token(TokenKind.STRING, body))
            continue

        m = _RE_LITERAL_RUN.match(text, i)
        if m:
            toks.append(_classify_literal(m.group(0)))
            i = m.end()
            continue

        # anything else is noise
        i += 1

    toks.append(EOF_TOKEN)
    return toks


# -----------------------------
# Token-based bracket balancing
# -----------------------------
def _closing_token(kind: TokenKind) -> Token:
    return Token(kind, kind.value)


def fix_tokens(tokens: Sequence[Token]) -> List[Token]:
    """Balance braces and brackets in a token list.

    - a closer matching the innermost open container passes through;
    - a mismatched closer first closes the innermost container, then is kept
      only if it matches the next one out, otherwise dropped;
    - a closer with nothing open is dropped;
    - containers still open at the end are closed innermost first, and EOF is
      moved after them.
    """
    fixed: List[Token] = []
    stack: List[TokenKind] = []
    eof: Optional[Token] = None
    synthesized = 0

    for tok in tokens:
        kind = tok.kind

        if kind is TokenKind.EOF:
            eof = tok
            continue

        if kind in _CLOSER_FOR:
            fixed.append(tok)
            stack.append(_CLOSER_FOR[kind])
            continue

        if kind in (TokenKind.RBRACE, TokenKind.RBRACKET):
            if not stack:
                continue
            expected = stack[-1]
            if kind is expected:
                stack.pop()
                fixed.append(tok)
                continue
            fixed.append(_closing_token(expected))
            stack.pop()
            synthesized += 1
            if stack and kind is stack[-1]:
                stack.pop()
                fixed.append(tok)
            continue

        fixed.append(tok)

    while stack:
        fixed.append(_closing_token(stack.pop()))
        synthesized += 1

    fixed.append(eof if eof is not None else EOF_TOKEN)
    if synthesized:
        _trace("fix_tokens", f"synthesized {synthesized} closer(s)")
    return fixed


# -----------------------------
# Parser
# -----------------------------
class _NoValue:
    __slots__ = ()

    def __repr__(self) -> str:
        return "NO_VALUE"


# "Nothing parsed here" -- distinct from JSON null (None).
NO_VALUE = _NoValue()

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


@dataclass
class ParseResult:
    value: Any
    index: int


class _Frame:
    """One open container on the parser's explicit stack."""

    __slots__ = ("container", "key", "expect_comma")

    def __init__(self, kind: TokenKind) -> None:
        self.container: Union[Dict[str, Any], List[Any]] = (
            {} if kind is TokenKind.LBRACE else []
        )
        self.key: Optional[str] = None
        self.expect_comma = False


def _parse_number(text: str) -> Any:
    try:
        if "." in text or "e" in text or "E" in text:
            num = float(text)
            if num in (float("inf"), float("-inf")):
                return text
            return num
        num = int(text)
    except ValueError:
        return text
    if not _INT64_MIN <= num <= _INT64_MAX:
        return text
    return num


def _parse_scalar(tokens: Sequence[Token], idx: int) -> ParseResult:
    if idx >= len(tokens):
        return ParseResult(NO_VALUE, idx)

    tok = tokens[idx]
    kind = tok.kind
    if kind is TokenKind.STRING:
        return ParseResult(tok.text or "", idx + 1)
    if kind is TokenKind.NUMBER:
        return ParseResult(_parse_number(tok.text or "0"), idx + 1)
    if kind is TokenKind.TRUE:
        return ParseResult(True, idx + 1)
    if kind is TokenKind.FALSE:
        return ParseResult(False, idx + 1)
    if kind is TokenKind.NULL:
        return ParseResult(None, idx + 1)
    if kind in (TokenKind.RBRACE, TokenKind.RBRACKET, TokenKind.EOF):
        return ParseResult(NO_VALUE, idx)
    # ':' ',' and unknown runs: skip one token
    return ParseResult(NO_VALUE, idx + 1)


def _parse_container(tokens: Sequence[Token], start: int) -> ParseResult:
    stack: List[_Frame] = [_Frame(tokens[start].kind)]
    idx = start + 1
    size = len(tokens)

    while True:
        frame = stack[-1]
        closed = False

        if idx >= size:
            closed = True
        elif isinstance(frame.container, dict):
            tok = tokens[idx]
            if tok.kind in (TokenKind.RBRACE, TokenKind.EOF):
                idx += 1
                closed = True
            elif frame.expect_comma and tok.kind is TokenKind.COMMA:
                idx += 1
                frame.expect_comma = False
            elif tok.kind is TokenKind.STRING:
                # a missing comma before this key is simply tolerated
                key = tok.text or ""
                idx += 1
                frame.expect_comma = True
                if idx < size and tokens[idx].kind is TokenKind.COLON:
                    idx += 1
                    if idx < size and tokens[idx].kind in _CLOSER_FOR:
                        frame.key = key
                        stack.append(_Frame(tokens[idx].kind))
                        idx += 1
                        continue
                    result = _parse_scalar(tokens, idx)
                    if result.value is not NO_VALUE:
                        frame.container[key] = result.value
                    idx = result.index
                else:
                    frame.container[key] = None
            else:
                frame.expect_comma = False
                idx += 1
        else:
            tok = tokens[idx]
            if tok.kind in (TokenKind.RBRACKET, TokenKind.EOF):
                idx += 1
                closed = True
            elif frame.expect_comma and tok.kind is TokenKind.COMMA:
                idx += 1
                frame.expect_comma = False
            elif frame.expect_comma and tok.kind not in _VALUE_START:
                idx += 1
            elif tok.kind not in _VALUE_START:
                # unlike objects, arrays stop here and leave the token
                closed = True
            else:
                frame.expect_comma = True
                if tok.kind in _CLOSER_FOR:
                    stack.append(_Frame(tok.kind))
                    idx += 1
                    continue
                result = _parse_scalar(tokens, idx)
                frame.container.append(result.value)
                idx = result.index

        if not closed:
            continue

        value = stack.pop().container
        if not stack:
            return ParseResult(value, idx)
        parent = stack[-1]
        if isinstance(parent.container, dict):
            parent.container[parent.key or ""] = value
            parent.key = None
        else:
            parent.container.append(value)


def parse(tokens: Sequence[Token], index: int = 0) -> ParseResult:
    """Parse one value starting at ``tokens[index]``.

    Never raises.  ``ParseResult.value`` is ``NO_VALUE`` when there is no
    value at ``index`` (closer, EOF or a stray separator).
    """
    if index < len(tokens) and tokens[index].kind in _CLOSER_FOR:
        return _parse_container(tokens, index)
    return _parse_scalar(tokens, index)


# -----------------------------
# Serialization
# -----------------------------
def _dumps(value: Any, pretty: bool = False) -> str:
    option = orjson.OPT_INDENT_2 if pretty else None
    try:
        return orjson.dumps(value, option=option).decode("utf-8")
    except (orjson.JSONEncodeError, TypeError, ValueError) as exc:
        # orjson caps nesting depth; the stdlib encoder does not
        _trace("serialize", f"orjson failed ({exc}), retrying with json")

    if pretty:
        kwargs: Dict[str, Any] = {"indent": 2}
    else:
        kwargs = {"separators": (",", ":")}
    try:
        text = json.dumps(value, ensure_ascii=False, **kwargs)
        # lone surrogates survive json.dumps but are not valid UTF-8
        text.encode("utf-8")
    except (TypeError, ValueError, RecursionError) as exc:
        _trace("serialize", f"falling back to null ({exc})")
        return "null"
    return text


def serialize(value: Any) -> str:
    return _dumps(value)


def serialize_pretty(value: Any) -> str:
    return _dumps(value, pretty=True)


# -----------------------------
# Public API
# -----------------------------
def correct_value(text: str) -> Any:
    """
    Repair JSON-ish text and return the parsed Python object.

    Parameters
    ----------
    text : Possibly truncated or malformed JSON text.

    Returns
    -------
    dict / list / str / int / float / bool / None.  An input with no
    recognisable value yields an empty dict.
    """
    toks = tokenize(text)
    _trace("tokenize", f"{len(toks)} token(s)")
    fixed = fix_tokens(toks)
    result = parse(fixed, 0)
    if result.value is NO_VALUE:
        _trace("parse", "no top-level value, using {}")
        return {}
    return result.value


def correct(text: str) -> str:
    """Repair JSON-ish text into compact, strictly valid JSON."""
    return serialize(correct_value(text))


def correct_pretty(text: str) -> str:
    """Like :func:`correct` but indented with two spaces."""
    return serialize_pretty(correct_value(text))


# =============================
# Self-check
# =============================


def _run_tests() -> int:
    RED = "\033[91m"
    GREEN = "\033[92m"
    CYAN = "\033[96m"
    BOLD = "\033[1m"
    DIM = "\033[2m"
    RESET = "\033[0m"

    tests = [
        ("TRUNC-01", "Missing closing brace", '{"key":42', '{"key":42}'),
        ("TRUNC-02", "Unterminated string", '{"title":"Hello', '{"title":"Hello"}'),
        (
            "TRUNC-03",
            "Nested truncation",
            '{"outer":{"inner":[1,2,3',
            '{"outer":{"inner":[1,2,3]}}',
        ),
        (
            "TRUNC-04",
            "Unfinished key",
            '{"key": "test", "star, ',
            '{"key":"test","star, ":null}',
        ),
        ("BRACK-01", "Wrong closer for array", '{"key":[1,2,3}', '{"key":[1,2,3]}'),
        ("BRACK-02", "Extra opening brace", '{{"name": "Test"}', '{"name":"Test"}'),
        ("BRACK-03", "Stray closers", '}]{"a":1}}', '{"a":1}'),
        (
            "SEP-01",
            "Missing comma",
            '{"key1":42 "key2":true}',
            '{"key1":42,"key2":true}',
        ),
        (
            "SEP-02",
            "Trailing comma",
            '{"key1":1,"key2":2,}',
            '{"key1":1,"key2":2}',
        ),
        ("SEP-03", "Missing colon", '{"a" "b":1}', '{"a":null,"b":1}'),
        ("LIT-01", "Partial true", '{"flag":tr}', '{"flag":true}'),
        ("LIT-02", "Partial false", '{"flag":fals}', '{"flag":false}'),
        ("LIT-03", "Partial null", '{"value":nul}', '{"value":null}'),
        (
            "LIT-04",
            "Several partial literals",
            '{"flag": tr, "value": nul}',
            '{"flag":true,"value":null}',
        ),
        ("LIT-05", "Bare identifier", "{status: active}", '{"status":"active"}'),
        ("EMPTY-01", "Empty input", "", "{}"),
        ("EMPTY-02", "Whitespace only", "   \n\t ", "{}"),
    ]

    failed: List[str] = []

    print(f"\n{BOLD}JSON auto-correct -- {len(tests)} cases{RESET}\n")

    for id_, desc, broken, expected in tests:
        print(f"{BOLD}{CYAN}{id_}{RESET}: {desc}")
        print(f"  {DIM}Input: {broken!r}{RESET}")

        result = correct(broken)
        try:
            json.loads(result)
            valid = True
        except ValueError:
            valid = False

        if valid and result == expected:
            print(f"  {GREEN}+ PASS{RESET}  -> {result}")
        else:
            reason = "mismatch" if valid else "invalid JSON"
            print(f"  {RED}- FAIL ({reason}) got {result}, expected {expected}{RESET}")
            failed.append(id_)

    color = RED if failed else GREEN
    print(
        f"\n{BOLD}TOTAL:{RESET} {color}{len(tests) - len(failed)}/{len(tests)} passed"
        f"{RESET}"
    )
    if failed:
        print(f"{RED}Failed: {', '.join(failed)}{RESET}")

    return len(failed)


if __name__ == "__main__":
    sys.exit(1 if _run_tests() else 0)
