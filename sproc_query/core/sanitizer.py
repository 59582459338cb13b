"""SQL text helpers for procedure calls.

* validate_procedure_name / validate_parameter_name guard the identifiers
  that adapters interpolate into call statements.
* split_statements turns a procedure script into its statements, ignoring
  semicolons inside literals, quoted identifiers and comments.
"""

from __future__ import annotations

import re

from sproc_query.core.exceptions import InvalidProcedureNameError, ScriptParseError

# One or more dot-separated identifiers, each plain or double-quoted
_IDENTIFIER = r'(?:[A-Za-z_][\w$#]*|"[^"]+")'
_QUALIFIED_NAME = re.compile(rf"^{_IDENTIFIER}(?:\.{_IDENTIFIER})*$")
_PARAMETER_NAME = re.compile(r"^[A-Za-z_]\w*$")


# ---------------------------------------------------------------------------
# Internal tokenizer
# ---------------------------------------------------------------------------


def _scan_quoted(sql: str, start: int, quote: str) -> int:
    """Return the index just past the quoted token opening at *start*.

    Doubled quotes are escapes.

    Raises:
        ScriptParseError: If the token is unterminated.
    """
    n = len(sql)
    j = start + 1
    while j < n:
        if sql[j] == quote:
            j += 1
            if j >= n or sql[j] != quote:
                return j
        j += 1
    raise ScriptParseError(f"Unterminated {quote} quoted token in SQL")


def _tokenize(sql: str) -> list[tuple[str, str]]:
    """Split *sql* into ``('string', …)``, ``('identifier', …)``, and ``('code', …)`` tokens.

    String literals (single-quoted, with ``''`` escapes) are preserved as-is.
    Identifiers (double-quoted for PostgreSQL/MySQL ANSI_QUOTES, backtick-quoted
    for MySQL) are also preserved to avoid splitting on syntax inside them.
    Everything else is a ``'code'`` token.

    Raises:
        ScriptParseError: If an unterminated string literal or identifier is detected.
    """
    tokens: list[tuple[str, str]] = []
    i = 0
    n = len(sql)
    last = 0

    while i < n:
        ch = sql[i]
        if ch in ("'", '"', "`"):
            if i > last:
                tokens.append(("code", sql[last:i]))
            j = _scan_quoted(sql, i, ch)
            tokens.append(("string" if ch == "'" else "identifier", sql[i:j]))
            last = j
            i = j
        else:
            i += 1

    if last < n:
        tokens.append(("code", sql[last:]))

    return tokens


def _strip_comments_in_code(code: str) -> str:
    """Remove ``--`` line comments and ``/* */`` block comments from a code segment."""
    result: list[str] = []
    i = 0
    n = len(code)

    while i < n:
        if code[i : i + 2] == "--":
            j = code.find("\n", i)
            if j == -1:
                break
            result.append("\n")
            i = j + 1
        elif code[i : i + 2] == "/*":
            j = code.find("*/", i + 2)
            if j == -1:
                break
            result.append(" ")
            i = j + 2
        else:
            result.append(code[i])
            i += 1

    return "".join(result)


# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------


def strip_comments(sql: str) -> str:
    """Remove SQL comments while preserving string literals and identifiers."""
    parts: list[str] = []
    for kind, content in _tokenize(sql):
        if kind in ("string", "identifier"):
            parts.append(content)
        else:
            parts.append(_strip_comments_in_code(content))
    return "".join(parts)


def split_statements(script: str) -> list[str]:
    """Split a script on top-level semicolons, dropping comments and empty statements."""
    statements: list[str] = []
    current: list[str] = []
    for kind, content in _tokenize(strip_comments(script)):
        if kind != "code":
            current.append(content)
            continue
        pieces = content.split(";")
        current.append(pieces[0])
        for piece in pieces[1:]:
            statements.append("".join(current))
            current = [piece]
    statements.append("".join(current))
    return [s.strip() for s in statements if s.strip()]


def validate_procedure_name(procedure_name: str) -> str:
    """Return *procedure_name* if it is a plain (optionally qualified) identifier.

    Raises:
        InvalidProcedureNameError: For anything else, including whitespace,
            statement separators and comment markers.
    """
    if not _QUALIFIED_NAME.fullmatch(procedure_name):
        raise InvalidProcedureNameError(procedure_name)
    return procedure_name


def validate_parameter_name(parameter_name: str) -> str:
    """Return *parameter_name* if it is a plain identifier.

    Raises:
        InvalidProcedureNameError: If the name could not be interpolated safely.
    """
    if not _PARAMETER_NAME.fullmatch(parameter_name):
        raise InvalidProcedureNameError(parameter_name)
    return parameter_name
