"""Reader and writer for flat ``key=value`` properties files.

Format:
- ``#`` and ``!`` start comment lines; blank lines are ignored
- a line ending in an odd number of backslashes continues on the next line,
  whose leading whitespace is dropped
- the key ends at the first unescaped ``=``, ``:`` or whitespace
- escapes: ``\\t \\n \\r \\f \\uXXXX``; any other ``\\c`` stands for ``c``;
  an escaped UTF-16 surrogate pair decodes to one character

Written files are plain ASCII: characters outside printable ASCII are
written as ``\\uXXXX``, using surrogate pairs above U+FFFF.

Files are read in full and written in full, never appended.
"""

import os
import re
import shutil
import tempfile
from collections.abc import Iterator, Mapping
from datetime import UTC, datetime
from pathlib import Path

_WHITESPACE = " \t\f"
_LINE_BREAK = re.compile(r"\r\n|\r|\n")
_SIMPLE_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}
_SURROGATE = re.compile("[\ud800-\udfff]")
_ESCAPE_OUT = {
    "\\": "\\\\",
    "\t": "\\t",
    "\n": "\\n",
    "\r": "\\r",
    "\f": "\\f",
    "=": "\\=",
    ":": "\\:",
    "#": "\\#",
    "!": "\\!",
}


def _continues(line: str) -> bool:
    trailing = len(line) - len(line.rstrip("\\"))
    return trailing % 2 == 1


def _logical_lines(text: str) -> Iterator[str]:
    pending: str | None = None
    for natural in _LINE_BREAK.split(text):
        stripped = natural.lstrip(_WHITESPACE)
        if pending is None:
            if not stripped or stripped[0] in "#!":
                continue
            current = stripped
        else:
            current = pending + stripped
        if _continues(current):
            pending = current[:-1]
        else:
            pending = None
            yield current
    if pending is not None:
        yield pending


def _unescape(text: str) -> str:
    out: list[str] = []
    i = 0
    while i < len(text):
        char = text[i]
        i += 1
        if char != "\\" or i == len(text):
            out.append(char)
            continue
        char = text[i]
        i += 1
        if char == "u":
            digits = text[i : i + 4]
            if len(digits) != 4 or not all(c in "0123456789abcdefABCDEF" for c in digits):
                raise ValueError(f"Malformed \\uxxxx encoding: \\u{digits}")
            out.append(chr(int(digits, 16)))
            i += 4
        else:
            out.append(_SIMPLE_ESCAPES.get(char, char))
    return _join_surrogates("".join(out))


def _join_surrogates(text: str) -> str:
    # Unpaired surrogates are kept as they are.
    if not _SURROGATE.search(text):
        return text
    return text.encode("utf-16-le", "surrogatepass").decode("utf-16-le", "surrogatepass")


def _split_entry(line: str) -> tuple[str, str]:
    end = 0
    escaped = False
    while end < len(line):
        char = line[end]
        if escaped:
            escaped = False
        elif char == "\\":
            escaped = True
        elif char in "=:" or char in _WHITESPACE:
            break
        end += 1

    rest = line[end:].lstrip(_WHITESPACE)
    if rest and rest[0] in "=:":
        rest = rest[1:].lstrip(_WHITESPACE)
    return _unescape(line[:end]), _unescape(rest)


def parse(text: str) -> dict[str, str]:
    """Parse properties text into a flat key to value table.

    Later entries win over earlier ones with the same key.

    Raises:
        ValueError: If a unicode escape is malformed
    """
    return dict(_split_entry(line) for line in _logical_lines(text))


def load(path: Path) -> dict[str, str]:
    """Read and parse a UTF-8 properties file.

    Raises:
        OSError: If the file cannot be read
        ValueError: If the content cannot be decoded or parsed
    """
    return parse(path.read_text(encoding="utf-8"))


def _escape(text: str, *, is_key: bool) -> str:
    out: list[str] = []
    for index, char in enumerate(text):
        if char == " ":
            out.append("\\ " if is_key or index == 0 else " ")
        elif char in _ESCAPE_OUT:
            out.append(_ESCAPE_OUT[char])
        elif ord(char) > 0xFFFF:
            high, low = divmod(ord(char) - 0x10000, 0x400)
            out.append(f"\\u{0xD800 + high:04X}\\u{0xDC00 + low:04X}")
        elif ord(char) < 0x20 or ord(char) > 0x7E:
            out.append(f"\\u{ord(char):04X}")
        else:
            out.append(char)
    return "".join(out)


def dump(properties: Mapping[str, str], comment: str | None = None) -> str:
    """Render a table as properties text, keys sorted.

    A timestamp comment is always written first, preceded by ``comment``
    when one is given.
    """
    lines: list[str] = []
    if comment:
        lines.extend(f"#{part}" for part in _LINE_BREAK.split(comment))
    lines.append("#" + datetime.now(UTC).strftime("%a %b %d %H:%M:%S %Z %Y"))
    for key in sorted(properties):
        lines.append(f"{_escape(key, is_key=True)}={_escape(properties[key], is_key=False)}")
    return "\n".join(lines) + "\n"


def store(path: Path, properties: Mapping[str, str], comment: str | None = None) -> None:
    """Rewrite a properties file in full.

    Content goes to a temporary sibling first and then replaces the target,
    so readers see either the old file or the new one.

    Raises:
        OSError: If the file cannot be written
    """
    content = dump(properties, comment)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        if path.exists():
            shutil.copymode(path, tmp_name)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
