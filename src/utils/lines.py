"""
Newline-preserving line splitting.

Documents are split on ``\\n`` or ``\\r\\n``. A final empty element produced by
a trailing newline is not a real line. Joining restores the original newline
style and trailing-newline presence so unmodified regions stay byte-identical.
"""

import re
from dataclasses import dataclass
from typing import List, Optional

_NEWLINE_RE = re.compile(r"\r?\n")


@dataclass
class SplitText:
    lines: List[str]
    eol: str
    ends_with_newline: bool

    def join(self, ends_with_newline: Optional[bool] = None) -> str:
        if ends_with_newline is None:
            ends_with_newline = self.ends_with_newline
        return join_lines(self.lines, self.eol, ends_with_newline)


def detect_eol(text: str) -> str:
    return "\r\n" if "\r\n" in text else "\n"


def document_lines(text: str) -> List[str]:
    """Split into lines, dropping the empty element after a trailing newline."""
    lines = _NEWLINE_RE.split(text)
    if text.endswith("\n") and lines and lines[-1] == "":
        lines.pop()
    return lines


def raw_lines(text: str) -> List[str]:
    """Split into lines without trailing-newline handling."""
    return _NEWLINE_RE.split(text)


def split_lines(text: str) -> SplitText:
    return SplitText(
        lines=document_lines(text),
        eol=detect_eol(text),
        ends_with_newline=text.endswith("\n"),
    )


def join_lines(lines: List[str], eol: str, ends_with_newline: bool) -> str:
    text = eol.join(lines)
    return text + eol if ends_with_newline else text


def line_indent(line: str) -> int:
    """Count leading spaces (tabs are not indentation in this format)."""
    return len(line) - len(line.lstrip(" "))


def is_blank(line: str) -> bool:
    return not line.strip()
