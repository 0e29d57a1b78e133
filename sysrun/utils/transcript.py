"""Plain-text helpers for command transcripts and captured output."""

import time
from pathlib import Path


def append_text(path: str | Path, text: str, append: bool = True) -> None:
    """Write text to a file, appending by default."""
    mode = "a" if append else "w"
    with open(path, mode, encoding="utf-8") as fh:
        fh.write(text)


def transcript_line(message: str) -> str:
    """Prefix a transcript message with the current epoch second."""
    return f"{int(time.time())} - {message}\n"


def slurp(path: str | Path, chomp: bool = False) -> str:
    """Read a whole file as text.

    Undecodable bytes are replaced. With ``chomp`` trailing newlines are
    stripped.
    """
    content = Path(path).read_text(encoding="utf-8", errors="replace")
    if chomp:
        content = content.rstrip("\r\n")
    return content
