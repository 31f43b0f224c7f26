import sys
from typing import Optional, Protocol, TextIO


class Terminal(Protocol):
    """Line-oriented I/O the session machine talks to."""

    def read_line(self, prompt: str = "") -> Optional[str]:
        """Next input line without its line ending, or None at end of input."""
        ...

    def write(self, text: str) -> None:
        ...


class StreamTerminal:
    """Terminal over a pair of text streams (stdin/stdout by default)."""

    def __init__(self, stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None):
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout

    def read_line(self, prompt: str = "") -> Optional[str]:
        if prompt:
            self.stdout.write(prompt)
            self.stdout.flush()
        line = self.stdin.readline()
        if line == "":
            return None
        return line.rstrip("\r\n")

    def write(self, text: str) -> None:
        self.stdout.write(text + "\n")
        self.stdout.flush()
