"""
Text output: word accumulation, line wrapping, case handling and an MD5
digest over the emitted words.
"""

import hashlib
import sys
from typing import Optional, TextIO

import config
from errors import ConfigurationError
from options import parse_multi

SENTENCE_END = (".", ":", "=")


class Formatter:
    def __init__(self, stream: TextIO = None, case_mode: str = "L", line_length: int = config.LINE_LENGTH):
        if case_mode not in config.CASE_MODES:
            raise ConfigurationError(f"expecting case mode L, U or C, got '{case_mode}'")
        if line_length < 1:
            raise ConfigurationError(f"line length out of range: {line_length}")
        self.stream = stream if stream is not None else sys.stdout
        self.case_mode = case_mode
        self.line_length = line_length
        self.word = ""
        self.pos = 0
        self.upper_next = False
        self._md5 = hashlib.md5()

    @classmethod
    def from_option(cls, text: str, stream: TextIO = None) -> "Formatter":
        """Build from a "CASE[,LINELEN]" option value."""
        parts = text.split(",")
        if len(parts) > 2:
            raise ConfigurationError(f"too many values for text format: '{text}'")
        line_length = config.LINE_LENGTH
        if len(parts) == 2:
            line_length = parse_multi(parts[1], 1, int, "line length")[0]
        return cls(stream, parts[0], line_length)

    def _cased(self, word_break: bool, text: str) -> str:
        if self.case_mode == "U":
            return text.upper()
        if self.case_mode == "C":
            if self.upper_next and text[:1].isalpha():
                self.upper_next = False
                return text.upper()
            if not self.upper_next and word_break and text in SENTENCE_END:
                self.upper_next = True
        return text

    def add(self, word_break: bool, text: str, timestamp: Optional[int] = None):
        self.word += self._cased(word_break, text)
        if not word_break:
            return
        word = self.word
        self.word = ""
        if not word:
            return
        self._md5.update(b" ")
        self._md5.update(word.encode("utf-8"))
        if timestamp is not None:
            word += f" /{timestamp}/"

        if self.pos + 1 + len(word) > self.line_length and self.pos > 0:
            self.new_line()
            self.stream.write(word)
            self.pos = len(word)
        elif self.pos > 0:
            self.stream.write(" " + word)
            self.pos += 1 + len(word)
        else:
            self.stream.write(word)
            self.pos = len(word)

    def flush(self):
        """Close a pending word and end the line."""
        if self.word:
            self.add(True, "")
        if self.pos > 0:
            self.new_line()

    def new_line(self):
        self.stream.write("\n")
        self.pos = 0

    def digest(self) -> str:
        return self._md5.hexdigest()
