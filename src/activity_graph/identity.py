from __future__ import annotations

import dataclasses
import re


def compile_author_pattern(pattern: str) -> re.Pattern[str]:
    try:
        return re.compile(pattern)
    except re.error as e:
        raise ValueError(f"Invalid author regex {pattern!r}: {e}") from e


@dataclasses.dataclass(frozen=True)
class AuthorMatcher:
    pattern: re.Pattern[str]

    @classmethod
    def from_string(cls, pattern: str) -> "AuthorMatcher":
        return cls(compile_author_pattern(pattern))

    def matches(self, author_name: str, author_email: str) -> bool:
        if author_name and self.pattern.search(author_name):
            return True
        if author_email and self.pattern.search(author_email):
            return True
        return False
