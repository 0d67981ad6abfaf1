"""Comment commands understood by the trigger itself.

Job-specific commands (``/test <name>``) belong to the job catalog; only the
two catch-all commands are recognized here.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

# Case-sensitive, one command per line; surrounding whitespace on the line is allowed.
OK_TO_TEST_RE = re.compile(r"(?m)^[ \t]*/ok-to-test[ \t]*\r?$")
RETEST_RE = re.compile(r"(?m)^[ \t]*/retest[ \t]*\r?$")


@dataclass(frozen=True)
class Commands:
    test_all: bool
    retest: bool


def wants_test_all(body: str) -> bool:
    return bool(OK_TO_TEST_RE.search(body or ""))


def wants_retest(body: str) -> bool:
    return bool(RETEST_RE.search(body or ""))


def parse_commands(body: str) -> Commands:
    return Commands(test_all=wants_test_all(body), retest=wants_retest(body))
