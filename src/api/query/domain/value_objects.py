"""Value objects for the Querying domain."""

from __future__ import annotations

from enum import IntEnum

from langcodes import Language


class SetupStep(IntEnum):
    """Setup stage an instance has started or completed.

    Stages are ordered; SetupDone never precedes SetupStarted. The write side
    owns the ordering, this context only reads it back.
    """

    UNSPECIFIED = 0
    STEP1 = 1
    STEP2 = 2
    STEP3 = 3
    STEP4 = 4
    STEP5 = 5
    STEP6 = 6
    STEP7 = 7
    STEP8 = 8
    STEP9 = 9
    STEP10 = 10
    STEP11 = 11
    STEP12 = 12
    STEP13 = 13
    STEP14 = 14
    STEP15 = 15
    STEP16 = 16
    STEP17 = 17
    STEP18 = 18
    STEP19 = 19
    STEP20 = 20
    STEP21 = 21
    STEP22 = 22
    STEP23 = 23
    STEP24 = 24
    STEP25 = 25


# Number of setup steps the write side currently knows about.
SETUP_STEP_COUNT = int(max(SetupStep))

UNDEFINED_LANGUAGE = Language.get("und")


def parse_language_tag(raw: str | None) -> Language:
    """Parse a stored language tag.

    Empty or malformed values yield the undefined language ``und`` rather
    than an error.
    """
    if not raw:
        return UNDEFINED_LANGUAGE
    try:
        return Language.get(raw)
    except ValueError:
        return UNDEFINED_LANGUAGE
