"""
Character set rules shared by password generation and profile normalization.

Only printable ASCII (32..126) is ever eligible. Every character falls into
exactly one class: space, lower, upper, digit, or punctuation (everything
else). The class toggle decides membership first, `include` forces a
character on, and `exclude` forces it off.
"""

from typing import Dict, Tuple

MIN_CHAR = 32
MAX_CHAR = 126

PRINTABLE = "".join(chr(c) for c in range(MIN_CHAR, MAX_CHAR + 1))


def char_class(ch: str) -> str:
    """Name of the profile toggle that governs `ch`."""
    if ch.isspace():
        return "spaces"
    if ch.islower():
        return "lower"
    if ch.isupper():
        return "upper"
    if ch.isdigit():
        return "digits"
    return "punctuation"


def is_printable(ch: str) -> bool:
    return MIN_CHAR <= ord(ch) <= MAX_CHAR


def _toggles(lower, upper, digits, punctuation, spaces) -> Dict[str, bool]:
    return {
        "lower": lower,
        "upper": upper,
        "digits": digits,
        "punctuation": punctuation,
        "spaces": spaces,
    }


def can_use(ch: str, *, lower: bool, upper: bool, digits: bool,
            punctuation: bool, spaces: bool, include: str = "", exclude: str = "") -> bool:
    if not is_printable(ch):
        return False
    toggles = _toggles(lower, upper, digits, punctuation, spaces)
    use = toggles[char_class(ch)]
    if ch in include:
        use = True
    if ch in exclude:
        use = False
    return use


def build_alphabet(*, lower: bool, upper: bool, digits: bool, punctuation: bool,
                   spaces: bool, include: str = "", exclude: str = "") -> str:
    """Usable characters in ascending codepoint order."""
    return "".join(
        ch for ch in PRINTABLE
        if can_use(ch, lower=lower, upper=upper, digits=digits,
                   punctuation=punctuation, spaces=spaces,
                   include=include, exclude=exclude)
    )


def normalize_overrides(*, lower: bool, upper: bool, digits: bool, punctuation: bool,
                        spaces: bool, include: str = "", exclude: str = "") -> Tuple[str, str]:
    """
    Reduce include/exclude to the characters that matter.

    Excluded printable characters are all kept. Included characters are kept
    only when not excluded and not already switched on by their class toggle.
    Both results are deduplicated and sorted by codepoint.
    """
    toggles = _toggles(lower, upper, digits, punctuation, spaces)
    new_include = []
    new_exclude = []
    for ch in PRINTABLE:
        if ch in exclude:
            new_exclude.append(ch)
        elif ch in include and not toggles[char_class(ch)]:
            new_include.append(ch)
    return "".join(new_include), "".join(new_exclude)
