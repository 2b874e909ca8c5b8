"""
Gloss extraction for the reverse (Chinese -> English) index.

A translation such as "vt. 喜欢, 想要(某物)\\nprep. 像" yields the glosses
["喜欢", "想要", "像"]: bracketed annotations are dropped, the remainder is
split on separators, and only fragments made purely of Han characters
survive.

Everything here is plain character-class predicates and a single-pass scan;
there is no regular expression involved.
"""

from typing import List

# ============================================================================
# Character Classes
# ============================================================================

# Code point ranges of the Unicode Han script
HAN_RANGES = (
    (0x2E80, 0x2E99),    # CJK Radicals Supplement
    (0x2E9B, 0x2EF3),
    (0x2F00, 0x2FD5),    # Kangxi Radicals
    (0x3005, 0x3005),    # 々
    (0x3007, 0x3007),    # 〇
    (0x3021, 0x3029),    # Hangzhou numerals
    (0x3038, 0x303B),
    (0x3400, 0x4DBF),    # Extension A
    (0x4E00, 0x9FFF),    # Unified Ideographs
    (0xF900, 0xFA6D),    # Compatibility Ideographs
    (0xFA70, 0xFAD9),
    (0x16FE2, 0x16FE3),
    (0x16FF0, 0x16FF1),
    (0x20000, 0x2A6DF),  # Extension B
    (0x2A700, 0x2B739),  # Extensions C..F
    (0x2B740, 0x2B81D),
    (0x2B820, 0x2CEA1),
    (0x2CEB0, 0x2EBE0),
    (0x2EBF0, 0x2EE5D),
    (0x2F800, 0x2FA1D),  # Compatibility Supplement
    (0x30000, 0x3134A),  # Extensions G, H
    (0x31350, 0x323AF),
)

# Punctuation allowed inside a gloss (foreign names, dashes in idioms)
GLOSS_PUNCTUATION = frozenset("·—")

# Separators between glosses; any whitespace also separates
SEPARATORS = frozenset(",，、;；")

# Two-character escapes ECDICT uses for line breaks inside a field
ESCAPED_BREAKS = frozenset("nr")

# Annotation brackets: opener -> closer
BRACKETS = {"[": "]", "(": ")"}


def is_han_char(char: str) -> bool:
    """Check if a single character belongs to the Han script."""
    code = ord(char)
    for low, high in HAN_RANGES:
        if code < low:
            return False
        if code <= high:
            return True
    return False


def contains_han(text: str) -> bool:
    """Check if any character of text is a Han character."""
    return any(is_han_char(c) for c in text)


def is_gloss(text: str) -> bool:
    """
    Check if text qualifies as a gloss.

    A gloss is non-empty and made only of Han characters plus the middle
    dot and the em dash.
    """
    if not text:
        return False
    for char in text:
        if char not in GLOSS_PUNCTUATION and not is_han_char(char):
            return False
    return True


def _is_separator(char: str) -> bool:
    return char in SEPARATORS or char.isspace()


# ============================================================================
# Scanning
# ============================================================================

def strip_annotations(text: str) -> str:
    """
    Remove bracketed annotation spans.

    Square and round brackets are tracked with a depth stack, so nested
    spans are removed whole. An opener that is never closed leaves its text
    in place.

    Example:
        >>> strip_annotations("想要(某物)[口]")
        '想要'
    """
    out: List[str] = []
    pending: List[str] = []
    closers: List[str] = []

    for char in text:
        if char in BRACKETS:
            closers.append(BRACKETS[char])
            pending.append(char)
        elif closers and char == closers[-1]:
            closers.pop()
            if closers:
                pending.append(char)
            else:
                pending.clear()
        elif closers:
            pending.append(char)
        else:
            out.append(char)

    out.extend(pending)
    return "".join(out)


def split_fragments(text: str) -> List[str]:
    """
    Split text on separators and return trimmed, non-empty fragments.

    Separators are the ASCII and full-width comma and semicolon, the
    enumeration comma, any run of whitespace, and the escaped line breaks
    "\\n" and "\\r" as they appear literally in ECDICT fields.
    """
    fragments: List[str] = []
    current: List[str] = []

    def flush():
        fragment = "".join(current).strip()
        if fragment:
            fragments.append(fragment)
        current.clear()

    i = 0
    while i < len(text):
        char = text[i]
        if char == "\\" and i + 1 < len(text) and text[i + 1] in ESCAPED_BREAKS:
            flush()
            i += 2
            continue
        if _is_separator(char):
            flush()
        else:
            current.append(char)
        i += 1
    flush()

    return fragments


def extract_glosses(translation: str) -> List[str]:
    """
    Extract gloss fragments from a translation string.

    Args:
        translation: Raw translation field of a record

    Returns:
        Glosses in order of appearance (repeats are kept)

    Example:
        >>> extract_glosses("vt. 喜欢, 想要(某物)\\\\nprep. 像")
        ['喜欢', '想要', '像']
    """
    if not translation:
        return []
    cleaned = strip_annotations(translation)
    return [f for f in split_fragments(cleaned) if is_gloss(f)]
