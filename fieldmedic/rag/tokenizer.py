"""
Tokenizer shared by the protocol index and the sentence scorer.

Keeps clinical notation intact: "128/82", "0.5", "1:1000" and "94%"
each stay a single token.
"""

import re

_SPLIT_PATTERN = re.compile(r"[^a-z0-9.%:/-]+")


def tokenize(text: str) -> list[str]:
    """Lowercase text and split it into a flat list of tokens."""
    if not text:
        return []
    return [token for token in _SPLIT_PATTERN.split(text.lower()) if token]
