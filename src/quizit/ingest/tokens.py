"""Token estimation shared by chunking, selection and prompt accounting."""
from __future__ import annotations

import math
import re

WORD_TOKEN_WEIGHT = 1.3
PUNCTUATION_TOKEN_WEIGHT = 0.5
NUMBER_TOKEN_WEIGHT = 1.0

_PUNCTUATION_RE = re.compile(r"[.,;:!?'\"()\[\]{}]")
_NUMBER_RE = re.compile(r"\d+")


def estimate_tokens(text: str) -> int:
    """Approximate the number of model tokens in *text*.

    Words count 1.3, punctuation marks 0.5 and digit runs 1 each. This is a
    cheap proxy, not a tokenizer; every budget decision in the pipeline uses
    this one function so chunking and selection never disagree.
    """

    words = len(text.split())
    punctuation = len(_PUNCTUATION_RE.findall(text))
    numbers = len(_NUMBER_RE.findall(text))
    return math.ceil(
        words * WORD_TOKEN_WEIGHT
        + punctuation * PUNCTUATION_TOKEN_WEIGHT
        + numbers * NUMBER_TOKEN_WEIGHT
    )
