from __future__ import annotations

import re

from pypinyin import Style, lazy_pinyin

# Ideographs in every plane plus radicals and ideographic marks such as 々 and 〇.
_HAN_RE = re.compile(
    r"[\u2e80-\u2fdf\u3005\u3007\u3021-\u3029\u3038-\u303b"
    r"\u3400-\u4dbf\u4e00-\u9fff\uf900-\ufaff"
    r"\U00020000-\U0002fa1f\U00030000-\U000323af]"
)
_WHITESPACE_RE = re.compile(r"\s+")


def contains_han(value: str) -> bool:
    return bool(_HAN_RE.search(value or ""))


def to_pinyin_query(query: str) -> str:
    if not contains_han(query):
        return query
    # Non-Han runs (latin words, digits) come back as single segments unchanged.
    segments = lazy_pinyin(query, style=Style.NORMAL, errors="default")
    converted = " ".join(segments)
    return _WHITESPACE_RE.sub(" ", converted).strip()
