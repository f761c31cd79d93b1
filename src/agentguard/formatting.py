from __future__ import annotations


def truncate(text: str, max_len: int) -> str:
    if not text:
        return ""
    if max_len <= 0:
        return ""
    if len(text) <= max_len:
        return text
    return text[: max_len - 1].rstrip() + "…"


def plural(count: int, noun: str) -> str:
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"


def file_count(count: int) -> str:
    return f"({plural(count, 'file')})"
