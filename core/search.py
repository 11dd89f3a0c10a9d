# core/search.py — case-insensitive substring filter over inventions

from typing import Iterable, List

from core.model import Invention


def matches(inv: Invention, query: str, *, include_link: bool = True) -> bool:
    q = (query or "").lower()
    if not q:
        return True
    if q in (inv.title or "").lower():
        return True
    if q in (inv.details or "").lower():
        return True
    return include_link and q in (inv.link_string or "").lower()


def filter_inventions(records: Iterable[Invention], query: str, *, include_link: bool = True) -> List[Invention]:
    """
    Narrow records to those whose title, details or (optionally) link
    contains the query, ignoring case. An empty query returns every record.
    Input order is preserved; evaluated fresh on every call.
    """
    records = list(records)
    if not query:
        return records
    return [inv for inv in records if matches(inv, query, include_link=include_link)]
