"""
Merging of duplicate library entries.

Several insert paths (manual add, search add, wishlist promotion) can each
create a row for the same logical book. The row carrying user-entered detail
is kept, with recency as the tiebreak.
"""
from typing import Dict, Iterable, List, Tuple

from bookbros.services.book_records import BookRecord, normalize_text


def dedupe_key(record: BookRecord) -> Tuple[str, str, str]:
    return (record.member_email, normalize_text(record.title), normalize_text(record.author))


def _has_detail(record: BookRecord) -> bool:
    return record.rating is not None or bool((record.comment or "").strip())


def is_better(candidate: BookRecord, incumbent: BookRecord) -> bool:
    """True when `candidate` should replace `incumbent` as the kept record."""
    candidate_detail = _has_detail(candidate)
    incumbent_detail = _has_detail(incumbent)
    if candidate_detail != incumbent_detail:
        return candidate_detail
    return candidate.created_at > incumbent.created_at


def dedupe(records: Iterable[BookRecord]) -> List[BookRecord]:
    """
    Keep one record per (member, title, author) group.

    Groups are folded left to right with `is_better`. Output follows the
    order in which each group was first seen.
    """
    kept: Dict[Tuple[str, str, str], BookRecord] = {}
    for record in records:
        key = dedupe_key(record)
        incumbent = kept.get(key)
        if incumbent is None or is_better(record, incumbent):
            kept[key] = record
    return list(kept.values())
