"""
Reading challenge bucketing and leaderboard ranking.

Pure functions over `BookRecord` values; callers restrict the record set to
a challenge year (reading challenge view) or pass everything (home view).
"""
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from bookbros.services.book_records import BookRecord, BookStatus

RANK_LABELS = ("Bibliophile", "Bookworm", "Bookish")


@dataclass
class MemberBucket:
    current: Optional[BookRecord] = None
    completed: List[BookRecord] = field(default_factory=list)


@dataclass(frozen=True)
class MemberScore:
    email: str
    completed_count: int


def bucket(records: Iterable[BookRecord], members: Sequence[str]) -> Dict[str, MemberBucket]:
    """
    Partition records into a current book and a completed list per member.

    Every roster member gets an entry. Wishlist records and records of
    non-members are ignored. When a member has several current records the
    first one encountered wins.
    """
    buckets: Dict[str, MemberBucket] = {email: MemberBucket() for email in members}
    
    for record in records:
        member_bucket = buckets.get(record.member_email)
        if member_bucket is None:
            continue
        if record.status == BookStatus.CURRENT:
            if member_bucket.current is None:
                member_bucket.current = record
        elif record.status == BookStatus.COMPLETED:
            member_bucket.completed.append(record)
    
    # Most recent first; sorted() is stable so equal instants keep fetch order
    for member_bucket in buckets.values():
        member_bucket.completed = sorted(
            member_bucket.completed,
            key=lambda r: r.sort_instant,
            reverse=True,
        )
    
    return buckets


def rank(buckets: Dict[str, MemberBucket]) -> List[MemberScore]:
    """Members by completed count, descending; ties keep roster order."""
    scores = [
        MemberScore(email=email, completed_count=len(member_bucket.completed))
        for email, member_bucket in buckets.items()
    ]
    return sorted(scores, key=lambda s: s.completed_count, reverse=True)


def rank_label(rank_index: int) -> str:
    if rank_index <= 0:
        return RANK_LABELS[0]
    if rank_index == 1:
        return RANK_LABELS[1]
    return RANK_LABELS[2]


def podium_order(ranked: Sequence[MemberScore]) -> List[MemberScore]:
    """
    Display order for the leaderboard columns.

    With exactly three members the leader sits in the middle column.
    Presentation only; `rank` itself is unaffected.
    """
    if len(ranked) != 3:
        return list(ranked)
    return [ranked[1], ranked[0], ranked[2]]
