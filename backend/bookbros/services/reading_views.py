"""
View assembly for the home and reading challenge leaderboards.
"""
from typing import Iterable, List, Optional

from bookbros.core.members import Member
from bookbros.schemas.book import BookResponse, LeaderboardResponse, MemberColumn
from bookbros.services.book_records import BookRecord
from bookbros.services.ranking import bucket, podium_order, rank, rank_label


def build_leaderboard(
    records: Iterable[BookRecord],
    members: List[Member],
    year: Optional[int] = None,
) -> LeaderboardResponse:
    names = {m.email: m.name for m in members}
    buckets = bucket(records, [m.email for m in members])
    ranked = rank(buckets)
    
    columns = []
    for index, score in enumerate(ranked):
        member_bucket = buckets[score.email]
        columns.append(MemberColumn(
            email=score.email,
            name=names.get(score.email, score.email),
            rank_index=index,
            rank_label=rank_label(index),
            completed_count=score.completed_count,
            current=BookResponse.model_validate(member_bucket.current) if member_bucket.current else None,
            completed=[BookResponse.model_validate(r) for r in member_bucket.completed],
        ))
    
    return LeaderboardResponse(
        year=year,
        leaderboard=columns,
        display_order=[s.email for s in podium_order(ranked)],
    )
