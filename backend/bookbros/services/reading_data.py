"""
Reading profile used to prompt the recommendation model.

Collects a member's (or the whole club's) books into top tens, wishlist and
read books, computes simple stats, and renders a plain-text profile.
"""
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from bookbros.services.book_records import BookRecord, BookStatus

TOP_GENRES = 3
MAX_TOP_TENS_IN_PROMPT = 10
MAX_HIGH_RATED_IN_PROMPT = 10
MAX_OTHER_BOOKS_IN_PROMPT = 15
MAX_WISHLIST_IN_PROMPT = 10
HIGH_RATING = 4


@dataclass
class BookData:
    title: str
    author: str
    genre: Optional[str] = None
    rating: Optional[int] = None
    comment: Optional[str] = None
    member_email: Optional[str] = None
    member_name: Optional[str] = None


@dataclass
class ReadingStats:
    total_books_read: int = 0
    favorite_genres: List[str] = field(default_factory=list)
    average_rating: float = 0.0


@dataclass
class ReadingData:
    books: List[BookData] = field(default_factory=list)
    top_tens: List[BookData] = field(default_factory=list)
    wishlists: List[BookData] = field(default_factory=list)
    member_names: Dict[str, str] = field(default_factory=dict)
    stats: ReadingStats = field(default_factory=ReadingStats)
    
    @property
    def is_empty(self) -> bool:
        return not self.books and not self.top_tens


def _to_book_data(record: BookRecord, member_names: Dict[str, str]) -> BookData:
    return BookData(
        title=record.title,
        author=record.author or "Unknown Author",
        genre=record.genre or None,
        rating=record.rating or None,
        comment=record.comment or None,
        member_email=record.member_email,
        member_name=member_names.get(record.member_email, record.member_email),
    )


def calculate_stats(books: List[BookData]) -> ReadingStats:
    ratings = [b.rating for b in books if b.rating and b.rating > 0]
    average = sum(ratings) / len(ratings) if ratings else 0.0
    
    genre_counts = Counter(b.genre for b in books if b.genre)
    # most_common keeps first-seen order among equal counts
    favorite_genres = [genre for genre, _ in genre_counts.most_common(TOP_GENRES)]
    
    return ReadingStats(
        total_books_read=len(books),
        favorite_genres=favorite_genres,
        average_rating=round(average, 1),
    )


def collect_reading_data(records: Iterable[BookRecord], member_names: Dict[str, str]) -> ReadingData:
    """
    Categorize records, newest first. A top-ten book only counts as a top ten,
    so it is not repeated among the read books.
    """
    ordered = sorted(records, key=lambda r: r.created_at, reverse=True)
    
    data = ReadingData(member_names=dict(member_names))
    ranked_top_tens = []
    for record in ordered:
        book = _to_book_data(record, member_names)
        if record.top_ten:
            ranked_top_tens.append((record.top_ten_rank or 999, book))
        elif record.status == BookStatus.WISHLIST:
            data.wishlists.append(book)
        elif record.status == BookStatus.COMPLETED or record.in_library:
            data.books.append(book)
    
    ranked_top_tens.sort(key=lambda pair: pair[0])
    data.top_tens = [book for _, book in ranked_top_tens]
    data.stats = calculate_stats(data.books)
    return data


def _format_rating(rating: Optional[int]) -> str:
    return f"{rating}/5"


def format_for_prompt(data: ReadingData) -> str:
    lines = ["Reader profile:", ""]
    
    lines.append("Reading stats:")
    lines.append(f"- Total books read: {data.stats.total_books_read}")
    lines.append(f"- Average rating: {data.stats.average_rating}/5")
    if data.stats.favorite_genres:
        lines.append(f"- Favorite genres: {', '.join(data.stats.favorite_genres)}")
    lines.append("")
    
    if data.top_tens:
        lines.append("Top ten favorite books:")
        for i, book in enumerate(data.top_tens[:MAX_TOP_TENS_IN_PROMPT], start=1):
            line = f'{i}. "{book.title}" by {book.author}'
            if book.genre:
                line += f" ({book.genre})"
            if book.member_name:
                line += f" [Read by: {book.member_name}]"
            lines.append(line)
        lines.append("")
    
    high_rated = [b for b in data.books if b.rating and b.rating >= HIGH_RATING][:MAX_HIGH_RATED_IN_PROMPT]
    if high_rated:
        lines.append("Recent highly rated books (4-5 stars):")
        for book in high_rated:
            line = f'- "{book.title}" by {book.author} ({_format_rating(book.rating)})'
            if book.genre:
                line += f" [{book.genre}]"
            if book.member_name:
                line += f" [Read by: {book.member_name}]"
            lines.append(line)
            if book.comment:
                lines.append(f'  Comment: "{book.comment}"')
        lines.append("")
    
    shown = {id(b) for b in high_rated}
    others = [b for b in data.books if id(b) not in shown][:MAX_OTHER_BOOKS_IN_PROMPT]
    if others:
        lines.append("Other books read:")
        for book in others:
            line = f'- "{book.title}" by {book.author}'
            if book.rating:
                line += f" ({_format_rating(book.rating)})"
            if book.genre:
                line += f" [{book.genre}]"
            if book.member_name:
                line += f" [Read by: {book.member_name}]"
            lines.append(line)
        lines.append("")
    
    if data.wishlists:
        lines.append("Wishlist (books they want to read):")
        for book in data.wishlists[:MAX_WISHLIST_IN_PROMPT]:
            line = f'- "{book.title}" by {book.author}'
            if book.genre:
                line += f" [{book.genre}]"
            lines.append(line)
    
    return "\n".join(lines)
