"""Tests for threaded book comments, reactions and mentions."""
from datetime import datetime

from bookbros.models import BookComment, CommentMention, CommentReaction
from bookbros.services.comment_service import book_identifier, build_comment_tree, group_reactions

NICK = "nick@example.com"
WOOD = "wood@example.com"
ANDY = "andy@example.com"

BOOK = "the hobbit::j.r.r. tolkien"


def _comment(id, parent_id=None, author_email=NICK, minute=0):
    when = datetime(2026, 1, 1, 12, minute)
    return BookComment(
        id=id,
        book_identifier=BOOK,
        author_email=author_email,
        content=f"comment {id}",
        parent_id=parent_id,
        created_at=when,
        updated_at=when,
    )


def test_book_identifier_normalizes():
    assert book_identifier("  The Hobbit ", "J.R.R. Tolkien") == BOOK
    assert book_identifier("Emma", None) == "emma::"


def test_group_reactions_counts_per_emoji():
    reactions = [
        CommentReaction(comment_id="c1", user_email=NICK, emoji="👍"),
        CommentReaction(comment_id="c1", user_email=WOOD, emoji="🔥"),
        CommentReaction(comment_id="c1", user_email=ANDY, emoji="👍"),
        CommentReaction(comment_id="c2", user_email=NICK, emoji="👍"),
    ]
    
    grouped = group_reactions(reactions)
    
    assert [(g.emoji, g.count, g.users) for g in grouped["c1"]] == [
        ("👍", 2, [NICK, ANDY]),
        ("🔥", 1, [WOOD]),
    ]
    assert grouped["c2"][0].count == 1


def test_build_comment_tree_nests_replies():
    comments = [
        _comment("a", minute=0),
        _comment("b", minute=1, author_email=WOOD),
        _comment("a1", parent_id="a", minute=2, author_email=ANDY),
        _comment("a2", parent_id="a", minute=3),
        _comment("orphan", parent_id="gone", minute=4),
    ]
    mentions = [CommentMention(comment_id="a1", mentioned_email=NICK)]
    
    tree = build_comment_tree(comments, [], mentions, profiles={})
    
    assert [c.id for c in tree] == ["a", "b"]
    assert [r.id for r in tree[0].replies] == ["a1", "a2"]
    assert tree[0].replies[0].mentions == [NICK]
    # no profile row: name falls back to the email local part
    assert tree[1].author_name == "wood"


def _post(client, content, member=NICK, **payload):
    return client.post(
        "/api/book-comments",
        json={"book_title": "The Hobbit", "book_author": "J.R.R. Tolkien", "content": content, **payload},
        headers={"X-Test-Member": member},
    )


def test_post_and_list_thread(client):
    top = _post(client, "Loved Bilbo")
    assert top.status_code == 201
    top_id = top.json()["id"]
    assert top.json()["book_identifier"] == BOOK
    assert top.json()["author_name"] == "Nick"
    
    reply = _post(client, "Same!", member=WOOD, parent_id=top_id, book_identifier=BOOK)
    assert reply.status_code == 201
    
    listing = client.get("/api/book-comments", params={"title": "the hobbit ", "author": "j.r.r. tolkien"})
    
    comments = listing.json()["comments"]
    assert len(comments) == 1
    assert comments[0]["content"] == "Loved Bilbo"
    assert [r["content"] for r in comments[0]["replies"]] == ["Same!"]


def test_listing_requires_a_book(client):
    assert client.get("/api/book-comments").status_code == 400


def test_empty_comment_rejected(client):
    assert _post(client, "   ").status_code == 400


def test_reply_to_missing_parent(client):
    assert _post(client, "hello?", parent_id="missing").status_code == 404


def test_reply_must_share_the_book(client):
    top_id = _post(client, "Hobbit talk").json()["id"]
    
    response = client.post(
        "/api/book-comments",
        json={"book_title": "Emma", "content": "wrong thread", "parent_id": top_id},
    )
    
    assert response.status_code == 400


def test_mentions_are_limited_to_members(client):
    response = _post(client, "@wood @stranger", mentions=["WOOD@example.com", "stranger@x.com", WOOD])
    
    assert response.json()["mentions"] == [WOOD]


def test_only_author_can_edit_or_delete(client):
    comment_id = _post(client, "First take").json()["id"]
    
    assert client.put(f"/api/book-comments/{comment_id}", json={"content": "hijack"}, headers={"X-Test-Member": WOOD}).status_code == 403
    assert client.delete(f"/api/book-comments/{comment_id}", headers={"X-Test-Member": WOOD}).status_code == 403
    
    edited = client.put(f"/api/book-comments/{comment_id}", json={"content": "Second take"})
    assert edited.status_code == 200
    assert edited.json()["content"] == "Second take"


def test_delete_removes_replies_and_reactions(client, db):
    top_id = _post(client, "Top").json()["id"]
    reply_id = _post(client, "Reply", member=WOOD, parent_id=top_id).json()["id"]
    client.post(f"/api/book-comments/{reply_id}/reactions", json={"emoji": "👍"})
    
    assert client.delete(f"/api/book-comments/{top_id}").status_code == 204
    
    assert db.query(BookComment).count() == 0
    assert db.query(CommentReaction).count() == 0
    assert client.delete(f"/api/book-comments/{top_id}").status_code == 404


def test_reactions_are_idempotent_and_removable(client):
    comment_id = _post(client, "React to me").json()["id"]
    url = f"/api/book-comments/{comment_id}/reactions"
    
    client.post(url, json={"emoji": "👍"})
    client.post(url, json={"emoji": "👍"})
    response = client.post(url, json={"emoji": "👍"}, headers={"X-Test-Member": WOOD})
    
    reactions = response.json()["reactions"]
    assert reactions == [{"emoji": "👍", "count": 2, "users": [NICK, WOOD]}]
    
    after = client.delete(url, params={"emoji": "👍"})
    assert after.json()["reactions"] == [{"emoji": "👍", "count": 1, "users": [WOOD]}]


def test_reaction_emoji_is_trimmed_on_add_and_remove(client):
    comment_id = _post(client, "React to me").json()["id"]
    url = f"/api/book-comments/{comment_id}/reactions"
    
    added = client.post(url, json={"emoji": " 👍 "})
    assert added.json()["reactions"] == [{"emoji": "👍", "count": 1, "users": [NICK]}]
    
    removed = client.delete(url, params={"emoji": " 👍 "})
    assert removed.json()["reactions"] == []


def test_reaction_on_missing_comment(client):
    assert client.post("/api/book-comments/missing/reactions", json={"emoji": "👍"}).status_code == 404
