"""API tests for the reading challenge and home views."""
from bookbros.services.book_gateway import BookGateway
from bookbros.services.book_records import BookStatus

NICK = "nick@example.com"
WOOD = "wood@example.com"
ANDY = "andy@example.com"


def _add(client, title, member=NICK, **payload):
    return client.post(
        "/api/reading-challenge/books",
        json={"title": title, **payload},
        headers={"X-Test-Member": member},
    )


def test_add_current_book(client):
    response = _add(client, "Dune", author="Frank Herbert", comment="Spice!")
    
    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "current"
    assert body["reading_challenge_year"] == 2026
    assert body["member_email"] == NICK


def test_second_current_book_is_rejected(client):
    assert _add(client, "Dune").status_code == 201
    
    response = _add(client, "Emma")
    
    assert response.status_code == 409
    assert response.json()["detail"]["error"] == "conflict"


def test_empty_title_and_long_comment_are_rejected(client):
    assert _add(client, "   ").status_code == 400
    response = _add(client, "Dune", comment="x" * 201)
    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "validation_error"


def test_add_already_finished_book(client):
    response = _add(client, "Emma", mark_completed=True, rating=4)
    
    body = response.json()
    assert response.status_code == 201
    assert body["status"] == "completed"
    assert body["in_library"] is True
    assert body["completed_at"] is not None


def test_complete_current_book_leaves_no_current(client, db):
    book_id = _add(client, "Dune").json()["id"]
    
    response = client.put(
        f"/api/reading-challenge/books/{book_id}",
        json={"title": "Dune", "comment": "Finished", "mark_completed": True, "rating": 5},
    )
    
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "completed"
    assert body["comment"] == "Finished"
    assert body["rating"] == 5
    assert not [r for r in BookGateway(db).fetch_records([NICK]) if r.status == BookStatus.CURRENT]


def test_edit_without_comment_keeps_comment(client):
    book_id = _add(client, "Dune", author="Herbert", comment="Spice!", cover_url="http://covers/dune.jpg").json()["id"]
    
    response = client.put(f"/api/reading-challenge/books/{book_id}", json={"title": "Dune Messiah"})
    
    body = response.json()
    assert body["title"] == "Dune Messiah"
    assert body["author"] == "Herbert"
    assert body["comment"] == "Spice!"
    assert body["cover_url"] == "http://covers/dune.jpg"


def test_completing_top_ten_current_book_keeps_rating(client):
    book_id = _add(client, "Dune").json()["id"]
    assert client.put(f"/api/top-tens/{book_id}", json={"enabled": True, "rating": 5}).status_code == 200
    
    response = client.put(f"/api/reading-challenge/books/{book_id}", json={"title": "Dune", "mark_completed": True})
    
    body = response.json()
    assert body["status"] == "completed"
    assert body["top_ten"] is True
    assert body["rating"] == 5


def test_cannot_edit_someone_elses_book(client):
    book_id = _add(client, "Dune").json()["id"]
    
    response = client.put(
        f"/api/reading-challenge/books/{book_id}",
        json={"title": "Mine now"},
        headers={"X-Test-Member": WOOD},
    )
    
    assert response.status_code == 403


def test_edit_missing_book(client):
    assert client.put("/api/reading-challenge/books/nope", json={"title": "x"}).status_code == 404


def test_delete_book(client):
    book_id = _add(client, "Dune").json()["id"]
    
    assert client.delete(f"/api/reading-challenge/books/{book_id}").status_code == 204
    assert client.delete(f"/api/reading-challenge/books/{book_id}").status_code == 404


def test_leaderboard(client):
    _add(client, "Dune", member=WOOD)
    _add(client, "Emma", member=WOOD, mark_completed=True)
    _add(client, "Ulysses", member=ANDY, mark_completed=True)
    _add(client, "Hamlet", member=ANDY, mark_completed=True)
    
    response = client.get("/api/reading-challenge", params={"year": 2026})
    
    assert response.status_code == 200
    board = response.json()
    assert [c["email"] for c in board["leaderboard"]] == [ANDY, WOOD, NICK]
    assert [c["completed_count"] for c in board["leaderboard"]] == [2, 1, 0]
    assert board["leaderboard"][1]["current"]["title"] == "Dune"
    assert board["display_order"] == [WOOD, ANDY, NICK]


def test_leaderboard_only_counts_the_requested_year(client):
    _add(client, "Emma", mark_completed=True)
    
    board = client.get("/api/reading-challenge", params={"year": 2025}).json()
    
    assert board["year"] == 2025
    assert all(c["completed_count"] == 0 for c in board["leaderboard"])


def test_home_completion_creates_blank_current(client, db):
    _add(client, "Dune")
    
    response = client.put(
        "/api/home/current",
        json={"title": "Dune", "mark_completed": True, "rating": 4},
    )
    
    assert response.status_code == 200
    written = response.json()
    assert [b["status"] for b in written] == ["completed", "current"]
    assert written[1]["title"] == ""
    
    home = client.get("/api/home").json()
    nick = next(c for c in home["leaderboard"] if c["email"] == NICK)
    assert nick["completed_count"] == 1
    assert nick["current"]["title"] == ""


def test_home_edit_without_current_book(client):
    response = client.put("/api/home/current", json={"title": "Dune"})
    assert response.status_code == 404
