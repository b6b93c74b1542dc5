"""API tests for libraries, wishlists and top tens."""
from bookbros.services.book_gateway import BookGateway
from bookbros.services.book_records import BookStatus

NICK = "nick@example.com"
WOOD = "wood@example.com"


def _library_add(client, title, **payload):
    return client.post("/api/libraries", json={"title": title, **payload})


# ----------------------------
# Libraries
# ----------------------------

def test_library_add_and_duplicate(client):
    response = _library_add(client, "The Hobbit", author="Tolkien", rating=5)
    assert response.status_code == 201
    assert response.json()["in_library"] is True
    
    duplicate = _library_add(client, " the hobbit ", author="tolkien")
    
    assert duplicate.status_code == 409
    assert duplicate.json()["detail"]["message"] == "This book is already in your library"


def test_library_listing_merges_duplicates(client, db):
    gateway = BookGateway(db)
    gateway.insert_record({"member_email": NICK, "status": BookStatus.COMPLETED, "title": "The Hobbit", "in_library": True, "rating": 4})
    gateway.insert_record({"member_email": NICK, "status": BookStatus.COMPLETED, "title": "the hobbit ", "in_library": True})
    gateway.insert_record({"member_email": NICK, "status": BookStatus.COMPLETED, "title": "Emma", "in_library": True})
    gateway.insert_record({"member_email": WOOD, "status": BookStatus.COMPLETED, "title": "Ulysses", "in_library": False})
    
    shelves = client.get("/api/libraries").json()
    
    nick = next(s for s in shelves if s["email"] == NICK)
    wood = next(s for s in shelves if s["email"] == WOOD)
    assert [b["title"] for b in nick["books"]] == ["Emma", "The Hobbit"]
    assert nick["books"][1]["rating"] == 4
    assert wood["books"] == []


def test_library_remove_is_soft(client, db):
    book_id = _library_add(client, "Emma", rating=4).json()["id"]
    
    response = client.delete(f"/api/libraries/{book_id}")
    
    assert response.status_code == 200
    assert response.json()["in_library"] is False
    record = BookGateway(db).get_record(book_id)
    assert record is not None
    assert record.rating == 4


def test_library_edit_rating(client):
    book_id = _library_add(client, "Emma").json()["id"]
    
    response = client.put(f"/api/libraries/{book_id}", json={"title": "Emma", "author": "Austen", "rating": 3})
    
    assert response.json()["rating"] == 3
    assert response.json()["author"] == "Austen"
    assert client.put(f"/api/libraries/{book_id}", json={"title": "Emma", "rating": 9}).status_code == 400


def test_library_edit_without_rating_keeps_rating(client):
    book_id = _library_add(client, "Emma", author="Austen", rating=4, comment="Witty").json()["id"]
    
    response = client.put(f"/api/libraries/{book_id}", json={"title": "Emma (2nd ed.)"})
    
    assert response.status_code == 200
    body = response.json()
    assert body["title"] == "Emma (2nd ed.)"
    assert body["author"] == "Austen"
    assert body["rating"] == 4
    assert body["comment"] == "Witty"


def test_top_ten_book_title_edit_keeps_rating(client):
    book_id = _library_add(client, "Emma", rating=5).json()["id"]
    client.put(f"/api/top-tens/{book_id}", json={"enabled": True})
    
    response = client.put(f"/api/libraries/{book_id}", json={"title": "Emma", "author": "Austen"})
    
    assert response.status_code == 200
    assert response.json()["rating"] == 5
    assert response.json()["top_ten"] is True


# ----------------------------
# Wishlist
# ----------------------------

def test_wishlist_add_list_and_duplicate(client):
    response = client.post("/api/wishlist", json={"title": "Ulysses", "author": "Joyce"})
    assert response.status_code == 201
    assert response.json()["status"] == "wishlist"
    
    duplicate = client.post("/api/wishlist", json={"title": "ULYSSES", "author": "joyce"})
    
    assert duplicate.status_code == 400
    assert duplicate.json()["detail"]["message"] == "This book is already in your wishlist"
    assert [b["title"] for b in client.get("/api/wishlist").json()] == ["Ulysses"]


def test_wishlist_rejects_book_already_in_library(client):
    _library_add(client, "Emma")
    
    response = client.post("/api/wishlist", json={"title": "Emma"})
    
    assert response.status_code == 400
    assert response.json()["detail"]["message"] == "This book is already in your library (completed)"


def test_wishlist_promote(client):
    book_id = client.post("/api/wishlist", json={"title": "Ulysses"}).json()["id"]
    
    response = client.post(f"/api/wishlist/{book_id}/promote")
    
    assert response.status_code == 200
    assert response.json()["status"] == "completed"
    assert response.json()["in_library"] is True
    assert client.get("/api/wishlist").json() == []


def test_wishlist_promote_conflicts_with_library_copy(client):
    book_id = client.post("/api/wishlist", json={"title": "Ulysses"}).json()["id"]
    _library_add(client, "ulysses")
    
    assert client.post(f"/api/wishlist/{book_id}/promote").status_code == 409


def test_wishlist_delete_other_members_book(client):
    book_id = client.post("/api/wishlist", json={"title": "Ulysses"}).json()["id"]
    
    assert client.delete(f"/api/wishlist/{book_id}", headers={"X-Test-Member": WOOD}).status_code == 403
    assert client.delete(f"/api/wishlist/{book_id}").status_code == 204


# ----------------------------
# Top tens
# ----------------------------

def test_top_ten_requires_rating(client):
    book_id = _library_add(client, "Emma").json()["id"]
    
    response = client.put(f"/api/top-tens/{book_id}", json={"enabled": True})
    
    assert response.status_code == 400
    assert response.json()["detail"]["message"] == "rating required"


def test_top_ten_full(client):
    ids = [_library_add(client, f"Book {i}", rating=5).json()["id"] for i in range(11)]
    for book_id in ids[:10]:
        assert client.put(f"/api/top-tens/{book_id}", json={"enabled": True}).status_code == 200
    
    response = client.put(f"/api/top-tens/{ids[10]}", json={"enabled": True})
    
    assert response.status_code == 409
    assert response.json()["detail"]["message"] == "top ten full"
    # re-enabling an existing entry is still fine
    assert client.put(f"/api/top-tens/{ids[0]}", json={"enabled": True}).status_code == 200


def test_top_tens_listed_by_rank(client):
    first = _library_add(client, "Zeta", rating=5).json()["id"]
    second = _library_add(client, "Alpha", rating=4).json()["id"]
    client.put(f"/api/top-tens/{first}", json={"enabled": True})
    client.put(f"/api/top-tens/{second}", json={"enabled": True})
    
    shelves = client.get("/api/top-tens").json()
    
    nick = next(s for s in shelves if s["email"] == NICK)
    assert [(b["title"], b["top_ten_rank"]) for b in nick["books"]] == [("Zeta", 1), ("Alpha", 2)]


def test_top_ten_disable_frees_rank(client):
    book_id = _library_add(client, "Emma", rating=5).json()["id"]
    client.put(f"/api/top-tens/{book_id}", json={"enabled": True})
    
    response = client.put(f"/api/top-tens/{book_id}", json={"enabled": False})
    
    assert response.json()["top_ten"] is False
    assert response.json()["top_ten_rank"] is None
