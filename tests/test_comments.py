from app.models.comment import Comment
from tests.conftest import auth


def comment(client, email, post_id, content, parent_id=None):
    payload = {"post_id": post_id, "content": content}
    if parent_id is not None:
        payload["parent_id"] = parent_id
    return client.post("/api/comments", json=payload, headers=auth(email))


def test_reply_tree_and_cascade_delete(client, alice, bob, make_post):
    post = make_post("alice@example.com")

    top = comment(client, "alice@example.com", post["id"], "hello")
    assert top.status_code == 201
    top_id = top.json()["comment"]["id"]

    reply = comment(client, "bob@example.com", post["id"], "hi", parent_id=top_id)
    assert reply.status_code == 201
    assert reply.json()["comment"]["parent_id"] == top_id

    listing = client.get(f"/api/comments/post/{post['id']}").json()
    assert len(listing) == 1
    assert listing[0]["content"] == "hello"
    assert [r["content"] for r in listing[0]["replies"]] == ["hi"]
    assert listing[0]["replies"][0]["user"] == {"id": bob["id"], "name": "Bob", "avatar": ""}

    res = client.delete(f"/api/comments/{top_id}", headers=auth("alice@example.com"))
    assert res.status_code == 200
    assert res.json()["deleted"] == 2
    assert client.get(f"/api/comments/post/{post['id']}").json() == []
    assert client.get(f"/api/posts/{post['id']}").json()["comments_count"] == 0


def test_deleting_reply_detaches_it_from_parent(client, db, alice, bob, make_post):
    post = make_post("alice@example.com")
    top_id = comment(client, "alice@example.com", post["id"], "hello").json()["comment"]["id"]
    r1 = comment(client, "bob@example.com", post["id"], "first", parent_id=top_id).json()["comment"]["id"]
    comment(client, "bob@example.com", post["id"], "second", parent_id=top_id)

    res = client.delete(f"/api/comments/{r1}", headers=auth("bob@example.com"))
    assert res.json()["deleted"] == 1

    listing = client.get(f"/api/comments/post/{post['id']}").json()
    assert [r["content"] for r in listing[0]["replies"]] == ["second"]
    assert db.query(Comment).count() == 2


def test_top_level_comments_newest_first(client, alice, make_post):
    post = make_post("alice@example.com")
    for text in ("one", "two", "three"):
        comment(client, "alice@example.com", post["id"], text)

    listing = client.get(f"/api/comments/post/{post['id']}").json()
    assert [c["content"] for c in listing] == ["three", "two", "one"]
    assert all(c["replies"] == [] for c in listing)


def test_reply_to_other_post_rejected(client, alice, make_post):
    first = make_post("alice@example.com", title="First")
    second = make_post("alice@example.com", title="Second")
    top_id = comment(client, "alice@example.com", first["id"], "hello").json()["comment"]["id"]

    res = comment(client, "alice@example.com", second["id"], "wrong post", parent_id=top_id)
    assert res.status_code == 400


def test_reply_to_reply_rejected(client, alice, bob, make_post):
    post = make_post("alice@example.com")
    top_id = comment(client, "alice@example.com", post["id"], "hello").json()["comment"]["id"]
    reply_id = comment(client, "bob@example.com", post["id"], "hi", parent_id=top_id).json()["comment"]["id"]

    res = comment(client, "alice@example.com", post["id"], "deeper", parent_id=reply_id)
    assert res.status_code == 400


def test_missing_parent_or_post_is_404(client, alice, make_post):
    post = make_post("alice@example.com")
    assert comment(client, "alice@example.com", post["id"], "x", parent_id=42).status_code == 404
    assert comment(client, "alice@example.com", 999, "x").status_code == 404


def test_blank_comment_rejected(client, alice, make_post):
    post = make_post("alice@example.com")
    assert comment(client, "alice@example.com", post["id"], "   ").status_code == 400


def test_only_author_or_admin_may_delete(client, alice, bob, admin, make_post):
    post = make_post("alice@example.com")
    cid = comment(client, "alice@example.com", post["id"], "mine").json()["comment"]["id"]

    assert client.delete(f"/api/comments/{cid}", headers=auth("bob@example.com")).status_code == 403
    assert client.delete(f"/api/comments/{cid}", headers=auth("admin@example.com")).status_code == 200
    assert client.delete(f"/api/comments/{cid}", headers=auth("admin@example.com")).status_code == 404


def test_only_author_may_edit(client, alice, bob, make_post):
    post = make_post("alice@example.com")
    cid = comment(client, "alice@example.com", post["id"], "draft").json()["comment"]["id"]

    res = client.put(f"/api/comments/{cid}", json={"content": "nope"}, headers=auth("bob@example.com"))
    assert res.status_code == 403

    res = client.put(f"/api/comments/{cid}", json={"content": "final"}, headers=auth("alice@example.com"))
    assert res.status_code == 200
    assert res.json()["comment"]["content"] == "final"
