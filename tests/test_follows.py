from tests.conftest import auth


def follow(client, email, user_id):
    return client.post(f"/api/users/follow/{user_id}", headers=auth(email))


def ids(users):
    return [u["id"] for u in users]


def test_follow_then_unfollow_restores_both_sides(client, alice, bob):
    res = follow(client, "alice@example.com", bob["id"])
    assert res.status_code == 200
    assert res.json()["is_following"] is True

    assert ids(client.get(f"/api/users/{bob['id']}").json()["followers"]) == [alice["id"]]
    assert ids(client.get(f"/api/users/{alice['id']}").json()["following"]) == [bob["id"]]

    res = follow(client, "alice@example.com", bob["id"])
    assert res.json()["is_following"] is False

    bob_profile = client.get(f"/api/users/{bob['id']}").json()
    alice_profile = client.get(f"/api/users/{alice['id']}").json()
    assert bob_profile["followers"] == [] and bob_profile["following"] == []
    assert alice_profile["followers"] == [] and alice_profile["following"] == []


def test_self_follow_rejected_without_change(client, alice):
    res = follow(client, "alice@example.com", alice["id"])
    assert res.status_code == 400

    profile = client.get(f"/api/users/{alice['id']}").json()
    assert profile["followers"] == []
    assert profile["following"] == []


def test_follow_unknown_user_is_404(client, alice):
    assert follow(client, "alice@example.com", 999).status_code == 404


def test_mutual_follow(client, alice, bob):
    follow(client, "alice@example.com", bob["id"])
    follow(client, "bob@example.com", alice["id"])

    profile = client.get(f"/api/users/{alice['id']}").json()
    assert ids(profile["followers"]) == [bob["id"]]
    assert ids(profile["following"]) == [bob["id"]]


def test_profile_hides_email_and_counts_posts(client, alice, make_post):
    make_post("alice@example.com")
    make_post("alice@example.com", status="draft")

    profile = client.get(f"/api/users/{alice['id']}").json()
    assert "email" not in profile
    assert profile["posts_count"] == 1


def test_update_profile_keeps_unset_fields(client, alice):
    res = client.put("/api/users/profile", json={"bio": "Writer"}, headers=auth("alice@example.com"))
    assert res.status_code == 200
    user = res.json()["user"]
    assert user["bio"] == "Writer"
    assert user["name"] == "Alice"


def test_search_users(client, alice, bob):
    found = client.get("/api/users/search/ALI").json()
    assert ids(found) == [alice["id"]]


def test_list_users_admin_only(client, alice, admin):
    assert client.get("/api/users", headers=auth("alice@example.com")).status_code == 403
    assert len(client.get("/api/users", headers=auth("admin@example.com")).json()) == 2


def test_follow_race_reports_following_without_duplicate(client, db, alice, bob):
    from app.models.user import User, user_follows
    from app.services.follows import toggle_follow
    from tests.conftest import LateInsertSession

    follow(client, "alice@example.com", bob["id"])
    follower = db.query(User).filter(User.id == alice["id"]).first()

    assert toggle_follow(LateInsertSession(db), follower, bob["id"]) is True
    assert len(db.execute(user_follows.select()).fetchall()) == 1


def test_clear_bio_and_avatar(client, alice):
    client.put("/api/users/profile", json={"bio": "Writer", "avatar": "http://img/a.png"}, headers=auth("alice@example.com"))

    res = client.put("/api/users/profile", json={"bio": "", "avatar": ""}, headers=auth("alice@example.com"))
    user = res.json()["user"]
    assert user["bio"] == ""
    assert user["avatar"] == ""
    assert user["name"] == "Alice"


def test_search_users_treats_underscore_literally(client, register):
    register("a_b@example.com", "Ann")
    register("axb@example.com", "Axel")

    found = client.get("/api/users/search/a_b").json()
    assert [u["name"] for u in found] == ["Ann"]
