def create_news(client, headers, **overrides):
    body = {"title": "Release notes", "content": "Full story", "excerpt": "Short", "category": "announcements"}
    body.update(overrides)
    return client.post("/api/news", json=body, headers=headers)


def test_create_and_list(client, alice):
    created = create_news(client, alice)
    assert created.status_code == 201
    assert created.json()["data"]["author"]["name"] == "Alice"

    listing = client.get("/api/news").json()["data"]
    assert listing["pagination"]["total"] == 1
    summary = listing["news"][0]
    assert "content" not in summary
    assert "views" not in summary


def test_category_filter(client, alice):
    create_news(client, alice, title="A", category="events")
    create_news(client, alice, title="B", category="tech")

    tech = client.get("/api/news", params={"category": "tech"}).json()["data"]["news"]
    everything = client.get("/api/news", params={"category": "all"}).json()["data"]["news"]

    assert [item["title"] for item in tech] == ["B"]
    assert len(everything) == 2


def test_blank_title_rejected(client, alice):
    assert create_news(client, alice, title="  ").status_code == 400


def test_update_invalidates_detail_and_lists(client, alice, bob):
    news_id = create_news(client, alice).json()["data"]["id"]
    client.get("/api/news")
    client.get(f"/api/news/{news_id}")

    assert client.put(f"/api/news/{news_id}", json={"title": "Nope"}, headers=bob).status_code == 403
    assert client.put(f"/api/news/{news_id}", json={"content": ""}, headers=alice).status_code == 400
    client.put(f"/api/news/{news_id}", json={"title": "Updated"}, headers=alice)

    assert client.get(f"/api/news/{news_id}").json()["data"]["title"] == "Updated"
    assert client.get("/api/news").json()["data"]["news"][0]["title"] == "Updated"


def test_delete(client, alice):
    news_id = create_news(client, alice).json()["data"]["id"]
    client.get("/api/news")

    assert client.delete(f"/api/news/{news_id}", headers=alice).status_code == 200
    assert client.get(f"/api/news/{news_id}").status_code == 404
    assert client.get("/api/news").json()["data"]["news"] == []


def test_like_and_comment(client, alice, bob):
    news_id = create_news(client, alice).json()["data"]["id"]
    client.get(f"/api/news/{news_id}")

    client.post(f"/api/news/{news_id}/like", headers=bob)
    client.post(f"/api/news/{news_id}/comments", json={"content": "Great read"}, headers=bob)

    detail = client.get(f"/api/news/{news_id}").json()["data"]
    assert detail["likes"] == ["user-bob"]
    assert detail["comments"][0]["content"] == "Great read"


def test_unknown_news_item(client):
    response = client.get("/api/news/" + "a" * 24)
    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "News item not found"}
