import httpx
import pytest

from conftest import make_book

from library_api.errors import UpstreamError
from library_api.services.image_host import ImageHostClient

COLLECTION = {"id": "classics", "name": "Classics", "description": "Books that stayed"}


def test_collection_crud(app, client, librarian):
    assert client.post("/api/collections", json=COLLECTION).status_code == 401

    r = client.post("/api/collections", json=COLLECTION, headers=librarian["headers"])
    assert r.status_code == 201
    assert client.post("/api/collections", json=COLLECTION, headers=librarian["headers"]).status_code == 409
    assert client.post("/api/collections", json={"id": "x"}, headers=librarian["headers"]).status_code == 400

    r = client.put("/api/collections/classics", json={"name": "Old Classics"}, headers=librarian["headers"])
    assert r.get_json()["data"]["name"] == "Old Classics"

    r = client.get("/api/collections/search?name=old")
    assert r.get_json()["count"] == 1
    assert client.get("/api/collections/missing").status_code == 404

    assert client.delete("/api/collections/classics", headers=librarian["headers"]).status_code == 200
    assert client.get("/api/collections").get_json()["count"] == 0


def test_collection_books(app, client, librarian):
    client.post("/api/collections", json=COLLECTION, headers=librarian["headers"])
    book_id = make_book(app)

    r = client.post("/api/collections/classics/books", json={"book_id": book_id}, headers=librarian["headers"])
    assert r.status_code == 201
    assert r.get_json()["data"]["books"][0]["status"] == "AVAILABLE"
    r = client.post("/api/collections/classics/books", json={"book_id": book_id}, headers=librarian["headers"])
    assert r.status_code == 409
    r = client.post("/api/collections/classics/books", json={"book_id": 999}, headers=librarian["headers"])
    assert r.status_code == 404

    r = client.get("/api/collections/classics")
    assert r.get_json()["data"]["book_count"] == 1

    r = client.delete(f"/api/collections/classics/books/{book_id}", headers=librarian["headers"])
    assert r.get_json()["data"]["books"] == []
    r = client.delete(f"/api/collections/classics/books/{book_id}", headers=librarian["headers"])
    assert r.status_code == 404


def test_banner_lifecycle(client, librarian):
    r = client.post("/api/banners", json={"title": "Welcome", "order": 2, "image": "https://img.example/a.png"},
                    headers=librarian["headers"])
    assert r.status_code == 201
    first = r.get_json()["data"]
    assert first["image"] == "https://img.example/a.png"
    second = client.post("/api/banners", json={"title": "Top", "order": 1}, headers=librarian["headers"]).get_json()["data"]

    titles = [b["title"] for b in client.get("/api/banners").get_json()["data"]]
    assert titles == ["Top", "Welcome"]

    r = client.patch(f"/api/banners/{second['id']}/status", json={"status": "inactive"}, headers=librarian["headers"])
    assert r.get_json()["data"]["status"] == "inactive"
    assert [b["title"] for b in client.get("/api/banners").get_json()["data"]] == ["Welcome"]
    r = client.patch(f"/api/banners/{second['id']}/status", json={"status": "hidden"}, headers=librarian["headers"])
    assert r.status_code == 400

    r = client.put(f"/api/banners/{first['id']}", json={"subtitle": "Hello"}, headers=librarian["headers"])
    assert r.get_json()["data"]["subtitle"] == "Hello"

    assert client.delete(f"/api/banners/{first['id']}", headers=librarian["headers"]).status_code == 200
    assert client.get(f"/api/banners/{first['id']}").status_code == 404
    assert client.post("/api/banners", json={}, headers=librarian["headers"]).status_code == 400


def test_banner_image_is_uploaded(client, librarian, monkeypatch):
    calls = []

    def fake_post(self, url, params=None, data=None, **kwargs):
        calls.append((url, params, data))
        request = httpx.Request("POST", url)
        return httpx.Response(200, json={"data": {"url": "https://i.ibb.co/hosted.png"}}, request=request)

    monkeypatch.setattr(httpx.Client, "post", fake_post)
    r = client.post("/api/banners", json={"title": "Art", "image": "data:image/png;base64,AAAA"},
                    headers=librarian["headers"])
    assert r.status_code == 201
    assert r.get_json()["data"]["image"] == "https://i.ibb.co/hosted.png"
    assert calls[0][1] == {"key": "test-key"}
    assert calls[0][2] == {"image": "AAAA"}


def test_banner_upload_failure_is_502(client, librarian, monkeypatch):
    def failing_post(self, url, **kwargs):
        raise httpx.ConnectError("boom", request=httpx.Request("POST", url))

    monkeypatch.setattr(httpx.Client, "post", failing_post)
    r = client.post("/api/banners", json={"title": "Art", "image": "AAAA"}, headers=librarian["headers"])
    assert r.status_code == 502
    assert client.get("/api/banners").get_json()["count"] == 0


def test_upload_without_key(app):
    app.config["IMGBB_API_KEY"] = ""
    with app.app_context(), pytest.raises(UpstreamError):
        ImageHostClient.upload("AAAA")
