"""
Tests for Books API Endpoints

Tests for /api/books endpoints.
"""

import logging

import pytest
from fastapi import status


def book_payload(author_id: int, **overrides) -> dict:
    payload = {
        "title": "Pulang",
        "description": "A family in exile after 1965.",
        "publish_date": "2012-12-01",
        "author_id": author_id,
    }
    payload.update(overrides)
    return payload


class TestListBooks:
    """Tests for GET /api/books endpoint."""

    def test_list_books_empty(self, client):
        response = client.get("/api/books")

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["data"] == []
        assert body["last_page"] == 1

    def test_list_books_embeds_author(self, client, sample_book, sample_author):
        """Full rows carry the author's id and name."""
        response = client.get("/api/books")

        assert response.status_code == status.HTTP_200_OK
        row = response.json()["data"][0]
        assert row["title"] == "Laut Bercerita"
        assert row["author"] == {"id": sample_author.id, "name": "Leila Chudori"}

    def test_list_books_fields_projection(self, client, sample_book):
        response = client.get("/api/books?fields=id,title")

        rows = response.json()["data"]
        assert rows == [{"id": sample_book.id, "title": "Laut Bercerita"}]

    def test_list_books_search_title_or_description(self, client, dated_books, sample_book):
        by_title = client.get("/api/books?search=Laut").json()
        by_description = client.get("/api/books?search=Published in 2010").json()

        assert [b["id"] for b in by_title["data"]] == [sample_book.id]
        assert [b["title"] for b in by_description["data"]] == ["Book of 2010"]

    @pytest.mark.parametrize(
        "query,titles",
        [
            ("publish_date_from=2005-01-01", ["Book of 2010", "Book of 2020"]),
            ("publish_date_to=2005-01-01", ["Book of 2000"]),
            ("publish_date_from=2005-01-01&publish_date_to=2015-01-01", ["Book of 2010"]),
            ("publish_date_from=2010-06-15&publish_date_to=2010-06-15", ["Book of 2010"]),
        ],
    )
    def test_list_books_publish_date_range(self, client, dated_books, query, titles):
        """Bounds are inclusive; one bound alone is open-ended."""
        response = client.get(f"/api/books?{query}")

        assert response.status_code == status.HTTP_200_OK
        assert [b["title"] for b in response.json()["data"]] == titles

    def test_list_books_search_combines_with_date_range(self, client, dated_books):
        """A search match outside the date range is excluded."""
        response = client.get("/api/books?search=Book of&publish_date_from=2015-01-01")

        assert [b["title"] for b in response.json()["data"]] == ["Book of 2020"]

    def test_list_books_sort_by_publish_date_desc(self, client, dated_books):
        response = client.get("/api/books?sort_field=publish_date&sort_order=desc")

        titles = [b["title"] for b in response.json()["data"]]
        assert titles == ["Book of 2020", "Book of 2010", "Book of 2000"]

    @pytest.mark.parametrize(
        "query,field",
        [
            ("publish_date_from=2005", "publish_date_from"),
            ("publish_date_to=2005-13-01", "publish_date_to"),
            ("sort_field=name", "sort_field"),
            ("fields=id,name", "fields"),
        ],
    )
    def test_list_books_invalid_query(self, client, query, field):
        response = client.get(f"/api/books?{query}")

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert field in response.json()["errors"]


class TestGetBook:
    """Tests for GET /api/books/{book_id} endpoint."""

    def test_get_book_includes_full_author(self, client, sample_book, sample_author):
        response = client.get(f"/api/books/{sample_book.id}")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert data["title"] == "Laut Bercerita"
        assert data["publish_date"] == "2017-10-01"
        assert data["author"]["id"] == sample_author.id
        assert data["author"]["bio"] == "Indonesian novelist and journalist."

    def test_get_book_fields(self, client, sample_book):
        response = client.get(f"/api/books/{sample_book.id}?fields=title,author_id")

        assert response.json()["data"] == {
            "title": "Laut Bercerita",
            "author_id": sample_book.author_id,
        }

    def test_get_book_not_found(self, client):
        response = client.get("/api/books/99999")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json() == {"error": "Book not found.", "status": 404}


class TestCreateBook:
    """Tests for POST /api/books endpoint."""

    def test_create_book(self, client, sample_author):
        payload = book_payload(sample_author.id)

        response = client.post("/api/books", json=payload)

        assert response.status_code == status.HTTP_201_CREATED
        body = response.json()
        assert body["status"] == 201
        for key, value in payload.items():
            assert body["data"][key] == value

        shown = client.get(f"/api/books/{body['data']['id']}").json()["data"]
        for key, value in payload.items():
            assert shown[key] == value

    def test_create_book_unknown_author(self, client):
        response = client.post("/api/books", json=book_payload(99999))

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert response.json() == {
            "errors": {"author_id": ["The selected author id is invalid."]},
            "status": 422,
        }

    def test_create_book_invalid_fields(self, client, sample_author):
        response = client.post(
            "/api/books",
            json=book_payload(sample_author.id, title="   ", publish_date="2012/12/01"),
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert set(response.json()["errors"]) == {"title", "publish_date"}

    def test_create_book_appears_in_cached_list(self, client, sample_author):
        """Creating a book invalidates the cached list pages."""
        assert client.get("/api/books").json()["total"] == 0

        client.post("/api/books", json=book_payload(sample_author.id))

        assert client.get("/api/books").json()["total"] == 1


class TestUpdateBook:
    """Tests for PUT and PATCH /api/books/{book_id}."""

    @pytest.mark.parametrize("method", ["PUT", "PATCH"])
    def test_update_book_title(self, client, sample_book, method):
        response = client.request(
            method, f"/api/books/{sample_book.id}", json={"title": "Laut Bercerita (2nd ed.)"}
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert data["title"] == "Laut Bercerita (2nd ed.)"
        assert data["publish_date"] == "2017-10-01"

    def test_update_book_author(self, client, sample_book, second_author):
        client.get(f"/api/books/{sample_book.id}")

        response = client.patch(
            f"/api/books/{sample_book.id}", json={"author_id": second_author.id}
        )

        assert response.status_code == status.HTTP_200_OK
        shown = client.get(f"/api/books/{sample_book.id}").json()["data"]
        assert shown["author"]["name"] == "Pramoedya Ananta Toer"

    def test_update_book_unknown_author(self, client, sample_book):
        response = client.patch(f"/api/books/{sample_book.id}", json={"author_id": 99999})

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert "author_id" in response.json()["errors"]

    def test_update_book_not_found(self, client):
        response = client.patch("/api/books/99999", json={"title": "Updated"})

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error"] == "Book not found."


class TestDeleteBook:
    """Tests for DELETE /api/books/{book_id} endpoint."""

    def test_delete_book_success(self, client, sample_book):
        book_id = sample_book.id
        client.get(f"/api/books/{book_id}")

        response = client.delete(f"/api/books/{book_id}")

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert client.get(f"/api/books/{book_id}").status_code == status.HTTP_404_NOT_FOUND
        assert client.get("/api/books").json()["total"] == 0

    def test_delete_book_not_found(self, client):
        response = client.delete("/api/books/99999")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json() == {"error": "Book not found.", "status": 404}


class TestBookWriteFailures:
    """A failed commit is rolled back, logged and reported as a 500."""

    def test_create_book_commit_fails(self, client, sample_author, break_commits, caplog):
        rollbacks = break_commits()

        with caplog.at_level(logging.ERROR, logger="library_api.services.resources"):
            response = client.post("/api/books", json=book_payload(sample_author.id))

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json() == {"error": "Failed to create book.", "status": 500}
        assert rollbacks == [True]
        assert "Failed to create book: database connection lost" in caplog.text

    def test_update_book_commit_fails(self, client, sample_book, break_commits, caplog):
        rollbacks = break_commits()

        with caplog.at_level(logging.ERROR, logger="library_api.services.resources"):
            response = client.patch(f"/api/books/{sample_book.id}", json={"title": "Laut Bercerita"})

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json() == {"error": "Failed to update book.", "status": 500}
        assert rollbacks == [True]
        assert f"Failed to update book {sample_book.id}" in caplog.text

    def test_delete_book_commit_fails(self, client, sample_book, break_commits, caplog):
        rollbacks = break_commits()

        with caplog.at_level(logging.ERROR, logger="library_api.services.resources"):
            response = client.delete(f"/api/books/{sample_book.id}")

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json() == {"error": "Failed to delete book.", "status": 500}
        assert rollbacks == [True]
        assert f"Failed to delete book {sample_book.id}" in caplog.text
