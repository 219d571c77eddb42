"""API tests for /features: create defaults, validation, list paging/filter/search, stats, update, delete."""

import unittest

from api_support import VALID_DESCRIPTION, ApiTestCase


class FeaturesTestCase(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.headers = self.auth_headers("admin@example.com", role="admin", name="Alice Admin")


class TestCreate(FeaturesTestCase):
    """POST /api/features applies defaults and validates every field at once."""

    def test_minimal_feature_gets_defaults(self) -> None:
        resp = self.client.post(
            "/api/features",
            json={"name": "X", "description": VALID_DESCRIPTION},
            headers=self.headers,
        )
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.json()["message"], "Feature created successfully")
        feature = resp.json()["data"]["feature"]
        self.assertEqual(feature["status"], "planned")
        self.assertEqual(feature["priority"], "medium")
        self.assertEqual(feature["attachments"], [])
        self.assertEqual(feature["tags"], [])
        self.assertEqual(feature["author"], "Alice Admin")
        self.assertEqual(feature["purpose"], "")
        self.assertEqual(feature["technicalDetails"], "")
        self.assertIsNotNone(feature["createdAt"])

    def test_full_feature_accepts_camel_case(self) -> None:
        feature = self.create_feature(
            self.headers,
            name="  Lane Booking  ",
            purpose="Let bowlers reserve lanes online.",
            implementation="Booking service with a calendar view.",
            technicalDetails="FastAPI, PostgreSQL and a queue.",
            status="in-progress",
            priority="critical",
            tags=[" booking ", "lanes"],
            author="Backend Team",
        )
        self.assertEqual(feature["name"], "Lane Booking")
        self.assertEqual(feature["technicalDetails"], "FastAPI, PostgreSQL and a queue.")
        self.assertEqual(feature["tags"], ["booking", "lanes"])
        self.assertEqual(feature["author"], "Backend Team")

    def test_all_violations_reported_together(self) -> None:
        resp = self.client.post(
            "/api/features",
            json={
                "name": "",
                "description": "short",
                "purpose": "tiny",
                "status": "done",
                "priority": "urgent",
                "tags": ["x" * 51],
                "author": "A",
            },
            headers=self.headers,
        )
        self.assertEqual(resp.status_code, 400)
        body = resp.json()
        self.assertEqual(body["message"], "Validation failed")
        fields = {e["field"] for e in body["errors"]}
        self.assertEqual(
            fields,
            {"name", "description", "purpose", "status", "priority", "tags", "author"},
        )
        self.assertEqual(self.feature_count(), 0)

    def test_too_many_tags(self) -> None:
        resp = self.client.post(
            "/api/features",
            json={
                "name": "X",
                "description": VALID_DESCRIPTION,
                "tags": [f"t{i}" for i in range(11)],
            },
            headers=self.headers,
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["errors"][0]["field"], "tags")
        self.assertEqual(resp.json()["errors"][0]["message"], "Maximum 10 tags allowed")


class TestList(FeaturesTestCase):
    """GET /api/features pages, filters, searches and sorts."""

    def test_pagination_remainder(self) -> None:
        for i in range(25):
            self.create_feature(self.headers, name=f"Feature {i:02d}")
        resp = self.client.get("/api/features", params={"page": 3, "limit": 10})
        self.assertEqual(resp.status_code, 200)
        data = resp.json()["data"]
        self.assertEqual(len(data["features"]), 5)
        pagination = data["pagination"]
        self.assertEqual(pagination["currentPage"], 3)
        self.assertEqual(pagination["totalPages"], 3)
        self.assertEqual(pagination["totalFeatures"], 25)
        self.assertEqual(pagination["totalPlanned"], 25)
        self.assertFalse(pagination["hasNextPage"])
        self.assertTrue(pagination["hasPrevPage"])
        self.assertEqual(pagination["limit"], 10)

    def test_default_order_is_newest_update_first(self) -> None:
        first = self.create_feature(self.headers, name="First")
        second = self.create_feature(self.headers, name="Second")
        ids = [f["id"] for f in self.client.get("/api/features").json()["data"]["features"]]
        self.assertEqual(ids, [second["id"], first["id"]])

    def test_sort_by_name_ascending(self) -> None:
        for name in ("Charlie", "Alpha", "Bravo"):
            self.create_feature(self.headers, name=name)
        resp = self.client.get("/api/features", params={"sortBy": "name", "sortOrder": "asc"})
        names = [f["name"] for f in resp.json()["data"]["features"]]
        self.assertEqual(names, ["Alpha", "Bravo", "Charlie"])

    def test_status_and_priority_filters(self) -> None:
        self.create_feature(self.headers, name="A", status="completed", priority="high")
        self.create_feature(self.headers, name="B", status="completed", priority="low")
        self.create_feature(self.headers, name="C", status="planned", priority="high")

        resp = self.client.get("/api/features", params={"status": "completed"})
        data = resp.json()["data"]
        self.assertEqual({f["name"] for f in data["features"]}, {"A", "B"})
        self.assertEqual(data["pagination"]["totalFeatures"], 2)
        # Per-status counters describe the whole collection.
        self.assertEqual(data["pagination"]["totalPlanned"], 1)
        self.assertEqual(data["pagination"]["totalCompleted"], 2)

        resp = self.client.get(
            "/api/features", params={"status": "completed", "priority": "high"}
        )
        self.assertEqual([f["name"] for f in resp.json()["data"]["features"]], ["A"])

        resp = self.client.get("/api/features", params={"status": "all", "priority": "all"})
        self.assertEqual(resp.json()["data"]["pagination"]["totalFeatures"], 3)

    def test_search_matches_name_description_and_tags(self) -> None:
        self.create_feature(self.headers, name="Tournament Brackets")
        self.create_feature(
            self.headers, name="Scores", description="Live scoring for every TOURNAMENT lane."
        )
        self.create_feature(self.headers, name="Shop", tags=["tournament-gear"])
        self.create_feature(self.headers, name="Unrelated")
        resp = self.client.get("/api/features", params={"search": "tournament"})
        names = {f["name"] for f in resp.json()["data"]["features"]}
        self.assertEqual(names, {"Tournament Brackets", "Scores", "Shop"})

    def test_search_wildcards_are_literal(self) -> None:
        self.create_feature(self.headers, name="Plain")
        self.create_feature(self.headers, name="100% done")
        resp = self.client.get("/api/features", params={"search": "%"})
        self.assertEqual([f["name"] for f in resp.json()["data"]["features"]], ["100% done"])

    def test_invalid_query_params(self) -> None:
        for params in (
            {"limit": 0},
            {"limit": 101},
            {"page": 0},
            {"page": 2**31},
            {"page": 10**30},
            {"status": "done"},
        ):
            resp = self.client.get("/api/features", params=params)
            self.assertEqual(resp.status_code, 400, params)
            self.assertFalse(resp.json()["success"])

    def test_last_allowed_page_is_empty(self) -> None:
        self.create_feature(self.headers)
        resp = self.client.get("/api/features", params={"page": 2**31 - 1, "limit": 100})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["data"]["features"], [])


class TestDetailAndStats(FeaturesTestCase):
    """GET /api/features/{id} and /api/features/stats."""

    def test_get_is_idempotent(self) -> None:
        feature = self.create_feature(self.headers)
        first = self.client.get(f"/api/features/{feature['id']}").json()
        second = self.client.get(f"/api/features/{feature['id']}").json()
        self.assertEqual(first, second)
        self.assertEqual(first["data"]["feature"]["updatedAt"], feature["updatedAt"])

    def test_malformed_and_unknown_ids_are_404(self) -> None:
        for feature_id in ("not-an-id", "999", "-1"):
            resp = self.client.get(f"/api/features/{feature_id}")
            self.assertEqual(resp.status_code, 404, feature_id)
            self.assertEqual(resp.json()["message"], "Feature not found")

    def test_stats(self) -> None:
        self.create_feature(self.headers, status="completed", priority="high")
        self.create_feature(self.headers, status="planned", priority="high")
        self.create_feature(self.headers, status="on-hold", priority="low")
        resp = self.client.get("/api/features/stats")
        self.assertEqual(resp.status_code, 200)
        stats = resp.json()["data"]
        self.assertEqual(
            stats["status"],
            {
                "total": 3,
                "planned": 1,
                "in-progress": 0,
                "completed": 1,
                "on-hold": 1,
                "cancelled": 0,
            },
        )
        self.assertEqual(stats["priority"], {"low": 1, "medium": 0, "high": 2, "critical": 0})


class TestUpdateAndDelete(FeaturesTestCase):
    """PUT/PATCH and DELETE /api/features/{id}."""

    def test_partial_update_keeps_other_fields(self) -> None:
        feature = self.create_feature(self.headers, name="Old", tags=["a"])
        resp = self.client.patch(
            f"/api/features/{feature['id']}",
            json={"status": "completed"},
            headers=self.headers,
        )
        self.assertEqual(resp.status_code, 200)
        updated = resp.json()["data"]["feature"]
        self.assertEqual(updated["status"], "completed")
        self.assertEqual(updated["name"], "Old")
        self.assertEqual(updated["tags"], ["a"])

    def test_put_validates_like_create(self) -> None:
        feature = self.create_feature(self.headers)
        resp = self.client.put(
            f"/api/features/{feature['id']}",
            json={"description": "short", "priority": "urgent"},
            headers=self.headers,
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(
            {e["field"] for e in resp.json()["errors"]}, {"description", "priority"}
        )

    def test_update_unknown_feature(self) -> None:
        resp = self.client.patch("/api/features/999", json={"name": "Y"}, headers=self.headers)
        self.assertEqual(resp.status_code, 404)

    def test_delete(self) -> None:
        feature = self.create_feature(self.headers)
        resp = self.client.delete(f"/api/features/{feature['id']}", headers=self.headers)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["message"], "Feature deleted successfully")
        self.assertEqual(self.client.get(f"/api/features/{feature['id']}").status_code, 404)
        resp = self.client.delete(f"/api/features/{feature['id']}", headers=self.headers)
        self.assertEqual(resp.status_code, 404)


class TestMisc(ApiTestCase):
    """Health check and unknown routes."""

    def test_health(self) -> None:
        resp = self.client.get("/api/health")
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["database"], "connected")
        self.assertEqual(body["environment"], "dev")

    def test_unknown_route(self) -> None:
        resp = self.client.get("/api/nope")
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json(), {"success": False, "message": "Route not found"})


if __name__ == "__main__":
    unittest.main()
