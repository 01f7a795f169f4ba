"""Tests for the HTTP blueprints."""

import unittest

from bandsync import create_app
from bandsync.store import MemoryStore
from tests.helpers import StaticAuthProvider


class RoutesTestCase(unittest.TestCase):
    """Drive the JSON API end to end over a memory store."""

    def setUp(self):
        self.store = MemoryStore()
        self.auth = StaticAuthProvider()
        self.app = create_app(
            {"TESTING": True, "STORE_BACKEND": "memory", "DEFAULT_CURRENCY": "USD"},
            store=self.store,
            auth_provider=self.auth,
        )
        self.client = self.app.test_client()

    def headers(self, uid):
        return {"Authorization": f"Bearer token-{uid}"}

    def register(self, uid):
        self.auth.add(uid, f"{uid}@example.com")
        response = self.client.post(
            "/auth/register", json={"name": uid.title()}, headers=self.headers(uid)
        )
        self.assertEqual(response.status_code, 201, response.get_json())
        return response.get_json()["data"]

    def make_group(self):
        self.register("alice")
        self.register("bob")
        group = self.client.post(
            "/group/", json={"name": "The Reds"}, headers=self.headers("alice")
        ).get_json()["data"]
        self.client.post(
            "/group/join",
            json={"code": group["code"].lower()},
            headers=self.headers("bob"),
        )
        self.client.post(
            f"/group/{group['id']}/approve/bob", headers=self.headers("alice")
        )
        return group["id"]

    def test_missing_token_is_401(self):
        response = self.client.get("/auth/me")
        self.assertEqual(response.status_code, 401)
        body = response.get_json()
        self.assertFalse(body["success"])
        self.assertEqual(body["data"], None)

    def test_forged_token_is_401(self):
        response = self.client.get("/auth/me", headers=self.headers("nobody"))
        self.assertEqual(response.status_code, 401)

    def test_session_login_reports_registration(self):
        self.auth.add("alice", "alice@example.com")
        response = self.client.post("/auth/session", json={"idToken": "token-alice"})
        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.get_json()["data"]["registered"])

        self.register("alice")
        response = self.client.post("/auth/session", headers=self.headers("alice"))
        data = response.get_json()["data"]
        self.assertTrue(data["registered"])
        self.assertEqual(data["profile"]["name"], "Alice")

    def test_unregistered_users_must_register_first(self):
        self.auth.add("alice")
        response = self.client.post(
            "/group/", json={"name": "The Reds"}, headers=self.headers("alice")
        )
        self.assertEqual(response.status_code, 404)

    def test_register_and_me(self):
        self.register("alice")
        response = self.client.get("/auth/me", headers=self.headers("alice"))
        self.assertEqual(response.get_json()["data"]["email"], "alice@example.com")
        duplicate = self.client.post(
            "/auth/register", json={"name": "Again"}, headers=self.headers("alice")
        )
        self.assertEqual(duplicate.status_code, 409)

    def test_group_flow(self):
        group_id = self.make_group()
        response = self.client.get(f"/group/{group_id}", headers=self.headers("bob"))
        self.assertEqual(response.status_code, 200)
        data = response.get_json()["data"]
        self.assertEqual(data["members"], ["alice", "bob"])
        self.assertEqual(data["member_roles"], {"alice": "admin", "bob": "member"})
        self.assertEqual(
            [p["name"] for p in data["member_profiles"]], ["Alice", "Bob"]
        )

        response = self.client.post(
            f"/group/{group_id}/approve/bob", headers=self.headers("bob")
        )
        self.assertEqual(response.status_code, 403)

        response = self.client.post(
            f"/group/{group_id}/leave", headers=self.headers("alice")
        )
        self.assertEqual(response.status_code, 409)
        response = self.client.post(
            f"/group/{group_id}/leave",
            json={"successor": "bob"},
            headers=self.headers("alice"),
        )
        self.assertEqual(response.status_code, 200)

    def test_join_validation(self):
        self.register("bob")
        response = self.client.post(
            "/group/join", json={"code": "??"}, headers=self.headers("bob")
        )
        self.assertEqual(response.status_code, 400)
        response = self.client.post(
            "/group/join", json={"code": "ZZZZZZ"}, headers=self.headers("bob")
        )
        self.assertEqual(response.status_code, 404)

    def test_member_management_routes(self):
        group_id = self.make_group()
        alice = self.headers("alice")
        response = self.client.patch(
            f"/group/{group_id}", json={"name": "Red Hot"}, headers=alice
        )
        self.assertEqual(response.get_json()["data"]["name"], "Red Hot")
        response = self.client.post(f"/group/{group_id}/code", headers=alice)
        self.assertEqual(response.status_code, 200)
        response = self.client.post(
            f"/group/{group_id}/members/bob/role",
            json={"role": "manager"},
            headers=alice,
        )
        self.assertEqual(response.get_json()["data"]["member_roles"]["bob"], "manager")
        response = self.client.delete(f"/group/{group_id}/members/bob", headers=alice)
        self.assertEqual(response.get_json()["data"]["members"], ["alice"])

    def test_permissions_routes(self):
        group_id = self.make_group()
        response = self.client.get(
            f"/permissions/{group_id}", headers=self.headers("bob")
        )
        data = response.get_json()["data"]
        self.assertEqual(data["role"], "member")
        self.assertNotIn("admin", data["accessible_modules"])
        self.assertEqual(data["modules"]["admin"], ["admin"])

        response = self.client.delete(
            f"/permissions/{group_id}/admin",
            json={"roles": ["admin"]},
            headers=self.headers("alice"),
        )
        self.assertEqual(response.status_code, 422)

        response = self.client.put(
            f"/permissions/{group_id}/tasks",
            json={"roles": ["admin", "manager"]},
            headers=self.headers("alice"),
        )
        self.assertEqual(response.status_code, 200)
        response = self.client.get(
            f"/group/{group_id}/tasks/", headers=self.headers("bob")
        )
        self.assertEqual(response.status_code, 403)

        response = self.client.post(
            f"/permissions/{group_id}/reset", headers=self.headers("alice")
        )
        self.assertEqual(
            response.get_json()["data"]["modules"]["tasks"],
            ["admin", "manager", "musician", "member"],
        )

    def test_record_routes(self):
        group_id = self.make_group()
        alice, bob = self.headers("alice"), self.headers("bob")
        base = f"/group/{group_id}"

        response = self.client.post(
            f"{base}/calendar/",
            json={"title": "Gig", "date": "2025-05-01T20:00:00Z"},
            headers=alice,
        )
        self.assertEqual(response.status_code, 201)
        event_id = response.get_json()["data"]["id"]
        response = self.client.get(f"{base}/calendar/{event_id}", headers=bob)
        date = response.get_json()["data"]["date"]
        self.assertEqual(date, "2025-05-01T20:00:00+00:00")
        response = self.client.get(
            f"{base}/calendar/?start=2025-06-01T00:00:00Z", headers=bob
        )
        self.assertEqual(response.get_json()["data"], [])
        response = self.client.put(
            f"{base}/calendar/{event_id}",
            json={"title": "Big gig", "date": "2025-05-01T20:00:00Z"},
            headers=bob,
        )
        self.assertEqual(response.status_code, 403)
        response = self.client.delete(f"{base}/calendar/{event_id}", headers=alice)
        self.assertEqual(response.status_code, 200)
        response = self.client.get(f"{base}/calendar/{event_id}", headers=alice)
        self.assertEqual(response.status_code, 404)

        response = self.client.get(f"{base}/karaoke/", headers=alice)
        self.assertEqual(response.status_code, 404)
        response = self.client.post(f"{base}/setlists/", json={"name": ""}, headers=bob)
        self.assertEqual(response.status_code, 400)

    def test_merch_sale_and_filtered_finances(self):
        group_id = self.make_group()
        alice = self.headers("alice")
        base = f"/group/{group_id}"
        item = self.client.post(
            f"{base}/merchandise/",
            json={"name": "Shirt", "price": 20, "stock": {"M": 5}},
            headers=alice,
        ).get_json()["data"]
        self.assertEqual(item["totalStock"], 5)

        response = self.client.post(
            f"{base}/merchandise/{item['id']}/sell",
            json={"size": "M", "quantity": 2, "channel": "concert"},
            headers=alice,
        )
        self.assertEqual(response.status_code, 201)
        income = response.get_json()["data"]["income"]
        self.assertEqual((income["amount"], income["currency"]), (40.0, "USD"))

        response = self.client.post(
            f"{base}/merchandise/{item['id']}/sell",
            json={"size": "M", "quantity": 9},
            headers=alice,
        )
        self.assertEqual(response.status_code, 400)

        self.client.post(
            f"{base}/finances/",
            json={
                "type": "expense",
                "amount": 15,
                "currency": "USD",
                "category": "food",
                "date": "2025-04-02",
            },
            headers=alice,
        )
        response = self.client.get(
            f"{base}/finances/filtered?type=income&sort=amount_desc",
            headers=self.headers("bob"),
        )
        data = response.get_json()["data"]
        self.assertEqual([r["category"] for r in data["records"]], ["merch"])
        self.assertEqual(data["summary"]["income"], 40.0)

        response = self.client.get(
            f"{base}/finances/filtered?sort=sideways", headers=alice
        )
        self.assertEqual(response.status_code, 400)

        sales = self.client.get(f"{base}/merchandise/sales", headers=alice)
        self.assertEqual(len(sales.get_json()["data"]), 1)

    def test_task_routes(self):
        group_id = self.make_group()
        bob = self.headers("bob")
        base = f"/group/{group_id}"
        task = self.client.post(
            f"{base}/tasks/",
            json={"title": "Book van", "assignedTo": "bob"},
            headers=bob,
        ).get_json()["data"]
        response = self.client.post(f"{base}/tasks/{task['id']}/complete", headers=bob)
        self.assertTrue(response.get_json()["data"]["completed"])
        listing = self.client.get(f"{base}/tasks/?mine=1", headers=bob).get_json()
        self.assertEqual(listing["data"]["pending"], [])
        self.assertEqual([t["id"] for t in listing["data"]["completed"]], [task["id"]])

    def test_chat_routes(self):
        group_id = self.make_group()
        base = f"/group/{group_id}"
        self.client.post(
            f"{base}/chats/",
            json={"name": "Band", "participants": ["alice", "bob"]},
            headers=self.headers("alice"),
        )
        self.client.post(
            f"{base}/chats/",
            json={"name": "Admins", "participants": ["alice"]},
            headers=self.headers("alice"),
        )
        listing = self.client.get(f"{base}/chats/?mine=1", headers=self.headers("bob"))
        self.assertEqual([c["name"] for c in listing.get_json()["data"]], ["Band"])

    def test_unknown_route_uses_envelope(self):
        response = self.client.get("/nowhere")
        self.assertEqual(response.status_code, 404)
        self.assertFalse(response.get_json()["success"])


class ProxyFixTestCase(unittest.TestCase):
    """Test case for ProxyFix middleware."""

    def test_https_scheme_with_proxy_headers(self):
        app = create_app({"TESTING": True, "STORE_BACKEND": "memory"})

        @app.route("/test_scheme")
        def test_scheme():
            from flask import request

            return request.scheme

        response = app.test_client().get(
            "/test_scheme", headers={"X-Forwarded-Proto": "https"}
        )
        self.assertEqual(response.data.decode(), "https")


if __name__ == "__main__":
    unittest.main()
