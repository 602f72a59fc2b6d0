"""Tests for the marketplace API routes."""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from kuvaajat.database import InMemoryRecordStore
from kuvaajat.errors import StorageError
from kuvaajat.main import create_app


def post_job(client, headers, payload):
    response = client.post("/api/job", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["job"]


def post_bid(client, headers, job_id, price=500, proposal="Happy to help"):
    response = client.post(
        "/api/bid", json={"jobId": job_id, "price": price, "proposal": proposal}, headers=headers
    )
    assert response.status_code == 201, response.text
    return response.json()["bid"]


class TestHealth:
    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_health_with_memory_store(self, client):
        response = client.get("/health")
        assert response.json() == {"status": "healthy", "database": "connected"}


class TestJobRoutes:
    """Tests for job endpoints."""

    def test_post_job(self, client, customer_headers, customer, job_payload):
        response = client.post(
            "/api/job",
            json=job_payload(customerId="usr_someone_else"),
            headers=customer_headers,
        )

        assert response.status_code == 201
        data = response.json()
        assert data["success"] is True
        assert data["message"] == "Job posted successfully"
        assert data["job"]["status"] == "open"
        # Owner always comes from the token
        assert data["job"]["customerId"] == customer.subject_id

    def test_post_job_requires_auth(self, client, job_payload):
        response = client.post("/api/job", json=job_payload())
        assert response.status_code == 401

    def test_photographer_cannot_post(self, client, photographer_headers, job_payload):
        response = client.post("/api/job", json=job_payload(), headers=photographer_headers)

        assert response.status_code == 403
        assert "error" in response.json()

    def test_budget_order_error(self, client, customer_headers, job_payload):
        response = client.post(
            "/api/job",
            json=job_payload(services=["valokuvat"], budgetUnknown=False, budgetMin=100, budgetMax=50),
            headers=customer_headers,
        )

        assert response.status_code == 400
        assert "maximum budget must be greater than minimum" in response.json()["error"].lower()

    def test_empty_services_error(self, client, customer_headers, job_payload):
        response = client.post("/api/job", json=job_payload(services=[]), headers=customer_headers)

        assert response.status_code == 400
        assert "at least one service" in response.json()["error"].lower()

    def test_type_error_is_400(self, client, customer_headers, job_payload):
        response = client.post(
            "/api/job", json=job_payload(budgetMin="lots"), headers=customer_headers
        )

        assert response.status_code == 400
        assert "budgetMin" in response.json()["error"]

    @pytest.mark.parametrize("value", [True, "100"])
    def test_budget_must_be_a_json_number(self, client, customer_headers, job_payload, value):
        response = client.post("/api/job", json=job_payload(budgetMin=value), headers=customer_headers)

        assert response.status_code == 400
        assert "budgetMin" in response.json()["error"]

    @pytest.mark.parametrize("overrides", [{"radius": "far"}, {"services": "valokuvat"}])
    def test_photographer_with_malformed_job_gets_403(self, client, photographer_headers, job_payload, overrides):
        response = client.post("/api/job", json=job_payload(**overrides), headers=photographer_headers)

        assert response.status_code == 403

    def test_expired_job_visibility(
        self, client, customer_headers, photographer_headers, job_payload
    ):
        past = (datetime.now(timezone.utc) - timedelta(hours=1)).isoformat()
        job = post_job(client, customer_headers, job_payload(expiresAt=past))

        photographer_view = client.get("/api/jobs", headers=photographer_headers).json()
        customer_view = client.get("/api/jobs", headers=customer_headers).json()

        assert job["id"] not in {j["id"] for j in photographer_view["jobs"]}
        statuses = {j["id"]: j["status"] for j in customer_view["jobs"]}
        assert statuses[job["id"]] == "expired"

    def test_list_mine(self, client, customer_headers, other_customer_headers, job_payload):
        mine = post_job(client, customer_headers, job_payload())
        post_job(client, other_customer_headers, job_payload())

        response = client.get("/api/jobs", params={"mine": "true"}, headers=customer_headers)

        assert [j["id"] for j in response.json()["jobs"]] == [mine["id"]]

    def test_get_job(self, client, customer_headers, photographer_headers, job_payload):
        job = post_job(client, customer_headers, job_payload())

        response = client.get(f"/api/jobs/{job['id']}", headers=photographer_headers)
        assert response.status_code == 200
        assert response.json()["job"]["description"] == job["description"]

        assert client.get("/api/jobs/nope", headers=photographer_headers).status_code == 404

    def test_delete_job(self, client, customer_headers, other_customer_headers, job_payload):
        job = post_job(client, customer_headers, job_payload())

        forbidden = client.delete(f"/api/job/{job['id']}", headers=other_customer_headers)
        assert forbidden.status_code == 403

        response = client.delete(f"/api/job/{job['id']}", headers=customer_headers)
        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Job deleted successfully"}

        again = client.delete(f"/api/job/{job['id']}", headers=customer_headers)
        assert again.status_code == 404


class TestBidRoutes:
    """Tests for bid endpoints."""

    def test_post_bid(self, client, photographer_headers, photographer):
        response = client.post(
            "/api/bid",
            json={"jobId": "job-1", "price": 300, "proposal": "Hi", "videographerId": "spoofed"},
            headers=photographer_headers,
        )

        assert response.status_code == 201
        data = response.json()
        assert data["message"] == "Bid submitted successfully"
        assert data["bid"]["videographerId"] == photographer.subject_id
        assert data["bid"]["status"] == "pending"

    def test_negative_price(self, client, photographer_headers):
        response = client.post(
            "/api/bid", json={"jobId": "job-1", "price": -5, "proposal": "Hi"}, headers=photographer_headers
        )

        assert response.status_code == 400
        assert "positive number" in response.json()["error"]

    @pytest.mark.parametrize("price", [True, "250"])
    def test_price_must_be_a_json_number(self, client, photographer_headers, price):
        response = client.post(
            "/api/bid", json={"jobId": "job-1", "price": price, "proposal": "Hi"}, headers=photographer_headers
        )

        assert response.status_code == 400
        assert response.json()["error"].startswith("price:")

    def test_customer_with_malformed_bid_gets_403(self, client, customer_headers):
        response = client.post("/api/bid", json={"jobId": 7, "price": "lots"}, headers=customer_headers)
        assert response.status_code == 403

    def test_customer_cannot_bid(self, client, customer_headers):
        response = client.post(
            "/api/bid", json={"jobId": "job-1", "price": 5, "proposal": "Hi"}, headers=customer_headers
        )
        assert response.status_code == 403

    def test_accept_flow(self, client, customer_headers, photographer_headers, auth_headers, job_payload):
        job = post_job(client, customer_headers, job_payload())
        b1 = post_bid(client, photographer_headers, job["id"])
        b2 = post_bid(client, auth_headers("usr_photographer_2", "photographer"), job["id"], price=450)

        response = client.patch(
            f"/api/bids/{b1['id']}", json={"status": "accepted"}, headers=customer_headers
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Bid accepted successfully"}
        bids = {b["id"]: b for b in client.get("/api/bids", headers=customer_headers).json()["bids"]}
        assert bids[b1["id"]]["status"] == "accepted"
        assert bids[b2["id"]]["status"] == "rejected"
        assert bids[b1["id"]]["job"]["status"] == "accepted"

        # A second winner is refused
        conflict = client.patch(
            f"/api/bids/{b2['id']}", json={"status": "accepted"}, headers=customer_headers
        )
        assert conflict.status_code == 409

    def test_non_owner_cannot_accept(
        self, client, customer_headers, other_customer_headers, photographer_headers, job_payload
    ):
        job = post_job(client, customer_headers, job_payload())
        bid = post_bid(client, photographer_headers, job["id"])

        response = client.patch(
            f"/api/bids/{bid['id']}", json={"status": "accepted"}, headers=other_customer_headers
        )

        assert response.status_code == 404
        mine = client.get("/api/my-bids", headers=photographer_headers).json()["bids"]
        assert mine[0]["status"] == "pending"

    def test_invalid_status(self, client, customer_headers, photographer_headers, job_payload):
        job = post_job(client, customer_headers, job_payload())
        bid = post_bid(client, photographer_headers, job["id"])

        response = client.patch(
            f"/api/bids/{bid['id']}", json={"status": "pending"}, headers=customer_headers
        )

        assert response.status_code == 400

    def test_photographer_cannot_resolve(self, client, photographer_headers):
        response = client.patch("/api/bids/b1", json={"status": "accepted"}, headers=photographer_headers)
        assert response.status_code == 403

    def test_my_bids(self, client, customer_headers, photographer_headers, job_payload):
        job = post_job(client, customer_headers, job_payload())
        post_bid(client, photographer_headers, job["id"])
        post_bid(client, photographer_headers, "gone")

        response = client.get("/api/my-bids", headers=photographer_headers)

        assert response.status_code == 200
        jobs = {b["jobId"]: b["job"] for b in response.json()["bids"]}
        assert jobs["gone"] is None
        assert jobs[job["id"]]["budget_min"] == 500

    def test_customer_listing_includes_profile(
        self, client, customer_headers, photographer_headers, photographer, job_payload
    ):
        client.put(
            "/api/profile",
            json={"name": "Aino", "profilePicture": "https://cdn.example/a.jpg"},
            headers=photographer_headers,
        )
        job = post_job(client, customer_headers, job_payload())
        post_bid(client, photographer_headers, job["id"])

        bids = client.get("/api/bids", headers=customer_headers).json()["bids"]

        assert bids[0]["photographer"] == {
            "id": photographer.subject_id,
            "name": "Aino",
            "profilePicture": "https://cdn.example/a.jpg",
        }


class TestProfileRoutes:
    def test_profile_round_trip(self, client, photographer_headers, customer_headers, photographer):
        saved = client.put(
            "/api/profile",
            json={
                "name": "Aino",
                "contactName": "Aino Kuvaaja",
                "phoneNumber": "040 123 4567",
                "companyName": "Foto Oy",
                "profileLanguages": ["fi", "en"],
                "teamSize": 2,
                "styleTags": ["documentary"],
                "notAProfileField": "dropped",
            },
            headers=photographer_headers,
        )
        assert saved.status_code == 200

        response = client.get(f"/api/profile/{photographer.subject_id}", headers=customer_headers)

        assert response.status_code == 200
        profile = response.json()["profile"]
        assert profile["name"] == "Aino"
        assert profile["contactName"] == "Aino Kuvaaja"
        assert profile["phoneNumber"] == "040 123 4567"
        assert profile["companyName"] == "Foto Oy"
        assert profile["profileLanguages"] == ["fi", "en"]
        assert profile["teamSize"] == 2
        assert profile["styleTags"] == ["documentary"]
        assert "notAProfileField" not in profile

    def test_contact_name_shown_in_bid_listing(
        self, client, customer_headers, photographer_headers, photographer, job_payload
    ):
        client.put("/api/profile", json={"contactName": "Aino Kuvaaja"}, headers=photographer_headers)
        job = post_job(client, customer_headers, job_payload())
        post_bid(client, photographer_headers, job["id"])

        bids = client.get("/api/bids", headers=customer_headers).json()["bids"]

        assert bids[0]["photographer"]["name"] == "Aino Kuvaaja"

    def test_customer_with_malformed_profile_gets_403(self, client, customer_headers):
        response = client.put("/api/profile", json={"teamSize": "many"}, headers=customer_headers)
        assert response.status_code == 403

    def test_portfolio_round_trip(self, client, photographer_headers, customer_headers, photographer):
        client.put(
            "/api/portfolio",
            json={"description": "Events", "items": [{"url": "https://cdn.example/1.mp4", "type": "video"}]},
            headers=photographer_headers,
        )

        response = client.get(f"/api/portfolio/{photographer.subject_id}", headers=customer_headers)

        assert response.json()["portfolio"]["items"][0]["type"] == "video"

    def test_missing_portfolio(self, client, customer_headers):
        response = client.get("/api/portfolio/nobody", headers=customer_headers)
        assert response.status_code == 404
        assert response.json() == {"error": "Portfolio not found"}


class TestStorageFailures:
    def test_storage_error_is_generic_500(self, customer_headers):
        class BrokenStore(InMemoryRecordStore):
            async def query_by_kind(self, kind, **equals):
                raise StorageError("connection refused to db-internal-7")

        client = TestClient(create_app(store=BrokenStore()))

        response = client.get("/api/jobs", headers=customer_headers)

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}
