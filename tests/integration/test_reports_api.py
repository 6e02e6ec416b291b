"""
Integration tests for the Voyage Report API.

Drives the full HTTP surface against the in-memory SQLite database.
Fixtures (db, client, test_vessel, payloads) provided by tests/conftest.py.
"""

import pytest

CAPTAIN = "Capt. Rivera"
REVIEWER = "ops.manager"


def submit(client, vessel_id, report_type, report_data, submitted_by=CAPTAIN):
    return client.post("/api/reports", json={
        "vessel_id": vessel_id,
        "submitted_by": submitted_by,
        "report_type": report_type,
        "report_data": report_data,
    })


def approve(client, report_id, reviewer=REVIEWER):
    return client.post(f"/api/reports/{report_id}/approve", json={"reviewer": reviewer})


def reject(client, report_id, reason, reviewer=REVIEWER):
    return client.post(
        f"/api/reports/{report_id}/reject",
        json={"reviewer": reviewer, "rejection_reason": reason},
    )


@pytest.fixture
def approved_departure(client, test_vessel, payloads):
    response = submit(client, test_vessel.id, "departure", payloads.departure())
    assert response.status_code == 201
    report = response.json()
    assert approve(client, report["id"]).status_code == 200
    return report


# ============================================================================
# Public Endpoint Tests
# ============================================================================


def test_root_endpoint(client):
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Voyage Report API"
    assert data["status"] == "operational"


def test_health_check(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["components"]["database"]["status"] == "healthy"
    assert "timestamp" in data


def test_request_id_echoed(client):
    response = client.get("/api/health", headers={"X-Request-ID": "abc-123"})
    assert response.headers["X-Request-ID"] == "abc-123"
    assert response.json()["request_id"] == "abc-123"


def test_security_headers(client):
    response = client.get("/")
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"


# ============================================================================
# Vessel Endpoint Tests
# ============================================================================


class TestVesselEndpoints:

    def test_list_vessels(self, client, test_vessel):
        response = client.get("/api/vessels")
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["vessels"][0]["name"] == "Ocean Star"
        assert data["vessels"][0]["bls"] == 50000.0

    def test_get_vessel(self, client, test_vessel):
        response = client.get(f"/api/vessels/{test_vessel.id}")
        assert response.status_code == 200
        assert response.json()["flag"] == "Panama"

    def test_get_unknown_vessel(self, client):
        response = client.get("/api/vessels/999")
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    def test_has_bunker_records(self, client, test_vessel, payloads):
        url = f"/api/vessels/{test_vessel.id}/has-bunker-records"
        assert client.get(url).json() == {"has_bunker_records": False}

        report = submit(client, test_vessel.id, "departure", payloads.departure()).json()
        # Pending records do not count yet
        assert client.get(url).json() == {"has_bunker_records": False}

        approve(client, report["id"])
        assert client.get(url).json() == {"has_bunker_records": True}

    def test_previous_departure(self, client, test_vessel, approved_departure):
        response = client.get(f"/api/vessels/{test_vessel.id}/previous-departure")
        assert response.status_code == 200
        data = response.json()
        assert data["has_previous_departure"] is True
        assert data["last_destination_port"] == "Singapore"
        assert data["voyage_id"] == approved_departure["voyage_id"]

    def test_previous_departure_unknown_vessel(self, client):
        assert client.get("/api/vessels/999/previous-departure").status_code == 404

    def test_report_options(self, client, test_vessel, payloads):
        url = f"/api/vessels/{test_vessel.id}/report-options"
        assert client.get(url).json()["allowed"] == ["departure"]

        report = submit(client, test_vessel.id, "departure", payloads.departure()).json()
        data = client.get(url).json()
        assert data["allowed"] == []
        assert data["pending_report_id"] == report["id"]

        approve(client, report["id"])
        data = client.get(url).json()
        assert data["baseline_state"] == "departure"
        assert data["allowed"] == ["noon", "arrival"]


# ============================================================================
# Report Submission Tests
# ============================================================================


class TestSubmitReport:

    def test_departure_created(self, client, test_vessel, payloads):
        response = submit(client, test_vessel.id, "departure", payloads.departure())
        assert response.status_code == 201
        data = response.json()
        assert data["type"] == "departure"
        assert data["status"] == "pending"
        assert data["sequence_number"] == 1
        assert data["distance_to_go"] == 950
        assert data["voyage_id"] is not None
        assert data["report_data"]["bls_quantity"] == 50000.0

    def test_bunker_record_for_report(self, client, test_vessel, payloads):
        report = submit(client, test_vessel.id, "departure", payloads.departure()).json()
        response = client.get(f"/api/reports/{report['id']}/bunker-record")
        assert response.status_code == 200
        data = response.json()
        assert data["report_id"] == report["id"]
        assert data["rob"]["lsifo"] == 490
        assert data["consumed"]["lsifo"] == 10
        assert data["supplied"]["lsifo"] == 0

    def test_noon_after_approved_departure(self, client, test_vessel, payloads, approved_departure):
        response = submit(client, test_vessel.id, "noon", payloads.noon())
        assert response.status_code == 201
        data = response.json()
        assert data["sequence_number"] == 2
        assert data["distance_to_go"] == 750
        assert data["voyage_id"] == approved_departure["voyage_id"]

        record = client.get(f"/api/reports/{data['id']}/bunker-record").json()
        assert record["rob"]["lsifo"] == 485

    def test_missing_fields(self, client, test_vessel):
        response = client.post("/api/reports", json={"vessel_id": test_vessel.id, "report_type": "noon"})
        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "invalid_input"
        assert data["fields"] == ["submitted_by", "report_data"]
        assert "Missing required fields" in data["detail"]
        assert data["request_id"]

    def test_missing_payload_fields(self, client, test_vessel):
        response = submit(client, test_vessel.id, "departure", {"departure_port": "Rotterdam"})
        assert response.status_code == 400
        assert "destination_port" in response.json()["fields"]

    def test_unknown_report_type(self, client, test_vessel):
        response = submit(client, test_vessel.id, "anchorage", {})
        assert response.status_code == 400

    def test_unknown_vessel(self, client, payloads):
        response = submit(client, 999, "departure", payloads.departure())
        assert response.status_code == 404

    def test_noon_without_baseline(self, client, test_vessel, payloads):
        response = submit(client, test_vessel.id, "noon", payloads.noon())
        assert response.status_code == 409
        assert response.json()["error"] == "invalid_state"

    def test_invalid_transition(self, client, test_vessel, payloads, approved_departure):
        response = submit(client, test_vessel.id, "berth", payloads.berth())
        assert response.status_code == 409
        assert response.json()["error"] == "invalid_transition"

    def test_pending_report_conflict(self, client, test_vessel, payloads):
        first = submit(client, test_vessel.id, "departure", payloads.departure()).json()
        response = submit(client, test_vessel.id, "departure", payloads.departure())
        assert response.status_code == 409
        data = response.json()
        assert data["error"] == "conflict"
        assert str(first["id"]) in data["detail"]

    def test_cargo_above_bls(self, client, test_vessel, payloads):
        response = submit(client, test_vessel.id, "departure", payloads.departure(cargo_quantity=75000))
        assert response.status_code == 400
        assert response.json()["fields"] == ["cargo_quantity"]
        assert client.get("/api/voyages").json()["total"] == 0

    def test_malformed_body(self, client):
        response = client.post("/api/reports", json={"vessel_id": "not-a-number"})
        assert response.status_code == 422
        assert response.json()["error"] == "validation_error"


# ============================================================================
# Review Tests
# ============================================================================


class TestReview:

    def test_approve(self, client, test_vessel, payloads):
        report = submit(client, test_vessel.id, "departure", payloads.departure()).json()
        response = approve(client, report["id"])
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "approved"
        assert data["reviewer"] == REVIEWER
        assert data["reviewed_at"] is not None

    def test_approve_twice(self, client, approved_departure):
        response = approve(client, approved_departure["id"])
        assert response.status_code == 409
        assert response.json()["error"] == "invalid_state"

    def test_approve_unknown(self, client):
        assert approve(client, 999).status_code == 404

    def test_approve_without_reviewer(self, client, test_vessel, payloads):
        report = submit(client, test_vessel.id, "departure", payloads.departure()).json()
        response = client.post(f"/api/reports/{report['id']}/approve", json={})
        assert response.status_code == 400
        assert response.json()["fields"] == ["reviewer"]

    def test_reject_requires_reason(self, client, test_vessel, payloads):
        report = submit(client, test_vessel.id, "departure", payloads.departure()).json()
        response = client.post(f"/api/reports/{report['id']}/reject", json={"reviewer": REVIEWER})
        assert response.status_code == 400
        assert response.json()["fields"] == ["rejection_reason"]

    def test_reject_departure_cancels_voyage(self, client, test_vessel, payloads):
        report = submit(client, test_vessel.id, "departure", payloads.departure()).json()
        response = reject(client, report["id"], "Wrong destination")
        assert response.status_code == 200
        assert response.json()["rejection_reason"] == "Wrong destination"

        voyage = client.get(f"/api/voyages/{report['voyage_id']}").json()
        assert voyage["active"] is False
        assert client.get(f"/api/reports/{report['id']}/bunker-record").status_code == 404

        # A corrected departure is accepted straight away
        assert submit(client, test_vessel.id, "departure", payloads.departure()).status_code == 201

    def test_rejected_noon_resubmitted(self, client, test_vessel, payloads, approved_departure):
        noon = submit(client, test_vessel.id, "noon", payloads.noon(distance=400)).json()
        reject(client, noon["id"], "Distance over-reported")

        retry = submit(client, test_vessel.id, "noon", payloads.noon()).json()
        assert retry["sequence_number"] == 2
        assert retry["distance_to_go"] == 750


# ============================================================================
# Listing Tests
# ============================================================================


class TestListing:

    def test_list_and_filter_reports(self, client, test_vessel, payloads, approved_departure):
        submit(client, test_vessel.id, "noon", payloads.noon())

        data = client.get("/api/reports", params={"vessel_id": test_vessel.id}).json()
        assert data["total"] == 2
        assert [r["sequence_number"] for r in data["reports"]] == [1, 2]

        pending = client.get("/api/reports", params={"status": "pending"}).json()
        assert [r["type"] for r in pending["reports"]] == ["noon"]

        departures = client.get("/api/reports", params={"report_type": "departure"}).json()
        assert departures["total"] == 1

        by_voyage = client.get("/api/reports", params={"voyage_id": approved_departure["voyage_id"]}).json()
        assert by_voyage["total"] == 2

    def test_invalid_status_filter(self, client):
        assert client.get("/api/reports", params={"status": "archived"}).status_code == 422

    def test_get_report(self, client, approved_departure):
        response = client.get(f"/api/reports/{approved_departure['id']}")
        assert response.status_code == 200
        assert response.json()["status"] == "approved"

    def test_get_unknown_report(self, client):
        assert client.get("/api/reports/999").status_code == 404
        assert client.get("/api/reports/999/bunker-record").status_code == 404

    def test_voyages(self, client, test_vessel, approved_departure):
        data = client.get("/api/voyages", params={"vessel_id": test_vessel.id, "active": True}).json()
        assert data["total"] == 1
        voyage = data["voyages"][0]
        assert voyage["voyage_number"] == f"VOY-OceanStar-{voyage['id']}"
        assert voyage["starting_report_id"] == approved_departure["id"]
        assert voyage["cargo_status"] == "loaded"

    def test_unknown_voyage(self, client):
        assert client.get("/api/voyages/999").status_code == 404
