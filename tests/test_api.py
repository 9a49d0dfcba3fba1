"""HTTP-level tests: status codes and the error envelope."""

from datetime import date, timedelta

from conftest import MONDAY, at

API = "/api/v1"


def iso(value):
    return value.isoformat()


def external_booking(**overrides):
    body = {
        "customer_name": "Grace Hopper",
        "email": "grace@example.com",
        "phone": "555-0199",
        "party_size": 2,
        "booking_time": iso(at(MONDAY, 19)),
    }
    body.update(overrides)
    return body


class TestAuth:
    """Registration, login and admin gating."""

    def test_admin_endpoints_require_token(self, client):
        response = client.get(f"{API}/admin/reservations/")

        assert response.status_code == 401

    def test_regular_user_is_forbidden(self, client):
        response = client.post(
            f"{API}/auth/register",
            json={"email": "diner@example.com", "full_name": "Diner", "password": "secret-pass"},
        )
        token = response.json()["access_token"]

        response = client.get(f"{API}/admin/tables/", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 403

    def test_wrong_admin_secret(self, client):
        response = client.post(
            f"{API}/auth/admin/register",
            json={
                "email": "intruder@example.com",
                "full_name": "Intruder",
                "password": "secret-pass",
                "admin_secret": "guess",
            },
        )

        assert response.status_code == 403

    def test_login_and_me(self, client, admin_headers):
        response = client.post(
            f"{API}/auth/login",
            json={"email": "manager@example.com", "password": "secret-pass"},
        )
        assert response.status_code == 200
        token = response.json()["access_token"]

        response = client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.json()["role"] == "admin"

    def test_bad_password(self, client, admin_headers):
        response = client.post(
            f"{API}/auth/login",
            json={"email": "manager@example.com", "password": "wrong-pass"},
        )

        assert response.status_code == 401


class TestPublicAvailability:
    """Public lookups."""

    def test_available_tables(self, client):
        response = client.get(
            f"{API}/availability/tables",
            params={"date": iso(MONDAY), "time": "19:00", "party_size": 6},
        )

        assert response.status_code == 200
        body = response.json()
        assert [t["table_id"] for t in body["tables"]] == [4, 5, 8]
        assert body["opening_hours"] == {"open": "12:00:00", "close": "23:00:00"}

    def test_available_times(self, client):
        response = client.get(f"{API}/availability/times", params={"date": iso(MONDAY), "party_size": 4})

        assert response.status_code == 200
        body = response.json()
        assert body["times"][0] == "12:00:00"
        assert body["suitable_tables"] == 6

    def test_past_date_rejected(self, client):
        yesterday = date.today() - timedelta(days=1)

        response = client.get(f"{API}/availability/times", params={"date": iso(yesterday)})

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_input"

    def test_malformed_query_is_invalid_input(self, client):
        response = client.get(f"{API}/availability/tables", params={"date": "next monday", "time": "19:00"})

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_input"

    def test_opening_hours(self, client):
        response = client.get(f"{API}/opening-hours/")

        assert response.status_code == 200
        assert [d["day_of_week"] for d in response.json()] == list(range(7))


class TestExternalReservations:
    """Public booking widget."""

    def test_created_pending_and_auto_assigned(self, client):
        response = client.post(f"{API}/reservations/external", json=external_booking())

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "pending"
        assert body["source"] == "external"
        assert body["table_id"] == 1

    def test_embedded_form_source(self, client):
        response = client.post(f"{API}/reservations/external", json=external_booking(source="embedded_form"))

        assert response.json()["source"] == "embedded_form"

    def test_cannot_choose_table_or_status(self, client):
        response = client.post(
            f"{API}/reservations/external",
            json=external_booking(table_id=5, status="confirmed"),
        )

        assert response.status_code == 201
        assert response.json()["status"] == "pending"
        assert response.json()["table_id"] == 1

    def test_outside_hours(self, client):
        response = client.post(f"{API}/reservations/external", json=external_booking(booking_time=iso(at(MONDAY, 22))))

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "outside_opening_hours"
        assert body["detail"]["reason"] == "outside_hours"

    def test_party_too_large(self, client):
        response = client.post(f"{API}/reservations/external", json=external_booking(party_size=20))

        assert response.status_code == 409
        assert response.json()["error"] == "no_available_table"

    def test_invalid_email(self, client):
        response = client.post(f"{API}/reservations/external", json=external_booking(email="not-an-email"))

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_input"


class TestAdminReservations:
    """Staff reservation management."""

    def create(self, client, headers, **overrides):
        body = external_booking(**overrides)
        body.pop("source", None)
        return client.post(f"{API}/admin/reservations/", json=body, headers=headers)

    def test_staff_may_confirm_on_create(self, client, admin_headers):
        response = self.create(client, admin_headers, table_id=3, status="confirmed")

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "confirmed"
        assert body["table"]["location"] == "Window"

    def test_conflict_envelope(self, client, admin_headers):
        first = self.create(client, admin_headers, table_id=3).json()

        response = self.create(client, admin_headers, table_id=3, booking_time=iso(at(MONDAY, 20)))

        assert response.status_code == 409
        body = response.json()
        assert body["error"] == "slot_conflict"
        assert body["detail"]["conflicting_bookings"][0]["booking_id"] == first["booking_id"]

    def test_capacity_error(self, client, admin_headers):
        response = self.create(client, admin_headers, table_id=1, party_size=4)

        assert response.status_code == 400
        assert response.json()["error"] == "capacity_error"

    def test_unknown_table(self, client, admin_headers):
        response = self.create(client, admin_headers, table_id=99)

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    def test_list_and_get(self, client, admin_headers):
        created = self.create(client, admin_headers).json()

        response = client.get(f"{API}/admin/reservations/", params={"date": iso(MONDAY)}, headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["total"] == 1
        assert response.json()["total_pages"] == 1

        response = client.get(f"{API}/admin/reservations/{created['booking_id']}", headers=admin_headers)
        assert response.json()["customer_name"] == "Grace Hopper"

    def test_patch_reschedules_and_confirms(self, client, admin_headers):
        created = self.create(client, admin_headers).json()

        response = client.patch(
            f"{API}/admin/reservations/{created['booking_id']}",
            json={"booking_time": iso(at(MONDAY, 20)), "status": "confirmed", "notes": "Birthday"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["booking_time"].startswith(iso(at(MONDAY, 20)))
        assert body["status"] == "confirmed"
        assert body["notes"] == "Birthday"

    def test_patch_may_resend_current_status(self, client, admin_headers):
        created = self.create(client, admin_headers, table_id=3, status="confirmed").json()

        response = client.patch(
            f"{API}/admin/reservations/{created['booking_id']}",
            json={"booking_time": iso(at(MONDAY, 20)), "status": "confirmed"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["booking_time"].startswith(iso(at(MONDAY, 20)))
        assert response.json()["status"] == "confirmed"

    def test_rejected_patch_leaves_booking_unchanged(self, client, admin_headers):
        created = self.create(client, admin_headers, table_id=3, status="confirmed").json()
        url = f"{API}/admin/reservations/{created['booking_id']}"

        response = client.patch(
            url,
            json={"booking_time": iso(at(MONDAY, 20)), "status": "pending", "notes": "Moved"},
            headers=admin_headers,
        )
        assert response.status_code == 409
        assert response.json()["error"] == "invalid_transition"

        response = client.patch(
            url,
            json={"booking_time": iso(at(MONDAY, 20)), "customer_name": "   "},
            headers=admin_headers,
        )
        assert response.status_code == 400

        stored = client.get(url, headers=admin_headers).json()
        assert stored["booking_time"] == created["booking_time"]
        assert stored["status"] == "confirmed"
        assert stored["notes"] == created["notes"]

    def test_status_endpoint_rejects_reopening(self, client, admin_headers):
        created = self.create(client, admin_headers).json()
        url = f"{API}/admin/reservations/{created['booking_id']}"

        assert client.delete(url, headers=admin_headers).json()["status"] == "cancelled"

        response = client.patch(f"{url}/status", json={"status": "pending"}, headers=admin_headers)
        assert response.status_code == 409
        assert response.json()["error"] == "invalid_transition"

    def test_unknown_booking(self, client, admin_headers):
        response = client.get(f"{API}/admin/reservations/TB-NOPE0000", headers=admin_headers)

        assert response.status_code == 404


class TestAdminTablesAndHours:
    """Floor plan and calendar management."""

    def test_create_duplicate_table(self, client, admin_headers):
        response = client.post(
            f"{API}/admin/tables/",
            json={"table_id": 1, "capacity": 2, "location": "Window"},
            headers=admin_headers,
        )

        assert response.status_code == 409
        assert response.json()["error"] == "conflict"

    def test_table_detail_lists_active_reservations(self, client, admin_headers):
        client.post(f"{API}/reservations/external", json=external_booking())

        response = client.get(f"{API}/admin/tables/1", headers=admin_headers)

        assert response.status_code == 200
        assert len(response.json()["reservations"]) == 1

    def test_delete_table_with_active_booking(self, client, admin_headers):
        client.post(f"{API}/reservations/external", json=external_booking())

        response = client.delete(f"{API}/admin/tables/1", headers=admin_headers)

        assert response.status_code == 409
        assert len(response.json()["detail"]["active_bookings"]) == 1

    def test_delete_free_table(self, client, admin_headers):
        response = client.delete(f"{API}/admin/tables/8", headers=admin_headers)

        assert response.status_code == 200
        assert client.get(f"{API}/admin/tables/8", headers=admin_headers).status_code == 404

    def test_replace_hours_requires_full_week(self, client, admin_headers):
        week = client.get(f"{API}/opening-hours/").json()

        response = client.put(f"{API}/admin/opening-hours/", json=week[:5], headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    def test_close_monday(self, client, admin_headers):
        week = client.get(f"{API}/opening-hours/").json()
        week[1]["is_open"] = False

        response = client.put(f"{API}/admin/opening-hours/", json=week, headers=admin_headers)
        assert response.status_code == 200

        response = client.get(f"{API}/availability/tables", params={"date": iso(MONDAY), "time": "19:00"})
        assert response.json()["reason"] == "closed"


class TestAdminSetup:
    """Initialisation and demo seeding."""

    def test_init_clears_reservations_unless_preserved(self, client, admin_headers):
        client.post(f"{API}/reservations/external", json=external_booking())

        response = client.post(f"{API}/admin/init", params={"preserve_reservations": True}, headers=admin_headers)
        assert response.json()["reservations_count"] == 1

        response = client.post(f"{API}/admin/init", headers=admin_headers)
        assert response.json()["reservations_count"] == 0
        assert response.json()["tables_count"] == 8

    def test_seed(self, client, admin_headers):
        response = client.post(f"{API}/admin/seed", headers=admin_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["tables_count"] == 8
        assert body["reservations_count"] == 8
        assert body["opening_hours_count"] == 7
