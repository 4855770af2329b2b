import pytest

from .conftest import create_doctor_profile, login_admin, register_and_login


@pytest.fixture
def booking(client):
    doctor_headers, doctor_user_id = register_and_login(client, "drx@example.com", role="doctor", name="Dr. X")
    doctor = create_doctor_profile(client, doctor_headers, fee=150)
    patient_headers, patient_id = register_and_login(client, "p1@example.com", name="Patient One")
    return {
        "client": client,
        "doctor": doctor,
        "doctor_headers": doctor_headers,
        "doctor_user_id": doctor_user_id,
        "patient_headers": patient_headers,
        "patient_id": patient_id,
    }


def book(booking, headers=None, time="09:00", date="2024-06-01", reason="checkup"):
    return booking["client"].post("/api/v1/appointments", json={
        "doctorId": booking["doctor"]["id"],
        "appointmentDate": date,
        "appointmentTime": time,
        "reason": reason,
        "symptoms": "chest pain",
    }, headers=headers or booking["patient_headers"])


class TestBookingScenarios:

    def test_happy_path(self, booking):
        client = booking["client"]

        response = book(booking)
        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Appointment booked successfully"
        appointment = body["data"]["appointment"]
        assert appointment["status"] == "scheduled"
        assert appointment["consultationFee"] == 150
        assert appointment["appointmentDate"] == "2024-06-01"
        assert appointment["appointmentTime"] == "09:00"
        assert appointment["paymentStatus"] == "pending"
        assert appointment["doctor"]["name"] == "Dr. X"
        assert appointment["patient"]["id"] == booking["patient_id"]

        url = f"/api/v1/appointments/{appointment['id']}/status"
        confirmed = client.put(url, json={"status": "confirmed"}, headers=booking["doctor_headers"])
        assert confirmed.status_code == 200
        assert confirmed.json()["data"]["appointment"]["status"] == "confirmed"

        completed = client.put(url, json={
            "status": "completed",
            "notes": "Healthy",
            "prescription": "Vitamin D"
        }, headers=booking["doctor_headers"])
        assert completed.status_code == 200
        final = completed.json()["data"]["appointment"]
        assert final["status"] == "completed"
        assert final["prescription"] == "Vitamin D"

    def test_double_booking(self, booking):
        assert book(booking).status_code == 201

        other_headers, _ = register_and_login(booking["client"], "p2@example.com")
        response = book(booking, headers=other_headers)
        assert response.status_code == 400
        assert response.json() == {"success": False, "message": "This time slot is already booked"}

    def test_cancellation(self, booking):
        client = booking["client"]
        appointment_id = book(booking).json()["data"]["appointment"]["id"]
        url = f"/api/v1/appointments/{appointment_id}/cancel"

        response = client.put(url, json={"cancellationReason": "changed plans"}, headers=booking["patient_headers"])
        assert response.status_code == 200
        cancelled = response.json()["data"]["appointment"]
        assert cancelled["status"] == "cancelled"
        assert cancelled["cancelledBy"] == booking["patient_id"]
        assert cancelled["cancellationReason"] == "changed plans"

        again = client.put(url, json={"cancellationReason": "again"}, headers=booking["patient_headers"])
        assert again.status_code == 400
        assert again.json()["success"] is False

    def test_fee_snapshot(self, booking):
        client = booking["client"]
        appointment_id = book(booking).json()["data"]["appointment"]["id"]

        client.put("/api/v1/doctors/profile", json={"consultationFee": 200}, headers=booking["doctor_headers"])

        response = client.get(f"/api/v1/appointments/{appointment_id}", headers=booking["patient_headers"])
        assert response.json()["data"]["appointment"]["consultationFee"] == 150


class TestValidation:

    @pytest.mark.parametrize("overrides", [
        {"reason": ""},
        {"reason": "x" * 201},
        {"appointmentTime": "9am"},
        {"appointmentDate": "06/01/2024"},
    ])
    def test_bad_payloads(self, booking, overrides):
        payload = {
            "doctorId": booking["doctor"]["id"],
            "appointmentDate": "2024-06-01",
            "appointmentTime": "09:00",
            "reason": "checkup",
        }
        payload.update(overrides)
        response = booking["client"].post("/api/v1/appointments", json=payload, headers=booking["patient_headers"])
        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["message"]

    def test_off_boundary_time(self, booking):
        response = book(booking, time="09:15")
        assert response.status_code == 400
        assert "slot boundary" in response.json()["message"]

    def test_unknown_doctor(self, booking):
        response = booking["client"].post("/api/v1/appointments", json={
            "doctorId": 999,
            "appointmentDate": "2024-06-01",
            "appointmentTime": "09:00",
            "reason": "checkup",
        }, headers=booking["patient_headers"])
        assert response.status_code == 404
        assert response.json()["message"] == "Doctor not found"

    def test_unknown_status_value(self, booking):
        appointment_id = book(booking).json()["data"]["appointment"]["id"]
        response = booking["client"].put(
            f"/api/v1/appointments/{appointment_id}/status",
            json={"status": "rescheduled"},
            headers=booking["doctor_headers"],
        )
        assert response.status_code == 400


class TestRoleGates:

    def test_doctors_cannot_book(self, booking):
        response = book(booking, headers=booking["doctor_headers"])
        assert response.status_code == 403

    def test_patient_cannot_change_status(self, booking):
        appointment_id = book(booking).json()["data"]["appointment"]["id"]
        response = booking["client"].put(
            f"/api/v1/appointments/{appointment_id}/status",
            json={"status": "confirmed"},
            headers=booking["patient_headers"],
        )
        assert response.status_code == 403

    def test_status_endpoint_does_not_cancel(self, booking):
        appointment_id = book(booking).json()["data"]["appointment"]["id"]
        response = booking["client"].put(
            f"/api/v1/appointments/{appointment_id}/status",
            json={"status": "cancelled"},
            headers=booking["doctor_headers"],
        )
        assert response.status_code == 400

    def test_visibility(self, booking):
        client = booking["client"]
        appointment_id = book(booking).json()["data"]["appointment"]["id"]
        url = f"/api/v1/appointments/{appointment_id}"

        assert client.get(url, headers=booking["patient_headers"]).status_code == 200
        assert client.get(url, headers=booking["doctor_headers"]).status_code == 200

        other_headers, _ = register_and_login(client, "p2@example.com")
        response = client.get(url, headers=other_headers)
        assert response.status_code == 403
        assert response.json() == {"success": False, "message": "Not authorized to view this appointment"}

        admin_headers, _ = login_admin(client)
        assert client.get(url, headers=admin_headers).status_code == 200

    def test_other_doctor_cannot_touch(self, booking):
        client = booking["client"]
        appointment_id = book(booking).json()["data"]["appointment"]["id"]
        stranger_headers, _ = register_and_login(client, "dry@example.com", role="doctor")
        create_doctor_profile(client, stranger_headers)

        status = client.put(f"/api/v1/appointments/{appointment_id}/status",
                            json={"status": "confirmed"}, headers=stranger_headers)
        cancel = client.put(f"/api/v1/appointments/{appointment_id}/cancel",
                            json={"cancellationReason": "x"}, headers=stranger_headers)
        assert status.status_code == 403
        assert cancel.status_code == 403

    def test_admin_marks_no_show(self, booking):
        client = booking["client"]
        appointment_id = book(booking).json()["data"]["appointment"]["id"]
        admin_headers, _ = login_admin(client)

        response = client.put(f"/api/v1/appointments/{appointment_id}/status",
                              json={"status": "no-show"}, headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["data"]["appointment"]["status"] == "no-show"

    def test_admin_cannot_confirm_or_complete(self, booking):
        client = booking["client"]
        appointment_id = book(booking).json()["data"]["appointment"]["id"]
        admin_headers, _ = login_admin(client)
        url = f"/api/v1/appointments/{appointment_id}/status"

        for status in ("confirmed", "completed"):
            response = client.put(url, json={"status": status}, headers=admin_headers)
            assert response.status_code == 403
            assert response.json() == {"success": False, "message": "Admins can only mark an appointment as no-show"}

        current = client.get(f"/api/v1/appointments/{appointment_id}", headers=admin_headers)
        assert current.json()["data"]["appointment"]["status"] == "scheduled"

    def test_missing_appointment(self, booking):
        response = booking["client"].get("/api/v1/appointments/999", headers=booking["patient_headers"])
        assert response.status_code == 404
        assert response.json()["message"] == "Appointment not found"


class TestListing:

    def test_doctor_listing_paginates(self, booking):
        client = booking["client"]
        times = [f"{h:02d}:{m:02d}" for h in range(9, 17) for m in (0, 30)]
        for i in range(25):
            date = "2024-06-01" if i < len(times) else "2024-06-02"
            assert book(booking, time=times[i % len(times)], date=date).status_code == 201

        url = "/api/v1/appointments/doctor/my-appointments"
        first = client.get(url, params={"limit": 10}, headers=booking["doctor_headers"]).json()["data"]
        assert first["pagination"] == {"page": 1, "limit": 10, "total": 25, "pages": 3}
        assert first["appointments"][0]["appointmentTime"] == "09:00"

        last = client.get(url, params={"limit": 10, "page": 3}, headers=booking["doctor_headers"]).json()["data"]
        assert len(last["appointments"]) == 5

        on_day = client.get(url, params={"date": "2024-06-02", "limit": 50},
                            headers=booking["doctor_headers"]).json()["data"]
        assert on_day["pagination"]["total"] == 9

    def test_patient_listing(self, booking):
        client = booking["client"]
        book(booking, time="09:00")
        second = book(booking, time="10:00").json()["data"]["appointment"]["id"]
        client.put(f"/api/v1/appointments/{second}/cancel",
                   json={"cancellationReason": "busy"}, headers=booking["patient_headers"])

        url = "/api/v1/appointments/patient/my-appointments"
        data = client.get(url, headers=booking["patient_headers"]).json()["data"]
        assert [a["appointmentTime"] for a in data["appointments"]] == ["10:00", "09:00"]

        cancelled = client.get(url, params={"status": "cancelled"}, headers=booking["patient_headers"]).json()["data"]
        assert [a["id"] for a in cancelled["appointments"]] == [second]

    def test_listing_is_role_gated(self, booking):
        client = booking["client"]
        assert client.get("/api/v1/appointments/doctor/my-appointments",
                          headers=booking["patient_headers"]).status_code == 403
        assert client.get("/api/v1/appointments/patient/my-appointments",
                          headers=booking["doctor_headers"]).status_code == 403
