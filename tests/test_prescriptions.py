from tests.conftest import DOCTOR_PROFILE, PATIENT_PROFILE

MEDICINES = [{"name": "Paracetamol", "dosage": "1-1-1", "duration": "3 Days"}]

class TestCreatePrescription:

    def test_create_prescription(self, client, doctor_headers, patient_headers, prescription, booked_appointment):
        assert prescription["appointment_id"] == booked_appointment["id"]
        assert prescription["patient_name"] == "Asha Rao"
        assert prescription["doctor_name"] == "Vikram Mehta"
        assert prescription["medicines"][0] == {
            "name": "Amlodipine", "dosage": "1-0-1", "duration": "5 Days"
        }

        # Writing a prescription completes the appointment
        appointments = client.get("/api/v1/appointments/mine", headers=patient_headers).json()
        assert appointments[0]["status"] == "completed"

    def test_one_prescription_per_appointment(self, client, doctor_headers, prescription):
        response = client.post(
            "/api/v1/prescriptions",
            json={"appointment_id": prescription["appointment_id"], "medicines": MEDICINES},
            headers=doctor_headers,
        )
        assert response.status_code == 409

    def test_medicines_are_required(self, client, doctor_headers, booked_appointment):
        response = client.post(
            "/api/v1/prescriptions",
            json={"appointment_id": booked_appointment["id"], "medicines": []},
            headers=doctor_headers,
        )
        assert response.status_code == 422

    def test_unknown_appointment(self, client, doctor_headers):
        response = client.post(
            "/api/v1/prescriptions",
            json={"appointment_id": 999, "medicines": MEDICINES},
            headers=doctor_headers,
        )
        assert response.status_code == 404

    def test_only_the_appointments_doctor(self, client, register_and_login, booked_appointment):
        other = dict(DOCTOR_PROFILE, full_name="Other Doctor", license_number="MED-2002")
        headers = register_and_login("other.doctor@example.com", other)

        response = client.post(
            "/api/v1/prescriptions",
            json={"appointment_id": booked_appointment["id"], "medicines": MEDICINES},
            headers=headers,
        )
        assert response.status_code == 403

    def test_cancelled_appointment(self, client, doctor_headers, booked_appointment):
        client.patch(
            f"/api/v1/appointments/{booked_appointment['id']}/status",
            json={"status": "cancelled"},
            headers=doctor_headers,
        )

        response = client.post(
            "/api/v1/prescriptions",
            json={"appointment_id": booked_appointment["id"], "medicines": MEDICINES},
            headers=doctor_headers,
        )
        assert response.status_code == 400

    def test_patients_cannot_prescribe(self, client, patient_headers, booked_appointment):
        response = client.post(
            "/api/v1/prescriptions",
            json={"appointment_id": booked_appointment["id"], "medicines": MEDICINES},
            headers=patient_headers,
        )
        assert response.status_code == 403

class TestPharmacistQueue:

    def test_todays_prescriptions(self, client, pharmacist_headers, prescription):
        response = client.get("/api/v1/prescriptions/today", headers=pharmacist_headers)
        assert response.status_code == 200
        assert [p["id"] for p in response.json()] == [prescription["id"]]
        assert response.json()[0]["patient_phone"] == PATIENT_PROFILE["phone"]

    def test_search_by_patient_or_doctor(self, client, pharmacist_headers, prescription):
        for term in ("asha", "MEHTA"):
            response = client.get(
                "/api/v1/prescriptions/today", params={"search": term}, headers=pharmacist_headers
            )
            assert [p["id"] for p in response.json()] == [prescription["id"]]

        response = client.get(
            "/api/v1/prescriptions/today", params={"search": "nobody"}, headers=pharmacist_headers
        )
        assert response.json() == []

class TestViewPrescriptions:

    def test_patient_and_doctor_list_their_own(self, client, patient_headers, doctor_headers, prescription):
        for headers in (patient_headers, doctor_headers):
            response = client.get("/api/v1/prescriptions/mine", headers=headers)
            assert response.status_code == 200
            assert [p["id"] for p in response.json()] == [prescription["id"]]

    def test_get_prescription(self, client, patient_headers, pharmacist_headers, prescription):
        for headers in (patient_headers, pharmacist_headers):
            response = client.get(f"/api/v1/prescriptions/{prescription['id']}", headers=headers)
            assert response.status_code == 200
            assert response.json()["diagnosis"] == "Mild hypertension"

    def test_other_patient_cannot_view(self, client, register_and_login, prescription):
        other = dict(PATIENT_PROFILE, full_name="Someone Else")
        headers = register_and_login("someone@example.com", other)

        response = client.get(f"/api/v1/prescriptions/{prescription['id']}", headers=headers)
        assert response.status_code == 403

    def test_unknown_prescription(self, client, pharmacist_headers):
        response = client.get("/api/v1/prescriptions/999", headers=pharmacist_headers)
        assert response.status_code == 404
