import pytest

from medicloud.services.billing import (
    build_bill_lines,
    calculate_quantity,
    doses_per_day,
    duration_in_days,
    summarize_bill,
)

class TestQuantity:

    @pytest.mark.parametrize(
        ("dosage", "duration", "expected"),
        [
            ("1-0-1", "5 Days", 10),
            ("1-1-1", "3 days", 9),
            ("2-0-0", "7", 14),
            ("0-0-0", "5 Days", 0),
            ("", "5 Days", 0),
            ("1-0-1", "", 0),
            (None, None, 0),
            ("1-x-1", "2 Days", 4),
            ("1-0-1", "for 2 weeks", 4),
        ],
    )
    def test_calculate_quantity(self, dosage, duration, expected):
        assert calculate_quantity(dosage, duration) == expected

    def test_doses_per_day_reads_leading_digits(self):
        assert doses_per_day("1tab-0-2tabs") == 3

    def test_duration_uses_first_number(self):
        assert duration_in_days("5 Days then 3 Days") == 5
        assert duration_in_days("As needed") == 0

class TestBillSummary:

    def test_lines_are_priced_from_catalogue(self):
        medicines = [
            {"name": "Amlodipine", "dosage": "1-0-1", "duration": "5 Days"},
            {"name": "Unknown", "dosage": "1-1-1", "duration": "2 Days"},
        ]
        lines = build_bill_lines(medicines, {"Amlodipine": 2.5})

        assert [line.quantity for line in lines] == [10, 6]
        assert lines[0].total == 25.0
        assert lines[1].rate == 0
        assert lines[1].total == 0

    def test_summary_adds_consultation_fee(self):
        lines = build_bill_lines(
            [{"name": "Aspirin", "dosage": "0-0-1", "duration": "10 Days"}],
            {"Aspirin": 1.25},
        )
        summary = summarize_bill(lines, 500)

        assert summary.medicine_cost == 12.5
        assert summary.consultation_fee == 500
        assert summary.total_amount == 512.5

    def test_empty_prescription(self):
        summary = summarize_bill(build_bill_lines([], {}), None)
        assert summary.lines == []
        assert summary.total_amount == 0

class TestBillingAPI:

    def _add_catalogue(self, client, headers):
        for name, price in (("Amlodipine", 2.5), ("Aspirin", 1.0)):
            response = client.post(
                "/api/v1/billing/medicines",
                json={"name": name, "type": "Tablet", "price": price},
                headers=headers,
            )
            assert response.status_code == 201

    def test_add_and_list_medicines(self, client, pharmacist_headers):
        self._add_catalogue(client, pharmacist_headers)

        response = client.get("/api/v1/billing/medicines", headers=pharmacist_headers)
        assert response.status_code == 200
        data = response.json()
        assert [m["name"] for m in data] == ["Amlodipine", "Aspirin"]
        assert data[0]["type"] == "tablet"

    def test_duplicate_medicine(self, client, pharmacist_headers):
        self._add_catalogue(client, pharmacist_headers)

        response = client.post(
            "/api/v1/billing/medicines",
            json={"name": "Aspirin", "type": "tablet", "price": 3},
            headers=pharmacist_headers,
        )
        assert response.status_code == 409

    @pytest.mark.parametrize(
        "payload",
        [
            {"name": "Aspirin", "type": "potion", "price": 1},
            {"name": "Aspirin", "type": "tablet", "price": 0},
            {"name": "  ", "type": "tablet", "price": 1},
        ],
    )
    def test_invalid_medicine(self, client, pharmacist_headers, payload):
        response = client.post("/api/v1/billing/medicines", json=payload, headers=pharmacist_headers)
        assert response.status_code == 422

    def test_only_pharmacists_add_medicines(self, client, doctor_headers):
        response = client.post(
            "/api/v1/billing/medicines",
            json={"name": "Aspirin", "type": "tablet", "price": 1},
            headers=doctor_headers,
        )
        assert response.status_code == 403

    def test_preview_bill(self, client, pharmacist_headers, prescription):
        self._add_catalogue(client, pharmacist_headers)

        response = client.get(
            f"/api/v1/billing/prescriptions/{prescription['id']}/preview",
            headers=pharmacist_headers,
        )
        assert response.status_code == 200

        data = response.json()
        assert data["patient_name"] == "Asha Rao"
        assert data["doctor_name"] == "Vikram Mehta"
        assert [(line["name"], line["quantity"], line["total"]) for line in data["lines"]] == [
            ("Amlodipine", 10, 25.0),
            ("Aspirin", 10, 10.0),
        ]
        assert data["medicine_cost"] == 35.0
        assert data["consultation_fee"] == 500
        assert data["total_amount"] == 535.0

    def test_preview_unknown_prescription(self, client, pharmacist_headers):
        response = client.get("/api/v1/billing/prescriptions/999/preview", headers=pharmacist_headers)
        assert response.status_code == 404

    def test_generate_and_pay_bill(self, client, pharmacist_headers, prescription):
        self._add_catalogue(client, pharmacist_headers)

        response = client.post(
            "/api/v1/billing/bills",
            json={"medical_record_id": prescription["id"]},
            headers=pharmacist_headers,
        )
        assert response.status_code == 201
        bill = response.json()
        assert bill["status"] == "unpaid"
        assert bill["total_amount"] == 535.0

        response = client.patch(
            f"/api/v1/billing/bills/{bill['id']}/pay",
            json={"payment_mode": "Cash"},
            headers=pharmacist_headers,
        )
        assert response.status_code == 200
        assert response.json()["status"] == "paid"
        assert response.json()["payment_mode"] == "Cash"

        again = client.patch(
            f"/api/v1/billing/bills/{bill['id']}/pay",
            json={"payment_mode": "Card"},
            headers=pharmacist_headers,
        )
        assert again.status_code == 409

    def test_consultation_fee_override(self, client, pharmacist_headers, prescription):
        response = client.post(
            "/api/v1/billing/bills",
            json={"medical_record_id": prescription["id"], "consultation_fee": 100},
            headers=pharmacist_headers,
        )
        assert response.status_code == 201
        # Nothing in the catalogue, so medicines are billed at zero
        assert response.json()["medicine_cost"] == 0
        assert response.json()["total_amount"] == 100

    def test_get_unknown_bill(self, client, pharmacist_headers):
        response = client.get("/api/v1/billing/bills/42", headers=pharmacist_headers)
        assert response.status_code == 404

    def test_one_bill_per_prescription(self, client, pharmacist_headers, prescription):
        first = client.post(
            "/api/v1/billing/bills",
            json={"medical_record_id": prescription["id"]},
            headers=pharmacist_headers,
        )
        assert first.status_code == 201

        second = client.post(
            "/api/v1/billing/bills",
            json={"medical_record_id": prescription["id"], "consultation_fee": 100},
            headers=pharmacist_headers,
        )
        assert second.status_code == 409
        assert str(first.json()["id"]) in second.json()["detail"]

        bill = client.get(f"/api/v1/billing/bills/{first.json()['id']}", headers=pharmacist_headers).json()
        assert bill["total_amount"] == first.json()["total_amount"]
