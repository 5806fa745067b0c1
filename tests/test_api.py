"""
tests/test_api.py

HTTP tests for the analysis and export endpoints.

Uploads are built in memory and posted through FastAPI's TestClient; the
service singletons run with environment defaults.
"""

from __future__ import annotations

import csv
import io

import pytest
from fastapi.testclient import TestClient

from dashboard import failure_codes
from dashboard.main import create_app

JANUARY = b"Date,Documents,KCs\n2024-01-01,100,20\n2024-01-02,50,10\n"
FEBRUARY = b"Date,Documents,KCs\n2024-02-01,80,16\n"


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def client() -> TestClient:
    return TestClient(create_app())


def _primary(*files: tuple[str, bytes]) -> list[tuple[str, tuple[str, bytes, str]]]:
    return [("files", (name, content, "text/csv")) for name, content in files]


def _two_months() -> list[tuple[str, tuple[str, bytes, str]]]:
    return _primary(("Acme_Billing_202401.csv", JANUARY), ("Acme_Billing_202402.csv", FEBRUARY))


# ---------------------------------------------------------------------------
# POST /analysis
# ---------------------------------------------------------------------------


def test_app_registers_analysis_and_export_routes() -> None:
    paths = {route.path for route in create_app().routes}

    assert {"/analysis", "/analysis/export", "/health"} <= paths


def test_health(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_analysis_returns_periods_and_insights(client: TestClient) -> None:
    response = client.post("/analysis", files=_two_months())

    assert response.status_code == 200
    body = response.json()
    assert body["customer"] == "Acme"
    assert body["periods"] == ["202401", "202402"]
    assert [s["documents"] for s in body["period_summaries"]] == [150, 80]
    assert body["period_summaries"][1]["document_growth"] == pytest.approx(-0.4667, abs=1e-4)
    assert body["insights"][0]["template_key"] == "mom_decline"
    assert [f["role"] for f in body["files"]] == ["primary", "primary"]


def test_mixed_customers_return_422(client: TestClient) -> None:
    files = _primary(("Acme_Billing_202401.csv", JANUARY), ("Globex_Billing_202402.csv", FEBRUARY))

    response = client.post("/analysis", files=files)

    assert response.status_code == 422
    assert response.json()["detail"]["code"] == failure_codes.PATTERN_DETECTION


def test_unsupported_extension_returns_400(client: TestClient) -> None:
    response = client.post("/analysis", files=_primary(("Acme_Billing_202401.pdf", b"%PDF")))

    assert response.status_code == 400


def test_unknown_parse_error_policy_returns_400(client: TestClient) -> None:
    response = client.post("/analysis", params={"parse_error_policy": "ignore"}, files=_two_months())

    assert response.status_code == 400


def test_abort_policy_turns_unreadable_file_into_422(client: TestClient) -> None:
    files = _primary(("Acme_Billing_202401.csv", JANUARY))
    files.append(("files", ("Acme_Billing_202402.xlsx", b"not a workbook", "application/octet-stream")))

    skipped = client.post("/analysis", files=files)
    aborted = client.post("/analysis", params={"parse_error_policy": "abort"}, files=files)

    assert skipped.status_code == 200
    assert skipped.json()["skipped_files"] == ["Acme_Billing_202402.xlsx"]
    assert aborted.status_code == 422
    assert aborted.json()["detail"]["code"] == failure_codes.PARSE_ERROR


# ---------------------------------------------------------------------------
# POST /analysis/export
# ---------------------------------------------------------------------------


def test_export_periods_as_csv(client: TestClient) -> None:
    response = client.post("/analysis/export", files=_two_months())

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert 'filename="Acme_periods_export.csv"' in response.headers["content-disposition"]
    rows = list(csv.DictReader(io.StringIO(response.text)))
    assert [row["period"] for row in rows] == ["202401", "202402"]
    assert rows[0]["customer"] == "Acme"
    assert rows[0]["document_growth"] == ""


def test_export_json_respects_period_filter(client: TestClient) -> None:
    response = client.post(
        "/analysis/export",
        params={"format": "json", "period_from": "202402"},
        files=_two_months(),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["dataset"] == "periods"
    assert body["rows"] == 1
    assert body["data"][0]["period"] == "202402"
    assert "documents" in body["fields"]


def test_export_insights_flattens_values(client: TestClient) -> None:
    response = client.post(
        "/analysis/export",
        params={"format": "json", "dataset": "insights"},
        files=_two_months(),
    )

    first = response.json()["data"][0]
    assert first["position"] == 1
    assert first["values__period"] == "202402"


@pytest.mark.parametrize(
    "params",
    [
        {"dataset": "customers"},
        {"format": "xml"},
        {"period_from": "2024-01"},
        {"period_from": "202403", "period_to": "202401"},
    ],
)
def test_export_rejects_bad_query(client: TestClient, params: dict[str, str]) -> None:
    response = client.post("/analysis/export", params=params, files=_two_months())

    assert response.status_code == 400
