from __future__ import annotations

from fastapi import FastAPI
from fastapi.testclient import TestClient

from maintrack.domain_errors import DomainError, not_found
from maintrack.problem_details import build_problem_details_response, domain_error_handler


def test_problem_details_payload_contains_stable_code_and_rfc7807_fields() -> None:
    response = build_problem_details_response(
        DomainError(
            code="SAMPLE_ERROR",
            http_status=409,
            message="sample failed",
            details={"sample": True},
        )
    )

    assert response.status_code == 409
    assert response.media_type == "application/problem+json"

    body = response.body.decode("utf-8")
    assert '"type":"https://api.maintrack.local/problems/sample_error"' in body
    assert '"title":"Conflict"' in body
    assert '"status":409' in body
    assert '"detail":"sample failed"' in body
    assert '"code":"SAMPLE_ERROR"' in body
    assert '"details":{"sample":true}' in body


def test_problem_details_omits_details_when_none() -> None:
    response = build_problem_details_response(
        DomainError(
            code="NO_DETAILS",
            http_status=422,
            message="validation failed",
        )
    )

    body = response.body.decode("utf-8")
    assert response.status_code == 422
    assert '"code":"NO_DETAILS"' in body
    assert '"details"' not in body


def test_not_found_helper_builds_entity_code() -> None:
    error = not_found("inventory_item")

    assert error.code == "INVENTORY_ITEM_NOT_FOUND"
    assert error.http_status == 404
    assert str(error) == "Inventory item not found"


def test_fastapi_exception_handler_maps_domain_error_to_problem_details() -> None:
    app = FastAPI()
    app.add_exception_handler(DomainError, domain_error_handler)

    @app.get("/boom")
    def _boom():
        raise DomainError(
            code="ROUTE_PROBLEM",
            http_status=409,
            message="route failed",
            details={"source": "test"},
        )

    client = TestClient(app)
    response = client.get("/boom")

    assert response.status_code == 409
    assert response.headers["content-type"].startswith("application/problem+json")
    payload = response.json()
    assert payload["code"] == "ROUTE_PROBLEM"
    assert payload["detail"] == "route failed"
    assert payload["details"] == {"source": "test"}
    assert payload["instance"] == "/boom"
