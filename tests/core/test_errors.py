"""Error Hierarchy — verifies status codes and the response envelope."""

from docketwatch.core.errors import (
    ConcurrencyError, ErrorContext, ResourceNotFoundError, UnauthorizedError,
    UpstreamAuthError, UpstreamTransientError,
)


def test_http_statuses():
    assert ResourceNotFoundError("Matter", "x").http_status == 404
    assert UnauthorizedError().http_status == 401
    assert ConcurrencyError("busy").http_status == 409
    assert UpstreamAuthError(401).http_status == 502


def test_response_envelope_carries_code_and_tenant():
    err = ConcurrencyError("busy", context=ErrorContext(tenant_id="tenant-a"))
    body = err.to_response()["error"]
    assert body["code"] == "CONCURRENCY_CONFLICT"
    assert body["message"] == "busy"
    assert body["context"]["tenant_id"] == "tenant-a"


def test_transient_error_keeps_upstream_status():
    err = UpstreamTransientError("server error 503", status_code=503)
    assert err.status_code == 503
