"""Unit tests for route template resolution used as the HTTP metrics label."""

import pytest
from starlette.requests import Request
from starlette.routing import Route

from evdock.presentation.middleware.logging import UNMATCHED_ENDPOINT, route_template


def endpoint(request):
    return None


def make_request(path: str, route=None) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": path,
        "query_string": b"",
        "headers": [],
    }
    if route is not None:
        scope["route"] = route
    return Request(scope)


@pytest.mark.parametrize(
    "route_path, request_path, expected",
    [
        (
            "/v1/installments/{installment_id}",
            "/v1/installments/INST1",
            "/v1/installments/{installment_id}",
        ),
        (
            "/installments/{installment_id}",
            "/v1/installments/INST1",
            "/v1/installments/{installment_id}",
        ),
        (
            "/installments/{installment_id}/payments/{month}",
            "/v1/installments/INST1/payments/3",
            "/v1/installments/{installment_id}/payments/{month}",
        ),
        ("/installments", "/v1/installments", "/v1/installments"),
        ("/metrics", "/metrics", "/metrics"),
    ],
)
def test_template_includes_router_prefix(route_path, request_path, expected):
    request = make_request(request_path, Route(route_path, endpoint))

    assert route_template(request) == expected


def test_request_without_route_is_unmatched():
    assert route_template(make_request("/nowhere")) == UNMATCHED_ENDPOINT
