"""Tests for application exceptions and problem responses."""

import json

import pytest

from app.core.exceptions import (
    BadRequestError,
    DatabaseError,
    TradewayError,
    ValidationError,
    tradeway_exception_handler,
)
from app.core.logging import request_id_ctx
from app.core.problem_details import create_problem_detail, problem_response


@pytest.mark.parametrize(
    ("exc", "status", "code"),
    [
        (ValidationError(), 422, "VALIDATION_ERROR"),
        (DatabaseError(), 500, "DATABASE_ERROR"),
        (BadRequestError(), 400, "BAD_REQUEST"),
    ],
)
def test_exception_status_and_code(exc, status, code):
    """Each subclass maps to a status code and error code."""
    assert isinstance(exc, TradewayError)
    assert exc.status_code == status
    assert exc.code == code


def test_title_from_code():
    """Title is derived from the error code."""
    assert BadRequestError("x").title == "Bad Request"


def test_problem_detail_includes_request_id():
    """Problem documents carry the current request id."""
    token = request_id_ctx.set("req-42")
    try:
        problem = create_problem_detail(status=400, title="Bad", error_code="BAD_REQUEST")
    finally:
        request_id_ctx.reset(token)

    assert problem.request_id == "req-42"
    assert problem.instance == "/requests/req-42"
    assert problem.type == "/errors/bad-request"


def test_unknown_error_code_gets_derived_type():
    """Unregistered codes still get a type URI."""
    problem = create_problem_detail(status=409, title="Conflict", error_code="CONFLICT")

    assert problem.type == "/errors/conflict"


def test_problem_response_media_type():
    """Problem responses use application/problem+json."""
    response = problem_response(status=404, title="Not Found", error_code="NOT_FOUND")

    assert response.media_type == "application/problem+json"
    assert json.loads(response.body)["status"] == 404


async def test_handler_renders_message():
    """Handler returns the exception message as detail."""
    response = await tradeway_exception_handler(None, BadRequestError("Series is empty"))  # type: ignore[arg-type]

    body = json.loads(response.body)
    assert response.status_code == 400
    assert body["detail"] == "Series is empty"
    assert body["code"] == "BAD_REQUEST"


async def test_unknown_route_is_problem(client):
    """Framework 404s are rendered as problem documents."""
    response = await client.get("/does-not-exist")

    assert response.status_code == 404
    assert response.headers["content-type"].startswith("application/problem+json")
    assert response.json()["code"] == "NOT_FOUND"
    assert response.json()["type"] == "/errors/not-found"
