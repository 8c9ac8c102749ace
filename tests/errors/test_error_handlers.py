# tests/errors/test_error_handlers.py
"""Tests for the application error types and their HTTP handlers."""

import json
from logging import getLogger
from unittest.mock import MagicMock

import pytest

from blogapi.configs import settings
from blogapi.configs.settings import DEFAULT_ERROR_MESSAGE
from blogapi.errors import (
    BaseAppError,
    DatabaseConfigurationError,
    DatabaseConnectionError,
    DatabaseError,
    IntegrityViolationError,
    InvalidIdError,
    RecordNotFoundError,
    TransactionError,
    ValidationError,
    create_exception_handler,
    error_envelope,
)


@pytest.fixture
def mock_request() -> MagicMock:
    request = MagicMock()
    request.client.host = "127.0.0.1"
    request.url.path = "/api/posts"
    return request


class TestErrorTypes:
    """Tests for status codes and kinds of each error type."""

    @pytest.mark.parametrize(
        ("error", "status_code", "kind"),
        [
            (RecordNotFoundError(), 404, "not_found"),
            (IntegrityViolationError(), 404, "not_found"),
            (InvalidIdError(), 400, "invalid_id"),
            (ValidationError(), 400, "validation_error"),
            (DatabaseConnectionError(), 503, "connection_error"),
            (DatabaseConfigurationError(), 500, "invalid_configuration"),
            (TransactionError(), 500, "transaction_error"),
            (DatabaseError(), 500, "database_error"),
            (BaseAppError(), 500, "internal_error"),
        ],
    )
    def test_status_and_kind(self, error: BaseAppError, status_code: int, kind: str) -> None:
        assert error.status_code == status_code
        assert error.kind == kind

    def test_str_is_detail(self) -> None:
        assert str(RecordNotFoundError(detail="Post with ID x not found")) == (
            "Post with ID x not found"
        )


class TestErrorEnvelope:
    def test_extra_none_values_dropped(self) -> None:
        body = error_envelope("Nope", 404, "not_found", errors=None, hint="x")
        assert body == {
            "success": False,
            "data": None,
            "message": "Nope",
            "statusCode": 404,
            "kind": "not_found",
            "hint": "x",
        }


class TestExceptionHandler:
    """Tests for create_exception_handler."""

    @pytest.mark.asyncio
    async def test_client_error(self, mock_request: MagicMock) -> None:
        handler = create_exception_handler(getLogger("tests.errors"))
        error = ValidationError(
            detail="Validation failed: title: required",
            errors=[{"field": "title", "message": "required", "type": "missing"}],
        )

        response = await handler(mock_request, error)

        assert response.status_code == 400
        body = json.loads(response.body)
        assert body["message"] == "Validation failed: title: required"
        assert body["kind"] == "validation_error"
        assert body["errors"][0]["field"] == "title"

    @pytest.mark.asyncio
    async def test_server_error_detail_hidden_in_production(
        self,
        mock_request: MagicMock,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setattr(settings, "ENVIRONMENT", "production")
        handler = create_exception_handler(getLogger("tests.errors"))

        response = await handler(mock_request, TransactionError(detail="deadlock on posts"))

        body = json.loads(response.body)
        assert response.status_code == 500
        assert body["message"] == DEFAULT_ERROR_MESSAGE
        assert body["kind"] == "transaction_error"

    @pytest.mark.asyncio
    async def test_store_text_hidden_in_test_environment(self, mock_request: MagicMock) -> None:
        assert settings.ENVIRONMENT == "test"
        handler = create_exception_handler(getLogger("tests.errors"))

        response = await handler(
            mock_request,
            DatabaseError(detail="Database query failed: no such table: posts"),
        )

        body = json.loads(response.body)
        assert body["message"] == DEFAULT_ERROR_MESSAGE
        assert "error" not in body
        assert "cause" not in body

    @pytest.mark.asyncio
    async def test_server_error_cause_shown_in_development(
        self,
        mock_request: MagicMock,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setattr(settings, "ENVIRONMENT", "development")
        handler = create_exception_handler(getLogger("tests.errors"))
        try:
            raise DatabaseConnectionError from ConnectionRefusedError("refused")
        except DatabaseConnectionError as e:
            error = e

        response = await handler(mock_request, error)

        body = json.loads(response.body)
        assert response.status_code == 503
        assert body["error"] == "DatabaseConnectionError"
        assert body["message"] == error.detail
        assert body["cause"] == "refused"
