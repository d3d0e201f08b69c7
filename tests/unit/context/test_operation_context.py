"""
Unit tests for the operation decorator and handle_store_errors.
"""

from unittest.mock import Mock

import pytest
from sqlalchemy.exc import IntegrityError

from ssh_manage.context import OperationHandler, handle_store_errors, operation
from ssh_manage.exceptions import BaseError, ErrorCode, RepositoryError, get_correlation_id


class Widget:
    def __init__(self):
        self.session = Mock()

    @operation()
    def ok(self, value):
        return value * 2

    @operation(name="custom.fail")
    def fail(self):
        raise BaseError("Nope", error_code=ErrorCode.NOT_FOUND, status_code=404)

    @handle_store_errors()
    def write(self):
        raise IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))

    @handle_store_errors("custom_read")
    def read(self):
        raise BaseError("Domain error", status_code=404)


class TestOperationDecorator:
    """Test the operation decorator."""

    def test_returns_result(self):
        assert Widget().ok(21) == 42

    def test_sets_correlation_id(self):
        Widget().ok(1)

        assert get_correlation_id() is not None

    def test_base_error_is_enriched(self):
        with pytest.raises(BaseError) as exc_info:
            Widget().fail()

        context = exc_info.value.context
        assert context["operation_name"] == "custom.fail"
        assert "operation_id" in context
        assert "operation_duration_ms" in context

    def test_logs_enter_and_exit(self):
        logger = Mock()
        handler = OperationHandler(logger=logger)

        with handler.operation("store.add_profile"):
            pass

        assert logger.debug.call_args.args[0] == "ENTER: store.add_profile"
        assert logger.info.call_args.args[0] == "EXIT: store.add_profile"

    def test_unexpected_error_is_logged_and_reraised(self):
        logger = Mock()
        handler = OperationHandler(logger=logger)

        with pytest.raises(KeyError):
            with handler.operation("store.broken"):
                raise KeyError("k")

        logger.exception.assert_called_once()


class TestHandleStoreErrors:
    """Test handle_store_errors."""

    def test_wraps_sqlalchemy_errors(self):
        widget = Widget()

        with pytest.raises(RepositoryError) as exc_info:
            widget.write()

        widget.session.rollback.assert_called_once()
        assert exc_info.value.context["operation"] == "write"
        assert exc_info.value.context["error_type"] == "IntegrityError"

    def test_package_errors_pass_through(self):
        widget = Widget()

        with pytest.raises(BaseError) as exc_info:
            widget.read()

        assert not isinstance(exc_info.value, RepositoryError)
        widget.session.rollback.assert_not_called()
