"""Tests for the error hierarchy."""

from capadapt.core.errors import (
    AdapterError,
    ForeignInvocationError,
    ForeignRuntimeError,
    UnexpectedForeignShape,
    format_exception_chain,
)


class TestErrors:
    """Tests for user-friendly error formatting."""

    def test_shape_error_details(self):
        error = UnexpectedForeignShape(
            "Foreign Parrot does not match shape Duck",
            shape="Duck",
            type_name="Parrot",
            missing_methods=["speak"],
        )
        text = str(error)
        assert "Expected shape: Duck" in text
        assert "Foreign type: Parrot" in text
        assert "Missing methods: speak" in text
        assert "from_foreign_any" in text

    def test_invocation_error_details(self):
        error = ForeignInvocationError("boom", method="speak", type_name="Goose")
        assert isinstance(error, AdapterError)
        assert "Method: speak" in error.format_user_friendly()

    def test_exception_chain(self):
        try:
            try:
                raise ValueError("inner")
            except ValueError as e:
                raise ForeignRuntimeError("outer", runtime="embedded-1") from e
        except ForeignRuntimeError as error:
            text = format_exception_chain(error)

        assert "outer" in text
        assert "Caused by:" in text
        assert "ValueError: inner" in text
