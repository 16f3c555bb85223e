"""Unit tests for custom exception classes."""

from atat.exceptions import (
    AtatError,
    AuthDeniedError,
    AuthenticationRequiredError,
    AuthExpiredError,
    AuthFlowError,
    ConfigError,
    DocumentNotFoundError,
    DuplicateIssueReferenceError,
    InvalidRepositoryFormatError,
    InvalidTransitionError,
    LoginCancelledError,
    NetworkError,
    NoRepositoryConfiguredError,
    RateLimitError,
    RepositoryNotFoundError,
)


class TestAtatError:
    """Tests for base AtatError exception."""

    def test_atat_error_message(self):
        """Test that AtatError stores and displays message correctly."""
        error = AtatError("Test error message")
        assert str(error) == "Test error message"
        assert error.message == "Test error message"
        assert error.exit_code == 1


class TestFixedMessages:
    """Tests for the user-facing messages of each error kind."""

    def test_authentication_required(self):
        """Test the default message points at login."""
        error = AuthenticationRequiredError()
        assert "atat login" in error.message
        assert isinstance(error, AtatError)

    def test_no_repository_configured(self):
        """Test the message points at remote add."""
        assert "atat remote add" in NoRepositoryConfiguredError().message

    def test_document_not_found(self):
        """Test the path is part of the message."""
        error = DocumentNotFoundError("TODO.md")
        assert error.path == "TODO.md"
        assert error.message == "TODO.md file not found"

    def test_invalid_repository_format(self):
        """Test the offending value is reported."""
        error = InvalidRepositoryFormatError("nope")
        assert error.repo == "nope"
        assert "'nope'" in str(error)

    def test_repository_not_found(self):
        """Test the repository is named."""
        assert str(RepositoryNotFoundError("a/b")) == "Repository a/b not found or not accessible."

    def test_rate_limit_is_network_error(self):
        """Test RateLimitError is a NetworkError with a status."""
        error = RateLimitError(status=429)
        assert isinstance(error, NetworkError)
        assert error.status == 429

    def test_auth_expired(self):
        """Test the expired message."""
        assert AuthExpiredError().message == "The device code has expired. Please run `login` again."

    def test_auth_denied(self):
        """Test the denied message."""
        assert AuthDeniedError().message == "Login cancelled by user."

    def test_auth_flow_error(self):
        """Test unknown OAuth errors keep their code."""
        error = AuthFlowError("weird")
        assert error.error == "weird"
        assert error.message == "Unknown error: weird"

    def test_login_cancelled_exit_code(self):
        """Test interrupted login exits with 130."""
        assert LoginCancelledError().exit_code == 130

    def test_config_error_prefix(self):
        """Test config errors are prefixed."""
        assert ConfigError("bad").message == "Error loading project config: bad"

    def test_invalid_transition(self):
        """Test the state type is named."""
        error = InvalidTransitionError("begin polling", object())
        assert "begin polling" in error.message
        assert "object" in error.message

    def test_duplicate_reference(self):
        """Test positions are reported one-based."""
        error = DuplicateIssueReferenceError(5, 0, 3)
        assert "#5" in error.message
        assert "items 1 and 4" in error.message
