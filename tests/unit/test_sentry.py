"""Unit tests for Sentry integration."""

from unittest import mock

from pybgpdisco.monitoring import sentry_helper
from pybgpdisco.snmp.transport import SnmpError


class TestSentryInitialization:
    """Test Sentry initialization."""

    def setup_method(self):
        """Reset global state."""
        sentry_helper._sentry_enabled = False
        sentry_helper._sentry_sdk = None

    def teardown_method(self):
        """Reset global state."""
        sentry_helper._sentry_enabled = False
        sentry_helper._sentry_sdk = None

    def test_init_sentry_when_dsn_not_configured(self, monkeypatch):
        """Test that Sentry doesn't initialize when DSN is not set."""
        monkeypatch.setenv("SENTRY_DSN", "")

        from pybgpdisco.config import Settings

        monkeypatch.setattr("pybgpdisco.monitoring.sentry_helper.settings", Settings())

        assert sentry_helper.init_sentry() is False
        assert sentry_helper.is_sentry_enabled() is False
        assert sentry_helper.get_sentry_sdk() is None

    def test_init_sentry_success(self, monkeypatch):
        """Test successful Sentry initialization with LoggingIntegration."""
        monkeypatch.setenv("SENTRY_DSN", "https://example@sentry.io/123")
        monkeypatch.setenv("SENTRY_ENVIRONMENT", "test")

        from pybgpdisco.config import Settings

        monkeypatch.setattr("pybgpdisco.monitoring.sentry_helper.settings", Settings())

        mock_sentry = mock.MagicMock()
        mock_logging_integration_class = mock.MagicMock()

        with mock.patch.dict(
            "sys.modules",
            {
                "sentry_sdk": mock_sentry,
                "sentry_sdk.integrations": mock.MagicMock(),
                "sentry_sdk.integrations.logging": mock.MagicMock(
                    LoggingIntegration=mock_logging_integration_class
                ),
            },
        ):
            result = sentry_helper.init_sentry()

        assert result is True
        assert sentry_helper.is_sentry_enabled() is True
        assert sentry_helper.get_sentry_sdk() is mock_sentry
        call_kwargs = mock_sentry.init.call_args[1]
        assert call_kwargs["environment"] == "test"
        assert mock_logging_integration_class.return_value in call_kwargs["integrations"]


class TestCaptureDiscoveryError:
    """Test device failure reporting."""

    def teardown_method(self):
        """Reset Sentry state."""
        sentry_helper._sentry_enabled = False
        sentry_helper._sentry_sdk = None

    def test_capture_when_disabled(self):
        """Test that failures are only logged when Sentry is disabled."""
        sentry_helper._sentry_sdk = None

        sentry_helper.capture_discovery_error("r1", None, SnmpError("r1: timeout"))

    def test_capture_with_tags(self):
        """Test that failures are captured with device and context tags."""
        mock_sentry = mock.MagicMock()
        scope = mock_sentry.push_scope.return_value.__enter__.return_value
        sentry_helper._sentry_enabled = True
        sentry_helper._sentry_sdk = mock_sentry
        error = SnmpError("r1: timeout")

        sentry_helper.capture_discovery_error("r1", "blue", error)

        scope.set_tag.assert_any_call("device", "r1")
        scope.set_tag.assert_any_call("context", "blue")
        mock_sentry.capture_exception.assert_called_once_with(error)

    def test_default_context_tag(self):
        """Test that the default context is tagged by name."""
        mock_sentry = mock.MagicMock()
        scope = mock_sentry.push_scope.return_value.__enter__.return_value
        sentry_helper._sentry_enabled = True
        sentry_helper._sentry_sdk = mock_sentry

        sentry_helper.capture_discovery_error("r1", None, SnmpError("r1: timeout"))

        scope.set_tag.assert_any_call("context", "default")
