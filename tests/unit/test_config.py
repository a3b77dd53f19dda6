"""
Unit tests for booking and notification settings.
"""

from interpreter_booking.booking.config import BookingSettings
from interpreter_booking.notifications.config import NotificationSettings


class TestBookingSettings:
    """Tests for BookingSettings."""

    def test_defaults(self, monkeypatch):
        """Test the default booking rules."""
        monkeypatch.delenv("BOOKING_IMMEDIATE_JOB_MINUTES", raising=False)
        monkeypatch.delenv("BOOKING_TIMEZONE", raising=False)

        settings = BookingSettings()
        assert settings.immediate_job_minutes == 5
        assert settings.withdraw_notice_hours == 24
        assert settings.translator_cancel_notice_hours == 24
        assert settings.timezone == "Europe/Stockholm"

    def test_environment_override(self, monkeypatch):
        """Test that BOOKING_ variables override the defaults."""
        monkeypatch.setenv("BOOKING_IMMEDIATE_JOB_MINUTES", "15")
        monkeypatch.setenv("BOOKING_SUPPORT_PHONE", "+46 8 123 45 67")

        settings = BookingSettings()
        assert settings.immediate_job_minutes == 15
        assert settings.support_phone == "+46 8 123 45 67"


class TestNotificationSettings:
    """Tests for NotificationSettings."""

    def test_push_disabled_without_credentials(self):
        """Test that push needs both app id and key."""
        assert NotificationSettings(onesignal_app_id="app").is_enabled is False
        assert NotificationSettings(onesignal_api_key="key").is_enabled is False

    def test_push_enabled(self):
        """Test that push is enabled once both credentials are set."""
        settings = NotificationSettings(onesignal_app_id="app", onesignal_api_key="key")
        assert settings.is_enabled is True

    def test_environment_prefix(self, monkeypatch):
        """Test that NOTIFY_ variables configure the channels."""
        monkeypatch.setenv("NOTIFY_SMS_API_URL", "https://sms.example.se")
        monkeypatch.setenv("NOTIFY_NIGHT_START_HOUR", "23")

        settings = NotificationSettings()
        assert settings.sms_api_url == "https://sms.example.se"
        assert settings.night_start_hour == 23

    def test_night_window_defaults(self, monkeypatch):
        """Test the default night-time window."""
        for name in ("NOTIFY_NIGHT_START_HOUR", "NOTIFY_NIGHT_END_HOUR", "NOTIFY_BUSINESS_START_HOUR"):
            monkeypatch.delenv(name, raising=False)

        settings = NotificationSettings()
        assert (settings.night_start_hour, settings.night_end_hour) == (22, 7)
        assert settings.business_start_hour == 8
