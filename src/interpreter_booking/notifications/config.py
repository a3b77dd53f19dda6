"""
Notification configuration settings.

Credentials and endpoints for push, SMS and e-mail delivery, plus the
night-time window used by the delay policy.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings


class NotificationSettings(BaseSettings):
    """
    Notification configuration loaded from environment variables.

    Delivery is disabled (messages are only logged) until the push app id
    and API key are set.
    """

    # Push (OneSignal REST API)
    onesignal_app_id: str | None = None
    onesignal_api_key: str | None = None
    onesignal_url: str = "https://onesignal.com/api/v1/notifications"
    push_title: str = "DigitalTolk"

    # SMS gateway
    sms_api_url: str | None = None
    sms_api_key: str | None = None
    sms_sender_number: str = "DigitalTolk"

    # Transactional mail API
    mail_api_url: str | None = None
    mail_api_key: str | None = None
    mail_sender: str = "noreply@digitaltolk.se"

    # Delay policy window (local hours)
    night_start_hour: int = 22
    night_end_hour: int = 7
    business_start_hour: int = 8

    # Upper bound for a single channel call
    request_timeout: float = 10.0

    class Config:
        env_prefix = "NOTIFY_"
        case_sensitive = False
        extra = "ignore"

    @property
    def is_enabled(self) -> bool:
        """Check if push delivery is configured."""
        return bool(self.onesignal_app_id and self.onesignal_api_key)


@lru_cache
def get_notification_settings() -> NotificationSettings:
    """Get cached notification settings instance."""
    return NotificationSettings()
