import logging
import time
from typing import Optional, Union

from agora_token_builder import RtcTokenBuilder, RtmTokenBuilder

from .. import config

logger = logging.getLogger(__name__)

# Role values understood by the Agora token builders
RTC_ROLE_PUBLISHER = 1
RTC_ROLE_SUBSCRIBER = 2
RTM_ROLE_USER = 1

DEFAULT_EXPIRE_SECONDS = 3600
MAX_EXPIRE_SECONDS = 86400


class AgoraNotConfigured(Exception):
    """AGORA_APP_ID / AGORA_APP_CERTIFICATE are missing"""


class AgoraService:
    """Issues Agora RTC and RTM tokens for video consults"""

    def __init__(self, app_id: Optional[str] = None, app_certificate: Optional[str] = None):
        self.app_id = app_id if app_id is not None else config.AGORA_APP_ID
        self.app_certificate = app_certificate if app_certificate is not None else config.AGORA_APP_CERTIFICATE

    @property
    def configured(self) -> bool:
        return bool(self.app_id and self.app_certificate)

    def ensure_configured(self):
        if not self.configured:
            logger.error("❌ Agora credentials not configured")
            raise AgoraNotConfigured("Agora is not configured")

    def build_rtc_token(
        self,
        channel_name: str,
        uid: Union[int, str],
        role: str = "publisher",
        expire_seconds: int = DEFAULT_EXPIRE_SECONDS,
    ) -> str:
        """
        RTC token for a channel. Numeric uids get a uid token, any other
        string is treated as a user account.
        """
        self.ensure_configured()
        rtc_role = RTC_ROLE_PUBLISHER if role == "publisher" else RTC_ROLE_SUBSCRIBER
        expire_ts = int(time.time()) + expire_seconds

        uid_str = str(uid)
        if uid_str.isdigit():
            token = RtcTokenBuilder.buildTokenWithUid(
                self.app_id, self.app_certificate, channel_name, int(uid_str), rtc_role, expire_ts
            )
        else:
            token = RtcTokenBuilder.buildTokenWithAccount(
                self.app_id, self.app_certificate, channel_name, uid_str, rtc_role, expire_ts
            )
        logger.info(f"🎥 RTC token issued for channel {channel_name} (uid={uid_str}, role={role})")
        return token

    def build_rtm_token(self, account: str, expire_seconds: int = DEFAULT_EXPIRE_SECONDS) -> str:
        self.ensure_configured()
        expire_ts = int(time.time()) + expire_seconds
        token = RtmTokenBuilder.buildToken(self.app_id, self.app_certificate, account, RTM_ROLE_USER, expire_ts)
        logger.info(f"💬 RTM token issued for account {account}")
        return token


def get_agora_service() -> AgoraService:
    """Dependency injection for AgoraService"""
    return AgoraService()
