import httpx

from salon.core.config import settings, twilio_logger


class TwilioService:
    """
    Minimal Twilio Messages API client.

    Credentials come from settings; when any of them is missing the service
    reports itself as unconfigured and ``send_sms`` is a logged no-op.
    """

    _base_url: str = settings.TWILIO_BASE_URL
    _account_sid: str = settings.TWILIO_ACCOUNT_SID
    _auth_token: str = settings.TWILIO_AUTH_TOKEN
    _from_number: str = settings.TWILIO_FROM_NUMBER
    _client: httpx.AsyncClient | None = None

    @classmethod
    def is_configured(cls) -> bool:
        return bool(cls._account_sid and cls._auth_token and cls._from_number)

    @classmethod
    def _init_client(cls) -> None:
        if cls._client is None:
            cls._client = httpx.AsyncClient(
                base_url=cls._base_url,
                timeout=httpx.Timeout(10.0),
            )
            twilio_logger.info("Twilio HTTP client initialized")

    @classmethod
    async def init(
        cls,
        account_sid: str | None = None,
        auth_token: str | None = None,
        from_number: str | None = None,
    ) -> None:
        """
        Initializes the Twilio service, overriding any provided credentials.

        Args:
            account_sid (str | None): Twilio account SID.
            auth_token (str | None): Twilio auth token.
            from_number (str | None): Sender phone number in E.164 format.
        """
        if account_sid is not None:
            cls._account_sid = account_sid
        if auth_token is not None:
            cls._auth_token = auth_token
        if from_number is not None:
            cls._from_number = from_number
        await cls.aclose()
        cls._init_client()

    @classmethod
    async def aclose(cls) -> None:
        if cls._client is not None:
            try:
                await cls._client.aclose()
            finally:
                cls._client = None
                twilio_logger.info("Twilio HTTP client closed")

    @classmethod
    async def send_sms(cls, to_phone: str, body: str) -> bool:
        """
        Send a text message.

        Args:
            to_phone: Recipient phone number.
            body: Message text.

        Returns:
            bool: True if Twilio accepted the message, False otherwise.
        """
        if not cls.is_configured():
            twilio_logger.info("Twilio credentials not configured; skipping SMS")
            return False

        if not to_phone:
            twilio_logger.info("No phone number provided; skipping SMS")
            return False

        if cls._client is None:
            cls._init_client()
        assert cls._client is not None

        try:
            response = await cls._client.post(
                f"/Accounts/{cls._account_sid}/Messages.json",
                auth=(cls._account_sid, cls._auth_token),
                data={
                    "To": to_phone,
                    "From": cls._from_number,
                    "Body": body,
                },
            )
            response.raise_for_status()
            sid = response.json().get("sid")
            twilio_logger.info(f"SMS accepted by Twilio: sid={sid}")
            return True

        except httpx.HTTPStatusError as e:
            twilio_logger.error(
                f"Twilio API error {e.response.status_code}: {e.response.text}"
            )
            return False
        except (httpx.HTTPError, ValueError) as e:
            twilio_logger.error(f"Failed to send SMS: {type(e).__name__} - {e}")
            return False
