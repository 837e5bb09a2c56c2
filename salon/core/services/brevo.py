import asyncio
import random
from typing import Any

from fastapi import status as http_status
import httpx
from pydantic import BaseModel

from salon.core.config import brevo_logger, settings
from salon.core.exceptions.types import AppException


class Contact(BaseModel):
    email: str
    name: str | None = None


class ListContact(BaseModel):
    to: list[Contact]


class BrevoService:
    _base_url: str = settings.BREVO_BASE_URL
    _api_key: str = settings.BREVO_API_KEY
    _sender_email: str = settings.BREVO_SENDER_EMAIL
    _sender_name: str = settings.BREVO_SENDER_NAME
    _client: httpx.AsyncClient | None = None

    # Bounded retries + backoff
    _BACKOFF_BASE: float = 1.0  # start with 1s
    _BACKOFF_MAX: float = 10.0  # cap at 10s, callers are waiting on a response
    _JITTER: float = 0.2  # +/-20%

    @classmethod
    def is_configured(cls) -> bool:
        """Whether an API key is set, i.e. whether mail can actually be sent."""
        return bool(cls._api_key)

    @classmethod
    def _init_client(cls) -> None:
        """
        Initializes the Brevo HTTP client if it has not already been initialized.

        Returns:
            None
        """
        if cls._client is None:
            cls._client = httpx.AsyncClient(
                base_url=cls._base_url,
                timeout=httpx.Timeout(30.0),
            )
            brevo_logger.info("Brevo HTTP client initialized")

    @classmethod
    async def aclose(cls) -> None:
        """
        Asynchronously closes the Brevo HTTP client if it is initialized.
        """
        if cls._client is not None:
            try:
                await cls._client.aclose()
            finally:
                cls._client = None
                brevo_logger.info("Brevo HTTP client closed")

    @classmethod
    async def init(
        cls,
        api_key: str | None = None,
        sender_email: str | None = None,
        sender_name: str | None = None,
    ) -> None:
        """
        Initializes the Brevo service with the provided configuration.

        Parameters that are not provided keep their current values. Any
        existing client is closed before a new one is created.

        Args:
            api_key (str | None): The API key for authenticating requests. Defaults to None.
            sender_email (str | None): The email address of the sender. Defaults to None.
            sender_name (str | None): The name of the sender. Defaults to None.
        """
        if api_key is not None:
            cls._api_key = api_key
        if sender_email is not None:
            cls._sender_email = sender_email
        if sender_name is not None:
            cls._sender_name = sender_name
        await cls.aclose()
        cls._init_client()

    @classmethod
    def _compute_backoff(
        cls, attempt: int, err_headers: httpx.Headers | None = None
    ) -> float:
        """
        Delay in seconds before retry number ``attempt`` (1-based).

        Honours Brevo's ``x-sib-ratelimit-reset`` header when present, otherwise
        uses capped exponential backoff with multiplicative jitter.
        """
        if err_headers and "x-sib-ratelimit-reset" in err_headers:
            try:
                return float(err_headers.get("x-sib-ratelimit-reset"))
            except ValueError:
                pass  # Fall back to computed backoff if parsing fails
        base = min(cls._BACKOFF_BASE * (2 ** (attempt - 1)), cls._BACKOFF_MAX)
        jitter = random.uniform(1 - cls._JITTER, 1 + cls._JITTER)
        return base * jitter

    @classmethod
    def _auth_headers(cls, extra: dict[str, str] | None = None) -> dict[str, str]:
        headers = {
            "api-key": cls._api_key,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if extra:
            headers.update(extra)
        return headers

    @classmethod
    async def _request(
        cls,
        method: str,
        endpoint: str,
        *,
        json: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        max_attempts: int = 3,
    ) -> dict[str, Any] | str:
        """
        Perform a request against the Brevo API with bounded retries.

        5xx responses, 429 responses and network errors are retried with
        backoff up to ``max_attempts``. Other 4xx responses fail immediately.
        Provider error bodies are logged, never returned to API callers.

        Args:
            method: HTTP method to use (e.g. "POST").
            endpoint: Path relative to the Brevo base URL.
            json: Optional JSON body.
            headers: Optional headers merged with the authentication headers.
            max_attempts: Maximum number of attempts (initial try + retries).

        Returns:
            The parsed JSON body, or the raw text when the body is not JSON.

        Raises:
            AppException: On non-retriable client errors or when retries are exhausted.
        """
        if cls._client is None:
            cls._init_client()
        assert cls._client is not None

        attempts = max_attempts
        for attempt in range(1, attempts + 1):
            try:
                resp: httpx.Response = await cls._client.request(
                    method, endpoint, headers=cls._auth_headers(headers), json=json
                )
                resp.raise_for_status()
                try:
                    body = resp.json()
                except ValueError:
                    body = resp.text

                brevo_logger.info(f"Brevo response: {body}")
                return body

            except httpx.HTTPStatusError as exc:
                status = exc.response.status_code
                try:
                    err_body = exc.response.json()
                except ValueError:
                    err_body = exc.response.text

                if 500 <= status < 600:
                    wait = cls._compute_backoff(attempt)
                    brevo_logger.warning(
                        f"5xx from Brevo; attempt {attempt}/{attempts}; wait={wait:.1f}s; body={err_body}"
                    )
                    if attempt < attempts:
                        await asyncio.sleep(wait)
                        continue
                    brevo_logger.error(f"5xx error after retries: {status}: {err_body}")
                    raise AppException(
                        message=f"Server error after retries: {status}",
                        status_code=status,
                    ) from exc
                elif status == 429:
                    wait = cls._compute_backoff(attempt, exc.response.headers)
                    brevo_logger.warning(
                        f"Rate limited by Brevo; attempt {attempt}/{attempts}; wait={wait:.1f}s; body={err_body}"
                    )
                    if attempt < attempts:
                        await asyncio.sleep(wait)
                        continue
                    brevo_logger.error(
                        f"Rate limit error after retries: {status}: {err_body}"
                    )
                    raise AppException(
                        message="Brevo rate limit exceeded after retries",
                        status_code=http_status.HTTP_429_TOO_MANY_REQUESTS,
                    ) from exc

                brevo_logger.error(f"4xx error {status}: {err_body}")
                raise AppException(
                    message=f"HTTP error {status}", status_code=status
                ) from exc

            except (httpx.TimeoutException, httpx.TransportError) as exc:
                wait = cls._compute_backoff(attempt)
                brevo_logger.warning(
                    f"Timeout/transport error; attempt {attempt}/{attempts}; wait={wait:.1f}s; err={exc}"
                )
                if attempt < attempts:
                    await asyncio.sleep(wait)
                    continue
                brevo_logger.error(f"Network error after retries: {exc}")
                raise AppException(
                    message="Brevo network error after retries",
                    status_code=http_status.HTTP_503_SERVICE_UNAVAILABLE,
                ) from exc

        raise AppException(
            message="Unexpected state: no response after all attempts",
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    @classmethod
    async def send_transactional_email(
        cls,
        subject: str,
        to: ListContact,
        textContent: str | None = None,
        htmlContent: str | None = None,
        sender: Contact | None = None,
    ) -> dict[str, Any] | str:
        """
        Sends a transactional email via the Brevo API.

        Args:
            subject (str): Subject of the email.
            to (ListContact): Recipient contacts.
            textContent (str | None): Plain text content of the email. Defaults to None.
            htmlContent (str | None): HTML content of the email. Defaults to None.
            sender (Contact | None): Sender contact; defaults to the configured sender.

        Returns:
            dict[str, Any] | str: The Brevo API response.

        Raises:
            ValueError: If neither htmlContent nor textContent is provided.
            AppException: If the provider rejects or fails the request.
        """
        if not htmlContent and not textContent:
            raise ValueError("Either htmlContent or textContent must be provided")
        sender = sender or Contact(email=cls._sender_email, name=cls._sender_name)
        payload: dict[str, Any] = {
            "sender": sender.model_dump(exclude_none=True),
            "subject": subject,
            **to.model_dump(exclude_none=True),
        }
        if textContent:
            payload["textContent"] = textContent
        if htmlContent:
            payload["htmlContent"] = htmlContent

        return await cls._request(
            method="POST",
            endpoint="/smtp/email",
            json=payload,
        )
