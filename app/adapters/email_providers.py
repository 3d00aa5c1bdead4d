"""Email provider probes and the test-email sender.

SMTP work uses the blocking ``smtplib`` client in a worker thread;
SendGrid and Mailgun are probed over their REST APIs with ``httpx``.
"""

import asyncio
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import Any

import httpx

from app.core.settings_workflow import ConnectionTestResult

logger = logging.getLogger(__name__)

SENDGRID_PROFILE_URL = "https://api.sendgrid.com/v3/user/profile"
MAILGUN_DOMAIN_URL = "https://api.mailgun.net/v3/domains/{domain}"


class EmailProviderClient:
    """Talks to SMTP servers, SendGrid and Mailgun."""

    def __init__(self, http: httpx.AsyncClient, timeout: float = 15.0):
        self.http = http
        self.timeout = timeout

    # ------------------------------------------------------------------
    # SMTP
    # ------------------------------------------------------------------

    def _open_smtp(self, smtp: dict[str, Any]) -> smtplib.SMTP:
        """Connect, upgrade to TLS when offered, and log in when credentials are set."""
        host = smtp["host"]
        port = int(smtp.get("port") or 587)
        server: smtplib.SMTP
        if smtp.get("secure"):
            server = smtplib.SMTP_SSL(host, port, timeout=self.timeout)
        else:
            server = smtplib.SMTP(host, port, timeout=self.timeout)

        try:
            if not smtp.get("secure"):
                server.ehlo()
                if server.has_extn("starttls"):
                    server.starttls()
                    server.ehlo()

            auth = smtp.get("auth") or {}
            if auth.get("user"):
                server.login(auth["user"], auth.get("pass") or "")
        except BaseException:
            server.close()
            raise
        return server

    def _verify_smtp(self, smtp: dict[str, Any]) -> None:
        with self._open_smtp(smtp) as server:
            server.noop()

    def _send_smtp(self, smtp: dict[str, Any], msg: MIMEMultipart) -> None:
        with self._open_smtp(smtp) as server:
            server.send_message(msg)

    async def check_smtp(self, smtp: dict[str, Any]) -> ConnectionTestResult:
        try:
            await asyncio.to_thread(self._verify_smtp, smtp)
        except (smtplib.SMTPException, OSError) as e:
            logger.warning("SMTP probe against %s failed: %s", smtp.get("host"), e)
            return ConnectionTestResult(success=False, message=f"SMTP connection failed: {e}")
        return ConnectionTestResult(success=True, message="SMTP connection successful")

    async def send_smtp(
        self,
        smtp: dict[str, Any],
        sender: dict[str, Any],
        to: str,
        subject: str,
        body_text: str,
        body_html: str,
    ) -> None:
        """Send one message. Raises ``smtplib.SMTPException`` / ``OSError`` on failure."""
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = formataddr((sender.get("name") or "", sender["email"]))
        msg["To"] = to
        msg.attach(MIMEText(body_text, "plain"))
        msg.attach(MIMEText(body_html, "html"))
        await asyncio.to_thread(self._send_smtp, smtp, msg)

    # ------------------------------------------------------------------
    # HTTP providers
    # ------------------------------------------------------------------

    async def check_sendgrid(self, api_key: str) -> ConnectionTestResult:
        try:
            response = await self.http.get(
                SENDGRID_PROFILE_URL,
                headers={"Authorization": f"Bearer {api_key}"},
            )
        except httpx.HTTPError as e:
            return ConnectionTestResult(success=False, message=f"SendGrid connection failed: {e}")

        if response.status_code == 200:
            return ConnectionTestResult(success=True, message="SendGrid connection successful")
        return ConnectionTestResult(
            success=False,
            message=f"SendGrid connection failed: HTTP {response.status_code}",
        )

    async def check_mailgun(self, api_key: str, domain: str) -> ConnectionTestResult:
        try:
            response = await self.http.get(
                MAILGUN_DOMAIN_URL.format(domain=domain),
                auth=("api", api_key),
            )
        except httpx.HTTPError as e:
            return ConnectionTestResult(success=False, message=f"Mailgun connection failed: {e}")

        if response.status_code == 200:
            return ConnectionTestResult(success=True, message="Mailgun connection successful")
        return ConnectionTestResult(
            success=False,
            message=f"Mailgun connection failed: HTTP {response.status_code}",
        )
