"""
SMTP delivery of monthly reports.

Credentials come from settings (EMAIL_USER / EMAIL_PASS); without them
the sender refuses to send instead of silently dropping the message.
"""

from __future__ import annotations

import logging
import smtplib
from dataclasses import dataclass
from datetime import datetime, timezone
from email.mime.application import MIMEApplication
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape

from fastapi.concurrency import run_in_threadpool

from ponto.core.config import Settings, settings
from ponto.core.exceptions import EmailDeliveryError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmailAttachment:
    filename: str
    content: bytes
    mime_type: str


def build_report_email(
    *,
    period: str,
    fmt: str,
    app_name: str,
    generated_at: datetime | None = None,
) -> tuple[str, str]:
    """Return (subject, html_body) for a monthly report e-mail."""
    generated = (generated_at or datetime.now(timezone.utc)).strftime("%d/%m/%Y")
    is_pdf = fmt == "pdf"
    format_label = "PDF (Adobe PDF)" if is_pdf else "CSV (compatível com Excel)"
    how_to_open = (
        "Para visualizar o arquivo, utilize qualquer leitor de PDF como Adobe Acrobat "
        "Reader, navegador web ou aplicativo de PDF."
        if is_pdf
        else "Para abrir o arquivo, utilize Microsoft Excel, Google Sheets ou qualquer "
        "editor de planilhas compatível com CSV."
    )
    name = escape(app_name)
    period_html = escape(period)

    subject = f"{app_name} - Relatório Mensal de Ponto ({period})"
    html_body = f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <div style="background: #D946EF; padding: 20px; text-align: center;">
    <h1 style="color: white; margin: 0;">{name}</h1>
    <p style="color: white; margin: 10px 0 0 0;">Sistema de Registro de Ponto</p>
  </div>
  <div style="padding: 30px; background: #f9f9f9;">
    <h2 style="color: #333; margin-top: 0;">Relatório Mensal de Ponto</h2>
    <p style="color: #666; line-height: 1.6;">
      Prezado(a),<br><br>
      Segue em anexo o relatório mensal de ponto dos funcionários referente ao
      período de <strong>{period_html}</strong>.
    </p>
    <ul style="color: #666; line-height: 1.8;">
      <li>Período: {period_html}</li>
      <li>Formato: {format_label}</li>
      <li>Conteúdo: Registros de entrada e saída com localização</li>
      <li>Gerado em: {generated}</li>
    </ul>
    <p style="color: #666; line-height: 1.6;">{how_to_open}</p>
    <p style="color: #999; font-size: 12px;">
      Este é um email automático do sistema {name}. Não responda a este email.
    </p>
  </div>
</div>
"""
    return subject, html_body


class SmtpEmailSender:
    def __init__(self, config: Settings = settings) -> None:
        self._config = config

    @property
    def is_configured(self) -> bool:
        return bool(self._config.EMAIL_USER and self._config.EMAIL_PASS)

    def _build_message(
        self, to_address: str, subject: str, html_body: str, attachment: EmailAttachment
    ) -> MIMEMultipart:
        msg = MIMEMultipart()
        msg["From"] = self._config.EMAIL_FROM or self._config.EMAIL_USER or ""
        msg["To"] = to_address
        msg["Subject"] = subject
        msg.attach(MIMEText(html_body, "html", "utf-8"))

        _, _, subtype = attachment.mime_type.partition("/")
        part = MIMEApplication(attachment.content, _subtype=subtype or "octet-stream")
        part.replace_header("Content-Type", attachment.mime_type)
        part.add_header("Content-Disposition", "attachment", filename=attachment.filename)
        msg.attach(part)
        return msg

    def send_sync(
        self, to_address: str, subject: str, html_body: str, attachment: EmailAttachment
    ) -> None:
        if not self.is_configured:
            logger.error("Email service not configured: set EMAIL_USER and EMAIL_PASS")
            raise EmailDeliveryError("Email service is not configured")

        msg = self._build_message(to_address, subject, html_body, attachment)
        try:
            with smtplib.SMTP(
                self._config.EMAIL_HOST,
                self._config.EMAIL_PORT,
                timeout=self._config.EMAIL_TIMEOUT_SEC,
            ) as smtp:
                smtp.starttls()
                smtp.login(self._config.EMAIL_USER, self._config.EMAIL_PASS)
                smtp.sendmail(msg["From"], [to_address], msg.as_string())
        except smtplib.SMTPAuthenticationError as exc:
            logger.error(
                "SMTP authentication failed for %s (Gmail requires an app password): %s",
                self._config.EMAIL_USER, exc,
            )
            raise EmailDeliveryError("SMTP authentication failed") from exc
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Failed to send email to %s: %s", to_address, exc)
            raise EmailDeliveryError(f"Failed to send email: {exc}") from exc

        logger.info("Report email sent to %s (%s)", to_address, attachment.filename)

    async def send(
        self, to_address: str, subject: str, html_body: str, attachment: EmailAttachment
    ) -> None:
        await run_in_threadpool(self.send_sync, to_address, subject, html_body, attachment)
