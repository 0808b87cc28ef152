import smtplib
import ssl
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from app.config.settings import (
    SMTP_FROM,
    SMTP_HOST,
    SMTP_PASSWORD,
    SMTP_PORT,
    SMTP_USE_TLS,
    SMTP_USER,
)
from app.utils.logger import logger


class EmailDeliveryError(Exception):
    pass


class InviteMailer:
    """Envio do email de convite via SMTP."""

    from_name = "AvaliaTec"

    def __init__(
        self,
        host: str | None = SMTP_HOST,
        port: int = SMTP_PORT,
        username: str | None = SMTP_USER,
        password: str | None = SMTP_PASSWORD,
        from_email: str = SMTP_FROM,
        use_tls: bool = SMTP_USE_TLS,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.from_email = from_email
        self.use_tls = use_tls

    def send_invite(self, to_email: str, group_name: str, invite_link: str, expires_at: datetime) -> None:
        if not self.host:
            raise EmailDeliveryError("SMTP_HOST não configurado")

        subject = "Você foi convidado para o AvaliaTec"
        text = (
            f"Olá!\n\nVocê foi convidado para acessar o AvaliaTec no grupo {group_name}.\n"
            f"Aceite o convite pelo link abaixo:\n{invite_link}\n\n"
            f"O convite expira em {expires_at:%d/%m/%Y %H:%M} (UTC)."
        )

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{self.from_name} <{self.from_email}>"
        msg["To"] = to_email
        msg.attach(MIMEText(text, "plain", "utf-8"))
        msg.attach(MIMEText(self._html(group_name, invite_link, expires_at), "html", "utf-8"))

        try:
            with smtplib.SMTP(self.host, self.port, timeout=15) as server:
                if self.use_tls:
                    server.starttls(context=ssl.create_default_context())
                if self.username and self.password:
                    server.login(self.username, self.password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            raise EmailDeliveryError(f"Erro ao enviar email: {e}") from e

        logger.info("[CONVITES] Email de convite enviado para %s", to_email)

    @staticmethod
    def _html(group_name: str, invite_link: str, expires_at: datetime) -> str:
        return f"""
        <!DOCTYPE html>
        <html>
        <head><meta charset="utf-8"></head>
        <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
            <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
                <h2>Convite para o AvaliaTec</h2>
                <p>Você foi convidado para o grupo <strong>{group_name}</strong>.</p>
                <p><a href="{invite_link}">Aceitar convite</a></p>
                <p style="font-size: 12px; color: #666;">
                    O convite expira em {expires_at:%d/%m/%Y %H:%M} (UTC).
                    Esta é uma mensagem automática, por favor não responda.
                </p>
            </div>
        </body>
        </html>
        """
