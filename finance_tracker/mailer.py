import logging

from fastapi import Request

logger = logging.getLogger(__name__)


class LogMailer:
    """Development mailer: writes the reset link to the log instead of sending it."""

    def __init__(self, frontend_url: str):
        self.frontend_url = frontend_url.rstrip("/")

    def send_password_reset(self, email: str, token: str) -> None:
        logger.info(
            "Password reset link for %s: %s/reset-password?token=%s", email, self.frontend_url, token
        )


def get_mailer(request: Request):
    return request.app.state.mailer
