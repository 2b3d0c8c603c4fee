from django.conf import settings
from django.core.mail import send_mail
from django.utils import timezone
import logging

from hospitalportal.exceptions import BadRequest, UpstreamFailure
from .models import User

logger = logging.getLogger(__name__)


def send_email(to, subject, text_body, html_body=None):
    """
    Deliver one email through the configured Django mail backend.

    Errors from the backend propagate to the caller.
    """
    return send_mail(
        subject,
        text_body,
        settings.DEFAULT_FROM_EMAIL,
        [to],
        fail_silently=False,
        html_message=html_body,
    )


class PasswordResetService:
    """Forgot-password and reset-password flow shared by both account kinds"""

    @staticmethod
    def accounts_for(role):
        return User.objects.filter(**{f'{role}__isnull': False})

    @staticmethod
    def request_reset(role, email):
        """
        Mail a reset link to the ``role`` account registered under ``email``.

        Returns the user, or ``None`` when no such account exists. Only the
        hash of the mailed token is stored. When delivery fails the token is
        discarded and ``UpstreamFailure`` is raised.
        """
        user = PasswordResetService.accounts_for(role).filter(email__iexact=email).first()
        if user is None:
            logger.info(f"Password reset requested for unknown {role} account")
            return None

        raw_token = user.get_reset_password_token()
        user.save(update_fields=['reset_password_token', 'reset_password_expire'])

        reset_url = f"{settings.FRONTEND_URL.rstrip('/')}/{role}s/resetpassword/{raw_token}"
        text_body = (
            "You are receiving this email because you (or someone else) has requested "
            f"the reset of a password. Please follow this link to reset it:\n\n{reset_url}\n\n"
            f"The link expires in {settings.PASSWORD_RESET_TIMEOUT_MINUTES} minutes."
        )
        html_body = (
            "<p>You are receiving this email because you (or someone else) has requested "
            "the reset of a password.</p>"
            f'<p><a href="{reset_url}">Reset your password</a></p>'
            f"<p>The link expires in {settings.PASSWORD_RESET_TIMEOUT_MINUTES} minutes.</p>"
        )

        try:
            send_email(user.email, 'Password reset token', text_body, html_body)
        except Exception as e:
            logger.error(f"Failed to send password reset email to user {user.id}: {str(e)}")
            user.clear_reset_password_token()
            user.save(update_fields=['reset_password_token', 'reset_password_expire'])
            raise UpstreamFailure('Email could not be sent')

        logger.info(f"Password reset email sent to user {user.id}")
        return user

    @staticmethod
    def reset(role, raw_token, new_password):
        """Set ``new_password`` on the account owning an unexpired ``raw_token``."""
        user = PasswordResetService.accounts_for(role).filter(
            reset_password_token=User.hash_reset_token(raw_token),
            reset_password_expire__gt=timezone.now(),
        ).first()
        if user is None:
            raise BadRequest('Invalid or expired token')

        user.set_password(new_password)
        user.clear_reset_password_token()
        user.save()
        logger.info(f"Password reset completed for user {user.id}")
        return user
