import html
import logging
import smtplib
from dataclasses import dataclass
from datetime import datetime, timezone
from email.message import EmailMessage
from typing import Callable

from ..config import MailSettings
from ..utils.error_handlers import ConfigurationError

logger = logging.getLogger(__name__)

BRAND = "HirezApp"


@dataclass(frozen=True)
class EmailTemplate:
    subject: str
    html: str
    text: str


_STYLE = """
    body { font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif; line-height: 1.6; color: #333; margin: 0; padding: 0; }
    .container { max-width: 600px; margin: 0 auto; padding: 20px; }
    .header { background-color: #4F46E5; padding: 20px; text-align: center; }
    .header h1 { color: white; margin: 0; font-size: 24px; }
    .content { padding: 20px; background-color: #f9fafb; }
    .footer { background-color: #f3f4f6; padding: 15px; text-align: center; font-size: 12px; color: #6b7280; }
    .button { display: inline-block; background-color: #4F46E5; color: white !important; padding: 12px 24px; text-decoration: none; border-radius: 4px; font-weight: bold; }
    .info-box { background-color: #e0e7ff; border-left: 4px solid #4F46E5; padding: 10px 15px; margin: 15px 0; }
"""


def _page(title: str, body_html: str) -> str:
    year = datetime.now(timezone.utc).year
    return (
        "<!DOCTYPE html><html><head><meta charset=\"utf-8\">"
        "<meta name=\"viewport\" content=\"width=device-width, initial-scale=1.0\">"
        f"<title>{title}</title><style>{_STYLE}</style></head><body>"
        "<div class=\"container\">"
        f"<div class=\"header\"><h1>{BRAND}</h1></div>"
        f"<div class=\"content\">{body_html}<p>Best regards,<br/>{BRAND} Team</p></div>"
        "<div class=\"footer\">"
        f"<p>&copy; {year} {BRAND}. All rights reserved.</p>"
        "<p>This is an automated message, please do not reply to this email.</p>"
        "</div></div></body></html>"
    )


def _info_box(status_label: str, job_title: str, application_date: str) -> str:
    return (
        "<div class=\"info-box\">"
        f"<p><strong>Application Status:</strong> {status_label}</p>"
        f"<p><strong>Position:</strong> {job_title}</p>"
        f"<p><strong>Application Date:</strong> {application_date}</p>"
        "</div>"
    )


def _reviewed(name: str, job_title: str, application_date: str, calendar_link: str | None) -> EmailTemplate:
    body = (
        f"<h2>Hello {name},</h2>"
        f"<p>Thank you for your application for the <strong>{job_title}</strong> position submitted on {application_date}.</p>"
        "<p>We're pleased to inform you that our team has reviewed your application and qualifications.</p>"
        + _info_box("Under Review", job_title, application_date)
        + "<p>Our hiring team is currently evaluating all candidates, and we will be in touch soon with more "
        "information about next steps.</p>"
    )
    text = (
        f"Hello {name},\n\nThank you for your application for the {job_title} position submitted on "
        f"{application_date}. Our team has reviewed your application and will be in touch soon about next steps."
    )
    return EmailTemplate(
        subject=f"Your application for {job_title} has been reviewed | {BRAND}",
        html=_page("Application Reviewed", body),
        text=text,
    )


def _shortlisted(name: str, job_title: str, application_date: str, calendar_link: str | None) -> EmailTemplate:
    schedule = ""
    if calendar_link:
        schedule = (
            "<p>Please schedule an interview with our hiring team using the button below.</p>"
            f"<div style=\"text-align: center;\"><a href=\"{calendar_link}\" class=\"button\">Schedule Your Interview</a></div>"
        )
    body = (
        f"<h2>Hello {name},</h2>"
        f"<p>Great news! You've been shortlisted for the <strong>{job_title}</strong> position that you applied "
        f"for on {application_date}.</p>"
        + _info_box("Shortlisted", job_title, application_date)
        + "<p>Your qualifications, experience, and skills have impressed our hiring team, and we would like to "
        "invite you to the next stage of our selection process.</p>"
        + schedule
        + "<p>We look forward to speaking with you soon!</p>"
    )
    text = (
        f"Hello {name},\n\nGreat news! You've been shortlisted for the {job_title} position that you applied "
        f"for on {application_date}."
    )
    if calendar_link:
        text += f"\n\nSchedule your interview: {calendar_link}"
    return EmailTemplate(
        subject=f"Congratulations! You've been shortlisted for {job_title} | {BRAND}",
        html=_page("Application Shortlisted", body),
        text=text,
    )


def _rejected(name: str, job_title: str, application_date: str, calendar_link: str | None) -> EmailTemplate:
    body = (
        f"<h2>Hello {name},</h2>"
        f"<p>Thank you for your interest in the <strong>{job_title}</strong> position and for taking the time to "
        f"submit your application on {application_date}.</p>"
        + _info_box("Not Selected", job_title, application_date)
        + "<p>After careful consideration of all applications, we regret to inform you that we have decided to "
        "move forward with other candidates whose qualifications more closely align with our current needs "
        "for this specific role.</p>"
        "<p>We encourage you to apply for future positions that match your skills and experience.</p>"
    )
    text = (
        f"Hello {name},\n\nThank you for applying to the {job_title} position. After careful consideration "
        "we have decided to move forward with other candidates for this role."
    )
    return EmailTemplate(
        subject=f"Update on your {job_title} application | {BRAND}",
        html=_page("Application Update", body),
        text=text,
    )


STATUS_TEMPLATES: dict[str, Callable[[str, str, str, str | None], EmailTemplate]] = {
    "reviewed": _reviewed,
    "shortlisted": _shortlisted,
    "rejected": _rejected,
}


def render_status_email(
    *,
    name: str,
    status: str,
    job_title: str | None = None,
    application_date: str | None = None,
    calendar_link: str | None = None,
) -> EmailTemplate | None:
    builder = STATUS_TEMPLATES.get((status or "").strip().lower())
    if builder is None:
        return None
    return builder(
        html.escape((name or "Candidate").strip() or "Candidate"),
        html.escape((job_title or "the role").strip() or "the role"),
        html.escape(application_date or datetime.now(timezone.utc).strftime("%B %d, %Y")),
        html.escape(calendar_link, quote=True) if calendar_link else None,
    )


def _escaped(value: str | None, default: str) -> str:
    return html.escape((value or default).strip() or default)


def render_submitted_email(*, name: str | None, job_title: str | None) -> EmailTemplate:
    """Confirmation sent to a candidate once their application is on file."""
    name = _escaped(name, "Candidate")
    job_title = _escaped(job_title, "the role")
    body = (
        f"<h2>Hi {name},</h2>"
        f"<p>Thanks for applying to <strong>{job_title}</strong>! There are a ton of great companies out there, "
        "so we appreciate your interest in joining our team.</p>"
        "<p>While we're not able to reach out to every applicant, our recruiting team will contact you if your "
        "skills and experience are a strong match for the role.</p>"
        "<p>We wish you success in your job search and professional endeavors.</p>"
    )
    text = (
        f"Hi {name},\n\nThanks for applying to {job_title}! Our recruiting team will contact you if your "
        "skills and experience are a strong match for the role."
    )
    return EmailTemplate(
        subject=f"Application Submitted for {job_title} | {BRAND}",
        html=_page("Application Submitted", body),
        text=text,
    )


def render_welcome_email(*, name: str | None) -> EmailTemplate:
    name = _escaped(name, "User")
    body = (
        f"<h2>Hello {name},</h2>"
        f"<p>Welcome to {BRAND}! We're excited to have you on board.</p>"
        "<p>We're here to make the hiring process as smooth as possible.</p>"
        "<p>If you have any questions, please don't hesitate to contact our support team.</p>"
    )
    text = f"Hello {name},\n\nWelcome to {BRAND}! We're excited to have you on board."
    return EmailTemplate(subject=f"Welcome to {BRAND}", html=_page(f"Welcome to {BRAND}", body), text=text)


class Mailer:
    """Sends candidate notifications through the configured SMTP relay."""

    def __init__(self, settings: MailSettings, *, timeout_s: float = 15):
        self.settings = settings
        self.timeout_s = timeout_s

    def _send(self, *, to_email: str, template: EmailTemplate) -> None:
        s = self.settings
        if not s.configured:
            raise ConfigurationError("SMTP is not configured (missing SMTP_HOST/SMTP_USER/SMTP_PASSWORD/SMTP_FROM).")

        msg = EmailMessage()
        msg["Subject"] = template.subject
        msg["From"] = s.mail_from
        msg["To"] = to_email
        msg.set_content(template.text)
        msg.add_alternative(template.html, subtype="html")

        logger.debug("Connecting to %s:%s (ssl=%s)", s.host, s.port, s.use_ssl)
        if s.use_ssl:
            with smtplib.SMTP_SSL(s.host, s.port, timeout=self.timeout_s) as smtp:
                smtp.login(s.user, s.password)
                smtp.send_message(msg)
        else:
            with smtplib.SMTP(s.host, s.port, timeout=self.timeout_s) as smtp:
                smtp.ehlo()
                smtp.starttls()
                smtp.ehlo()
                smtp.login(s.user, s.password)
                smtp.send_message(msg)

    def send_status_email(
        self,
        *,
        to_email: str,
        name: str,
        status: str,
        job_title: str | None = None,
        application_date: str | None = None,
        calendar_link: str | None = None,
    ) -> bool:
        """
        Send the template for `status`. Returns False (and sends nothing) when the
        status has no template. SMTP failures propagate to the caller.
        """
        template = render_status_email(
            name=name,
            status=status,
            job_title=job_title,
            application_date=application_date,
            calendar_link=calendar_link,
        )
        if template is None:
            logger.debug("No email template for status=%s; skipping", status)
            return False

        self._deliver(kind=status, to_email=to_email, template=template)
        return True

    def send_submitted_email(self, *, to_email: str, name: str | None, job_title: str | None) -> None:
        """Application confirmation for the candidate. SMTP failures propagate."""
        self._deliver(
            kind="submitted",
            to_email=to_email,
            template=render_submitted_email(name=name, job_title=job_title),
        )

    def send_welcome_email(self, *, to_email: str, name: str | None = None) -> None:
        self._deliver(kind="welcome", to_email=to_email, template=render_welcome_email(name=name))

    def _deliver(self, *, kind: str, to_email: str, template: EmailTemplate) -> None:
        try:
            self._send(to_email=to_email, template=template)
        except Exception as e:
            logger.error("Failed to send %s email to %s: %s: %s", kind, to_email, type(e).__name__, e)
            raise
        logger.info("Email sent to %s: %s", to_email, kind)
