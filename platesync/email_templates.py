"""
MJML Email Templates
Built-in defaults for the church-editable templates plus system-only emails.
Church-editable templates keep their {{placeholders}} after compilation and are
rendered per message by email_service.render_placeholders.
"""

from typing import Optional

from .models import EmailTemplateType

# App theme colors - Navy/Green color scheme
THEME = {
    "primary": "#4299E1",
    "primary_dark": "#2B6CB0",
    "primary_light": "#EBF8FF",
    "background": "#F7FAFC",
    "card_bg": "#ffffff",
    "text_primary": "#1A202C",
    "text_secondary": "#2D3748",
    "text_muted": "#718096",
    "border": "#E2E8F0",
    "success": "#48BB78",
    "danger": "#E53E3E",
}

# Transparent 1x1 gif used when a church has no logo
TRANSPARENT_PIXEL = "data:image/gif;base64,R0lGODlhAQABAIAAAAAAAP///yH5BAEAAAAALAAAAAABAAEAAAIBRAA7"


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
    header_image: Optional[str] = None,
) -> str:
    """Base MJML template wrapper for all emails"""

    header_section = ""
    if header_image:
        header_section = f"""
        <mj-section background-color="#ffffff" padding="32px 20px 0 20px">
          <mj-column>
            <mj-image src="{header_image}" alt="{{{{churchName}}}}" width="180px" padding="0" />
          </mj-column>
        </mj-section>
        """

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section background-color="#ffffff" padding="0 40px 40px 40px">
          <mj-column>
            <mj-button
              href="{cta_url}"
              background-color="{THEME['primary']}"
              color="#ffffff"
              font-weight="600"
              border-radius="6px"
              padding="12px 0"
              font-size="16px">
              {cta_label}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="-apple-system, BlinkMacSystemFont, 'Segoe UI', 'Helvetica Neue', Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        {header_section}

        <mj-section background-color="#ffffff" padding="32px 40px 24px 40px">
          <mj-column>
            <mj-text font-size="24px" font-weight="600" color="{THEME['text_primary']}" line-height="1.3" padding="0 0 16px 0">
              {title}
            </mj-text>
            {content_sections}
          </mj-column>
        </mj-section>

        {cta_section}

        <mj-section padding="24px 20px">
          <mj-column>
            <mj-text align="center" font-size="13px" color="{THEME['text_muted']}" padding="0">
              Sent by PlateSync on behalf of {{{{churchName}}}}.
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


# ============================================
# Church-editable defaults (keep {{placeholders}})
# ============================================


def welcome_email_template() -> str:
    content = """
    <mj-text>Dear {{firstName}} {{lastName}},</mj-text>
    <mj-text>
      An account has been created for you on PlateSync for {{churchName}}.
      PlateSync is used to record and count the offering for our church.
    </mj-text>
    <mj-text>
      Please verify your email address and set your password using the button below.
      This link expires in 72 hours.
    </mj-text>
    """
    return get_base_template(
        title="Welcome to PlateSync",
        preview_text="Set your password to get started",
        content_sections=content,
        cta_url="{{verificationUrl}}",
        cta_label="Set Your Password",
    )


def password_reset_template() -> str:
    content = """
    <mj-text>Hello {{firstName}},</mj-text>
    <mj-text>
      We received a request to reset the password for your PlateSync account.
      Use the button below to choose a new password. The link expires in one hour.
    </mj-text>
    <mj-text>If you did not request a reset, you can safely ignore this email.</mj-text>
    """
    return get_base_template(
        title="Reset Your Password",
        preview_text="Reset your PlateSync password",
        content_sections=content,
        cta_url="{{resetUrl}}",
        cta_label="Reset Password",
    )


def donation_confirmation_template() -> str:
    content = f"""
    <mj-text>Dear {{{{donorName}}}},</mj-text>
    <mj-text>
      Thank you for your generous gift to {{{{churchName}}}}. Your donation has been received.
    </mj-text>
    <mj-text padding="8px 0">
      <table width="100%" cellpadding="8" style="border-collapse: collapse; background-color: {THEME['primary_light']};">
        <tr><td><strong>Amount</strong></td><td align="right">${{{{amount}}}}</td></tr>
        <tr><td><strong>Date</strong></td><td align="right">{{{{date}}}}</td></tr>
        <tr><td><strong>Receipt #</strong></td><td align="right">{{{{donationId}}}}</td></tr>
      </table>
    </mj-text>
    <mj-text>Please keep this email as a record of your contribution.</mj-text>
    """
    return get_base_template(
        title="Thank You for Your Donation",
        preview_text="Your donation to {{churchName}} has been received",
        content_sections=content,
        header_image="{{churchLogoUrl}}",
    )


def count_report_template() -> str:
    content = f"""
    <mj-text>Dear {{{{recipientName}}}},</mj-text>
    <mj-text>
      The count <strong>{{{{batchName}}}}</strong> for {{{{churchName}}}} has been finalized.
    </mj-text>
    <mj-text padding="8px 0">
      <table width="100%" cellpadding="8" style="border-collapse: collapse; border: 1px solid {THEME['border']};">
        <tr><td><strong>Date</strong></td><td align="right">{{{{batchDate}}}}</td></tr>
        <tr><td><strong>Cash</strong></td><td align="right">${{{{cashAmount}}}}</td></tr>
        <tr><td><strong>Checks</strong></td><td align="right">${{{{checkAmount}}}}</td></tr>
        <tr><td><strong>Total</strong></td><td align="right"><strong>${{{{totalAmount}}}}</strong></td></tr>
        <tr><td><strong>Donations</strong></td><td align="right">{{{{donationCount}}}}</td></tr>
      </table>
    </mj-text>
    """
    return get_base_template(
        title="Count Report",
        preview_text="{{batchName}} has been finalized",
        content_sections=content,
    )


DEFAULT_TEMPLATES = {
    EmailTemplateType.WELCOME_EMAIL: {
        "subject": "Welcome to PlateSync - {{churchName}}",
        "mjml": welcome_email_template,
        "text": (
            "Dear {{firstName}} {{lastName}},\n\n"
            "An account has been created for you on PlateSync for {{churchName}}.\n"
            "Set your password here (expires in 72 hours): {{verificationUrl}}\n"
        ),
    },
    EmailTemplateType.PASSWORD_RESET: {
        "subject": "Reset your PlateSync password",
        "mjml": password_reset_template,
        "text": (
            "Hello {{firstName}},\n\n"
            "Reset your PlateSync password here (expires in one hour): {{resetUrl}}\n\n"
            "If you did not request a reset, you can ignore this email.\n"
        ),
    },
    EmailTemplateType.DONATION_CONFIRMATION: {
        "subject": "Thank you for your donation to {{churchName}}",
        "mjml": donation_confirmation_template,
        "text": (
            "Dear {{donorName}},\n\n"
            "Thank you for your donation of ${{amount}} to {{churchName}} on {{date}}.\n"
            "Receipt #: {{donationId}}\n"
        ),
    },
    EmailTemplateType.COUNT_REPORT: {
        "subject": "Count Report: {{batchName}} - {{churchName}}",
        "mjml": count_report_template,
        "text": (
            "Dear {{recipientName}},\n\n"
            "The count {{batchName}} ({{batchDate}}) for {{churchName}} has been finalized.\n"
            "Cash: ${{cashAmount}}\nChecks: ${{checkAmount}}\nTotal: ${{totalAmount}}\n"
            "Donations: {{donationCount}}\n"
        ),
    },
}


# ============================================
# System-only emails (not editable)
# ============================================


def verification_code_template(first_name: str, code: str) -> str:
    """Registration verification code MJML template"""
    content = f"""
    <mj-text>Hi {first_name},</mj-text>
    <mj-text>Use the following code to verify your email address. It expires in 15 minutes.</mj-text>
    <mj-text align="center" font-size="32px" font-weight="700" letter-spacing="8px" color="{THEME['primary_dark']}" padding="16px 0">
      {code}
    </mj-text>
    """
    return get_base_template(
        title="Verify Your Email Address",
        preview_text=f"Your verification code is {code}",
        content_sections=content,
    )


def test_email_template(user_name: str) -> str:
    """Email settings test MJML template"""
    content = f"""
    <mj-text>Hi {user_name},</mj-text>
    <mj-text>This is a test email from PlateSync. Your email settings are working.</mj-text>
    """
    return get_base_template(
        title="PlateSync Test Email",
        preview_text="Your email settings are working",
        content_sections=content,
    )
