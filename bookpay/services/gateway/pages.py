"""HTML pages shown at the end of hosted onboarding."""

import html


_PAGE = """<!DOCTYPE html>
<html>
  <head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <title>{title}</title>
  </head>
  <body style="font-family: sans-serif; text-align: center; padding: 48px 16px;">
    <h1>{title}</h1>
    <p>{body}</p>
  </body>
</html>
"""


def render_onboarding_success(company_id: str | None) -> str:
    body = "Your payout account is connected. You can close this window and return to the app."
    if company_id:
        body += f"<br><small>Company reference: {html.escape(company_id)}</small>"
    return _PAGE.format(title="Onboarding complete", body=body)


def render_onboarding_refresh() -> str:
    return _PAGE.format(
        title="Onboarding link expired",
        body="This onboarding session has expired. Return to the app and start onboarding again.",
    )
