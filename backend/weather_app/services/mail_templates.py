from __future__ import annotations

from dataclasses import dataclass
from html import escape as html_escape


@dataclass(frozen=True)
class RenderedMail:
    subject: str
    html: str
    text: str


def render_confirmation_mail(*, confirm_url: str, unsubscribe_url: str) -> RenderedMail:
    confirm_href = html_escape(confirm_url, quote=True)
    unsubscribe_href = html_escape(unsubscribe_url, quote=True)

    html_body = f"""
    <html>
      <body style="font-family: sans-serif; background-color: #f7f7f7; padding: 20px;">
        <div style="max-width: 600px; margin: auto; background: #ffffff; padding: 30px; border-radius: 8px;">
          <h2 style="color: #333333;">Confirm your subscription</h2>
          <p style="font-size: 16px; color: #555555;">
            Hi there! Please confirm your email address by clicking the button below:
          </p>
          <p style="text-align: center; margin: 30px 0;">
            <a href="{confirm_href}" style="background-color: #007BFF; color: white; padding: 12px 20px; text-decoration: none; border-radius: 5px;">
              Confirm Email
            </a>
          </p>
          <p style="font-size: 14px; color: #888888;">
            If you didn't request this, you can safely ignore this email.
          </p>
          <hr style="margin: 40px 0; border: none; border-top: 1px solid #eeeeee;">
          <p style="font-size: 12px; color: #999999; text-align: center;">
            Not interested?
            <a href="{unsubscribe_href}" style="color: #007BFF; text-decoration: none;">Unsubscribe</a>
          </p>
        </div>
      </body>
    </html>
    """.strip()

    text_body = "\n".join(
        [
            "Confirm your weather subscription by opening the link below:",
            confirm_url,
            "",
            "Not interested? Unsubscribe here:",
            unsubscribe_url,
        ]
    )

    return RenderedMail(subject="Confirm your subscription", html=html_body, text=text_body)


def render_weather_update_mail(
    *,
    city: str,
    temperature: float,
    humidity: int,
    description: str,
    unsubscribe_url: str,
) -> RenderedMail:
    city_html = html_escape(city)
    description_html = html_escape(description)
    unsubscribe_href = html_escape(unsubscribe_url, quote=True)

    html_body = f"""
    <html>
      <body style="font-family: Arial, sans-serif; background-color: #f7f7f7; padding: 20px;">
        <div style="max-width: 600px; margin: auto; background-color: #ffffff; padding: 30px; border-radius: 8px;">
          <h2 style="color: #333333;">Your Weather Update for {city_html}</h2>
          <p style="font-size: 16px; color: #555555;">Here's your latest forecast:</p>
          <ul style="font-size: 16px; color: #444444;">
            <li><strong>Temperature:</strong> {temperature:.1f}°C</li>
            <li><strong>Humidity:</strong> {humidity}%</li>
            <li><strong>Condition:</strong> {description_html}</li>
          </ul>
          <p style="margin-top: 30px; font-size: 14px; color: #888888;">
            Stay safe and dress appropriately for today's weather!
          </p>
          <hr style="margin: 40px 0; border: none; border-top: 1px solid #eeeeee;">
          <p style="font-size: 12px; color: #999999; text-align: center;">
            Don't want to receive updates?
            <a href="{unsubscribe_href}" style="color: #007BFF; text-decoration: none;">Unsubscribe here</a>.
          </p>
        </div>
      </body>
    </html>
    """.strip()

    text_body = "\n".join(
        [
            f"Weather update for {city}",
            "",
            f"Temperature: {temperature:.1f}°C",
            f"Humidity: {humidity}%",
            f"Condition: {description}",
            "",
            f"Unsubscribe: {unsubscribe_url}",
        ]
    )

    return RenderedMail(subject=f"Weather update for {city}", html=html_body, text=text_body)
