"""Notification body rendering."""

from liquid import Environment

from movecar.core.modules.notification.models import NotificationContent

TEXT_TEMPLATE = """\
💬 Message: {{ message }}
{% if has_location %}📍 Location attached, open the link to view{% else %}⚠️ No location provided{% endif %}"""

TEXT_WITH_LINK_TEMPLATE = """\
{{ body }}

👉 Handle the move request: {{ confirm_url }}"""

HTML_TEMPLATE = """\
💬 Message: {{ message | escape }}<br>\
{% if has_location %}📍 Location attached, open the link to view{% else %}⚠️ No location provided{% endif %}\
<br><br><a href="{{ confirm_url | escape }}">👉 Handle the move request</a>"""

HTML_PAGE_TEMPLATE = """\
<!DOCTYPE html>
<html>
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<style>
  body { font-family: -apple-system, sans-serif; padding: 16px; margin: 0; line-height: 1.5; color: #333; }
  a { color: #007bff; text-decoration: none; display: inline-block; margin-top: 10px; font-weight: bold; }
</style>
</head>
<body>
  {{ fragment }}
</body>
</html>"""

_env = Environment()
_text = _env.from_string(TEXT_TEMPLATE)
_text_with_link = _env.from_string(TEXT_WITH_LINK_TEMPLATE)
_html = _env.from_string(HTML_TEMPLATE)
_html_page = _env.from_string(HTML_PAGE_TEMPLATE)


def render_text(content: NotificationContent) -> str:
    """Plain-text body without the link, for channels that carry the URL separately."""
    return _text.render(message=content.message, has_location=content.has_location)


def render_text_with_link(content: NotificationContent) -> str:
    return _text_with_link.render(body=render_text(content), confirm_url=content.confirm_url)


def render_html(content: NotificationContent) -> str:
    return _html.render(message=content.message, has_location=content.has_location, confirm_url=content.confirm_url)


def render_html_page(content: NotificationContent) -> str:
    """Standalone HTML document for clients that display a full page."""
    return _html_page.render(fragment=render_html(content))
