from django import template

from calendario import models, sharing

register = template.Library()

MONTH_NAMES = (
    "enero", "febrero", "marzo", "abril", "mayo", "junio",
    "julio", "agosto", "septiembre", "octubre", "noviembre", "diciembre",
)
SHORT_MONTH_NAMES = tuple(name[:3] for name in MONTH_NAMES)
WEEKDAY_NAMES = ("Lun", "Mar", "Mié", "Jue", "Vie", "Sáb", "Dom")

ICON_GLYPHS = {"handshake": "🤝", "trophy": "🏆"}


@register.filter
def match_type_label(value):
    """Human label for a stored match type."""
    return models.match_type_label(value)


@register.filter
def hhmm(value):
    """Format a time (or ``HH:MM:SS`` string) without seconds."""
    if not value:
        return ""
    if hasattr(value, "strftime"):
        return value.strftime("%H:%M")
    parts = str(value).split(":")
    return ":".join(parts[:2])


@register.filter
def month_title(value):
    return f"{MONTH_NAMES[value.month - 1].capitalize()} {value.year}"


@register.filter
def day_month(value):
    return f"{value.day} {SHORT_MONTH_NAMES[value.month - 1]}"


@register.filter
def long_day(value):
    return f"{WEEKDAY_NAMES[value.weekday()]} {value.day} de {MONTH_NAMES[value.month - 1]}"


@register.inclusion_tag("calendario/partials/match_icon.html")
def match_icon(row):
    return {"icon": row.icon, "glyph": ICON_GLYPHS.get(row.icon, "")}


@register.simple_tag
def weekday_names():
    return WEEKDAY_NAMES


@register.simple_tag
def share_url(base_url, match_id=None, day=None):
    """Link back to the calendar focused on one match or one day."""
    return sharing.encode_share_url(base_url, match_id=match_id, day=day)
