"""Client-side form checks run before anything reaches the store."""
from __future__ import annotations

import re
from urllib.parse import urlparse

from cms.domain.entities import CAMPAIGNS, TEAM, TESTIMONIALS, VIDEOS, EntityKind

IMAGE_URL_PATTERN = re.compile(r"^(http|https)://[^ \"]+(\.[a-z]{2,}|\d+)([^\s\"]*)?$", re.IGNORECASE)

MIN_TITLE_LENGTH = 2
MIN_QUOTE_LENGTH = 10
MIN_NAME_LENGTH = 2
MIN_PASSWORD_LENGTH = 6


class ValidationFailure(Exception):
    """Raised when submitted values fail a form check. `field` names the offending input."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.message = message
        self.field = field


def is_valid_url(value: str | None) -> bool:
    """Absolute http(s) URL with a host."""
    candidate = (value or "").strip()
    if not candidate or any(ch.isspace() for ch in candidate):
        return False
    try:
        parsed = urlparse(candidate)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def is_valid_image_url(value: str | None) -> bool:
    candidate = (value or "").strip()
    return bool(candidate) and bool(IMAGE_URL_PATTERN.match(candidate))


def _required(values: dict, name: str, label: str, min_length: int = 1) -> str:
    value = (values.get(name) or "").strip()
    if not value:
        raise ValidationFailure(f"{label} é obrigatório.", name)
    if len(value) < min_length:
        raise ValidationFailure(f"{label} deve ter pelo menos {min_length} caracteres.", name)
    return value


def _image_url(values: dict, name: str, label: str) -> str:
    value = _required(values, name, label)
    if not is_valid_image_url(value):
        raise ValidationFailure(
            "Por favor, insira uma URL válida iniciando com http:// ou https://", name
        )
    return value


def validate_campaign(values: dict) -> dict:
    return {"image_url": _image_url(values, "image_url", "URL da imagem")}


def validate_team_member(values: dict) -> dict:
    return {"image_url": _image_url(values, "image_url", "URL da imagem")}


def validate_testimonial(values: dict) -> dict:
    return {
        "quote": _required(values, "quote", "Depoimento", MIN_QUOTE_LENGTH),
        "author": _required(values, "author", "Autor", MIN_NAME_LENGTH),
        "business": _required(values, "business", "Estabelecimento", MIN_NAME_LENGTH),
        "location": _required(values, "location", "Localização", MIN_NAME_LENGTH),
        "logo_url": _image_url(values, "logo_url", "URL do logo"),
    }


def validate_video(values: dict) -> dict:
    title = _required(values, "title", "O título", MIN_TITLE_LENGTH)
    url = (values.get("url") or "").strip()
    if not is_valid_url(url):
        raise ValidationFailure("Por favor insira uma URL válida", "url")
    return {"title": title, "url": url}


_VALIDATORS = {
    CAMPAIGNS.key: validate_campaign,
    TEAM.key: validate_team_member,
    TESTIMONIALS.key: validate_testimonial,
    VIDEOS.key: validate_video,
}


def validate_entity(kind: EntityKind, values: dict) -> dict:
    """Return the cleaned field values for `kind` or raise ValidationFailure."""
    return _VALIDATORS[kind.key](values)


def validate_partner_form_url(value: str | None) -> str:
    """Empty clears the link; anything else must be an absolute URL."""
    candidate = (value or "").strip()
    if candidate and not is_valid_url(candidate):
        raise ValidationFailure("Por favor, insira uma URL válida", "partner_form_url")
    return candidate


def validate_admin_account(email: str | None, password: str | None) -> tuple[str, str]:
    email_value = (email or "").strip().lower()
    password_value = password or ""
    if not email_value or not password_value:
        raise ValidationFailure("Por favor, informe email e senha para o novo administrador.")
    if "@" not in email_value:
        raise ValidationFailure("Por favor, informe um email válido.", "email")
    if len(password_value) < MIN_PASSWORD_LENGTH:
        raise ValidationFailure(
            f"A senha deve ter pelo menos {MIN_PASSWORD_LENGTH} caracteres.", "password"
        )
    return email_value, password_value
