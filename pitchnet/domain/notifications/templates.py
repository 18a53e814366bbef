"""Notification message templates.

Templates are kept in a versioned YAML table, keyed by channel, then by
notification type (or alternate template key), then by locale:

    version: 1
    inbox:
      meeting-request:
        en: "has requested a meeting!"
    push:
      meeting-request:
        en: "{actor_name} has requested a meeting!"

The table is validated and frozen when loaded. Rendering falls back to the
default locale and refuses to produce text with unresolved placeholders.
"""
import logging
from pathlib import Path
from string import Formatter
from types import MappingProxyType
from typing import Any, Mapping, Optional

import yaml

from pitchnet.domain.common.errors import TemplateError
from pitchnet.domain.notifications.models import NotificationType

logger = logging.getLogger(__name__)

TEMPLATE_SCHEMA_VERSION = 1

CHANNEL_INBOX = "inbox"
CHANNEL_PUSH = "push"
CHANNELS = (CHANNEL_INBOX, CHANNEL_PUSH)

# Placeholders a template may use; the engine supplies these in the render context.
ALLOWED_FIELDS = frozenset({"actor_name", "actor_first_name", "payload"})

DEFAULT_TEMPLATES_FILE = Path(__file__).resolve().parent.parent.parent / "resources" / "notification_templates.yaml"

_formatter = Formatter()


def _placeholders(template: str) -> set[str]:
    try:
        return {name for _, name, _, _ in _formatter.parse(template) if name is not None}
    except ValueError as e:
        raise TemplateError(f"Malformed template {template!r}: {e}")


def _validate(table: Mapping[str, Mapping[str, Mapping[str, str]]], default_locale: str) -> None:
    known = {t.value for t in NotificationType}
    for channel, entries in table.items():
        for key, locales in entries.items():
            if key not in known:
                raise TemplateError(f"Unknown notification type '{key}' in {channel} templates")
            for locale, template in locales.items():
                unknown = _placeholders(template) - ALLOWED_FIELDS
                if unknown:
                    raise TemplateError(
                        f"Template {channel}:{key}:{locale} uses unknown placeholders: {sorted(unknown)}"
                    )
    inbox = table.get(CHANNEL_INBOX, {})
    missing = [t.value for t in NotificationType if default_locale not in inbox.get(t.value, {})]
    if missing:
        raise TemplateError(f"Missing '{default_locale}' inbox templates for: {', '.join(missing)}")


def _freeze(raw: dict[str, Any]) -> Mapping[str, Mapping[str, Mapping[str, str]]]:
    table = {}
    for channel in CHANNELS:
        entries = raw.get(channel) or {}
        if not isinstance(entries, dict):
            raise TemplateError(f"'{channel}' templates must be a mapping")
        frozen_entries = {}
        for key, locales in entries.items():
            if not isinstance(locales, dict):
                raise TemplateError(f"Templates for '{channel}:{key}' must be keyed by locale")
            frozen_entries[str(key)] = MappingProxyType({str(loc): str(text) for loc, text in locales.items()})
        table[channel] = MappingProxyType(frozen_entries)
    return MappingProxyType(table)


class TemplateResolver:
    """Looks up and renders notification text for a type and locale."""

    def __init__(self, table: Mapping[str, Mapping[str, Mapping[str, str]]], default_locale: str = "en"):
        _validate(table, default_locale)
        self._table = table
        self.default_locale = default_locale

    @classmethod
    def from_mapping(cls, raw: dict[str, Any], default_locale: str = "en") -> "TemplateResolver":
        if not isinstance(raw, dict):
            raise TemplateError("Template table must be a mapping")
        version = raw.get("version")
        if version != TEMPLATE_SCHEMA_VERSION:
            raise TemplateError(
                f"Unsupported template table version {version!r} (expected {TEMPLATE_SCHEMA_VERSION})"
            )
        return cls(_freeze(raw), default_locale=default_locale)

    @classmethod
    def from_file(cls, path: Path, default_locale: str = "en") -> "TemplateResolver":
        try:
            raw = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as e:
            raise TemplateError(f"Could not load notification templates from {path}: {e}")
        resolver = cls.from_mapping(raw, default_locale=default_locale)
        logger.info("Notification templates loaded from %s", path)
        return resolver

    def has_template(self, key: NotificationType, channel: str = CHANNEL_INBOX) -> bool:
        return bool(self._table.get(channel, {}).get(NotificationType(key).value))

    def render(
        self,
        key: NotificationType,
        locale: Optional[str],
        context: Mapping[str, Any],
        channel: str = CHANNEL_INBOX,
    ) -> str:
        """Render the template for key in locale, falling back to the default locale."""
        key_value = NotificationType(key).value
        locales = self._table.get(channel, {}).get(key_value)
        if not locales:
            raise TemplateError(f"No {channel} template for '{key_value}'")
        template = locales.get(locale or self.default_locale) or locales.get(self.default_locale)
        if template is None:
            raise TemplateError(
                f"No {channel} template for '{key_value}' in '{locale}' or '{self.default_locale}'"
            )
        values = {k: v for k, v in context.items() if v is not None}
        try:
            return template.format_map(values).strip()
        except KeyError as e:
            raise TemplateError(f"Template {channel}:{key_value} needs context value {e}")


_RESOLVER: Optional[TemplateResolver] = None


def get_template_resolver() -> TemplateResolver:
    """Load the configured template table once; later calls reuse it."""
    global _RESOLVER
    if _RESOLVER is not None:
        return _RESOLVER
    from pitchnet.settings import settings

    path = Path(settings.notification_templates_file) if settings.notification_templates_file else DEFAULT_TEMPLATES_FILE
    _RESOLVER = TemplateResolver.from_file(path, default_locale=settings.default_locale)
    return _RESOLVER
