"""
Helpline Registry

Country-keyed table of crisis-support contacts for children and
young people, with a mandatory DEFAULT fallback entry.

LEGAL_REVIEW_REQUIRED: Helpline information must be verified for
accuracy in each jurisdiction before deployment.
"""

import json
import os
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional

from safechat.config.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_CODE = "DEFAULT"

# Non-ISO codes teachers commonly enter in their profile
COUNTRY_ALIASES: Mapping[str, str] = MappingProxyType({
    "UK": "GB",
    "UAE": "AE",
    "USA": "US",
})


class HelplineConfigError(ValueError):
    """Helpline table is structurally invalid (e.g. no DEFAULT entry)."""


@dataclass(frozen=True)
class HelplineEntry:
    """
    A single crisis-support contact.

    Attributes:
        name: Service name (e.g. "Childline")
        short_description: One-line description shown to students
        phone: Phone number, if any
        website: Website, if any
        text_to: SMS short code, if the service is text-based
        text_message: Keyword to send to text_to
    """

    name: str
    short_description: str = ""
    phone: Optional[str] = None
    website: Optional[str] = None
    text_to: Optional[str] = None
    text_message: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "HelplineEntry":
        """Build from a JSON record (accepts legacy snake/short keys)."""
        return cls(
            name=data["name"],
            short_description=data.get("short_description") or data.get("short_desc", ""),
            phone=data.get("phone"),
            website=data.get("website"),
            text_to=data.get("text_to"),
            text_message=data.get("text_message") or data.get("text_msg"),
        )

    def format_line(self) -> str:
        """
        Format as one bullet line.

        Contact priority: phone, then text, then website.
        """
        line = f"* {self.name}"
        if self.phone:
            line += f" - Phone: {self.phone}"
        elif self.text_to and self.text_message:
            line += f" - Text: {self.text_message} to {self.text_to}"
        elif self.website:
            line += f" - Website: {self.website}"
        if self.short_description:
            line += f" ({self.short_description})"
        return line


HelplineTable = Mapping[str, tuple[HelplineEntry, ...]]


BUILT_IN_HELPLINES: HelplineTable = MappingProxyType({
    "US": (
        HelplineEntry(
            name="Childhelp USA",
            phone="1-800-422-4453",
            website="childhelp.org",
            short_description="Child abuse prevention & treatment",
        ),
        HelplineEntry(
            name="988 Suicide & Crisis Lifeline",
            phone="988",
            website="988lifeline.org",
            short_description="24/7 crisis support",
        ),
        HelplineEntry(
            name="Crisis Text Line",
            text_to="741741",
            text_message="HOME",
            short_description="24/7 text support",
        ),
    ),
    "GB": (
        HelplineEntry(
            name="Childline",
            phone="0800 1111",
            website="childline.org.uk",
            short_description="Support for children & young people",
        ),
        HelplineEntry(
            name="Samaritans",
            phone="116 123",
            website="samaritans.org",
            short_description="24/7 emotional support",
        ),
        HelplineEntry(
            name="Shout",
            text_to="85258",
            text_message="SHOUT",
            short_description="24/7 text support",
        ),
    ),
    "IE": (
        HelplineEntry(
            name="Childline Ireland",
            phone="1800 66 66 66",
            website="childline.ie",
            short_description="24/7 support for under 18s",
        ),
        HelplineEntry(
            name="Samaritans Ireland",
            phone="116 123",
            short_description="24/7 emotional support",
        ),
    ),
    "CA": (
        HelplineEntry(
            name="Kids Help Phone",
            phone="1-800-668-6868",
            website="kidshelpphone.ca",
            short_description="24/7 support for young people",
        ),
        HelplineEntry(
            name="Kids Help Phone Text",
            text_to="686868",
            text_message="CONNECT",
            short_description="24/7 text support",
        ),
    ),
    "AU": (
        HelplineEntry(
            name="Kids Helpline",
            phone="1800 55 1800",
            website="kidshelpline.com.au",
            short_description="Support for ages 5 to 25",
        ),
        HelplineEntry(
            name="Lifeline Australia",
            phone="13 11 14",
            website="lifeline.org.au",
            short_description="24/7 crisis support",
        ),
    ),
    "NZ": (
        HelplineEntry(
            name="Youthline",
            phone="0800 376 633",
            website="youthline.co.nz",
            short_description="Support for young people",
        ),
        HelplineEntry(
            name="Need to Talk? 1737",
            phone="1737",
            short_description="Free call or text, 24/7",
        ),
    ),
    "FR": (
        HelplineEntry(
            name="Fil Santé Jeunes",
            phone="0 800 235 236",
            website="filsantejeunes.com",
            short_description="Support for young people",
        ),
        HelplineEntry(
            name="3114",
            phone="3114",
            short_description="National suicide prevention line",
        ),
    ),
    DEFAULT_CODE: (
        HelplineEntry(
            name="Emergency Services",
            short_description="Contact local emergency services if in immediate danger.",
        ),
        HelplineEntry(
            name="Talk to a Trusted Adult",
            short_description="Speak to a teacher, school counselor, parent, or another family member.",
        ),
    ),
})


def normalize_country_code(country_code: Optional[str]) -> str:
    """
    Normalize a profile country code.

    Blank or missing values map to DEFAULT; common aliases map to
    their ISO 3166-1 alpha-2 code.
    """
    if not country_code or not isinstance(country_code, str) or not country_code.strip():
        return DEFAULT_CODE
    code = country_code.strip().upper()
    return COUNTRY_ALIASES.get(code, code)


class HelplineRegistry:
    """
    Country-aware helpline resolver.

    The table is immutable configuration, injected by reference so
    tests can substitute their own. A JSON file can extend or
    override built-in countries.

    Usage:
        registry = HelplineRegistry()
        code, entries = registry.resolve("uk")   # ("GB", (...Childline...))
        block = registry.format_block(entries)
    """

    def __init__(
        self,
        table: Optional[HelplineTable] = None,
        config_path: Optional[str] = None,
    ) -> None:
        """
        Initialize registry.

        Args:
            table: Helpline table (defaults to BUILT_IN_HELPLINES)
            config_path: Optional JSON file merged over the table

        Raises:
            HelplineConfigError: If the final table has no DEFAULT entries
        """
        merged = dict(table if table is not None else BUILT_IN_HELPLINES)

        if config_path and os.path.exists(config_path):
            merged.update(self._load_config(config_path))

        if not merged.get(DEFAULT_CODE):
            raise HelplineConfigError("Helpline table must contain a non-empty DEFAULT entry")

        self._table: HelplineTable = MappingProxyType(merged)

    @staticmethod
    def _load_config(config_path: str) -> dict[str, tuple[HelplineEntry, ...]]:
        """
        Load helplines from a JSON file of {code: [entry, ...]}.

        A malformed file is logged and ignored; the built-in table
        still applies.
        """
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = json.load(f)

            loaded = {
                normalize_country_code(code): tuple(HelplineEntry.from_dict(e) for e in entries)
                for code, entries in data.items()
                if isinstance(entries, list) and entries
            }
            logger.info(
                "Loaded helplines config",
                path=config_path,
                country_count=len(loaded),
            )
            return loaded
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.error("Failed to load helplines config", path=config_path, error=str(e))
            return {}

    @property
    def table(self) -> HelplineTable:
        return self._table

    def resolve(
        self,
        country_code: Optional[str],
        limit: Optional[int] = None,
    ) -> tuple[str, tuple[HelplineEntry, ...]]:
        """
        Resolve helplines for a country.

        Args:
            country_code: Raw country code (any case, aliases allowed, may be None)
            limit: Maximum entries to return

        Returns:
            (effective table key, entries) - the key is DEFAULT when
            the country has no entries
        """
        code = normalize_country_code(country_code)
        entries = self._table.get(code)

        if not entries:
            if code != DEFAULT_CODE:
                logger.info("No helplines for country, using DEFAULT", country_code=code)
            code = DEFAULT_CODE
            entries = self._table[DEFAULT_CODE]

        if limit is not None:
            entries = entries[:limit]
        return code, entries

    @staticmethod
    def format_block(entries: tuple[HelplineEntry, ...]) -> str:
        """Format entries as newline-separated bullet lines."""
        return "\n".join(entry.format_line() for entry in entries)

    def list_supported_countries(self) -> list[str]:
        """List all configured codes except DEFAULT."""
        return sorted(code for code in self._table if code != DEFAULT_CODE)
