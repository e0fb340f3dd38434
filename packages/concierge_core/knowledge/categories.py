"""Topic categories answerable from a property fact sheet.

Each category names the listing facts it reads, the aliases that route a
detected field or a question to it, and the fixed confidence of a direct
match. The table is data: adding a topic means adding one entry.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from .models import Listing

_NON_ALNUM = re.compile(r"[\W_]+")


def normalize_key(value: str) -> str:
    """Lowercase a field name and strip everything but letters and digits."""
    return _NON_ALNUM.sub("", str(value).lower())


def _camel_case(attr: str) -> str:
    head, *rest = attr.split("_")
    return head + "".join(part.capitalize() for part in rest)


@dataclass(frozen=True)
class Fact:
    """One listing attribute and the label used when stating it."""

    attr: str
    label: str

    @property
    def key(self) -> str:
        """Field name as emitted by the classifier, e.g. ``checkInTime``."""
        return _camel_case(self.attr)

    def render(self, listing: Listing) -> Optional[str]:
        """State the fact as ``label: value``, or None when the listing lacks it."""
        value = getattr(listing, self.attr, None)
        if isinstance(value, list):
            value = ", ".join(value) if value else None
        if value is None or value == "":
            return None
        return f"{self.label}: {value}"


@dataclass(frozen=True)
class TopicCategory:
    """A listing topic with its facts, aliases and confidence."""

    name: str
    facts: Tuple[Fact, ...]
    confidence: float
    aliases: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def field_keys(self) -> Tuple[str, ...]:
        """Classifier field names of the category's facts."""
        return tuple(fact.key for fact in self.facts)

    def vocabulary(self) -> List[str]:
        """Name, fact keys and single-word aliases offered to the field classifier."""
        return [self.name, *self.field_keys, *(alias for alias in self.aliases if " " not in alias)]

    def matches_field(self, detected_field: str) -> bool:
        """Whether a detected field names this category, a fact or an alias."""
        key = normalize_key(detected_field)
        if not key:
            return False
        names = (self.name, *self.field_keys, *self.aliases)
        return any(key == normalize_key(name) for name in names)

    def matches_text(self, text: str) -> bool:
        """Whether any alias occurs in the free text."""
        lowered = text.lower()
        return any(alias.lower() in lowered for alias in self.aliases if alias.strip())

    def answer(self, listing: Listing) -> Optional[str]:
        """State the category's facts, or None when the listing has none."""
        parts = [rendered for rendered in (fact.render(listing) for fact in self.facts) if rendered]
        if not parts:
            return None
        return ". ".join(parts)

    def with_aliases(self, extra: Iterable[str]) -> "TopicCategory":
        """Return a copy with extra aliases appended, duplicates skipped."""
        merged = list(self.aliases)
        for alias in extra:
            if alias and alias not in merged:
                merged.append(alias)
        return TopicCategory(self.name, self.facts, self.confidence, tuple(merged))


DEFAULT_CATEGORIES: Tuple[TopicCategory, ...] = (
    TopicCategory(
        "checkIn",
        (Fact("check_in_time", "Hora de check-in"),),
        0.9,
        ("check-in", "check in", "checkin", "hora de entrada", "hora de llegada", "arrival"),
    ),
    TopicCategory(
        "checkOut",
        (Fact("check_out_time", "Hora de check-out"),),
        0.9,
        ("check-out", "check out", "checkout", "hora de salida", "salida", "departure"),
    ),
    TopicCategory(
        "wifi",
        (Fact("wifi_username", "Red Wi-Fi"), Fact("wifi_password", "Contraseña del Wi-Fi")),
        0.95,
        ("wi-fi", "wifi", "internet", "red inalámbrica", "wireless"),
    ),
    TopicCategory(
        "access",
        (Fact("door_code", "Código de acceso"), Fact("key_pickup", "Recogida de llaves")),
        0.9,
        (
            "acceso",
            "código",
            "codigo",
            "door code",
            "puerta",
            "llave",
            "key",
            "lockbox",
            "cerradura",
        ),
    ),
    TopicCategory(
        "location",
        (Fact("address", "Dirección"),),
        0.9,
        (
            "dirección",
            "direccion",
            "address",
            "ubicación",
            "ubicacion",
            "location",
            "cómo llegar",
            "como llegar",
        ),
    ),
    TopicCategory(
        "rules",
        (Fact("house_rules", "Normas de la casa"),),
        0.85,
        (
            "normas",
            "reglas",
            "rules",
            "fumar",
            "smoking",
            "mascota",
            "pets",
            "fiesta",
            "party",
            "ruido",
            "noise",
        ),
    ),
    TopicCategory(
        "amenities",
        (Fact("amenities", "Servicios disponibles"),),
        0.8,
        (
            "amenities",
            "servicios",
            "comodidades",
            "parking",
            "aparcamiento",
            "estacionamiento",
            "piscina",
            "pool",
            "toallas",
            "towels",
            "lavadora",
            "washer",
            "aire acondicionado",
        ),
    ),
    TopicCategory(
        "contact",
        (
            Fact("contact_name", "Contacto"),
            Fact("contact_phone", "Teléfono"),
            Fact("contact_email", "Email"),
        ),
        0.95,
        (
            "contacto",
            "contact",
            "teléfono",
            "telefono",
            "phone",
            "anfitrión",
            "anfitrion",
            "host",
            "email",
            "correo",
        ),
    ),
)


def build_categories(extra_aliases: Optional[Dict[str, List[str]]] = None) -> Tuple[TopicCategory, ...]:
    """Return the category table with configured aliases merged in.

    Args:
        extra_aliases: Category name to additional aliases

    Returns:
        Categories in match order

    Raises:
        ValueError: If an alias targets an unknown category
    """
    if not extra_aliases:
        return DEFAULT_CATEGORIES

    known = {normalize_key(category.name): category.name for category in DEFAULT_CATEGORIES}
    unknown = [name for name in extra_aliases if normalize_key(name) not in known]
    if unknown:
        raise ValueError(f"Unknown categories in extra aliases: {', '.join(sorted(unknown))}")

    by_name: Dict[str, List[str]] = {}
    for name, aliases in extra_aliases.items():
        by_name.setdefault(known[normalize_key(name)], []).extend(aliases)

    return tuple(
        category.with_aliases(by_name.get(category.name, [])) for category in DEFAULT_CATEGORIES
    )


def candidate_fields(categories: Iterable[TopicCategory]) -> List[str]:
    """Flatten the classifier vocabulary of a category table."""
    fields: List[str] = []
    for category in categories:
        for name in category.vocabulary():
            if name not in fields:
                fields.append(name)
    return fields
