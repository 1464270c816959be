"""
Click target resolution for delegated click tracking.

Elements are a minimal DOM-like view: tag, attributes, visible text and a
parent link, enough to answer "is this clickable" and "what do we call it".
"""
import random
import string
from dataclasses import dataclass, field
from typing import Dict, Optional

CLICKABLE_TAGS = ("button", "a")
ELEMENT_ID_TEXT_LENGTH = 50
ELEMENT_TEXT_LENGTH = 100

_TOKEN_ALPHABET = string.ascii_lowercase + string.digits


@dataclass
class Element:
    tag: str
    attributes: Dict[str, str] = field(default_factory=dict)
    text: str = ""
    parent: Optional["Element"] = None

    def get(self, name: str) -> Optional[str]:
        return self.attributes.get(name)

    def has(self, name: str) -> bool:
        return name in self.attributes


def is_trackable(element: Element) -> bool:
    """Buttons, links, role="button" and explicit data-track-click opt-ins."""
    return (
        element.tag.lower() in CLICKABLE_TAGS
        or element.get("role") == "button"
        or element.has("data-track-click")
    )


def closest_trackable(element: Optional[Element]) -> Optional[Element]:
    """Nearest trackable element walking up from the click target, inclusive."""
    while element is not None:
        if is_trackable(element):
            return element
        element = element.parent
    return None


def element_type(element: Element) -> str:
    tag = element.tag.lower()
    return element.get("role") or tag


def element_text(element: Element) -> str:
    return (element.text or "").strip()[:ELEMENT_TEXT_LENGTH]


def _random_token(length: int = 9) -> str:
    return "".join(random.choice(_TOKEN_ALPHABET) for _ in range(length))


def resolve_element_id(element: Element) -> str:
    """
    Best-effort human-readable identifier, first non-empty of:
    data-track-name, id, data-track-id, aria-label, trimmed text, class,
    then a random "<tag>-<token>".

    The random fallback makes identical unlabeled elements count as
    different elements in reports.
    """
    candidates = (
        element.get("data-track-name"),
        element.get("id"),
        element.get("data-track-id"),
        element.get("aria-label"),
        (element.text or "").strip()[:ELEMENT_ID_TEXT_LENGTH],
        element.get("class"),
    )
    for candidate in candidates:
        if candidate:
            return candidate
    return f"{element.tag.lower()}-{_random_token()}"
