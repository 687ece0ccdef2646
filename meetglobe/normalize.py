import re
from typing import Optional, Tuple


def _capitalize_word(word: str) -> str:
    # Some characters title-case to several ("ŉ" -> "ʼN"), so repeat until stable
    result = word.capitalize()
    while result != word:
        word, result = result, result.capitalize()
    return result


def normalize_input(text: Optional[str]) -> str:
    if not text:
        return ""
    return " ".join(_capitalize_word(word) for word in text.split())


def normalize_member(name: Optional[str], city: Optional[str]) -> Tuple[str, str]:
    return normalize_input(name), normalize_input(city)


def city_lookup_key(city: Optional[str]) -> str:
    # Internal spacing is significant: "newyork" and "new york" are different keys
    if not city:
        return ""
    return city.strip().lower()


def identity_key(name: str, city: str) -> Tuple[str, str]:
    n, c = normalize_member(name, city)
    return n.lower(), c.lower()


def slugify(title: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-")
