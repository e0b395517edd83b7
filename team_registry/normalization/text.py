"""Pure string transforms shared by the cleanup and expand passes.

Every function here is deterministic and side-effect free. Both passes go
through the same ``slugify``, so a team scraped from a ranking page and the
same team read back from the registry always land on one slug.
"""

import re
import unicodedata
from pathlib import PurePosixPath

LOGO_DIR = "logos"
LOGO_EXTENSION = ".png"

# Words that carry no identity ("Leviatán Esports" and "Leviatán" are one team)
NOISE_WORDS = ("esports", "esport", "gaming", "team", "club", "gc", "valorant")

# Checked before and after noise-word removal; a hit ends the pipeline.
SLUG_OVERRIDES = {
    "kru": "kru",
    "leviatan": "leviatan",
    "g2": "g2-esports",
    "100-thieves": "100-thieves",
    "team-liquid": "team-liquid",
    "fnatic": "fnatic",
    "cloud9": "cloud9",
}

SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"

_RANK_PREFIX_RE = re.compile(r"^\s*\d+\s*\.?\s*")
_NOISE_WORD_RE = re.compile(r"\b(?:" + "|".join(NOISE_WORDS) + r")\b")
_APOSTROPHE_RE = re.compile(r"['’]")
_NON_SLUG_RE = re.compile(r"[^a-z0-9]+")
_HYPHEN_RUN_RE = re.compile(r"-+")
_LOGO_RANK_RE = re.compile(r"^\d+-")

# Override slugs that start with a digit ("100-thieves"): the leading number
# belongs to the name and must survive rank-prefix stripping.
_DIGIT_LED_SLUGS = frozenset(
    slug for slug in SLUG_OVERRIDES.values() if slug[0].isdigit()
)


def latinize(text: str) -> str:
    """Decompose accented characters and drop the combining marks."""
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def _collapse(text: str) -> str:
    text = _NON_SLUG_RE.sub("-", text)
    text = _HYPHEN_RUN_RE.sub("-", text)
    return text.strip("-")


def _base_slug(name: str) -> str:
    text = latinize(name).lower().replace("&", "and")
    text = _APOSTROPHE_RE.sub("", text)
    return _collapse(text)


def strip_rank_prefix(text: str) -> str:
    """Remove a leading ranking number such as ``"12. "`` or ``"7 "``.

    The prefix is removed once; digits left after it belong to the name
    ("3 00 Nation" -> "00 Nation"). Names that genuinely start with a number
    and are in the override table ("100 Thieves") are kept whole.
    """
    stripped = text.strip()
    if not stripped or _base_slug(stripped) in _DIGIT_LED_SLUGS:
        return stripped
    return _RANK_PREFIX_RE.sub("", stripped, count=1).strip()


def slugify(name: str) -> str:
    """Turn a display name into the persisted team identifier.

    latinize -> lowercase -> "&" to "and" -> drop apostrophes -> hyphenate,
    then the noise words are removed. The override table is consulted on the
    hyphenated form and again after noise removal, so ``slugify`` is
    idempotent on its own output ("team-liquid" stays "team-liquid").

    Returns an empty string when nothing identifying is left; callers treat
    that as unresolvable.
    """
    slug = _base_slug(name)
    if slug in SLUG_OVERRIDES:
        return SLUG_OVERRIDES[slug]

    slug = _collapse(_NOISE_WORD_RE.sub("", slug))
    return SLUG_OVERRIDES.get(slug, slug)


def canonical_key(name: str) -> str:
    """Looser key used to spot duplicates within a single scrape."""
    text = latinize(name).lower()
    text = _NOISE_WORD_RE.sub("", text)
    return _NON_SLUG_RE.sub("", text)


def clean_logo_path(path: str) -> str:
    """``logos/1-fnatic.png`` -> ``logos/fnatic.png`` (stem only).

    Digit-led slugs such as ``100-thieves`` are left alone.
    """
    if not path:
        return ""
    logo = PurePosixPath(path)
    stem = logo.stem
    if stem not in _DIGIT_LED_SLUGS:
        stem = _LOGO_RANK_RE.sub("", stem)
    cleaned = logo.with_name(stem + logo.suffix) if stem else logo
    return str(cleaned)


def slug_from_logo(path: str) -> str:
    if not path:
        return ""
    return PurePosixPath(clean_logo_path(path)).stem


def logo_path_for(slug: str) -> str:
    return f"{LOGO_DIR}/{slug}{LOGO_EXTENSION}"
