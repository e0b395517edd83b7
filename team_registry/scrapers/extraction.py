"""Turns ranking page markup into raw team name candidates.

VLR ranking rows read like ``"1  Gen.G  #Q1CQ  South Korea"``: a rank, the
team name, a ``#tag`` and a country. The name is whatever precedes the tag.
This is a text heuristic and the most fragile part of the pipeline, so it
sits behind the small `CandidateExtractor` interface.
"""

import re
from typing import List, Protocol

from bs4 import BeautifulSoup
from loguru import logger

from .base_scraper import ScraperError

_WHITESPACE_RE = re.compile(r"\s+")
_TAG_RE = re.compile(r" #[A-Za-z0-9]")
_SCORE_RE = re.compile(r"\d+\s?:\s?\d+")
_NAME_BEFORE_TAG_RE = re.compile(r"^(.+?)\s+#")


class ExtractionError(ScraperError):
    """The markup did not contain anything that looks like a ranking."""

    pass


class CandidateExtractor(Protocol):
    def extract(self, markup: str) -> List[str]:
        """Returns raw team names in source ranking order."""
        ...


def _squash(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def is_ranking_line(text: str) -> bool:
    # Has a "#tag" and is not a match score line ("2 : 1")
    line = _squash(text)
    return bool(_TAG_RE.search(line)) and not _SCORE_RE.search(line)


def extract_team_name(line: str) -> str:
    text = _squash(line)
    match = _NAME_BEFORE_TAG_RE.match(text)
    return (match.group(1) if match else text).strip()


class RankingLineExtractor:
    """Finds ranking rows in ranking-classed elements and links.

    When those yield fewer than `min_candidates` rows the whole body text is
    scanned line by line as well. The result may contain repeats and rank
    numbers; de-duplication and truncation are left to the pipeline.
    """

    ELEMENT_SELECTOR = "[class*=rank], [class*=ranking], a"

    def __init__(self, min_candidates: int = 30):
        self.min_candidates = min_candidates

    def extract(self, markup: str) -> List[str]:
        soup = BeautifulSoup(markup, "html.parser")
        candidates: List[str] = []

        for element in soup.select(self.ELEMENT_SELECTOR):
            text = element.get_text()
            if is_ranking_line(text):
                candidates.append(extract_team_name(text))

        if len(candidates) < self.min_candidates and soup.body is not None:
            logger.debug(
                f"Only {len(candidates)} ranking rows in elements, scanning body text"
            )
            for line in soup.body.get_text().split("\n"):
                if is_ranking_line(line):
                    candidates.append(extract_team_name(line))

        candidates = [name for name in candidates if name]
        if not candidates:
            raise ExtractionError("No ranking rows found in page markup")
        return candidates
