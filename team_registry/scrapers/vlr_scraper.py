# team_registry/scrapers/vlr_scraper.py

from loguru import logger

from team_registry.models.region import Region
from .base_scraper import BaseScraper, ScraperError


class VlrRankingsScraper(BaseScraper):
    """Fetches regional ranking pages from VLR.gg."""

    source_name: str = "VLR"

    async def fetch_ranking_page(self, region: Region) -> str:
        """Returns the raw HTML of the region's ranking page."""
        logger.debug(f"Fetching {region.code} rankings from {region.url}")
        response = await self._make_request(method="GET", url=region.url)

        html = response.text
        if not html.strip():
            raise ScraperError(f"Empty ranking page for {region.code} at {region.url}")

        logger.info(
            f"Fetched {region.code} ranking page ({len(html)} characters) from {self.source_name}"
        )
        return html
