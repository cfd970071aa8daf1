"""
Region catalog: per-state agronomy reference data loaded from YAML.

The catalog is configuration, not logic. Seasons are month-range rules so that
`season_for` stays a pure function of (profile, month).
"""
from functools import lru_cache
from typing import Dict, List, Optional
import logging

import yaml

from app.api.schemas import RegionProfile
from app.core.config import get_settings

logger = logging.getLogger(__name__)


def season_for(profile: RegionProfile, month: int) -> str:
    """
    Return the season name for a calendar month (1-12).

    Rules are checked in order and the first match wins. A rule with
    start_month > end_month wraps over the new year (e.g. 12 -> 2).
    """
    if not 1 <= month <= 12:
        raise ValueError(f"month must be in 1..12, got {month}")

    for rule in profile.seasons:
        if rule.start_month <= rule.end_month:
            if rule.start_month <= month <= rule.end_month:
                return rule.name
        elif month >= rule.start_month or month <= rule.end_month:
            return rule.name

    return profile.default_season


def location_context(profile: RegionProfile, month: int) -> str:
    """One-line region summary inserted into the diagnosis prompt."""
    return (
        f"STATE: {profile.name} | SOIL: {profile.dominant_soil} | "
        f"SEASON: {season_for(profile, month)} | CLIMATE: {profile.temp_range} | "
        f"Rainfall: {profile.rainfall} | "
        f"DISEASE PRESSURE: {', '.join(profile.common_diseases)} | "
        f"PEST ALERTS: {profile.pest_alert} | SOIL ADVICE: {profile.soil_advice} | "
        f"GOVT SCHEMES: {', '.join(profile.govt_schemes)}"
    )


class RegionCatalog:
    """Immutable keyed lookup of region profiles."""

    def __init__(self, profiles: Dict[str, RegionProfile], default_language: str):
        self._profiles = dict(profiles)
        self.default_language = default_language

    @classmethod
    def load(cls, path: Optional[str] = None, default_language: Optional[str] = None) -> "RegionCatalog":
        settings = get_settings()
        path = path or settings.REGIONS_FILE

        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        profiles = {}
        for name, raw in data.items():
            profiles[name] = RegionProfile(name=name, **(raw or {}))

        logger.info(f"Loaded {len(profiles)} region profiles from {path}")
        return cls(profiles, default_language or settings.DEFAULT_LANGUAGE)

    def names(self) -> List[str]:
        return list(self._profiles)

    def get(self, name: Optional[str]) -> Optional[RegionProfile]:
        if not name:
            return None
        return self._profiles.get(name)

    def default_language_for(self, name: Optional[str]) -> str:
        """Spoken language of a region, or the configured default when unknown."""
        profile = self.get(name)
        if profile and profile.dialect:
            return profile.dialect
        return self.default_language

    def __contains__(self, name: str) -> bool:
        return name in self._profiles

    def __len__(self) -> int:
        return len(self._profiles)


@lru_cache(maxsize=1)
def get_region_catalog() -> RegionCatalog:
    return RegionCatalog.load()
