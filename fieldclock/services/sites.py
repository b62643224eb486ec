from __future__ import annotations

from fieldclock.errors import ApiError
from fieldclock.settings import SiteConfig, get_settings
from fieldclock.services.hours_calc import DailyBlockPolicy, Policy, WeeklyCapPolicy


def normalize_site(site: str) -> str:
    return site.strip().upper()


def find_site_config(site: str) -> SiteConfig | None:
    return get_settings().sites.get(normalize_site(site))


def get_site_config(site: str) -> SiteConfig:
    config = find_site_config(site)
    if config is None:
        raise ApiError(status_code=404, code="SITE_NOT_FOUND", message=f"Site not found: {site}")
    return config


def build_policy(site_config: SiteConfig) -> Policy:
    if site_config.policy == "DAILY_BLOCK":
        return DailyBlockPolicy(
            utc_offset_hours=site_config.utc_offset_hours,
            morning_start=site_config.morning_start,
            morning_end=site_config.morning_end,
            afternoon_start=site_config.afternoon_start,
            afternoon_end=site_config.afternoon_end,
            evening_cutoff=site_config.evening_cutoff,
            holidays=frozenset(site_config.holidays),
        )
    return WeeklyCapPolicy(
        utc_offset_hours=site_config.utc_offset_hours,
        weekly_cap_hours=site_config.weekly_cap_hours,
        night_window_start=site_config.night_window_start,
        night_window_end=site_config.night_window_end,
    )
