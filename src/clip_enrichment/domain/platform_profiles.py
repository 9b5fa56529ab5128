from __future__ import annotations

from collections.abc import Iterator, Mapping
from types import MappingProxyType

from .models import AspectRatio, PlatformProfile, QualityTier

QUALITY_CRF: Mapping[QualityTier, int] = MappingProxyType(
    {
        QualityTier.VERY_HIGH: 18,
        QualityTier.HIGH: 23,
        QualityTier.MEDIUM: 28,
        QualityTier.LOW: 32,
    }
)

DEFAULT_PLATFORM_PROFILES: Mapping[str, PlatformProfile] = MappingProxyType(
    {
        # TikTok sweet spot is 15-60s
        "tiktok": PlatformProfile(AspectRatio.VERTICAL, QualityTier.HIGH, 60, "veryfast"),
        "instagram": PlatformProfile(AspectRatio.VERTICAL, QualityTier.HIGH, 90, "fast"),
        "youtube": PlatformProfile(AspectRatio.HORIZONTAL, QualityTier.VERY_HIGH, 90, "medium"),
        "kwai": PlatformProfile(AspectRatio.VERTICAL, QualityTier.MEDIUM, 60, "superfast"),
        "twitter": PlatformProfile(AspectRatio.HORIZONTAL, QualityTier.MEDIUM, 140, "fast"),
        "facebook": PlatformProfile(AspectRatio.HORIZONTAL, QualityTier.HIGH, 240, "fast"),
    }
)


def crf_for_quality(quality: QualityTier | str) -> int:
    try:
        tier = QualityTier(str(quality).lower())
    except ValueError:
        tier = QualityTier.HIGH
    return QUALITY_CRF[tier]


def parse_profile(raw: Mapping[str, object]) -> PlatformProfile:
    """Build a profile from a config table such as ``[platforms.tiktok]``."""
    return PlatformProfile(
        aspect_ratio=AspectRatio(str(raw["aspect_ratio"])),
        quality=QualityTier(str(raw.get("quality", QualityTier.HIGH.value)).lower()),
        max_duration_sec=float(raw["max_duration_sec"]),
        preset=str(raw.get("preset", "fast")),
    )


class PlatformProfileCatalog:
    def __init__(self, profiles: Mapping[str, PlatformProfile] | None = None) -> None:
        source = DEFAULT_PLATFORM_PROFILES if profiles is None else profiles
        self._profiles: Mapping[str, PlatformProfile] = MappingProxyType(
            {name.lower(): profile for name, profile in source.items()}
        )

    def get(self, platform: str) -> PlatformProfile | None:
        return self._profiles.get(platform.lower())

    def __contains__(self, platform: object) -> bool:
        return isinstance(platform, str) and platform.lower() in self._profiles

    def __iter__(self) -> Iterator[str]:
        return iter(self._profiles)

    def __len__(self) -> int:
        return len(self._profiles)

    @property
    def platforms(self) -> list[str]:
        return list(self._profiles)
