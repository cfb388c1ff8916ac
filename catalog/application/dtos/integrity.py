"""DTO for the data integrity audit."""

from dataclasses import dataclass, field


@dataclass
class IntegrityReport:
    """Invariant violations found in the store. Each list holds offending record ids."""

    videos_without_site: list[str] = field(default_factory=list)
    videos_with_missing_site: list[str] = field(default_factory=list)
    videos_with_missing_owner: list[str] = field(default_factory=list)
    videos_with_invalid_platform: list[str] = field(default_factory=list)
    videos_with_negative_stats: list[str] = field(default_factory=list)
    videos_without_title: list[str] = field(default_factory=list)
    duplicate_emails: dict[str, int] = field(default_factory=dict)
    active_admin_count: int = 0

    @property
    def violations(self) -> dict[str, int]:
        """Violation counts by check name, omitting checks that passed."""
        counts = {
            "videos_without_site": len(self.videos_without_site),
            "videos_with_missing_site": len(self.videos_with_missing_site),
            "videos_with_missing_owner": len(self.videos_with_missing_owner),
            "videos_with_invalid_platform": len(self.videos_with_invalid_platform),
            "videos_with_negative_stats": len(self.videos_with_negative_stats),
            "videos_without_title": len(self.videos_without_title),
            "duplicate_emails": len(self.duplicate_emails),
            "no_active_admin": 1 if self.active_admin_count == 0 else 0,
        }
        return {name: n for name, n in counts.items() if n}

    @property
    def ok(self) -> bool:
        return not self.violations
