"""Fixed demo payload used to preview templates."""

from __future__ import annotations

from datetime import date

from rgpt.render.model import ProjectInfo, ReleaseContext

__all__ = ["SAMPLE_PROJECT", "sample_context"]

SAMPLE_PROJECT = ProjectInfo(
    name="SkyRoute - AI Drone Logistics",
    jira_key="SR",
    repo="team/skyroute-service",
    branch="main",
)


def sample_context(today: date | None = None) -> ReleaseContext:
    return ReleaseContext(
        title="SkyRoute — Release Notes",
        date=(today or date.today()).isoformat(),
        project=SAMPLE_PROJECT,
        narrative=(
            "This release pushes SkyRoute closer to reliable, real-world operations. Our focus "
            "was making autonomous routing smarter in tough conditions while giving operators "
            "better visibility into live missions.",
            "From wind-aware path planning to faster LIDAR processing, the system is more "
            "resilient and responsive. Operators also get a clearer control surface through an "
            "updated fleet dashboard.",
        ),
        highlights=(
            "Wind-aware routing for safer autonomous flights.",
            "Live fleet monitoring dashboard with richer telemetry.",
            "Lower latency in obstacle detection pipeline.",
        ),
        features=(
            "SR-101: Optimize drone routing for heavy winds",
            "SR-103: Add dashboard for live fleet monitoring",
        ),
        fixes=("SR-102: Fix battery overheating alert issue",),
        improvements=(
            "perf: optimize LIDAR data processing (f51c8d9)",
            "ui: refine telemetry rendering (c81d5a7)",
        ),
        known_issues=(
            "Occasional jitter in drone icon at <2s telemetry intervals.",
            "Brief pause during route recompute under extreme wind spikes.",
        ),
        upgrade_notes=(
            "No schema migrations.",
            "Check new wind-compensation toggle in project settings.",
        ),
        credits=("Alice", "Bob", "Chathumi", "Chanuka", "Supun"),
        changelog=(
            "feat: add wind compensation to route planner (d91a2b3) — Alice on 2025-08-15",
            "fix: prevent false overheating alerts (a73ff21) — Bob on 2025-08-16",
            "ui: new dashboard for fleet live tracking (c81d5a7) — Chathumi on 2025-08-18",
            "perf: optimize LIDAR data processing (f51c8d9) — Chanuka on 2025-08-19",
        ),
    )
