"""
Traffic Analytics Engine

Session and pageview analytics for the traffic dashboard:
- Unique users, device and new/returning breakdowns
- Bounce rate and pages per session
- Source and campaign attribution
- Daily traffic timeline
- Landing pages
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List

import polars as pl
import structlog

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SourceTraffic:
    source: str
    sessions: int
    users: int

    def to_dict(self) -> Dict[str, Any]:
        return {"source": self.source, "sessions": self.sessions, "users": self.users}


@dataclass(frozen=True)
class CampaignTraffic:
    campaign: str
    sessions: int

    def to_dict(self) -> Dict[str, Any]:
        return {"campaign": self.campaign, "sessions": self.sessions}


@dataclass(frozen=True)
class DailyTraffic:
    """Sessions started on one calendar date"""
    date: date
    sessions: int
    desktop: int
    mobile: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "sessions": self.sessions,
            "desktop": self.desktop,
            "mobile": self.mobile,
        }


@dataclass(frozen=True)
class LandingPage:
    """Sessions that entered the site on one URL; share is a percentage of all sessions"""
    url: str
    sessions: int
    share: float

    def to_dict(self) -> Dict[str, Any]:
        return {"url": self.url, "sessions": self.sessions, "share": self.share}


@dataclass
class TrafficMetrics:
    """Traffic KPIs and breakdowns"""
    total_sessions: int = 0
    unique_users: int = 0
    total_pageviews: int = 0
    bounced_sessions: int = 0
    bounce_rate: float = 0.0
    avg_pages_per_session: float = 0.0
    device_counts: Dict[str, int] = field(default_factory=dict)
    new_sessions: int = 0
    returning_sessions: int = 0
    returning_rate: float = 0.0
    source_data: List[SourceTraffic] = field(default_factory=list)
    campaign_data: List[CampaignTraffic] = field(default_factory=list)
    timeline_data: List[DailyTraffic] = field(default_factory=list)
    top_landing_pages: List[LandingPage] = field(default_factory=list)

    @classmethod
    def empty(cls) -> "TrafficMetrics":
        return cls()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalSessions": self.total_sessions,
            "uniqueUsers": self.unique_users,
            "totalPageviews": self.total_pageviews,
            "bouncedSessions": self.bounced_sessions,
            "bounceRate": self.bounce_rate,
            "avgPagesPerSession": self.avg_pages_per_session,
            "deviceCounts": dict(self.device_counts),
            "newSessions": self.new_sessions,
            "returningSessions": self.returning_sessions,
            "returningRate": self.returning_rate,
            "sourceData": [item.to_dict() for item in self.source_data],
            "campaignData": [item.to_dict() for item in self.campaign_data],
            "timelineData": [item.to_dict() for item in self.timeline_data],
            "topLandingPages": [item.to_dict() for item in self.top_landing_pages],
        }


def _percentage(part: int, whole: int) -> float:
    return part / whole * 100 if whole > 0 else 0.0


def count_unique_users(sessions: pl.DataFrame) -> int:
    return sessions["user_id"].drop_nulls().n_unique()


def count_devices(sessions: pl.DataFrame) -> Dict[str, int]:
    """Sessions per lower-cased device type"""
    counts = sessions.group_by("device_type").agg(pl.len().alias("sessions")).sort("device_type")
    return {row["device_type"]: int(row["sessions"]) for row in counts.iter_rows(named=True)}


def count_bounced_sessions(sessions: pl.DataFrame, pageviews: pl.DataFrame) -> int:
    """Sessions with exactly one pageview"""
    single_page = (
        pageviews
        .group_by("session_id")
        .agg(pl.len().alias("pageviews"))
        .filter(pl.col("pageviews") == 1)
    )
    return single_page.join(
        sessions.select("session_id").unique(), on="session_id", how="semi"
    ).height


def group_by_source(sessions: pl.DataFrame) -> List[SourceTraffic]:
    grouped = (
        sessions
        .group_by("utm_source")
        .agg(
            pl.len().alias("sessions"),
            pl.col("user_id").drop_nulls().n_unique().alias("users"),
        )
        .sort(["sessions", "utm_source"], descending=[True, False])
    )
    return [
        SourceTraffic(source=row["utm_source"], sessions=int(row["sessions"]), users=int(row["users"]))
        for row in grouped.iter_rows(named=True)
    ]


def group_by_campaign(sessions: pl.DataFrame) -> List[CampaignTraffic]:
    grouped = (
        sessions
        .group_by("utm_campaign")
        .agg(pl.len().alias("sessions"))
        .sort(["sessions", "utm_campaign"], descending=[True, False])
    )
    return [
        CampaignTraffic(campaign=row["utm_campaign"], sessions=int(row["sessions"]))
        for row in grouped.iter_rows(named=True)
    ]


def build_timeline(sessions: pl.DataFrame) -> List[DailyTraffic]:
    """Sessions per calendar date with desktop/mobile split, ascending by date"""
    grouped = (
        sessions
        .group_by(pl.col("created_at").dt.date().alias("date"))
        .agg(
            pl.len().alias("sessions"),
            (pl.col("device_type") == "desktop").sum().alias("desktop"),
            (pl.col("device_type") == "mobile").sum().alias("mobile"),
        )
        .sort("date")
    )
    return [
        DailyTraffic(
            date=row["date"],
            sessions=int(row["sessions"]),
            desktop=int(row["desktop"]),
            mobile=int(row["mobile"]),
        )
        for row in grouped.iter_rows(named=True)
    ]


def find_landing_pages(pageviews: pl.DataFrame, total_sessions: int) -> List[LandingPage]:
    """
    Count sessions per landing page, most common first.

    Pageviews are ordered by created_at within each session before the
    first one is taken, so input order does not matter. Ties on timestamp
    and missing timestamps keep input order (missing ones sort last).
    """
    first_pageviews = (
        pageviews
        .with_row_index("_position")
        .sort(["created_at", "_position"], nulls_last=True)
        .unique(subset="session_id", keep="first", maintain_order=True)
    )

    grouped = (
        first_pageviews
        .group_by("pageview_url")
        .agg(pl.len().alias("sessions"))
        .sort(["sessions", "pageview_url"], descending=[True, False])
    )
    return [
        LandingPage(
            url=row["pageview_url"],
            sessions=int(row["sessions"]),
            share=_percentage(int(row["sessions"]), total_sessions),
        )
        for row in grouped.iter_rows(named=True)
    ]


def compute_traffic_metrics(sessions: pl.DataFrame, pageviews: pl.DataFrame) -> TrafficMetrics:
    """
    Compute all traffic KPIs from cleaned sessions and pageviews.

    Args:
        sessions: Cleaned sessions
        pageviews: Cleaned pageviews

    Returns:
        TrafficMetrics
    """
    total_sessions = sessions.height
    total_pageviews = pageviews.height
    bounced_sessions = count_bounced_sessions(sessions, pageviews)
    new_sessions = sessions.filter(pl.col("is_repeat_session") == "0").height
    returning_sessions = sessions.filter(pl.col("is_repeat_session") == "1").height

    metrics = TrafficMetrics(
        total_sessions=total_sessions,
        unique_users=count_unique_users(sessions),
        total_pageviews=total_pageviews,
        bounced_sessions=bounced_sessions,
        bounce_rate=_percentage(bounced_sessions, total_sessions),
        avg_pages_per_session=total_pageviews / total_sessions if total_sessions > 0 else 0.0,
        device_counts=count_devices(sessions),
        new_sessions=new_sessions,
        returning_sessions=returning_sessions,
        returning_rate=_percentage(returning_sessions, total_sessions),
        source_data=group_by_source(sessions),
        campaign_data=group_by_campaign(sessions),
        timeline_data=build_timeline(sessions),
        top_landing_pages=find_landing_pages(pageviews, total_sessions),
    )

    logger.debug(
        "Traffic metrics computed",
        sessions=total_sessions,
        pageviews=total_pageviews,
        bounce_rate=round(metrics.bounce_rate, 2),
    )
    return metrics
