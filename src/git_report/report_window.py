from __future__ import annotations

import dataclasses
import datetime as dt

DISPLAY_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclasses.dataclass(frozen=True)
class ReportWindow:
    start: dt.datetime  # inclusive
    end: dt.datetime  # inclusive

    @property
    def start_compact(self) -> str:
        return self.start.strftime("%Y%m%d")

    @property
    def end_compact(self) -> str:
        return self.end.strftime("%Y%m%d")

    @property
    def start_display(self) -> str:
        return self.start.strftime(DISPLAY_FORMAT)

    @property
    def end_display(self) -> str:
        return self.end.strftime(DISPLAY_FORMAT)


def _as_local(ts: dt.datetime) -> dt.datetime:
    if ts.tzinfo is None:
        return ts.astimezone()
    return ts


def floor_to_day_start(ts: dt.datetime) -> dt.datetime:
    return ts.replace(hour=0, minute=0, second=0, microsecond=0)


def ceil_to_day_end(ts: dt.datetime) -> dt.datetime:
    return ts.replace(hour=23, minute=59, second=59, microsecond=999_999)


def window_for(days: int, now: dt.datetime | None = None) -> ReportWindow:
    """
    Reporting window covering the last `days` days up to the end of today:
    start is midnight `days` days before `now`, end is the last microsecond of
    `now`'s day. Naive `now` values are read as local time.
    """
    if days < 0:
        raise ValueError(f"days must be >= 0, got {days}")
    local = now is None or now.tzinfo is None
    cur = _as_local(now) if now is not None else dt.datetime.now().astimezone()
    start = floor_to_day_start(cur - dt.timedelta(days=days))
    if local:
        # astimezone() pins today's UTC offset; resolve the start day's own offset
        start = start.replace(tzinfo=None).astimezone()
    end = ceil_to_day_end(cur)
    return ReportWindow(start=start, end=end)


def is_in_window(ts: dt.datetime, window: ReportWindow) -> bool:
    t = _as_local(ts)
    return window.start <= t <= window.end


def format_timestamp(ts: dt.datetime) -> str:
    return _as_local(ts).astimezone().strftime(DISPLAY_FORMAT)


def report_filename(window: ReportWindow, ext: str, prefix: str = "git-report") -> str:
    return f"{prefix}-{window.start_compact}-to-{window.end_compact}.{ext.lstrip('.')}"
