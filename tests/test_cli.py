"""Tests for the command-line entry point."""

import json
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

from vancal.cli import main
from vancal.schemas import NormalizedEvent, ScrapeReport, ScrapeResult
from vancal.services.date_parser import VANCOUVER_TZ


def _report(status="success", error=None):
    started = datetime(2024, 1, 12, 14, 0, tzinfo=timezone.utc)
    events = []
    if status == "success":
        events = [NormalizedEvent(
            id="evt-1", venue_id="rio-theatre", title="Rocky Horror",
            date=datetime(2024, 1, 12, 23, 30, tzinfo=VANCOUVER_TZ), hash="h1",
        )]
    return ScrapeReport(
        started_at=started,
        finished_at=started + timedelta(seconds=5),
        results=[ScrapeResult(venue_id="rio-theatre", status=status, error_message=error)],
        events=events,
    )


def test_venues_lists_registry(capsys):
    assert main(["venues"]) == 0
    out = capsys.readouterr().out
    for venue_id in ("rickshaw-theatre", "rio-theatre", "fox-cabaret"):
        assert venue_id in out


def test_scrape_unknown_venue(capsys):
    assert main(["scrape", "--venue", "commodore"]) == 1
    assert "commodore" in capsys.readouterr().err


def test_scrape_prints_summary_and_json(capsys):
    with patch("vancal.services.pipeline.run_pipeline", new_callable=AsyncMock,
               return_value=_report()) as mock_run:
        code = main(["scrape", "--venue", "rio-theatre", "--json"])

    assert code == 0
    assert [v.id for v in mock_run.await_args.args[0]] == ["rio-theatre"]
    out = capsys.readouterr().out
    assert "Total events: 1" in out
    payload = json.loads(out[out.index("[\n"):])
    assert payload[0]["title"] == "Rocky Horror"
    assert payload[0]["date"] == "2024-01-12T23:30:00-08:00"


def test_scrape_exit_code_reflects_errors(capsys):
    with patch("vancal.services.pipeline.run_pipeline", new_callable=AsyncMock,
               return_value=_report("error", "Timeout")):
        code = main(["scrape", "--venue", "rio-theatre"])

    assert code == 1
    out = capsys.readouterr().out
    assert "[FAIL] rio-theatre" in out
    assert "Timeout" in out
