# tests/test_calendar.py

from datetime import datetime, timezone

import pytest

from g2history.calendar import build_ics, calendar_filename, parse_match_date
from g2history.errors import InvalidDate

MATCH = {
    'id': 'g2-esports-fnatic-2025-06-21t16-00-00z-bo3',
    'team1': 'G2 Esports',
    'team2': 'Fnatic',
    'bo': 'BO3',
    'date': '2025-06-21T16:00:00Z',
    'tournament_name': 'LEC Summer, Week 3',
    'tournament_url': 'https://liquipedia.net/leagueoflegends/LEC/2025/Summer',
    'streams_twitch': 'https://www.twitch.tv/lec',
    'streams_youtube': None,
}


class TestParseMatchDate:
    def test_iso_with_z(self):
        assert parse_match_date('2025-06-21T16:00:00Z') == datetime(2025, 6, 21, 16, 0, tzinfo=timezone.utc)

    def test_iso_with_offset(self):
        assert parse_match_date('2025-06-21T18:00:00+02:00') == datetime(2025, 6, 21, 16, 0, tzinfo=timezone.utc)

    def test_naive_iso_is_utc(self):
        assert parse_match_date('2025-06-21 16:00:00') == datetime(2025, 6, 21, 16, 0, tzinfo=timezone.utc)

    def test_liquipedia_text_with_zone(self):
        assert parse_match_date('June 15, 2025 - 17:00 CEST') == datetime(2025, 6, 15, 15, 0, tzinfo=timezone.utc)

    @pytest.mark.parametrize('raw', ['', None, 'TBD', 'next week', '2025-13-40T99:00:00Z'])
    def test_unparseable(self, raw):
        with pytest.raises(InvalidDate):
            parse_match_date(raw)


class TestBuildIcs:
    def test_one_hour_event(self):
        body = build_ics(MATCH, now=datetime(2025, 6, 1, tzinfo=timezone.utc))
        lines = body.split('\r\n')

        assert lines[0] == 'BEGIN:VCALENDAR'
        assert 'DTSTART:20250621T160000Z' in lines
        assert 'DTEND:20250621T170000Z' in lines
        assert 'DTSTAMP:20250601T000000Z' in lines
        assert f"UID:{MATCH['id']}@g2historyapi" in lines
        assert 'SUMMARY:G2 Esports vs Fnatic (BO3)' in lines
        assert body.endswith('END:VEVENT\r\nEND:VCALENDAR\r\n')

    def test_text_is_escaped(self):
        body = build_ics(MATCH)
        assert 'LOCATION:LEC Summer\\, Week 3' in body
        assert 'Torneo: LEC Summer\\, Week 3\\nTwitch: https://www.twitch.tv/lec' in body.replace('\r\n ', '')

    def test_long_lines_are_folded(self):
        body = build_ics({**MATCH, 'tournament_name': 'L' * 200})
        for line in body.split('\r\n'):
            assert len(line.encode('utf-8')) <= 75

    def test_invalid_date_raises_before_any_output(self):
        with pytest.raises(InvalidDate):
            build_ics({**MATCH, 'date': 'por confirmar'})

    def test_minimal_match(self):
        body = build_ics({'id': 'x', 'team1': 'G2', 'team2': 'BDS', 'date': '2025-06-21T16:00:00Z'})
        assert 'SUMMARY:G2 vs BDS' in body
        assert 'DESCRIPTION' not in body
        assert 'URL:' not in body


def test_calendar_filename():
    assert calendar_filename(MATCH) == f"{MATCH['id']}.ics"
    assert calendar_filename({'id': 'a/b c'}) == 'a-b-c.ics'
