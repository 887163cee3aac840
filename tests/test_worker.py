"""Tests for background itinerary generation."""

from unittest.mock import MagicMock, patch

import database as db
import generation_worker


def test_queue_generation_marks_pending(itinerary):
    generation_worker.queue_generation(itinerary['id'])
    assert db.get_itinerary(itinerary['id'])['generation_status'] == 'pending'
    assert generation_worker.get_queue_size() == 1


def test_process_generation_stores_template_plan(itinerary):
    assert generation_worker.process_generation(itinerary['id']) is True

    stored = db.get_itinerary(itinerary['id'])
    assert stored['generation_status'] == 'ready'
    assert stored['generation_error'] is None
    # balanced pace: 4 activities for each of 3 days
    activities = db.get_activities(itinerary['id'])
    assert len(activities) == 12
    assert {a['day_number'] for a in activities} == {1, 2, 3}
    assert db.get_accommodations(itinerary['id'])[0]['type'] == 'hotel'


def test_process_generation_records_errors(planned_itinerary):
    generator = MagicMock()
    generator.generate.side_effect = RuntimeError('rate limited')

    assert generation_worker.process_generation(planned_itinerary['id'], generator) is False

    stored = db.get_itinerary(planned_itinerary['id'])
    assert stored['generation_status'] == 'error'
    assert stored['generation_error'] == 'rate limited'
    # The existing plan is left untouched
    assert len(db.get_activities(planned_itinerary['id'])) == 3


def test_process_generation_skips_deleted_itinerary():
    assert generation_worker.process_generation(12345) is False


def test_process_generation_geocodes_when_enabled(itinerary, monkeypatch):
    monkeypatch.setenv('GEOCODE_ACTIVITIES', 'true')
    with patch('agents.planner.mapper.Geocoder.geocode_activities') as geocode:
        geocode.return_value = 0
        assert generation_worker.process_generation(itinerary['id']) is True
    assert geocode.call_args.kwargs['region_hint'] == 'Paris'


def test_recover_stale_tasks(itinerary):
    db.set_generation_status(itinerary['id'], 'processing')
    assert generation_worker.recover_stale_tasks() == 1
    assert generation_worker.get_queue_size() == 1
    assert db.get_itinerary(itinerary['id'])['generation_status'] == 'pending'
