"""Tests for atlas file content and handlers."""

import pytest

import auth
import database as db
from agents.atlas import handler as atlas_handler
from agents.atlas.content import add_day, import_from_itinerary, normalize_content, remove_day

USER = auth.DEFAULT_USER
OTHER = {'id': 'other-user', 'email': 'marco.polo@example.com', 'user_metadata': {}}


def _content(*titles):
    return {'intro': '<p>Hi</p>', 'tips': '',
            'days': [{'dayNumber': 9, 'title': t, 'content': '', 'images': []} for t in titles]}


def test_normalize_content_renumbers_and_defaults():
    content = normalize_content({'days': [{'title': ''}, {'title': 'Beach', 'images': 'bad'}]})
    assert [(d['dayNumber'], d['title']) for d in content['days']] == [(1, 'Day 1'), (2, 'Beach')]
    assert content['days'][1]['images'] == []
    assert normalize_content(None)['days'] == [{'dayNumber': 1, 'title': 'Day 1', 'content': '', 'images': []}]


def test_add_and_remove_day():
    content = add_day(_content('Arrival', 'Old Town'))
    assert [d['title'] for d in content['days']] == ['Arrival', 'Old Town', 'Day 3']

    content = remove_day(content, 1)
    assert [(d['dayNumber'], d['title']) for d in content['days']] == [(1, 'Old Town'), (2, 'Day 3')]

    with pytest.raises(ValueError):
        remove_day(_content('Only'), 1)
    with pytest.raises(ValueError):
        remove_day(_content('A', 'B'), 5)


def test_import_from_itinerary(planned_itinerary):
    draft = import_from_itinerary(db.get_itinerary(planned_itinerary['id']),
                                  db.get_activities(planned_itinerary['id']))

    assert draft['description'] == 'A 3-day trip to Paris'
    assert draft['trip_length'] == 3
    days = draft['content']['days']
    assert [d['title'] for d in days] == ['Day 1', 'Day 2 — Versailles', 'Day 3']
    assert days[0]['content'].startswith('<h3>Louvre</h3><p><strong>Location:</strong> Musee du Louvre</p>')
    assert '<p><strong>Duration:</strong> 3h 0m</p>' in days[0]['content']
    assert days[2]['content'] == ''


def test_import_escapes_html():
    itinerary = {'id': 1, 'title': 'T', 'destination': 'London', 'trip_length': 1}
    draft = import_from_itinerary(itinerary, [
        {'id': 1, 'day_number': 1, 'position': 0, 'title': 'Fish & Chips <b>', 'duration_minutes': 90},
    ])
    assert draft['content']['days'][0]['content'] == (
        '<h3>Fish &amp; Chips &lt;b&gt;</h3><p><strong>Duration:</strong> 1h 30m</p>')


def test_create_requires_title():
    result, status = atlas_handler.create_atlas_file_handler(USER, {'title': '  '})
    assert status == 400
    assert result['error'] == 'Please enter a title'


def test_create_public_file_sets_author_and_published_at():
    result, status = atlas_handler.create_atlas_file_handler(OTHER, {
        'title': 'Rome in 2 days', 'destination': 'Rome', 'is_public': True,
        'content': _content('Arrival', 'Vatican'),
    })
    assert status == 200
    atlas_file = result['atlas_file']
    assert atlas_file['author'] == 'marco.polo'
    assert atlas_file['published_at'] is not None
    assert atlas_file['trip_length'] == 2
    assert atlas_file['is_owner'] is True


def test_drafts_are_private():
    result, _ = atlas_handler.create_atlas_file_handler(OTHER, {'title': 'Secret trip'})
    atlas_id = result['atlas_file']['id']

    assert atlas_handler.get_atlas_file_handler(USER['id'], atlas_id)[1] == 404
    assert atlas_handler.get_atlas_file_handler(OTHER['id'], atlas_id)[1] == 200
    assert atlas_handler.list_atlas_files_handler(USER['id'])[0]['atlas_files'] == []
    mine, _ = atlas_handler.list_atlas_files_handler(OTHER['id'], mine=True)
    assert [f['title'] for f in mine['atlas_files']] == ['Secret trip']


def test_only_author_can_edit():
    result, _ = atlas_handler.create_atlas_file_handler(OTHER, {'title': 'Mine', 'is_public': True})
    atlas_id = result['atlas_file']['id']

    assert atlas_handler.update_atlas_file_handler(USER, atlas_id, {'title': 'Stolen'})[1] == 404
    assert atlas_handler.delete_atlas_file_handler(USER['id'], atlas_id)[1] == 404

    result, status = atlas_handler.update_atlas_file_handler(OTHER, atlas_id, {'title': 'Mine v2', 'is_public': False})
    assert status == 200
    assert result['atlas_file']['title'] == 'Mine v2'
    assert result['atlas_file']['published_at'] is None


def test_day_handlers_update_trip_length():
    result, _ = atlas_handler.create_atlas_file_handler(USER, {'title': 'Trip', 'content': _content('A')})
    atlas_id = result['atlas_file']['id']

    result, status = atlas_handler.add_day_handler(USER['id'], atlas_id)
    assert status == 200
    assert result['atlas_file']['trip_length'] == 2

    result, status = atlas_handler.remove_day_handler(USER['id'], atlas_id, 1)
    assert status == 200
    assert result['atlas_file']['content']['days'][0]['dayNumber'] == 1

    assert atlas_handler.remove_day_handler(USER['id'], atlas_id, 1)[1] == 400


def test_import_handler_checks_access(planned_itinerary):
    assert atlas_handler.import_itinerary_handler('stranger', planned_itinerary['id'])[1] == 404
    assert atlas_handler.import_itinerary_handler(USER['id'], 'abc')[1] == 400
    result, status = atlas_handler.import_itinerary_handler(USER['id'], str(planned_itinerary['id']))
    assert status == 200
    assert result['atlas_file']['destination'] == 'Paris'


def test_import_keeps_activities_past_trip_length():
    itinerary = {'id': 1, 'title': 'Porto', 'destination': 'Porto', 'trip_length': 2}
    draft = import_from_itinerary(itinerary, [
        {'id': 1, 'day_number': 1, 'position': 0, 'title': 'Ribeira'},
        {'id': 2, 'day_number': 4, 'position': 1, 'title': 'Douro cruise', 'city_name': 'Pinhao'},
    ])

    days = draft['content']['days']
    assert [d['title'] for d in days] == ['Day 1', 'Day 2', 'Day 3 — Pinhao']
    assert days[2]['content'] == '<h3>Douro cruise</h3>'
    assert draft['trip_length'] == 3


def test_is_public_accepts_string_flags():
    result, status = atlas_handler.create_atlas_file_handler(USER, {'title': 'Draft', 'is_public': 'false'})
    assert status == 200
    assert result['atlas_file']['published_at'] is None
    assert result['atlas_file']['is_public'] is False

    result, status = atlas_handler.create_atlas_file_handler(USER, {'title': 'Live', 'is_public': 'true'})
    assert result['atlas_file']['is_public'] is True

    result, status = atlas_handler.create_atlas_file_handler(USER, {'title': 'Odd', 'is_public': 'sometimes'})
    assert status == 400
    assert result['error'] == 'Invalid is_public'
