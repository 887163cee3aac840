"""Tests for the SQLite side of the database layer."""

import database as db


def test_create_and_get_itinerary_round_trips_types(itinerary):
    stored = db.get_itinerary(itinerary['id'])
    assert stored['traveler_profiles'] == ['cultural-explorer']
    assert stored['is_published'] is False
    assert stored['generation_status'] == 'idle'
    assert stored['user_id'] == 'local-user'


def test_user_itineraries_are_scoped_to_owner(itinerary):
    db.create_itinerary('someone-else', {'title': 'Oslo', 'destination': 'Oslo', 'trip_length': 2})
    titles = [i['title'] for i in db.get_user_itineraries('local-user')]
    assert titles == ['Paris - 3 days']


def test_update_itinerary_ignores_unknown_fields(itinerary):
    assert db.update_itinerary(itinerary['id'], {'title': 'Paris in spring', 'user_id': 'hijack'})
    stored = db.get_itinerary(itinerary['id'])
    assert stored['title'] == 'Paris in spring'
    assert stored['user_id'] == 'local-user'
    assert db.update_itinerary(itinerary['id'], {'nonsense': 1}) is False


def test_activities_are_ordered_by_day_and_position(planned_itinerary):
    titles = [a['title'] for a in db.get_activities(planned_itinerary['id'])]
    assert titles == ['Louvre', 'Cafe de Flore', 'Versailles']


def test_replace_itinerary_plan_replaces_everything(planned_itinerary):
    rows = db.replace_itinerary_plan(
        planned_itinerary['id'],
        [{'title': 'Eiffel Tower', 'day_number': 1, 'position': 0, 'category': 'culture'}],
        [{'name': 'Hotel Lutetia', 'type': 'hotel', 'price_per_night': 400}],
    )
    assert [r['title'] for r in rows] == ['Eiffel Tower']
    assert [a['name'] for a in db.get_accommodations(planned_itinerary['id'])] == ['Hotel Lutetia']


def test_update_activity_positions(planned_itinerary):
    louvre, cafe, versailles = db.get_activities(planned_itinerary['id'])
    assert db.update_activity_positions([
        {'id': louvre['id'], 'day_number': 2, 'position': 3},
    ])
    titles = [a['title'] for a in db.get_activities(planned_itinerary['id'])]
    assert titles == ['Cafe de Flore', 'Versailles', 'Louvre']


def test_duplicate_itinerary_copies_activities(planned_itinerary):
    db.update_itinerary(planned_itinerary['id'], {'is_published': True})
    copy = db.duplicate_itinerary(planned_itinerary['id'], 'friend')

    assert copy['title'] == 'Paris - 3 days (Copy)'
    assert copy['user_id'] == 'friend'
    assert copy['is_published'] is False
    assert len(db.get_activities(copy['id'])) == 3
    assert len(db.get_activities(planned_itinerary['id'])) == 3


def test_delete_itinerary_cascades_to_activities(planned_itinerary):
    activity_id = db.get_activities(planned_itinerary['id'])[0]['id']
    assert db.delete_itinerary(planned_itinerary['id'])
    assert db.get_itinerary(planned_itinerary['id']) is None
    assert db.get_activity(activity_id) is None


def test_generation_status_and_recovery(itinerary):
    db.set_generation_status(itinerary['id'], 'processing')
    assert [i['id'] for i in db.get_pending_generation_itineraries()] == [itinerary['id']]

    db.set_generation_status(itinerary['id'], 'error', 'LLM unavailable')
    stored = db.get_itinerary(itinerary['id'])
    assert stored['generation_error'] == 'LLM unavailable'
    assert db.get_pending_generation_itineraries() == []


def test_atlas_files_published_and_drafts():
    content = {'intro': '', 'days': [{'dayNumber': 1, 'title': 'Day 1', 'content': '', 'images': []}], 'tips': ''}
    published = db.create_atlas_file('author-1', {'title': 'Rome Guide', 'content': content,
                                                 'published_at': '2024-05-01T10:00:00+00:00'})
    db.create_atlas_file('author-1', {'title': 'Draft', 'content': content})

    assert published['content'] == content
    assert [f['title'] for f in db.get_published_atlas_files()] == ['Rome Guide']
    assert {f['title'] for f in db.get_user_atlas_files('author-1')} == {'Rome Guide', 'Draft'}


def test_favorite_places_newest_first():
    db.add_favorite_place('Kyoto')
    place = db.add_favorite_place('Lisbon')
    assert place['place_name'] == 'Lisbon'
    assert [p['place_name'] for p in db.get_favorite_places()] == ['Lisbon', 'Kyoto']


def test_destinations_ordered_by_name(add_destination):
    add_destination({'name': 'Tokyo', 'country': 'Japan'})
    add_destination({'name': 'Lima', 'country': 'Peru'})
    assert [d['name'] for d in db.get_destinations()] == ['Lima', 'Tokyo']
