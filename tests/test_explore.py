"""Tests for destinations, favorite places and globe markers."""

import database as db
from agents.explore import handler as explore_handler
from agents.explore.globe import build_markers, get_coords


def test_get_coords_exact_then_partial():
    assert get_coords('Kyoto') == {'lat': 35.0116, 'lng': 135.7681}
    assert get_coords('  Paris, France ') == {'lat': 48.8566, 'lng': 2.3522}
    assert get_coords('York') == {'lat': 40.7128, 'lng': -74.006}
    assert get_coords('Atlantis') is None
    assert get_coords('') is None
    assert get_coords(None) is None


def test_build_markers_skips_unknown_destinations():
    markers = build_markers([
        {'id': 1, 'title': 'Tokyo nights', 'destination': 'Tokyo'},
        {'id': 2, 'title': 'Lost city', 'destination': 'Atlantis'},
    ])
    assert markers == [{'lat': 35.6762, 'lng': 139.6503, 'id': 1, 'title': 'Tokyo nights', 'destination': 'Tokyo'}]


def test_globe_markers_only_use_published_files():
    db.create_atlas_file('a', {'title': 'Public', 'destination': 'Lisbon', 'published_at': '2024-01-01T00:00:00'})
    db.create_atlas_file('a', {'title': 'Draft', 'destination': 'Rome'})

    result, status = explore_handler.globe_markers_handler()
    assert status == 200
    assert [m['title'] for m in result['markers']] == ['Public']


def test_add_favorite_place_trims_and_requires_name():
    result, status = explore_handler.add_favorite_place_handler({'place_name': '   '})
    assert status == 400
    assert result['error'] == 'Please enter a place name'

    result, status = explore_handler.add_favorite_place_handler({'place_name': '  Santorini '})
    assert status == 200
    assert result['place']['place_name'] == 'Santorini'
    assert explore_handler.list_favorite_places_handler()[0]['places'][0]['place_name'] == 'Santorini'


def test_destinations_handler_shape(add_destination):
    add_destination({'name': 'Bali', 'country': 'Indonesia'})
    result, status = explore_handler.destinations_handler()
    assert status == 200
    assert result['data'][0]['name'] == 'Bali'
