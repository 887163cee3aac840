"""Tests for map data and Nominatim geocoding."""

from unittest.mock import MagicMock, patch

from agents.planner.mapper import Geocoder, build_map_data, google_maps_directions_url

ITINERARY = {'id': 7, 'destination': 'Paris'}

ACTIVITIES = [
    {'id': 1, 'day_number': 1, 'position': 0, 'title': 'Louvre', 'category': 'culture',
     'latitude': 48.8606, 'longitude': 2.3376},
    {'id': 2, 'day_number': 1, 'position': 1, 'title': 'Dinner', 'category': 'food',
     'latitude': 48.8540, 'longitude': 2.3325},
    {'id': 3, 'day_number': 2, 'position': 2, 'title': 'Versailles', 'category': 'culture',
     'latitude': 48.8049, 'longitude': 2.1204},
    {'id': 4, 'day_number': 2, 'position': 3, 'title': 'Somewhere', 'category': 'other'},
]


def test_map_data_for_all_days():
    data = build_map_data(ITINERARY, ACTIVITIES)

    assert data['selected_day'] == 'all'
    assert data['days'] == [1, 2]
    assert [m['label'] for m in data['markers']] == ['D1', 'D1', 'D2']
    assert data['total_located'] == 3
    assert data['total_activities'] == 4
    assert data['markers'][0]['color'] == '#8B5CF6'
    assert data['markers'][0]['maps_url'] == 'https://www.google.com/maps/search/?api=1&query=48.8606,2.3376'
    assert data['directions_url'] == (
        'https://www.google.com/maps/dir/48.8606,2.3376/48.854,2.3325/48.8049,2.1204')


def test_map_data_for_one_day():
    data = build_map_data(ITINERARY, ACTIVITIES, day=1)

    assert data['selected_day'] == 1
    assert [m['label'] for m in data['markers']] == ['1', '2']
    assert data['zoom'] == 12
    assert round(data['center']['lat'], 4) == round((48.8606 + 48.8540) / 2, 4)


def test_map_data_without_coordinates():
    data = build_map_data(ITINERARY, [ACTIVITIES[3]])
    assert data['markers'] == []
    assert data['center'] == {'lat': 0, 'lng': 0}
    assert data['zoom'] == 2
    assert data['directions_url'] is None
    assert google_maps_directions_url([]) is None


def _nominatim(results):
    response = MagicMock()
    response.json.return_value = results
    return response


@patch('agents.planner.mapper.time.sleep')
@patch('agents.planner.mapper.requests.get')
def test_geocode_prefers_places_and_caches(mock_get, mock_sleep):
    mock_get.return_value = _nominatim([
        {'class': 'highway', 'lat': '1.0', 'lon': '2.0', 'display_name': 'Louvre Street'},
        {'class': 'tourism', 'lat': '48.86', 'lon': '2.33', 'display_name': 'Musee du Louvre'},
    ])
    geocoder = Geocoder()

    first = geocoder.geocode('Louvre, Paris')
    second = geocoder.geocode('Louvre, Paris')

    assert first == {'lat': 48.86, 'lng': 2.33, 'address': 'Musee du Louvre'}
    assert second == first
    assert mock_get.call_count == 1
    assert mock_get.call_args.kwargs['headers']['User-Agent'] == 'TravelAtlas/1.0'


@patch('agents.planner.mapper.time.sleep')
@patch('agents.planner.mapper.requests.get')
def test_geocode_activities_fills_coordinates(mock_get, mock_sleep):
    mock_get.return_value = _nominatim([{'class': 'place', 'lat': '41.9', 'lon': '12.5'}])
    activities = [{'title': 'Pantheon', 'location': 'Piazza della Rotonda'},
                  {'title': 'Known', 'latitude': 1.0, 'longitude': 1.0}]

    assert Geocoder().geocode_activities(activities, region_hint='Rome') == 1
    assert activities[0]['latitude'] == 41.9
    assert mock_get.call_args.kwargs['params']['q'] == 'Piazza della Rotonda, Rome'


@patch('agents.planner.mapper.time.sleep')
@patch('agents.planner.mapper.requests.get')
def test_geocode_activities_stops_after_three_failures(mock_get, mock_sleep):
    mock_get.return_value = _nominatim([])
    activities = [{'title': f'Unknown place {i}'} for i in range(5)]

    assert Geocoder().geocode_activities(activities) == 0
    assert mock_get.call_count == 3
