"""End-to-end tests for the HTTP API."""

import threading
from http.server import HTTPServer

import pytest
import requests

import server

PNG = b'\x89PNG\r\n\x1a\n' + b'\x00' * 32


@pytest.fixture
def base_url(tmp_path, monkeypatch):
    """Run the API on a random local port for one test."""
    monkeypatch.setattr(server, 'OUTPUT_DIR', tmp_path)
    monkeypatch.setenv('OUTPUT_DIR', str(tmp_path))
    (tmp_path / 'uploads').mkdir()

    httpd = HTTPServer(('127.0.0.1', 0), server.TravelAtlasHandler)
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    yield f'http://127.0.0.1:{httpd.server_address[1]}'
    httpd.shutdown()
    httpd.server_close()


def test_health(base_url):
    response = requests.get(f'{base_url}/health')
    assert response.status_code == 200
    assert response.json()['status'] == 'ok'
    assert response.headers['Access-Control-Allow-Origin'] == '*'


def test_destinations_empty(base_url):
    assert requests.get(f'{base_url}/api/destinations').json() == {'data': []}


def test_options(base_url):
    body = requests.get(f'{base_url}/api/options').json()
    assert len(body['traveler_profiles']) == 11
    assert [p['value'] for p in body['travel_paces']][0] == 'relaxed'
    assert 'resort' in [a['value'] for a in body['accommodation_types']]


def test_preflight(base_url):
    response = requests.options(f'{base_url}/api/itineraries')
    assert response.status_code == 204
    assert 'Authorization' in response.headers['Access-Control-Allow-Headers']


def test_unknown_path_and_bad_json(base_url):
    response = requests.get(f'{base_url}/api/nowhere')
    assert response.status_code == 404
    assert response.json() == {'success': False, 'error': 'Not found'}

    response = requests.post(f'{base_url}/api/itineraries', data='{not json',
                             headers={'Content-Type': 'application/json'})
    assert response.status_code == 400
    assert response.json()['error'] == 'Invalid JSON in request body'


def test_generate_itinerary_endpoint(base_url):
    response = requests.post(f'{base_url}/api/ai/generate-itinerary', json={
        'destination': 'Lisbon', 'tripLength': 1, 'travelPace': 'moderate',
        'travelerProfiles': ['backpacker'],
    })
    assert response.status_code == 200
    body = response.json()
    assert len(body['itinerary']['activities']) == 3
    assert body['persisted'] is False

    response = requests.post(f'{base_url}/api/ai/generate-itinerary', json={'tripLength': 2})
    assert response.status_code == 400
    assert response.json()['error'] == 'Please enter a destination'


def test_itinerary_lifecycle(base_url):
    response = requests.post(f'{base_url}/api/itineraries', json={
        'destination': 'Oaxaca', 'tripLength': 2, 'travelerProfiles': ['cultural-explorer'],
        'generate': False,
    })
    assert response.status_code == 200
    itinerary_id = response.json()['itinerary']['id']

    listed = requests.get(f'{base_url}/api/itineraries').json()['itineraries']
    assert [i['id'] for i in listed] == [itinerary_id]

    first = requests.post(f'{base_url}/api/itineraries/{itinerary_id}/activities',
                          json={'title': 'Mercado', 'day_number': 1}).json()['activity']
    second = requests.post(f'{base_url}/api/itineraries/{itinerary_id}/activities',
                           json={'title': 'Monte Alban', 'day_number': 1}).json()['activity']
    assert (first['position'], second['position']) == (0, 1)

    response = requests.post(f'{base_url}/api/itineraries/{itinerary_id}/activities/reorder',
                             json={'activeId': second['id'], 'overId': first['id']})
    assert response.status_code == 200
    assert [a['title'] for a in response.json()['activities']] == ['Monte Alban', 'Mercado']

    response = requests.put(f'{base_url}/api/activities/{first["id"]}', json={'custom_notes': 'Try tlayudas'})
    assert response.json()['activity']['custom_notes'] == 'Try tlayudas'

    detail = requests.get(f'{base_url}/api/itineraries/{itinerary_id}').json()
    assert detail['is_owner'] is True
    assert len(detail['activities']) == 2

    assert requests.delete(f'{base_url}/api/itineraries/{itinerary_id}').status_code == 200
    assert requests.get(f'{base_url}/api/itineraries/{itinerary_id}').status_code == 404


def test_image_upload_saved_locally(base_url, tmp_path):
    response = requests.post(f'{base_url}/api/uploads/images',
                             files={'file': ('view.png', PNG, 'image/png')})
    assert response.status_code == 200
    url = response.json()['url']
    assert url.startswith('/uploads/local-user/')
    assert url.endswith('.png')

    served = requests.get(f'{base_url}{url}')
    assert served.status_code == 200
    assert served.content == PNG


def test_image_upload_rejects_other_types(base_url):
    response = requests.post(f'{base_url}/api/uploads/images',
                             files={'file': ('notes.txt', b'hello', 'text/plain')})
    assert response.status_code == 400
    assert response.json()['error'] == 'Please upload a JPG, PNG, WebP, or GIF image.'


def test_atlas_file_and_markers(base_url):
    response = requests.post(f'{base_url}/api/atlas-files', json={
        'title': 'Ten days in Kyoto', 'destination': 'Kyoto', 'is_public': True,
        'content': {'days': [{'title': 'Arrival', 'content': '<p>Temples</p>'}]},
    })
    assert response.status_code == 200
    atlas_file = response.json()['atlas_file']
    assert atlas_file['author'] == 'Local Traveler'
    assert atlas_file['is_public'] is True

    markers = requests.get(f'{base_url}/api/atlas-files/markers').json()['markers']
    assert markers == [{'lat': 35.0116, 'lng': 135.7681, 'id': atlas_file['id'],
                        'title': 'Ten days in Kyoto', 'destination': 'Kyoto'}]

    response = requests.post(f'{base_url}/api/atlas-files/{atlas_file["id"]}/days')
    assert len(response.json()['atlas_file']['content']['days']) == 2


def test_auth_required_without_token(base_url, monkeypatch):
    monkeypatch.setenv('AUTH_DISABLED', 'false')
    monkeypatch.setenv('SUPABASE_URL', 'https://project.supabase.co')

    response = requests.get(f'{base_url}/api/itineraries')
    assert response.status_code == 401
    assert response.json()['error'] == 'Authentication required'

    # Published content stays readable
    assert requests.get(f'{base_url}/api/atlas-files').status_code == 200


def test_upload_folders_are_not_listed(base_url):
    requests.post(f'{base_url}/api/uploads/images', files={'file': ('view.png', PNG, 'image/png')})

    response = requests.get(f'{base_url}/uploads/local-user/')
    assert response.status_code == 404
    assert response.json()['error'] == 'Not found'


def test_numeric_title_and_save(base_url):
    itinerary_id = requests.post(f'{base_url}/api/itineraries', json={
        'destination': 'Hanoi', 'tripLength': 2, 'travelerProfiles': ['backpacker'], 'generate': False,
    }).json()['itinerary']['id']

    response = requests.post(f'{base_url}/api/itineraries/{itinerary_id}/activities',
                             json={'title': 123, 'day_number': 1})
    assert response.status_code == 200
    assert response.json()['activity']['title'] == '123'

    response = requests.post(f'{base_url}/api/itineraries/{itinerary_id}/save')
    assert response.status_code == 200
    assert response.json()['saved_at']
