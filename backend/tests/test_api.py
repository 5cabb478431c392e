import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from courseapp.database import get_session
from courseapp.main import app


@pytest.fixture()
def client(engine):
    def _session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = _session
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_instructor_course_detail_flow(client):
    r = client.post('/api/instructors/', json={'name': 'A. Yilmaz'})
    assert r.status_code == 200
    body = r.json()
    assert body['success'] is True
    instructor_id = body['data']['id']

    r2 = client.post('/api/courses/', json={
        'course_name': 'Algorithms',
        'start_date': '2025-01-01',
        'end_date': '2025-06-01',
        'instructor_id': instructor_id,
    })
    assert r2.status_code == 200

    r3 = client.get('/api/courses/detail')
    assert r3.status_code == 200
    rows = r3.json()['data']
    assert len(rows) == 1
    assert rows[0]['instructor_name'] == 'A. Yilmaz'

    course_id = rows[0]['id']
    r4 = client.get(f'/api/courses/detail/{course_id}')
    assert r4.status_code == 200
    assert r4.json()['data']['course_name'] == 'Algorithms'


def test_business_failures_are_400_with_result_body(client):
    r = client.post('/api/courses/', json={
        'course_name': 'Algorithms',
        'start_date': '2025-06-01',
        'end_date': '2025-01-01',
        'instructor_id': 'whatever',
    })
    assert r.status_code == 400
    assert r.json()['success'] is False
    assert r.json()['data'] is None

    r2 = client.get('/api/courses/missing')
    assert r2.status_code == 400
    assert r2.json()['success'] is False


def test_delete_takes_id_in_body(client):
    instructor_id = client.post('/api/instructors/', json={'name': 'B. Demir'}).json()['data']['id']
    missing = client.request('DELETE', '/api/instructors/', json={'id': 'missing'})
    assert missing.status_code == 400
    gone = client.request('DELETE', '/api/instructors/', json={'id': instructor_id})
    assert gone.status_code == 200
    assert client.get(f'/api/instructors/{instructor_id}').status_code == 400


def test_update_registration_price(client):
    instructor_id = client.post('/api/instructors/', json={'name': 'C. Aksoy'}).json()['data']['id']
    course_id = client.post('/api/courses/', json={
        'course_name': 'Databases',
        'start_date': '2025-02-01',
        'end_date': '2025-05-01',
        'instructor_id': instructor_id,
    }).json()['data']['id']
    student_id = client.post('/api/students/', json={'name': 'Ayse'}).json()['data']['id']
    reg = client.post('/api/registrations/', json={'course_id': course_id, 'student_id': student_id}).json()['data']

    r = client.put('/api/registrations/', json={'id': reg['id'], 'course_id': course_id, 'student_id': student_id, 'price': '99.90'})
    assert r.status_code == 200
    fetched = client.get(f"/api/registrations/detail/{reg['id']}").json()['data']
    assert fetched['student_name'] == 'Ayse'
    assert float(fetched['price']) == pytest.approx(99.9)


def test_request_id_is_echoed(client):
    r = client.get('/api/students/', headers={'X-Request-ID': 'abc123'})
    assert r.status_code == 200
    assert r.headers['X-Request-ID'] == 'abc123'
    assert r.json()['data'] == []


def test_repeated_put_is_200(client):
    instructor_id = client.post('/api/instructors/', json={'name': 'D. Kaya'}).json()['data']['id']
    body = {'id': instructor_id, 'name': 'D. Kaya', 'email': 'd.kaya@example.com'}
    assert client.put('/api/instructors/', json=body).status_code == 200
    again = client.put('/api/instructors/', json=body)
    assert again.status_code == 200
    assert again.json()['success'] is True
