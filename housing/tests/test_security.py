import pytest
from django.test import override_settings
from django.urls import reverse
from rest_framework.test import APIClient

from housing.models import Student, User
from housing.policy import POLICY, Operation, can_access_hostel, is_allowed
from housing.tests.helpers import PASSWORD, application_payload, make_hostel, make_student, make_user

pytestmark = pytest.mark.django_db

REGISTRATION = {
    'name': 'Asha Patil',
    'email': 'asha@example.com',
    'pnr': 'PNR9001',
    'password': PASSWORD,
    'gender': 'Female',
    'year': '2nd',
    'parentName': 'R. Patil',
}


def login(client, identifier, password=PASSWORD):
    return client.post(reverse('login'), {'identifier': identifier, 'password': password}, format='json')


def test_every_operation_has_a_policy_row():
    assert set(POLICY) == set(Operation)


def test_superadmin_is_listed_for_all_staff_operations():
    student_only = {Operation.SUBMIT_APPLICATION, Operation.VIEW_OWN_APPLICATION, Operation.CANCEL_APPLICATION}
    for op, roles in POLICY.items():
        assert ('superadmin' in roles) == (op not in student_only), op


def test_policy_checks_use_account_role():
    admin = make_user('warden1', User.Role.ADMIN)
    other = make_user('warden2', User.Role.ADMIN)
    root = make_user('root', User.Role.SUPERADMIN)
    hostel = make_hostel('North Block', admin)

    assert is_allowed(admin, Operation.APPROVE_APPLICATION)
    assert not is_allowed(admin, Operation.ASSIGN_ROOM)
    assert is_allowed(root, Operation.ASSIGN_ROOM)
    assert can_access_hostel(admin, hostel)
    assert not can_access_hostel(other, hostel)
    assert can_access_hostel(root, hostel)
    assert not is_allowed(None, Operation.VIEW_HOSTELS)


def test_register_then_login_with_pnr_or_email():
    client = APIClient()
    r = client.post(reverse('register'), REGISTRATION, format='json')
    assert r.status_code == 201
    assert r.data['data']['access'] and r.data['data']['refresh']
    assert r.data['data']['user']['student']['parentName'] == 'R. Patil'

    for identifier in ('PNR9001', 'asha@example.com'):
        r = login(client, identifier)
        assert r.status_code == 200
        assert r.data['data']['role'] == 'student'


def test_register_rejects_weak_password_and_duplicates():
    client = APIClient()
    r = client.post(reverse('register'), {**REGISTRATION, 'password': '123456'}, format='json')
    assert r.status_code == 400
    assert r.data['success'] is False
    assert not Student.objects.exists()

    client.post(reverse('register'), REGISTRATION, format='json')
    r = client.post(reverse('register'), {**REGISTRATION, 'email': 'other@example.com'}, format='json')
    assert r.status_code == 400
    assert r.data['message'] == 'Email or PNR already exists'


def test_wrong_password_is_401():
    make_student('PNR001')
    r = login(APIClient(), 'PNR001', 'not-the-password')
    assert r.status_code == 401
    assert r.data == {'success': False, 'message': 'Invalid credentials'}


def test_no_role_bypass_in_login():
    make_student('PNR001')
    client = APIClient()
    r = client.post(reverse('login'), {'identifier': 'PNR001', 'password': PASSWORD, 'role': 'superadmin'},
                    format='json')
    assert r.status_code == 200
    assert r.data['data']['role'] == 'student'
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {r.data['data']['access']}")
    assert client.get('/api/superadmin/students').status_code == 403


def test_bearer_token_reaches_protected_endpoint():
    make_user('warden1', User.Role.ADMIN)
    client = APIClient()
    r = client.post(reverse('login'), {'adminId': 'warden1', 'password': PASSWORD}, format='json')
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {r.data['data']['access']}")
    me = client.get(reverse('me'))
    assert me.status_code == 200
    assert me.data['data']['role'] == 'admin'


def test_unauthenticated_requests_get_401():
    r = APIClient().get('/api/applications/my-application')
    assert r.status_code == 401
    assert r.data['success'] is False
    assert 'WWW-Authenticate' in r


def test_logout_blacklists_refresh_token():
    make_student('PNR001')
    client = APIClient()
    tokens = login(client, 'PNR001').data['data']
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['access']}")
    r = client.post(reverse('logout'), {'refresh': tokens['refresh']}, format='json')
    assert r.status_code == 200

    r = APIClient().post(reverse('token_refresh'), {'refresh': tokens['refresh']}, format='json')
    assert r.status_code == 401


def test_student_reads_only_own_application():
    admin = make_user('warden1', User.Role.ADMIN)
    hostel = make_hostel('North Block', admin)
    s1, s2 = make_student('PNR001'), make_student('PNR002')
    client = APIClient()
    client.force_authenticate(user=s1.user)
    assert client.post('/api/applications', application_payload(hostel), format='json').status_code == 201

    assert client.get('/api/applications/PNR001').status_code == 200
    assert client.get('/api/applications/my-application').status_code == 200
    client.force_authenticate(user=s2.user)
    assert client.get('/api/applications/PNR001').status_code == 403
    assert client.get('/api/applications/my-application').status_code == 404


def test_admin_sees_only_own_hostel_applications():
    admin = make_user('warden1', User.Role.ADMIN)
    other = make_user('warden2', User.Role.ADMIN)
    north = make_hostel('North Block', admin)
    make_hostel('South Block', other)
    student = make_student('PNR001')
    client = APIClient()
    client.force_authenticate(user=student.user)
    client.post('/api/applications', application_payload(north), format='json')

    client.force_authenticate(user=other)
    assert client.get('/api/applications/PNR001').status_code == 403
    r = client.get('/api/applications')
    assert r.status_code == 200
    assert r.data['data']['total'] == 0
    assert client.get(f'/api/admin/hostels/{north.pk}/applications').status_code == 403

    client.force_authenticate(user=admin)
    r = client.get('/api/applications', {'status': 'PENDING'})
    assert r.data['data']['total'] == 1


@override_settings(SUPERADMIN_PASSKEY='letmein')
def test_superadmin_creation_needs_passkey():
    payload = {'name': 'Root', 'email': 'root@example.com', 'adminId': 'root',
               'password': PASSWORD, 'confirmPassword': PASSWORD}
    client = APIClient()
    r = client.post('/api/superadmin/superadmins', {**payload, 'passKey': 'wrong'}, format='json')
    assert r.status_code == 401
    assert r.data['message'] == 'Invalid Passkey'

    r = client.post('/api/superadmin/superadmins', {**payload, 'passKey': 'LETMEIN'}, format='json')
    assert r.status_code == 201
    assert User.objects.get(username='root').role == 'superadmin'


def test_superadmin_manages_admins():
    root = make_user('root', User.Role.SUPERADMIN)
    client = APIClient()
    client.force_authenticate(user=root)
    payload = {'name': 'Warden', 'email': 'w@example.com', 'adminId': 'warden9',
               'password': PASSWORD, 'confirmPassword': PASSWORD}
    assert client.post('/api/superadmin/admins', payload, format='json').status_code == 201
    mismatch = {**payload, 'adminId': 'warden10', 'email': 'x@example.com', 'confirmPassword': 'Other!Passw0rd'}
    assert client.post('/api/superadmin/admins', mismatch, format='json').status_code == 400

    warden = User.objects.get(username='warden9')
    make_hostel('North Block', warden)
    r = client.delete('/api/superadmin/admins/warden9')
    assert r.status_code == 400
    assert 'assigned hostel' in r.data['message']

    assert client.patch('/api/superadmin/admins/warden9/disable').status_code == 200
    warden.refresh_from_db()
    assert warden.is_active is False
    assert client.patch('/api/superadmin/admins/root/disable').status_code == 400


def test_hostel_crud_and_admin_change():
    root = make_user('root', User.Role.SUPERADMIN)
    make_user('warden1', User.Role.ADMIN)
    make_user('warden2', User.Role.ADMIN)
    client = APIClient()
    client.force_authenticate(user=root)
    r = client.post('/api/superadmin/hostels', {
        'name': 'East Wing', 'location': 'Campus', 'capacity': 40, 'gender': 'Co-ed',
        'adminId': 'warden1', 'amenities': ['WiFi'],
    }, format='json')
    assert r.status_code == 201
    hostel_id = r.data['data']['hostel']['id']

    r = client.put(f'/api/superadmin/hostels/{hostel_id}', {'rentPerMonth': 3500}, format='json')
    assert r.status_code == 200
    assert r.data['data']['hostel']['rentPerMonth'] == 3500

    r = client.put(f'/api/superadmin/hostels/{hostel_id}/change-admin', {'adminId': 'warden2'}, format='json')
    assert r.data['data']['hostel']['admin']['adminId'] == 'warden2'
    r = client.put(f'/api/superadmin/hostels/{hostel_id}/change-admin', {'adminId': 'root'}, format='json')
    assert r.status_code == 400

    client.patch(f'/api/superadmin/hostels/{hostel_id}/disable')
    student = make_student('PNR001')
    client.force_authenticate(user=student.user)
    assert client.get(f'/api/hostels/{hostel_id}').status_code == 404

    client.force_authenticate(user=root)
    assert client.delete(f'/api/superadmin/hostels/{hostel_id}').status_code == 200


def test_healthz():
    r = APIClient().get('/healthz')
    assert r.status_code == 200
    assert r.json()['db'] is True
