"""
Integration tests for the allocation API.

These drive the application lifecycle and the administrative room moves
through the HTTP endpoints and check after each step that the room
counters, the student/application mirrors and hostel availability still
agree with each other.

To run the tests:

```
pytest -q housing/tests
```
"""

from rest_framework import status
from rest_framework.test import APIClient, APITestCase

from ..models import Application, ApplicationStatus, AuditEvent, Hostel, Room, RoomStatus, Student, User
from ..services.reconcile import find_violations
from .helpers import application_payload, make_hostel, make_room, make_student, make_user


class AllocationAPITests(APITestCase):
    def setUp(self) -> None:
        """Two hostels with their own admins, three rooms and three students."""
        self.superadmin = make_user('root', User.Role.SUPERADMIN)
        self.admin = make_user('warden1', User.Role.ADMIN)
        self.other_admin = make_user('warden2', User.Role.ADMIN)

        self.north = make_hostel('North Block', self.admin)
        self.south = make_hostel('South Block', self.other_admin)
        self.room101 = make_room(self.north, '101', 1, capacity=2)
        self.room102 = make_room(self.north, '102', 1, capacity=3)
        self.room5 = make_room(self.south, '5', 0, capacity=1)

        self.s1 = make_student('PNR001')
        self.s2 = make_student('PNR002')
        self.s3 = make_student('PNR003')

    def authenticate(self, user: User) -> APIClient:
        client = APIClient()
        client.force_authenticate(user=user)
        return client

    def assertConsistent(self):
        report = find_violations()
        self.assertTrue(report.ok, [str(v) for v in report.violations])

    def submit(self, student: Student, hostel: Hostel):
        return self.authenticate(student.user).post('/api/applications', application_payload(hostel), format='json')

    def approve(self, application_id, room_number, floor, user=None):
        client = self.authenticate(user or self.admin)
        return client.put(f'/api/admin/applications/{application_id}/APPROVED',
                          {'roomNumber': room_number, 'floor': floor}, format='json')

    def assign(self, student: Student, room: Room, hostel: Hostel = None):
        client = self.authenticate(self.superadmin)
        return client.put(f'/api/superadmin/students/{student.pnr}/assign-room',
                          {'hostelId': (hostel or room.hostel).pk, 'roomId': room.pk}, format='json')

    # -- submission -----------------------------------------------------

    def test_student_submits_application(self):
        response = self.submit(self.s1, self.north)
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['success'])
        app = response.data['data']['application']
        self.assertEqual(app['status'], ApplicationStatus.PENDING)
        self.assertEqual(app['studentPnr'], 'PNR001')
        self.s1.refresh_from_db()
        self.assertEqual(self.s1.application_status, ApplicationStatus.PENDING)
        self.assertTrue(AuditEvent.objects.filter(action='application.submit').exists())

    def test_second_application_is_rejected(self):
        self.submit(self.s1, self.north)
        response = self.submit(self.s1, self.south)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(response.data['success'])
        self.assertEqual(Application.objects.filter(student=self.s1).count(), 1)

    def test_submission_with_missing_fields(self):
        client = self.authenticate(self.s1.user)
        response = client.post('/api/applications', {'hostelId': self.north.pk}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Validation failed')
        self.assertIn('branch', response.data['errors'])

    def test_submission_to_disabled_hostel(self):
        Hostel.objects.filter(pk=self.north.pk).update(is_active=False)
        response = self.submit(self.s1, self.north)
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_admin_cannot_submit(self):
        client = self.authenticate(self.admin)
        response = client.post('/api/applications', application_payload(self.north), format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_student_cancels_pending_application(self):
        app_id = self.submit(self.s1, self.north).data['data']['application']['id']
        client = self.authenticate(self.s1.user)
        response = client.put(f'/api/applications/{app_id}/cancel')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['application']['status'], ApplicationStatus.CANCELLED)
        self.s1.refresh_from_db()
        self.assertEqual(self.s1.application_status, ApplicationStatus.CANCELLED)
        # Someone else's application looks like it does not exist
        other = self.authenticate(self.s2.user)
        self.assertEqual(other.put(f'/api/applications/{app_id}/cancel').status_code, status.HTTP_404_NOT_FOUND)

    # -- approval / rejection ------------------------------------------

    def test_admin_approves_application_into_room(self):
        app_id = self.submit(self.s1, self.north).data['data']['application']['id']
        response = self.approve(app_id, '101', 1)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['application']['status'], ApplicationStatus.APPROVED)
        self.assertEqual(response.data['data']['application']['roomNumber'], '101')

        self.room101.refresh_from_db()
        self.s1.refresh_from_db()
        self.north.refresh_from_db()
        self.assertEqual(self.room101.occupied_spaces, 1)
        self.assertEqual(self.room101.status, RoomStatus.EMPTY)
        self.assertEqual(self.room101.student_details[0]['pnr'], 'PNR001')
        self.assertEqual(self.s1.assigned_room_id, self.room101.pk)
        self.assertEqual(self.s1.application_status, ApplicationStatus.APPROVED)
        self.assertEqual(self.s1.hostel_name, 'North Block')
        self.assertEqual(self.north.available_rooms, 2)
        self.assertConsistent()

    def test_admin_cannot_approve_for_another_hostel(self):
        app_id = self.submit(self.s1, self.north).data['data']['application']['id']
        response = self.approve(app_id, '101', 1, user=self.other_admin)
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.room101.refresh_from_db()
        self.assertEqual(self.room101.occupied_spaces, 0)

    def test_superadmin_approves_any_hostel(self):
        app_id = self.submit(self.s1, self.south).data['data']['application']['id']
        response = self.approve(app_id, '5', 0, user=self.superadmin)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.south.refresh_from_db()
        self.assertEqual(self.south.available_rooms, 0)
        self.assertConsistent()

    def test_application_cannot_be_processed_twice(self):
        app_id = self.submit(self.s1, self.north).data['data']['application']['id']
        self.approve(app_id, '101', 1)
        response = self.approve(app_id, '102', 1)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Application has already been processed.')
        self.room102.refresh_from_db()
        self.assertEqual(self.room102.occupied_spaces, 0)

    def test_approve_into_unknown_room(self):
        app_id = self.submit(self.s1, self.north).data['data']['application']['id']
        # Room 101 is on floor 1, not floor 2
        response = self.approve(app_id, '101', 2)
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        app = Application.objects.get(pk=app_id)
        self.assertEqual(app.status, ApplicationStatus.PENDING)

    def test_unknown_decision(self):
        app_id = self.submit(self.s1, self.north).data['data']['application']['id']
        client = self.authenticate(self.admin)
        response = client.put(f'/api/admin/applications/{app_id}/MAYBE', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_reject_requires_reason(self):
        app_id = self.submit(self.s1, self.north).data['data']['application']['id']
        client = self.authenticate(self.admin)
        response = client.put(f'/api/admin/applications/{app_id}/REJECTED', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = client.put(f'/api/admin/applications/{app_id}/REJECTED',
                              {'rejectionReason': 'Documents incomplete'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['application']['rejectionReason'], 'Documents incomplete')
        self.s1.refresh_from_db()
        self.assertEqual(self.s1.application_status, ApplicationStatus.REJECTED)

    def test_superadmin_rejects_by_pnr_with_default_reason(self):
        self.submit(self.s1, self.north)
        client = self.authenticate(self.superadmin)
        response = client.put('/api/superadmin/students/PNR001/reject-application', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['application']['rejectionReason'], 'Rejected by superadmin')

    # -- direct assignment and capacity --------------------------------

    def test_capacity_round_trip(self):
        response = self.assign(self.s1, self.room101)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['room']['occupiedSpaces'], 1)
        self.assertEqual(response.data['data']['room']['status'], RoomStatus.EMPTY)

        response = self.assign(self.s2, self.room101)
        self.assertEqual(response.data['data']['room']['occupiedSpaces'], 2)
        self.assertEqual(response.data['data']['room']['status'], RoomStatus.FILLED)

        response = self.assign(self.s3, self.room101)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Room is already full.')

        self.room101.refresh_from_db()
        self.north.refresh_from_db()
        self.s3.refresh_from_db()
        self.assertEqual(self.room101.occupied_spaces, 2)
        self.assertIsNone(self.s3.assigned_room_id)
        # Only room 102 still has a free seat
        self.assertEqual(self.north.available_rooms, 1)
        self.assertConsistent()

    def test_direct_assignment_without_application_approves_student(self):
        self.assign(self.s1, self.room101)
        self.s1.refresh_from_db()
        self.assertEqual(self.s1.application_status, ApplicationStatus.APPROVED)
        self.assertFalse(Application.objects.filter(student=self.s1).exists())

    def test_assignment_mirrors_existing_application(self):
        self.submit(self.s1, self.south)
        self.assign(self.s1, self.room101)
        app = Application.objects.get(student=self.s1)
        self.assertEqual(app.status, ApplicationStatus.APPROVED)
        self.assertEqual(app.hostel_id, self.north.pk)
        self.assertEqual((app.room_number, app.floor), ('101', 1))

    def test_assign_room_of_other_hostel(self):
        response = self.assign(self.s1, self.room5, hostel=self.north)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Room does not belong to the specified hostel.')

    def test_assign_blacklisted_student(self):
        client = self.authenticate(self.superadmin)
        client.put('/api/superadmin/students/PNR001/blacklist')
        response = self.assign(self.s1, self.room101)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        client.put('/api/superadmin/students/PNR001/unblacklist')
        self.assertEqual(self.assign(self.s1, self.room101).status_code, status.HTTP_200_OK)

    def test_assign_twice(self):
        self.assign(self.s1, self.room101)
        same = self.assign(self.s1, self.room101)
        self.assertEqual(same.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(same.data['message'], 'Student is already assigned to this room.')
        other = self.assign(self.s1, self.room102)
        self.assertEqual(other.status_code, status.HTTP_400_BAD_REQUEST)
        self.room101.refresh_from_db()
        self.assertEqual(self.room101.occupied_spaces, 1)

    def test_assign_unknown_student(self):
        client = self.authenticate(self.superadmin)
        response = client.put('/api/superadmin/students/NOPE/assign-room',
                              {'hostelId': self.north.pk, 'roomId': self.room101.pk}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    # -- moves ----------------------------------------------------------

    def test_reassign_across_hostels(self):
        app_id = self.submit(self.s1, self.north).data['data']['application']['id']
        self.approve(app_id, '101', 1)
        self.assign(self.s2, self.room101)
        self.north.refresh_from_db()
        self.assertEqual(self.north.available_rooms, 1)

        client = self.authenticate(self.superadmin)
        response = client.put('/api/superadmin/students/PNR001/reassign-room',
                              {'hostelId': self.south.pk, 'roomId': self.room5.pk}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['application']['hostelId'], self.south.pk)

        self.room101.refresh_from_db()
        self.room5.refresh_from_db()
        self.north.refresh_from_db()
        self.south.refresh_from_db()
        self.assertEqual(self.room101.occupied_spaces, 1)
        self.assertEqual(self.room101.status, RoomStatus.EMPTY)
        self.assertEqual(self.north.available_rooms, 2)
        self.assertEqual(self.room5.occupied_spaces, 1)
        self.assertEqual(self.room5.status, RoomStatus.FILLED)
        self.assertEqual(self.south.available_rooms, 0)

        app = Application.objects.get(pk=app_id)
        self.assertEqual(app.hostel_id, self.south.pk)
        self.assertEqual((app.room_number, app.floor), ('5', 0))
        self.assertEqual(app.remarks, 'Student room reassigned by admin')
        self.assertConsistent()

    def test_reassign_into_full_room_keeps_old_seat(self):
        self.assign(self.s1, self.room101)
        self.assign(self.s2, self.room5)
        client = self.authenticate(self.superadmin)
        response = client.put('/api/superadmin/students/PNR001/reassign-room',
                              {'hostelId': self.south.pk, 'roomId': self.room5.pk}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.s1.refresh_from_db()
        self.room101.refresh_from_db()
        self.assertEqual(self.s1.assigned_room_id, self.room101.pk)
        self.assertEqual(self.room101.occupied_spaces, 1)
        self.assertConsistent()

    def test_change_room_needs_approved_application(self):
        self.assign(self.s1, self.room101)
        client = self.authenticate(self.superadmin)
        response = client.put('/api/superadmin/students/PNR001/change-room',
                              {'hostelId': self.north.pk, 'roomId': self.room102.pk}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Student does not have an approved application.')

    def test_change_room_within_hostel(self):
        app_id = self.submit(self.s1, self.north).data['data']['application']['id']
        self.approve(app_id, '101', 1)
        client = self.authenticate(self.superadmin)
        response = client.put('/api/superadmin/students/PNR001/change-room',
                              {'hostelId': self.north.pk, 'roomId': self.room102.pk}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['student']['roomNumber'], '102')
        self.room101.refresh_from_db()
        self.assertEqual(self.room101.occupied_spaces, 0)
        self.assertEqual(self.room101.student_details, [])
        self.assertConsistent()

    def test_change_room_for_unseated_student(self):
        client = self.authenticate(self.superadmin)
        response = client.put('/api/superadmin/students/PNR001/change-room',
                              {'hostelId': self.north.pk, 'roomId': self.room102.pk}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Student is not currently assigned to any room.')

    def test_remove_from_room(self):
        app_id = self.submit(self.s1, self.north).data['data']['application']['id']
        self.approve(app_id, '101', 1)
        client = self.authenticate(self.superadmin)
        response = client.put('/api/superadmin/students/PNR001/removeStudentFromRoom', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['student']['applicationStatus'], ApplicationStatus.DISALLOCATED)
        self.assertEqual(response.data['data']['application']['status'], ApplicationStatus.DISALLOCATED)
        self.assertEqual(response.data['data']['room']['occupiedSpaces'], 0)

        self.s1.refresh_from_db()
        self.assertIsNone(self.s1.assigned_room_id)
        self.assertEqual(self.s1.remarks, 'Student is removed from room by admin')
        self.assertConsistent()

        # A second removal fails and changes nothing
        before = Room.objects.get(pk=self.room101.pk).updated_at
        again = client.put('/api/superadmin/students/PNR001/removeStudentFromRoom', {}, format='json')
        self.assertEqual(again.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(Room.objects.get(pk=self.room101.pk).updated_at, before)

    # -- room status ----------------------------------------------------

    def test_admin_marks_room_damaged(self):
        client = self.authenticate(self.admin)
        url = f'/api/admin/hostels/{self.north.pk}/rooms/{self.room101.pk}/change-status'
        response = client.put(url, {'status': 'damaged'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.north.refresh_from_db()
        self.assertEqual(self.north.available_rooms, 1)

        # Damaged rooms keep their status when someone is seated there
        self.assign(self.s1, self.room101)
        self.room101.refresh_from_db()
        self.assertEqual(self.room101.status, RoomStatus.DAMAGED)
        self.assertConsistent()

    def test_room_with_free_seats_cannot_be_marked_filled(self):
        client = self.authenticate(self.admin)
        url = f'/api/admin/hostels/{self.north.pk}/rooms/{self.room101.pk}/change-status'
        response = client.put(url, {'status': 'filled'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_full_room_cannot_be_marked_empty(self):
        self.assign(self.s1, self.room5)
        client = self.authenticate(self.other_admin)
        url = f'/api/admin/hostels/{self.south.pk}/rooms/{self.room5.pk}/change-status'
        response = client.put(url, {'status': 'empty'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.room5.refresh_from_db()
        self.assertEqual(self.room5.status, RoomStatus.FILLED)
        self.assertConsistent()

    def test_room_status_outside_own_hostel(self):
        client = self.authenticate(self.other_admin)
        url = f'/api/admin/hostels/{self.north.pk}/rooms/{self.room101.pk}/change-status'
        self.assertEqual(client.put(url, {'status': 'maintenance'}, format='json').status_code,
                         status.HTTP_403_FORBIDDEN)
        client = self.authenticate(self.superadmin)
        url = f'/api/superadmin/hostels/{self.north.pk}/rooms/{self.room101.pk}/change-status'
        self.assertEqual(client.put(url, {'status': 'maintenance'}, format='json').status_code,
                         status.HTTP_200_OK)

    def test_admin_creates_room(self):
        client = self.authenticate(self.admin)
        response = client.post(f'/api/admin/hostels/{self.north.pk}/rooms',
                               {'roomNumber': '201', 'floor': 2, 'capacity': 4}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.north.refresh_from_db()
        self.assertEqual(self.north.available_rooms, 3)
        duplicate = client.post(f'/api/admin/hostels/{self.north.pk}/rooms',
                                {'roomNumber': '201', 'floor': 2, 'capacity': 4}, format='json')
        self.assertEqual(duplicate.status_code, status.HTTP_400_BAD_REQUEST)

    def test_inventory_seat_map(self):
        self.assign(self.s1, self.room101)
        client = self.authenticate(self.admin)
        response = client.get(f'/api/admin/hostels/{self.north.pk}/inventory')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        stats = response.data['data']['stats']
        self.assertEqual(stats['totalRooms'], 2)
        self.assertEqual(stats['totalCapacity'], 5)
        self.assertEqual(stats['availableSpaces'], 4)
        floor1 = response.data['data']['seatMap']['1']
        self.assertEqual(floor1[0]['assignedStudents'][0]['pnr'], 'PNR001')
