"""
URL mappings for the hostel allocation API.

All API routes live under ``/api`` and omit trailing slashes
(``APPEND_SLASH`` is off).  Literal segments such as
``applications/my-application`` are listed before the parameterised
routes they would otherwise be captured by.
"""
from django.urls import include, path

from .views import admin, applications, auth, health, hostels, superadmin

urlpatterns = [
    path('metrics', include('django_prometheus.urls')),
    path('healthz', health.healthz),
    # Authentication
    path('api/auth/register', auth.register_view, name='register'),
    path('api/auth/login', auth.login_view, name='login'),
    path('api/auth/refresh', auth.refresh_view, name='token_refresh'),
    path('api/auth/logout', auth.logout_view, name='logout'),
    path('api/auth/me', auth.me_view, name='me'),
    # Hostel catalogue
    path('api/hostels', hostels.list_hostels, name='hostel_list'),
    path('api/hostels/<int:hostel_id>', hostels.hostel_detail, name='hostel_detail'),
    # Applications
    path('api/applications', applications.applications, name='applications'),
    path('api/applications/my-application', applications.my_application, name='my_application'),
    path('api/applications/<int:application_id>/cancel', applications.cancel_application,
         name='cancel_application'),
    path('api/applications/<str:pnr>', applications.application_by_pnr, name='application_by_pnr'),
    # Hostel staff
    path('api/admin/hostels', admin.admin_hostels, name='admin_hostels'),
    path('api/admin/hostels/<int:hostel_id>/applications', admin.hostel_applications,
         name='admin_hostel_applications'),
    path('api/admin/hostels/<int:hostel_id>/inventory', admin.hostel_inventory, name='admin_inventory'),
    path('api/admin/hostels/<int:hostel_id>/rooms', admin.hostel_rooms, name='admin_rooms'),
    path('api/admin/hostels/<int:hostel_id>/rooms/<int:room_id>/change-status', admin.change_room_status,
         name='admin_change_room_status'),
    path('api/admin/applications/<int:application_id>/<str:decision>', admin.decide_application,
         name='admin_decide_application'),
    # Superadmin: dashboard
    path('api/superadmin/dashboard/overview', superadmin.dashboard_overview, name='dashboard_overview'),
    path('api/superadmin/dashboard/detailed', superadmin.dashboard_detailed, name='dashboard_detailed'),
    # Superadmin: accounts
    path('api/superadmin/superadmins', superadmin.create_superadmin, name='create_superadmin'),
    path('api/superadmin/admins', superadmin.admins, name='admins'),
    path('api/superadmin/admins/<str:admin_id>', superadmin.admin_detail, name='admin_detail'),
    path('api/superadmin/admins/<str:admin_id>/disable', superadmin.disable_admin, name='disable_admin'),
    path('api/superadmin/admins/<str:admin_id>/enable', superadmin.enable_admin, name='enable_admin'),
    # Superadmin: students
    path('api/superadmin/students', superadmin.students, name='students'),
    path('api/superadmin/students/<str:pnr>', superadmin.student_detail, name='student_detail'),
    path('api/superadmin/students/<str:pnr>/assign-room', superadmin.assign_room, name='assign_room'),
    path('api/superadmin/students/<str:pnr>/change-room', superadmin.change_room, name='change_room'),
    path('api/superadmin/students/<str:pnr>/reassign-room', superadmin.reassign_room, name='reassign_room'),
    path('api/superadmin/students/<str:pnr>/removeStudentFromRoom', superadmin.remove_from_room,
         name='remove_from_room'),
    path('api/superadmin/students/<str:pnr>/reject-application', superadmin.reject_application,
         name='reject_application'),
    path('api/superadmin/students/<str:pnr>/blacklist', superadmin.blacklist_student, name='blacklist'),
    path('api/superadmin/students/<str:pnr>/unblacklist', superadmin.unblacklist_student, name='unblacklist'),
    # Superadmin: hostels
    path('api/superadmin/hostels', superadmin.hostels, name='superadmin_hostels'),
    path('api/superadmin/hostels/<int:hostel_id>', superadmin.hostel_detail, name='superadmin_hostel_detail'),
    path('api/superadmin/hostels/<int:hostel_id>/enable', superadmin.enable_hostel, name='enable_hostel'),
    path('api/superadmin/hostels/<int:hostel_id>/disable', superadmin.disable_hostel, name='disable_hostel'),
    path('api/superadmin/hostels/<int:hostel_id>/change-admin', superadmin.change_hostel_admin,
         name='change_hostel_admin'),
    path('api/superadmin/hostels/<int:hostel_id>/rooms/<int:room_id>/change-status',
         superadmin.change_room_status, name='superadmin_change_room_status'),
]
