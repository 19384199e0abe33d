"""
Django admin registrations for the housing models.

Registering the models lets superusers inspect allocations and fix data
by hand through ``/admin/`` during development.
"""

from django.contrib import admin

from .models import Application, AuditEvent, Hostel, Room, Student, User


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('username', 'role', 'is_active', 'is_staff', 'is_superuser')
    list_filter = ('role', 'is_active')
    search_fields = ('username', 'first_name', 'last_name', 'email')


@admin.register(Hostel)
class HostelAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'gender', 'capacity', 'available_rooms', 'admin', 'is_active')
    list_filter = ('gender', 'is_active')
    search_fields = ('name', 'location', 'warden')


@admin.register(Room)
class RoomAdmin(admin.ModelAdmin):
    list_display = ('id', 'hostel', 'floor', 'room_number', 'capacity', 'occupied_spaces', 'status')
    list_filter = ('status', 'hostel')
    search_fields = ('room_number', 'hostel__name')


@admin.register(Student)
class StudentAdmin(admin.ModelAdmin):
    list_display = ('pnr', 'name', 'year', 'application_status', 'assigned_room', 'is_blacklisted')
    list_filter = ('application_status', 'year', 'gender', 'is_blacklisted')
    search_fields = ('pnr', 'name', 'email')


@admin.register(Application)
class ApplicationAdmin(admin.ModelAdmin):
    list_display = ('id', 'student_pnr', 'hostel', 'status', 'applied_on', 'room_number', 'floor')
    list_filter = ('status', 'hostel')
    search_fields = ('student_pnr', 'student_name')


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ('id', 'action', 'object_type', 'object_id', 'user', 'created_at')
    list_filter = ('action', 'object_type')
    search_fields = ('action', 'user__username')
