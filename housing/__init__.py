"""Housing application: hostels, rooms, student applications and allocation.

This package contains the models, services, serializers and views that
implement the hostel allocation API.
"""
