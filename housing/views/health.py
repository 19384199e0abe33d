"""Liveness check: database round trip plus a cache write/read."""
from django.core.cache import cache
from django.db import DatabaseError, connections
from django.http import JsonResponse


def _db_ok() -> bool:
    with connections['default'].cursor() as c:
        c.execute('SELECT 1')
        row = c.fetchone()
    return bool(row and row[0] == 1)


def healthz(request):
    try:
        db = _db_ok()
    except DatabaseError as e:
        return JsonResponse({'success': False, 'message': f'database: {e}'}, status=500)
    cache.set('healthz', 1, 5)
    checks = {'db': db, 'cache': cache.get('healthz') == 1}
    return JsonResponse({'success': all(checks.values()), **checks}, status=200 if all(checks.values()) else 503)
