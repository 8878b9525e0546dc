# users/decorators.py
from functools import wraps

from django.http import JsonResponse


def is_admin_request(request):
    user = getattr(request, 'user', None)
    return bool(user and user.is_authenticated and getattr(user, 'is_admin', False))


def admin_required(view_func):
    """Reject the request with a JSON 401 unless it comes from an ADMIN session."""
    @wraps(view_func)
    def _wrapped(request, *args, **kwargs):
        if not is_admin_request(request):
            return JsonResponse({'error': 'Unauthorized'}, status=401)
        return view_func(request, *args, **kwargs)
    return _wrapped
