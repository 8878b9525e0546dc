# users/views.py
import logging

from django.contrib import messages
from django.contrib.auth import logout
from django.http import JsonResponse
from django.shortcuts import redirect
from django.views.decorators.http import require_GET, require_POST

logger = logging.getLogger(__name__)


@require_POST
def logout_view(request):
    if request.user.is_authenticated:
        logger.info(f"User {request.user.username} logged out")
    logout(request)
    messages.success(request, 'You have been successfully logged out.')
    return redirect('users:login')


@require_GET
def session_view(request):
    """Who is signed in, for the admin client."""
    user = request.user
    if not user.is_authenticated:
        return JsonResponse({'authenticated': False, 'user': None})

    return JsonResponse({
        'authenticated': True,
        'user': {
            'id': user.id,
            'username': user.username,
            'email': user.email,
            'name': user.display_name or user.get_full_name() or user.username,
            'role': user.role,
        },
    })
