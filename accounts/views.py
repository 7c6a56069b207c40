import json
import logging

from django.contrib.auth import authenticate, login, logout
from django.http import JsonResponse
from django.views.decorators.http import require_POST

logger = logging.getLogger(__name__)


@require_POST
def login_view(request):
    """Session login for API clients (email + password JSON body)."""
    try:
        data = json.loads(request.body or b'{}')
    except json.JSONDecodeError:
        return JsonResponse({'status': 'error', 'message': 'Invalid JSON'}, status=400)

    email = data.get('email', '')
    password = data.get('password', '')
    if not email or not password:
        return JsonResponse(
            {'status': 'error', 'message': 'email and password are required'},
            status=400
        )

    user = authenticate(request, email=email, password=password)
    if user is None:
        logger.warning(f"Failed login attempt for {email}")
        return JsonResponse({'status': 'error', 'message': 'Invalid credentials'}, status=401)

    login(request, user)
    return JsonResponse({'status': 'success', 'user': {'email': user.email, 'name': user.display_name}})


@require_POST
def logout_view(request):
    logout(request)
    return JsonResponse({'status': 'success'})
