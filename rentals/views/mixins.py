"""
View helpers: JSON responses, request parsing, error handling decorators.
"""

import json
import logging
from decimal import Decimal, InvalidOperation
from functools import wraps

from django.http import Http404, JsonResponse

from rentals.exceptions import RentalsError, UnavailableError
from rentals.services.pricing_service import to_utc_date

logger = logging.getLogger(__name__)


class BadRequest(ValueError):
    """Malformed request body or parameter."""


def json_response(data, status=200):
    return JsonResponse(data, status=status)


def error_response(message, status=400, **extra):
    return JsonResponse({'success': False, 'error': message, **extra}, status=status)


def success_response(data=None, message=None, status=200):
    response = {'success': True}
    if message:
        response['message'] = message
    if data:
        response.update(data)
    return JsonResponse(response, status=status)


def json_api(view_func):
    """
    Turn service errors into JSON error responses.

    RentalsError answers with its own status code, BadRequest with 400,
    anything else is logged and answered with 500.
    """
    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        try:
            return view_func(request, *args, **kwargs)
        except UnavailableError as e:
            return error_response(e.message, e.status_code, reason=e.reason, **e.details)
        except RentalsError as e:
            return error_response(e.message, e.status_code)
        except BadRequest as e:
            return error_response(str(e), 400)
        except Http404 as e:
            return error_response(str(e) or 'Not found', 404)
        except Exception:
            logger.exception("Unhandled error in %s", view_func.__name__)
            return error_response('Internal Server Error', 500)
    return wrapper


def login_required_json(view_func):
    """Operator endpoints: 401 JSON instead of a login redirect."""
    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        if not request.user.is_authenticated:
            return error_response('Unauthorized', 401)
        return view_func(request, *args, **kwargs)
    return wrapper


# =============================================================================
# REQUEST PARSING
# =============================================================================

def parse_json_body(request):
    """Request body as a dict; form-encoded bodies are accepted too."""
    if request.content_type == 'application/json':
        try:
            data = json.loads(request.body or b'{}')
        except (json.JSONDecodeError, UnicodeDecodeError):
            raise BadRequest('Invalid JSON body')
        if not isinstance(data, dict):
            raise BadRequest('JSON body must be an object')
        return data
    return request.POST.dict()


def parse_date(value, field):
    """Parse an ISO date/datetime into a UTC calendar date."""
    if value in (None, ''):
        raise BadRequest(f'{field} is required')
    try:
        return to_utc_date(value)
    except (ValueError, TypeError):
        raise BadRequest(f'Invalid {field}: {value}')


def parse_optional_date(value, field):
    if value in (None, ''):
        return None
    return parse_date(value, field)


def parse_decimal(value, field, default=None):
    if value is None or value == '':
        return default
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise BadRequest(f'Invalid {field}: {value}')


def parse_int(value, field, default=None):
    if value is None or value == '':
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        raise BadRequest(f'Invalid {field}: {value}')


def parse_text(value, field, default=''):
    """Stripped string value; anything other than a string is rejected."""
    if value is None:
        return default
    if not isinstance(value, str):
        raise BadRequest(f'{field} must be a string')
    return value.strip()


def parse_bool(value, default=False):
    if value is None or value == '':
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('1', 'true', 'yes', 'on')
