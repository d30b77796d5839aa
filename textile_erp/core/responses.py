"""Response envelope helpers shared by every app"""
from django.core.paginator import Paginator, EmptyPage
from rest_framework import status
from rest_framework.response import Response

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 500


def api_success(data=None, status_code=status.HTTP_200_OK, message=None, pagination=None):
    payload = {'success': True, 'data': data}
    if message:
        payload['message'] = message
    if pagination is not None:
        payload['pagination'] = pagination
    return Response(payload, status=status_code)


def api_error(error, message, status_code=status.HTTP_400_BAD_REQUEST, errors=None):
    payload = {'success': False, 'error': error, 'message': message}
    if errors is not None:
        payload['errors'] = errors
    return Response(payload, status=status_code)


def validation_error(serializer_errors):
    """Envelope for serializer.errors"""
    from .exceptions import _first_message
    return api_error('validation_error', _first_message(serializer_errors), errors=serializer_errors)


def paginate(request, queryset, serializer_class, context=None):
    """
    Paginate a queryset using ?page= and ?limit= query params.
    Returns (serialized_rows, pagination_dict)
    """
    try:
        page_size = int(request.query_params.get('limit', DEFAULT_PAGE_SIZE))
    except (TypeError, ValueError):
        page_size = DEFAULT_PAGE_SIZE
    page_size = max(1, min(page_size, MAX_PAGE_SIZE))

    try:
        page_number = int(request.query_params.get('page', 1))
    except (TypeError, ValueError):
        page_number = 1

    paginator = Paginator(queryset, page_size)
    try:
        page = paginator.page(page_number)
    except EmptyPage:
        page = paginator.page(paginator.num_pages or 1)

    serializer = serializer_class(page.object_list, many=True, context=context or {'request': request})
    pagination = {
        'count': paginator.count,
        'page': page.number,
        'limit': page_size,
        'total_pages': paginator.num_pages,
        'has_next': page.has_next(),
        'has_previous': page.has_previous(),
    }
    return serializer.data, pagination
