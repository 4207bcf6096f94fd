import logging

from pymongo.errors import PyMongoError
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


class ReservationServiceError(APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Internal server error'

    def payload(self):
        return {'error': str(self.detail)}


class InvalidReservation(ReservationServiceError):
    """The payload broke one or more field rules."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid reservation'

    def __init__(self, errors):
        super().__init__()
        self.errors = list(errors)

    def payload(self):
        return {'errors': self.errors}


class RoomReferenceError(ReservationServiceError):
    """The roomId of a new reservation matches no room."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'The specified room does not exist'

    def payload(self):
        return {'errors': [{'field': 'roomId', 'message': str(self.detail)}]}


class ReservationNotFound(ReservationServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Reservation not found'


class RoomNotFound(ReservationServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Room not found'


class StoreFault(ReservationServiceError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Database error'


def exception_handler(exc, context):
    """Render every error raised from a view as a JSON body."""
    view = context.get('view')
    view_name = type(view).__name__ if view is not None else 'unknown view'

    if isinstance(exc, ReservationServiceError):
        if exc.status_code >= 500:
            logger.error('%s in %s', exc.detail, view_name, exc_info=exc.__cause__ or exc)
        return Response(exc.payload(), status=exc.status_code)

    if isinstance(exc, PyMongoError):
        logger.error('Database error in %s', view_name, exc_info=exc)
        return Response({'error': 'Database error'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    response = drf_exception_handler(exc, context)
    if response is None:
        logger.error('Unhandled exception in %s', view_name, exc_info=exc)
        return Response({'error': 'Internal server error'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
    if isinstance(response.data, dict) and 'detail' in response.data:
        response.data = {'error': str(response.data['detail'])}
    return response
