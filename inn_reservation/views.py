import logging

from django.http import JsonResponse
from pymongo.errors import PyMongoError
from rest_framework import status, viewsets
from rest_framework.response import Response

from .exceptions import StoreFault
from .serializers import ReservationSerializer, RoomSerializer
from .services import ReservationService
from .store import get_store

logger = logging.getLogger(__name__)


def welcome(request):
    return JsonResponse({"message": "Welcome to Aizu Inn Server!"})


def health_check(request):
    try:
        get_store().ping()
    except PyMongoError:
        logger.warning('Health check: database ping failed', exc_info=True)
        return JsonResponse({"status": "unavailable"}, status=503)
    return JsonResponse({"status": "ok"})


class ServiceMixin:
    service_class = ReservationService

    def get_service(self):
        return self.service_class(get_store())


class RoomViewSet(ServiceMixin, viewsets.ViewSet):

    def list(self, request):
        """All rooms, in insertion order"""
        try:
            rooms = self.get_service().list_rooms()
        except PyMongoError as err:
            raise StoreFault('Failed to fetch rooms') from err
        return Response(RoomSerializer(rooms, many=True).data)


class ReservationViewSet(ServiceMixin, viewsets.ViewSet):

    def create(self, request):
        logger.info('Received reservation request for room %s', _room_id_of(request.data))
        try:
            reservation = self.get_service().create_reservation(request.data)
        except PyMongoError as err:
            raise StoreFault('Failed to create reservation') from err

        data = ReservationSerializer(reservation).data
        return Response({'id': data['_id'], **data}, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        """Reservation joined with its room as the room is now"""
        try:
            reservation = self.get_service().get_reservation(pk)
        except PyMongoError as err:
            raise StoreFault('Failed to fetch reservation') from err
        return Response(ReservationSerializer(reservation).data)


def _room_id_of(data):
    return data.get('roomId') if hasattr(data, 'get') else None
