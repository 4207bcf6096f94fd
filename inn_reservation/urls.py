from rest_framework.routers import DefaultRouter
from inn_reservation.views import RoomViewSet, ReservationViewSet

router = DefaultRouter(trailing_slash=False)
router.register(r'rooms', RoomViewSet, basename='room')
router.register(r'reservations', ReservationViewSet, basename='reservation')

urlpatterns = router.urls
