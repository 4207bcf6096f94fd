
from django.conf import settings
from django.urls import path, include, re_path
from django.views.static import serve
from inn_reservation.views import health_check, welcome

urlpatterns = [
    path('health', health_check, name='health'),
    path('', welcome, name='welcome'),
    path('api/', include('inn_reservation.urls')),
    re_path(r'^images/(?P<path>.*)$', serve, {'document_root': settings.IMAGES_DIR}, name='images'),
]
