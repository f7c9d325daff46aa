from django.contrib import admin
from django.urls import include, path

from rest_framework.routers import DefaultRouter

from core.urls import urlpatterns as core_urlpatterns
from contracts.urls import router as contracts_router

urlpatterns = [
    path('admin/', admin.site.urls),
    path('', include(core_urlpatterns)),
]

router = DefaultRouter(trailing_slash=False)
router.registry.extend(contracts_router.registry)
urlpatterns += router.urls
