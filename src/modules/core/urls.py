from django.urls import path

from modules.core.views import health_check, hello

urlpatterns = [
    path("health", health_check, name="health_check"),
    path("hello", hello, name="hello"),
]
