from django.urls import path
from rest_framework.authtoken.views import obtain_auth_token

from accounts.views import AuthenticatedUserAPIView

urlpatterns = [
    path("token/", obtain_auth_token, name="auth-token"),
    path("me/", AuthenticatedUserAPIView.as_view(), name="auth-me"),
]
