from rest_framework.views import APIView

from accounts.errors import api_response
from accounts.models import BrokerProfile
from accounts.permissions import HasAccessRole
from accounts.rbac import resolve_user_role


class AuthenticatedUserAPIView(APIView):
    permission_classes = [HasAccessRole]
    access_resource_key = "profile"

    def get(self, request):
        user = request.user
        broker_profile = BrokerProfile.objects.filter(user=user).first()
        return api_response(
            {
                "id": user.id,
                "username": user.username,
                "email": user.email,
                "name": user.get_full_name() or user.username,
                "role": resolve_user_role(user),
                "broker_profile": (
                    {
                        "code": broker_profile.code,
                        "company_name": broker_profile.company_name,
                    }
                    if broker_profile is not None
                    else None
                ),
            }
        )
