import logging

from django.utils import timezone
from rest_framework.views import APIView

from accounts.errors import api_response
from accounts.permissions import HasAccessRole
from tariff.engine import calculate_rcd_premium
from tariff.serializers import RcdPremiumRequestSerializer

logger = logging.getLogger(__name__)


class RcdPremiumAPIView(APIView):
    permission_classes = [HasAccessRole]
    access_resource_key = "tariff"

    def post(self, request):
        serializer = RcdPremiumRequestSerializer(data=request.data or {})
        serializer.is_valid(raise_exception=True)

        result = calculate_rcd_premium(serializer.to_params(), reference_date=timezone.localdate())
        logger.info(
            "RCD premium calculated",
            extra={"user_id": request.user.pk, "refus": result.refus, "activities": len(result.activities)},
        )
        return api_response(result.as_dict())
