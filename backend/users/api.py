from __future__ import annotations

from rest_framework import generics, permissions
from rest_framework_simplejwt.views import TokenObtainPairView

from .serializers import FlexibleTokenObtainPairSerializer, ProfileSerializer


class MeView(generics.RetrieveUpdateAPIView):
    """Authenticated profile view for the current user."""

    serializer_class = ProfileSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_object(self):
        user = self.request.user
        self.check_object_permissions(self.request, user)
        return user


class FlexibleTokenObtainPairView(TokenObtainPairView):
    """Login endpoint that accepts email or username as the identifier."""

    permission_classes = [permissions.AllowAny]
    serializer_class = FlexibleTokenObtainPairSerializer
