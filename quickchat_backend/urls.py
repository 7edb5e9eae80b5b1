from django.contrib import admin
from django.http import JsonResponse
from django.urls import path, include
from rest_framework_simplejwt.views import TokenRefreshView

def home(request):
    return JsonResponse({"message": "QuickChat backend is running"})

urlpatterns = [
    path('', home),
    path('admin/', admin.site.urls),
    path('api/', include('accounts.urls')),
    path('api/', include('chat.urls')),
    path('api/token/refresh/', TokenRefreshView.as_view(), name='token_refresh'),
]
