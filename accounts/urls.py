from django.urls import path

from .views import CreateAccountView, LoginView, SignoutView, UserProfileView

urlpatterns = [
    path('auth/', CreateAccountView.as_view(), name='signup'),
    path('auth/login/', LoginView.as_view(), name='login'),
    path('auth/signout', SignoutView.as_view(), name='signout'),
    path('auth/me', UserProfileView.as_view(), name='me'),
]
