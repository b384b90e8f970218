# users/urls.py

from django.urls import path

from .views import ProfileView, RegisterView, SaveAddressView, SetPasswordView

app_name = "users"

urlpatterns = [
    # ---------------- PUBLIC AUTH ----------------
    path("register/", RegisterView.as_view(), name="register"),
    path("set-password/", SetPasswordView.as_view(), name="set-password"),
    # ---------------- AUTHENTICATED ----------------
    path("profile/", ProfileView.as_view(), name="profile"),
    path("address/", SaveAddressView.as_view(), name="address"),
]
