from .auth import RegisterView, SetPasswordView
from .me import ProfileView, SaveAddressView

__all__ = [
    "RegisterView",
    "SetPasswordView",
    "ProfileView",
    "SaveAddressView",
]
