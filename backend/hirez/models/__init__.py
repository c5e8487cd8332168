from .application import Application
from .form import Form
from .user import User

__all__ = ["Application", "Form", "User"]
