from fastapi import Depends

from .dependencies import get_current_user
from .error_handlers import ForbiddenError, get_error_message

AUTHOR_ROLES = {"admin", "owner"}


def _role_required(*allowed_roles: str):
    def check_role(user=Depends(get_current_user)):
        if str(user.get("role") or "").lower() not in allowed_roles:
            raise ForbiddenError(get_error_message("forbidden"))
        return user
    return check_role


author_only = _role_required(*AUTHOR_ROLES)
