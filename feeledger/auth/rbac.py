from fastapi import Depends, HTTPException, status

from feeledger.auth.dependencies import get_current_user
from feeledger.auth.schemas import CurrentUser
from feeledger.core.enums import UserRole


def require_roles(*roles: UserRole):
    """
    Dependency factory to restrict a route to the given roles.

    Example:
        Depends(require_roles(UserRole.ADMIN))
    """
    allowed = set(roles)

    async def _checker(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if current_user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return current_user

    return _checker


# Everyone who can look at fee data; students have no fee screens.
FEE_READERS = (UserRole.ADMIN, UserRole.STAFF, UserRole.PARENT)
