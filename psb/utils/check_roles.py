from fastapi import Depends, HTTPException, status
from psb.utils.get_user import get_current_user
from psb.models.users.user_models import User

# Everyone who can sign in may work the PSB board
PSB_STAFF = ["admin", "operator"]
PSB_ADMIN = ["admin"]


def require_role(roles: list[str]):
    async def role_checker(user: User = Depends(get_current_user)):
        if user.role.lower() not in [r.lower() for r in roles]:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Permission denied"
            )
        return user
    return role_checker
