# Users and auth
from psb.models.users.user_models import User, RefreshToken

# PSB
from psb.models.psb.psb_order_models import PSBOrder
