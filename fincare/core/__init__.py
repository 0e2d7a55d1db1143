from .config import Settings, settings
from .security import (
    hash_password,
    verify_password,
    create_access_token,
    create_admin_token,
    decode_token,
    is_valid_password,
)
