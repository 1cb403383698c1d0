from .crud_user import user
from .crud_share import shared_file, guest_file
