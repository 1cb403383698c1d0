from .user import User
from .share import SharedFile, GuestFile, ShareKind, ShareStatus
