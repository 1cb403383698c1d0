# Import all the models, so that Base has them before being
# imported by create_all
from fileshare.db.base_class import Base  # noqa
from fileshare.models.user import User  # noqa
from fileshare.models.share import SharedFile, GuestFile  # noqa
