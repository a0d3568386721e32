# Dealership Back-Office: Database Models
# Import all models here for SQLAlchemy discovery

from dealership.models.user import User                   # noqa
from dealership.models.vehicle import Vehicle             # noqa
from dealership.models.person import Person               # noqa
from dealership.models.transaction import Transaction     # noqa
from dealership.models.expense import Expense             # noqa
from dealership.models.activity_log import ActivityLog    # noqa
