# users_api/models/enums.py

from enum import Enum

import pymongo


class SortOrder(str, Enum):
    """Sort direction accepted by the users listing."""
    ASC = "asc"
    DESC = "desc"

    @property
    def direction(self) -> int:
        """The matching pymongo sort constant."""
        return pymongo.ASCENDING if self is SortOrder.ASC else pymongo.DESCENDING
