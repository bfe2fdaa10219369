from enum import Enum


class VehicleType(str, Enum):
    BIKE = "bike"
    CAR = "car"


class VehicleStatus(str, Enum):
    ACTIVE = "active"
    UPCOMING = "upcoming"
    OVERDUE = "overdue"


class TimeWindow(str, Enum):
    WEEK = "7d"
    MONTH = "30d"
    QUARTER = "90d"
    YEAR = "1y"
    ALL = "all"


class ReportType(str, Enum):
    REVENUE = "revenue"
    SERVICES = "services"
    TECHNICIANS = "technicians"
    CUSTOMERS = "customers"


class ReportSort(str, Enum):
    DATE = "date"
    VALUE = "value"


class VehicleSort(str, Enum):
    NEXT_SERVICE_ASC = "nextServiceAsc"
    OVERDUE_PRIORITY = "overduePriority"
    LAST_SERVICE_DESC = "lastServiceDesc"
