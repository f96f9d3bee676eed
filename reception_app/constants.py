# reception_app/constants.py
"""Reception system constants"""

# System roles
ADMIN_ROLE_CODE = "admin"
RECEPTION_ROLE_CODE = "reception"
SECURITY_ROLE_CODE = "security"
EMPLOYEE_ROLE_CODE = "employee"

# Role groups
FRONT_DESK_ROLES = (ADMIN_ROLE_CODE, RECEPTION_ROLE_CODE)
SECURITY_DESK_ROLES = (ADMIN_ROLE_CODE, SECURITY_ROLE_CODE)
STAFF_ROLES = (ADMIN_ROLE_CODE, RECEPTION_ROLE_CODE, SECURITY_ROLE_CODE)

DEFAULT_SECURITY_GUARD = "Security Guard"

# Visitor notes prefix when the host is not in the directory
REQUESTED_TO_MEET_PREFIX = "Requested to meet: "

# Appointment duration bounds, minutes
APPOINTMENT_MIN_DURATION = 15
APPOINTMENT_MAX_DURATION = 480
APPOINTMENT_DEFAULT_DURATION = 60

# Employee picker
AVAILABLE_EMPLOYEES_LIMIT = 100

# Dashboard
ACTIVITY_SOURCE_LIMIT = 10
ACTIVITY_FEED_LIMIT = 15
ACTIVITY_TIME_FORMAT = "%I:%M %p"

# Reports
TOP_DESTINATIONS_LIMIT = 5
TOP_COMPANIES_LIMIT = 5

# Audit log actions
ACTION_CREATE = "CREATE"
ACTION_UPDATE = "UPDATE"
ACTION_DELETE = "DELETE"
ACTION_CHECK_IN = "CHECK_IN"
ACTION_CHECK_OUT = "CHECK_OUT"
ACTION_MILEAGE = "RECORD_MILEAGE"
ACTION_SERVICE = "SERVICE"
ACTION_RETURN = "RETURN"
ACTION_DELAY = "MARK_DELAYED"
ACTION_COLLECT = "COLLECT"
ACTION_STATUS = "STATUS_CHANGE"
ACTION_LOGIN_LOCKED = "LOGIN_LOCKED"
ACTION_PURGE = "PURGE"
