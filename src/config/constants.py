"""Fleet classification sets, diesel norms, and telematics event tables."""

# =============================================================================
# Fleet Classification
# =============================================================================

# Refrigeration units report hours operated instead of an odometer
REEFER_FLEETS = frozenset({"4F", "5F", "6F", "7F", "8F"})

# Fleets fitted with a physical tank probe
FLEETS_WITH_PROBES = frozenset({"22H", "23H", "24H", "26H", "28H", "31H"})

# =============================================================================
# Diesel Norms
# =============================================================================

DEFAULT_EXPECTED_KM_PER_LITRE = 3.0
DEFAULT_EXPECTED_LITRES_PER_HOUR = 3.5
DEFAULT_TOLERANCE_PERCENT = 10.0
DEFAULT_REEFER_TOLERANCE_PERCENT = 15.0

MAX_TOLERANCE_PERCENT = 50.0

# Litres between pump volume and probe reading before a fill needs checking
PROBE_DISCREPANCY_THRESHOLD = 50.0

# fleet -> (expected rate, tolerance %, is reefer)
# Rate is km/L for standard units and L/h for reefer units.
DEFAULT_NORMS = {
    "4H":  (3.5, 10.0, False),
    "6H":  (3.2, 10.0, False),
    "21H": (3.0, 10.0, False),
    "22H": (3.1, 10.0, False),
    "23H": (3.0, 10.0, False),
    "24H": (2.9, 10.0, False),
    "26H": (3.5, 10.0, False),
    "28H": (3.3, 10.0, False),
    "29H": (3.2, 10.0, False),
    "30H": (3.1, 10.0, False),
    "31H": (3.0, 10.0, False),
    "32H": (3.2, 10.0, False),
    "33H": (3.1, 10.0, False),
    "UD":  (2.8, 15.0, False),
    "4F":  (3.5, 15.0, True),
    "5F":  (3.5, 15.0, True),
    "6F":  (3.5, 15.0, True),
    "7F":  (3.5, 15.0, True),
    "8F":  (3.5, 15.0, True),
}

PERFORMANCE_LEVELS = ("poor", "normal", "excellent")

# Probe filter keys understood by the diesel summary
PROBE_STATUSES = (
    "has-probe",
    "needs-verification",
    "verified",
    "large-discrepancy",
    "reefer-units",
)

# =============================================================================
# Driver Behaviour Events
# =============================================================================

SEVERITIES = ("low", "medium", "high", "critical")
DEFAULT_SEVERITY = "medium"

# Payload-supplied points are clamped to this range
MIN_EVENT_POINTS = 0
MAX_EVENT_POINTS = 1000

UNKNOWN_EVENT_TYPE = "other"
UNKNOWN_IDENTITY = "Unknown"

# Ordered (substring, canonical type). First match wins, so a token must
# appear before any shorter token it contains.
EVENT_TYPE_MAPPING = (
    ("harsh_acceleration", "harsh_acceleration"),
    ("harsh_braking", "harsh_braking"),
    ("de_acceleration", "de_acceleration"),
    ("de-acceleration", "de_acceleration"),
    ("deceleration", "de_acceleration"),
    ("acceleration", "acceleration"),
    ("seatbelt", "seatbelt_violation"),
    ("cell_phone", "phone_usage"),
    ("phone", "phone_usage"),
    ("fatigue", "fatigue_alert"),
    ("speedlimit", "speeding"),
    ("speed_limit", "speeding"),
    ("speeding", "speeding"),
    ("lane_weaving", "lane_weaving"),
    ("distracted", "distracted"),
    ("passenger", "passenger"),
    ("tailgating", "tailgating"),
    ("obstruction", "obstruction"),
    ("wrong_pin", "wrong_pin_code"),
    ("violent_left_turn", "violent_left_turn"),
    ("violent_right_turn", "violent_right_turn"),
    ("button_pressed", "button_pressed"),
    ("tamper", "tamper"),
    ("accident", "accident"),
    ("idling", "idling"),
    ("route_deviation", "route_deviation"),
    ("unauthorized_stop", "unauthorized_stop"),
)

# canonical type -> (severity, points); overrides whatever the payload says
EVENT_RULES = {
    "harsh_acceleration": ("high", 10),
    "seatbelt_violation": ("high", 10),
    "phone_usage":        ("medium", 5),
    "fatigue_alert":      ("high", 10),
    "harsh_braking":      ("high", 10),
    "speeding":           ("high", 10),
    "lane_weaving":       ("high", 5),
    "distracted":         ("high", 10),
    "passenger":          ("medium", 3),
    "tailgating":         ("high", 7),
    "obstruction":        ("medium", 4),
    "wrong_pin_code":     ("low", 2),
    "violent_left_turn":  ("medium", 5),
    "violent_right_turn": ("medium", 5),
    "de_acceleration":    ("medium", 3),
    "acceleration":       ("medium", 3),
    "button_pressed":     ("low", 1),
    "tamper":             ("high", 8),
    "accident":           ("critical", 50),
}

# Noise from the telematics units, never stored
IGNORED_EVENT_TOKENS = (
    "jolt",
    "acc_on",
    "acc_off",
    "ignition_on",
    "ignition_off",
    "smoking",
)

# Canonical types without a rule entry keep the payload's severity/points
EVENT_TYPES = tuple(EVENT_RULES) + (
    "idling",
    "route_deviation",
    "unauthorized_stop",
    UNKNOWN_EVENT_TYPE,
)

# Telematics unit serial -> fleet number
FLEET_BY_SERIAL = {
    "357660104031745": "23H",
    "357660105416796": "24H",
    "357660105442362": "28H",
    "357660104031307": "31H",
    "357660104031711": "33H",
}

DRIVER_BY_FLEET = {
    "23H": "Phillimon Kwarire",
    "24H": "Taurayi Vherenaisi",
    "28H": "Adrian Moyo",
    "31H": "Enock Mukonyerwa",
    "33H": "Canaan Chipfurutse",
}

EVENT_REPORTER = "Telematics Integration"

# =============================================================================
# Event Lifecycle
# =============================================================================

EVENT_STATUSES = ("pending", "in_progress", "resolved", "disputed")
INITIAL_EVENT_STATUS = "pending"

# from status -> statuses it may move to; "resolved" is terminal
EVENT_TRANSITIONS = {
    "pending":     ("in_progress", "resolved", "disputed"),
    "in_progress": ("resolved", "disputed"),
    "disputed":    ("in_progress", "resolved"),
    "resolved":    (),
}

# Driver flagged as high risk above this many events (or any high/critical)
HIGH_RISK_EVENT_COUNT = 3
