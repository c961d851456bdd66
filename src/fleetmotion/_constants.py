"""Internal constants shared across the library."""

ROUTING_BASE_URL = "https://api.openrouteservice.org"
USER_AGENT = "fleetmotion/0.1"

DEFAULT_DEMO_ENTITY_ID = "simulated-car"
# Default demo trip (Addis Ababa city centre).
DEFAULT_DEMO_START: tuple[float, float] = (8.9806, 38.7578)
DEFAULT_DEMO_END: tuple[float, float] = (8.9906, 38.7678)

# Mock live feed base point (London).
MOCK_BASE_POSITION: tuple[float, float] = (51.505, -0.09)
MOCK_JITTER_DEGREES = 0.01

# Epoch values above this are milliseconds.
MS_TIMESTAMP_THRESHOLD = 1e11
