# Configuration
CONFIG_DIRNAME = ".apwf"
CONFIG_FILENAME = "config.yml"

# Store transport
DEFAULT_CONNECT_TIMEOUT = 10.0  # seconds
DEFAULT_READ_TIMEOUT = 30.0  # seconds

# Display
DEFAULT_STAGE_NAME_TEMPLATE = "Stage {number}"
UNRESOLVED_USER_TEMPLATE = "#{user_id}"
