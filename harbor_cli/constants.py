"""Centralized constants for harbor-cli."""

# Artifact file names (relative to the output directory)
BUILD_RECIPE_FILE = "Dockerfile"
RUN_MANIFEST_FILE = "docker-compose.yml"

# Database snapshot (relative to the working directory)
DB_DUMP_FILE = "db_dump.sql"
DEFAULT_DB_NAME = "yourdb"

# Build defaults
DEFAULT_BUILD_PLATFORMS = ("linux/amd64", "linux/arm64")
DEFAULT_BUILD_CONTEXT = "."

# Generation defaults
DEFAULT_PORT = "3000"

# Diagnostics
LOG_TAIL_LINES = 20
SHORT_ID_LENGTH = 12
RESTART_LOOP_THRESHOLD = 3

# Manifest service name
COMPOSE_SERVICE_NAME = "app"

# Stack detection markers
NODE_MANIFEST = "package.json"
PYTHON_REQUIREMENTS = "requirements.txt"
FRONTEND_ENTRY_PATHS = (
    "src/App.jsx",
    "src/App.tsx",
    "src/App.js",
    "public/index.html",
)

# Process exit codes
EXIT_OK = 0
EXIT_UNEXPECTED = 1
EXIT_MISSING_PREREQUISITE = 3
EXIT_OVERWRITE_DECLINED = 4
EXIT_BUILD_FAILURE = 5
EXIT_DEPLOYMENT_FAILURE = 6
EXIT_RUNTIME_UNAVAILABLE = 7
EXIT_CONTAINER_NOT_FOUND = 8
EXIT_NO_SELECTION = 9
EXIT_NOTIFICATION_FAILURE = 10
EXIT_CONFIGURATION_ERROR = 11
# Dump failures are warnings; the code is only reported, never used to exit
EXIT_DUMP_FAILURE = 12
