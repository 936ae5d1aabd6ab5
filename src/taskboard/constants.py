DEFAULT_API_URL = "https://todo-be-ax5x.onrender.com"
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_LOG_LEVEL = "INFO"

CONFIG_DIR_NAME = ".taskboard"
CONFIG_FILE = "config.yaml"

ENV_API_URL = "TASKBOARD_API_URL"
ENV_TIMEOUT = "TASKBOARD_TIMEOUT"
ENV_LOG_LEVEL = "TASKBOARD_LOG_LEVEL"

STATUS_TITLES = {
    "BACKLOG": "Backlog",
    "IN_PROGRESS": "In Progress",
    "REVIEW": "Review",
    "DONE": "Done",
}

PRIORITIES = ("LOW", "MEDIUM", "HIGH")

# Shortest accepted textual due date: "YYYY-MM-DDTHH:MM".
MIN_DUE_DATE_LENGTH = 16
