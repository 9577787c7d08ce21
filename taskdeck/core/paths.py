from __future__ import annotations

APP_NAME = "taskdeck"
APP_AUTHOR = "taskdeck"
SETTINGS_FILENAME = "settings.json"
LOG_FILENAME = "taskdeck.log"
