#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
PACKAGE_NAME = "roombook"
CONFIGS_PACKAGE = f"pkg://{PACKAGE_NAME}.configs"
DEFAULT_BUFFER_TIME_MINUTES = 15
DEFAULT_SWEEP_INTERVAL_MINUTES = 10
DEFAULT_LOCK_TIMEOUT_SECONDS = 10.0
DISPLAY_TIME_FORMAT = "%Y-%m-%d %H:%M"
