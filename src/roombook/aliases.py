#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
RoomId = str
ReservationId = str
UserId = str
RoomNameOrId = str
"""Reservation requests may reference a room by its id or by its (case-insensitive) name."""
