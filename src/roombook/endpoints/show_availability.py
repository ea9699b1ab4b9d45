#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
import logging

import hydra
from omegaconf import DictConfig, OmegaConf
from rich.console import Console

from roombook.config import register_configs
from roombook.constants import CONFIGS_PACKAGE
from roombook.display import display_rooms, reservations_table
from roombook.exceptions import BookingError
from roombook.service import BookingService
from roombook.store.document_store import DocumentStore
from roombook.time_utils import TimeInterval, parse_instant

logger = logging.getLogger(__name__)

register_configs()


@hydra.main(config_name="availability", config_path=CONFIGS_PACKAGE, version_base=None)
def show_availability(cfg: DictConfig):
    """Print the rooms available in a window, followed by the reservations
    that make the other rooms busy."""
    if cfg.debug:
        logger.info(OmegaConf.to_yaml(cfg, resolve=True))
    service = BookingService.from_config(
        cfg, store=DocumentStore.load(cfg.store.snapshot_path)
    )
    console = Console()
    start, end = parse_instant(cfg.query.start), parse_instant(cfg.query.end)
    try:
        available = service.search_available_rooms(
            start, end, min_capacity=cfg.query.min_capacity
        )
    except BookingError as e:
        logger.error(str(e))
        raise SystemExit(1) from e
    display_rooms(available, title=f"Available rooms {start} - {end}", console=console)
    busy = service.reservations.find_overlapping(TimeInterval(start, end))
    if busy:
        room_names = {room.room_id: room.name for room in service.list_rooms()}
        console.print(reservations_table(busy, room_names=room_names))


if __name__ == "__main__":
    show_availability()
