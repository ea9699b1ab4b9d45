#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
import datetime
import logging

import hydra
from omegaconf import DictConfig, OmegaConf

from roombook.config import register_configs
from roombook.constants import CONFIGS_PACKAGE
from roombook.service import BookingService
from roombook.store.document_store import DocumentStore
from roombook.sweeper import IntervalScheduler

logger = logging.getLogger(__name__)

register_configs()


@hydra.main(config_name="sweeper", config_path=CONFIGS_PACKAGE, version_base=None)
def run_sweeper(cfg: DictConfig):
    """Periodically complete expired reservations of a store snapshot.

    The snapshot is written back after every sweep that changed something, so
    that an interrupted run loses no transition."""
    if cfg.debug:
        logger.info(OmegaConf.to_yaml(cfg, resolve=True))
    snapshot_path = cfg.store.snapshot_path
    store = DocumentStore.load(snapshot_path)
    service = BookingService.from_config(cfg, store=store)

    def sweep_and_save() -> int:
        completed = service.sweep()
        if completed:
            store.save(snapshot_path)
        return completed

    scheduler = IntervalScheduler(
        sweep_and_save,
        interval=datetime.timedelta(minutes=cfg.sweeper.interval_minutes),
        max_ticks=cfg.sweeper.max_ticks,
    )
    scheduler.start()
    try:
        scheduler.join()
    except KeyboardInterrupt:
        logger.info("Interrupted, stopping the sweeper")
        scheduler.stop()
    if scheduler.failed_ticks:
        logger.warning(f"{scheduler.failed_ticks} of {scheduler.ticks} sweeps failed")


if __name__ == "__main__":
    run_sweeper()
