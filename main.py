import time
import logging
import signal
import threading
import argparse
from datetime import datetime, timedelta

from sqlalchemy.orm import sessionmaker

from core.app_context import AppContext
from core.config_loader import load_config
from database.database import make_engine
from database.init_db import init_db

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Set on SIGINT/SIGTERM; the sweep stops between openings
stop_event = threading.Event()


def signal_handler(sig, frame):
    logger.info("Shutdown signal received")
    stop_event.set()


def seconds_until_hour(hour: int, now: datetime = None) -> float:
    """Seconds from now until the next occurrence of hour:00 local time."""
    now = now or datetime.now()
    target = now.replace(hour=hour, minute=0, second=0, microsecond=0)
    if target <= now:
        target += timedelta(days=1)
    return (target - now).total_seconds()


def run_nightly_sweep(ctx: AppContext) -> None:
    result = ctx.nightly_runner.run(stop_event=stop_event)
    if result.cancelled:
        logger.warning(f"Sweep cancelled: {result.to_dict()}")
    else:
        logger.info(f"Sweep summary: {result.to_dict()}")


def wait_for_next_run(hour: int, poll_seconds: int) -> None:
    """Sleep in chunks until the nightly hour or shutdown."""
    remaining = seconds_until_hour(hour)
    logger.info(f"Next nightly sweep at {hour:02d}:00 (in {remaining / 3600:.1f}h)")
    while not stop_event.is_set():
        if remaining <= poll_seconds:
            stop_event.wait(remaining)
            return
        stop_event.wait(poll_seconds)
        remaining = seconds_until_hour(hour)


def main():
    parser = argparse.ArgumentParser(description="Match Engine Nightly Driver")
    parser.add_argument('--once', action='store_true',
                        help='Run a single nightly sweep now and exit')
    parser.add_argument('--config', type=str, default='config.yaml',
                        help='Path to config.yaml')
    args = parser.parse_args()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    config = load_config(args.config)

    engine = make_engine(config.database.url)
    session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    # Initialize DB (with retry logic)
    init_db(engine)

    ctx = AppContext.build(config, session_factory=session_factory)

    try:
        if args.once:
            logger.info("Running a single nightly sweep...")
            run_nightly_sweep(ctx)
            return

        hour = config.schedule.nightly_hour
        poll_seconds = max(1, config.schedule.interval_seconds)
        logger.info(f"Match driver starting; nightly sweep at {hour:02d}:00")

        cycle_count = 0
        while not stop_event.is_set():
            wait_for_next_run(hour, poll_seconds)
            if stop_event.is_set():
                break

            cycle_count += 1
            cycle_start = time.time()
            logger.info(f"=== Starting Cycle #{cycle_count} ===")
            try:
                run_nightly_sweep(ctx)
            except Exception as e:
                logger.error(f"Error in main loop: {e}", exc_info=True)

            cycle_elapsed = time.time() - cycle_start
            logger.info(f"=== Cycle #{cycle_count} completed in {cycle_elapsed:.2f}s ===")
    finally:
        engine.dispose()


if __name__ == "__main__":
    main()
